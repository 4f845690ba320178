"""Series preparation for chart blocks and momentum inputs."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any, TypeVar

import pandas as pd

from stock_report.utils.numeric import to_number

T = TypeVar("T")


def downsample(items: Sequence[T], max_points: int) -> Sequence[T]:
    """
    Pick ``max_points`` evenly spaced items, keeping first and last.

    Index ``i`` maps to ``round(i * (n - 1) / (max_points - 1))`` with halves
    rounded up, so the selection is deterministic and order preserving.
    Sequences that already fit are returned unchanged.
    """
    if len(items) <= max_points:
        return items
    if max_points <= 0:
        return []
    if max_points == 1:
        return [items[0]]
    step = (len(items) - 1) / (max_points - 1)
    return [items[math.floor(i * step + 0.5)] for i in range(max_points)]


def filter_series(
    labels: Sequence[str],
    values: Sequence[float | None],
) -> tuple[list[str], list[float]]:
    """Drop indices whose value is not a finite number, keeping labels aligned."""
    kept_labels: list[str] = []
    kept_values: list[float] = []
    for index, label in enumerate(labels):
        value = values[index] if index < len(values) else None
        if not _is_finite_number(value):
            continue
        kept_labels.append(label)
        kept_values.append(value)
    return kept_labels, kept_values


def format_date_label(value: Any) -> str:
    """Format an ISO-ish date as "Jan 05". Unparsable input falls back to its first 10 chars."""
    raw = "" if value is None else str(value)
    try:
        dt = datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
    except ValueError:
        return raw[:10]
    return f"{dt:%b} {dt.day:02d}"


def _has_date(value: Any) -> bool:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return False
    return bool(str(value).strip())


def standardize_prices(prices: Sequence[Any]) -> pd.DataFrame:
    """
    Standardize provider price points to a date-sorted frame.

    Output columns (always, in this order): date, close. Dates stay strings
    (ISO sorts lexicographically); close is numeric with NaN where the
    provider value was missing or unparsable. Rows without a date are dropped.

    Args:
        prices: Sequence of ``{date, close}`` mappings in any order

    Returns:
        DataFrame sorted ascending by date
    """
    rows = [
        {"date": str(p["date"]).strip(), "close": to_number(p.get("close"))}
        for p in prices
        if isinstance(p, Mapping) and _has_date(p.get("date"))
    ]
    df = pd.DataFrame(rows, columns=["date", "close"])
    df["close"] = pd.to_numeric(df["close"], errors="coerce")
    return df.sort_values("date", kind="stable").reset_index(drop=True)


def _is_finite_number(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except TypeError:
        return False
