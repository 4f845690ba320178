"""Numeric coercion helpers with explicit absence.

Every helper here returns ``None`` for "absent" and never treats absence as
zero. Provider payloads mix strings ("123.45", "None", "-"), numbers and
NaN, so all reads go through ``to_number`` first.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable
from typing import Any


def to_number(value: Any) -> float | None:
    """Convert to a finite float or return None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (ValueError, TypeError, OverflowError):
        return None
    if not math.isfinite(result):
        return None
    return result


def normalize_percent(value: Any) -> float | None:
    """
    Express a ratio-or-percent value as a percentage.

    Values in the closed range [-1, 1] are read as fractions and scaled by 100;
    anything outside is assumed to already be a percentage. ``0.42`` and ``42``
    both become ``42.0``; ``1`` becomes ``100.0`` while ``1.01`` stays ``1.01``.
    """
    num = to_number(value)
    if num is None:
        return None
    if -1 <= num <= 1:
        return num * 100
    return num


def clamp_score(value: float) -> float:
    """Clamp to [0, 100] rounded to 2 decimals. NaN maps to 0."""
    if math.isnan(value):
        return 0.0
    return max(0.0, min(100.0, round(value, 2)))


def average(values: Iterable[float | None]) -> float | None:
    """Mean of the present (non-None, non-NaN) values, or None if there are none."""
    present = [v for v in values if v is not None and not math.isnan(v)]
    if not present:
        return None
    return sum(present) / len(present)


def clamp_optional(value: float | None) -> float | None:
    """clamp_score that keeps absence absent."""
    if value is None:
        return None
    return clamp_score(value)


def first_present(
    source: Any,
    accessors: Iterable[Callable[[Any], Any]],
    accept: Callable[[float], bool] | None = None,
) -> float | None:
    """
    Return the first accessor result that coerces to a number.

    Accessors are tried in order; a value that fails ``to_number`` (or the
    optional ``accept`` predicate) falls through to the next accessor.

    Args:
        source: Object handed to each accessor
        accessors: Ordered accessor functions, highest priority first
        accept: Optional extra predicate a candidate must satisfy

    Returns:
        First present value, or None when every accessor is absent
    """
    for accessor in accessors:
        candidate = to_number(accessor(source))
        if candidate is None:
            continue
        if accept is not None and not accept(candidate):
            continue
        return candidate
    return None


def pct_change(start: float | None, end: float | None) -> float | None:
    """Percent change from start to end. Absent for zero/absent denominators."""
    if start is None or end is None or start == 0:
        return None
    return (end - start) / start * 100
