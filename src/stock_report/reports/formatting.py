"""Display formatting for report tables and bullet lines."""

import math
import re
from collections.abc import Mapping
from typing import Any

from stock_report.utils.numeric import normalize_percent, to_number

NOT_AVAILABLE = "N/A"

_TRAILING_ZEROS = re.compile(r"\.?0+$")


def _trim_trailing_zeros(text: str) -> str:
    if "." not in text:
        return text
    return _TRAILING_ZEROS.sub("", text)


def format_number(value: Any, decimals: int = 2) -> str:
    """Fixed-decimal number, "N/A" when absent."""
    num = to_number(value)
    if num is None:
        return NOT_AVAILABLE
    return f"{num:.{decimals}f}"


def format_market_cap(value: Any) -> str:
    """Market cap with B / M suffix, e.g. 2500000000 -> "2.5B"."""
    num = to_number(value)
    if num is None:
        return NOT_AVAILABLE
    if num >= 1e9:
        return f"{_trim_trailing_zeros(f'{num / 1e9:.2f}')}B"
    if num >= 1e6:
        return f"{_trim_trailing_zeros(f'{num / 1e6:.2f}')}M"
    return f"{num:.0f}"


def format_percent(value: Any, decimals: int = 1) -> str:
    """Ratio-or-percent value as "42.0%" (fractions in [-1, 1] are scaled)."""
    num = normalize_percent(value)
    if num is None:
        return NOT_AVAILABLE
    return f"{num:.{decimals}f}%"


def format_signed_percent(value: float | None, decimals: int = 1) -> str:
    """Already-percent value (upside, trend) as "12.5%"."""
    if value is None:
        return NOT_AVAILABLE
    return f"{value:.{decimals}f}%"


def format_score(value: float | None) -> str:
    if value is None:
        return NOT_AVAILABLE
    return f"{value:.1f}"


def format_chart_number(value: Any) -> float:
    """Chart-ready number: non-finite -> 0, |x| >= 1000 -> 0 dp, else 2 dp."""
    num = to_number(value)
    if num is None or not math.isfinite(num):
        return 0
    if abs(num) >= 1000:
        return float(round(num))
    return round(num, 2)


def format_rating_summary(counts: Mapping[str, float | None]) -> str:
    """Rating counts as "SB n / B n / H n / S n / SS n", or "N/A" when all are absent."""
    keys = ("strongBuy", "buy", "hold", "sell", "strongSell")
    values = [counts.get(key) for key in keys]
    if all(value is None for value in values):
        return NOT_AVAILABLE

    def _count(value: float | None) -> str:
        return f"{0 if value is None else value:g}"

    sb, b, h, s, ss = (_count(v) for v in values)
    return f"SB {sb} / B {b} / H {h} / S {s} / SS {ss}"


def format_trend(diff: float | None) -> str:
    """Price distance from the 50-day MA, e.g. "4.2% above 50D MA"."""
    if diff is None:
        return NOT_AVAILABLE
    direction = "above" if diff >= 0 else "below"
    return f"{diff:.1f}% {direction} 50D MA"


def markdown_table(headers: list[str], rows: list[list[str]], align: list[str] | None = None) -> str:
    """
    Render a pipe table.

    Args:
        headers: Column titles
        rows: Cell text per row (already formatted)
        align: Per-column "l" or "r" (default: all left)
    """
    align = align or ["l"] * len(headers)
    divider = ["---:" if a == "r" else "---" for a in align]
    lines = [
        f"| {' | '.join(headers)} |",
        f"|{'|'.join(divider)}|",
    ]
    lines.extend(f"| {' | '.join(row)} |" for row in rows)
    return "\n".join(lines)
