"""Validation utilities and parameter classes."""

import re
from dataclasses import dataclass

# Upstream history series (Alpha Vantage TIME_SERIES_* functions)
VALID_RANGES = {"daily", "weekly", "monthly"}

_SYMBOL_PATTERN = re.compile(r"^[A-Z0-9][A-Z0-9.\-]{0,9}$")


def normalize_symbol(symbol: str) -> str:
    """Uppercase/strip a ticker and validate its shape."""
    normalized = str(symbol or "").upper().strip()
    if not _SYMBOL_PATTERN.match(normalized):
        raise ValueError(f"Invalid symbol '{symbol}'")
    return normalized


@dataclass(frozen=True)
class ReportParams:
    """Immutable report request parameters. Used for cache keys + fetch."""

    symbol: str
    range: str = "daily"

    def __post_init__(self) -> None:
        object.__setattr__(self, "symbol", normalize_symbol(self.symbol))

        history_range = self.range.lower().strip()
        if history_range not in VALID_RANGES:
            raise ValueError(f"Invalid range '{self.range}'. Must be one of: {sorted(VALID_RANGES)}")
        object.__setattr__(self, "range", history_range)

    def history_function(self) -> str:
        """Alpha Vantage time series function for this range."""
        return f"TIME_SERIES_{self.range.upper()}"
