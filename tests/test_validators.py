"""Tests for validators and ReportParams."""

import pytest

from stock_report.utils.validators import VALID_RANGES, ReportParams, normalize_symbol


class TestNormalizeSymbol:
    """Tests for normalize_symbol."""

    def test_uppercase_and_strip(self) -> None:
        """Test symbol is uppercased and stripped."""
        assert normalize_symbol("  nvda ") == "NVDA"

    def test_share_class(self) -> None:
        """Test dotted and dashed share classes are accepted."""
        assert normalize_symbol("brk.b") == "BRK.B"
        assert normalize_symbol("BF-B") == "BF-B"

    @pytest.mark.parametrize("symbol", ["", "   ", "$AAPL", "AAPL MSFT", "ABCDEFGHIJKL", ".AAPL"])
    def test_invalid(self, symbol: str) -> None:
        """Test malformed symbols raise ValueError."""
        with pytest.raises(ValueError, match="Invalid symbol"):
            normalize_symbol(symbol)

    def test_none(self) -> None:
        with pytest.raises(ValueError):
            normalize_symbol(None)


class TestReportParams:
    """Tests for ReportParams dataclass."""

    def test_symbol_normalization(self) -> None:
        """Test symbol is normalized to uppercase."""
        assert ReportParams(symbol="aapl").symbol == "AAPL"

    def test_default_range(self) -> None:
        assert ReportParams(symbol="AAPL").range == "daily"

    def test_range_normalization(self) -> None:
        """Test range is normalized to lowercase."""
        assert ReportParams(symbol="AAPL", range=" Weekly ").range == "weekly"

    def test_invalid_range_raises(self) -> None:
        """Test invalid range raises ValueError."""
        with pytest.raises(ValueError, match="Invalid range"):
            ReportParams(symbol="AAPL", range="hourly")

    def test_all_valid_ranges(self) -> None:
        """Test all valid ranges are accepted."""
        for history_range in VALID_RANGES:
            assert ReportParams(symbol="AAPL", range=history_range).range == history_range

    def test_history_function(self) -> None:
        assert ReportParams(symbol="AAPL", range="monthly").history_function() == "TIME_SERIES_MONTHLY"

    def test_immutable(self) -> None:
        """Test ReportParams is immutable."""
        params = ReportParams(symbol="AAPL")

        with pytest.raises(AttributeError):
            params.symbol = "NVDA"
