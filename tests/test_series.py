"""Tests for series preparation."""

from stock_report.utils.series import downsample, filter_series, format_date_label, standardize_prices


class TestDownsample:
    """Tests for downsample."""

    def test_fits_unchanged(self) -> None:
        """Sequences that already fit are returned as-is."""
        items = [1, 2, 3]
        assert downsample(items, 5) is items

    def test_ten_to_five(self) -> None:
        """Nearest-index sampling keeps first and last."""
        assert downsample(list(range(1, 11)), 5) == [1, 3, 6, 8, 10]

    def test_indices_monotonic(self) -> None:
        result = downsample(list(range(100)), 7)
        assert len(result) == 7
        assert result[0] == 0
        assert result[-1] == 99
        assert result == sorted(result)

    def test_single_point(self) -> None:
        assert downsample([5, 6, 7], 1) == [5]

    def test_zero_points(self) -> None:
        assert downsample([5, 6, 7], 0) == []

    def test_preserves_objects(self) -> None:
        points = [{"i": i} for i in range(10)]
        assert [p["i"] for p in downsample(points, 3)] == [0, 5, 9]


class TestFilterSeries:
    """Tests for filter_series."""

    def test_drops_non_finite(self) -> None:
        """NaN, inf and None are dropped with their labels."""
        labels, values = filter_series(
            ["a", "b", "c", "d", "e"],
            [1.0, float("nan"), 3.0, float("inf"), None],
        )
        assert labels == ["a", "c"]
        assert values == [1.0, 3.0]

    def test_keeps_alignment(self) -> None:
        labels, values = filter_series(["x", "y", "z"], [None, 2, 0])
        assert list(zip(labels, values)) == [("y", 2), ("z", 0)]

    def test_short_values(self) -> None:
        """Labels without a value are dropped."""
        labels, values = filter_series(["a", "b"], [1.0])
        assert labels == ["a"]
        assert values == [1.0]

    def test_non_numeric_dropped(self) -> None:
        labels, _ = filter_series(["a", "b"], ["1.0", 2.0])
        assert labels == ["b"]


class TestFormatDateLabel:
    """Tests for format_date_label."""

    def test_iso_date(self) -> None:
        assert format_date_label("2024-01-05") == "Jan 05"

    def test_iso_datetime(self) -> None:
        assert format_date_label("2024-03-15T10:00:00Z") == "Mar 15"

    def test_unparsable_falls_back(self) -> None:
        """Unparsable input keeps its first 10 characters."""
        assert format_date_label("FY2024 Q3 report") == "FY2024 Q3 "

    def test_none(self) -> None:
        assert format_date_label(None) == ""


class TestStandardizePrices:
    """Tests for standardize_prices."""

    def test_sorted_ascending(self) -> None:
        frame = standardize_prices(
            [
                {"date": "2024-03-01", "close": "3"},
                {"date": "2024-01-01", "close": "1"},
                {"date": "2024-02-01", "close": "2"},
            ]
        )
        assert list(frame["date"]) == ["2024-01-01", "2024-02-01", "2024-03-01"]
        assert list(frame["close"]) == [1.0, 2.0, 3.0]

    def test_columns(self) -> None:
        frame = standardize_prices([{"date": "2024-01-01", "close": 1, "open": 2}])
        assert list(frame.columns) == ["date", "close"]

    def test_bad_close_is_nan(self) -> None:
        frame = standardize_prices([{"date": "2024-01-01", "close": "None"}])
        assert frame["close"].isna().all()

    def test_missing_date_dropped(self) -> None:
        frame = standardize_prices([{"close": 1}, {"date": "2024-01-01", "close": 2}])
        assert len(frame) == 1

    def test_blank_and_nan_dates_dropped(self) -> None:
        frame = standardize_prices(
            [{"date": " ", "close": 1}, {"date": float("nan"), "close": 2}, {"date": "2024-01-01", "close": 3}]
        )
        assert list(frame["date"]) == ["2024-01-01"]

    def test_huge_close_is_nan(self) -> None:
        frame = standardize_prices([{"date": "2024-01-01", "close": 10**400}])
        assert frame["close"].isna().all()

    def test_empty(self) -> None:
        assert standardize_prices([]).empty
