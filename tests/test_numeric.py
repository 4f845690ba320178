"""Tests for numeric coercion helpers."""

import math

import pytest

from stock_report.utils.numeric import (
    average,
    clamp_optional,
    clamp_score,
    first_present,
    normalize_percent,
    pct_change,
    to_number,
)


class TestToNumber:
    """Tests for to_number."""

    def test_numeric_string(self) -> None:
        """Numeric strings parse to float."""
        assert to_number("123.45") == 123.45

    def test_int_passthrough(self) -> None:
        """Ints become floats."""
        assert to_number(7) == 7.0

    @pytest.mark.parametrize("value", [None, "None", "-", "", "abc", float("nan"), float("inf"), 10**400, [], {}])
    def test_absent_values(self, value) -> None:
        """Sentinels, garbage and non-finite values are absent."""
        assert to_number(value) is None

    def test_bool_is_absent(self) -> None:
        """Booleans are not numbers."""
        assert to_number(True) is None

    def test_zero_is_present(self) -> None:
        """Zero is a value, not absence."""
        assert to_number("0") == 0.0


class TestNormalizePercent:
    """Tests for normalize_percent."""

    def test_fraction_scaled(self) -> None:
        """Fractions are scaled to percent."""
        assert normalize_percent(0.42) == pytest.approx(42.0)

    def test_percent_passthrough(self) -> None:
        """Values outside [-1, 1] are already percent."""
        assert normalize_percent(42) == 42

    def test_upper_boundary_inclusive(self) -> None:
        """1 is a fraction."""
        assert normalize_percent(1) == 100

    def test_just_above_boundary(self) -> None:
        """1.01 is a percent."""
        assert normalize_percent(1.01) == 1.01

    def test_lower_boundary_inclusive(self) -> None:
        """-1 is a fraction."""
        assert normalize_percent(-1) == -100

    def test_string_input(self) -> None:
        """Provider strings are parsed first."""
        assert normalize_percent("0.25") == pytest.approx(25.0)

    def test_absent(self) -> None:
        """Absent stays absent."""
        assert normalize_percent("None") is None


class TestClampScore:
    """Tests for clamp_score."""

    def test_upper_clamp(self) -> None:
        assert clamp_score(150) == 100

    def test_lower_clamp(self) -> None:
        assert clamp_score(-5) == 0

    def test_nan_is_zero(self) -> None:
        """NaN maps to 0."""
        assert clamp_score(float("nan")) == 0

    def test_rounds_to_two_decimals(self) -> None:
        assert clamp_score(55.5555) == 55.56

    @pytest.mark.parametrize("value", [-1e9, -0.001, 0, 33.3, 99.999, 100.0001, 1e9])
    def test_range(self, value: float) -> None:
        """Result always lies in [0, 100]."""
        assert 0 <= clamp_score(value) <= 100

    def test_clamp_optional_keeps_absence(self) -> None:
        assert clamp_optional(None) is None
        assert clamp_optional(120) == 100


class TestAverage:
    """Tests for average."""

    def test_empty(self) -> None:
        assert average([]) is None

    def test_all_absent(self) -> None:
        assert average([None, None]) is None

    def test_ignores_absent(self) -> None:
        """Divides by the present count, not the list length."""
        assert average([10, None, 30]) == 20

    def test_ignores_nan(self) -> None:
        assert average([float("nan"), 4]) == 4

    def test_generator_input(self) -> None:
        assert average(v for v in (1, 2, 3)) == 2


class TestFirstPresent:
    """Tests for the first-present combinator."""

    def test_priority_order(self) -> None:
        """The first accessor that yields a number wins."""
        source = {"a": None, "b": "5", "c": "7"}
        accessors = [lambda s: s["a"], lambda s: s["b"], lambda s: s["c"]]
        assert first_present(source, accessors) == 5

    def test_zero_counts_as_present(self) -> None:
        source = {"a": 0, "b": 9}
        assert first_present(source, [lambda s: s["a"], lambda s: s["b"]]) == 0

    def test_accept_predicate_falls_through(self) -> None:
        """Rejected candidates fall through to the next accessor."""
        source = {"a": 0, "b": 9}
        result = first_present(source, [lambda s: s["a"], lambda s: s["b"]], accept=lambda v: v > 0)
        assert result == 9

    def test_all_absent(self) -> None:
        assert first_present({}, [lambda s: s.get("x")]) is None


class TestPctChange:
    """Tests for pct_change."""

    def test_basic(self) -> None:
        assert pct_change(100, 120) == pytest.approx(20.0)

    def test_zero_denominator(self) -> None:
        """A zero start is absent, never a division error."""
        assert pct_change(0, 10) is None

    def test_absent_inputs(self) -> None:
        assert pct_change(None, 10) is None
        assert pct_change(10, None) is None

    def test_negative_change(self) -> None:
        assert math.isclose(pct_change(200, 150), -25.0)
