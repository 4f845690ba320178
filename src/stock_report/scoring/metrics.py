"""Per-symbol metric extractors.

Each metric is an ordered chain of accessors over a ``FinancialSnapshot``;
the first accessor that yields a number wins. Chain order is the provider
contract and must not be reordered.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from stock_report.scoring.snapshot import FinancialSnapshot
from stock_report.utils.numeric import first_present, normalize_percent, pct_change, to_number

Accessor = Callable[[FinancialSnapshot], Any]


def metric(key: str) -> Accessor:
    """Accessor for the canonical ``basicFinancials.metric`` map."""
    return lambda s: s.metric.get(key)


def overview(key: str) -> Accessor:
    """Accessor for the overview map."""
    return lambda s: s.overview.get(key)


def ratings(key: str) -> Accessor:
    """Accessor for the analyst ratings map."""
    return lambda s: s.analyst_ratings.get(key)


def targets(key: str) -> Accessor:
    """Accessor for the price targets map."""
    return lambda s: s.price_targets.get(key)


REVENUE_GROWTH: tuple[Accessor, ...] = (
    metric("revenueGrowthTTM"),
    metric("revenueGrowthAnnual"),
    metric("revenueGrowth5Y"),
    overview("quarterlyRevenueGrowth"),
)
EPS_GROWTH: tuple[Accessor, ...] = (
    metric("epsGrowthTTM"),
    metric("epsGrowthAnnual"),
    overview("quarterlyEarningsGrowth"),
)
GROSS_MARGIN: tuple[Accessor, ...] = (
    metric("grossMarginTTM"),
    metric("grossMarginAnnual"),
    overview("profitMargin"),
)
OPERATING_MARGIN: tuple[Accessor, ...] = (
    metric("operatingMarginTTM"),
    metric("operatingMarginAnnual"),
    overview("operatingMargin"),
)
EPS: tuple[Accessor, ...] = (
    metric("epsTTM"),
    metric("epsNormalizedAnnual"),
    overview("eps"),
)
PE_RATIO: tuple[Accessor, ...] = (
    overview("peRatio"),
    metric("peBasicExclExtraTTM"),
)
# A zero/negative target is not a target; fall through to the next source.
TARGET_PRICE: tuple[Accessor, ...] = (
    targets("targetMean"),
    ratings("analystTargetPrice"),
    overview("analystTargetPrice"),
)
MOVING_AVERAGE_50: tuple[Accessor, ...] = (
    overview("50DayMovingAverage"),
    ratings("movingAverage50Day"),
)

# Long-horizon chains used by the scorecard growth component
REVENUE_GROWTH_LONG: tuple[Accessor, ...] = (
    metric("revenueGrowth5Y"),
    metric("revenueGrowthTTM"),
)
EPS_GROWTH_LONG: tuple[Accessor, ...] = (
    metric("epsGrowth5Y"),
    metric("epsGrowthTTM"),
)

RATING_KEYS: tuple[tuple[str, str], ...] = (
    ("strongBuy", "analystRatingStrongBuy"),
    ("buy", "analystRatingBuy"),
    ("hold", "analystRatingHold"),
    ("sell", "analystRatingSell"),
    ("strongSell", "analystRatingStrongSell"),
)


def _positive(value: float) -> bool:
    return value > 0


def current_price(snapshot: FinancialSnapshot) -> float | None:
    """Last traded price from the quote."""
    return to_number(snapshot.price.get("price"))


def revenue_growth(snapshot: FinancialSnapshot) -> float | None:
    """Revenue growth in percent (TTM, annual, 5Y, then overview YoY)."""
    return normalize_percent(first_present(snapshot, REVENUE_GROWTH))


def eps_growth(snapshot: FinancialSnapshot) -> float | None:
    """EPS growth in percent (TTM, annual, then overview YoY)."""
    return normalize_percent(first_present(snapshot, EPS_GROWTH))


def gross_margin(snapshot: FinancialSnapshot) -> float | None:
    """Gross margin in percent."""
    return normalize_percent(first_present(snapshot, GROSS_MARGIN))


def operating_margin(snapshot: FinancialSnapshot) -> float | None:
    """Operating margin in percent."""
    return normalize_percent(first_present(snapshot, OPERATING_MARGIN))


def eps(snapshot: FinancialSnapshot) -> float | None:
    """Earnings per share, TTM preferred. Raw value, not a percentage."""
    return first_present(snapshot, EPS)


def pe_ratio(snapshot: FinancialSnapshot) -> float | None:
    """Trailing P/E as reported (may be negative)."""
    return first_present(snapshot, PE_RATIO)


def target_price(snapshot: FinancialSnapshot) -> float | None:
    """Consensus target price."""
    return first_present(snapshot, TARGET_PRICE, accept=_positive)


def target_upside(snapshot: FinancialSnapshot) -> float | None:
    """Percent upside from current price to consensus target."""
    price = current_price(snapshot)
    target = target_price(snapshot)
    if price is None or price <= 0 or target is None:
        return None
    return pct_change(price, target)


def moving_average_50(snapshot: FinancialSnapshot) -> float | None:
    """50-day moving average."""
    return first_present(snapshot, MOVING_AVERAGE_50, accept=_positive)


def trend_vs_ma50(snapshot: FinancialSnapshot) -> float | None:
    """Percent distance of the current price above (+) or below (-) the 50-day MA."""
    price = current_price(snapshot)
    average = moving_average_50(snapshot)
    if price is None or price == 0 or average is None:
        return None
    return pct_change(average, price)


def rating_counts(snapshot: FinancialSnapshot) -> dict[str, float | None]:
    """Analyst rating counts, read from ratings first then overview ``analystRating*`` keys."""
    counts: dict[str, float | None] = {}
    for key, overview_key in RATING_KEYS:
        counts[key] = first_present(snapshot, (ratings(key), overview(overview_key)))
    return counts
