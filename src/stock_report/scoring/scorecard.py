"""Scorecard engine.

Five component scores in [0, 100] (growth, profitability, valuation,
momentum, moat) blended into a composite. A component that cannot be
computed from present inputs is ``None`` and drops out of the blend; its
weight is redistributed over the components that remain. The engine is a
pure function of the snapshot and never raises.

    composite = sum(score_k * w_k / sum(w_present))   over present k
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

from stock_report.scoring import metrics
from stock_report.scoring.snapshot import FinancialSnapshot
from stock_report.utils.numeric import (
    average,
    clamp_optional,
    clamp_score,
    first_present,
    normalize_percent,
    pct_change,
    to_number,
)
from stock_report.utils.series import standardize_prices

COMPONENT_WEIGHTS: dict[str, float] = {
    "growth": 0.25,
    "profitability": 0.20,
    "valuation": 0.20,
    "momentum": 0.15,
    "moat": 0.20,
}

# P/E at or above this maps to a valuation score of 0
VALUATION_PE_CEILING = 50.0

MIN_STABILITY_PERIODS = 3
MAX_STABILITY_PERIODS = 8
STABILITY_PENALTY_MULTIPLIER = 10.0

MOMENTUM_BASELINE = 50.0


@dataclass(frozen=True)
class ScoreComponents:
    """Component scores, each in [0, 100] or None when unknown."""

    growth: float | None = None
    profitability: float | None = None
    valuation: float | None = None
    momentum: float | None = None
    moat: float | None = None

    def to_dict(self) -> dict[str, float | None]:
        return {name: getattr(self, name) for name in COMPONENT_WEIGHTS}


@dataclass(frozen=True)
class MoatDetails:
    """The three moat sub-scores."""

    margin_stability: float | None = None
    pricing_power: float | None = None
    analyst_conviction: float | None = None

    def to_dict(self) -> dict[str, float | None]:
        return {
            "margin_stability": self.margin_stability,
            "pricing_power": self.pricing_power,
            "analyst_conviction": self.analyst_conviction,
        }


@dataclass(frozen=True)
class Scorecard:
    """Scored view of one snapshot. Value object, never mutated after construction."""

    components: ScoreComponents
    moat_details: MoatDetails
    composite: float | None

    @property
    def weights_used(self) -> dict[str, float]:
        """Renormalized weights of the components that contributed."""
        return renormalized_weights(self.components.to_dict())

    def to_dict(self) -> dict[str, Any]:
        return {
            "components": self.components.to_dict(),
            "moat_details": self.moat_details.to_dict(),
            "composite": self.composite,
            "weights_used": self.weights_used,
        }


def compute_scorecard(snapshot: FinancialSnapshot) -> Scorecard:
    """
    Score a snapshot.

    Args:
        snapshot: Provider data for one symbol (any field may be empty)

    Returns:
        Scorecard with absent components as None; composite is None only
        when every component is absent
    """
    moat_details = MoatDetails(
        margin_stability=compute_margin_stability(snapshot.income_reports),
        pricing_power=compute_pricing_power(snapshot),
        analyst_conviction=compute_analyst_conviction(snapshot),
    )
    components = ScoreComponents(
        growth=compute_growth(snapshot),
        profitability=compute_profitability(snapshot),
        valuation=compute_valuation(snapshot),
        momentum=compute_momentum(snapshot.prices),
        moat=clamp_optional(
            average(
                [
                    moat_details.margin_stability,
                    moat_details.pricing_power,
                    moat_details.analyst_conviction,
                ]
            )
        ),
    )
    return Scorecard(
        components=components,
        moat_details=moat_details,
        composite=composite_score(components.to_dict()),
    )


def compute_growth(snapshot: FinancialSnapshot) -> float | None:
    """Average of revenue and EPS growth (5Y preferred, TTM fallback), in percent."""
    revenue = normalize_percent(first_present(snapshot, metrics.REVENUE_GROWTH_LONG))
    eps = normalize_percent(first_present(snapshot, metrics.EPS_GROWTH_LONG))
    return clamp_optional(average([revenue, eps]))


def compute_profitability(snapshot: FinancialSnapshot) -> float | None:
    """Average of TTM gross margin, operating margin and ROE, in percent."""
    return clamp_optional(
        average(
            [
                normalize_percent(snapshot.metric.get("grossMarginTTM")),
                normalize_percent(snapshot.metric.get("operatingMarginTTM")),
                normalize_percent(snapshot.metric.get("roeTTM")),
            ]
        )
    )


def compute_valuation(snapshot: FinancialSnapshot) -> float | None:
    """100 at P/E 0 down to 0 at P/E 50. Zero or negative P/E is not scored."""
    pe = metrics.pe_ratio(snapshot)
    if pe is None or pe <= 0:
        return None
    return clamp_score(100 - (pe / VALUATION_PE_CEILING) * 100)


def compute_momentum(prices: Sequence[Mapping[str, Any]]) -> float | None:
    """50 plus the percent change from the earliest to the latest dated close."""
    frame = standardize_prices(prices)
    if len(frame) < 2:
        return None
    first = to_number(frame["close"].iloc[0])
    last = to_number(frame["close"].iloc[-1])
    if not first or not last:
        return None
    return clamp_score(MOMENTUM_BASELINE + pct_change(first, last))


def compute_margin_stability(reports: Sequence[Mapping[str, Any]]) -> float | None:
    """
    Score how steady gross and operating margins are across recent periods.

    Uses up to the 8 most recent reports; a period counts only when revenue
    is a non-zero number and both profit lines are present. The stability
    penalty is the mean of the population standard deviations of the two
    margin series (in percentage points); score = 100 - 10 * penalty.
    Needs at least 3 valid periods.
    """
    if len(reports) < MIN_STABILITY_PERIODS:
        return None

    gross_margins: list[float] = []
    operating_margins: list[float] = []
    for report in reports[:MAX_STABILITY_PERIODS]:
        revenue = to_number(report.get("totalRevenue"))
        gross = to_number(report.get("grossProfit"))
        operating = to_number(report.get("operatingIncome"))
        if not revenue or gross is None or operating is None:
            continue
        gross_margins.append(gross / revenue * 100)
        operating_margins.append(operating / revenue * 100)

    if len(gross_margins) < MIN_STABILITY_PERIODS:
        return None

    penalty = (float(np.std(gross_margins)) + float(np.std(operating_margins))) / 2
    return clamp_score(100 - penalty * STABILITY_PENALTY_MULTIPLIER)


def compute_pricing_power(snapshot: FinancialSnapshot) -> float | None:
    """Average of TTM gross margin and ROE from the metric map only."""
    return clamp_optional(
        average(
            [
                normalize_percent(snapshot.metric.get("grossMarginTTM")),
                normalize_percent(snapshot.metric.get("roeTTM")),
            ]
        )
    )


def compute_analyst_conviction(snapshot: FinancialSnapshot) -> float | None:
    """Average of the strong-buy share of ratings and 50 + target upside."""
    counts = metrics.rating_counts(snapshot)
    total = sum(v for v in counts.values() if v is not None)
    strong_buy_pct = (counts["strongBuy"] or 0) / total * 100 if total else None

    upside = metrics.target_upside(snapshot)
    upside_score = clamp_optional(None if upside is None else MOMENTUM_BASELINE + upside)

    return clamp_optional(average([strong_buy_pct, upside_score]))


def renormalized_weights(components: Mapping[str, float | None]) -> dict[str, float]:
    """Weights of present components scaled to sum to 1."""
    present = [name for name, value in components.items() if value is not None]
    total = sum(COMPONENT_WEIGHTS[name] for name in present)
    if total <= 0:
        return {}
    return {name: COMPONENT_WEIGHTS[name] / total for name in present}


def composite_score(components: Mapping[str, float | None]) -> float | None:
    """Weighted blend of the present components, or None if none are present."""
    weights = renormalized_weights(components)
    if not weights:
        return None
    return clamp_score(sum(components[name] * weight for name, weight in weights.items()))
