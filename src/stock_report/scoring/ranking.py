"""Ranking, recommendation tiers, layer classification and allocation weights."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from stock_report.scoring.scorecard import Scorecard

OVERWEIGHT = "Overweight"
NEUTRAL = "Neutral"
UNDERWEIGHT = "Underweight"
INSUFFICIENT_DATA = "Insufficient data"

# (min_percentile, tier), checked top-down
TIER_THRESHOLDS: tuple[tuple[float, str], ...] = (
    (0.67, OVERWEIGHT),
    (0.34, NEUTRAL),
)

MAX_ALLOCATION_POSITIONS = 8

DEFAULT_LAYER = "Other / Diversified"

# Evaluated in order; first match wins. Text often matches several layers
# (a "semiconductor platform" is compute, not software).
LAYER_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("Compute & Accelerators", re.compile(r"semiconductor|gpu|accelerator|chip|processor|foundry")),
    ("Networking & Interconnect", re.compile(r"network|infiniband|ethernet|switch|optical")),
    ("Data Center Infrastructure", re.compile(r"data center|colocation|reit|power|cooling|infrastructure")),
    ("Storage & Memory", re.compile(r"storage|memory|flash|ssd")),
    ("Platforms & Software", re.compile(r"cloud|platform|software|ai|analytics|ml|inference")),
)


@dataclass(frozen=True)
class ScoredEntity:
    """A symbol paired with its scorecard."""

    symbol: str
    scorecard: Scorecard
    name: str | None = None

    @property
    def composite(self) -> float | None:
        return self.scorecard.composite


@dataclass(frozen=True)
class RankedEntity:
    """
    Ranking outcome for one entity.

    ``rank`` and ``percentile`` are None for entities without a composite
    score; their tier is ``INSUFFICIENT_DATA``.
    """

    symbol: str
    name: str | None
    composite: float | None
    rank: int | None
    percentile: float | None
    tier: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "composite": self.composite,
            "rank": self.rank,
            "percentile": self.percentile,
            "tier": self.tier,
        }


@dataclass(frozen=True)
class AllocationWeight:
    """Indicative portfolio weight in percent."""

    symbol: str
    composite: float
    weight_pct: float

    def to_dict(self) -> dict[str, Any]:
        return {"symbol": self.symbol, "composite": self.composite, "weight_pct": self.weight_pct}


def percentile_for_rank(rank: int, count: int) -> float:
    """1.0 for the top rank down to 0.0 for the bottom; a singleton is 1.0."""
    if count <= 1:
        return 1.0
    return 1 - (rank - 1) / (count - 1)


def recommendation_tier(percentile: float | None) -> str:
    """Map a percentile to Overweight / Neutral / Underweight."""
    if percentile is None:
        return INSUFFICIENT_DATA
    for threshold, tier in TIER_THRESHOLDS:
        if percentile >= threshold:
            return tier
    return UNDERWEIGHT


def _ranked_order(entities: Sequence[ScoredEntity]) -> list[int]:
    """Indices of scored entities, best composite first. Ties keep input order."""
    scored = [i for i, entity in enumerate(entities) if entity.composite is not None]
    return sorted(scored, key=lambda i: -entities[i].composite)


def rank_and_classify(entities: Sequence[ScoredEntity]) -> list[RankedEntity]:
    """
    Rank entities by composite score and assign recommendation tiers.

    Entities with an absent composite are excluded from rank and percentile
    math and receive the insufficient-data tier. Output preserves input order.

    Args:
        entities: Scored entities in display order

    Returns:
        One RankedEntity per input entity, same order
    """
    order = _ranked_order(entities)
    count = len(order)
    rank_by_index = {index: position + 1 for position, index in enumerate(order)}

    results: list[RankedEntity] = []
    for index, entity in enumerate(entities):
        rank = rank_by_index.get(index)
        percentile = None if rank is None else percentile_for_rank(rank, count)
        results.append(
            RankedEntity(
                symbol=entity.symbol,
                name=entity.name,
                composite=entity.composite,
                rank=rank,
                percentile=percentile,
                tier=recommendation_tier(percentile),
            )
        )
    return results


def allocation_weights(
    entities: Sequence[ScoredEntity],
    top_n: int = MAX_ALLOCATION_POSITIONS,
) -> list[AllocationWeight]:
    """
    Score-proportional weights over the top-N entities by composite.

    N is capped at 8. Entities without a composite are excluded from both the
    selection and the weight sum. Returns an empty list when nothing is
    scored or the selected scores sum to zero.
    """
    limit = max(0, min(top_n, MAX_ALLOCATION_POSITIONS))
    selected = [entities[i] for i in _ranked_order(entities)[:limit]]
    total = sum(entity.composite for entity in selected)
    if total <= 0:
        return []
    return [
        AllocationWeight(
            symbol=entity.symbol,
            composite=entity.composite,
            weight_pct=entity.composite / total * 100,
        )
        for entity in selected
    ]


def classify_layer(overview: Mapping[str, Any]) -> str:
    """
    Single-label stack layer from industry, sector, description and name.

    Case-insensitive substring matching in fixed priority order; see
    ``LAYER_PATTERNS``.
    """
    text = " ".join(
        str(overview.get(key))
        for key in ("industry", "sector", "description", "name")
        if overview.get(key)
    ).lower()
    for layer, pattern in LAYER_PATTERNS:
        if pattern.search(text):
            return layer
    return DEFAULT_LAYER
