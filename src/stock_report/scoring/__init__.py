"""Pure scoring core: snapshot -> scorecard -> ranking."""

from stock_report.scoring.ranking import (
    INSUFFICIENT_DATA,
    NEUTRAL,
    OVERWEIGHT,
    UNDERWEIGHT,
    AllocationWeight,
    RankedEntity,
    ScoredEntity,
    allocation_weights,
    classify_layer,
    percentile_for_rank,
    rank_and_classify,
    recommendation_tier,
)
from stock_report.scoring.scorecard import (
    COMPONENT_WEIGHTS,
    MoatDetails,
    Scorecard,
    ScoreComponents,
    compute_scorecard,
)
from stock_report.scoring.snapshot import FinancialSnapshot

__all__ = [
    # Snapshot
    "FinancialSnapshot",
    # Scorecard
    "COMPONENT_WEIGHTS",
    "MoatDetails",
    "Scorecard",
    "ScoreComponents",
    "compute_scorecard",
    # Ranking
    "INSUFFICIENT_DATA",
    "NEUTRAL",
    "OVERWEIGHT",
    "UNDERWEIGHT",
    "AllocationWeight",
    "RankedEntity",
    "ScoredEntity",
    "allocation_weights",
    "classify_layer",
    "percentile_for_rank",
    "rank_and_classify",
    "recommendation_tier",
]
