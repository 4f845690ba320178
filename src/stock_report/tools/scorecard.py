"""Offline scoring tools over caller-supplied snapshot payloads."""

from collections.abc import Mapping
from time import perf_counter
from typing import Any

from stock_report.scoring.ranking import (
    MAX_ALLOCATION_POSITIONS,
    ScoredEntity,
    allocation_weights,
    classify_layer,
    rank_and_classify,
)
from stock_report.scoring.scorecard import compute_scorecard
from stock_report.scoring.snapshot import FinancialSnapshot
from stock_report.utils.provenance import build_error_response, build_meta


async def score_snapshot(payload: dict[str, Any]) -> dict[str, Any]:
    """
    Compute the scorecard for one snapshot payload.

    Args:
        payload: Snapshot in the provider camelCase shape (price, overview,
            basicFinancials, priceHistory, incomeStatement, ...)

    Returns:
        Dict with scorecard components, moat details, composite and layer
    """
    start_time = perf_counter()

    if not isinstance(payload, Mapping):
        return build_error_response("invalid_params", "payload must be an object")

    snapshot = FinancialSnapshot.from_payload(payload)
    scorecard = compute_scorecard(snapshot)

    duration_ms = (perf_counter() - start_time) * 1000
    return {
        "meta": build_meta("score_snapshot", duration_ms),
        "symbol": snapshot.symbol or None,
        "layer": classify_layer(snapshot.overview),
        "scorecard": scorecard.to_dict(),
    }


async def rank_snapshots(
    payloads: list[dict[str, Any]],
    top_n: int = MAX_ALLOCATION_POSITIONS,
) -> dict[str, Any]:
    """
    Score, rank and weight a universe of snapshot payloads.

    Args:
        payloads: One snapshot payload per company
        top_n: Allocation positions (capped at 8)

    Returns:
        Dict with rankings and scorecards (both in input order) and allocation weights
    """
    start_time = perf_counter()

    if not payloads:
        return build_error_response("invalid_params", "payloads list cannot be empty")
    bad = [i for i, payload in enumerate(payloads) if not isinstance(payload, Mapping)]
    if bad:
        return build_error_response("invalid_params", f"payloads at positions {bad} are not objects")

    snapshots = [FinancialSnapshot.from_payload(payload) for payload in payloads]
    scored = [ScoredEntity(s.symbol, compute_scorecard(s), s.name) for s in snapshots]

    duration_ms = (perf_counter() - start_time) * 1000
    return {
        "meta": build_meta("rank_snapshots", duration_ms),
        "rankings": [entity.to_dict() for entity in rank_and_classify(scored)],
        "allocation": [weight.to_dict() for weight in allocation_weights(scored, top_n)],
        "scorecards": [entity.scorecard.to_dict() for entity in scored],
    }
