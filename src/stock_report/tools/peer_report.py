"""Peer comparison report tool."""

import logging
from datetime import datetime, timezone
from time import perf_counter
from typing import Any

import requests

from stock_report.data.providers import ProviderClient, ProviderError, ServerShuttingDownError, get_client
from stock_report.reports.peer import build_peer_report
from stock_report.scoring.ranking import ScoredEntity, rank_and_classify
from stock_report.scoring.scorecard import compute_scorecard
from stock_report.tools.errors import provider_error_response
from stock_report.tools.saving import attach_saved_report
from stock_report.utils.provenance import build_error_response, build_meta, build_provenance
from stock_report.utils.validators import ReportParams, normalize_symbol

logger = logging.getLogger(__name__)

MAX_PEERS = 6

PEER_COMPONENTS = (
    "price",
    "overview",
    "analystRatings",
    "basicFinancials",
    "priceTargets",
    "priceHistory",
    "incomeStatement",
    "companyNews",
)


def _unique_peers(base: str, candidates: list[str], limit: int) -> list[str]:
    peers: list[str] = []
    for candidate in candidates:
        try:
            symbol = normalize_symbol(candidate)
        except ValueError:
            continue
        if symbol != base and symbol not in peers:
            peers.append(symbol)
    return peers[:limit]


async def discover_peers(client: ProviderClient, symbol: str, limit: int) -> tuple[list[str], list[str]]:
    """
    Peer tickers for ``symbol``, excluding the symbol itself.

    Uses Finnhub peers; when that fails, falls back to symbol search.

    Returns:
        Tuple of (peers, notes)
    """
    notes: list[str] = []
    try:
        return _unique_peers(symbol, await client.get_peers(symbol), limit), notes
    except (ProviderError, ValueError, requests.RequestException) as e:
        logger.warning(f"peer_report: peers unavailable for {symbol} ({e})")
        notes.append(f"Peers unavailable: {e}")

    rows = await client.search_symbols(symbol)
    peers = _unique_peers(symbol, [str(row.get("symbol") or "") for row in rows], limit)
    if peers:
        notes.append("Peers taken from symbol search results.")
    return peers, notes


async def peer_report(
    symbol: str,
    peers: list[str] | None = None,
    range: str = "monthly",
    limit: int = MAX_PEERS,
    save: bool = True,
    client: ProviderClient | None = None,
) -> dict[str, Any]:
    """
    Build a peer comparison report for a base company.

    Args:
        symbol: Base company ticker
        peers: Explicit peer tickers; discovered when omitted
        range: Price history range for relative performance (default: monthly)
        limit: Maximum peers (1-6, default: 6)
        save: Write the report to REPORTS_DIR (default: True)
        client: Provider client (default: shared client)

    Returns:
        Dict with report markdown, rankings and saved path
    """
    start_time = perf_counter()

    try:
        params = ReportParams(symbol=symbol, range=range)
        explicit = _unique_peers(params.symbol, [normalize_symbol(p) for p in peers or []], MAX_PEERS)
    except ValueError as e:
        return build_error_response(error_type="invalid_params", message=str(e), symbol=symbol)
    if limit < 1:
        return build_error_response("invalid_params", f"limit must be at least 1, got {limit}", symbol=symbol)
    limit = min(limit, MAX_PEERS)

    client = client or get_client()
    notes: list[str] = []
    try:
        base_snapshot, base_provenance = await client.fetch_snapshot(
            params.symbol, PEER_COMPONENTS, history_range=params.range
        )
        if explicit:
            peer_symbols = explicit[:limit]
        else:
            peer_symbols, discovery_notes = await discover_peers(client, params.symbol, limit)
            notes.extend(discovery_notes)
    except Exception as e:
        return provider_error_response(e, params.symbol)

    snapshots = [base_snapshot]
    for peer in peer_symbols:
        try:
            snapshot, _ = await client.fetch_snapshot(peer, PEER_COMPONENTS, history_range=params.range)
        except ServerShuttingDownError as e:
            return provider_error_response(e, peer)
        except Exception as e:
            logger.warning(f"peer_report: skipping peer {peer} ({e})")
            notes.append(f"{peer}: {e}")
            continue
        snapshots.append(snapshot)

    if len(snapshots) == 1:
        notes.append("No peer data available; report covers the base company only.")
    notes.extend(f"{params.symbol} {gap['component']} unavailable" for gap in base_provenance.get("skipped", []))

    generated_at = datetime.now(timezone.utc).isoformat()
    content = build_peer_report(params.symbol, snapshots, generated_at, history_range=params.range, notes=notes)
    scored = [ScoredEntity(s.symbol, compute_scorecard(s), s.name) for s in snapshots]

    result: dict[str, Any] = {
        "symbol": params.symbol,
        "peers": [s.symbol for s in snapshots[1:]],
        "rankings": [entity.to_dict() for entity in rank_and_classify(scored)],
        "notes": notes,
        "content": content,
    }
    provenance = build_provenance(
        base_provenance.get("source", "alphavantage"),
        requested=[params.symbol, *peer_symbols],
        fetched=[s.symbol for s in snapshots],
    )
    if save:
        attach_saved_report(result, content, f"{params.symbol} peer report", provenance["warnings"])

    duration_ms = (perf_counter() - start_time) * 1000
    return {
        "meta": build_meta("peer_report", duration_ms),
        "data_provenance": provenance,
        **result,
    }
