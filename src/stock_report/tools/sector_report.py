"""Sector / thematic report tool."""

import logging
from datetime import datetime, timezone
from time import perf_counter
from typing import Any

from stock_report.data.adapters import merge_search_results
from stock_report.data.providers import ProviderClient, ServerShuttingDownError, get_client
from stock_report.reports.sector import build_sector_report
from stock_report.scoring.ranking import ScoredEntity, allocation_weights, rank_and_classify
from stock_report.scoring.scorecard import compute_scorecard
from stock_report.tools.errors import provider_error_response
from stock_report.tools.saving import attach_saved_report
from stock_report.utils.provenance import build_error_response, build_meta, build_provenance
from stock_report.utils.search import build_search_queries, matched_terms, query_tokens
from stock_report.utils.validators import normalize_symbol

logger = logging.getLogger(__name__)

MAX_SECTOR_SYMBOLS = 8
MIN_SEARCH_CANDIDATES = 10

SECTOR_COMPONENTS = (
    "price",
    "overview",
    "analystRatings",
    "basicFinancials",
    "priceTargets",
    "companyNews",
)


def _is_us_listing(row: dict[str, Any]) -> bool:
    region = str(row.get("region") or "").lower()
    currency = str(row.get("currency") or "").upper()
    kind = str(row.get("type") or "").lower()
    return "united states" in region or currency == "USD" or "equity" in kind or "common stock" in kind


def _valid_symbols(rows: list[dict[str, Any]]) -> list[str]:
    symbols: list[str] = []
    for row in rows:
        try:
            symbol = normalize_symbol(str(row.get("symbol") or ""))
        except ValueError:
            continue
        if symbol not in symbols:
            symbols.append(symbol)
    return symbols


async def expand_universe(client: ProviderClient, query: str, limit: int) -> tuple[list[str], str]:
    """
    Build a symbol universe for a theme query.

    Runs the stopword-filtered search queries, keeps US listings, then keeps
    candidates whose name or symbol contains a query term. When no candidate
    matches a term, the raw search hits are used instead.

    Returns:
        Tuple of (symbols, note describing how the universe was built)
    """
    groups = [await client.search_symbols(search) for search in build_search_queries(query)]
    merged = merge_search_results(*groups)
    us_rows = [row for row in merged if _is_us_listing(row)]
    candidates = (us_rows or merged)[: max(limit * 2, MIN_SEARCH_CANDIDATES)]

    terms = query_tokens(query)
    keyword_rows = [
        row for row in candidates if matched_terms(f"{row.get('name') or ''} {row.get('symbol') or ''}", terms)
    ]
    if keyword_rows:
        return _valid_symbols(keyword_rows)[:limit], f'Universe built from keyword-filtered search for "{query}".'
    return _valid_symbols(candidates)[:limit], f'Universe built from symbol search fallback for "{query}".'


async def sector_report(
    query: str,
    symbols: list[str] | None = None,
    limit: int = MAX_SECTOR_SYMBOLS,
    save: bool = True,
    client: ProviderClient | None = None,
) -> dict[str, Any]:
    """
    Build a sector or thematic report with rankings and allocation.

    Args:
        query: Theme, e.g. "AI data center"
        symbols: Explicit universe; searched from the query when omitted
        limit: Maximum companies (1-8, default: 8)
        save: Write the report to REPORTS_DIR (default: True)
        client: Provider client (default: shared client)

    Returns:
        Dict with report markdown, rankings, allocation and saved path
    """
    start_time = perf_counter()

    query = (query or "").strip()
    if not query:
        return build_error_response("invalid_params", "query cannot be empty")
    if limit < 1:
        return build_error_response("invalid_params", f"limit must be at least 1, got {limit}")
    limit = min(limit, MAX_SECTOR_SYMBOLS)

    client = client or get_client()
    notes: list[str] = []
    if symbols:
        try:
            universe = list(dict.fromkeys(normalize_symbol(s) for s in symbols))[:limit]
        except ValueError as e:
            return build_error_response("invalid_params", str(e))
        notes.append("Universe provided explicitly.")
    else:
        try:
            universe, note = await expand_universe(client, query, limit)
        except ServerShuttingDownError as e:
            return provider_error_response(e)
        notes.append(note)

    if not universe:
        return build_error_response("data_unavailable", f'No symbols found for "{query}"')

    snapshots = []
    last_error: Exception | None = None
    for symbol in universe:
        try:
            snapshot, snapshot_provenance = await client.fetch_snapshot(symbol, SECTOR_COMPONENTS)
        except ServerShuttingDownError as e:
            return provider_error_response(e, symbol)
        except Exception as e:
            logger.warning(f"sector_report: skipping {symbol} ({e})")
            notes.append(f"{symbol}: {e}")
            last_error = e
            continue
        snapshots.append(snapshot)
        notes.extend(f"{symbol} {gap['component']} unavailable" for gap in snapshot_provenance.get("skipped", []))

    if not snapshots and last_error is not None:
        return provider_error_response(last_error)

    generated_at = datetime.now(timezone.utc).isoformat()
    content = build_sector_report(query, snapshots, generated_at, notes=notes)
    scored = [ScoredEntity(s.symbol, compute_scorecard(s), s.name) for s in snapshots]

    result: dict[str, Any] = {
        "query": query,
        "universe": [s.symbol for s in snapshots],
        "rankings": [entity.to_dict() for entity in rank_and_classify(scored)],
        "allocation": [weight.to_dict() for weight in allocation_weights(scored)],
        "notes": notes,
        "content": content,
    }
    provenance = build_provenance(
        "alphavantage+finnhub" if client.has_finnhub else "alphavantage",
        requested=universe,
        fetched=[s.symbol for s in snapshots],
    )
    if save:
        attach_saved_report(result, content, f"{query} sector report", provenance["warnings"])

    duration_ms = (perf_counter() - start_time) * 1000
    return {
        "meta": build_meta("sector_report", duration_ms),
        "data_provenance": provenance,
        **result,
    }
