"""Per-symbol market data tools.

Thin wrappers over one provider call each, returning the adapted payload
under ``data`` with the standard meta and provenance blocks.
"""

from time import perf_counter
from typing import Any

from stock_report.data.providers import ProviderClient, get_client
from stock_report.tools.errors import provider_error_response
from stock_report.utils.provenance import build_error_response, build_meta, build_provenance
from stock_report.utils.validators import ReportParams, normalize_symbol

ALPHA_VANTAGE = "alphavantage"
FINNHUB = "finnhub"

MAX_NEWS_DAYS = 365


async def _fetch_symbol_data(
    tool: str,
    method: str,
    source: str,
    symbol: str,
    client: ProviderClient | None,
    **kwargs: Any,
) -> dict[str, Any]:
    """Validate the symbol, call ``client.<method>`` and wrap the result."""
    start_time = perf_counter()

    try:
        normalized = normalize_symbol(symbol)
    except ValueError as e:
        return build_error_response(error_type="invalid_params", message=str(e), symbol=symbol)

    client = client or get_client()
    if source == FINNHUB and not client.has_finnhub:
        return build_error_response(
            error_type="data_unavailable",
            message="FINNHUB_API_KEY is required for this request",
            symbol=normalized,
        )

    try:
        data = await getattr(client, method)(normalized, **kwargs)
    except ValueError as e:
        # Adapters raise ValueError when the upstream section is missing
        return build_error_response(error_type="data_unavailable", message=str(e), symbol=normalized)
    except Exception as e:
        return provider_error_response(e, normalized)

    duration_ms = (perf_counter() - start_time) * 1000
    return {
        "meta": build_meta(tool, duration_ms),
        "data_provenance": build_provenance(source),
        "symbol": normalized,
        "data": data,
    }


async def symbol_search(query: str, client: ProviderClient | None = None) -> dict[str, Any]:
    """
    Search for stock symbols by company name or ticker.

    Args:
        query: Search keywords
        client: Provider client (default: shared client)

    Returns:
        Dict with de-duplicated results and the exact ticker match, if any
    """
    start_time = perf_counter()

    query = str(query or "").strip()
    if not query:
        return build_error_response(error_type="invalid_params", message="Search query must not be empty")

    client = client or get_client()
    try:
        results = await client.search_symbols(query)
    except Exception as e:
        return provider_error_response(e)

    # First result is not always the ticker itself
    normalized_query = query.upper()
    exact_match = next(
        (r["symbol"] for r in results if str(r.get("symbol") or "").upper() == normalized_query),
        None,
    )

    duration_ms = (perf_counter() - start_time) * 1000
    source = f"{FINNHUB}+{ALPHA_VANTAGE}" if client.has_finnhub else ALPHA_VANTAGE
    return {
        "meta": build_meta("symbol_search", duration_ms),
        "data_provenance": build_provenance(source),
        "query": query,
        "results": results,
        "count": len(results),
        "exact_match": exact_match,
    }


async def stock_quote(symbol: str, client: ProviderClient | None = None) -> dict[str, Any]:
    """Latest quote: price, change, volume and trading day."""
    return await _fetch_symbol_data("stock_quote", "get_quote", ALPHA_VANTAGE, symbol, client)


async def price_history(
    symbol: str,
    range: str = "daily",
    client: ProviderClient | None = None,
) -> dict[str, Any]:
    """
    Price bars for a symbol.

    Args:
        symbol: Stock ticker symbol
        range: daily, weekly or monthly
        client: Provider client (default: shared client)

    Returns:
        Dict with the adapted series under ``data``
    """
    try:
        params = ReportParams(symbol=symbol, range=range)
    except ValueError as e:
        return build_error_response(error_type="invalid_params", message=str(e), symbol=symbol)

    return await _fetch_symbol_data(
        "price_history",
        "get_price_history",
        ALPHA_VANTAGE,
        params.symbol,
        client,
        history_range=params.range,
    )


async def company_overview(symbol: str, client: ProviderClient | None = None) -> dict[str, Any]:
    """Company profile and headline valuation fields."""
    return await _fetch_symbol_data("company_overview", "get_overview", ALPHA_VANTAGE, symbol, client)


async def analyst_ratings(symbol: str, client: ProviderClient | None = None) -> dict[str, Any]:
    return await _fetch_symbol_data("analyst_ratings", "get_analyst_ratings", ALPHA_VANTAGE, symbol, client)


async def income_statement(symbol: str, client: ProviderClient | None = None) -> dict[str, Any]:
    return await _fetch_symbol_data("income_statement", "get_income_statement", ALPHA_VANTAGE, symbol, client)


async def earnings_history(symbol: str, client: ProviderClient | None = None) -> dict[str, Any]:
    return await _fetch_symbol_data("earnings_history", "get_earnings", ALPHA_VANTAGE, symbol, client)


async def basic_financials(symbol: str, client: ProviderClient | None = None) -> dict[str, Any]:
    """Finnhub key metrics (margins, growth, multiples)."""
    return await _fetch_symbol_data("basic_financials", "get_basic_financials", FINNHUB, symbol, client)


async def price_targets(symbol: str, client: ProviderClient | None = None) -> dict[str, Any]:
    return await _fetch_symbol_data("price_targets", "get_price_targets", FINNHUB, symbol, client)


async def stock_peers(symbol: str, client: ProviderClient | None = None) -> dict[str, Any]:
    return await _fetch_symbol_data("stock_peers", "get_peers", FINNHUB, symbol, client)


async def company_news(symbol: str, days: int = 30, client: ProviderClient | None = None) -> dict[str, Any]:
    """
    Recent company news from Finnhub.

    Args:
        symbol: Stock ticker symbol
        days: Look-back window in days, 1-365 (default: 30)
        client: Provider client (default: shared client)

    Returns:
        Dict with the adapted articles under ``data``
    """
    if not 1 <= days <= MAX_NEWS_DAYS:
        return build_error_response(
            error_type="invalid_params",
            message=f"days must be between 1 and {MAX_NEWS_DAYS}",
            symbol=symbol,
        )
    return await _fetch_symbol_data("company_news", "get_company_news", FINNHUB, symbol, client, days=days)
