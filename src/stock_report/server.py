"""Stock Research Report MCP Server using FastMCP."""

import asyncio
import json
import logging
import os

from fastmcp import FastMCP

from stock_report import SCHEMA_VERSION, SERVER_VERSION
from stock_report.data import shutdown_executor
from stock_report.tools import (
    analyst_ratings,
    basic_financials,
    company_news,
    company_overview,
    earnings_history,
    income_statement,
    peer_report,
    price_history,
    price_targets,
    rank_snapshots,
    score_snapshot,
    sector_report,
    stock_peers,
    stock_quote,
    stock_report,
    symbol_search,
)

# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(level=getattr(logging, log_level, logging.INFO))
logger = logging.getLogger(__name__)

# Create FastMCP server instance
mcp = FastMCP(
    name="stock-report",
)


# ============================================================================
# MARKET DATA
# ============================================================================


@mcp.tool
async def search_stock(query: str) -> str:
    """
    Search for stock symbols by company name or ticker.

    Args:
        query: Company name or ticker keywords (e.g., "nvidia", "AAPL")

    Returns:
        JSON with matching symbols, names, regions and the exact ticker match
    """
    result = await symbol_search(query=query)
    return json.dumps(result, indent=2, default=str)


@mcp.tool
async def get_stock_price(symbol: str) -> str:
    """
    Get the latest quote for a stock.

    Args:
        symbol: Stock ticker symbol (e.g., AAPL, NVDA)

    Returns:
        JSON with price, change, change percent, volume and trading day
    """
    result = await stock_quote(symbol=symbol)
    return json.dumps(result, indent=2, default=str)


@mcp.tool
async def get_price_history(symbol: str, range: str = "daily") -> str:
    """
    Get the closing price series for a stock.

    Args:
        symbol: Stock ticker symbol
        range: daily, weekly or monthly (default: daily)

    Returns:
        JSON with dated open, high, low, close and volume bars
    """
    result = await price_history(symbol=symbol, range=range)
    return json.dumps(result, indent=2, default=str)


@mcp.tool
async def get_company_overview(symbol: str) -> str:
    """
    Get the company profile: sector, industry, market cap and headline ratios.

    Args:
        symbol: Stock ticker symbol

    Returns:
        JSON with the company overview
    """
    result = await company_overview(symbol=symbol)
    return json.dumps(result, indent=2, default=str)


@mcp.tool
async def get_basic_financials(symbol: str) -> str:
    """
    Get key financial metrics (margins, growth, valuation multiples). Requires FINNHUB_API_KEY.

    Args:
        symbol: Stock ticker symbol

    Returns:
        JSON with the metric set
    """
    result = await basic_financials(symbol=symbol)
    return json.dumps(result, indent=2, default=str)


@mcp.tool
async def get_analyst_ratings(symbol: str) -> str:
    """
    Get analyst rating counts and the consensus target price.

    Args:
        symbol: Stock ticker symbol

    Returns:
        JSON with strong buy / buy / hold / sell / strong sell counts and target
    """
    result = await analyst_ratings(symbol=symbol)
    return json.dumps(result, indent=2, default=str)


@mcp.tool
async def get_price_targets(symbol: str) -> str:
    """
    Get the analyst price target range. Requires FINNHUB_API_KEY.

    Args:
        symbol: Stock ticker symbol

    Returns:
        JSON with high, low, mean and median targets
    """
    result = await price_targets(symbol=symbol)
    return json.dumps(result, indent=2, default=str)


@mcp.tool
async def get_peers(symbol: str) -> str:
    """
    Get peer companies for a stock. Requires FINNHUB_API_KEY.

    Args:
        symbol: Stock ticker symbol

    Returns:
        JSON with the list of peer tickers
    """
    result = await stock_peers(symbol=symbol)
    return json.dumps(result, indent=2, default=str)


@mcp.tool
async def get_earnings_history(symbol: str) -> str:
    """
    Get reported quarterly and annual EPS history.

    Args:
        symbol: Stock ticker symbol

    Returns:
        JSON with annual and quarterly earnings
    """
    result = await earnings_history(symbol=symbol)
    return json.dumps(result, indent=2, default=str)


@mcp.tool
async def get_income_statement(symbol: str) -> str:
    """
    Get annual and quarterly income statements.

    Args:
        symbol: Stock ticker symbol

    Returns:
        JSON with revenue, gross profit, operating income and net income rows
    """
    result = await income_statement(symbol=symbol)
    return json.dumps(result, indent=2, default=str)


@mcp.tool
async def get_company_news(symbol: str, days: int = 30) -> str:
    """
    Get recent company news. Requires FINNHUB_API_KEY.

    Args:
        symbol: Stock ticker symbol
        days: Look-back window in days, 1-365 (default: 30)

    Returns:
        JSON with headlines, sources, URLs and publish times
    """
    result = await company_news(symbol=symbol, days=days)
    return json.dumps(result, indent=2, default=str)


# ============================================================================
# REPORT TOOLS
# ============================================================================


@mcp.tool
async def generate_stock_report(symbol: str, range: str = "daily", save: bool = True) -> str:
    """
    Generate a comprehensive equity research report for one stock.

    Sections: snapshot, price & EPS trends, revenue & margin trends,
    financials, analyst view, scorecard (growth, profitability, valuation,
    momentum, moat, composite) and news. Charts are embedded as ```chart
    blocks containing ECharts option JSON.

    Args:
        symbol: Stock ticker symbol (e.g., AAPL, NVDA)
        range: Price history range - daily, weekly, monthly (default: daily)
        save: Save the markdown report to REPORTS_DIR (default: true)

    Returns:
        JSON with report markdown, scorecard, provenance and saved file path
    """
    result = await stock_report(symbol=symbol, range=range, save=save)
    return json.dumps(result, indent=2, default=str)


@mcp.tool
async def generate_sector_report(
    query: str,
    symbols: list[str] | None = None,
    limit: int = 8,
    save: bool = True,
) -> str:
    """
    Generate a sector or thematic report with rankings and an indicative allocation.

    When symbols are omitted the universe is built from symbol search on the
    query keywords, preferring US listings.

    Args:
        query: Theme or sector (e.g., "AI data center", "cybersecurity")
        symbols: Optional explicit list of tickers
        limit: Maximum companies, 1-8 (default: 8)
        save: Save the markdown report to REPORTS_DIR (default: true)

    Returns:
        JSON with report markdown, per-company rankings, allocation weights and notes
    """
    result = await sector_report(query=query, symbols=symbols, limit=limit, save=save)
    return json.dumps(result, indent=2, default=str)


@mcp.tool
async def generate_peer_report(
    symbol: str,
    peers: list[str] | None = None,
    range: str = "monthly",
    limit: int = 6,
    save: bool = True,
) -> str:
    """
    Generate a peer comparison report for a base company.

    Peers come from Finnhub when not given. Includes comparison table,
    relative performance chart (indexed to 100), moat signals and rankings.

    Args:
        symbol: Base company ticker
        peers: Optional explicit peer tickers
        range: Price history range - daily, weekly, monthly (default: monthly)
        limit: Maximum peers, 1-6 (default: 6)
        save: Save the markdown report to REPORTS_DIR (default: true)

    Returns:
        JSON with report markdown, peer rankings and notes
    """
    result = await peer_report(symbol=symbol, peers=peers, range=range, limit=limit, save=save)
    return json.dumps(result, indent=2, default=str)


@mcp.tool
async def score_financial_snapshot(payload: dict) -> str:
    """
    Score a caller-supplied financial snapshot without fetching data.

    Absent inputs never count as zero: missing components are dropped and the
    composite is renormalized over the ones present.

    Args:
        payload: Snapshot object with optional price, overview, basicFinancials,
            priceHistory, incomeStatement, analystRatings and priceTargets

    Returns:
        JSON with component scores, moat details, composite and stack layer
    """
    result = await score_snapshot(payload=payload)
    return json.dumps(result, indent=2, default=str)


@mcp.tool
async def rank_financial_snapshots(payloads: list[dict], top_n: int = 8) -> str:
    """
    Score and rank several snapshots and compute score-proportional weights.

    Tiers: Overweight (percentile >= 0.67), Neutral (>= 0.34), Underweight,
    or "Insufficient data" when no composite can be computed.

    Args:
        payloads: One snapshot object per company
        top_n: Number of allocation positions, capped at 8 (default: 8)

    Returns:
        JSON with rankings and scorecards in input order, plus allocation weights
    """
    result = await rank_snapshots(payloads=payloads, top_n=top_n)
    return json.dumps(result, indent=2, default=str)


# ============================================================================
# MAIN
# ============================================================================


def main() -> None:
    """Run the MCP server."""
    logger.info(f"Starting Stock Research Report MCP Server v{SERVER_VERSION} (schema v{SCHEMA_VERSION})")
    try:
        mcp.run()
    finally:
        asyncio.run(shutdown_executor())


if __name__ == "__main__":
    main()
