"""Research report and market data tools."""

from stock_report.tools.market_data import (
    analyst_ratings,
    basic_financials,
    company_news,
    company_overview,
    earnings_history,
    income_statement,
    price_history,
    price_targets,
    stock_peers,
    stock_quote,
    symbol_search,
)
from stock_report.tools.peer_report import peer_report
from stock_report.tools.scorecard import rank_snapshots, score_snapshot
from stock_report.tools.sector_report import sector_report
from stock_report.tools.stock_report import stock_report

__all__ = [
    "analyst_ratings",
    "basic_financials",
    "company_news",
    "company_overview",
    "earnings_history",
    "income_statement",
    "peer_report",
    "price_history",
    "price_targets",
    "rank_snapshots",
    "score_snapshot",
    "sector_report",
    "stock_peers",
    "stock_quote",
    "stock_report",
    "symbol_search",
]
