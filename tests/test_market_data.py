"""Tests for the per-symbol market data tools (provider client mocked)."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from stock_report.data.providers import ProviderRateLimitError, ServerShuttingDownError
from stock_report.tools import (
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

PAYLOADS = {
    "get_quote": {"symbol": "NVDA", "price": "120.00", "change": "1.80", "changePercent": "1.5000%"},
    "get_price_history": {"symbol": "NVDA", "prices": [{"date": "2024-06-03", "close": "120.0"}]},
    "get_overview": {"symbol": "NVDA", "name": "NVIDIA Corporation", "sector": "TECHNOLOGY"},
    "get_analyst_ratings": {"symbol": "NVDA", "analystTargetPrice": "140", "buy": "30"},
    "get_income_statement": {"symbol": "NVDA", "quarterlyReports": [], "annualReports": []},
    "get_earnings": {"symbol": "NVDA", "quarterlyEarnings": [], "annualEarnings": []},
    "get_basic_financials": {"symbol": "NVDA", "metric": {"grossMarginTTM": 0.7}, "series": {}},
    "get_price_targets": {"symbol": "NVDA", "targetHigh": 200, "targetLow": 90, "targetMean": 150},
    "get_peers": ["AMD", "INTC", "AVGO"],
    "get_company_news": {"symbol": "NVDA", "articles": [{"headline": "NVIDIA ships new GPU"}]},
}

SEARCH_ROWS = [
    {"symbol": "NVDA", "name": "NVIDIA Corp", "source": "finnhub"},
    {"symbol": "NVD.DE", "name": "NVIDIA Corp (Xetra)", "source": "alphavantage"},
]

# tool function, tool name, client method, source, extra kwargs passed to the client
SYMBOL_TOOLS = [
    (stock_quote, "stock_quote", "get_quote", "alphavantage", {}),
    (company_overview, "company_overview", "get_overview", "alphavantage", {}),
    (analyst_ratings, "analyst_ratings", "get_analyst_ratings", "alphavantage", {}),
    (income_statement, "income_statement", "get_income_statement", "alphavantage", {}),
    (earnings_history, "earnings_history", "get_earnings", "alphavantage", {}),
    (basic_financials, "basic_financials", "get_basic_financials", "finnhub", {}),
    (price_targets, "price_targets", "get_price_targets", "finnhub", {}),
    (stock_peers, "stock_peers", "get_peers", "finnhub", {}),
]

FINNHUB_TOOLS = [tool for tool, _, _, source, _ in SYMBOL_TOOLS if source == "finnhub"] + [company_news]


def make_client(has_finnhub: bool = True) -> MagicMock:
    client = MagicMock()
    client.has_finnhub = has_finnhub
    for method, payload in PAYLOADS.items():
        setattr(client, method, AsyncMock(return_value=payload))
    client.search_symbols = AsyncMock(return_value=SEARCH_ROWS)
    return client


class TestSymbolTools:
    """Response schema for the single-call symbol tools."""

    @pytest.mark.parametrize("tool,name,method,source,kwargs", SYMBOL_TOOLS)
    def test_schema(self, tool, name, method, source, kwargs) -> None:
        client = make_client()
        result = asyncio.run(tool(" nvda ", client=client))

        assert "error" not in result
        assert result["meta"]["tool"] == name
        assert "duration_ms" in result["meta"]
        assert result["data_provenance"] == {"source": source, "warnings": []}
        assert result["symbol"] == "NVDA"
        assert result["data"] == PAYLOADS[method]
        getattr(client, method).assert_awaited_once_with("NVDA", **kwargs)

    @pytest.mark.parametrize("tool", [entry[0] for entry in SYMBOL_TOOLS])
    def test_invalid_symbol(self, tool) -> None:
        client = make_client()
        result = asyncio.run(tool("not a ticker!", client=client))
        assert result["error"] is True
        assert result["error_type"] == "invalid_params"

    @pytest.mark.parametrize("tool", FINNHUB_TOOLS)
    def test_finnhub_key_required(self, tool) -> None:
        client = make_client(has_finnhub=False)
        result = asyncio.run(tool("NVDA", client=client))
        assert result["error_type"] == "data_unavailable"
        assert "FINNHUB_API_KEY" in result["message"]

    def test_missing_section(self) -> None:
        client = make_client()
        client.get_overview = AsyncMock(side_effect=ValueError("Unable to fetch company overview"))
        result = asyncio.run(company_overview("NVDA", client=client))
        assert result["error_type"] == "data_unavailable"
        assert result["message"] == "Unable to fetch company overview"
        assert result["symbol"] == "NVDA"

    def test_rate_limited(self) -> None:
        client = make_client()
        client.get_quote = AsyncMock(side_effect=ProviderRateLimitError("alphavantage rate limit"))
        result = asyncio.run(stock_quote("NVDA", client=client))
        assert result["error_type"] == "rate_limited"
        assert result["retry_after_seconds"] == 60

    def test_shutting_down(self) -> None:
        client = make_client()
        client.get_earnings = AsyncMock(side_effect=ServerShuttingDownError("bye"))
        result = asyncio.run(earnings_history("NVDA", client=client))
        assert result["message"] == "Server is shutting down"


class TestPriceHistory:
    """Tests for price_history."""

    def test_schema(self) -> None:
        client = make_client()
        result = asyncio.run(price_history("nvda", range="Weekly", client=client))
        assert result["meta"]["tool"] == "price_history"
        assert result["data"]["prices"][0]["close"] == "120.0"
        client.get_price_history.assert_awaited_once_with("NVDA", history_range="weekly")

    def test_invalid_range(self) -> None:
        client = make_client()
        result = asyncio.run(price_history("NVDA", range="hourly", client=client))
        assert result["error_type"] == "invalid_params"
        client.get_price_history.assert_not_awaited()


class TestCompanyNews:
    """Tests for company_news."""

    def test_schema(self) -> None:
        client = make_client()
        result = asyncio.run(company_news("NVDA", days=7, client=client))
        assert result["meta"]["tool"] == "company_news"
        assert result["data_provenance"]["source"] == "finnhub"
        assert result["data"]["articles"][0]["headline"] == "NVIDIA ships new GPU"
        client.get_company_news.assert_awaited_once_with("NVDA", days=7)

    @pytest.mark.parametrize("days", [0, -3, 366])
    def test_days_out_of_range(self, days) -> None:
        client = make_client()
        result = asyncio.run(company_news("NVDA", days=days, client=client))
        assert result["error_type"] == "invalid_params"
        client.get_company_news.assert_not_awaited()


class TestSymbolSearch:
    """Tests for symbol_search."""

    def test_schema(self) -> None:
        client = make_client()
        result = asyncio.run(symbol_search(" nvda ", client=client))
        assert result["meta"]["tool"] == "symbol_search"
        assert result["data_provenance"]["source"] == "finnhub+alphavantage"
        assert result["query"] == "nvda"
        assert result["count"] == 2
        assert result["results"] == SEARCH_ROWS
        assert result["exact_match"] == "NVDA"
        client.search_symbols.assert_awaited_once_with("nvda")

    def test_alpha_vantage_only(self) -> None:
        client = make_client(has_finnhub=False)
        result = asyncio.run(symbol_search("nvidia", client=client))
        assert result["data_provenance"]["source"] == "alphavantage"
        assert result["exact_match"] is None

    @pytest.mark.parametrize("query", ["", "   ", None])
    def test_empty_query(self, query) -> None:
        client = make_client()
        result = asyncio.run(symbol_search(query, client=client))
        assert result["error_type"] == "invalid_params"
        client.search_symbols.assert_not_awaited()
