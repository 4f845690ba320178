"""Tests for the provider client (network mocked)."""

import asyncio
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from requests.exceptions import HTTPError

from stock_report.data import providers
from stock_report.data.cache import ResponseCache
from stock_report.data.providers import (
    DataUnavailableError,
    ProviderClient,
    ProviderError,
    ProviderRateLimitError,
    ProviderRetryError,
    ServerShuttingDownError,
)

QUOTE = {"Global Quote": {"01. symbol": "IBM", "05. price": "100.00", "10. change percent": "1.0%"}}
OVERVIEW = {
    "Symbol": "IBM",
    "Name": "International Business Machines",
    "PERatio": "25",
    "RevenueTTM": "1000",
    "GrossProfitTTM": "500",
    "OperatingMarginTTM": "0.2",
    "ReturnOnEquityTTM": "0.3",
    "AnalystTargetPrice": "120",
}


def _response(data: Any, status: int = 200) -> MagicMock:
    response = MagicMock()
    response.status_code = status
    response.json.return_value = data
    if status >= 400:
        response.raise_for_status.side_effect = HTTPError(f"{status} error", response=response)
    return response


def _router(routes: dict[str, Any]):
    """requests.get stand-in keyed by Alpha Vantage function or Finnhub path."""

    def fake_get(url, params=None, timeout=None):
        key = params.get("function") or url.rsplit("/api/v1", 1)[-1]
        if key not in routes:
            return _response({})
        return _response(routes[key])

    return fake_get


@pytest.fixture
def client(tmp_path, monkeypatch) -> ProviderClient:
    monkeypatch.delenv("FINNHUB_API_KEY", raising=False)
    return ProviderClient(cache=ResponseCache(str(tmp_path)), alpha_vantage_key="test-key", min_intervals={})


@pytest.fixture
def no_backoff():
    with patch.object(providers, "_calculate_backoff", return_value=0):
        yield


class TestRequests:
    """Tests for request, cache and retry behaviour."""

    def test_quote_adapted_and_cached(self, client) -> None:
        with patch("stock_report.data.providers.requests.get", side_effect=_router({"GLOBAL_QUOTE": QUOTE})) as get:
            first = asyncio.run(client.get_quote("ibm"))
            second = asyncio.run(client.get_quote("IBM"))
        assert first["price"] == "100.00"
        assert second == first
        assert get.call_count == 1

    def test_api_key_sent_but_not_cached(self, client) -> None:
        with patch("stock_report.data.providers.requests.get", side_effect=_router({"GLOBAL_QUOTE": QUOTE})) as get:
            asyncio.run(client.get_quote("IBM"))
        assert get.call_args.kwargs["params"]["apikey"] == "test-key"
        assert not any("test-key" in key for key in client.cache.cache.iterkeys())

    def test_rate_limit_note_retried(self, client, no_backoff) -> None:
        responses = [_response({"Note": "Thank you for using Alpha Vantage!"}), _response(QUOTE)]
        with patch("stock_report.data.providers.requests.get", side_effect=responses) as get:
            quote = asyncio.run(client.get_quote("IBM"))
        assert quote["symbol"] == "IBM"
        assert get.call_count == 2

    def test_server_error_retried(self, client, no_backoff) -> None:
        responses = [_response({}, status=503), _response(QUOTE)]
        with patch("stock_report.data.providers.requests.get", side_effect=responses) as get:
            asyncio.run(client.get_quote("IBM"))
        assert get.call_count == 2

    def test_retries_exhausted(self, client, no_backoff) -> None:
        note = {"Information": "rate limit"}
        with patch("stock_report.data.providers.requests.get", side_effect=lambda *a, **k: _response(note)) as get:
            with pytest.raises(ProviderRetryError) as exc_info:
                asyncio.run(client.get_quote("IBM"))
        assert isinstance(exc_info.value.last_error, ProviderRateLimitError)
        assert get.call_count == providers._max_retries + 1

    def test_error_message_not_retried(self, client) -> None:
        body = {"Error Message": "Invalid API call"}
        with patch("stock_report.data.providers.requests.get", side_effect=lambda *a, **k: _response(body)) as get:
            with pytest.raises(ProviderError, match="Invalid API call"):
                asyncio.run(client.get_quote("IBM"))
        assert get.call_count == 1

    def test_client_error_not_retried(self, client) -> None:
        with patch("stock_report.data.providers.requests.get", side_effect=lambda *a, **k: _response({}, 404)) as get:
            with pytest.raises(HTTPError):
                asyncio.run(client.get_quote("IBM"))
        assert get.call_count == 1

    def test_finnhub_requires_key(self, client) -> None:
        assert not client.has_finnhub
        with pytest.raises(ProviderError, match="FINNHUB_API_KEY"):
            asyncio.run(client.get_basic_financials("IBM"))

    def test_finnhub_token(self, tmp_path) -> None:
        client = ProviderClient(cache=ResponseCache(str(tmp_path)), finnhub_key="fh", min_intervals={})
        routes = {"/stock/peers": ["AMD", "intc"]}
        with patch("stock_report.data.providers.requests.get", side_effect=_router(routes)) as get:
            peers = asyncio.run(client.get_peers("NVDA"))
        assert peers == ["AMD", "INTC"]
        assert get.call_args.kwargs["params"]["token"] == "fh"

    def test_shutdown(self, client) -> None:
        providers.shutdown_event.set()
        try:
            with pytest.raises(ServerShuttingDownError):
                asyncio.run(client.get_quote("IBM"))
        finally:
            providers.shutdown_event.clear()


class TestSearch:
    """Tests for search_symbols."""

    def test_failed_source_skipped(self, client) -> None:
        body = {"Error Message": "bad"}
        with patch("stock_report.data.providers.requests.get", side_effect=lambda *a, **k: _response(body)):
            assert asyncio.run(client.search_symbols("chips")) == []

    def test_alpha_vantage_rows(self, client) -> None:
        routes = {"SYMBOL_SEARCH": {"bestMatches": [{"1. symbol": "NVDA", "2. name": "NVIDIA"}]}}
        with patch("stock_report.data.providers.requests.get", side_effect=_router(routes)):
            rows = asyncio.run(client.search_symbols("nvidia"))
        assert [row["symbol"] for row in rows] == ["NVDA"]


class TestFetchSnapshot:
    """Tests for fetch_snapshot."""

    def test_degrades_and_derives(self, client) -> None:
        """Finnhub components are skipped and basic financials derived from the overview."""
        routes = {"GLOBAL_QUOTE": QUOTE, "OVERVIEW": OVERVIEW}
        with patch("stock_report.data.providers.requests.get", side_effect=_router(routes)):
            snapshot, provenance = asyncio.run(
                client.fetch_snapshot("IBM", ("price", "overview", "analystRatings", "basicFinancials", "priceTargets"))
            )
        assert snapshot.symbol == "IBM"
        assert snapshot.metric["grossMarginTTM"] == pytest.approx(0.5)
        assert snapshot.analyst_ratings["analystTargetPrice"] == "120"
        assert provenance["source"] == "alphavantage"
        assert provenance["fetched"] == ["price", "overview", "analystRatings"]
        assert [s["component"] for s in provenance["skipped"]] == ["basicFinancials", "priceTargets"]
        assert provenance["derived"] == ["basicFinancials"]
        assert provenance["warnings"] == ["basicFinancials unavailable", "priceTargets unavailable"]

    def test_no_quote_or_overview(self, client) -> None:
        with patch("stock_report.data.providers.requests.get", side_effect=_router({})):
            with pytest.raises(DataUnavailableError):
                asyncio.run(client.fetch_snapshot("IBM", ("price", "overview")))

    def test_unknown_component(self, client) -> None:
        with pytest.raises(ValueError, match="Unknown snapshot components"):
            asyncio.run(client.fetch_snapshot("IBM", ("price", "dividends")))

    def test_history_range(self, client) -> None:
        series = {"Weekly Time Series": {"2024-06-07": {"4. close": "10"}, "2024-05-31": {"4. close": "9"}}}
        routes = {"GLOBAL_QUOTE": QUOTE, "TIME_SERIES_WEEKLY": series}
        with patch("stock_report.data.providers.requests.get", side_effect=_router(routes)):
            snapshot, _ = asyncio.run(client.fetch_snapshot("IBM", ("price", "priceHistory"), history_range="weekly"))
        assert [p["date"] for p in snapshot.prices] == ["2024-06-07", "2024-05-31"]


class TestBackoff:
    """Tests for retry classification and backoff."""

    def test_backoff_capped(self) -> None:
        assert providers._calculate_backoff(20) <= providers._max_delay

    def test_backoff_grows(self) -> None:
        first = providers._calculate_backoff(0)
        assert providers._base_delay * 0.75 <= first <= providers._base_delay * 1.25

    def test_retryable_classification(self) -> None:
        assert providers._is_retryable_error(ProviderRateLimitError("x"))
        assert not providers._is_retryable_error(ProviderError("x"))
        assert not providers._is_retryable_error(ValueError("x"))
