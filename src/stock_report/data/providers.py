"""Async provider client (Alpha Vantage + Finnhub) with bounded concurrency and retry logic."""

import asyncio
import logging
import os
import random
import time
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, TypeVar

import requests
from requests.exceptions import ConnectionError as RequestsConnectionError
from requests.exceptions import HTTPError, Timeout

from stock_report.data import adapters
from stock_report.data.cache import (
    FUNDAMENTALS_TTL,
    HISTORY_TTL,
    NEWS_TTL,
    QUOTE_TTL,
    SEARCH_TTL,
    TARGETS_TTL,
    ResponseCache,
    make_key,
)
from stock_report.scoring.snapshot import FinancialSnapshot
from stock_report.utils.provenance import build_provenance

logger = logging.getLogger(__name__)

ALPHA_VANTAGE_URL = "https://www.alphavantage.co/query"
FINNHUB_URL = "https://finnhub.io/api/v1"

# Bounded concurrency for provider calls
_max_workers = int(os.environ.get("PROVIDER_MAX_WORKERS", "4"))
_executor = ThreadPoolExecutor(max_workers=_max_workers)
_fetch_semaphore = asyncio.Semaphore(_max_workers)

# Retry configuration
_max_retries = int(os.environ.get("PROVIDER_MAX_RETRIES", "3"))
_base_delay = float(os.environ.get("PROVIDER_BASE_DELAY", "1.0"))  # seconds
_max_delay = float(os.environ.get("PROVIDER_MAX_DELAY", "30.0"))  # seconds
_timeout = float(os.environ.get("PROVIDER_TIMEOUT", "10"))  # seconds

# Minimum spacing between requests to the same provider
DEFAULT_MIN_INTERVALS: dict[str, float] = {
    "alphavantage": int(os.environ.get("ALPHA_VANTAGE_MIN_INTERVAL_MS", "12000")) / 1000,
    "finnhub": int(os.environ.get("FINNHUB_MIN_INTERVAL_MS", "1000")) / 1000,
}

# Shutdown coordination
shutdown_event = asyncio.Event()

T = TypeVar("T")

# Snapshot components in fetch order. Keys are FinancialSnapshot.from_payload keys.
SNAPSHOT_COMPONENTS: tuple[str, ...] = (
    "price",
    "overview",
    "analystRatings",
    "basicFinancials",
    "priceTargets",
    "priceHistory",
    "incomeStatement",
    "earningsHistory",
    "companyNews",
)

# Alpha Vantage reports throttling as a 200 with one of these keys
_RATE_LIMIT_KEYS = ("Note", "Information")


class ServerShuttingDownError(Exception):
    """Raised when server is shutting down."""

    pass


class ProviderError(Exception):
    """Base error for provider requests."""

    pass


class ProviderRateLimitError(ProviderError):
    """Provider answered with a throttling notice."""

    pass


class ProviderRetryError(ProviderError):
    """Raised when a provider call fails after all retries."""

    def __init__(self, message: str, last_error: Exception | None = None):
        super().__init__(message)
        self.last_error = last_error


class DataUnavailableError(ProviderError):
    """Neither quote nor overview could be fetched for a symbol."""

    pass


def _is_retryable_error(error: Exception) -> bool:
    """Transient failures: throttling, 429/5xx, timeouts, dropped connections."""
    if isinstance(error, (ProviderRateLimitError, Timeout, RequestsConnectionError)):
        return True

    if isinstance(error, HTTPError) and error.response is not None:
        status_code = error.response.status_code
        return status_code == 429 or 500 <= status_code < 600

    return False


def _calculate_backoff(attempt: int) -> float:
    """Calculate delay with exponential backoff and jitter."""
    # Exponential backoff: base_delay * 2^attempt
    delay = _base_delay * (2**attempt)
    # Add jitter (±25%)
    jitter = delay * 0.25 * (2 * random.random() - 1)
    return min(delay + jitter, _max_delay)


@dataclass
class RetryResult:
    """Result of a retry operation with provenance tracking."""

    result: Any
    attempts: int
    total_backoff_seconds: float
    source: str


async def _retry_with_backoff(
    operation_name: str,
    sync_func: Callable[[], T],
    source: str,
    max_retries: int = _max_retries,
) -> RetryResult:
    """
    Execute a synchronous function in the executor with retry logic.

    Args:
        operation_name: Name for logging (e.g., "alphavantage:OVERVIEW(AAPL)")
        sync_func: Synchronous function to execute
        source: Provider name recorded in provenance
        max_retries: Maximum number of retry attempts

    Returns:
        RetryResult with result and provenance info

    Raises:
        ProviderRetryError: If all retries exhausted
        ServerShuttingDownError: If server is shutting down
    """
    total_backoff = 0.0

    for attempt in range(max_retries + 1):
        if shutdown_event.is_set():
            raise ServerShuttingDownError("Server is shutting down")

        try:
            loop = asyncio.get_running_loop()
            result = await loop.run_in_executor(_executor, sync_func)
            return RetryResult(
                result=result,
                attempts=attempt + 1,
                total_backoff_seconds=round(total_backoff, 2),
                source=source,
            )
        except Exception as e:
            if not _is_retryable_error(e):
                raise

            if attempt >= max_retries:
                logger.warning(f"{operation_name}: Failed after {attempt + 1} attempts. Last error: {e}")
                raise ProviderRetryError(
                    f"Failed after {attempt + 1} attempts: {e}",
                    last_error=e,
                ) from e

            delay = _calculate_backoff(attempt)
            total_backoff += delay
            logger.info(f"{operation_name}: Attempt {attempt + 1} failed ({e}). Retrying in {delay:.1f}s...")
            await asyncio.sleep(delay)

    raise ProviderRetryError(f"Failed after {max_retries + 1} attempts")


class ProviderClient:
    """
    Alpha Vantage / Finnhub client.

    Every call goes through the response cache first; misses are throttled per
    provider, executed in the shared thread pool and retried on transient
    failures. Results are adapted to canonical shapes (see ``adapters``).
    """

    def __init__(
        self,
        cache: ResponseCache | None = None,
        alpha_vantage_key: str | None = None,
        finnhub_key: str | None = None,
        min_intervals: dict[str, float] | None = None,
    ):
        self.cache = cache if cache is not None else ResponseCache()
        self.alpha_vantage_key = alpha_vantage_key or os.environ.get("ALPHA_VANTAGE_API_KEY", "demo")
        self.finnhub_key = finnhub_key or os.environ.get("FINNHUB_API_KEY") or None
        self.min_intervals = dict(DEFAULT_MIN_INTERVALS if min_intervals is None else min_intervals)
        self._last_request_at: dict[str, float] = {}
        self._throttle_locks: dict[str, asyncio.Lock] = {}

    @property
    def has_finnhub(self) -> bool:
        return bool(self.finnhub_key)

    async def _throttle(self, provider: str) -> None:
        interval = self.min_intervals.get(provider, 0)
        if interval <= 0:
            return
        lock = self._throttle_locks.setdefault(provider, asyncio.Lock())
        async with lock:
            wait = interval - (time.monotonic() - self._last_request_at.get(provider, 0.0))
            if wait > 0:
                await asyncio.sleep(wait)
            self._last_request_at[provider] = time.monotonic()

    async def _request(
        self,
        provider: str,
        url: str,
        params: dict[str, str],
        auth: tuple[str, str],
        ttl: int,
        cache_prefix: str,
    ) -> Any:
        key = make_key(cache_prefix, params)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        def _fetch() -> Any:
            response = requests.get(url, params={**params, auth[0]: auth[1]}, timeout=_timeout)
            response.raise_for_status()
            data = response.json()
            if isinstance(data, dict):
                for note_key in _RATE_LIMIT_KEYS:
                    if note_key in data and len(data) == 1:
                        raise ProviderRateLimitError(f"{provider} rate limit: {data[note_key]}")
                if "Error Message" in data:
                    raise ProviderError(f"{provider} error: {data['Error Message']}")
            return data

        async with _fetch_semaphore:
            await self._throttle(provider)
            retry_result = await _retry_with_backoff(f"{cache_prefix}({params})", _fetch, provider)
        if retry_result.attempts > 1:
            logger.info(
                f"{retry_result.source}: succeeded after {retry_result.attempts} attempts "
                f"({retry_result.total_backoff_seconds}s backoff)"
            )

        self.cache.set(key, retry_result.result, ttl)
        return retry_result.result

    async def _alpha_vantage(self, params: dict[str, str], ttl: int) -> Any:
        return await self._request(
            "alphavantage",
            ALPHA_VANTAGE_URL,
            params,
            ("apikey", self.alpha_vantage_key),
            ttl,
            "alphavantage",
        )

    async def _finnhub(self, path: str, params: dict[str, str], ttl: int) -> Any:
        if not self.finnhub_key:
            raise ProviderError("FINNHUB_API_KEY is required for this request")
        return await self._request(
            "finnhub",
            f"{FINNHUB_URL}{path}",
            params,
            ("token", self.finnhub_key),
            ttl,
            f"finnhub:{path}",
        )

    # Alpha Vantage

    async def get_quote(self, symbol: str) -> dict[str, Any]:
        data = await self._alpha_vantage({"function": "GLOBAL_QUOTE", "symbol": symbol.upper()}, QUOTE_TTL)
        return adapters.adapt_global_quote(data)

    async def get_price_history(self, symbol: str, history_range: str = "daily") -> dict[str, Any]:
        function = f"TIME_SERIES_{history_range.upper()}"
        data = await self._alpha_vantage({"function": function, "symbol": symbol.upper()}, HISTORY_TTL)
        return adapters.adapt_time_series(data, symbol)

    async def get_overview(self, symbol: str) -> dict[str, Any]:
        data = await self._alpha_vantage({"function": "OVERVIEW", "symbol": symbol.upper()}, FUNDAMENTALS_TTL)
        return adapters.adapt_overview(data)

    async def get_analyst_ratings(self, symbol: str) -> dict[str, Any]:
        # Same upstream call as get_overview; served from cache when both are used
        data = await self._alpha_vantage({"function": "OVERVIEW", "symbol": symbol.upper()}, FUNDAMENTALS_TTL)
        return adapters.adapt_analyst_ratings(data, symbol)

    async def get_income_statement(self, symbol: str) -> dict[str, Any]:
        data = await self._alpha_vantage(
            {"function": "INCOME_STATEMENT", "symbol": symbol.upper()}, FUNDAMENTALS_TTL
        )
        return adapters.adapt_income_statement(data, symbol)

    async def get_earnings(self, symbol: str) -> dict[str, Any]:
        data = await self._alpha_vantage({"function": "EARNINGS", "symbol": symbol.upper()}, FUNDAMENTALS_TTL)
        return adapters.adapt_earnings(data, symbol)

    # Finnhub

    async def get_basic_financials(self, symbol: str) -> dict[str, Any]:
        data = await self._finnhub("/stock/metric", {"symbol": symbol.upper(), "metric": "all"}, FUNDAMENTALS_TTL)
        return adapters.adapt_basic_financials(data, symbol)

    async def get_price_targets(self, symbol: str) -> dict[str, Any]:
        data = await self._finnhub("/stock/price-target", {"symbol": symbol.upper()}, TARGETS_TTL)
        return adapters.adapt_price_targets(data, symbol)

    async def get_peers(self, symbol: str) -> list[str]:
        data = await self._finnhub("/stock/peers", {"symbol": symbol.upper()}, FUNDAMENTALS_TTL)
        return adapters.adapt_peers(data, symbol)

    async def get_company_news(self, symbol: str, days: int = 30) -> dict[str, Any]:
        to_date = date.today()
        from_date = to_date - timedelta(days=days)
        data = await self._finnhub(
            "/company-news",
            {"symbol": symbol.upper(), "from": from_date.isoformat(), "to": to_date.isoformat()},
            NEWS_TTL,
        )
        return adapters.adapt_company_news(data, symbol)

    async def search_symbols(self, query: str) -> list[dict[str, Any]]:
        """
        Symbol search across Finnhub (when configured) and Alpha Vantage.

        A failing source is logged and skipped; results are de-duplicated by
        symbol with Finnhub rows first.
        """
        finnhub_rows: list[dict[str, Any]] = []
        if self.finnhub_key:
            try:
                finnhub_rows = adapters.adapt_finnhub_search(
                    await self._finnhub("/search", {"q": query}, SEARCH_TTL)
                )
            except (ProviderError, requests.RequestException) as e:
                logger.warning(f"search_symbols({query!r}): finnhub failed ({e})")

        alpha_rows: list[dict[str, Any]] = []
        try:
            alpha_rows = adapters.adapt_symbol_search(
                await self._alpha_vantage({"function": "SYMBOL_SEARCH", "keywords": query}, SEARCH_TTL)
            )
        except (ProviderError, requests.RequestException) as e:
            logger.warning(f"search_symbols({query!r}): alphavantage failed ({e})")

        return adapters.merge_search_results(finnhub_rows, alpha_rows)

    async def _fetch_component(self, component: str, symbol: str, history_range: str) -> Any:
        if component == "price":
            return await self.get_quote(symbol)
        if component == "overview":
            return await self.get_overview(symbol)
        if component == "analystRatings":
            return await self.get_analyst_ratings(symbol)
        if component == "basicFinancials":
            return await self.get_basic_financials(symbol)
        if component == "priceTargets":
            return await self.get_price_targets(symbol)
        if component == "priceHistory":
            return await self.get_price_history(symbol, history_range)
        if component == "incomeStatement":
            return await self.get_income_statement(symbol)
        if component == "earningsHistory":
            return await self.get_earnings(symbol)
        if component == "companyNews":
            return await self.get_company_news(symbol)
        raise ValueError(f"Unknown snapshot component '{component}'")

    async def fetch_snapshot(
        self,
        symbol: str,
        components: Iterable[str] = SNAPSHOT_COMPONENTS,
        history_range: str = "daily",
    ) -> tuple[FinancialSnapshot, dict[str, Any]]:
        """
        Assemble a snapshot one component at a time.

        A component that fails is logged and left empty so scoring degrades
        to absence. Shutdown and programming errors still propagate.

        Args:
            symbol: Ticker symbol (already validated)
            components: Subset of ``SNAPSHOT_COMPONENTS`` to fetch
            history_range: daily, weekly or monthly price history

        Returns:
            Tuple of (snapshot, provenance) where provenance lists fetched and
            skipped components with reasons

        Raises:
            DataUnavailableError: If neither quote nor overview could be fetched
            ServerShuttingDownError: If server is shutting down
        """
        wanted = list(components)
        unknown = [c for c in wanted if c not in SNAPSHOT_COMPONENTS]
        if unknown:
            raise ValueError(f"Unknown snapshot components: {unknown}")

        payload: dict[str, Any] = {"symbol": symbol}
        fetched: list[str] = []
        skipped: list[dict[str, str]] = []

        for component in wanted:
            try:
                payload[component] = await self._fetch_component(component, symbol, history_range)
                fetched.append(component)
            except ServerShuttingDownError:
                raise
            except (ProviderError, ValueError, requests.RequestException) as e:
                logger.warning(f"fetch_snapshot({symbol}): {component} unavailable ({e})")
                skipped.append({"component": component, "reason": str(e)})

        if {"price", "overview"} & set(wanted) and not {"price", "overview"} & set(fetched):
            raise DataUnavailableError(f"No quote or overview data available for {symbol}")

        derived: list[str] = []
        if "basicFinancials" in wanted and "basicFinancials" not in fetched and "overview" in fetched:
            payload["basicFinancials"] = adapters.basic_financials_from_overview(payload["overview"])
            derived.append("basicFinancials")

        sources = ["alphavantage"] + (["finnhub"] if self.finnhub_key else [])
        provenance = build_provenance(
            "+".join(sources),
            fetched=fetched,
            skipped=skipped,
            derived=derived,
            warnings=[f"{s['component']} unavailable" for s in skipped],
        )
        return FinancialSnapshot.from_payload(payload), provenance


_client: ProviderClient | None = None


def get_client() -> ProviderClient:
    """Shared client used by the tools (created on first use)."""
    global _client
    if _client is None:
        _client = ProviderClient()
    return _client


async def shutdown_executor() -> None:
    """Cleanup on server shutdown."""
    shutdown_event.set()
    _executor.shutdown(wait=False, cancel_futures=True)
