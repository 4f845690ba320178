"""Map provider failures to tool error responses."""

import logging
from typing import Any

from requests.exceptions import HTTPError

from stock_report.data.providers import (
    DataUnavailableError,
    ProviderRateLimitError,
    ProviderRetryError,
    ServerShuttingDownError,
)
from stock_report.utils.provenance import build_error_response

logger = logging.getLogger(__name__)

RATE_LIMIT_RETRY_AFTER = 60  # seconds


def _is_rate_limit(error: BaseException | None) -> bool:
    if isinstance(error, ProviderRateLimitError):
        return True
    if isinstance(error, HTTPError) and error.response is not None:
        return error.response.status_code == 429
    return False


def provider_error_response(error: Exception, symbol: str | None = None) -> dict[str, Any]:
    """
    Error response for an exception raised while fetching provider data.

    Rate limiting (directly or as the last error of exhausted retries) maps to
    ``rate_limited``; everything else is ``data_unavailable``.
    """
    if isinstance(error, ServerShuttingDownError):
        return build_error_response("data_unavailable", "Server is shutting down", symbol=symbol)

    last_error = error.last_error if isinstance(error, ProviderRetryError) else error
    if _is_rate_limit(last_error):
        return build_error_response(
            "rate_limited",
            f"Provider rate limit reached: {error}",
            symbol=symbol,
            retry_after_seconds=RATE_LIMIT_RETRY_AFTER,
        )

    if isinstance(error, DataUnavailableError):
        return build_error_response("data_unavailable", str(error), symbol=symbol)

    logger.warning(f"Provider failure for {symbol}: {error}")
    return build_error_response("data_unavailable", f"Failed to fetch data: {error}", symbol=symbol)
