"""Data layer for fetching and caching provider data."""

from stock_report.data.cache import ResponseCache, make_key
from stock_report.data.providers import (
    SNAPSHOT_COMPONENTS,
    DataUnavailableError,
    ProviderClient,
    ProviderError,
    ProviderRateLimitError,
    ProviderRetryError,
    ServerShuttingDownError,
    get_client,
    shutdown_executor,
)

__all__ = [
    # Cache
    "ResponseCache",
    "make_key",
    # Providers
    "SNAPSHOT_COMPONENTS",
    "DataUnavailableError",
    "ProviderClient",
    "ProviderError",
    "ProviderRateLimitError",
    "ProviderRetryError",
    "ServerShuttingDownError",
    "get_client",
    "shutdown_executor",
]
