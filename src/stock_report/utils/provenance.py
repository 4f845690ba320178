"""Response metadata, provenance and error blocks."""

from typing import Any

from stock_report import SCHEMA_VERSION, SERVER_VERSION


def build_meta(tool: str, duration_ms: float | None = None) -> dict[str, Any]:
    """
    Build standard metadata block for tool responses.

    Args:
        tool: Name of the tool producing this response
        duration_ms: Execution time in milliseconds (optional)

    Returns:
        Metadata dict with version info
    """
    meta: dict[str, Any] = {
        "server_version": SERVER_VERSION,
        "schema_version": SCHEMA_VERSION,
        "tool": tool,
    }
    if duration_ms is not None:
        meta["duration_ms"] = round(duration_ms, 1)
    return meta


def build_provenance(source: str, **fields: Any) -> dict[str, Any]:
    """
    Build the data provenance block for a tool response.

    Args:
        source: Data source names (e.g., "alphavantage+finnhub")
        **fields: Component bookkeeping (requested, fetched, skipped, derived)

    Returns:
        Provenance dict; always carries a warnings list
    """
    return {"source": source, **fields, "warnings": list(fields.get("warnings", []))}


def build_error_response(
    error_type: str,
    message: str,
    symbol: str | None = None,
    retry_after_seconds: int | None = None,
) -> dict[str, Any]:
    """
    Build standardized error response.

    Args:
        error_type: invalid_symbol, invalid_params, data_unavailable or rate_limited
        message: Human-readable error message
        symbol: Symbol that caused the error (if applicable)
        retry_after_seconds: Seconds to wait before retry (for rate limiting)

    Returns:
        Error response dict
    """
    response: dict[str, Any] = {
        "error": True,
        "error_type": error_type,
        "message": message,
        "meta": build_meta("error"),
    }

    if symbol is not None:
        response["symbol"] = symbol

    if retry_after_seconds is not None:
        response["retry_after_seconds"] = retry_after_seconds

    return response
