"""Single-stock report tool."""

from datetime import datetime, timezone
from time import perf_counter
from typing import Any

from stock_report.data.providers import ProviderClient, get_client
from stock_report.reports.stock import build_stock_report
from stock_report.scoring.scorecard import compute_scorecard
from stock_report.tools.errors import provider_error_response
from stock_report.tools.saving import attach_saved_report
from stock_report.utils.provenance import build_error_response, build_meta
from stock_report.utils.validators import ReportParams


async def stock_report(
    symbol: str,
    range: str = "daily",
    save: bool = True,
    client: ProviderClient | None = None,
) -> dict[str, Any]:
    """
    Build a single-stock research report.

    Args:
        symbol: Stock ticker symbol
        range: Price history range (daily, weekly, monthly)
        save: Write the report to REPORTS_DIR (default: True)
        client: Provider client (default: shared client)

    Returns:
        Dict with report markdown, scorecard, provenance and saved path
    """
    start_time = perf_counter()

    try:
        params = ReportParams(symbol=symbol, range=range)
    except ValueError as e:
        return build_error_response(error_type="invalid_params", message=str(e), symbol=symbol)

    client = client or get_client()
    try:
        snapshot, provenance = await client.fetch_snapshot(params.symbol, history_range=params.range)
    except Exception as e:
        return provider_error_response(e, params.symbol)

    notes = [f"{gap['component']}: {gap['reason']}" for gap in provenance.get("skipped", [])]
    generated_at = datetime.now(timezone.utc).isoformat()
    content = build_stock_report(snapshot, generated_at, notes=notes)

    result: dict[str, Any] = {
        "symbol": params.symbol,
        "name": snapshot.name,
        "scorecard": compute_scorecard(snapshot).to_dict(),
        "content": content,
    }
    if save:
        warnings = provenance.setdefault("warnings", [])
        attach_saved_report(result, content, f"{params.symbol}-stock-report", warnings)

    duration_ms = (perf_counter() - start_time) * 1000
    return {
        "meta": build_meta("stock_report", duration_ms),
        "data_provenance": provenance,
        **result,
    }
