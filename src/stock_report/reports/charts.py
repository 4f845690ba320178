"""```chart``` block builders.

Each builder returns a fenced block holding an ECharts option as JSON, or ""
when there is nothing finite to plot. Non-finite numbers are replaced with
null before serialization so the JSON is always strict.
"""

import json
import math
from collections.abc import Mapping, Sequence
from typing import Any

from stock_report.reports.formatting import format_chart_number
from stock_report.utils.numeric import to_number
from stock_report.utils.series import downsample, filter_series, format_date_label, standardize_prices

PRICE_CHART_POINTS = 60
EPS_CHART_POINTS = 20
STATEMENT_CHART_POINTS = 8
STATEMENT_LOOKBACK = 12
PERFORMANCE_CHART_POINTS = 60

_GRID = {"left": 40, "right": 20, "top": 50, "bottom": 40}


def _sanitize(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, Mapping):
        return {key: _sanitize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_sanitize(item) for item in value]
    return value


def chart_block(option: Mapping[str, Any]) -> str:
    """Serialize an ECharts option into a ```chart fenced block."""
    body = json.dumps(_sanitize(option), indent=2, allow_nan=False)
    return "\n".join(["```chart", body, "```"])


def _axis_option(title: str, labels: list[str], series: list[dict[str, Any]], **extra: Any) -> dict[str, Any]:
    option: dict[str, Any] = {
        "title": {"text": title, "left": "center"},
        "tooltip": {"trigger": "axis"},
        "grid": dict(_GRID),
        "xAxis": {"type": "category", "data": labels},
        "yAxis": {"type": "value", "scale": True},
        "series": series,
    }
    option.update(extra)
    return option


def _line_series(name: str, data: list[Any], **extra: Any) -> dict[str, Any]:
    return {"name": name, "type": "line", "smooth": True, **extra, "data": data}


def price_chart(prices: Sequence[Mapping[str, Any]]) -> str:
    """Close price line, oldest to newest, at most 60 points."""
    if not prices:
        return ""
    frame = standardize_prices(prices)
    points = downsample(frame.to_dict("records"), PRICE_CHART_POINTS)
    labels, values = filter_series(
        [format_date_label(p["date"]) for p in points],
        [to_number(p["close"]) for p in points],
    )
    if not labels:
        return ""
    series = _line_series(
        "Close",
        [format_chart_number(v) for v in values],
        symbol="circle",
        symbolSize=6,
        areaStyle={"opacity": 0.2},
    )
    return chart_block(_axis_option("Price History", labels, [series]))


def eps_chart(earnings: Sequence[Mapping[str, Any]]) -> str:
    """Reported quarterly EPS; input is newest first, plotted oldest first."""
    if not earnings:
        return ""
    points = downsample(list(reversed(earnings)), EPS_CHART_POINTS)
    labels, values = filter_series(
        [format_date_label(e.get("fiscalQuarter")) for e in points],
        [to_number(e.get("reportedEPS")) for e in points],
    )
    if not labels:
        return ""
    series = _line_series("EPS", [format_chart_number(v) for v in values], symbol="circle", symbolSize=6)
    return chart_block(_axis_option("Quarterly EPS", labels, [series]))


def _statement_points(reports: Sequence[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
    return list(downsample(list(reversed(reports[:STATEMENT_LOOKBACK])), STATEMENT_CHART_POINTS))


def _period_label(report: Mapping[str, Any]) -> str:
    period = report.get("fiscalQuarter") or report.get("fiscalYear") or report.get("fiscalDateEnding") or ""
    return format_date_label(period)


def revenue_chart(reports: Sequence[Mapping[str, Any]]) -> str:
    """Revenue bars over the latest 12 reports, at most 8 bars."""
    if not reports:
        return ""
    points = _statement_points(reports)
    labels, values = filter_series(
        [_period_label(r) for r in points],
        [to_number(r.get("totalRevenue")) for r in points],
    )
    if not values:
        return ""
    series = {"name": "Revenue", "type": "bar", "data": [format_chart_number(v) for v in values], "barMaxWidth": 32}
    return chart_block(_axis_option("Revenue Trend", labels, [series]))


def _margin(report: Mapping[str, Any], line: str) -> float | None:
    revenue = to_number(report.get("totalRevenue"))
    value = to_number(report.get(line))
    if not revenue or value is None:
        return None
    return format_chart_number(value / revenue * 100)


def margin_chart(reports: Sequence[Mapping[str, Any]]) -> str:
    """Gross and operating margin lines; periods without revenue plot as gaps."""
    if not reports:
        return ""
    points = _statement_points(reports)
    labels = [_period_label(r) for r in points]
    gross = [_margin(r, "grossProfit") for r in points]
    operating = [_margin(r, "operatingIncome") for r in points]
    if all(v is None for v in gross + operating):
        return ""
    option = _axis_option(
        "Margin Trends",
        labels,
        [_line_series("Gross Margin", gross), _line_series("Operating Margin", operating)],
        legend={"bottom": 0},
    )
    option["yAxis"] = {"type": "value", "axisLabel": {"formatter": "{value}%"}}
    return chart_block(option)


def bar_chart(title: str, label: str, items: Sequence[tuple[str, float | None]]) -> str:
    """Category bar chart from (name, value) pairs; absent values are dropped."""
    labels, values = filter_series([name for name, _ in items], [value for _, value in items])
    if not labels:
        return ""
    option = _axis_option(
        title,
        labels,
        [{"name": label, "type": "bar", "data": [format_chart_number(v) for v in values], "barMaxWidth": 32}],
    )
    option["yAxis"]["name"] = label
    return chart_block(option)


def target_distribution_chart(price_targets: Mapping[str, Any]) -> str:
    """Low / mean / median / high analyst targets."""
    if not price_targets:
        return ""
    items = [
        ("Low", to_number(price_targets.get("targetLow"))),
        ("Mean", to_number(price_targets.get("targetMean"))),
        ("Median", to_number(price_targets.get("targetMedian"))),
        ("High", to_number(price_targets.get("targetHigh"))),
    ]
    return bar_chart("Analyst Target Distribution", "Price", items)


def indexed_series(prices: Sequence[Mapping[str, Any]]) -> list[list[Any]]:
    """
    Close prices indexed to 100 at the earliest point.

    Returns [[label, value], ...] with at most 60 points; empty when there
    are fewer than two prices or the base close is absent or zero.
    """
    if len(prices) < 2:
        return []
    frame = standardize_prices(prices)
    if frame.empty:
        return []
    base = to_number(frame["close"].iloc[0])
    if not base:
        return []
    rows: list[list[Any]] = []
    for point in downsample(frame.to_dict("records"), PERFORMANCE_CHART_POINTS):
        value = to_number(point["close"])
        if not value:
            continue
        rows.append([format_date_label(point["date"]), round(value / base * 100, 2)])
    return rows


def performance_chart(title: str, entries: Sequence[tuple[str, Sequence[Mapping[str, Any]]]]) -> str:
    """Relative performance lines, one per (symbol, prices) entry."""
    series = []
    for symbol, prices in entries:
        data = indexed_series(prices)
        if data:
            series.append({"name": symbol, "type": "line", "smooth": True, "showSymbol": False, "data": data})
    if not series:
        return ""
    option: dict[str, Any] = {
        "title": {"text": title, "left": "center"},
        "tooltip": {"trigger": "axis"},
        "grid": dict(_GRID),
        "xAxis": {"type": "category"},
        "yAxis": {"type": "value", "name": "Index (Base=100)"},
        "legend": {"bottom": 0},
        "series": series,
    }
    return chart_block(option)
