"""Single-stock research report."""

from collections.abc import Sequence

from stock_report.reports import charts
from stock_report.reports.formatting import (
    format_market_cap,
    format_number,
    format_percent,
    format_rating_summary,
    format_score,
    format_trend,
)
from stock_report.reports.sections import headlines, notes_list
from stock_report.scoring import metrics
from stock_report.scoring.scorecard import Scorecard, compute_scorecard
from stock_report.scoring.snapshot import FinancialSnapshot
from stock_report.utils.numeric import to_number
from stock_report.utils.sanitize import sanitize_text

MAX_NEWS_HEADLINES = 5


def _snapshot_lines(snapshot: FinancialSnapshot) -> list[str]:
    lines = []
    price = to_number(snapshot.price.get("price"))
    if price is not None:
        change = sanitize_text(snapshot.price.get("changePercent"))
        lines.append(f"- Price: {price:.2f}" + (f" ({change})" if change else ""))
    market_cap = format_market_cap(snapshot.overview.get("marketCapitalization"))
    if market_cap != "N/A":
        lines.append(f"- Market Cap: {market_cap}")
    for label, key in (("Sector", "sector"), ("Industry", "industry")):
        value = sanitize_text(snapshot.overview.get(key), max_length=120)
        if value and value not in ("None", "-"):
            lines.append(f"- {label}: {value}")
    return lines or ["- Snapshot data unavailable"]


def _financial_lines(snapshot: FinancialSnapshot) -> list[str]:
    metric = snapshot.metric
    candidates = [
        ("P/E", format_number(metrics.pe_ratio(snapshot), 1)),
        ("PEG", format_number(snapshot.overview.get("pegRatio"))),
        ("EPS", format_number(metrics.eps(snapshot))),
        ("Gross Margin", format_percent(metric.get("grossMarginTTM"))),
        ("Operating Margin", format_percent(metric.get("operatingMarginTTM"))),
        ("ROE", format_percent(metric.get("roeTTM"))),
    ]
    return [f"- {label}: {value}" for label, value in candidates if value != "N/A"]


def _analyst_lines(snapshot: FinancialSnapshot) -> list[str]:
    lines = []
    target = metrics.target_price(snapshot)
    if target is not None:
        upside = metrics.target_upside(snapshot)
        suffix = f" ({upside:.1f}% upside)" if upside is not None else ""
        lines.append(f"- Target Mean: {target:.2f}{suffix}")
    ratings = format_rating_summary(metrics.rating_counts(snapshot))
    if ratings != "N/A":
        lines.append(f"- Ratings: {ratings}")
    trend = metrics.trend_vs_ma50(snapshot)
    if trend is not None:
        lines.append(f"- Trend: {format_trend(trend)}")
    return lines


def scorecard_lines(scorecard: Scorecard) -> list[str]:
    """Bullet lines for the five components, moat details and composite."""
    components = scorecard.components
    moat = scorecard.moat_details
    return [
        f"- Growth: {format_score(components.growth)} (avg of revenue/EPS growth %)",
        f"- Profitability: {format_score(components.profitability)} (avg of gross/operating margin, ROE)",
        f"- Valuation: {format_score(components.valuation)} (100 - PE/50*100)",
        f"- Momentum: {format_score(components.momentum)} (50 + price % change)",
        f"- Moat: {format_score(components.moat)} (avg of margin stability, pricing power, analyst conviction)",
        f"  - Margin Stability: {format_score(moat.margin_stability)}",
        f"  - Pricing Power: {format_score(moat.pricing_power)}",
        f"  - Analyst Conviction: {format_score(moat.analyst_conviction)}",
        f"- Composite Score: {format_score(scorecard.composite)}",
    ]


def _sentiment(snapshot: FinancialSnapshot) -> str | None:
    sentiment = snapshot.news_sentiment.get("sentiment")
    if isinstance(sentiment, dict):
        sentiment = sentiment.get("sentiment") or sentiment.get("buzz")
    if sentiment in (None, "", {}):
        return None
    return sanitize_text(str(sentiment), max_length=200)


def build_stock_report(
    snapshot: FinancialSnapshot,
    generated_at: str,
    notes: Sequence[str] = (),
) -> str:
    """
    Render the single-stock report.

    Sections without data are omitted; the Scorecard section appears only
    when a composite score exists.

    Args:
        snapshot: Provider data for the symbol
        generated_at: Timestamp string shown in the header
        notes: Data-gap notes, listed before the snapshot

    Returns:
        Markdown with embedded ```chart blocks
    """
    sections: list[str] = [
        f"# {snapshot.symbol} Comprehensive Equity Research Report",
        f"Generated: {generated_at}",
    ]
    if notes:
        sections.extend(["## ⚠️ Data Gaps", notes_list(notes)])
    sections.extend(["## 📊 Snapshot", "\n".join(_snapshot_lines(snapshot))])

    price_chart = charts.price_chart(snapshot.prices)
    eps_chart = charts.eps_chart(snapshot.earnings)
    if price_chart or eps_chart:
        sections.append("## 📈 Price & EPS Trends")
        sections.extend(chart for chart in (price_chart, eps_chart) if chart)

    revenue_chart = charts.revenue_chart(snapshot.income_reports)
    margin_chart = charts.margin_chart(snapshot.income_reports)
    if revenue_chart or margin_chart:
        sections.append("## 📊 Revenue & Margin Trends")
        sections.extend(chart for chart in (revenue_chart, margin_chart) if chart)

    financial_lines = _financial_lines(snapshot)
    if financial_lines:
        sections.extend(["## 💰 Financials", "\n".join(financial_lines)])

    analyst_lines = _analyst_lines(snapshot)
    target_chart = charts.target_distribution_chart(snapshot.price_targets)
    if analyst_lines or target_chart:
        sections.append("## 🧠 Analyst View")
        if analyst_lines:
            sections.append("\n".join(analyst_lines))
        if target_chart:
            sections.append(target_chart)

    scorecard = compute_scorecard(snapshot)
    if scorecard.composite is not None:
        sections.extend(["## ✅ Scorecard", "\n".join(scorecard_lines(scorecard))])

    sentiment = _sentiment(snapshot)
    recent = headlines(snapshot, MAX_NEWS_HEADLINES)
    if sentiment or recent:
        sections.append("## 🔍 News & Sentiment")
        lines = []
        if sentiment:
            lines.append(f"- Sentiment: {sentiment}")
        if recent:
            lines.append(f"- Recent Headlines: {'; '.join(recent)}")
        sections.append("\n".join(lines))

    return "\n\n".join(sections)
