"""Peer comparison report."""

from collections.abc import Sequence

from stock_report.reports import charts
from stock_report.reports.formatting import (
    format_market_cap,
    format_number,
    format_score,
    format_signed_percent,
    markdown_table,
)
from stock_report.reports.sections import (
    DISCLAIMER,
    analyst_row,
    company_label,
    news_highlights,
    notes_list,
    recommendations_table,
    role_text,
)
from stock_report.scoring import metrics
from stock_report.scoring.ranking import ScoredEntity, rank_and_classify
from stock_report.scoring.scorecard import compute_scorecard
from stock_report.scoring.snapshot import FinancialSnapshot


def _inclusion_table(base_symbol: str, snapshots: Sequence[FinancialSnapshot]) -> str:
    rows = [
        [company_label(s), "Base company" if s.symbol == base_symbol else "Peer comparison set"]
        for s in snapshots
    ]
    return markdown_table(["Company (Ticker)", "Why Included"], rows)


def _comparison_table(snapshots: Sequence[FinancialSnapshot]) -> str:
    rows = [
        [
            company_label(s),
            format_number(metrics.current_price(s)),
            format_market_cap(s.overview.get("marketCapitalization")),
            format_number(metrics.eps(s)),
            format_number(metrics.pe_ratio(s), 1),
            format_signed_percent(metrics.revenue_growth(s)),
            format_signed_percent(metrics.gross_margin(s)),
            format_signed_percent(metrics.operating_margin(s)),
            format_number(metrics.target_price(s)),
            format_signed_percent(metrics.target_upside(s)),
        ]
        for s in snapshots
    ]
    return markdown_table(
        [
            "Company (Ticker)",
            "Price",
            "Market Cap",
            "EPS",
            "P/E",
            "Rev Growth",
            "Gross Margin",
            "Operating Margin",
            "Target Mean",
            "Upside",
        ],
        rows,
        align=["l"] + ["r"] * 9,
    )


def _role_table(snapshots: Sequence[FinancialSnapshot]) -> str:
    rows = [[company_label(s), role_text(s, "Role unavailable")] for s in snapshots]
    return markdown_table(["Company (Ticker)", "Role in Peer Set"], rows)


def _moat_table(snapshots: Sequence[FinancialSnapshot], scored: Sequence[ScoredEntity]) -> str:
    rows = []
    for snapshot, entity in zip(snapshots, scored):
        moat = entity.scorecard.moat_details
        rows.append(
            [
                company_label(snapshot),
                format_score(moat.margin_stability),
                format_score(moat.pricing_power),
                format_score(moat.analyst_conviction),
                format_score(entity.scorecard.components.moat),
            ]
        )
    return markdown_table(
        ["Company (Ticker)", "Margin Stability", "Pricing Power", "Analyst Conviction", "Moat"],
        rows,
        align=["l", "r", "r", "r", "r"],
    )


def _analyst_table(snapshots: Sequence[FinancialSnapshot]) -> str:
    rows = [[company_label(s), *analyst_row(s)] for s in snapshots]
    return markdown_table(
        ["Company (Ticker)", "Analyst Ratings", "Target Mean", "Upside"],
        rows,
        align=["l", "l", "r", "r"],
    )


def build_peer_report(
    symbol: str,
    snapshots: Sequence[FinancialSnapshot],
    generated_at: str,
    history_range: str = "monthly",
    notes: Sequence[str] = (),
) -> str:
    """
    Render the peer comparison report.

    Args:
        symbol: Base company ticker
        snapshots: Base company first, then peers
        generated_at: Timestamp string shown in the header
        history_range: Price history range used for the performance chart
        notes: Peer discovery and data-gap notes

    Returns:
        Markdown report
    """
    base_symbol = symbol.upper()
    scored = [ScoredEntity(s.symbol, compute_scorecard(s), s.name) for s in snapshots]
    ranked = rank_and_classify(scored)
    labels = [company_label(s) for s in snapshots]

    sections = [
        f"# Peer Comparison Report: {base_symbol}",
        f"Generated: {generated_at}",
        f"Universe: {', '.join(labels) or 'N/A'}",
        "## ✅ Companies Included",
        _inclusion_table(base_symbol, snapshots) if snapshots else "_Peer universe unavailable._",
    ]
    if snapshots:
        sections.extend(["## 📊 Comparison Table", _comparison_table(snapshots)])

        performance = charts.performance_chart(
            f"Relative Performance ({history_range})",
            [(s.symbol, s.prices) for s in snapshots],
        )
        if performance:
            sections.extend(["## 📈 Relative Performance", performance])

        sections.extend(
            [
                "## 🧭 Role in Peer Set",
                _role_table(snapshots),
                "## 🏰 Moat Signals",
                _moat_table(snapshots, scored),
                "## 🧠 Analyst View",
                _analyst_table(snapshots),
            ]
        )

    sections.extend(
        [
            "## ✅ Recommendations",
            recommendations_table(ranked, labels),
            "## 📰 News Highlights",
            news_highlights(snapshots),
        ]
    )
    if notes:
        sections.append(f"## 🔍 Notes\n{notes_list(notes)}")
    sections.append(DISCLAIMER)
    return "\n\n".join(sections)
