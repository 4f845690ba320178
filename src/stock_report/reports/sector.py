"""Sector / thematic report."""

from collections import Counter
from collections.abc import Sequence

from stock_report.reports.formatting import (
    NOT_AVAILABLE,
    format_market_cap,
    format_number,
    format_signed_percent,
    format_trend,
    markdown_table,
)
from stock_report.reports.sections import (
    DISCLAIMER,
    analyst_row,
    company_label,
    news_highlights,
    notes_list,
    recommendations_table,
)
from stock_report.scoring import metrics
from stock_report.scoring.ranking import (
    DEFAULT_LAYER,
    LAYER_PATTERNS,
    ScoredEntity,
    allocation_weights,
    classify_layer,
    rank_and_classify,
)
from stock_report.scoring.scorecard import compute_scorecard
from stock_report.scoring.snapshot import FinancialSnapshot
from stock_report.utils.numeric import to_number
from stock_report.utils.sanitize import sanitize_text
from stock_report.utils.search import matched_terms, query_tokens


def _best(snapshots: Sequence[FinancialSnapshot], extractor) -> tuple[FinancialSnapshot, float] | None:
    """Snapshot with the highest present value; first one wins ties."""
    best: tuple[FinancialSnapshot, float] | None = None
    for snapshot in snapshots:
        value = extractor(snapshot)
        if value is None:
            continue
        if best is None or value > best[1]:
            best = (snapshot, value)
    return best


def key_takeaways(snapshots: Sequence[FinancialSnapshot], scored: Sequence[ScoredEntity]) -> list[str]:
    """One-line leaders: market cap, growth, margin, upside, composite."""
    lines: list[str] = []

    leader = _best(snapshots, lambda s: to_number(s.overview.get("marketCapitalization")))
    if leader:
        lines.append(f"Largest market cap: {leader[0].symbol} ({format_market_cap(leader[1])})")

    for label, extractor in (
        ("Fastest revenue growth", metrics.revenue_growth),
        ("Fastest EPS growth", metrics.eps_growth),
        ("Highest gross margin", metrics.gross_margin),
    ):
        leader = _best(snapshots, extractor)
        if leader:
            lines.append(f"{label}: {leader[0].symbol} ({format_signed_percent(leader[1])})")

    leader = _best(snapshots, metrics.target_upside)
    if leader:
        lines.append(f"Largest target upside: {leader[0].symbol} ({format_signed_percent(leader[1])})")

    top = max((e for e in scored if e.composite is not None), key=lambda e: e.composite, default=None)
    if top is not None:
        lines.append(f"Top composite score: {top.symbol} ({top.composite:.1f})")

    return lines


def _sector_mix(snapshots: Sequence[FinancialSnapshot]) -> str:
    counts = Counter(sanitize_text(s.overview.get("sector")) or "Uncategorized" for s in snapshots)
    return ", ".join(f"{sector} ({count})" for sector, count in counts.items())


def _stack_overview(snapshots: Sequence[FinancialSnapshot], layers: dict[str, str]) -> str:
    order = [layer for layer, _ in LAYER_PATTERNS] + [DEFAULT_LAYER]
    rows = []
    for layer in order:
        members = [s.symbol for s in snapshots if layers[s.symbol] == layer]
        if members:
            rows.append([layer, ", ".join(members), str(len(members))])
    return markdown_table(["Layer", "Companies", "Count"], rows, align=["l", "l", "r"])


def _inclusion_table(snapshots: Sequence[FinancialSnapshot], query: str) -> str:
    if not snapshots:
        return "_No companies matched the query._"
    terms = query_tokens(query)
    rows = []
    for snapshot in snapshots:
        text = " ".join(
            str(snapshot.overview.get(key))
            for key in ("name", "sector", "industry", "description")
            if snapshot.overview.get(key)
        )
        found = matched_terms(text, terms)
        reason = f"Matched terms: {', '.join(found)}" if found else "Matched via symbol search"
        rows.append([company_label(snapshot), reason])
    return markdown_table(["Company (Ticker)", "Why Included"], rows)


def _metrics_table(snapshots: Sequence[FinancialSnapshot], layers: dict[str, str]) -> str:
    rows = [
        [
            s.symbol,
            sanitize_text(s.overview.get("name"), max_length=120) or NOT_AVAILABLE,
            layers[s.symbol],
            format_number(metrics.current_price(s)),
            format_market_cap(s.overview.get("marketCapitalization")),
            format_number(metrics.eps(s)),
            format_signed_percent(metrics.revenue_growth(s)),
            format_signed_percent(metrics.eps_growth(s)),
            format_signed_percent(metrics.gross_margin(s)),
        ]
        for s in snapshots
    ]
    return markdown_table(
        ["Symbol", "Company", "Layer", "Price", "Market Cap", "EPS (TTM)", "Rev Growth", "EPS Growth", "Gross Margin"],
        rows,
        align=["l", "l", "l", "r", "r", "r", "r", "r", "r"],
    )


def _analyst_table(snapshots: Sequence[FinancialSnapshot]) -> str:
    rows = [
        [
            s.symbol,
            *analyst_row(s),
            format_number(metrics.pe_ratio(s), 1),
            format_signed_percent(metrics.operating_margin(s)),
            format_trend(metrics.trend_vs_ma50(s)),
        ]
        for s in snapshots
    ]
    return markdown_table(
        ["Symbol", "Analyst Ratings", "Target Mean", "Target Upside", "P/E", "Operating Margin", "Price vs 50D"],
        rows,
        align=["l", "l", "r", "r", "r", "r", "l"],
    )


def _allocation_table(scored: Sequence[ScoredEntity]) -> str:
    weights = allocation_weights(scored)
    if not weights:
        return "_Allocation unavailable: no composite scores._"
    rows = [[w.symbol, f"{w.composite:.1f}", f"{w.weight_pct:.1f}%"] for w in weights]
    return markdown_table(["Symbol", "Score", "Weight"], rows, align=["l", "r", "r"])


def build_sector_report(
    query: str,
    snapshots: Sequence[FinancialSnapshot],
    generated_at: str,
    notes: Sequence[str] = (),
) -> str:
    """
    Render the sector / thematic report.

    Every snapshot is scored; unscored companies still appear in every table
    and rank as "Insufficient data".

    Args:
        query: Theme the universe was built from
        snapshots: One snapshot per company, in display order
        generated_at: Timestamp string shown in the header
        notes: Universe construction and data-gap notes

    Returns:
        Markdown report
    """
    scored = [ScoredEntity(s.symbol, compute_scorecard(s), s.name) for s in snapshots]
    ranked = rank_and_classify(scored)
    layers = {s.symbol: classify_layer(s.overview) for s in snapshots}

    summary = [f"- Query: {sanitize_text(query, max_length=200)}", f"- Universe Size: {len(snapshots)}"]
    mix = _sector_mix(snapshots)
    if mix:
        summary.append(f"- Sector Mix: {mix}")
    takeaways = key_takeaways(snapshots, scored)
    summary.append("- Key Takeaways:")
    summary.extend(f"  - {line}" for line in takeaways or [NOT_AVAILABLE])
    if notes:
        summary.append(f"- Notes:\n{notes_list(notes)}")

    sections = [
        f"# Sector/Thematic Report: {sanitize_text(query, max_length=200)}",
        f"Generated: {generated_at}",
        "## ✨ Executive Summary",
        "\n".join(summary),
        "## 🧠 AI Stack Overview",
        _stack_overview(snapshots, layers) if snapshots else "_Stack overview unavailable._",
        "## ✅ Companies Included",
        _inclusion_table(snapshots, query),
    ]
    if snapshots:
        sections.extend(
            [
                "## 📊 Company Metrics",
                _metrics_table(snapshots, layers),
                "## 🧠 Analyst View",
                _analyst_table(snapshots),
            ]
        )
    sections.extend(
        [
            "## ✅ Recommendations",
            recommendations_table(ranked, [company_label(s) for s in snapshots]),
            "## 💼 Indicative Allocation",
            _allocation_table(scored),
            "## 📰 News Highlights",
            news_highlights(snapshots),
            DISCLAIMER,
        ]
    )
    return "\n\n".join(sections)
