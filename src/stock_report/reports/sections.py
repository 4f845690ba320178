"""Section builders shared by the sector and peer reports."""

from collections.abc import Sequence

from stock_report.reports.formatting import (
    NOT_AVAILABLE,
    format_number,
    format_rating_summary,
    format_score,
    format_signed_percent,
    markdown_table,
)
from stock_report.scoring import metrics
from stock_report.scoring.ranking import RankedEntity
from stock_report.scoring.snapshot import FinancialSnapshot
from stock_report.utils.sanitize import first_sentence, sanitize_text

DISCLAIMER = "_Not financial advice. Use this as a starting point for diligence._"

MAX_HEADLINES_PER_COMPANY = 2


def company_label(snapshot: FinancialSnapshot) -> str:
    """Display label "Name (TICKER)"; the name falls back to the ticker."""
    return f"{sanitize_text(snapshot.name, max_length=120)} ({snapshot.symbol})"


def role_text(snapshot: FinancialSnapshot, fallback: str) -> str:
    """First sentence of the description, else industry or sector, else ``fallback``."""
    sentence = first_sentence(snapshot.overview.get("description"))
    if sentence:
        return sentence
    return sanitize_text(snapshot.overview.get("industry") or snapshot.overview.get("sector")) or fallback


def headlines(snapshot: FinancialSnapshot, limit: int) -> list[str]:
    """Up to ``limit`` sanitized headlines (``headline`` or ``title``)."""
    found: list[str] = []
    for article in snapshot.news:
        text = sanitize_text(article.get("headline") or article.get("title"), max_length=200)
        if text:
            found.append(text)
        if len(found) >= limit:
            break
    return found


def news_highlights(snapshots: Sequence[FinancialSnapshot], limit: int = MAX_HEADLINES_PER_COMPANY) -> str:
    rows = []
    for snapshot in snapshots:
        found = headlines(snapshot, limit)
        if found:
            rows.append(f"- {snapshot.symbol}: {'; '.join(found)}")
    return "\n".join(rows) if rows else NOT_AVAILABLE


def analyst_row(snapshot: FinancialSnapshot) -> list[str]:
    """Ratings summary, target mean and upside cells."""
    return [
        format_rating_summary(metrics.rating_counts(snapshot)),
        format_number(metrics.target_price(snapshot)),
        format_signed_percent(metrics.target_upside(snapshot)),
    ]


def recommendations_table(ranked: Sequence[RankedEntity], labels: Sequence[str]) -> str:
    """
    Score / Rank / Recommendation table in the given order.

    Unscored entities show "N/A" for score and rank with the
    insufficient-data tier.
    """
    if not ranked:
        return "_Recommendations unavailable._"
    rows = [
        [
            label,
            format_score(entity.composite),
            NOT_AVAILABLE if entity.rank is None else str(entity.rank),
            entity.tier,
        ]
        for entity, label in zip(ranked, labels)
    ]
    return markdown_table(
        ["Company (Ticker)", "Score", "Rank", "Recommendation"],
        rows,
        align=["l", "r", "r", "l"],
    )


def notes_list(notes: Sequence[str]) -> str:
    return "\n".join(f"- {note}" for note in notes)
