"""Canonical per-symbol financial snapshot."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class FinancialSnapshot:
    """
    Immutable bundle of provider data for one symbol.

    Field names inside the mappings are the provider contract (``peRatio``,
    ``revenueGrowthTTM``, ``targetMean``...) and are read verbatim by the
    metric extractors. Any field may be empty.
    """

    symbol: str
    price: Mapping[str, Any] = field(default_factory=dict)
    overview: Mapping[str, Any] = field(default_factory=dict)
    metric: Mapping[str, Any] = field(default_factory=dict)
    prices: tuple[Mapping[str, Any], ...] = ()
    income_reports: tuple[Mapping[str, Any], ...] = ()
    analyst_ratings: Mapping[str, Any] = field(default_factory=dict)
    price_targets: Mapping[str, Any] = field(default_factory=dict)
    earnings: tuple[Mapping[str, Any], ...] = ()
    news: tuple[Mapping[str, Any], ...] = ()
    news_sentiment: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "symbol", str(self.symbol or "").upper().strip())

    @property
    def name(self) -> str:
        """Company name, falling back to the symbol."""
        name = self.overview.get("name")
        return str(name) if name else self.symbol

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> FinancialSnapshot:
        """
        Build a snapshot from the caller-assembled camelCase payload.

        Accepts ``overview`` or ``companyOverview``, ``basicFinancials.metric``,
        ``priceHistory.prices``, ``incomeStatement`` (quarterly reports first,
        then annual, or a bare list), ``earningsHistory.quarterlyEarnings`` and
        ``companyNews.articles``. Wrongly typed fields become empty; this never
        raises for malformed input.
        """
        if not isinstance(payload, Mapping):
            payload = {}

        overview = _mapping(payload.get("overview")) or _mapping(payload.get("companyOverview"))
        basic_financials = _mapping(payload.get("basicFinancials"))
        symbol = payload.get("symbol") or overview.get("symbol") or ""

        return cls(
            symbol=str(symbol),
            price=_mapping(payload.get("price")),
            overview=overview,
            metric=_mapping(basic_financials.get("metric")),
            prices=_records(_mapping(payload.get("priceHistory")).get("prices")),
            income_reports=_income_reports(payload.get("incomeStatement")),
            analyst_ratings=_mapping(payload.get("analystRatings")),
            price_targets=_mapping(payload.get("priceTargets")),
            earnings=_records(_mapping(payload.get("earningsHistory")).get("quarterlyEarnings")),
            news=_records(_mapping(payload.get("companyNews")).get("articles")),
            news_sentiment=_mapping(payload.get("newsSentiment")),
        )


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _records(value: Any) -> tuple[Mapping[str, Any], ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(item for item in value if isinstance(item, Mapping))


def _income_reports(value: Any) -> tuple[Mapping[str, Any], ...]:
    """Quarterly reports when present, otherwise annual, most recent first."""
    if isinstance(value, (list, tuple)):
        return _records(value)
    statement = _mapping(value)
    quarterly = _records(statement.get("quarterlyReports"))
    if quarterly:
        return quarterly
    return _records(statement.get("annualReports"))
