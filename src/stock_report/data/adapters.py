"""Provider payload adapters.

Map raw Alpha Vantage / Finnhub JSON to the canonical camelCase shapes read by
``FinancialSnapshot``. Values are passed through verbatim (sentinels such as
"None" or "-" included); numeric parsing happens downstream in ``to_number``.

Each adapter raises ``ValueError`` when the payload lacks the section it maps.
"""

from typing import Any

# Alpha Vantage OVERVIEW field -> canonical overview key
OVERVIEW_FIELDS: dict[str, str] = {
    "Symbol": "symbol",
    "Name": "name",
    "Description": "description",
    "Sector": "sector",
    "Industry": "industry",
    "MarketCapitalization": "marketCapitalization",
    "EPS": "eps",
    "PERatio": "peRatio",
    "ForwardPE": "forwardPE",
    "PEGRatio": "pegRatio",
    "BookValue": "bookValue",
    "DividendPerShare": "dividendPerShare",
    "DividendYield": "dividendYield",
    "RevenueTTM": "revenueTTM",
    "GrossProfitTTM": "grossProfitTTM",
    "52WeekHigh": "52WeekHigh",
    "52WeekLow": "52WeekLow",
    "50DayMovingAverage": "50DayMovingAverage",
    "200DayMovingAverage": "200DayMovingAverage",
    "Beta": "beta",
    "ProfitMargin": "profitMargin",
    "OperatingMarginTTM": "operatingMargin",
    "ReturnOnAssetsTTM": "returnOnAssets",
    "ReturnOnEquityTTM": "returnOnEquity",
    "RevenuePerShareTTM": "revenuePerShare",
    "QuarterlyEarningsGrowthYOY": "quarterlyEarningsGrowth",
    "QuarterlyRevenueGrowthYOY": "quarterlyRevenueGrowth",
    "SharesOutstanding": "sharesOutstanding",
    "AnalystTargetPrice": "analystTargetPrice",
    "AnalystRatingStrongBuy": "analystRatingStrongBuy",
    "AnalystRatingBuy": "analystRatingBuy",
    "AnalystRatingHold": "analystRatingHold",
    "AnalystRatingSell": "analystRatingSell",
    "AnalystRatingStrongSell": "analystRatingStrongSell",
    "ExDividendDate": "exDividendDate",
    "DividendDate": "dividendDate",
}

# Upstream returns newest first; only the most recent points are kept
MAX_HISTORY_POINTS = 30
MAX_QUARTERLY_REPORTS = 8
MAX_ANNUAL_REPORTS = 5
MAX_QUARTERLY_EARNINGS = 12
MAX_ANNUAL_EARNINGS = 10
MAX_NEWS_ARTICLES = 20

_STATEMENT_FIELDS = ("totalRevenue", "grossProfit", "operatingIncome", "netIncome", "ebitda")


def _missing(value: Any) -> bool:
    return value is None or value == ""


def _or_na(value: Any) -> Any:
    return "N/A" if _missing(value) else value


def adapt_global_quote(data: dict[str, Any]) -> dict[str, Any]:
    """GLOBAL_QUOTE -> {symbol, price, change, changePercent, volume, latestTradingDay}."""
    quote = data.get("Global Quote")
    if not quote:
        raise ValueError("Unable to fetch stock price")
    return {
        "symbol": quote.get("01. symbol"),
        "price": quote.get("05. price"),
        "change": quote.get("09. change"),
        "changePercent": quote.get("10. change percent"),
        "volume": quote.get("06. volume"),
        "latestTradingDay": quote.get("07. latest trading day"),
    }


def adapt_time_series(data: dict[str, Any], symbol: str) -> dict[str, Any]:
    """TIME_SERIES_* -> {symbol, prices: [{date, open, high, low, close, volume}]}."""
    series_key = next((key for key in data if "Time Series" in key), None)
    if series_key is None:
        raise ValueError("Unable to fetch price history")

    prices = [
        {
            "date": date,
            "open": values.get("1. open"),
            "high": values.get("2. high"),
            "low": values.get("3. low"),
            "close": values.get("4. close"),
            "volume": values.get("5. volume"),
        }
        for date, values in list(data[series_key].items())[:MAX_HISTORY_POINTS]
    ]
    return {"symbol": symbol.upper(), "prices": prices}


def adapt_overview(data: dict[str, Any]) -> dict[str, Any]:
    """OVERVIEW -> canonical overview map (see ``OVERVIEW_FIELDS``)."""
    if not data.get("Symbol"):
        raise ValueError("Unable to fetch company overview")
    return {target: data.get(source) for source, target in OVERVIEW_FIELDS.items()}


def adapt_analyst_ratings(data: dict[str, Any], symbol: str) -> dict[str, Any]:
    """
    OVERVIEW -> analyst ratings map.

    Missing values become "N/A", which ``to_number`` treats as absent.
    """
    target = data.get("AnalystTargetPrice")
    moving_average = data.get("50DayMovingAverage")
    return {
        "symbol": symbol.upper(),
        "analystTargetPrice": _or_na(target),
        "strongBuy": _or_na(data.get("AnalystRatingStrongBuy")),
        "buy": _or_na(data.get("AnalystRatingBuy")),
        "hold": _or_na(data.get("AnalystRatingHold")),
        "sell": _or_na(data.get("AnalystRatingSell")),
        "strongSell": _or_na(data.get("AnalystRatingStrongSell")),
        "movingAverage50Day": _or_na(moving_average),
    }


def _statement_rows(reports: Any, period_key: str, limit: int) -> list[dict[str, Any]]:
    if not isinstance(reports, list):
        return []
    return [
        {period_key: report.get("fiscalDateEnding"), **{f: report.get(f) for f in _STATEMENT_FIELDS}}
        for report in reports[:limit]
        if isinstance(report, dict)
    ]


def adapt_income_statement(data: dict[str, Any], symbol: str) -> dict[str, Any]:
    """INCOME_STATEMENT -> {symbol, quarterlyReports[:8], annualReports[:5]}."""
    if not data.get("quarterlyReports"):
        raise ValueError("Unable to fetch income statement")
    return {
        "symbol": symbol.upper(),
        "quarterlyReports": _statement_rows(data["quarterlyReports"], "fiscalQuarter", MAX_QUARTERLY_REPORTS),
        "annualReports": _statement_rows(data.get("annualReports"), "fiscalYear", MAX_ANNUAL_REPORTS),
    }


def adapt_earnings(data: dict[str, Any], symbol: str) -> dict[str, Any]:
    """EARNINGS -> {symbol, quarterlyEarnings[:12], annualEarnings[:10]}."""
    quarterly = data.get("quarterlyEarnings")
    if not quarterly:
        raise ValueError("Unable to fetch earnings history")
    return {
        "symbol": symbol.upper(),
        "quarterlyEarnings": [
            {
                "fiscalQuarter": e.get("fiscalDateEnding"),
                "reportedEPS": e.get("reportedEPS"),
                "estimatedEPS": e.get("estimatedEPS"),
                "surprise": e.get("surprise"),
                "surprisePercentage": e.get("surprisePercentage"),
            }
            for e in quarterly[:MAX_QUARTERLY_EARNINGS]
        ],
        "annualEarnings": [
            {"fiscalYear": e.get("fiscalDateEnding"), "reportedEPS": e.get("reportedEPS")}
            for e in (data.get("annualEarnings") or [])[:MAX_ANNUAL_EARNINGS]
        ],
    }


def adapt_symbol_search(data: dict[str, Any]) -> list[dict[str, Any]]:
    """SYMBOL_SEARCH bestMatches -> [{symbol, name, type, region, currency, matchScore, source}]."""
    matches = data.get("bestMatches") or []
    return [
        {
            "symbol": match.get("1. symbol"),
            "name": match.get("2. name"),
            "type": match.get("3. type"),
            "region": match.get("4. region"),
            "currency": match.get("8. currency"),
            "matchScore": match.get("9. matchScore"),
            "source": "alphavantage",
        }
        for match in matches
        if match.get("1. symbol")
    ]


def adapt_finnhub_search(data: dict[str, Any]) -> list[dict[str, Any]]:
    """Finnhub /search -> same row shape as ``adapt_symbol_search``."""
    results = data.get("result") if isinstance(data, dict) else None
    if not isinstance(results, list):
        return []
    return [
        {
            "symbol": item.get("symbol"),
            "name": item.get("description"),
            "type": item.get("type"),
            "exchange": item.get("exchange"),
            "source": "finnhub",
        }
        for item in results
        if item.get("symbol")
    ]


def adapt_basic_financials(data: dict[str, Any], symbol: str) -> dict[str, Any]:
    """Finnhub /stock/metric -> {symbol, metric, series}."""
    if not isinstance(data, dict) or not (data.get("metric") or data.get("series")):
        raise ValueError("Unable to fetch basic financials")
    return {
        "symbol": symbol.upper(),
        "metric": data.get("metric") or {},
        "series": data.get("series") or {},
    }


def adapt_price_targets(data: dict[str, Any], symbol: str) -> dict[str, Any]:
    """Finnhub /stock/price-target -> target map (targetHigh/Low/Mean/Median...)."""
    if not isinstance(data, dict) or not data:
        raise ValueError("Unable to fetch price targets")
    return {**data, "symbol": symbol.upper()}


def adapt_peers(data: Any, symbol: str) -> list[str]:
    """Finnhub /stock/peers -> ticker list."""
    if not isinstance(data, list):
        raise ValueError("Unable to fetch peers")
    return [str(peer).upper() for peer in data if peer]


def adapt_company_news(data: Any, symbol: str) -> dict[str, Any]:
    """Finnhub /company-news -> {symbol, articles[:20]}."""
    if not isinstance(data, list):
        raise ValueError("Unable to fetch company news")
    return {
        "symbol": symbol.upper(),
        "articles": [article for article in data[:MAX_NEWS_ARTICLES] if isinstance(article, dict)],
    }


def merge_search_results(*groups: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Concatenate search rows, dropping repeated symbols (case-insensitive, first wins)."""
    seen: set[str] = set()
    merged: list[dict[str, Any]] = []
    for group in groups:
        for row in group:
            key = str(row.get("symbol") or "").upper()
            if not key or key in seen:
                continue
            seen.add(key)
            merged.append(row)
    return merged


def basic_financials_from_overview(overview: dict[str, Any]) -> dict[str, Any]:
    """
    Derive a basic-financials ``metric`` map from an adapted overview.

    Used when Finnhub is not configured or fails. Gross margin is
    grossProfitTTM / revenueTTM when both parse, else the profit margin.
    """
    try:
        revenue = float(overview.get("revenueTTM"))
        gross_profit = float(overview.get("grossProfitTTM"))
        gross_margin = gross_profit / revenue if revenue else overview.get("profitMargin")
    except (TypeError, ValueError):
        gross_margin = overview.get("profitMargin")
    return {
        "symbol": overview.get("symbol"),
        "metric": {
            "peBasicExclExtraTTM": overview.get("peRatio"),
            "epsTTM": overview.get("eps"),
            "revenueGrowthTTM": overview.get("quarterlyRevenueGrowth"),
            "epsGrowthTTM": overview.get("quarterlyEarningsGrowth"),
            "grossMarginTTM": gross_margin,
            "operatingMarginTTM": overview.get("operatingMargin"),
            "roeTTM": overview.get("returnOnEquity"),
            "revenuePerShareTTM": overview.get("revenuePerShare"),
        },
        "series": {},
        "derived": True,
    }
