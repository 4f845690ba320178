"""Pytest configuration and fixtures."""

from typing import Any

import pytest

from stock_report.scoring.snapshot import FinancialSnapshot


@pytest.fixture
def full_payload() -> dict[str, Any]:
    """
    Snapshot payload with every component present.

    Expected scorecard: growth 50, profitability 70, valuation 0 (P/E 60),
    momentum 70, margin stability 100, pricing power 80, analyst
    conviction 62.5, moat 80.83, composite 53.17.
    """
    return {
        "symbol": "NVDA",
        "price": {"symbol": "NVDA", "price": "120.00", "changePercent": "1.5000%"},
        "overview": {
            "symbol": "NVDA",
            "name": "NVIDIA Corporation",
            "description": "NVIDIA designs GPUs for gaming and data centers. It also sells software.",
            "sector": "TECHNOLOGY",
            "industry": "SEMICONDUCTORS",
            "marketCapitalization": "3000000000000",
            "peRatio": "60",
            "eps": "2.00",
            "50DayMovingAverage": "100",
        },
        "basicFinancials": {
            "metric": {
                "revenueGrowth5Y": 40,
                "epsGrowth5Y": 60,
                "revenueGrowthTTM": 0.5,
                "epsGrowthTTM": 0.8,
                "grossMarginTTM": 0.7,
                "operatingMarginTTM": 0.5,
                "roeTTM": 0.9,
                "epsTTM": 2.1,
            }
        },
        "priceHistory": {
            "prices": [
                {"date": "2024-06-01", "close": "120"},
                {"date": "2024-01-01", "close": "100"},
            ]
        },
        "incomeStatement": {
            "quarterlyReports": [
                {"fiscalQuarter": "2024-06-30", "totalRevenue": "100", "grossProfit": "70", "operatingIncome": "50"},
                {"fiscalQuarter": "2024-03-31", "totalRevenue": "200", "grossProfit": "140", "operatingIncome": "100"},
                {"fiscalQuarter": "2023-12-31", "totalRevenue": "50", "grossProfit": "35", "operatingIncome": "25"},
            ]
        },
        "analystRatings": {"strongBuy": "10", "buy": "10", "hold": "0", "sell": "0", "strongSell": "0"},
        "priceTargets": {"targetHigh": 200, "targetLow": 100, "targetMean": 150, "targetMedian": 140},
        "earningsHistory": {
            "quarterlyEarnings": [
                {"fiscalQuarter": "2024-06-30", "reportedEPS": "0.68"},
                {"fiscalQuarter": "2024-03-31", "reportedEPS": "0.60"},
            ]
        },
        "companyNews": {
            "articles": [
                {"headline": "NVIDIA beats estimates"},
                {"headline": "New GPU launched"},
                {"headline": "Third headline"},
            ]
        },
    }


@pytest.fixture
def full_snapshot(full_payload: dict[str, Any]) -> FinancialSnapshot:
    """FinancialSnapshot built from full_payload."""
    return FinancialSnapshot.from_payload(full_payload)


@pytest.fixture
def sparse_snapshot() -> FinancialSnapshot:
    """Snapshot with only a quote and a name (no composite score)."""
    return FinancialSnapshot.from_payload(
        {
            "symbol": "XYZ",
            "price": {"price": "10"},
            "overview": {"symbol": "XYZ", "name": "XYZ Holdings"},
        }
    )


@pytest.fixture
def reports_dir(tmp_path, monkeypatch):
    """Point REPORTS_DIR at a temporary directory."""
    directory = tmp_path / "reports"
    monkeypatch.setenv("REPORTS_DIR", str(directory))
    return directory
