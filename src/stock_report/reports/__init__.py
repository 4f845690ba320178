"""Markdown report builders and persistence."""

from stock_report.reports.peer import build_peer_report
from stock_report.reports.sector import build_sector_report
from stock_report.reports.stock import build_stock_report
from stock_report.reports.storage import save_report

__all__ = [
    "build_peer_report",
    "build_sector_report",
    "build_stock_report",
    "save_report",
]
