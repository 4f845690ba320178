"""Utility modules."""

from stock_report.utils.numeric import (
    average,
    clamp_score,
    first_present,
    normalize_percent,
    to_number,
)
from stock_report.utils.provenance import build_error_response, build_meta, build_provenance
from stock_report.utils.sanitize import first_sentence, sanitize_text
from stock_report.utils.search import build_search_queries, matched_terms, query_tokens
from stock_report.utils.series import downsample, filter_series, format_date_label
from stock_report.utils.validators import ReportParams, normalize_symbol

__all__ = [
    "average",
    "clamp_score",
    "first_present",
    "normalize_percent",
    "to_number",
    "build_error_response",
    "build_meta",
    "build_provenance",
    "first_sentence",
    "sanitize_text",
    "build_search_queries",
    "matched_terms",
    "query_tokens",
    "downsample",
    "filter_series",
    "format_date_label",
    "ReportParams",
    "normalize_symbol",
]
