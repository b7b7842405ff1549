"""tidyfetch.adapters: One adapter per upstream family, each with its normalizer."""

from tidyfetch.adapters.base import Adapter, parse_date, resolve_window, validate_symbol
from tidyfetch.adapters.fundamentals import FundamentalsAdapter, nest_statements, tidy_statement
from tidyfetch.adapters.layouts import FULL, LAYOUTS, PATCHED, ReportLayout, detect_layout
from tidyfetch.adapters.marketplace import (
    DatasetAdapter,
    DatatableAdapter,
    apply_dataset_policy,
    normalize_column_name,
)
from tidyfetch.adapters.quotes import QuoteSnapshotAdapter, coerce_quote_row
from tidyfetch.adapters.ratios import RatioReportAdapter, compute_valuation, parse_report
from tidyfetch.adapters.timeseries import TimeSeriesAdapter, normalize_series

ADAPTERS: tuple[type[Adapter], ...] = (
    TimeSeriesAdapter,
    FundamentalsAdapter,
    RatioReportAdapter,
    QuoteSnapshotAdapter,
    DatasetAdapter,
    DatatableAdapter,
)

__all__ = [
    "ADAPTERS",
    "Adapter",
    "TimeSeriesAdapter",
    "FundamentalsAdapter",
    "RatioReportAdapter",
    "QuoteSnapshotAdapter",
    "DatasetAdapter",
    "DatatableAdapter",
    "ReportLayout",
    "FULL",
    "PATCHED",
    "LAYOUTS",
    "detect_layout",
    "validate_symbol",
    "parse_date",
    "resolve_window",
    "normalize_series",
    "tidy_statement",
    "nest_statements",
    "parse_report",
    "compute_valuation",
    "coerce_quote_row",
    "normalize_column_name",
    "apply_dataset_policy",
]
