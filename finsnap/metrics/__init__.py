"""Derived metrics package."""

from finsnap.metrics.engine import (
    CHART_COLORS,
    OTHER_BUCKET,
    assets_by_category,
    breakdown,
    build_dashboard,
    category_aggregate,
    classify_ratio,
    expenses_by_category,
    format_ratio,
    incomes_by_category,
    liabilities_by_term,
    ratio_readings,
    ratios,
    summary,
)

__all__ = [
    "CHART_COLORS",
    "OTHER_BUCKET",
    "assets_by_category",
    "breakdown",
    "build_dashboard",
    "category_aggregate",
    "classify_ratio",
    "expenses_by_category",
    "format_ratio",
    "incomes_by_category",
    "liabilities_by_term",
    "ratio_readings",
    "ratios",
    "summary",
]
