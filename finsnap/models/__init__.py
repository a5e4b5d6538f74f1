"""
Data Models Package

This package contains all Pydantic models used in FinSnap.
All data flowing through the system must conform to these schemas.
"""

from finsnap.models.items import (
    Asset,
    AssetCategory,
    BaseItem,
    Expense,
    ExpenseCategory,
    Income,
    IncomeCategory,
    Item,
    ItemKind,
    ItemUpdate,
    Liability,
    LiabilityTerm,
    Liquidity,
    coerce_amount,
    display_name,
    format_currency,
)
from finsnap.models.snapshot import (
    Document,
    Snapshot,
    SnapshotData,
)
from finsnap.models.metrics import (
    CategoryBreakdown,
    ChartSlice,
    Dashboard,
    FinancialRatios,
    FinancialSummary,
    RatioHealth,
    RatioReading,
    RatioUnit,
)
from finsnap.models.query import (
    AmountFilter,
    AmountOperator,
    ItemFilters,
    SnapshotSortKey,
    SortDirection,
)
from finsnap.models.validation import ValidationIssue, ValidationResult
from finsnap.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Item models
    "Asset",
    "AssetCategory",
    "BaseItem",
    "Expense",
    "ExpenseCategory",
    "Income",
    "IncomeCategory",
    "Item",
    "ItemKind",
    "ItemUpdate",
    "Liability",
    "LiabilityTerm",
    "Liquidity",
    "coerce_amount",
    "display_name",
    "format_currency",
    # Snapshot models
    "Document",
    "Snapshot",
    "SnapshotData",
    # Metrics models
    "CategoryBreakdown",
    "ChartSlice",
    "Dashboard",
    "FinancialRatios",
    "FinancialSummary",
    "RatioHealth",
    "RatioReading",
    "RatioUnit",
    # Query models
    "AmountFilter",
    "AmountOperator",
    "ItemFilters",
    "SnapshotSortKey",
    "SortDirection",
    # Validation models
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
