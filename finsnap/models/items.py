"""
Item Models for FinSnap

A snapshot holds four lists of items: assets, liabilities, incomes
and expenses. Each kind is its own model so that the categorical
fields valid for that kind are enforced by the schema.

DESIGN DECISION: Categorical fields are Optional. A missing category
is a legitimate state (the user skipped the dropdown) and every
aggregation treats it as its own bucket rather than an error.

Amounts are coerced, never rejected: anything that is not a finite
non-negative number becomes 0.
"""

import math
import re
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ItemKind(str, Enum):
    """The four item collections of a snapshot."""
    ASSETS = "assets"
    LIABILITIES = "liabilities"
    INCOMES = "incomes"
    EXPENSES = "expenses"


class AssetCategory(str, Enum):
    CASH = "cash"
    INVESTMENTS = "investments"
    RETIREMENT = "retirement"
    PROPERTY = "property"
    VEHICLES = "vehicles"
    INSURANCE = "insurance"
    OTHER = "other"


class Liquidity(str, Enum):
    """How quickly an asset converts to cash without loss of value."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class LiabilityTerm(str, Enum):
    SHORT_TERM = "short-term"
    MEDIUM_TERM = "medium-term"
    LONG_TERM = "long-term"


class IncomeCategory(str, Enum):
    EMPLOYMENT = "employment"
    BUSINESS = "business"
    PASSIVE = "passive"
    OTHER = "other"


class ExpenseCategory(str, Enum):
    ESSENTIAL = "essential"
    VARIABLE = "variable"
    DISCRETIONARY = "discretionary"
    OTHER = "other"


# =============================================================================
# AMOUNT COERCION
# =============================================================================

# Leading numeric prefix, the way a browser parses "120.5 USD" as 120.5
_NUMERIC_PREFIX = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def coerce_amount(value: Any) -> float:
    """
    Coerce any input to a non-negative finite float.

    Invalid, negative, infinite and NaN inputs all become 0.
    Coercion is idempotent: coerce_amount(coerce_amount(x)) == coerce_amount(x).
    """
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return 0.0
    elif isinstance(value, str):
        match = _NUMERIC_PREFIX.match(value.strip())
        if not match:
            return 0.0
        try:
            number = float(match.group(0))
        except (OverflowError, ValueError):
            return 0.0
    else:
        return 0.0

    if not math.isfinite(number) or number <= 0:
        return 0.0
    return number


def blank_to_none(value: Any) -> Any:
    """Empty or whitespace-only categorical values mean "not specified"."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


# =============================================================================
# ITEM MODELS
# =============================================================================

class BaseItem(BaseModel):
    """
    Fields shared by every item kind.

    The name is stored stripped. Emptiness is rejected by the store
    when items are created or updated, not here, so that legacy
    documents with blank names can still be loaded.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        extra="allow",
    )

    name: str = Field(
        default="",
        description="Display name of the item"
    )
    amount: float = Field(
        default=0.0,
        ge=0,
        description="Non-negative amount"
    )

    @field_validator('name', mode='before')
    @classmethod
    def none_name_is_blank(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator('amount', mode='before')
    @classmethod
    def coerce_amount_field(cls, v: Any) -> float:
        return coerce_amount(v)


class Asset(BaseItem):
    category: Optional[AssetCategory] = None
    liquidity: Optional[Liquidity] = None

    @field_validator('category', 'liquidity', mode='before')
    @classmethod
    def blank_is_unspecified(cls, v: Any) -> Any:
        return blank_to_none(v)


class Liability(BaseItem):
    term: Optional[LiabilityTerm] = None

    @field_validator('term', mode='before')
    @classmethod
    def blank_is_unspecified(cls, v: Any) -> Any:
        return blank_to_none(v)


class Income(BaseItem):
    category: Optional[IncomeCategory] = None

    @field_validator('category', mode='before')
    @classmethod
    def blank_is_unspecified(cls, v: Any) -> Any:
        return blank_to_none(v)


class Expense(BaseItem):
    category: Optional[ExpenseCategory] = None

    @field_validator('category', mode='before')
    @classmethod
    def blank_is_unspecified(cls, v: Any) -> Any:
        return blank_to_none(v)


Item = Union[Asset, Liability, Income, Expense]

ITEM_MODELS: dict[ItemKind, type[BaseItem]] = {
    ItemKind.ASSETS: Asset,
    ItemKind.LIABILITIES: Liability,
    ItemKind.INCOMES: Income,
    ItemKind.EXPENSES: Expense,
}


def categorical_fields(kind: ItemKind) -> tuple[str, ...]:
    """Names of the optional categorical fields an item kind carries."""
    model = ITEM_MODELS[ItemKind(kind)]
    return tuple(
        name for name in model.model_fields
        if name not in BaseItem.model_fields
    )


class ItemUpdate(BaseModel):
    """
    Partial update for one item.

    Only fields explicitly passed are applied. Passing None or ""
    for a categorical field clears it; omitting the field leaves
    the stored value unchanged. Use `changes()` to read the
    explicitly-set fields.
    """
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    amount: Any = None
    category: Optional[str] = None
    liquidity: Optional[str] = None
    term: Optional[str] = None

    def changes(self) -> dict[str, Any]:
        return {
            field: getattr(self, field)
            for field in self.model_fields_set
        }


# =============================================================================
# DISPLAY NAMES
# =============================================================================

KIND_DISPLAY_NAMES = {
    ItemKind.ASSETS: "Assets",
    ItemKind.LIABILITIES: "Liabilities",
    ItemKind.INCOMES: "Income",
    ItemKind.EXPENSES: "Expenses",
}

ASSET_CATEGORY_DISPLAY_NAMES = {
    "cash": "Cash Equivalents",
    "investments": "Investments",
    "retirement": "Retirement",
    "property": "Property",
    "vehicles": "Vehicles",
    "insurance": "Insurance (Cash Value)",
    "other": "Other Assets",
}

LIQUIDITY_DISPLAY_NAMES = {
    "high": "High",
    "medium": "Medium",
    "low": "Low",
}

LIABILITY_TERM_DISPLAY_NAMES = {
    "short-term": "Short-Term",
    "medium-term": "Medium-Term",
    "long-term": "Long-Term",
}

INCOME_CATEGORY_DISPLAY_NAMES = {
    "employment": "Employment Income",
    "business": "Business / Self-Employment Income",
    "passive": "Passive Income",
    "other": "Other Income",
}

EXPENSE_CATEGORY_DISPLAY_NAMES = {
    "essential": "Essential / Fixed",
    "variable": "Variable / Living",
    "discretionary": "Discretionary / Lifestyle",
    "other": "Other Expenses",
}

# Shorter labels used for chart legends
CHART_LABELS = {
    ItemKind.ASSETS: {
        "cash": "Cash Equivalents",
        "investments": "Investments",
        "retirement": "Retirement",
        "property": "Property",
        "vehicles": "Vehicles",
        "insurance": "Insurance",
        "other": "Other Assets",
    },
    ItemKind.LIABILITIES: {
        "short-term": "Short-Term",
        "medium-term": "Medium-Term",
        "long-term": "Long-Term",
        "other": "Other",
    },
    ItemKind.INCOMES: {
        "employment": "Employment",
        "business": "Business",
        "passive": "Passive",
        "other": "Other",
    },
    ItemKind.EXPENSES: {
        "essential": "Essential/Fixed",
        "variable": "Variable/Living",
        "discretionary": "Discretionary",
        "other": "Other",
    },
}


def raw_value(value: Any) -> str:
    """Stored string for a categorical value ('' when missing)."""
    if value is None:
        return ""
    if isinstance(value, Enum):
        return value.value
    return str(value)


def display_name(kind: ItemKind, column: str, value: Any) -> str:
    """
    Human-readable value of a categorical column.

    Unknown values are returned as-is; missing values as ''.
    """
    raw = raw_value(value)
    if not raw:
        return ""

    kind = ItemKind(kind)
    if column == "liquidity":
        table = LIQUIDITY_DISPLAY_NAMES
    elif column == "term":
        table = LIABILITY_TERM_DISPLAY_NAMES
    elif column == "category" and kind == ItemKind.INCOMES:
        table = INCOME_CATEGORY_DISPLAY_NAMES
    elif column == "category" and kind == ItemKind.EXPENSES:
        table = EXPENSE_CATEGORY_DISPLAY_NAMES
    elif column == "category":
        table = ASSET_CATEGORY_DISPLAY_NAMES
    else:
        return raw

    return table.get(raw, raw)


def format_currency(amount: float, symbol: str = "$") -> str:
    """Format an amount the way tables show it, e.g. $1,234.50."""
    if amount < 0:
        return f"-{symbol}{abs(amount):,.2f}"
    return f"{symbol}{amount:,.2f}"
