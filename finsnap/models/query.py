"""
Query Models (sort and filter parameters)

These describe how a table of items should be ordered and
narrowed. They carry no behavior; the query layer applies them.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


TEXT_COLUMNS = ("name", "category", "term", "liquidity")
SORTABLE_COLUMNS = TEXT_COLUMNS + ("amount",)
SELECT_COLUMNS = ("category", "liquidity", "term")

# Select filters match items with no value against this token
NOT_SPECIFIED = "not specified"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class SnapshotSortKey(str, Enum):
    DATE = "date"
    LABEL = "label"


class AmountOperator(str, Enum):
    GREATER = "greater"
    LESS = "less"
    GREATER_EQUAL = "greater_equal"
    LESS_EQUAL = "less_equal"
    EQUAL = "equal"
    BETWEEN = "between"


class AmountFilter(BaseModel):
    """Numeric comparison against the amount column."""

    operator: AmountOperator
    value: float
    upper: Optional[float] = Field(
        default=None,
        description="Second operand, required for 'between'"
    )

    @model_validator(mode='after')
    def between_needs_upper(self) -> 'AmountFilter':
        if self.operator == AmountOperator.BETWEEN and self.upper is None:
            raise ValueError("'between' requires an upper bound")
        return self

    @classmethod
    def parse(cls, expression: str) -> Optional['AmountFilter']:
        """
        Parse the compact "operator:value[:upper]" form.

        Returns None when the expression is not an operator filter
        or the first operand is not numeric.
        """
        parts = expression.split(":")
        if len(parts) < 2:
            return None
        try:
            operator = AmountOperator(parts[0])
            value = float(parts[1])
        except ValueError:
            return None

        upper = None
        if len(parts) > 2 and parts[2]:
            try:
                upper = float(parts[2])
            except ValueError:
                return None
        if operator == AmountOperator.BETWEEN and upper is None:
            return None
        return cls(operator=operator, value=value, upper=upper)

    def matches(self, amount: float) -> bool:
        if self.operator == AmountOperator.GREATER:
            return amount > self.value
        if self.operator == AmountOperator.LESS:
            return amount < self.value
        if self.operator == AmountOperator.GREATER_EQUAL:
            return amount >= self.value
        if self.operator == AmountOperator.LESS_EQUAL:
            return amount <= self.value
        if self.operator == AmountOperator.EQUAL:
            return amount == self.value
        return self.value <= amount <= self.upper


class ItemFilters(BaseModel):
    """
    A predicate set over one item table.

    - text: column -> substring matched against the display value
    - amount: numeric comparison on the amount column
    - selections: column -> allow-list of raw values

    Empty entries impose no constraint. Every active predicate
    must pass for an item to be kept.
    """

    text: dict[str, str] = Field(default_factory=dict)
    amount: Optional[AmountFilter] = None
    selections: dict[str, list[str]] = Field(default_factory=dict)

    @field_validator('text')
    @classmethod
    def drop_blank_text(cls, v: dict[str, str]) -> dict[str, str]:
        return {column: term for column, term in v.items() if term and term.strip()}

    @field_validator('selections')
    @classmethod
    def drop_empty_selections(cls, v: dict[str, list[str]]) -> dict[str, list[str]]:
        return {column: values for column, values in v.items() if values}

    @property
    def is_empty(self) -> bool:
        return not self.text and self.amount is None and not self.selections
