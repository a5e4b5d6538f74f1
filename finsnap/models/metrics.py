"""
Derived Metrics Models

Results of the metrics engine. These are plain value objects:
the engine creates them, the UI and the advisor read them.
Ratios keep full float precision so any threshold policy can be
applied by the caller; health bands are provided for convenience.
"""

from enum import Enum

from pydantic import BaseModel, Field


class RatioHealth(str, Enum):
    """Three-band classification of a ratio value."""
    POSITIVE = "positive"
    WARNING = "warning"
    NEGATIVE = "negative"


class RatioUnit(str, Enum):
    MONTHS = "months"
    PERCENT = "%"


class FinancialSummary(BaseModel):
    """Totals for one snapshot."""

    total_assets: float = 0.0
    total_liabilities: float = 0.0
    net_worth: float = 0.0
    total_income: float = 0.0
    total_expenses: float = 0.0
    savings: float = 0.0


class FinancialRatios(BaseModel):
    """
    The five ratios, each guarded against a non-positive denominator.

    basic_liquidity is in months; the others are percentages.
    """

    basic_liquidity: float = Field(default=0.0, description="Cash / monthly expenses")
    debt_to_asset: float = Field(default=0.0, description="Liabilities / assets x 100")
    solvency: float = Field(default=0.0, description="Net worth / assets x 100")
    savings: float = Field(default=0.0, description="(Income - expenses) / income x 100")
    liquid_assets_to_net_worth: float = Field(
        default=0.0,
        description="High-liquidity assets / net worth x 100"
    )


class RatioReading(BaseModel):
    """One ratio with its unit, band and display text."""

    key: str
    label: str
    value: float
    unit: RatioUnit
    health: RatioHealth
    formatted: str


class ChartSlice(BaseModel):
    """One slice of a category breakdown."""

    key: str
    label: str
    amount: float
    color: str


class CategoryBreakdown(BaseModel):
    """Category aggregate for one item kind, ready for a pie chart."""

    kind: str
    title: str
    total: float = 0.0
    slices: list[ChartSlice] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.slices

    def as_mapping(self) -> dict[str, float]:
        return {slice_.key: slice_.amount for slice_ in self.slices}


class Dashboard(BaseModel):
    """Everything the UI needs to render one snapshot."""

    snapshot_id: str
    snapshot_label: str
    summary: FinancialSummary
    ratios: FinancialRatios
    readings: list[RatioReading] = Field(default_factory=list)
    breakdowns: list[CategoryBreakdown] = Field(default_factory=list)
