"""
Derived Metrics Engine

DESIGN DECISION: Every function here is PURE.
- Input is an explicit SnapshotData (never store state)
- Output is a new value object
- Nothing is mutated, nothing is raised

That lets the UI compute metrics for any snapshot without making
it active, and lets the advisor read the same numbers the user sees.

Amounts are summed as plain floats. Every ratio guards its
denominator with a strict `> 0`; a zero or negative denominator
makes the ratio 0.
"""

from typing import Any, Callable, Iterable

from finsnap.models.items import (
    CHART_LABELS,
    KIND_DISPLAY_NAMES,
    BaseItem,
    ItemKind,
    Liquidity,
    AssetCategory,
    raw_value,
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
from finsnap.models.snapshot import Snapshot, SnapshotData


OTHER_BUCKET = "other"
DEFAULT_SLICE_COLOR = "#6c757d"

CHART_COLORS = {
    ItemKind.ASSETS: {
        "cash": "#28a745",
        "investments": "#ffc107",
        "retirement": "#17a2b8",
        "property": "#6f42c1",
        "vehicles": "#fd7e14",
        "insurance": "#dc3545",
        "other": "#6c757d",
    },
    ItemKind.LIABILITIES: {
        "short-term": "#fd7e14",
        "medium-term": "#ffc107",
        "long-term": "#dc3545",
        "other": "#6c757d",
    },
    ItemKind.INCOMES: {
        "employment": "#28a745",
        "business": "#007bff",
        "passive": "#17a2b8",
        "other": "#6c757d",
    },
    ItemKind.EXPENSES: {
        "essential": "#dc3545",
        "variable": "#fd7e14",
        "discretionary": "#ffc107",
        "other": "#6c757d",
    },
}

BREAKDOWN_TITLES = {
    ItemKind.ASSETS: "Assets Breakdown",
    ItemKind.LIABILITIES: "Liabilities Breakdown",
    ItemKind.INCOMES: "Income Breakdown",
    ItemKind.EXPENSES: "Expenses Breakdown",
}

RATIO_LABELS = {
    "basic_liquidity": "Basic Liquidity Ratio",
    "debt_to_asset": "Debt-to-Asset Ratio",
    "solvency": "Solvency Ratio",
    "savings": "Savings Ratio",
    "liquid_assets_to_net_worth": "Liquid Assets to Net Worth Ratio",
}

RATIO_UNITS = {
    "basic_liquidity": RatioUnit.MONTHS,
    "debt_to_asset": RatioUnit.PERCENT,
    "solvency": RatioUnit.PERCENT,
    "savings": RatioUnit.PERCENT,
    "liquid_assets_to_net_worth": RatioUnit.PERCENT,
}


# =============================================================================
# TOTALS
# =============================================================================

def _total(items: Iterable[BaseItem]) -> float:
    total = 0.0
    for item in items:
        total += item.amount
    return total


def summary(data: SnapshotData) -> FinancialSummary:
    """
    Totals of one snapshot.

    net_worth = total_assets - total_liabilities
    savings   = total_income - total_expenses
    """
    total_assets = _total(data.assets)
    total_liabilities = _total(data.liabilities)
    total_income = _total(data.incomes)
    total_expenses = _total(data.expenses)

    return FinancialSummary(
        total_assets=total_assets,
        total_liabilities=total_liabilities,
        net_worth=total_assets - total_liabilities,
        total_income=total_income,
        total_expenses=total_expenses,
        savings=total_income - total_expenses,
    )


# =============================================================================
# RATIOS
# =============================================================================

def _percent(numerator: float, denominator: float) -> float:
    return numerator / denominator * 100 if denominator > 0 else 0.0


def ratios(data: SnapshotData) -> FinancialRatios:
    """
    The five financial ratios of one snapshot.

    - basic_liquidity: cash assets / monthly expenses, in months
    - debt_to_asset: liabilities / assets, %
    - solvency: net worth / assets, % (negative when net worth is)
    - savings: (income - expenses) / income, %
    - liquid_assets_to_net_worth: high-liquidity assets / net worth, %,
      only defined for a positive net worth
    """
    totals = summary(data)

    cash = _total(
        asset for asset in data.assets
        if asset.category == AssetCategory.CASH
    )
    liquid = _total(
        asset for asset in data.assets
        if asset.liquidity == Liquidity.HIGH
    )

    basic_liquidity = (
        cash / totals.total_expenses if totals.total_expenses > 0 else 0.0
    )

    return FinancialRatios(
        basic_liquidity=basic_liquidity,
        debt_to_asset=_percent(totals.total_liabilities, totals.total_assets),
        solvency=_percent(totals.net_worth, totals.total_assets),
        savings=_percent(totals.savings, totals.total_income),
        liquid_assets_to_net_worth=_percent(liquid, totals.net_worth),
    )


def classify_ratio(key: str, value: float) -> RatioHealth:
    """
    Three-band health of a ratio value.

    Thresholds are a presentation policy; callers needing another
    policy can apply it to the raw value instead.
    """
    if key == "basic_liquidity":
        if value < 3:
            return RatioHealth.NEGATIVE
        return RatioHealth.POSITIVE if value <= 6 else RatioHealth.WARNING

    if key == "debt_to_asset":
        if value < 20:
            return RatioHealth.POSITIVE
        return RatioHealth.WARNING if value <= 50 else RatioHealth.NEGATIVE

    if key == "solvency":
        if value > 20:
            return RatioHealth.POSITIVE
        return RatioHealth.WARNING if value >= 10 else RatioHealth.NEGATIVE

    if key in ("savings", "liquid_assets_to_net_worth"):
        if value >= 20:
            return RatioHealth.POSITIVE
        return RatioHealth.WARNING if value >= 10 else RatioHealth.NEGATIVE

    raise ValueError(f"Unknown ratio: {key}")


def format_ratio(value: float, unit: RatioUnit) -> str:
    """One decimal place, e.g. '2.0 months' or '20.0%'."""
    if unit == RatioUnit.MONTHS:
        return f"{value:.1f} months"
    return f"{value:.1f}%"


def ratio_readings(values: FinancialRatios) -> list[RatioReading]:
    """Each ratio with its label, unit, health band and display text."""
    readings = []
    for key, value in values.model_dump().items():
        unit = RATIO_UNITS[key]
        readings.append(RatioReading(
            key=key,
            label=RATIO_LABELS[key],
            value=value,
            unit=unit,
            health=classify_ratio(key, value),
            formatted=format_ratio(value, unit),
        ))
    return readings


# =============================================================================
# CATEGORY AGGREGATES
# =============================================================================

def category_aggregate(
    items: Iterable[BaseItem],
    key_fn: Callable[[BaseItem], Any],
) -> dict[str, float]:
    """
    Sum item amounts grouped by `key_fn(item)`.

    Items whose key is missing or falsy are grouped under "other".
    Keys appear in first-seen order.
    """
    totals: dict[str, float] = {}
    for item in items:
        key = raw_value(key_fn(item)) or OTHER_BUCKET
        totals[key] = totals.get(key, 0.0) + item.amount
    return totals


def assets_by_category(data: SnapshotData) -> dict[str, float]:
    return category_aggregate(data.assets, lambda item: item.category)


def liabilities_by_term(data: SnapshotData) -> dict[str, float]:
    return category_aggregate(data.liabilities, lambda item: item.term)


def incomes_by_category(data: SnapshotData) -> dict[str, float]:
    return category_aggregate(data.incomes, lambda item: item.category)


def expenses_by_category(data: SnapshotData) -> dict[str, float]:
    return category_aggregate(data.expenses, lambda item: item.category)


_AGGREGATES = {
    ItemKind.ASSETS: assets_by_category,
    ItemKind.LIABILITIES: liabilities_by_term,
    ItemKind.INCOMES: incomes_by_category,
    ItemKind.EXPENSES: expenses_by_category,
}


def breakdown(data: SnapshotData, kind: ItemKind) -> CategoryBreakdown:
    """Category aggregate of one kind as labelled, colored chart slices."""
    kind = ItemKind(kind)
    labels = CHART_LABELS[kind]
    colors = CHART_COLORS[kind]

    slices = [
        ChartSlice(
            key=key,
            label=labels.get(key, key),
            amount=amount,
            color=colors.get(key, DEFAULT_SLICE_COLOR),
        )
        for key, amount in _AGGREGATES[kind](data).items()
    ]
    return CategoryBreakdown(
        kind=kind.value,
        title=BREAKDOWN_TITLES.get(kind, KIND_DISPLAY_NAMES[kind]),
        total=_total(data.items(kind)),
        slices=slices,
    )


def build_dashboard(snapshot: Snapshot) -> Dashboard:
    """Everything needed to render one snapshot's analysis view."""
    values = ratios(snapshot.data)
    return Dashboard(
        snapshot_id=snapshot.id,
        snapshot_label=snapshot.label,
        summary=summary(snapshot.data),
        ratios=values,
        readings=ratio_readings(values),
        breakdowns=[breakdown(snapshot.data, kind) for kind in ItemKind],
    )
