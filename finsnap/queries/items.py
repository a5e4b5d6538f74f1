"""
Item Table Queries

DESIGN DECISION: Sorting and filtering are read-only views.
They always return a NEW list and never reorder or drop items in
the snapshot itself, so a table can be re-queried freely while the
stored order stays the positional identity used by the store.

Text comparisons use the display value of a column ("Cash
Equivalents", not "cash") because that is what the user sees and
types into a filter box.
"""

from typing import Any, Iterable, Mapping, Optional, Union

from finsnap.models.items import (
    BaseItem,
    ITEM_MODELS,
    ItemKind,
    display_name,
    format_currency,
    raw_value,
)
from finsnap.models.query import (
    NOT_SPECIFIED,
    SELECT_COLUMNS,
    TEXT_COLUMNS,
    AmountFilter,
    ItemFilters,
    SortDirection,
)


_KIND_BY_MODEL = {model: kind for kind, model in ITEM_MODELS.items()}


def _infer_kind(items: list[BaseItem], kind: Optional[ItemKind]) -> ItemKind:
    if kind is not None:
        return ItemKind(kind)
    for item in items:
        if type(item) in _KIND_BY_MODEL:
            return _KIND_BY_MODEL[type(item)]
    return ItemKind.ASSETS


def column_value(item: BaseItem, column: str, kind: ItemKind) -> str:
    """Display string of one cell; '' for a missing value."""
    if column == "name":
        return item.name
    if column == "amount":
        return format_currency(item.amount)
    return display_name(kind, column, getattr(item, column, None))


# =============================================================================
# SORTING
# =============================================================================

def sort_items(
    items: Iterable[BaseItem],
    column: Optional[str],
    direction: SortDirection = SortDirection.ASC,
    kind: Optional[ItemKind] = None,
) -> list[BaseItem]:
    """
    Stable sort of an item list by one column.

    Text columns compare case-insensitively on the display value,
    with missing values sorting as ''. `amount` compares numerically.
    Ties keep their original relative order in both directions.
    A None or unknown column returns the items in storage order.
    """
    items = list(items)
    if column == "amount":
        key = lambda item: item.amount  # noqa: E731
    elif column in TEXT_COLUMNS:
        kind = _infer_kind(items, kind)
        key = lambda item: column_value(item, column, kind).lower()  # noqa: E731
    else:
        return items

    descending = SortDirection(direction) == SortDirection.DESC
    return sorted(items, key=key, reverse=descending)


# =============================================================================
# FILTERING
# =============================================================================

def parse_filters(raw: Mapping[str, Any]) -> ItemFilters:
    """
    Build ItemFilters from the flat form a table UI keeps.

    - "<column>": substring text
    - "amount": "operator:value[:upper]" or plain substring text
    - "<column>_select": list of allowed raw values
    """
    text: dict[str, str] = {}
    selections: dict[str, list[str]] = {}
    amount: Optional[AmountFilter] = None

    for key, value in raw.items():
        if not value:
            continue
        if key.endswith("_select"):
            if isinstance(value, str):
                value = [value]
            selections[key[: -len("_select")]] = list(value)
        elif key == "amount" and ":" in str(value):
            amount = AmountFilter.parse(str(value))
        else:
            text[key] = str(value)

    return ItemFilters(text=text, amount=amount, selections=selections)


def _matches(item: BaseItem, filters: ItemFilters, kind: ItemKind) -> bool:
    for column, allowed in filters.selections.items():
        if column not in SELECT_COLUMNS:
            continue
        value = raw_value(getattr(item, column, None)) or NOT_SPECIFIED
        if value not in allowed:
            return False

    if filters.amount is not None and not filters.amount.matches(item.amount):
        return False

    for column, term in filters.text.items():
        if column not in TEXT_COLUMNS and column != "amount":
            continue
        if term.lower() not in column_value(item, column, kind).lower():
            return False

    return True


def filter_items(
    items: Iterable[BaseItem],
    filters: Union[ItemFilters, Mapping[str, Any], None],
    kind: Optional[ItemKind] = None,
) -> list[BaseItem]:
    """
    Items passing every active predicate (logical AND).

    Select, amount and text predicates compose. An empty predicate
    set keeps everything. Unknown columns impose no constraint.
    Filtering is idempotent for a fixed predicate set.
    """
    items = list(items)
    if filters is None:
        return items
    if not isinstance(filters, ItemFilters):
        filters = parse_filters(filters)
    if filters.is_empty:
        return items

    kind = _infer_kind(items, kind)
    return [item for item in items if _matches(item, filters, kind)]


def column_suggestions(
    items: Iterable[BaseItem],
    column: str,
    kind: Optional[ItemKind] = None,
    search: str = "",
) -> list[str]:
    """Distinct non-empty display values of a column, sorted, for autocomplete."""
    items = list(items)
    kind = _infer_kind(items, kind)
    search = search.strip().lower()

    values = {column_value(item, column, kind) for item in items}
    return sorted(
        value for value in values
        if value and search in value.lower()
    )
