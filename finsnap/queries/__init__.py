"""Query layer for item tables and the snapshot list."""

from finsnap.queries.items import (
    column_suggestions,
    column_value,
    filter_items,
    parse_filters,
    sort_items,
)
from finsnap.queries.snapshots import (
    format_snapshot_date,
    search_snapshots,
    sort_snapshots,
)

__all__ = [
    "column_suggestions",
    "column_value",
    "filter_items",
    "parse_filters",
    "sort_items",
    "format_snapshot_date",
    "search_snapshots",
    "sort_snapshots",
]
