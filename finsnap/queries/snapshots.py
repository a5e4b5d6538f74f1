"""
Snapshot List Queries

Ordering and searching of the snapshot list shown in the sidebar.
Like the item queries, these return new lists and leave storage
order alone.
"""

from datetime import datetime, timezone
from typing import Iterable

from finsnap.models.query import SnapshotSortKey, SortDirection
from finsnap.models.snapshot import Snapshot


def format_snapshot_date(created_at: datetime) -> str:
    """e.g. 'Jan 5, 2024, 03:07 PM' (UTC)."""
    if created_at.tzinfo is not None:
        created_at = created_at.astimezone(timezone.utc)
    return (
        f"{created_at:%b} {created_at.day}, {created_at.year}, "
        f"{created_at:%I:%M %p}"
    )


def sort_snapshots(
    snapshots: Iterable[Snapshot],
    by: SnapshotSortKey = SnapshotSortKey.DATE,
    direction: SortDirection = SortDirection.DESC,
) -> list[Snapshot]:
    """Snapshots ordered by creation time or case-insensitive label."""
    if SnapshotSortKey(by) == SnapshotSortKey.LABEL:
        key = lambda snapshot: snapshot.label.lower()  # noqa: E731
    else:
        key = lambda snapshot: snapshot.created_at  # noqa: E731

    descending = SortDirection(direction) == SortDirection.DESC
    return sorted(snapshots, key=key, reverse=descending)


def search_snapshots(snapshots: Iterable[Snapshot], term: str) -> list[Snapshot]:
    """Snapshots whose label or formatted date contains `term`."""
    snapshots = list(snapshots)
    needle = (term or "").strip().lower()
    if not needle:
        return snapshots

    return [
        snapshot for snapshot in snapshots
        if needle in snapshot.label.lower()
        or needle in format_snapshot_date(snapshot.created_at).lower()
    ]
