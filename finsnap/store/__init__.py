"""Snapshot store package."""

from finsnap.exceptions import (
    MalformedDocumentError,
    NoActiveSnapshotError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from finsnap.store.snapshot_store import (
    DEFAULT_DOCUMENT_KEY,
    SnapshotStore,
)

__all__ = [
    "DEFAULT_DOCUMENT_KEY",
    "SnapshotStore",
    # Errors
    "MalformedDocumentError",
    "NoActiveSnapshotError",
    "NotFoundError",
    "StoreError",
    "ValidationError",
]
