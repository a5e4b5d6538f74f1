"""Services package."""

from finsnap.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    DocumentStorageInterface,
    InMemoryAuditStorage,
    InMemoryStorage,
    JsonFileStorage,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "ConnectionError",
    "DocumentStorageInterface",
    "InMemoryAuditStorage",
    "InMemoryStorage",
    "JsonFileStorage",
    "StorageError",
]
