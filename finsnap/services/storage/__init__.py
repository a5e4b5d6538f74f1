"""
Storage Services Package

Provides the abstract persistence interface and concrete backends.
The snapshot store only ever talks to DocumentStorageInterface.
"""

from finsnap.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DocumentStorageInterface,
    StorageError,
)
from finsnap.services.storage.json_file import JsonFileStorage
from finsnap.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "DocumentStorageInterface",
    # Exceptions
    "ConnectionError",
    "StorageError",
    # Implementations
    "InMemoryAuditStorage",
    "InMemoryStorage",
    "JsonFileStorage",
]
