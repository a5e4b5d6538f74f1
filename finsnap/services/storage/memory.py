"""
In-Memory Storage Implementations

Used by tests and by the "memory" backend setting. Nothing
survives the process.
"""

from collections import deque
from typing import Optional

from finsnap.models.audit import AuditEvent
from finsnap.services.storage.interface import (
    AuditStorageInterface,
    DocumentStorageInterface,
)


class InMemoryStorage(DocumentStorageInterface):
    """Dict-backed document storage."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._values: dict[str, str] = dict(initial or {})
        self.write_count = 0

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value
        self.write_count += 1

    def delete(self, key: str) -> None:
        self._values.pop(key, None)


class InMemoryAuditStorage(AuditStorageInterface):
    """Bounded audit history; the oldest events drop off first."""

    def __init__(self, max_events: int = 200):
        self._events: deque[AuditEvent] = deque(maxlen=max_events)

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        return [
            event for event in self._events
            if event.entity_type == entity_type and event.entity_id == entity_id
        ]

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]

    def __len__(self) -> int:
        return len(self._events)
