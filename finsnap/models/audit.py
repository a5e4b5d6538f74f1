"""
Audit Models for FinSnap

Every store mutation (and every rejected one) is recorded as an
audit event. This provides:
1. Traceability of how a document reached its current state
2. Debugging information when an import or persist fails
3. A short history the UI can show

DESIGN DECISION: Logged events are never edited. Sinks may keep a
bounded history, so the oldest events can fall out of it.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Snapshot lifecycle
    SNAPSHOT_CREATED = "snapshot_created"
    SNAPSHOT_DUPLICATED = "snapshot_duplicated"
    SNAPSHOT_RENAMED = "snapshot_renamed"
    SNAPSHOT_DELETED = "snapshot_deleted"
    SNAPSHOT_SWITCHED = "snapshot_switched"

    # Item mutations
    ITEM_ADDED = "item_added"
    ITEM_UPDATED = "item_updated"
    ITEM_DELETED = "item_deleted"
    ITEMS_BULK_UPDATED = "items_bulk_updated"

    # Whole-document operations
    DOCUMENT_LOADED = "document_loaded"
    DOCUMENT_LOAD_FAILED = "document_load_failed"
    DOCUMENT_IMPORTED = "document_imported"
    DOCUMENT_EXPORTED = "document_exported"
    DOCUMENT_CLEARED = "document_cleared"
    PERSIST_FAILED = "persist_failed"

    # Rejections
    OPERATION_REJECTED = "operation_rejected"

    # Advisor
    ADVISOR_ANSWERED = "advisor_answered"
    ADVISOR_FALLBACK = "advisor_fallback"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'snapshot', 'item', 'document')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    @field_validator('description', mode='before')
    @classmethod
    def truncate_description(cls, v: Any) -> Any:
        # Labels and item names are unbounded
        if isinstance(v, str) and len(v) > 500:
            return v[:497] + "..."
        return v

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.snapshot_created(snapshot_id, label)
        event = AuditEventBuilder.item_changed(
            AuditEventType.ITEM_ADDED, snapshot_id, "assets", 0, "Cash"
        )
    """

    @staticmethod
    def snapshot_created(snapshot_id: str, label: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_CREATED,
            entity_type="snapshot",
            entity_id=snapshot_id,
            description=f"Snapshot created: {label}",
            details={"label": label},
        )

    @staticmethod
    def snapshot_duplicated(
        snapshot_id: str,
        source_id: str,
        label: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_DUPLICATED,
            entity_type="snapshot",
            entity_id=snapshot_id,
            description=f"Snapshot duplicated as: {label}",
            details={"source_id": source_id, "label": label},
        )

    @staticmethod
    def snapshot_renamed(
        snapshot_id: str,
        old_label: str,
        new_label: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_RENAMED,
            entity_type="snapshot",
            entity_id=snapshot_id,
            description=f"Snapshot renamed to: {new_label}",
            details={"old_label": old_label, "new_label": new_label},
        )

    @staticmethod
    def snapshot_deleted(
        snapshot_id: str,
        label: str,
        new_active_id: Optional[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_DELETED,
            entity_type="snapshot",
            entity_id=snapshot_id,
            description=f"Snapshot deleted: {label}",
            details={"label": label, "new_active_id": new_active_id},
        )

    @staticmethod
    def snapshot_switched(snapshot_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_SWITCHED,
            severity=AuditSeverity.DEBUG,
            entity_type="snapshot",
            entity_id=snapshot_id,
            description="Active snapshot switched",
        )

    @staticmethod
    def item_changed(
        event_type: AuditEventType,
        snapshot_id: str,
        kind: str,
        index: int,
        name: str,
    ) -> AuditEvent:
        verb = event_type.value.split("_")[-1]
        return AuditEvent(
            event_type=event_type,
            entity_type="item",
            entity_id=snapshot_id,
            description=f"Item {verb} in {kind}: {name}",
            details={"kind": kind, "index": index, "name": name},
        )

    @staticmethod
    def items_bulk_updated(
        snapshot_id: str,
        kind: str,
        count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ITEMS_BULK_UPDATED,
            entity_type="item",
            entity_id=snapshot_id,
            description=f"{count} items updated in {kind}",
            details={"kind": kind, "count": count},
        )

    @staticmethod
    def document_event(
        event_type: AuditEventType,
        snapshot_count: int,
        description: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            entity_type="document",
            description=description,
            details={"snapshot_count": snapshot_count},
        )

    @staticmethod
    def document_load_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DOCUMENT_LOAD_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="document",
            description="Stored document could not be read; starting empty",
            error_message=error_message,
        )

    @staticmethod
    def persist_failed(operation: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSIST_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="document",
            description=f"Persist failed during {operation}; change rolled back",
            error_message=error_message,
            details={"operation": operation},
        )

    @staticmethod
    def operation_rejected(
        operation: str,
        error_code: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OPERATION_REJECTED,
            severity=AuditSeverity.WARNING,
            description=f"Operation rejected: {operation}",
            error_code=error_code,
            error_message=error_message,
            details={"operation": operation},
        )

    @staticmethod
    def advisor_result(
        snapshot_id: Optional[str],
        used_fallback: bool,
        reason: Optional[str] = None,
    ) -> AuditEvent:
        if used_fallback:
            return AuditEvent(
                event_type=AuditEventType.ADVISOR_FALLBACK,
                severity=AuditSeverity.WARNING,
                entity_type="snapshot",
                entity_id=snapshot_id,
                description="Advisor answered with local analysis",
                error_message=reason,
            )
        return AuditEvent(
            event_type=AuditEventType.ADVISOR_ANSWERED,
            entity_type="snapshot",
            entity_id=snapshot_id,
            description="Advisor answered from remote model",
        )
