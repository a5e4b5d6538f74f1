"""
Audit Logger

DESIGN DECISION: Every store mutation is logged.
This provides:
1. Complete traceability of the document's history
2. Debugging capability when imports or writes fail
3. A recent-activity list the UI can show

The audit logger:
- Always writes a structured local log line
- Gracefully handles sink failures (never breaks the store operation)
"""

import logging
from typing import Optional

import structlog

from finsnap.models.audit import AuditEvent, AuditSeverity
from finsnap.services.storage import AuditStorageInterface


_SEVERITY_METHODS = {
    AuditSeverity.DEBUG: "debug",
    AuditSeverity.INFO: "info",
    AuditSeverity.WARNING: "warning",
    AuditSeverity.ERROR: "error",
    AuditSeverity.CRITICAL: "error",
}


def configure_logging(level: str = "INFO", console: bool = False) -> None:
    """
    Configure structlog on top of stdlib logging.

    Production output is one JSON object per line. With `console`
    (debug mode) lines are rendered for a terminal instead.
    """
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper()))

    renderer = (
        structlog.dev.ConsoleRenderer()
        if console
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class AuditLogger:
    """
    Central audit logging service.

    Events go to the structured local log and, when one is attached,
    to an audit sink that keeps the history shown to the user.
    """

    def __init__(self, storage: Optional[AuditStorageInterface] = None):
        self._storage = storage
        self._logger = structlog.get_logger("finsnap.audit")

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event locally, then append it to the sink.

        Returns False only when the sink rejected or failed the write.
        """
        emit = getattr(self._logger, _SEVERITY_METHODS.get(event.severity, "info"))
        emit(event.event_type.value, **event.to_log_dict())

        if self._storage is None:
            return True
        try:
            return self._storage.append_event(event)
        except Exception as e:
            # sink failures never reach the store
            self._logger.error(
                "audit_sink_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    def recent_events(self, limit: int = 20) -> list[AuditEvent]:
        """Most recent events from the sink, newest first."""
        if self._storage is None:
            return []
        return self._storage.get_recent_events(limit=limit)
