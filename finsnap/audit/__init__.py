"""Audit logging package."""

from finsnap.audit.logger import AuditLogger, configure_logging

__all__ = ["AuditLogger", "configure_logging"]
