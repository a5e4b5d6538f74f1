"""
FinSnap Exceptions

Every store failure carries a short, human-readable message that
the UI can show as-is. A failed operation never leaves a partial
mutation behind.
"""

from typing import Optional

from finsnap.models.validation import ValidationIssue


class StoreError(Exception):
    """Base exception for snapshot store operations."""

    code = "store_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StoreError):
    """A name or label was empty, or a field value was not allowed."""

    code = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NoActiveSnapshotError(StoreError):
    """An item mutation was attempted while no snapshot is active."""

    code = "no_active_snapshot"

    def __init__(self, message: str = "Please create or select a snapshot first"):
        super().__init__(message)


class NotFoundError(StoreError):
    """A snapshot id or item index does not exist."""

    code = "not_found"


class MalformedDocumentError(StoreError):
    """
    An import payload failed structural validation.

    `issues` names every structural rule that failed.
    """

    code = "malformed_document"

    def __init__(
        self,
        message: str,
        issues: Optional[list[ValidationIssue]] = None,
    ):
        super().__init__(message)
        self.issues = issues or []
