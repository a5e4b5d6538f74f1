"""Validation package."""

from finsnap.validation.validator import (
    DocumentValidator,
    validate_label,
    validate_name,
)

__all__ = ["DocumentValidator", "validate_label", "validate_name"]
