"""
Input validation for record store operations.

Creation payloads are checked field by field in a fixed order and the first
violation is raised, so the same bad payload always yields the same error.
"""

from __future__ import annotations

from .codec import RecordInput
from .errors import ValidationError

# (wire name, attribute, message) in check order
_REQUIRED_INPUT_FIELDS: tuple[tuple[str, str, str], ...] = (
    ("objectType", "object_type", "objectType field must be a non-empty string"),
    ("recordId", "record_id", "recordId field must be a non-empty string"),
    ("isoNumbers", "iso_numbers", "isoNumbers field must be a non-empty array"),
    ("createdAtUTC", "created_at_utc", "createdAtUTC field must be a non-zero timestamp"),
    ("premiseId", "premise_id", "premiseId field must be a non-empty string"),
    ("documentType", "document_type", "documentType field must be a non-empty string"),
)


def validate_record_input(record_input: RecordInput) -> None:
    """Check a creation payload.

    Raises:
        ValidationError: For the first empty or zero required field
    """
    for wire_name, attribute, message in _REQUIRED_INPUT_FIELDS:
        if not getattr(record_input, attribute):
            raise ValidationError(message, field_name=wire_name, operation="create")


def require_non_empty(value: str, field_name: str, operation: str) -> None:
    """Raise ValidationError if a string argument is empty."""
    if not value:
        raise ValidationError(
            f"{field_name} field must be a non-empty string",
            field_name=field_name,
            operation=operation,
        )


def require_unsigned(value: int, field_name: str, operation: str) -> None:
    """Raise ValidationError if an integer argument is negative."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(
            f"{field_name} must be an unsigned integer, got {value!r}",
            field_name=field_name,
            operation=operation,
        )
