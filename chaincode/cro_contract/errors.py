"""
Error types for the CRO record store.

This module defines every exception raised by the store and its contract surface:
- RecordStoreError: Base exception
- ValidationError: Missing or malformed caller input
- DuplicateRecordError / RecordNotFoundError / AlreadyRevokedError: Record state
- CrossOrgAccessDeniedError: Same-org check failed
- IdentityUnavailableError / IdentityDecodeError: Caller identity problems
- MalformedRecordError: Stored bytes do not decode
- TransientInputMissingError: Confidential input lacks the expected key
- QueryIterationError: Ledger query failed while streaming results

Invariants:
    - All domain errors inherit from RecordStoreError
    - Errors carry the operation name and record id where one applies
    - None of these errors is retried by the store
"""

from __future__ import annotations

from typing import Any


class RecordStoreError(Exception):
    """Base exception for all record store errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "RECORD_STORE_ERROR"
        self.details = details or {}


class ValidationError(RecordStoreError):
    """Caller input failed validation.

    Raised when:
    - A required field is empty or zero
    - A payload or argument has the wrong type
    - A function is invoked with the wrong number of arguments
    """

    def __init__(
        self,
        message: str,
        field_name: str | None = None,
        operation: str | None = None,
    ) -> None:
        super().__init__(
            message,
            code="VALIDATION_ERROR",
            details={"field": field_name, "operation": operation},
        )
        self.field_name = field_name
        self.operation = operation


class DuplicateRecordError(RecordStoreError):
    """A shared record already exists for this id."""

    def __init__(self, record_id: str, operation: str = "create") -> None:
        super().__init__(
            f"this record already exists: {record_id}",
            code="DUPLICATE_RECORD",
            details={"record_id": record_id, "operation": operation},
        )
        self.record_id = record_id
        self.operation = operation


class RecordNotFoundError(RecordStoreError):
    """No shared record exists for this id."""

    def __init__(self, record_id: str, operation: str) -> None:
        super().__init__(
            f"record does not exist: {record_id}",
            code="NOT_FOUND",
            details={"record_id": record_id, "operation": operation},
        )
        self.record_id = record_id
        self.operation = operation


class AlreadyRevokedError(RecordStoreError):
    """The record was revoked before; revocation is terminal."""

    def __init__(self, record_id: str, operation: str = "revoke") -> None:
        super().__init__(
            f"record already revoked: {record_id}",
            code="ALREADY_REVOKED",
            details={"record_id": record_id, "operation": operation},
        )
        self.record_id = record_id
        self.operation = operation


class CrossOrgAccessDeniedError(RecordStoreError):
    """Client organization does not match the executing node's organization.

    Attributes:
        client_org: Caller's MSP id (None if it could not be resolved)
        peer_org: Node's MSP id (None if it could not be resolved)
    """

    def __init__(
        self,
        message: str,
        client_org: str | None = None,
        peer_org: str | None = None,
        operation: str | None = None,
    ) -> None:
        super().__init__(
            message,
            code="CROSS_ORG_ACCESS_DENIED",
            details={
                "client_org": client_org,
                "peer_org": peer_org,
                "operation": operation,
            },
        )
        self.client_org = client_org
        self.peer_org = peer_org
        self.operation = operation


class IdentityUnavailableError(RecordStoreError):
    """The invocation context has no resolvable identity."""

    def __init__(self, message: str, subject: str = "client") -> None:
        super().__init__(
            message,
            code="IDENTITY_UNAVAILABLE",
            details={"subject": subject},
        )
        self.subject = subject


class IdentityDecodeError(RecordStoreError):
    """The caller's encoded identifier is not valid encoded text."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="IDENTITY_DECODE_ERROR")


class MalformedRecordError(RecordStoreError):
    """Stored bytes could not be decoded into the expected record shape.

    Attributes:
        kind: Which representation failed ("shared" or "private")
        record_id: Key the bytes were read from, when known
        errors: Individual decode problems
    """

    def __init__(
        self,
        message: str,
        kind: str,
        record_id: str | None = None,
        errors: list[str] | None = None,
    ) -> None:
        super().__init__(
            message,
            code="MALFORMED_RECORD",
            details={"kind": kind, "record_id": record_id, "errors": errors or []},
        )
        self.kind = kind
        self.record_id = record_id
        self.errors = errors or []


class TransientInputMissingError(RecordStoreError):
    """The confidential input channel lacks the expected key."""

    def __init__(self, key: str, operation: str = "create") -> None:
        super().__init__(
            f"{key} not found in the transient input",
            code="TRANSIENT_INPUT_MISSING",
            details={"key": key, "operation": operation},
        )
        self.key = key
        self.operation = operation


class QueryIterationError(RecordStoreError):
    """The ledger query failed; partial results were discarded."""

    def __init__(self, message: str, partition: str, operation: str = "list") -> None:
        super().__init__(
            message,
            code="QUERY_ITERATION_ERROR",
            details={"partition": partition, "operation": operation},
        )
        self.partition = partition
        self.operation = operation


class UnknownFunctionError(RecordStoreError):
    """The contract has no function with this name."""

    def __init__(self, function: str, known: list[str]) -> None:
        super().__init__(
            f"Unknown function '{function}'. Known functions: {', '.join(known)}",
            code="UNKNOWN_FUNCTION",
            details={"function": function, "known": known},
        )
        self.function = function
