"""
Record models and their byte encoding.

Shared records, private details and the merged view are pydantic models whose
wire names are the camelCase names stored on the ledger. Encoding is compact
JSON in declaration order; decoding is strict about types but tolerant of
missing fields, which take their zero value.

Invariants:
    - Field names on the wire are case-sensitive and never renamed
    - Decoding never coerces between strings, numbers and booleans
    - A JSON null for a collection decodes as the empty collection
    - Unknown keys are ignored
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import MalformedRecordError, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, strict=True, extra="ignore")


class SharedRecord(_WireModel):
    """Record shell visible to every organization."""

    object_type: str = Field(default="", alias="objectType")
    record_id: str = Field(default="", alias="recordId")
    iso_numbers: list[str] = Field(default_factory=list, alias="isoNumbers")
    created_at_utc: int = Field(default=0, ge=0, alias="createdAtUTC")
    premise_id: str = Field(default="", alias="premiseId")
    document_type: str = Field(default="", alias="documentType")
    revoked: bool = Field(default=False, alias="revoked")
    revocation_reason: str = Field(default="", alias="revocationReason")

    @field_validator("iso_numbers", mode="before")
    @classmethod
    def _null_iso_numbers(cls, value: Any) -> Any:
        return [] if value is None else value


class PrivateDetail(_WireModel):
    """Organization-private attributes of a record."""

    record_id: str = Field(default="", alias="recordId")
    fields: dict[str, str] = Field(default_factory=dict, alias="fields")

    @field_validator("fields", mode="before")
    @classmethod
    def _null_fields(cls, value: Any) -> Any:
        return {} if value is None else value


class MergedRecord(SharedRecord):
    """Shared record plus the private fields the caller may see."""

    fields: dict[str, str] = Field(default_factory=dict, alias="fields")

    @field_validator("fields", mode="before")
    @classmethod
    def _null_fields(cls, value: Any) -> Any:
        return {} if value is None else value

    @classmethod
    def from_parts(cls, shared: SharedRecord, detail: PrivateDetail | None) -> MergedRecord:
        """Merge a shell with a private detail (or none)."""
        return cls(
            **shared.model_dump(),
            fields=dict(detail.fields) if detail is not None else {},
        )


class RecordInput(_WireModel):
    """Creation payload delivered through the confidential input channel.

    Any revoked/revocationReason keys in the payload are ignored; new records
    always start unrevoked.
    """

    object_type: str = Field(default="", alias="objectType")
    record_id: str = Field(default="", alias="recordId")
    iso_numbers: list[str] = Field(default_factory=list, alias="isoNumbers")
    created_at_utc: int = Field(default=0, ge=0, alias="createdAtUTC")
    premise_id: str = Field(default="", alias="premiseId")
    document_type: str = Field(default="", alias="documentType")
    fields: dict[str, str] = Field(default_factory=dict, alias="fields")

    @field_validator("iso_numbers", "fields", mode="before")
    @classmethod
    def _null_collections(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return [] if info.field_name == "iso_numbers" else {}
        return value

    def to_shared(self) -> SharedRecord:
        """The unrevoked shell this payload creates."""
        return SharedRecord(
            object_type=self.object_type,
            record_id=self.record_id,
            iso_numbers=list(self.iso_numbers),
            created_at_utc=self.created_at_utc,
            premise_id=self.premise_id,
            document_type=self.document_type,
            revoked=False,
            revocation_reason="",
        )

    def to_private(self) -> PrivateDetail:
        """The private detail this payload creates."""
        return PrivateDetail(record_id=self.record_id, fields=dict(self.fields))


def _encode(model: BaseModel) -> bytes:
    return model.model_dump_json(by_alias=True).encode("utf-8")


def encode_shared(record: SharedRecord) -> bytes:
    """Encode a shared record for the shared partition."""
    return _encode(record)


def encode_private(detail: PrivateDetail) -> bytes:
    """Encode a private detail for an organization partition."""
    return _encode(detail)


def encode_merged(record: MergedRecord) -> bytes:
    """Encode a merged record for return to the caller."""
    return _encode(record)


def _error_lines(error: PydanticValidationError) -> list[str]:
    lines = []
    for item in error.errors():
        loc = ".".join(str(part) for part in item["loc"]) or "<root>"
        lines.append(f"{loc}: {item['msg']}")
    return lines


def _decode(model: type[ModelT], data: bytes, kind: str, record_id: str | None) -> ModelT:
    try:
        return model.model_validate_json(data)
    except PydanticValidationError as e:
        errors = _error_lines(e)
        raise MalformedRecordError(
            f"failed to unmarshal {kind} record {record_id!r}: {'; '.join(errors)}",
            kind=kind,
            record_id=record_id,
            errors=errors,
        ) from e


def decode_shared(data: bytes, record_id: str | None = None) -> SharedRecord:
    """Decode shared record bytes.

    Raises:
        MalformedRecordError: If the bytes are not a well-typed JSON object
    """
    return _decode(SharedRecord, data, "shared", record_id)


def decode_private(data: bytes, record_id: str | None = None) -> PrivateDetail:
    """Decode private detail bytes.

    Raises:
        MalformedRecordError: If the bytes are not a well-typed JSON object
    """
    return _decode(PrivateDetail, data, "private", record_id)


def decode_input(data: bytes) -> RecordInput:
    """Decode a creation payload.

    Raises:
        ValidationError: If the payload is not a well-typed JSON object
    """
    try:
        return RecordInput.model_validate_json(data)
    except PydanticValidationError as e:
        errors = _error_lines(e)
        first = e.errors()[0]["loc"] if e.errors() else ()
        field_name = str(first[0]) if first else None
        raise ValidationError(
            f"failed to unmarshal record input: {'; '.join(errors)}",
            field_name=field_name,
            operation="create",
        ) from e
