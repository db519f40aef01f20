"""
Unit tests for input validation.
"""

import json

import pytest

from chaincode.cro_contract.codec import decode_input
from chaincode.cro_contract.errors import ValidationError
from chaincode.cro_contract.validate import (
    require_non_empty,
    require_unsigned,
    validate_record_input,
)
from tests.helpers import record_payload


def _input(**overrides):
    return decode_input(json.dumps(record_payload(**overrides)).encode())


class TestValidateRecordInput:
    """Tests for validate_record_input."""

    def test_valid_payload(self):
        """A complete payload passes."""
        validate_record_input(_input())

    @pytest.mark.parametrize(
        "field_name,empty",
        [
            ("objectType", ""),
            ("recordId", ""),
            ("isoNumbers", []),
            ("createdAtUTC", 0),
            ("premiseId", ""),
            ("documentType", ""),
        ],
    )
    def test_each_required_field(self, field_name, empty):
        """Each required field rejects its zero value."""
        with pytest.raises(ValidationError) as exc_info:
            validate_record_input(_input(**{field_name: empty}))

        assert exc_info.value.field_name == field_name
        assert exc_info.value.code == "VALIDATION_ERROR"

    def test_first_violation_wins(self):
        """With several empty fields the earliest in check order is reported."""
        with pytest.raises(ValidationError) as exc_info:
            validate_record_input(_input(documentType="", isoNumbers=[], recordId=""))

        assert exc_info.value.field_name == "recordId"

    def test_fields_may_be_empty(self):
        """Private fields are optional."""
        validate_record_input(_input(fields={}))


class TestArgumentChecks:
    """Tests for argument helpers."""

    def test_require_non_empty(self):
        """Empty strings are rejected with the field name."""
        require_non_empty("R1", "recordId", "get")
        with pytest.raises(ValidationError) as exc_info:
            require_non_empty("", "recordId", "get")

        assert exc_info.value.details == {"field": "recordId", "operation": "get"}

    @pytest.mark.parametrize("value", [-1, True, 1.5, "3"])
    def test_require_unsigned_rejects(self, value):
        """Only non-negative integers are unsigned."""
        with pytest.raises(ValidationError):
            require_unsigned(value, "limit", "list")

    def test_require_unsigned_accepts_zero(self):
        """Zero is a valid unsigned value."""
        require_unsigned(0, "limit", "list")
