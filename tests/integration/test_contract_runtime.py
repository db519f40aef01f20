"""
Integration tests for the contract surface and its runtime.

Tests cover:
- Function dispatch and argument parsing
- JSON results
- One transaction per invocation
"""

import json

import pytest

from chaincode.cro_contract.contract import ContractRuntime, RecordContract
from chaincode.cro_contract.errors import (
    AlreadyRevokedError,
    CrossOrgAccessDeniedError,
    DuplicateRecordError,
    UnknownFunctionError,
    ValidationError,
)
from chaincode.cro_contract.ledger import InMemoryLedger
from chaincode.cro_contract.store import RecordStore
from tests.helpers import ORG1_CLIENT, ORG2_CLIENT, record_transient


@pytest.fixture
def runtime(ledger):
    return ContractRuntime(ledger, RecordContract(RecordStore()), peer_msp_id="Org1MSP")


async def add(runtime, **overrides):
    return await runtime.submit(
        "AddRecord", client=ORG1_CLIENT, transient=record_transient(**overrides)
    )


class TestDispatch:
    """Tests for RecordContract.invoke through the runtime."""

    @pytest.mark.asyncio
    async def test_add_then_get(self, runtime):
        """AddRecord returns nothing; GetRecord returns the merged JSON."""
        assert await add(runtime) == b""

        result = await runtime.evaluate("GetRecord", ["R1"], client=ORG1_CLIENT)

        assert json.loads(result) == {
            "objectType": "tag",
            "recordId": "R1",
            "isoNumbers": ["A123"],
            "createdAtUTC": 1000,
            "premiseId": "P1",
            "documentType": "activation",
            "revoked": False,
            "revocationReason": "",
            "fields": {"owner": "Jane"},
        }

    @pytest.mark.asyncio
    async def test_get_missing_is_null(self, runtime):
        """A missing record is JSON null."""
        assert await runtime.evaluate("GetRecord", ["nope"], client=ORG1_CLIENT) == b"null"

    @pytest.mark.asyncio
    async def test_get_records_limit(self, runtime):
        """GetRecords parses its numeric arguments."""
        await add(runtime, recordId="R1")
        await add(runtime, recordId="R2")

        result = await runtime.evaluate(
            "GetRecords", ["A123", "0", "0", "1"], client=ORG1_CLIENT
        )

        assert [r["recordId"] for r in json.loads(result)] == ["R1"]

    @pytest.mark.asyncio
    async def test_get_records_empty(self, runtime):
        """No matches is an empty JSON array."""
        result = await runtime.evaluate("GetRecords", ["A123", "0", "0", "0"], client=ORG1_CLIENT)

        assert json.loads(result) == []

    @pytest.mark.asyncio
    async def test_get_records_other_org(self, runtime):
        """Another org sees shells with empty fields."""
        await add(runtime)

        result = await runtime.evaluate("GetRecords", ["A123", "0", "0", "0"], client=ORG2_CLIENT)

        assert json.loads(result)[0]["fields"] == {}

    @pytest.mark.asyncio
    async def test_revoke(self, runtime):
        """RevokeRecord returns nothing and is single-shot."""
        await add(runtime)

        assert await runtime.submit("RevokeRecord", ["R1", "lost tag"], client=ORG1_CLIENT) == b""
        with pytest.raises(AlreadyRevokedError):
            await runtime.submit("RevokeRecord", ["R1", "again"], client=ORG1_CLIENT)

        record = json.loads(await runtime.evaluate("GetRecord", ["R1"], client=ORG1_CLIENT))
        assert record["revoked"] is True
        assert record["revocationReason"] == "lost tag"

    @pytest.mark.asyncio
    async def test_unknown_function(self, runtime):
        """Unknown names list the known functions."""
        with pytest.raises(UnknownFunctionError) as exc_info:
            await runtime.evaluate("DeleteRecord", ["R1"], client=ORG1_CLIENT)

        assert exc_info.value.function == "DeleteRecord"
        assert exc_info.value.details["known"] == [
            "AddRecord",
            "GetRecord",
            "GetRecords",
            "RevokeRecord",
        ]

    @pytest.mark.parametrize(
        "function,args",
        [
            ("GetRecord", []),
            ("GetRecord", ["R1", "extra"]),
            ("AddRecord", ["R1"]),
            ("GetRecords", ["A123", "0", "0"]),
        ],
    )
    @pytest.mark.asyncio
    async def test_wrong_arity(self, runtime, function, args):
        """Argument counts must match the function."""
        with pytest.raises(ValidationError) as exc_info:
            await runtime.evaluate(function, args, client=ORG1_CLIENT)

        assert exc_info.value.operation == function

    @pytest.mark.parametrize("bad", ["-1", "1.5", "ten", "", " 1"])
    @pytest.mark.asyncio
    async def test_bad_unsigned_argument(self, runtime, bad):
        """Numeric arguments must be unsigned decimal integers."""
        with pytest.raises(ValidationError) as exc_info:
            await runtime.evaluate("GetRecords", ["A123", "0", "0", bad], client=ORG1_CLIENT)

        assert exc_info.value.field_name == "limit"


class TestTransactions:
    """Tests for the one-invocation-one-transaction rule."""

    @pytest.mark.asyncio
    async def test_evaluate_does_not_persist(self, runtime):
        """Writes made under evaluate are discarded."""
        await runtime.evaluate("AddRecord", client=ORG1_CLIENT, transient=record_transient())

        assert await runtime.evaluate("GetRecord", ["R1"], client=ORG1_CLIENT) == b"null"

    @pytest.mark.asyncio
    async def test_failed_submit_is_logged_and_raised(self, runtime, caplog):
        """A failing submit re-raises and logs the error code."""
        await add(runtime)

        with pytest.raises(DuplicateRecordError):
            await add(runtime)

        failures = [r for r in caplog.records if r.getMessage() == "Invocation failed"]
        assert failures
        assert failures[0].error_code == "DUPLICATE_RECORD"

    @pytest.mark.asyncio
    async def test_denied_submit_commits_nothing(self):
        """A denied submit leaves no trace."""
        ledger = InMemoryLedger()
        runtime = ContractRuntime(ledger, RecordContract(RecordStore()), peer_msp_id="Org2MSP")

        with pytest.raises(CrossOrgAccessDeniedError):
            await runtime.submit("AddRecord", client=ORG1_CLIENT, transient=record_transient())

        assert ledger.partitions() == []
