"""
Contract surface of the CRO record store.

This module exposes the record store under the function names the ledger
invokes:
- AddRecord()                                      payload via transient input
- GetRecord(recordId)                              -> record JSON or null
- GetRecords(isoNumbers, dateFrom, dateTo, limit)  -> JSON array of records
- RevokeRecord(recordId, reason)

Arguments arrive as strings and results leave as JSON bytes. ContractRuntime
wraps each invocation in its own ledger transaction.

Invariants:
    - One invocation runs in exactly one ledger transaction
    - A failed submit leaves no writes behind
    - evaluate() never commits
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from typing import Any

from .codec import MergedRecord, encode_merged
from .context import ClientIdentity, InvocationContext, TransientInput
from .errors import UnknownFunctionError, ValidationError
from .ledger import Ledger, transaction
from .store import RecordStore

logger = logging.getLogger(__name__)

_UINT_RE = re.compile(r"[0-9]+")

# Function name -> (handler attribute, ((parameter, kind), ...))
FUNCTIONS: dict[str, tuple[str, tuple[tuple[str, str], ...]]] = {
    "AddRecord": ("add_record", ()),
    "GetRecord": ("get_record", (("recordId", "string"),)),
    "GetRecords": (
        "get_records",
        (("isoNumbers", "string"), ("dateFrom", "uint"), ("dateTo", "uint"), ("limit", "uint")),
    ),
    "RevokeRecord": ("revoke_record", (("recordId", "string"), ("reason", "string"))),
}


def _parse_args(function: str, args: Sequence[str]) -> list[Any]:
    _, params = FUNCTIONS[function]
    if len(args) != len(params):
        raise ValidationError(
            f"{function} expects {len(params)} argument(s), got {len(args)}",
            operation=function,
        )

    parsed: list[Any] = []
    for (name, kind), raw in zip(params, args):
        if kind == "uint":
            if not _UINT_RE.fullmatch(raw):
                raise ValidationError(
                    f"{name} must be an unsigned integer, got {raw!r}",
                    field_name=name,
                    operation=function,
                )
            parsed.append(int(raw))
        else:
            parsed.append(raw)
    return parsed


class RecordContract:
    """Ledger-facing functions over a RecordStore."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    async def add_record(self, ctx: InvocationContext) -> None:
        await self.store.create(ctx)

    async def get_record(self, ctx: InvocationContext, record_id: str) -> MergedRecord | None:
        return await self.store.get(ctx, record_id)

    async def get_records(
        self,
        ctx: InvocationContext,
        iso_numbers: str,
        date_from: int,
        date_to: int,
        limit: int,
    ) -> list[MergedRecord]:
        return await self.store.list_records(ctx, iso_numbers, date_from, date_to, limit)

    async def revoke_record(self, ctx: InvocationContext, record_id: str, reason: str) -> None:
        await self.store.revoke(ctx, record_id, reason)

    async def invoke(self, ctx: InvocationContext, function: str, args: Sequence[str]) -> bytes:
        """Dispatch a ledger function call.

        Args:
            ctx: Invocation context
            function: Function name, e.g. "GetRecord"
            args: String arguments as delivered by the ledger

        Returns:
            JSON result bytes; b"" for functions without a result

        Raises:
            UnknownFunctionError: If the function does not exist
            ValidationError: If the arguments do not fit the function
        """
        if function not in FUNCTIONS:
            raise UnknownFunctionError(function, sorted(FUNCTIONS))

        handler = getattr(self, FUNCTIONS[function][0])
        result = await handler(ctx, *_parse_args(function, args))

        if function in ("AddRecord", "RevokeRecord"):
            return b""
        if result is None:
            return b"null"
        if isinstance(result, list):
            return b"[" + b",".join(encode_merged(r) for r in result) + b"]"
        return encode_merged(result)


class ContractRuntime:
    """Runs contract invocations against a ledger, one transaction each.

    Example:
        >>> runtime = ContractRuntime(InMemoryLedger(), contract, peer_msp_id="Org1MSP")
        >>> await runtime.submit(
        ...     "AddRecord",
        ...     client=identity,
        ...     transient={"record_properties": payload},
        ... )
        >>> await runtime.evaluate("GetRecord", ["R1"], client=identity)
        b'{"objectType":"tag",...}'
    """

    def __init__(self, ledger: Ledger, contract: RecordContract, peer_msp_id: str | None) -> None:
        self.ledger = ledger
        self.contract = contract
        self.peer_msp_id = peer_msp_id

    def _context(
        self,
        stub: Any,
        client: ClientIdentity | None,
        transient: Mapping[str, bytes] | None,
    ) -> InvocationContext:
        return InvocationContext(
            stub=stub,
            client=client,
            peer_msp_id=self.peer_msp_id,
            transient=TransientInput(transient),
        )

    async def submit(
        self,
        function: str,
        args: Sequence[str] = (),
        client: ClientIdentity | None = None,
        transient: Mapping[str, bytes] | None = None,
    ) -> bytes:
        """Invoke a function and commit its writes.

        Raises:
            RecordStoreError: Any domain error from the invocation
            MVCCConflictError: If a key read was changed by another commit
        """
        try:
            async with transaction(self.ledger) as tx:
                result = await self.contract.invoke(
                    self._context(tx, client, transient), function, args
                )
        except Exception as e:
            logger.warning(
                "Invocation failed",
                extra={
                    "function": function,
                    "error_code": getattr(e, "code", type(e).__name__),
                    "error": str(e),
                },
            )
            raise

        logger.debug("Invocation committed", extra={"function": function})
        return result

    async def evaluate(
        self,
        function: str,
        args: Sequence[str] = (),
        client: ClientIdentity | None = None,
        transient: Mapping[str, bytes] | None = None,
    ) -> bytes:
        """Invoke a function without committing anything."""
        tx = self.ledger.begin()
        try:
            return await self.contract.invoke(self._context(tx, client, transient), function, args)
        finally:
            await tx.rollback()
