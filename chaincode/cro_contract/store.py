"""
Privacy-partitioned record store.

Each record is split in two:
- a shared shell in the shared partition, readable by every organization
- a private detail in the creating organization's own partition

Reads merge the shell with the caller's own private detail, so an
organization that did not create a record sees the shell with empty fields.
Nothing here ever reads another organization's partition.

Invariants:
    - recordId is unique in the shared partition; create rejects duplicates
    - The shared write is issued before the private write, in one invocation
    - revoked goes from False to True exactly once
    - A missing private detail yields empty fields, never an error
    - Private field values and transient payloads are never logged

How to change safely:
    - Keep validation order stable; callers rely on the first-error field
    - Access enforcement per operation lives in AccessPolicy, not here
    - Every ledger call must go through ctx.stub so it stays transactional
"""

from __future__ import annotations

import logging

from .access import AccessPolicy, Operation
from .codec import (
    MergedRecord,
    SharedRecord,
    decode_input,
    decode_private,
    decode_shared,
    encode_private,
    encode_shared,
)
from .context import InvocationContext
from .errors import (
    AlreadyRevokedError,
    DuplicateRecordError,
    QueryIterationError,
    RecordNotFoundError,
    TransientInputMissingError,
)
from .identity import submitting_client_identity
from .partitions import caller_partition
from .query import Operator, Selector
from .validate import require_non_empty, require_unsigned, validate_record_input

logger = logging.getLogger(__name__)

RECORD_PROPERTIES_KEY = "record_properties"
DEFAULT_SHARED_PARTITION = "recordCollection"


def iso_number_selector(iso_number: str, date_from: int = 0, date_to: int = 0) -> Selector:
    """Select shells listing an ISO number, optionally within [date_from, date_to].

    The date range applies only when both bounds are non-zero; zero means unset.
    """
    selector = Selector().where("isoNumbers", Operator.IN, [iso_number])
    if date_from != 0 and date_to != 0:
        selector = selector.where("createdAtUTC", Operator.GTE, date_from)
        selector = selector.where("createdAtUTC", Operator.LTE, date_to)
    return selector


class RecordStore:
    """Create, read, list and revoke partitioned records.

    The store holds no state between invocations; everything it touches
    comes through the InvocationContext.

    Example:
        >>> store = RecordStore()
        >>> record = await store.create(ctx)
        >>> fetched = await store.get(ctx, record.record_id)
        >>> await store.revoke(ctx, record.record_id, "lost tag")
    """

    def __init__(
        self,
        shared_partition: str = DEFAULT_SHARED_PARTITION,
        policy: AccessPolicy | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            shared_partition: Partition holding the shared shells
            policy: Same-org enforcement per operation
        """
        if not shared_partition:
            raise ValueError("shared_partition must be a non-empty string")
        self.shared_partition = shared_partition
        self.policy = policy or AccessPolicy()

    async def create(self, ctx: InvocationContext) -> MergedRecord:
        """Create a record from the confidential input.

        The payload is read from the transient input under "record_properties"
        rather than from arguments, so it never lands in the public log.

        Returns:
            The merged view of what was written

        Raises:
            TransientInputMissingError: If the payload key is absent
            ValidationError: If the payload is malformed or a required field is empty
            DuplicateRecordError: If a shell already exists for the id
            IdentityUnavailableError: If the caller cannot be identified
            IdentityDecodeError: If the caller id cannot be decoded
            CrossOrgAccessDeniedError: If the same-org check fails
        """
        payload = ctx.transient.get(RECORD_PROPERTIES_KEY)
        if payload is None:
            raise TransientInputMissingError(RECORD_PROPERTIES_KEY)

        record_input = decode_input(payload)
        validate_record_input(record_input)
        record_id = record_input.record_id

        existing = await ctx.stub.get(self.shared_partition, record_id)
        if existing is not None:
            logger.info(
                "Record already exists",
                extra={"operation": "create", "record_id": record_id},
            )
            raise DuplicateRecordError(record_id)

        client_id = submitting_client_identity(ctx)
        self.policy.enforce(Operation.CREATE, ctx)

        shared = record_input.to_shared()
        logger.info(
            "Put shared record",
            extra={
                "operation": "create",
                "partition": self.shared_partition,
                "record_id": record_id,
                "owner": client_id,
            },
        )
        await ctx.stub.put(self.shared_partition, record_id, encode_shared(shared))

        org_partition = caller_partition(ctx)
        detail = record_input.to_private()
        logger.info(
            "Put private detail",
            extra={
                "operation": "create",
                "partition": org_partition,
                "record_id": record_id,
                "field_count": len(detail.fields),
            },
        )
        await ctx.stub.put(org_partition, record_id, encode_private(detail))

        return MergedRecord.from_parts(shared, detail)

    async def get(self, ctx: InvocationContext, record_id: str) -> MergedRecord | None:
        """Fetch one record merged with the caller's private detail.

        Returns:
            The merged record, or None if no shell exists

        Raises:
            ValidationError: If record_id is empty
            MalformedRecordError: If stored bytes do not decode
            IdentityUnavailableError: If the caller's org cannot be resolved
        """
        require_non_empty(record_id, "recordId", "get")
        self.policy.enforce(Operation.GET, ctx)

        data = await ctx.stub.get(self.shared_partition, record_id)
        if data is None:
            logger.info(
                "Record not found",
                extra={
                    "operation": "get",
                    "partition": self.shared_partition,
                    "record_id": record_id,
                },
            )
            return None

        shared = decode_shared(data, record_id)
        return await self._merge(ctx, shared, caller_partition(ctx), record_id)

    async def list_records(
        self,
        ctx: InvocationContext,
        iso_number: str,
        date_from: int = 0,
        date_to: int = 0,
        limit: int = 0,
    ) -> list[MergedRecord]:
        """Find records listing an ISO number.

        Args:
            ctx: Invocation context
            iso_number: ISO number the shell's isoNumbers must contain
            date_from: Inclusive lower createdAtUTC bound (0 = unset)
            date_to: Inclusive upper createdAtUTC bound (0 = unset)
            limit: Maximum records to return (0 = unbounded)

        Returns:
            Merged records in ledger query order

        Raises:
            ValidationError: If iso_number is empty or a bound/limit is negative
            QueryIterationError: If the ledger query fails
            MalformedRecordError: If a stored shell or detail does not decode
        """
        require_non_empty(iso_number, "isoNumbers", "list")
        require_unsigned(date_from, "dateFrom", "list")
        require_unsigned(date_to, "dateTo", "list")
        require_unsigned(limit, "limit", "list")
        self.policy.enforce(Operation.LIST, ctx)

        selector = iso_number_selector(iso_number, date_from, date_to)
        logger.debug(
            "Querying shared records",
            extra={
                "operation": "list",
                "partition": self.shared_partition,
                "selector": selector.to_json(),
                "limit": limit,
            },
        )

        records: list[MergedRecord] = []
        org_partition: str | None = None

        try:
            results = ctx.stub.query(self.shared_partition, selector)
        except Exception as e:
            raise QueryIterationError(
                f"failed to execute query: {e}", partition=self.shared_partition
            ) from e

        try:
            while True:
                try:
                    item = await anext(results)
                except StopAsyncIteration:
                    break
                except Exception as e:
                    raise QueryIterationError(
                        f"error while iterating over query results: {e}",
                        partition=self.shared_partition,
                    ) from e

                shared = decode_shared(item.value, item.key)
                if org_partition is None:
                    org_partition = caller_partition(ctx)
                records.append(await self._merge(ctx, shared, org_partition, shared.record_id))

                if limit > 0 and len(records) >= limit:
                    break
        finally:
            aclose = getattr(results, "aclose", None)
            if aclose is not None:
                await aclose()

        logger.info(
            "Listed records",
            extra={"operation": "list", "iso_number": iso_number, "count": len(records)},
        )
        return records

    async def revoke(
        self,
        ctx: InvocationContext,
        record_id: str,
        reason: str = "",
    ) -> SharedRecord:
        """Revoke a record. Revocation is one-way and happens once.

        Returns:
            The updated shell

        Raises:
            ValidationError: If record_id is empty
            RecordNotFoundError: If no shell exists
            AlreadyRevokedError: If the record was already revoked
            MalformedRecordError: If the stored shell does not decode
        """
        require_non_empty(record_id, "recordId", "revoke")
        self.policy.enforce(Operation.REVOKE, ctx)

        data = await ctx.stub.get(self.shared_partition, record_id)
        if data is None:
            raise RecordNotFoundError(record_id, "revoke")

        shared = decode_shared(data, record_id)
        if shared.revoked:
            raise AlreadyRevokedError(record_id)

        updated = shared.model_copy(update={"revoked": True, "revocation_reason": reason})
        await ctx.stub.put(self.shared_partition, record_id, encode_shared(updated))

        logger.info(
            "Revoked record",
            extra={
                "operation": "revoke",
                "partition": self.shared_partition,
                "record_id": record_id,
            },
        )
        return updated

    async def _merge(
        self,
        ctx: InvocationContext,
        shared: SharedRecord,
        org_partition: str,
        key: str,
    ) -> MergedRecord:
        """Attach the caller's private detail to a shell, or empty fields."""
        data = await ctx.stub.get(org_partition, key)
        if data is None:
            return MergedRecord.from_parts(shared, None)
        return MergedRecord.from_parts(shared, decode_private(data, key))
