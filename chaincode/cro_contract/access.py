"""
Same-org access guard for the CRO record store.

This module handles the organization check applied before operations:
- verify_same_org: the caller's org must be the executing node's org
- AccessPolicy: which operations run that check

Invariants:
    - The check fails closed: an unresolvable org on either side is a denial
    - Create enforces the check by default
    - Get, list and revoke do not enforce it by default

How to change safely:
    - Enabling enforcement on reads or revoke changes who can call them;
      confirm the intended policy before changing any default
    - Keep the policy explicit per operation, never a single global switch
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from enum import Enum

from .context import InvocationContext
from .errors import CrossOrgAccessDeniedError, IdentityUnavailableError
from .identity import client_org_id, peer_org_id

logger = logging.getLogger(__name__)


class Operation(Enum):
    """Record store operations subject to the access policy."""

    CREATE = "create"
    GET = "get"
    LIST = "list"
    REVOKE = "revoke"


def verify_same_org(ctx: InvocationContext, operation: str | None = None) -> None:
    """Check that the client submits to a node of its own organization.

    Args:
        ctx: Invocation context
        operation: Operation name for error context

    Raises:
        CrossOrgAccessDeniedError: If the orgs differ or either is unresolvable
    """
    try:
        client_org = client_org_id(ctx)
    except IdentityUnavailableError as e:
        raise CrossOrgAccessDeniedError(
            f"failed getting the client's MSPID: {e}",
            operation=operation,
        ) from e

    try:
        peer_org = peer_org_id(ctx)
    except IdentityUnavailableError as e:
        raise CrossOrgAccessDeniedError(
            f"failed getting the peer's MSPID: {e}",
            client_org=client_org,
            operation=operation,
        ) from e

    if client_org != peer_org:
        logger.warning(
            "Cross-org invocation denied",
            extra={"client_org": client_org, "peer_org": peer_org, "operation": operation},
        )
        raise CrossOrgAccessDeniedError(
            f"client from org {client_org} is not authorized to read or write "
            f"private data from an org {peer_org} peer",
            client_org=client_org,
            peer_org=peer_org,
            operation=operation,
        )


@dataclass(frozen=True)
class AccessPolicy:
    """Per-operation switch for the same-org check.

    Attributes:
        on_create: Enforce on create
        on_get: Enforce on single-record reads
        on_list: Enforce on ISO number lookups
        on_revoke: Enforce on revocation

    Example:
        >>> policy = AccessPolicy()
        >>> policy.requires_same_org(Operation.CREATE)
        True
        >>> policy.requires_same_org(Operation.REVOKE)
        False
    """

    on_create: bool = True
    on_get: bool = False
    on_list: bool = False
    on_revoke: bool = False

    def requires_same_org(self, operation: Operation) -> bool:
        """Whether the operation runs the same-org check."""
        return getattr(self, f"on_{operation.value}")

    def enforce(self, operation: Operation, ctx: InvocationContext) -> None:
        """Run the same-org check if the policy requires it for this operation.

        Raises:
            CrossOrgAccessDeniedError: If the check runs and fails
        """
        if self.requires_same_org(operation):
            verify_same_org(ctx, operation=operation.value)

    def enforced_operations(self) -> list[str]:
        """Names of operations that run the check."""
        return [f.name.removeprefix("on_") for f in fields(self) if getattr(self, f.name)]
