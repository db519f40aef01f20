"""Private partition naming."""

from __future__ import annotations

from .context import InvocationContext
from .identity import client_org_id

PRIVATE_PARTITION_SUFFIX = "PrivateCollection"


def private_partition_name(org_id: str) -> str:
    """Name of an organization's private partition, e.g. "Org1MSPPrivateCollection"."""
    return org_id + PRIVATE_PARTITION_SUFFIX


def caller_partition(ctx: InvocationContext) -> str:
    """Private partition of the calling organization.

    Raises:
        IdentityUnavailableError: If the caller's MSP id cannot be resolved
    """
    return private_partition_name(client_org_id(ctx))
