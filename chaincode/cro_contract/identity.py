"""
Caller identity resolution.

Extracts the calling organization's MSP id and the submitting client's
decoded id from an invocation context. The organization id drives partition
naming and the same-org check; the decoded client id is used for audit
logging only.
"""

from __future__ import annotations

import base64
import binascii
import logging

from .context import InvocationContext
from .errors import IdentityDecodeError, IdentityUnavailableError

logger = logging.getLogger(__name__)


def client_org_id(ctx: InvocationContext) -> str:
    """Get the MSP id of the submitting client.

    Raises:
        IdentityUnavailableError: If no client identity or MSP id is available
    """
    if ctx.client is None:
        raise IdentityUnavailableError("failed to get verified MSPID: no client identity")
    try:
        msp_id = ctx.client.get_msp_id()
    except Exception as e:
        raise IdentityUnavailableError(f"failed to get verified MSPID: {e}") from e
    if not msp_id:
        raise IdentityUnavailableError("failed to get verified MSPID: empty MSP id")
    return msp_id


def peer_org_id(ctx: InvocationContext) -> str:
    """Get the MSP id of the node executing the invocation.

    Raises:
        IdentityUnavailableError: If the node's MSP id is unknown
    """
    if not ctx.peer_msp_id:
        raise IdentityUnavailableError("failed getting the peer's MSPID", subject="peer")
    return ctx.peer_msp_id


def submitting_client_identity(ctx: InvocationContext) -> str:
    """Decode the submitting client's id.

    The host delivers the id base64 encoded; the decoded form looks like
    "x509::CN=alice,OU=client::CN=ca.org1.example.com".

    Raises:
        IdentityUnavailableError: If there is no client id
        IdentityDecodeError: If the id is not base64 encoded UTF-8 text
    """
    if ctx.client is None:
        raise IdentityUnavailableError("failed to read clientID: no client identity")
    try:
        encoded = ctx.client.get_id()
    except Exception as e:
        raise IdentityUnavailableError(f"failed to read clientID: {e}") from e
    if not encoded:
        raise IdentityUnavailableError("failed to read clientID: empty id")

    try:
        return base64.b64decode(encoded, validate=True).decode("utf-8")
    except (binascii.Error, ValueError) as e:
        raise IdentityDecodeError(f"failed to base64 decode clientID: {e}") from e
