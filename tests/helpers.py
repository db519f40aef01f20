"""
Helpers shared by unit and integration tests.
"""

import base64
import json

from chaincode.cro_contract.context import InvocationContext, StaticClientIdentity, TransientInput
from chaincode.cro_contract.ledger import transaction
from chaincode.cro_contract.store import RECORD_PROPERTIES_KEY


def encode_id(subject: str) -> str:
    """Base64-encode a client id the way the host delivers it."""
    return base64.b64encode(subject.encode("utf-8")).decode("ascii")


ORG1_CLIENT = StaticClientIdentity("Org1MSP", encode_id("x509::CN=alice,OU=client::CN=ca.org1"))
ORG2_CLIENT = StaticClientIdentity("Org2MSP", encode_id("x509::CN=bob,OU=client::CN=ca.org2"))


def record_payload(**overrides) -> dict:
    """A valid creation payload, optionally overridden field by field."""
    payload = {
        "objectType": "tag",
        "recordId": "R1",
        "isoNumbers": ["A123"],
        "createdAtUTC": 1000,
        "premiseId": "P1",
        "documentType": "activation",
        "fields": {"owner": "Jane"},
    }
    payload.update(overrides)
    return payload


def record_transient(**overrides) -> dict[str, bytes]:
    """Transient input carrying a creation payload."""
    return {RECORD_PROPERTIES_KEY: json.dumps(record_payload(**overrides)).encode("utf-8")}


def make_context(stub, client=ORG1_CLIENT, peer_msp_id="Org1MSP", transient=None):
    """Build an invocation context around a ledger stub."""
    return InvocationContext(
        stub=stub,
        client=client,
        peer_msp_id=peer_msp_id,
        transient=TransientInput(transient),
    )


async def run_invocation(
    ledger,
    operation,
    client=ORG1_CLIENT,
    peer_msp_id="Org1MSP",
    transient=None,
    wrap_stub=None,
):
    """Run one store operation inside its own committed transaction."""
    async with transaction(ledger) as tx:
        stub = wrap_stub(tx) if wrap_stub else tx
        ctx = make_context(stub, client=client, peer_msp_id=peer_msp_id, transient=transient)
        return await operation(ctx)
