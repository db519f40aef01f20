"""
Invocation context handed to every record store operation.

An InvocationContext bundles what the ledger host provides for one call:
- the transaction-scoped ledger stub
- the authenticated client identity
- the MSP id of the executing node
- the confidential (transient) input channel
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from .ledger import LedgerStub


@runtime_checkable
class ClientIdentity(Protocol):
    """Authenticated caller identity as provided by the host."""

    def get_msp_id(self) -> str:
        """MSP id of the caller's organization."""
        ...

    def get_id(self) -> str:
        """Base64-encoded unique id of the caller."""
        ...


@dataclass(frozen=True)
class StaticClientIdentity:
    """A ClientIdentity with fixed values.

    Attributes:
        msp_id: Organization MSP id, e.g. "Org1MSP"
        encoded_id: Base64-encoded caller id, e.g. of "x509::CN=alice::CN=ca"
    """

    msp_id: str
    encoded_id: str

    def get_msp_id(self) -> str:
        return self.msp_id

    def get_id(self) -> str:
        return self.encoded_id


class TransientInput(Mapping[str, bytes]):
    """Per-invocation confidential input that never reaches the public log.

    Values are hidden from repr() so the payload cannot leak through logs
    or tracebacks.
    """

    def __init__(self, entries: Mapping[str, bytes] | None = None) -> None:
        self._entries = {k: bytes(v) for k, v in (entries or {}).items()}

    def __getitem__(self, key: str) -> bytes:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"TransientInput(keys={sorted(self._entries)})"


@dataclass
class InvocationContext:
    """Everything one contract invocation can see.

    Attributes:
        stub: Ledger stub scoped to this invocation's transaction
        client: Caller identity, None if the host could not authenticate one
        peer_msp_id: MSP id of the executing node, None if unknown
        transient: Confidential input channel
    """

    stub: LedgerStub
    client: ClientIdentity | None
    peer_msp_id: str | None
    transient: TransientInput = field(default_factory=TransientInput)
