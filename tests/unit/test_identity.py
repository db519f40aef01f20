"""
Unit tests for caller identity resolution and partition naming.
"""

import pytest

from chaincode.cro_contract.context import StaticClientIdentity, TransientInput
from chaincode.cro_contract.errors import IdentityDecodeError, IdentityUnavailableError
from chaincode.cro_contract.identity import client_org_id, peer_org_id, submitting_client_identity
from chaincode.cro_contract.ledger import InMemoryLedger
from chaincode.cro_contract.partitions import caller_partition, private_partition_name
from tests.helpers import ORG1_CLIENT, encode_id, make_context


class BrokenIdentity:
    """Identity whose accessors fail."""

    def get_msp_id(self) -> str:
        raise RuntimeError("certificate unavailable")

    def get_id(self) -> str:
        raise RuntimeError("certificate unavailable")


@pytest.fixture
def stub():
    return InMemoryLedger().begin()


class TestClientOrg:
    """Tests for client_org_id."""

    def test_returns_msp_id(self, stub):
        """The client's MSP id is returned as is."""
        assert client_org_id(make_context(stub)) == "Org1MSP"

    def test_no_client(self, stub):
        """Missing identity is unavailable."""
        with pytest.raises(IdentityUnavailableError) as exc_info:
            client_org_id(make_context(stub, client=None))

        assert exc_info.value.subject == "client"

    def test_empty_msp_id(self, stub):
        """Empty MSP id is unavailable."""
        ctx = make_context(stub, client=StaticClientIdentity("", encode_id("x")))

        with pytest.raises(IdentityUnavailableError):
            client_org_id(ctx)

    def test_accessor_failure_is_wrapped(self, stub):
        """Accessor exceptions become IdentityUnavailableError."""
        with pytest.raises(IdentityUnavailableError) as exc_info:
            client_org_id(make_context(stub, client=BrokenIdentity()))

        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestPeerOrg:
    """Tests for peer_org_id."""

    def test_returns_peer_msp_id(self, stub):
        """The executing node's MSP id is returned."""
        assert peer_org_id(make_context(stub, peer_msp_id="Org2MSP")) == "Org2MSP"

    def test_missing_peer(self, stub):
        """Unknown node org is unavailable."""
        with pytest.raises(IdentityUnavailableError) as exc_info:
            peer_org_id(make_context(stub, peer_msp_id=None))

        assert exc_info.value.subject == "peer"


class TestSubmittingClientIdentity:
    """Tests for submitting_client_identity."""

    def test_decodes_base64(self, stub):
        """The base64 id decodes to its subject string."""
        assert submitting_client_identity(make_context(stub)) == (
            "x509::CN=alice,OU=client::CN=ca.org1"
        )

    def test_invalid_base64(self, stub):
        """Non-base64 ids fail to decode."""
        ctx = make_context(stub, client=StaticClientIdentity("Org1MSP", "not base64!"))

        with pytest.raises(IdentityDecodeError):
            submitting_client_identity(ctx)

    def test_invalid_utf8(self, stub):
        """Base64 of non-UTF-8 bytes fails to decode."""
        ctx = make_context(stub, client=StaticClientIdentity("Org1MSP", "//79"))

        with pytest.raises(IdentityDecodeError):
            submitting_client_identity(ctx)

    def test_missing_id(self, stub):
        """Empty id is unavailable, not a decode error."""
        ctx = make_context(stub, client=StaticClientIdentity("Org1MSP", ""))

        with pytest.raises(IdentityUnavailableError):
            submitting_client_identity(ctx)


class TestPartitions:
    """Tests for private partition naming."""

    def test_private_partition_name(self):
        """Org partitions append a fixed suffix to the MSP id."""
        assert private_partition_name("Org1MSP") == "Org1MSPPrivateCollection"

    def test_caller_partition(self, stub):
        """The caller's partition follows the caller's org."""
        assert caller_partition(make_context(stub, client=ORG1_CLIENT)) == (
            "Org1MSPPrivateCollection"
        )


class TestTransientInput:
    """Tests for the confidential input mapping."""

    def test_mapping_access(self):
        """Entries are readable by key."""
        transient = TransientInput({"record_properties": b"{}"})

        assert transient["record_properties"] == b"{}"
        assert transient.get("missing") is None
        assert len(transient) == 1

    def test_repr_hides_values(self):
        """repr shows keys only."""
        transient = TransientInput({"record_properties": b"secret"})

        assert "secret" not in repr(transient)
        assert "record_properties" in repr(transient)
