"""
Shared fixtures for record store tests.
"""

import tempfile

import pytest

from chaincode.cro_contract.ledger import InMemoryLedger, SqliteLedger


@pytest.fixture
def data_dir():
    """Create temporary data directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture(params=["memory", "sqlite"])
def ledger(request, data_dir):
    """A fresh ledger of each backend."""
    if request.param == "memory":
        return InMemoryLedger()
    return SqliteLedger(data_dir, wal_mode=False)
