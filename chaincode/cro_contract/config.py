"""
Configuration for the CRO record store.

All configuration is done via environment variables with the CRO_ prefix,
loaded with pydantic-settings.

Invariants:
    - All settings have sensible defaults for local development
    - The shared partition name is injected, never hard-coded in the store
    - Only create enforces the same-org check unless explicitly configured

How to change safely:
    - Add new settings with defaults that maintain backward compatibility
    - Do not flip an enforce_same_org_* default without confirming the policy
"""

from __future__ import annotations

import logging
from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings

from .access import AccessPolicy

logger = logging.getLogger(__name__)


class LedgerBackend(Enum):
    """Supported ledger backends."""

    MEMORY = "memory"
    SQLITE = "sqlite"


class Settings(BaseSettings):
    """Record store configuration loaded from environment."""

    # Partitions
    shared_partition: str = Field(
        default="recordCollection",
        min_length=1,
        description="Partition holding the shared record shells",
    )

    # Executing node
    peer_msp_id: str = Field(default="Org1MSP", description="MSP id of the executing node")

    # Ledger backend
    ledger_backend: LedgerBackend = Field(default=LedgerBackend.MEMORY)
    data_dir: str = Field(default="/var/lib/cro", description="Directory for the SQLite ledger")
    ledger_file: str = Field(default="ledger.db")
    sqlite_wal_mode: bool = Field(default=True)
    sqlite_busy_timeout_ms: int = Field(default=5000, ge=0)

    # Same-org enforcement per operation
    enforce_same_org_on_create: bool = Field(default=True)
    enforce_same_org_on_get: bool = Field(default=False)
    enforce_same_org_on_list: bool = Field(default=False)
    enforce_same_org_on_revoke: bool = Field(default=False)

    # Observability
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json", description="json or text")

    model_config = {"env_prefix": "CRO_"}

    def access_policy(self) -> AccessPolicy:
        """Build the per-operation access policy."""
        return AccessPolicy(
            on_create=self.enforce_same_org_on_create,
            on_get=self.enforce_same_org_on_get,
            on_list=self.enforce_same_org_on_list,
            on_revoke=self.enforce_same_org_on_revoke,
        )

    def log_config(self) -> None:
        """Log configuration."""
        logger.info(
            "Record store configuration loaded",
            extra={
                "shared_partition": self.shared_partition,
                "peer_msp_id": self.peer_msp_id,
                "ledger_backend": self.ledger_backend.value,
                "data_dir": self.data_dir
                if self.ledger_backend == LedgerBackend.SQLITE
                else None,
                "access_policy": self.access_policy().enforced_operations(),
                "log_level": self.log_level,
            },
        )
