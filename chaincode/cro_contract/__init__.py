"""
CRO record store - privacy-partitioned records on a shared ledger.

This package implements a record store in which every record is split into:
- a shared shell, stored in one partition every organization can read
- a private detail, stored in the creating organization's own partition

Architecture:
    ┌──────────────┐     ┌────────────────┐     ┌──────────────┐
    │   Client     │────▶│ ContractRuntime│────▶│RecordContract│
    │ (identity +  │     │ (1 invocation =│     │  AddRecord   │
    │  transient)  │     │  1 transaction)│     │  GetRecord   │
    └──────────────┘     └───────┬────────┘     │  GetRecords  │
                                 │              │  RevokeRecord│
                                 │              └──────┬───────┘
                                 ▼                     ▼
                        ┌─────────────────┐     ┌──────────────┐
                        │  Ledger         │◀────│ RecordStore  │
                        │ (memory/sqlite) │     │ identity,    │
                        └─────────────────┘     │ partitions,  │
                                                │ access, codec│
                                                └──────────────┘

Invariants:
    - recordId is unique within the shared partition
    - Private details live only in the creator's partition
    - Revocation happens at most once per record
    - Every invocation is atomic; failures leave no writes behind
"""

__version__ = "0.1.0"

from .access import AccessPolicy, Operation, verify_same_org
from .codec import MergedRecord, PrivateDetail, RecordInput, SharedRecord
from .config import LedgerBackend, Settings
from .context import ClientIdentity, InvocationContext, StaticClientIdentity, TransientInput
from .contract import ContractRuntime, RecordContract
from .errors import (
    AlreadyRevokedError,
    CrossOrgAccessDeniedError,
    DuplicateRecordError,
    IdentityDecodeError,
    IdentityUnavailableError,
    MalformedRecordError,
    QueryIterationError,
    RecordNotFoundError,
    RecordStoreError,
    TransientInputMissingError,
    UnknownFunctionError,
    ValidationError,
)
from .main import build_runtime, setup_logging
from .partitions import private_partition_name
from .query import Operator, Selector
from .store import RECORD_PROPERTIES_KEY, RecordStore

__all__ = [
    # Store and contract
    "RecordStore",
    "RecordContract",
    "ContractRuntime",
    "RECORD_PROPERTIES_KEY",
    "build_runtime",
    "setup_logging",
    # Models
    "SharedRecord",
    "PrivateDetail",
    "MergedRecord",
    "RecordInput",
    # Context
    "InvocationContext",
    "ClientIdentity",
    "StaticClientIdentity",
    "TransientInput",
    # Access
    "AccessPolicy",
    "Operation",
    "verify_same_org",
    "private_partition_name",
    # Query
    "Selector",
    "Operator",
    # Config
    "Settings",
    "LedgerBackend",
    # Errors
    "RecordStoreError",
    "ValidationError",
    "DuplicateRecordError",
    "RecordNotFoundError",
    "AlreadyRevokedError",
    "CrossOrgAccessDeniedError",
    "IdentityUnavailableError",
    "IdentityDecodeError",
    "MalformedRecordError",
    "TransientInputMissingError",
    "QueryIterationError",
    "UnknownFunctionError",
]
