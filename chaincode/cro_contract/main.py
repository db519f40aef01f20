"""
Runtime bootstrap for the CRO record store.

Builds the ledger, store, contract and runtime from environment
configuration and sets up logging.

Usage:
    >>> runtime = build_runtime()
    >>> await runtime.submit("AddRecord", client=identity, transient=transient)

Configuration is entirely via environment variables.
See config.py for all available settings.
"""

from __future__ import annotations

import logging

import json_log_formatter

from .config import LedgerBackend, Settings
from .contract import ContractRuntime, RecordContract
from .ledger import create_ledger
from .store import RecordStore

logger = logging.getLogger(__name__)


def setup_logging(settings: Settings) -> None:
    """Configure logging based on configuration.

    Args:
        settings: Record store settings
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        formatter: logging.Formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]


def build_runtime(settings: Settings | None = None, configure_logging: bool = True) -> ContractRuntime:
    """Create a ready-to-use contract runtime.

    Args:
        settings: Optional settings (loaded from env if not provided)
        configure_logging: Whether to install the root log handler

    Returns:
        ContractRuntime bound to the configured ledger
    """
    settings = settings or Settings()
    if configure_logging:
        setup_logging(settings)
    settings.log_config()

    ledger = create_ledger(settings)
    store = RecordStore(
        shared_partition=settings.shared_partition,
        policy=settings.access_policy(),
    )
    runtime = ContractRuntime(ledger, RecordContract(store), peer_msp_id=settings.peer_msp_id)

    logger.info(
        "Record store runtime ready",
        extra={
            "ledger_backend": settings.ledger_backend.value,
            "persistent": settings.ledger_backend == LedgerBackend.SQLITE,
        },
    )
    return runtime
