"""Provide the public `task_ledger` package exports."""

from __future__ import annotations

from .bootstrap import ensure_baseline
from .config import LedgerConfig, load_ledger_config
from .errors import LedgerError, StoreUnavailable, ValidationError
from .live import LiveQuery
from .service import LedgerService
from .storage import ContainerKey, ContainerKind, LedgerStore, Module, Task, is_store_supported, open_or_throw

__all__ = [
    "ContainerKey",
    "ContainerKind",
    "LedgerConfig",
    "LedgerError",
    "LedgerService",
    "LedgerStore",
    "LiveQuery",
    "Module",
    "StoreUnavailable",
    "Task",
    "ValidationError",
    "ensure_baseline",
    "is_store_supported",
    "load_ledger_config",
    "open_or_throw",
]
