"""Persistence layer: records, container keys and the transactional store."""

from __future__ import annotations

from .model import ContainerKey, ContainerKind, Module, Task, container_key, parse_container_key
from .store import LedgerStore, LedgerTx, is_store_supported, open_or_throw

__all__ = [
    "ContainerKey",
    "ContainerKind",
    "LedgerStore",
    "LedgerTx",
    "Module",
    "Task",
    "container_key",
    "is_store_supported",
    "open_or_throw",
    "parse_container_key",
]
