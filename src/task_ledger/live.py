"""Live queries: read results that refresh after every relevant commit."""

from __future__ import annotations

import threading
from typing import Callable, Generic, Iterable, Optional, TypeVar

from loguru import logger

from .constants import ALL_TABLES
from .storage.model import Module, Task
from .storage.store import LedgerStore

T = TypeVar("T")

Query = Callable[[list[Module], list[Task]], T]


class LiveQuery(Generic[T]):
    """Run *query* now and again after each commit touching *tables*.

    Usage::

        lanes = LiveQuery(store, ["modules"], lambda mods, _tasks: sorted(m.name for m in mods))
        lanes.add_listener(print)
        ...
        lanes.close()
    """

    def __init__(
        self,
        store: LedgerStore,
        tables: Optional[Iterable[str]],
        query: Query[T],
    ) -> None:
        self._store = store
        self._query = query
        self._lock = threading.Lock()
        self._listeners: list[Callable[[T], None]] = []
        self.refresh_count = 0
        self.value: T = self._run()
        self._unsubscribe: Optional[Callable[[], None]] = store.subscribe(
            tables if tables is not None else ALL_TABLES,
            self._on_commit,
        )

    def _run(self) -> T:
        modules, tasks = self._store.read_snapshot()
        return self._query(modules, tasks)

    def _on_commit(self, touched: frozenset[str]) -> None:
        value = self._run()
        with self._lock:
            self.value = value
            self.refresh_count += 1
            listeners = list(self._listeners)
        logger.debug("Live query refreshed after commit to {}", sorted(touched))
        for listener in listeners:
            listener(value)

    def add_listener(self, listener: Callable[[T], None]) -> None:
        with self._lock:
            self._listeners.append(listener)

    @property
    def closed(self) -> bool:
        return self._unsubscribe is None

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
