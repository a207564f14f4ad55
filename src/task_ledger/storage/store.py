"""File-backed ledger store with transactional access.

Both collections (modules and tasks) live in a single YAML document
(``ledger.yaml``) inside the state directory.  Every read and write goes
through :meth:`LedgerStore.transaction`, which holds a process-local lock and
an exclusive file lock for its whole duration, so a read-then-write sequence
inside one transaction can never interleave with another writer.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Generic, Iterable, Iterator, Optional, TypeVar

from filelock import FileLock, Timeout
from loguru import logger

from ..constants import (
    ALL_TABLES,
    DEFAULT_LOCK_TIMEOUT,
    LOCK_FILE,
    MODULES_TABLE,
    STORE_FILE,
    STORE_SCHEMA_VERSION,
    TASKS_TABLE,
)
from ..errors import StoreUnavailable
from ..io_utils import _atomic_write_yaml, _dir_is_writable, _load_yaml_with_error
from .model import Module, Task

R = TypeVar("R", Module, Task)

CommitListener = Callable[[frozenset[str]], None]


# ---------------------------------------------------------------------------
# Tables and transactions
# ---------------------------------------------------------------------------

class _Table(Generic[R]):
    """One collection inside a transaction, keyed by record id."""

    def __init__(self, name: str, records: list[R], tx: "LedgerTx") -> None:
        self.name = name
        self._rows: dict[str, R] = {r.id: r for r in records}
        self._tx = tx

    def _mark(self) -> None:
        self._tx.touched.add(self.name)

    # -- lookups ------------------------------------------------------------

    def get(self, record_id: str) -> Optional[R]:
        return self._rows.get(record_id)

    def count(self) -> int:
        return len(self._rows)

    def to_list(self) -> list[R]:
        return list(self._rows.values())

    def any_of(self, record_ids: Iterable[str]) -> list[R]:
        wanted = set(record_ids)
        return [r for r in self._rows.values() if r.id in wanted]

    def where(self, **equals: Any) -> list[R]:
        return [
            r for r in self._rows.values()
            if all(getattr(r, key) == value for key, value in equals.items())
        ]

    def filter(self, predicate: Callable[[R], bool]) -> list[R]:
        return [r for r in self._rows.values() if predicate(r)]

    def order_by(self, field_name: str) -> list[R]:
        return sorted(self._rows.values(), key=lambda r: getattr(r, field_name))

    # -- mutations ----------------------------------------------------------

    def add(self, record: R) -> R:
        if record.id in self._rows:
            raise ValueError(f"{self.name}: {record.id} already exists")
        self._rows[record.id] = record
        self._mark()
        return record

    def put(self, record: R) -> R:
        self._rows[record.id] = record
        self._mark()
        return record

    def bulk_put(self, records: Iterable[R]) -> None:
        for record in records:
            self._rows[record.id] = record
        self._mark()

    def update(self, record_id: str, changes: dict[str, Any]) -> Optional[R]:
        record = self._rows.get(record_id)
        if record is None:
            return None
        for key, value in changes.items():
            if key == "id":
                continue
            if hasattr(record, key):
                setattr(record, key, value)
        record.touch()
        self._mark()
        return record

    def delete(self, record_id: str) -> bool:
        if self._rows.pop(record_id, None) is None:
            return False
        self._mark()
        return True

    def bulk_delete(self, record_ids: Iterable[str]) -> int:
        removed = 0
        for record_id in list(record_ids):
            if self._rows.pop(record_id, None) is not None:
                removed += 1
        if removed:
            self._mark()
        return removed


class LedgerTx:
    """In-memory view of both collections for the duration of a transaction.

    Mutations are collected and written back to disk when the
    ``transaction`` context manager exits without an exception.
    """

    def __init__(self, modules: list[Module], tasks: list[Task]) -> None:
        self.touched: set[str] = set()
        self.modules: _Table[Module] = _Table(MODULES_TABLE, modules, self)
        self.tasks: _Table[Task] = _Table(TASKS_TABLE, tasks, self)

    @property
    def dirty(self) -> bool:
        return bool(self.touched)


# ---------------------------------------------------------------------------
# LedgerStore
# ---------------------------------------------------------------------------

class LedgerStore:
    """Thread- and process-safe store for modules and tasks.

    Parameters
    ----------
    state_dir:
        Directory holding ``ledger.yaml`` and its lock file.  Created if missing.
    lock_timeout:
        Seconds to wait for the file lock; ``-1`` waits forever.
    """

    def __init__(self, state_dir: Path, *, lock_timeout: float = DEFAULT_LOCK_TIMEOUT) -> None:
        state_dir = Path(state_dir)
        if not _dir_is_writable(state_dir):
            raise StoreUnavailable(f"State directory is not writable: {state_dir}")
        self.state_dir = state_dir
        self._store_path = state_dir / STORE_FILE
        self._file_lock = FileLock(str(state_dir / LOCK_FILE), timeout=lock_timeout)
        self._thread_lock = threading.RLock()
        self._local = threading.local()
        self._listeners: dict[int, tuple[frozenset[str], CommitListener]] = {}
        self._listeners_lock = threading.Lock()
        self._next_listener = 0

    # -- internal helpers ---------------------------------------------------

    def _load(self) -> LedgerTx:
        raw, err = _load_yaml_with_error(self._store_path, {})
        if err:
            raise StoreUnavailable(f"Cannot read ledger store: {err}")
        modules = [Module.from_dict(d) for d in raw.get(MODULES_TABLE) or [] if isinstance(d, dict)]
        tasks = [Task.from_dict(d) for d in raw.get(TASKS_TABLE) or [] if isinstance(d, dict)]
        return LedgerTx(modules, tasks)

    def _save(self, tx: LedgerTx) -> None:
        payload = {
            "version": STORE_SCHEMA_VERSION,
            MODULES_TABLE: [m.to_dict() for m in tx.modules.to_list()],
            TASKS_TABLE: [t.to_dict() for t in tx.tasks.to_list()],
        }
        _atomic_write_yaml(self._store_path, payload)

    def _notify(self, touched: frozenset[str]) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners.values())
        for tables, callback in listeners:
            if tables & touched:
                try:
                    callback(touched)
                except Exception:
                    logger.exception("Commit listener failed for tables {}", sorted(touched))

    # -- public API ---------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[LedgerTx]:
        """Lock, load both tables, yield a transaction, and save on clean exit.

        Usage::

            with store.transaction() as tx:
                module = tx.modules.get("mod-…")
                tx.modules.update(module.id, {"name": "Inbox"})
                # saved on exit, discarded if the block raises

        A transaction opened while this thread already holds one joins the
        outer transaction instead of starting a new one.
        """
        active: Optional[LedgerTx] = getattr(self._local, "tx", None)
        if active is not None:
            yield active
            return

        with self._thread_lock:
            try:
                self._file_lock.acquire()
            except Timeout as exc:
                raise StoreUnavailable(f"Timed out waiting for ledger lock: {exc}") from exc
            try:
                tx = self._load()
                self._local.tx = tx
                try:
                    yield tx
                finally:
                    self._local.tx = None
                if tx.dirty:
                    self._save(tx)
            finally:
                self._file_lock.release()

        if tx.dirty:
            self._notify(frozenset(tx.touched))

    def read_snapshot(self) -> tuple[list[Module], list[Task]]:
        """Return ``(modules, tasks)`` as stored, without writing."""
        with self.transaction() as tx:
            return tx.modules.to_list(), tx.tasks.to_list()

    def subscribe(self, tables: Iterable[str], callback: CommitListener) -> Callable[[], None]:
        """Call *callback* after every commit that touched any of *tables*.

        Returns a function that removes the subscription.
        """
        watched = frozenset(tables)
        unknown = watched - ALL_TABLES
        if unknown:
            raise ValueError(f"Unknown tables: {sorted(unknown)}")
        with self._listeners_lock:
            token = self._next_listener
            self._next_listener += 1
            self._listeners[token] = (watched, callback)

        def _unsubscribe() -> None:
            with self._listeners_lock:
                self._listeners.pop(token, None)

        return _unsubscribe


# ---------------------------------------------------------------------------
# Process-wide handle
# ---------------------------------------------------------------------------

_OPEN_STORES: dict[Path, LedgerStore] = {}
_OPEN_LOCK = threading.Lock()


def is_store_supported(state_dir: Path) -> bool:
    return _dir_is_writable(Path(state_dir))


def open_or_throw(state_dir: Path, *, lock_timeout: float = DEFAULT_LOCK_TIMEOUT) -> LedgerStore:
    """Return the process-wide store for *state_dir*, opening it on first use.

    Raises :class:`StoreUnavailable` if the directory cannot hold a store.
    """
    key = Path(state_dir).expanduser().resolve()
    with _OPEN_LOCK:
        store = _OPEN_STORES.get(key)
        if store is not None:
            return store
        if not is_store_supported(key):
            raise StoreUnavailable(f"Persistent storage is not available at {key}")
        store = LedgerStore(key, lock_timeout=lock_timeout)
        _OPEN_STORES[key] = store
        logger.info("Ledger store opened at {}", key)
        return store
