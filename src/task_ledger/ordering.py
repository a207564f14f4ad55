"""Order arithmetic for modules and tasks.

Pure functions only: nothing here touches the store.  ``order`` values are
relative, so gaps are harmless; only a full re-sequence produces a dense
``0..n-1`` run.
"""

from __future__ import annotations

from typing import Iterable, Sequence, TypeVar

from .storage.model import ContainerKey, ContainerKind, Module, Task

R = TypeVar("R", Module, Task)


def sort_key(record: Module | Task) -> tuple[int, str, str]:
    """Total order used for lanes and for re-deriving a container: ``(order, created_at, id)``."""
    return (record.order, record.created_at, record.id)


def sorted_records(records: Iterable[R]) -> list[R]:
    return sorted(records, key=sort_key)


def append_order(orders: Iterable[int]) -> int:
    """Order that puts a new entry after all of *orders* (``0`` when empty)."""
    return max(orders, default=-1) + 1


def front_order(orders: Iterable[int]) -> int:
    """Order that puts a new entry before all of *orders* (``-1`` when empty)."""
    return min(orders, default=0) - 1


def in_container(task: Task, container: ContainerKey) -> bool:
    if task.module_id != container.module_id:
        return False
    if container.kind == ContainerKind.DONE:
        return task.completed_at is not None
    return task.completed_at is None


def merge_sequence(ordered_ids: Sequence[str], existing_ids: Sequence[str]) -> list[str]:
    """Walk *ordered_ids* and then append any of *existing_ids* it omitted.

    Ids not in *existing_ids* are dropped; a repeated id keeps its first position.
    """
    known = set(existing_ids)
    seen: set[str] = set()
    merged: list[str] = []
    for record_id in ordered_ids:
        if record_id in known and record_id not in seen:
            seen.add(record_id)
            merged.append(record_id)
    for record_id in existing_ids:
        if record_id not in seen:
            seen.add(record_id)
            merged.append(record_id)
    return merged


def resequence(records: Sequence[R]) -> None:
    """Assign ``order = index`` to *records* in place."""
    for idx, record in enumerate(records):
        record.order = idx
