"""Ledger service: every create, update, delete and re-sequence operation.

This is the only writer of the store.  Each read-modify-write that touches
ordering or spans several records runs inside one
:meth:`LedgerStore.transaction`, so duplicate or overlapping calls see either
the state before or the state after, never a half-applied move.

Operating on an id that no longer exists is not an error: the call returns
``None`` (or ``False``) and writes nothing.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from loguru import logger

from .bootstrap import ensure_baseline, ensure_baseline_tx
from .colors import random_module_color
from .config import LedgerConfig
from .errors import ValidationError
from .ordering import (
    append_order,
    front_order,
    in_container,
    merge_sequence,
    resequence,
    sort_key,
    sorted_records,
)
from .storage.model import ContainerKey, ContainerKind, Module, Task, parse_container_key
from .storage.store import LedgerStore, LedgerTx
from .utils import _now_iso


def _required(value: Optional[str], label: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(f"{label} must not be empty")
    return cleaned


class LedgerService:
    """Mutations and reads over one :class:`LedgerStore`.

    Parameters
    ----------
    store:
        The opened store.
    config:
        Ledger configuration (default module name and pattern).
    """

    def __init__(self, store: LedgerStore, config: Optional[LedgerConfig] = None) -> None:
        self.store = store
        self.config = config or LedgerConfig()

    # ------------------------------------------------------------------
    # Bootstrap
    # ------------------------------------------------------------------

    def ensure_baseline(self) -> Optional[Module]:
        return ensure_baseline(self.store, self.config)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_modules(self) -> list[Module]:
        modules, _ = self.store.read_snapshot()
        return sorted_records(modules)

    def get_module(self, module_id: str) -> Optional[Module]:
        with self.store.transaction() as tx:
            return tx.modules.get(module_id)

    def get_task(self, task_id: str) -> Optional[Task]:
        with self.store.transaction() as tx:
            return tx.tasks.get(task_id)

    def list_tasks(
        self,
        module_id: Optional[str] = None,
        kind: Optional[ContainerKind | str] = None,
    ) -> list[Task]:
        """Tasks sorted by ``(order, created_at, id)``, optionally narrowed to a module and kind."""
        _, tasks = self.store.read_snapshot()
        if module_id is not None:
            tasks = [t for t in tasks if t.module_id == module_id]
        if kind is not None:
            wanted = ContainerKind(kind)
            tasks = [t for t in tasks if t.kind == wanted]
        return sorted_records(tasks)

    def get_board(self) -> list[dict[str, Any]]:
        """Return one lane per module: ``{"module", "pending", "done"}``, lanes and tasks in order."""
        modules, tasks = self.store.read_snapshot()
        lanes: list[dict[str, Any]] = []
        for module in sorted_records(modules):
            own = [t for t in tasks if t.module_id == module.id]
            lanes.append({
                "module": module,
                "pending": sorted_records(t for t in own if not t.is_done),
                "done": sorted_records(t for t in own if t.is_done),
            })
        return lanes

    # ------------------------------------------------------------------
    # Modules
    # ------------------------------------------------------------------

    def create_module(self, name: str, color: Optional[str] = None) -> Module:
        """Append a new module after every existing one."""
        name = _required(name, "Module name")
        with self.store.transaction() as tx:
            module = Module(
                name=name,
                color=color or random_module_color(),
                order=append_order(m.order for m in tx.modules.to_list()),
            )
            tx.modules.add(module)
        logger.info("Created module {} ({}) at order {}", module.id, module.name, module.order)
        return module

    def update_module(
        self,
        module_id: str,
        *,
        name: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Optional[Module]:
        changes: dict[str, Any] = {}
        if name is not None:
            changes["name"] = _required(name, "Module name")
        if color is not None:
            changes["color"] = color
        with self.store.transaction() as tx:
            module = tx.modules.update(module_id, changes)
        if module is None:
            logger.debug("update_module: {} not found", module_id)
        return module

    def delete_module(self, module_id: str) -> bool:
        """Delete a module and its tasks, then restore the at-least-one-module invariant."""
        with self.store.transaction() as tx:
            existed = tx.modules.delete(module_id)
            removed = tx.tasks.bulk_delete(t.id for t in tx.tasks.where(module_id=module_id))
            ensure_baseline_tx(tx, self.config)
        if existed:
            logger.info("Deleted module {} with {} tasks", module_id, removed)
        else:
            logger.debug("delete_module: {} not found", module_id)
        return existed

    def reorder_modules(self, ordered_ids: Sequence[str]) -> list[Module]:
        """Re-sequence every module to follow *ordered_ids*.

        Modules missing from *ordered_ids* keep their relative order after the
        listed ones.  Orders come out dense ``0..n-1``.
        """
        with self.store.transaction() as tx:
            current = sorted_records(tx.modules.to_list())
            merged_ids = merge_sequence(ordered_ids, [m.id for m in current])
            by_id = {m.id: m for m in current}
            merged = [by_id[mid] for mid in merged_ids]
            resequence(merged)
            for module in merged:
                module.touch()
            tx.modules.bulk_put(merged)
        logger.info("Reordered {} modules", len(merged))
        return merged

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def create_task(self, module_id: str, title: str, detail: str = "") -> Task:
        """Insert a pending task at the front of the module's pending list."""
        title = _required(title, "Task title")
        with self.store.transaction() as tx:
            self._require_module(tx, module_id)
            pending = ContainerKey(ContainerKind.PENDING, module_id)
            siblings = tx.tasks.filter(lambda t: in_container(t, pending))
            task = Task(
                module_id=module_id,
                title=title,
                detail=detail or "",
                order=front_order(t.order for t in siblings),
                completed_at=None,
            )
            tx.tasks.add(task)
        logger.info("Created task {} in {} at order {}", task.id, module_id, task.order)
        return task

    def update_task(
        self,
        task_id: str,
        *,
        title: Optional[str] = None,
        detail: Optional[str] = None,
    ) -> Optional[Task]:
        changes: dict[str, Any] = {}
        if title is not None:
            changes["title"] = _required(title, "Task title")
        if detail is not None:
            changes["detail"] = detail
        with self.store.transaction() as tx:
            task = tx.tasks.update(task_id, changes)
        if task is None:
            logger.debug("update_task: {} not found", task_id)
        return task

    def delete_task(self, task_id: str) -> bool:
        with self.store.transaction() as tx:
            existed = tx.tasks.delete(task_id)
        if not existed:
            logger.debug("delete_task: {} not found", task_id)
        return existed

    def set_task_completion(self, task_id: str, completed: bool) -> Optional[Task]:
        """Mark a task done (appended to the end of done) or pending (moved to the front of pending)."""
        with self.store.transaction() as tx:
            task = tx.tasks.get(task_id)
            if task is None:
                logger.debug("set_task_completion: {} not found", task_id)
                return None

            target = ContainerKey(ContainerKind.DONE if completed else ContainerKind.PENDING, task.module_id)
            others = tx.tasks.filter(lambda t: t.id != task_id and in_container(t, target))
            if completed:
                changes = {
                    "completed_at": _now_iso(),
                    "order": append_order(t.order for t in others),
                }
            else:
                changes = {
                    "completed_at": None,
                    "order": front_order(t.order for t in others),
                }
            task = tx.tasks.update(task_id, changes)
        return task

    def move_and_reorder_task(
        self,
        task_id: str,
        from_container: ContainerKey | str,
        to_container: ContainerKey | str,
        ordered_ids_in_to: Sequence[str],
        ordered_ids_in_from: Optional[Sequence[str]] = None,
    ) -> Optional[Task]:
        """Drop a task into a container at the position given by the caller's final ordering.

        Moving between a pending and a done container also flips completion.
        *ordered_ids_in_to* is the full final order of the destination and
        overwrites whatever orders were stored there.  When the source differs
        from the destination it is re-sequenced too, from *ordered_ids_in_from*
        if given, otherwise from its stored order with the moved task left out.
        """
        source = parse_container_key(from_container)
        target = parse_container_key(to_container)
        if task_id not in ordered_ids_in_to:
            raise ValidationError(f"Destination ordering must include the moved task {task_id}")

        with self.store.transaction() as tx:
            task = tx.tasks.get(task_id)
            if task is None:
                logger.debug("move_and_reorder_task: {} not found", task_id)
                return None
            self._require_module(tx, target.module_id)

            now = _now_iso()
            tx.tasks.update(task_id, {
                "module_id": target.module_id,
                "completed_at": now if target.kind == ContainerKind.DONE else None,
            })

            self._apply_ordering(tx, target, ordered_ids_in_to)

            if source != target:
                if ordered_ids_in_from is not None:
                    self._apply_ordering(tx, source, [i for i in ordered_ids_in_from if i != task_id])
                else:
                    remaining = tx.tasks.filter(lambda t: t.id != task_id and in_container(t, source))
                    remaining.sort(key=sort_key)
                    resequence(remaining)
                    for t in remaining:
                        t.touch()
                    tx.tasks.bulk_put(remaining)

        logger.info(
            "Moved task {} from {} to {} at position {}",
            task_id, source, target, list(ordered_ids_in_to).index(task_id),
        )
        return task

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _require_module(tx: LedgerTx, module_id: str) -> Module:
        module = tx.modules.get(module_id)
        if module is None:
            raise ValidationError(f"Module {module_id} does not exist")
        return module

    @staticmethod
    def _apply_ordering(tx: LedgerTx, container: ContainerKey, ordered_ids: Sequence[str]) -> None:
        """Give the tasks named in *ordered_ids* dense orders in that sequence.

        Ids that are unknown or no longer belong to *container* are skipped.
        """
        seen: set[str] = set()
        members: list[Task] = []
        for task_id in ordered_ids:
            task = tx.tasks.get(task_id)
            if task is None or task_id in seen or not in_container(task, container):
                continue
            seen.add(task_id)
            members.append(task)
        resequence(members)
        for task in members:
            task.touch()
        tx.tasks.bulk_put(members)
