"""Tests for LedgerService mutations and reads (service.py)."""

from __future__ import annotations

import pytest

from task_ledger.errors import ValidationError
from task_ledger.service import LedgerService
from task_ledger.storage.model import ContainerKey, ContainerKind, Module, Task


@pytest.fixture
def home(service: LedgerService) -> Module:
    created = service.ensure_baseline()
    assert created is not None
    return created


def _ids(tasks: list[Task]) -> list[str]:
    return [t.id for t in tasks]


def _pending(service: LedgerService, module_id: str) -> list[str]:
    return _ids(service.list_tasks(module_id, ContainerKind.PENDING))


def _done(service: LedgerService, module_id: str) -> list[str]:
    return _ids(service.list_tasks(module_id, ContainerKind.DONE))


# ---------------------------------------------------------------------------
# Modules
# ---------------------------------------------------------------------------

class TestModules:
    def test_create_appends(self, service: LedgerService, home: Module) -> None:
        work = service.create_module("  Work  ")
        life = service.create_module("Life", color="#123456")
        assert work.name == "Work"
        assert work.order == home.order + 1
        assert life.order == work.order + 1
        assert life.color == "#123456"
        assert [m.id for m in service.list_modules()] == [home.id, work.id, life.id]

    def test_create_rejects_blank_name(self, service: LedgerService) -> None:
        with pytest.raises(ValidationError):
            service.create_module("   ")

    def test_update(self, service: LedgerService, home: Module) -> None:
        updated = service.update_module(home.id, name="Inbox", color="#000000")
        assert updated is not None
        assert (updated.name, updated.color) == ("Inbox", "#000000")
        assert service.get_module(home.id).name == "Inbox"

    def test_update_missing_is_noop(self, service: LedgerService) -> None:
        assert service.update_module("mod-missing", name="x") is None

    def test_reorder_reads_back(self, service: LedgerService, home: Module) -> None:
        m2 = service.create_module("Second")
        service.reorder_modules([m2.id, home.id])
        assert [m.id for m in service.list_modules()] == [m2.id, home.id]

    def test_reorder_is_dense_and_keeps_omitted(self, service: LedgerService, home: Module) -> None:
        a = service.create_module("A")
        b = service.create_module("B")
        result = service.reorder_modules([b.id, "mod-ghost", b.id])
        assert [m.id for m in result] == [b.id, home.id, a.id]
        assert [m.order for m in service.list_modules()] == [0, 1, 2]

    def test_delete_cascades_tasks(self, service: LedgerService, home: Module) -> None:
        other = service.create_module("Other")
        service.create_task(other.id, "gone")
        kept = service.create_task(home.id, "kept")
        assert service.delete_module(other.id) is True
        assert [m.id for m in service.list_modules()] == [home.id]
        assert _ids(service.list_tasks()) == [kept.id]

    def test_delete_last_module_recreates_default(self, service: LedgerService, home: Module) -> None:
        service.create_task(home.id, "doomed")
        assert service.delete_module(home.id) is True
        modules = service.list_modules()
        assert len(modules) == 1
        assert modules[0].id != home.id
        assert modules[0].name == "Default"
        assert service.list_tasks() == []

        service.ensure_baseline()
        assert len(service.list_modules()) == 1

    def test_delete_missing(self, service: LedgerService, home: Module) -> None:
        assert service.delete_module("mod-missing") is False
        assert len(service.list_modules()) == 1


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

class TestTasks:
    def test_new_tasks_go_to_front(self, service: LedgerService, home: Module) -> None:
        a = service.create_task(home.id, "A")
        b = service.create_task(home.id, "B")
        assert home.order == 0
        assert a.order == -1
        assert b.order == -2
        assert _pending(service, home.id) == [b.id, a.id]

    def test_new_task_order_below_every_pending_sibling(self, service: LedgerService, home: Module) -> None:
        for title in ("a", "b", "c"):
            service.create_task(home.id, title)
        siblings = service.list_tasks(home.id, ContainerKind.PENDING)
        newest = service.create_task(home.id, "d")
        assert all(newest.order < t.order for t in siblings)

    def test_create_requires_existing_module(self, service: LedgerService, home: Module) -> None:
        with pytest.raises(ValidationError, match="does not exist"):
            service.create_task("mod-missing", "orphan")
        assert service.list_tasks() == []

    def test_create_rejects_blank_title(self, service: LedgerService, home: Module) -> None:
        with pytest.raises(ValidationError):
            service.create_task(home.id, "")

    def test_update_and_delete(self, service: LedgerService, home: Module) -> None:
        task = service.create_task(home.id, "draft", "notes")
        updated = service.update_task(task.id, title="final")
        assert updated is not None
        assert (updated.title, updated.detail) == ("final", "notes")
        assert service.delete_task(task.id) is True
        assert service.get_task(task.id) is None
        assert service.delete_task(task.id) is False
        assert service.update_task(task.id, title="x") is None

    def test_complete_appends_to_done(self, service: LedgerService, home: Module) -> None:
        a = service.create_task(home.id, "A")
        b = service.create_task(home.id, "B")
        done_a = service.set_task_completion(a.id, True)
        done_b = service.set_task_completion(b.id, True)
        assert done_a.completed_at is not None
        assert done_b.order > done_a.order
        assert _done(service, home.id) == [a.id, b.id]
        assert _pending(service, home.id) == []

    def test_complete_then_reopen(self, service: LedgerService, home: Module) -> None:
        a = service.create_task(home.id, "A")
        b = service.create_task(home.id, "B")
        service.set_task_completion(a.id, True)
        reopened = service.set_task_completion(a.id, False)
        assert reopened.completed_at is None
        assert _pending(service, home.id) == [a.id, b.id]

    def test_completion_on_missing_task(self, service: LedgerService) -> None:
        assert service.set_task_completion("task-missing", True) is None

    def test_board(self, service: LedgerService, home: Module) -> None:
        other = service.create_module("Other")
        a = service.create_task(home.id, "A")
        b = service.create_task(home.id, "B")
        service.set_task_completion(a.id, True)
        lanes = service.get_board()
        assert [lane["module"].id for lane in lanes] == [home.id, other.id]
        assert _ids(lanes[0]["pending"]) == [b.id]
        assert _ids(lanes[0]["done"]) == [a.id]
        assert lanes[1]["pending"] == [] and lanes[1]["done"] == []


# ---------------------------------------------------------------------------
# Drag and drop
# ---------------------------------------------------------------------------

class TestMoveAndReorder:
    def test_move_between_modules(self, service: LedgerService, home: Module) -> None:
        other = service.create_module("Other")
        x = service.create_task(other.id, "x")
        y = service.create_task(other.id, "y")
        task = service.create_task(home.id, "moving")
        stay = service.create_task(home.id, "stay")

        moved = service.move_and_reorder_task(
            task.id,
            f"pending:{home.id}",
            f"pending:{other.id}",
            [task.id, x.id, y.id],
        )
        assert moved is not None
        assert moved.module_id == other.id
        assert _pending(service, other.id) == [task.id, x.id, y.id]
        assert [t.order for t in service.list_tasks(other.id)] == [0, 1, 2]
        assert _pending(service, home.id) == [stay.id]
        assert service.get_task(stay.id).order == 0

    def test_reorder_within_container(self, service: LedgerService, home: Module) -> None:
        a = service.create_task(home.id, "A")
        b = service.create_task(home.id, "B")
        c = service.create_task(home.id, "C")
        key = f"pending:{home.id}"
        service.move_and_reorder_task(a.id, key, key, [a.id, c.id, b.id])
        assert _pending(service, home.id) == [a.id, c.id, b.id]

    def test_move_to_done_sets_completed(self, service: LedgerService, home: Module) -> None:
        a = service.create_task(home.id, "A")
        b = service.create_task(home.id, "B")
        service.set_task_completion(b.id, True)
        moved = service.move_and_reorder_task(
            a.id, f"pending:{home.id}", f"done:{home.id}", [a.id, b.id],
        )
        assert moved.completed_at is not None
        assert _done(service, home.id) == [a.id, b.id]

    def test_move_to_pending_clears_completed(self, service: LedgerService, home: Module) -> None:
        a = service.create_task(home.id, "A")
        b = service.create_task(home.id, "B")
        service.set_task_completion(a.id, True)
        moved = service.move_and_reorder_task(
            a.id, f"done:{home.id}", f"pending:{home.id}", [b.id, a.id],
        )
        assert moved.completed_at is None
        assert _pending(service, home.id) == [b.id, a.id]
        assert _done(service, home.id) == []

    def test_explicit_source_ordering(self, service: LedgerService, home: Module) -> None:
        other = service.create_module("Other")
        a = service.create_task(home.id, "A")
        b = service.create_task(home.id, "B")
        c = service.create_task(home.id, "C")
        service.move_and_reorder_task(
            b.id,
            f"pending:{home.id}",
            f"pending:{other.id}",
            [b.id],
            [a.id, b.id, c.id],
        )
        assert _pending(service, home.id) == [a.id, c.id]
        assert [t.order for t in service.list_tasks(home.id)] == [0, 1]

    def test_stale_ids_are_skipped(self, service: LedgerService, home: Module) -> None:
        other = service.create_module("Other")
        a = service.create_task(home.id, "A")
        foreign = service.create_task(other.id, "foreign")
        key = f"pending:{home.id}"
        service.move_and_reorder_task(a.id, key, key, ["task-ghost", foreign.id, a.id])
        assert service.get_task(a.id).order == 0
        assert service.get_task(foreign.id).module_id == other.id

    def test_destination_must_name_moved_task(self, service: LedgerService, home: Module) -> None:
        a = service.create_task(home.id, "A")
        key = f"pending:{home.id}"
        with pytest.raises(ValidationError):
            service.move_and_reorder_task(a.id, key, key, [])

    def test_bad_container_key(self, service: LedgerService, home: Module) -> None:
        a = service.create_task(home.id, "A")
        with pytest.raises(ValidationError):
            service.move_and_reorder_task(a.id, "pending", f"pending:{home.id}", [a.id])

    def test_unknown_target_module(self, service: LedgerService, home: Module) -> None:
        a = service.create_task(home.id, "A")
        with pytest.raises(ValidationError, match="does not exist"):
            service.move_and_reorder_task(a.id, f"pending:{home.id}", "pending:mod-ghost", [a.id])
        assert service.get_task(a.id).module_id == home.id

    def test_invalid_container_key_object_writes_nothing(self, service: LedgerService, home: Module) -> None:
        a = service.create_task(home.id, "A")
        b = service.create_task(home.id, "B")
        before = [t.to_dict() for t in service.list_tasks(home.id)]
        bogus = ContainerKey("archived", home.id)
        with pytest.raises(ValidationError, match="Unknown container kind"):
            service.move_and_reorder_task(a.id, bogus, bogus, [a.id, b.id])
        assert [t.to_dict() for t in service.list_tasks(home.id)] == before

    def test_missing_task_with_deleted_target_is_noop(self, service: LedgerService, home: Module) -> None:
        other = service.create_module("Other")
        service.delete_module(other.id)
        result = service.move_and_reorder_task(
            "task-ghost", f"pending:{home.id}", f"pending:{other.id}", ["task-ghost"],
        )
        assert result is None

    def test_missing_task_is_noop(self, service: LedgerService, home: Module) -> None:
        key = f"pending:{home.id}"
        assert service.move_and_reorder_task("task-ghost", key, key, ["task-ghost"]) is None


class TestScenario:
    def test_fresh_store_walkthrough(self, service: LedgerService) -> None:
        service.ensure_baseline()
        service.ensure_baseline()
        modules = service.list_modules()
        assert [(m.name, m.order) for m in modules] == [("Default", 0)]

        home = modules[0]
        a = service.create_task(home.id, "A")
        b = service.create_task(home.id, "B")
        assert (a.order, b.order) == (-1, -2)
        assert _pending(service, home.id) == [b.id, a.id]
