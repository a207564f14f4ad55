"""Tests for order arithmetic and container keys."""

from __future__ import annotations

import pytest

from task_ledger.errors import ValidationError
from task_ledger.ordering import (
    append_order,
    front_order,
    in_container,
    merge_sequence,
    resequence,
    sorted_records,
)
from task_ledger.storage.model import (
    ContainerKey,
    ContainerKind,
    Module,
    Task,
    container_key,
    parse_container_key,
)


class TestOrders:
    def test_append_and_front(self) -> None:
        assert append_order([]) == 0
        assert append_order([0, 4, 2]) == 5
        assert front_order([]) == -1
        assert front_order([-3, 0, 7]) == -4

    def test_sort_ties_break_on_created_then_id(self) -> None:
        records = [
            Module(id="b", order=1, created_at="2026-01-02T00:00:00+00:00"),
            Module(id="a", order=1, created_at="2026-01-02T00:00:00+00:00"),
            Module(id="c", order=1, created_at="2026-01-01T00:00:00+00:00"),
            Module(id="d", order=0, created_at="2026-01-03T00:00:00+00:00"),
        ]
        assert [m.id for m in sorted_records(records)] == ["d", "c", "a", "b"]

    def test_resequence_is_dense(self) -> None:
        records = [Module(id="x", order=9), Module(id="y", order=-4)]
        resequence(records)
        assert [m.order for m in records] == [0, 1]

    def test_merge_sequence(self) -> None:
        merged = merge_sequence(["c", "ghost", "a", "c"], ["a", "b", "c"])
        assert merged == ["c", "a", "b"]


class TestContainers:
    def test_key_roundtrip(self) -> None:
        key = container_key("done", "mod-1")
        assert key == "done:mod-1"
        assert parse_container_key(key) == ContainerKey(ContainerKind.DONE, "mod-1")
        assert str(ContainerKey(ContainerKind.PENDING, "m")) == "pending:m"

    def test_module_id_may_contain_colon(self) -> None:
        assert parse_container_key("pending:a:b").module_id == "a:b"

    @pytest.mark.parametrize("raw", ["", "pending", "pending:", "archived:m1", ":m1"])
    def test_malformed_keys(self, raw: str) -> None:
        with pytest.raises(ValidationError):
            parse_container_key(raw)

    def test_key_objects_are_validated(self) -> None:
        assert parse_container_key(ContainerKey("done", "m1")) == ContainerKey(ContainerKind.DONE, "m1")
        with pytest.raises(ValidationError):
            parse_container_key(ContainerKey("archived", "m1"))
        with pytest.raises(ValidationError):
            parse_container_key(ContainerKey(ContainerKind.PENDING, ""))

    def test_membership_follows_completion(self) -> None:
        task = Task(module_id="m1", title="x")
        assert in_container(task, ContainerKey(ContainerKind.PENDING, "m1"))
        assert not in_container(task, ContainerKey(ContainerKind.DONE, "m1"))
        assert not in_container(task, ContainerKey(ContainerKind.PENDING, "m2"))
        task.completed_at = "2026-02-01T00:00:00+00:00"
        assert task.container == ContainerKey(ContainerKind.DONE, "m1")
