"""Tests for period summaries (summary.py)."""

from __future__ import annotations

from datetime import date, timezone

from task_ledger.storage.model import Module, Task
from task_ledger.summary import (
    ItemMode,
    ViewMode,
    build_periods,
    group_by_day,
    group_by_period,
    render_summary,
)

START = date(2026, 1, 1)


def _task(task_id: str, *, created: str, completed: str | None = None, module_id: str = "m1") -> Task:
    return Task(id=task_id, module_id=module_id, title=task_id.upper(), created_at=created, completed_at=completed)


class TestPeriods:
    def test_day_view_uses_months(self) -> None:
        periods = build_periods(ViewMode.DAY, 12, START)
        assert periods[0].key == "2026-01"
        assert periods[-1].key == "2026-12"

    def test_weeks_start_monday(self) -> None:
        periods = build_periods("week", 2, START)
        # 2026-01-01 is a Thursday.
        assert periods[0].start == date(2025, 12, 29)
        assert periods[0].label == "2025-12-29 ~ 2026-01-04"
        assert periods[0].key == "2026-W01"
        assert periods[1].start == date(2026, 1, 5)

    def test_weeks_start_sunday(self) -> None:
        periods = build_periods(ViewMode.WEEK, 1, START, week_starts_on=6)
        assert periods[0].start == date(2025, 12, 28)

    def test_months_cross_year(self) -> None:
        periods = build_periods(ViewMode.MONTH, 3, date(2026, 11, 15))
        assert [p.key for p in periods] == ["2026-11", "2026-12", "2027-01"]
        assert periods[1].end_exclusive == date(2027, 1, 1)

    def test_zero_count(self) -> None:
        assert build_periods(ViewMode.DAY, 0, START) == []


class TestGrouping:
    def test_completed_newest_first(self) -> None:
        tasks = [
            _task("a", created="2026-01-01T08:00:00+00:00", completed="2026-01-03T09:00:00+00:00"),
            _task("b", created="2026-01-01T08:00:00+00:00", completed="2026-01-20T09:00:00+00:00"),
            _task("c", created="2026-01-01T08:00:00+00:00"),
            _task("d", created="2025-06-01T08:00:00+00:00", completed="2025-06-02T08:00:00+00:00"),
        ]
        periods = build_periods(ViewMode.MONTH, 2, START)
        groups = group_by_period(tasks, periods, ItemMode.COMPLETED, tz=timezone.utc)
        assert [t.id for t in groups["2026-01"]] == ["b", "a"]
        assert groups["2026-02"] == []

    def test_created_pending_skips_done(self) -> None:
        tasks = [
            _task("a", created="2026-01-02T08:00:00+00:00"),
            _task("b", created="2026-01-02T09:00:00+00:00", completed="2026-01-02T10:00:00+00:00"),
        ]
        periods = build_periods(ViewMode.MONTH, 1, START)
        groups = group_by_period(tasks, periods, ItemMode.CREATED_PENDING, tz=timezone.utc)
        assert [t.id for t in groups["2026-01"]] == ["a"]


class TestRender:
    def test_render(self) -> None:
        modules = [Module(id="m1", name="Work")]
        tasks = [
            _task("a", created="2026-01-01T08:00:00+00:00", completed="2026-01-05T09:00:00+00:00"),
            _task("b", created="2026-01-01T08:00:00+00:00", completed="2026-03-05T09:00:00+00:00", module_id="gone"),
        ]
        text = render_summary(
            modules, tasks, view=ViewMode.MONTH, item_mode=ItemMode.COMPLETED,
            count=3, start=START, tz=timezone.utc,
        )
        assert text == "2026-01 (1)\n- [Work] A\n\n2026-03 (1)\n- [Unknown module] B"

    def test_render_empty(self) -> None:
        assert render_summary([], [], start=START, tz=timezone.utc) == ""

    def test_day_view_spans_months_with_day_headers(self) -> None:
        modules = [Module(id="m1", name="Work")]
        tasks = [
            _task("a", created="2026-01-01T08:00:00+00:00", completed="2026-03-05T09:00:00+00:00"),
            _task("b", created="2026-01-01T08:00:00+00:00", completed="2026-03-05T17:00:00+00:00"),
            _task("c", created="2026-01-01T08:00:00+00:00", completed="2026-03-02T09:00:00+00:00"),
        ]
        text = render_summary(
            modules, tasks, view=ViewMode.DAY, item_mode=ItemMode.COMPLETED,
            count=12, start=START, tz=timezone.utc,
        )
        assert text == (
            "2026-03 (3)\n"
            "2026-03-05\n- [Work] B\n- [Work] A\n"
            "2026-03-02\n- [Work] C"
        )

    def test_day_view_skips_days_before_start(self) -> None:
        modules = [Module(id="m1", name="Work")]
        tasks = [
            _task("early", created="2026-01-01T08:00:00+00:00", completed="2026-01-03T09:00:00+00:00"),
            _task("late", created="2026-01-01T08:00:00+00:00", completed="2026-01-20T09:00:00+00:00"),
        ]
        text = render_summary(
            modules, tasks, view=ViewMode.DAY, count=1, start=date(2026, 1, 10), tz=timezone.utc,
        )
        assert text == "2026-01 (1)\n2026-01-20\n- [Work] LATE"


class TestGroupByDay:
    def test_newest_day_first(self) -> None:
        tasks = [
            _task("a", created="2026-02-01T08:00:00+00:00"),
            _task("b", created="2026-02-03T08:00:00+00:00"),
            _task("c", created="2026-02-03T10:00:00+00:00"),
        ]
        days = group_by_day(tasks, ItemMode.CREATED_PENDING, tz=timezone.utc)
        assert list(days) == [date(2026, 2, 3), date(2026, 2, 1)]
        assert [t.id for t in days[date(2026, 2, 3)]] == ["c", "b"]
