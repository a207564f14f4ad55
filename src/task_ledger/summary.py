"""Period summaries: which tasks were finished (or opened and still pending) when.

Periods run forward from a fixed start date.  A task is placed in the first
period that contains its timestamp, read in the caller's timezone.  The day
view walks the same months as the month view and splits each one into
calendar days.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from enum import Enum
from typing import Iterable, Optional

from .constants import UNKNOWN_MODULE_LABEL
from .storage.model import Module, Task
from .utils import _parse_iso


class ViewMode(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class ItemMode(str, Enum):
    COMPLETED = "completed"
    CREATED_PENDING = "created_pending"


@dataclass(frozen=True)
class Period:
    key: str
    label: str
    start: date
    end_exclusive: date

    def contains(self, day: date) -> bool:
        return self.start <= day < self.end_exclusive


def _add_months(day: date, months: int) -> date:
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def build_periods(
    view: ViewMode | str,
    count: int,
    start: date,
    week_starts_on: int = 0,
) -> list[Period]:
    """Return *count* consecutive periods beginning at (the period containing) *start*.

    The day view uses month periods; see :func:`group_by_day` for the split.

    Args:
        view: Period length.
        count: Number of periods.
        start: First day covered.
        week_starts_on: Weekday weeks start on, 0 = Monday … 6 = Sunday.
    """
    view = ViewMode(view)
    periods: list[Period] = []
    if count <= 0:
        return periods

    if view == ViewMode.WEEK:
        week0 = start - timedelta(days=(start.weekday() - week_starts_on) % 7)
        for i in range(count):
            first = week0 + timedelta(weeks=i)
            last = first + timedelta(days=6)
            iso = first.isocalendar()
            periods.append(Period(
                key=f"{iso.year}-W{iso.week:02d}",
                label=f"{first.isoformat()} ~ {last.isoformat()}",
                start=first,
                end_exclusive=last + timedelta(days=1),
            ))
        return periods

    month0 = start.replace(day=1)
    for i in range(count):
        first = _add_months(month0, i)
        key = f"{first.year:04d}-{first.month:02d}"
        periods.append(Period(key, key, first, _add_months(first, 1)))
    return periods


def item_timestamp(task: Task, item_mode: ItemMode | str) -> Optional[datetime]:
    """Timestamp a task is filed under, or ``None`` if it does not belong to *item_mode*."""
    if ItemMode(item_mode) == ItemMode.COMPLETED:
        return _parse_iso(task.completed_at)
    if task.completed_at is not None:
        return None
    return _parse_iso(task.created_at)


def _local_day(task: Task, item_mode: ItemMode | str, tz: Optional[tzinfo]) -> Optional[date]:
    ts = item_timestamp(task, item_mode)
    return ts.astimezone(tz).date() if ts is not None else None


def _newest_first(bucket: list[Task], item_mode: ItemMode | str) -> None:
    bucket.sort(key=lambda t: item_timestamp(t, item_mode), reverse=True)


def group_by_period(
    tasks: Iterable[Task],
    periods: list[Period],
    item_mode: ItemMode | str,
    tz: Optional[tzinfo] = None,
) -> dict[str, list[Task]]:
    """Bucket tasks by period key, newest first inside each bucket; empty periods are kept."""
    groups: dict[str, list[Task]] = {p.key: [] for p in periods}
    for task in tasks:
        day = _local_day(task, item_mode, tz)
        if day is None:
            continue
        for period in periods:
            if period.contains(day):
                groups[period.key].append(task)
                break
    for bucket in groups.values():
        _newest_first(bucket, item_mode)
    return groups


def group_by_day(
    tasks: Iterable[Task],
    item_mode: ItemMode | str,
    tz: Optional[tzinfo] = None,
    since: Optional[date] = None,
) -> dict[date, list[Task]]:
    """Bucket tasks by calendar day, newest day first and newest task first.

    Days before *since* are dropped.
    """
    days: dict[date, list[Task]] = {}
    for task in tasks:
        day = _local_day(task, item_mode, tz)
        if day is None or (since is not None and day < since):
            continue
        days.setdefault(day, []).append(task)
    for bucket in days.values():
        _newest_first(bucket, item_mode)
    return dict(sorted(days.items(), reverse=True))


def render_summary(
    modules: Iterable[Module],
    tasks: Iterable[Task],
    *,
    view: ViewMode | str = ViewMode.MONTH,
    item_mode: ItemMode | str = ItemMode.COMPLETED,
    count: int = 12,
    start: date,
    week_starts_on: int = 0,
    tz: Optional[tzinfo] = None,
) -> str:
    """Plain-text report with one section per non-empty period.

    In the day view each month section lists its days as ``YYYY-MM-DD``
    sub-headers, newest first.
    """
    names = {m.id: m.name for m in modules}
    periods = build_periods(view, count, start, week_starts_on)
    groups = group_by_period(tasks, periods, item_mode, tz)
    by_day = ViewMode(view) == ViewMode.DAY

    def _line(task: Task) -> str:
        return f"- [{names.get(task.module_id, UNKNOWN_MODULE_LABEL)}] {task.title}"

    lines: list[str] = []
    for period in periods:
        if by_day:
            days = group_by_day(groups[period.key], item_mode, tz, since=start)
            total = sum(len(b) for b in days.values())
        else:
            total = len(groups[period.key])
        if not total:
            continue
        if lines:
            lines.append("")
        lines.append(f"{period.label} ({total})")
        if by_day:
            for day, bucket in days.items():
                lines.append(day.isoformat())
                lines.extend(_line(task) for task in bucket)
        else:
            lines.extend(_line(task) for task in groups[period.key])
    return "\n".join(lines)
