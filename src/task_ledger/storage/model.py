"""Records persisted by the ledger store, and the derived container key.

Modules are the ordered lanes; tasks live inside a module and are split into a
pending and a done sub-list by the nullness of ``completed_at``.  The pair
``(kind, module_id)`` is the *container* a task's ``order`` is relative to.  It
is computed, never stored.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, NamedTuple, Optional

from ..errors import ValidationError
from ..utils import _now_iso, new_id


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass
class Module:
    """A named, colored lane.  Lanes are ordered by ``(order, created_at, id)``."""

    id: str = field(default_factory=lambda: new_id("mod"))
    name: str = ""
    color: str = ""
    order: int = 0
    created_at: str = field(default_factory=_now_iso)
    updated_at: str = field(default_factory=_now_iso)

    def touch(self) -> None:
        self.updated_at = _now_iso()

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Module":
        now = _now_iso()
        return cls(
            id=str(data.get("id") or new_id("mod")),
            name=str(data.get("name") or ""),
            color=str(data.get("color") or ""),
            order=int(data.get("order") or 0),
            created_at=str(data.get("created_at") or now),
            updated_at=str(data.get("updated_at") or now),
        )


@dataclass
class Task:
    """A work item.  ``order`` is only comparable inside its container."""

    id: str = field(default_factory=lambda: new_id("task"))
    module_id: str = ""
    title: str = ""
    detail: str = ""
    order: int = 0
    created_at: str = field(default_factory=_now_iso)
    completed_at: Optional[str] = None
    updated_at: str = field(default_factory=_now_iso)

    @property
    def is_done(self) -> bool:
        return self.completed_at is not None

    @property
    def kind(self) -> "ContainerKind":
        return ContainerKind.DONE if self.is_done else ContainerKind.PENDING

    @property
    def container(self) -> "ContainerKey":
        return ContainerKey(self.kind, self.module_id)

    def touch(self) -> None:
        self.updated_at = _now_iso()

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        now = _now_iso()
        completed_at = data.get("completed_at")
        return cls(
            id=str(data.get("id") or new_id("task")),
            module_id=str(data.get("module_id") or ""),
            title=str(data.get("title") or ""),
            detail=str(data.get("detail") or ""),
            order=int(data.get("order") or 0),
            created_at=str(data.get("created_at") or now),
            completed_at=str(completed_at) if completed_at else None,
            updated_at=str(data.get("updated_at") or now),
        )


# ---------------------------------------------------------------------------
# Containers
# ---------------------------------------------------------------------------

class ContainerKind(str, Enum):
    """Which sub-list of a module a task sits in."""

    PENDING = "pending"
    DONE = "done"


class ContainerKey(NamedTuple):
    kind: ContainerKind
    module_id: str

    def __str__(self) -> str:
        return container_key(self.kind, self.module_id)


def container_key(kind: ContainerKind | str, module_id: str) -> str:
    """Format a container as ``"<kind>:<module_id>"``."""
    return f"{ContainerKind(kind).value}:{module_id}"


def parse_container_key(key: ContainerKey | str) -> ContainerKey:
    """Parse ``"pending:mod-…"`` / ``"done:mod-…"`` into a :class:`ContainerKey`.

    Raises :class:`ValidationError` on anything else.
    """
    if isinstance(key, ContainerKey):
        raw_kind, module_id = key.kind, key.module_id
    else:
        raw_kind, sep, module_id = str(key).partition(":")
        if not sep:
            raise ValidationError(f"Malformed container key: {key!r}")
    if not module_id:
        raise ValidationError(f"Malformed container key: {key!r}")
    try:
        kind = ContainerKind(raw_kind)
    except ValueError:
        raise ValidationError(
            f"Unknown container kind {raw_kind!r}; expected one of {[k.value for k in ContainerKind]}"
        ) from None
    return ContainerKey(kind, module_id)
