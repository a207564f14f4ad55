"""Provide timestamp and identifier helpers."""

from __future__ import annotations

import secrets
import time
from datetime import datetime, timezone
from typing import Optional


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _parse_iso(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        if not isinstance(value, str):
            value = str(value)
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        dt = datetime.fromisoformat(value)
        # If a naive timestamp slips in, assume UTC to avoid crashes.
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
    except ValueError:
        return None


def new_id(prefix: str) -> str:
    """Return an opaque unique id tagged with *prefix*, e.g. ``mod-18f3a…``.

    Millisecond time plus 128 random bits. Never checked against the store.
    """
    stamp = format(time.time_ns() // 1_000_000, "x")
    return f"{prefix}-{stamp}{secrets.token_hex(16)}"
