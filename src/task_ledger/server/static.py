"""Serve a built single-page UI with fallback to ``index.html``."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Optional

from ..constants import DIST_DIR_ENV


def first_existing_dir(candidates: Iterable[Optional[str | Path]]) -> Optional[Path]:
    for candidate in candidates:
        if not candidate:
            continue
        path = Path(candidate).expanduser()
        if path.is_dir():
            return path.resolve()
    return None


def resolve_dist_dir(explicit: Optional[str | Path] = None) -> Optional[Path]:
    """Find the UI build: explicit path, then ``$TASK_LEDGER_DIST_DIR``, then ``./dist``."""
    return first_existing_dir([
        explicit,
        os.environ.get(DIST_DIR_ENV),
        Path.cwd() / "dist",
    ])


def resolve_asset(dist_dir: Path, request_path: str) -> Optional[Path]:
    """Map a URL path to a file inside *dist_dir*.

    Tries ``path``, ``path.html`` and ``path/index.html``; anything that would
    escape *dist_dir* is ignored.  Returns ``index.html`` when nothing matches,
    or ``None`` if the build has no index either.
    """
    root = dist_dir.resolve()
    relative = request_path.strip("/") or "index.html"
    candidate = (root / relative).resolve()
    if candidate == root or root in candidate.parents:
        for path in (candidate, candidate.with_name(candidate.name + ".html"), candidate / "index.html"):
            if path.is_file() and root in path.resolve().parents:
                return path
    index = root / "index.html"
    return index if index.is_file() else None
