"""Load optional ledger configuration from `<state_dir>/config.yaml`."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Optional

from .constants import (
    CONFIG_FILE,
    DEFAULT_LOCK_TIMEOUT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MODULE_NAME,
    DEFAULT_SUMMARY_START,
    DEFAULT_WEEK_STARTS_ON,
    STATE_DIR_ENV,
    STATE_DIR_NAME,
)
from .io_utils import _load_yaml_with_error


def resolve_state_dir(explicit: Optional[str | Path] = None) -> Path:
    """Pick the state directory: explicit path, then ``$TASK_LEDGER_HOME``, then ``~/.task_ledger``."""
    if explicit:
        return Path(explicit).expanduser().resolve()
    env = os.environ.get(STATE_DIR_ENV)
    if env:
        return Path(env).expanduser().resolve()
    return (Path.home() / STATE_DIR_NAME).resolve()


@dataclass(frozen=True)
class LedgerConfig:
    default_module_name: str = DEFAULT_MODULE_NAME
    default_name_pattern: Optional[str] = None
    log_level: str = DEFAULT_LOG_LEVEL
    lock_timeout: float = DEFAULT_LOCK_TIMEOUT
    summary_start: str = DEFAULT_SUMMARY_START
    week_starts_on: int = DEFAULT_WEEK_STARTS_ON

    def default_name_regex(self) -> re.Pattern[str]:
        """Pattern matching auto-created module names ("Default", "Default 2", ...)."""
        if self.default_name_pattern:
            return re.compile(self.default_name_pattern)
        return re.compile(rf"^{re.escape(self.default_module_name)}(\s*\d+)?$")

    def is_default_name(self, name: str) -> bool:
        return self.default_name_regex().match((name or "").strip()) is not None

    def summary_start_date(self) -> date:
        return date.fromisoformat(self.summary_start)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LedgerConfig":
        default = cls()
        name = str(data.get("default_module_name") or "").strip() or default.default_module_name
        pattern = data.get("default_name_pattern")
        if pattern is not None:
            pattern = str(pattern)
            re.compile(pattern)  # fail early on a bad regex
        start = str(data.get("summary_start") or default.summary_start)
        date.fromisoformat(start)
        week_starts_on = int(data.get("week_starts_on", default.week_starts_on))
        if not 0 <= week_starts_on <= 6:
            raise ValueError(f"week_starts_on must be 0..6, got {week_starts_on}")
        return cls(
            default_module_name=name,
            default_name_pattern=pattern or None,
            log_level=str(data.get("log_level") or default.log_level).upper(),
            lock_timeout=float(data.get("lock_timeout", default.lock_timeout)),
            summary_start=start,
            week_starts_on=week_starts_on,
        )


def load_ledger_config(state_dir: Path) -> tuple[LedgerConfig, str | None]:
    """Load the optional config file.

    Args:
        state_dir: Ledger state directory.

    Returns:
        A tuple of `(config, error_message)`. A missing file gives defaults and no error;
        an unreadable or invalid file gives defaults and the error text.
    """
    path = state_dir / CONFIG_FILE
    data, err = _load_yaml_with_error(path, {})
    if err:
        return LedgerConfig(), err
    try:
        return LedgerConfig.from_dict(data), None
    except (TypeError, ValueError, re.error) as exc:
        return LedgerConfig(), f"{CONFIG_FILE}: {exc}"
