"""Configure loguru output for the ledger."""

from __future__ import annotations

import sys
from typing import Any

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{module}</cyan>:<cyan>{line}</cyan> - "
    "{message}"
)


def configure_logging(level: str = "INFO", sink: Any = None) -> None:
    """Replace loguru's sinks with a single one at *level* (stderr by default)."""
    logger.remove()
    logger.add(sink if sink is not None else sys.stderr, level=level.upper(), format=LOG_FORMAT)
