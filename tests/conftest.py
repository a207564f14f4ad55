from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest

from task_ledger.config import LedgerConfig
from task_ledger.logging_utils import configure_logging
from task_ledger.service import LedgerService
from task_ledger.storage.store import LedgerStore


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    # CLI runs point loguru at the captured stderr of their test.
    yield
    configure_logging("INFO")


@pytest.fixture
def state_dir(tmp_path: Path) -> Path:
    d = tmp_path / ".task_ledger"
    d.mkdir()
    return d


@pytest.fixture
def store(state_dir: Path) -> LedgerStore:
    return LedgerStore(state_dir)


@pytest.fixture
def config() -> LedgerConfig:
    return LedgerConfig()


@pytest.fixture
def service(store: LedgerStore, config: LedgerConfig) -> LedgerService:
    return LedgerService(store, config)
