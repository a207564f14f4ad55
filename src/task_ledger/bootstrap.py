"""Guarantee the ledger always has at least one module.

``ensure_baseline`` creates the default module on an empty store and collapses
duplicate default modules left behind by overlapping startup calls.  It is safe
to call any number of times, from any number of threads, because the whole
read-then-write runs inside one store transaction.
"""

from __future__ import annotations

from typing import Optional

from loguru import logger

from .colors import random_module_color
from .config import LedgerConfig
from .ordering import sorted_records
from .storage.model import Module
from .storage.store import LedgerStore, LedgerTx


def ensure_baseline_tx(tx: LedgerTx, config: LedgerConfig) -> Optional[Module]:
    """Run the baseline check inside an already open transaction.

    Returns the module that was created or kept, or ``None`` when nothing changed.
    """
    if tx.modules.count() == 0:
        module = Module(name=config.default_module_name, color=random_module_color(), order=0)
        tx.modules.add(module)
        logger.info("Created default module {} ({})", module.id, module.name)
        return module

    # Real user data present: never touch modules.
    if tx.tasks.count() != 0:
        return None

    modules = tx.modules.to_list()
    if len(modules) <= 1:
        return None
    if not all(config.is_default_name(m.name) for m in modules):
        return None

    keep, *duplicates = sorted_records(modules)
    tx.modules.bulk_delete(m.id for m in duplicates)
    tx.modules.update(keep.id, {"order": 0})
    logger.info("Collapsed {} duplicate default modules into {}", len(duplicates), keep.id)
    return keep


def ensure_baseline(store: LedgerStore, config: LedgerConfig) -> Optional[Module]:
    """Open a transaction over both tables and run :func:`ensure_baseline_tx`."""
    with store.transaction() as tx:
        return ensure_baseline_tx(tx, config)
