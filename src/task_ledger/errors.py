"""Exceptions raised by the ledger engine."""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for ledger failures."""


class ValidationError(LedgerError, ValueError):
    """Input rejected before anything was written."""


class StoreUnavailable(LedgerError, RuntimeError):
    """The local store cannot be opened; fatal for the process."""
