"""HTTP surface: JSON API and the static UI server."""

from __future__ import annotations

from .api import create_app, create_ledger_router

__all__ = ["create_app", "create_ledger_router"]
