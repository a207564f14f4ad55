"""Pydantic request bodies for the ledger HTTP API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class CreateModuleRequest(BaseModel):
    name: str
    color: Optional[str] = None


class UpdateModuleRequest(BaseModel):
    name: Optional[str] = None
    color: Optional[str] = None


class ReorderModulesRequest(BaseModel):
    module_ids: list[str]


class CreateTaskRequest(BaseModel):
    title: str
    detail: str = ""


class UpdateTaskRequest(BaseModel):
    title: Optional[str] = None
    detail: Optional[str] = None


class CompletionRequest(BaseModel):
    completed: bool


class MoveTaskRequest(BaseModel):
    """Drag-and-drop result: containers are ``"pending:<module_id>"`` / ``"done:<module_id>"``."""

    from_container: str = Field(alias="from")
    to_container: str = Field(alias="to")
    ordered_ids_in_to: list[str]
    ordered_ids_in_from: Optional[list[str]] = None

    model_config = {"populate_by_name": True}
