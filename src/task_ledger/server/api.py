"""FastAPI app: JSON endpoints over :class:`LedgerService` plus the UI build.

Endpoints live under ``/api``.  Any other GET is answered from the UI build
directory (when one is configured) with fallback to ``index.html`` so the
single-page app can handle its own routes.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any, Optional

from fastapi import APIRouter, FastAPI, HTTPException, Query, Request
from fastapi.responses import FileResponse, JSONResponse
from loguru import logger

from ..config import LedgerConfig, load_ledger_config, resolve_state_dir
from ..errors import StoreUnavailable, ValidationError
from ..service import LedgerService
from ..storage.model import ContainerKind
from ..storage.store import open_or_throw
from ..summary import ItemMode, ViewMode, render_summary
from .models import (
    CompletionRequest,
    CreateModuleRequest,
    CreateTaskRequest,
    MoveTaskRequest,
    ReorderModulesRequest,
    UpdateModuleRequest,
    UpdateTaskRequest,
)
from .static import resolve_asset, resolve_dist_dir


def _lane_to_dict(lane: dict[str, Any]) -> dict[str, Any]:
    return {
        "module": lane["module"].to_dict(),
        "pending": [t.to_dict() for t in lane["pending"]],
        "done": [t.to_dict() for t in lane["done"]],
    }


# ---------------------------------------------------------------------------
# Router factory
# ---------------------------------------------------------------------------

def create_ledger_router(service: LedgerService) -> APIRouter:
    """Create the ``/api`` router bound to *service*."""
    router = APIRouter(prefix="/api", tags=["ledger"])

    # -- modules ------------------------------------------------------------

    @router.get("/modules")
    async def list_modules() -> dict[str, Any]:
        return {"modules": [m.to_dict() for m in service.list_modules()]}

    @router.post("/modules")
    async def create_module(body: CreateModuleRequest) -> dict[str, Any]:
        module = service.create_module(body.name, color=body.color)
        return {"module": module.to_dict()}

    @router.post("/modules/reorder")
    async def reorder_modules(body: ReorderModulesRequest) -> dict[str, Any]:
        modules = service.reorder_modules(body.module_ids)
        return {"modules": [m.to_dict() for m in modules]}

    @router.patch("/modules/{module_id}")
    async def update_module(module_id: str, body: UpdateModuleRequest) -> dict[str, Any]:
        module = service.update_module(module_id, name=body.name, color=body.color)
        if module is None:
            raise HTTPException(status_code=404, detail=f"Module {module_id} not found")
        return {"module": module.to_dict()}

    @router.delete("/modules/{module_id}")
    async def delete_module(module_id: str) -> dict[str, Any]:
        return {"deleted": service.delete_module(module_id)}

    # -- tasks --------------------------------------------------------------

    @router.get("/tasks")
    async def list_tasks(
        module_id: Optional[str] = Query(None),
        kind: Optional[ContainerKind] = Query(None),
    ) -> dict[str, Any]:
        tasks = service.list_tasks(module_id=module_id, kind=kind)
        return {"tasks": [t.to_dict() for t in tasks], "total": len(tasks)}

    @router.post("/modules/{module_id}/tasks")
    async def create_task(module_id: str, body: CreateTaskRequest) -> dict[str, Any]:
        task = service.create_task(module_id, body.title, body.detail)
        return {"task": task.to_dict()}

    @router.patch("/tasks/{task_id}")
    async def update_task(task_id: str, body: UpdateTaskRequest) -> dict[str, Any]:
        task = service.update_task(task_id, title=body.title, detail=body.detail)
        if task is None:
            raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
        return {"task": task.to_dict()}

    @router.delete("/tasks/{task_id}")
    async def delete_task(task_id: str) -> dict[str, Any]:
        return {"deleted": service.delete_task(task_id)}

    @router.post("/tasks/{task_id}/completion")
    async def set_completion(task_id: str, body: CompletionRequest) -> dict[str, Any]:
        task = service.set_task_completion(task_id, body.completed)
        if task is None:
            raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
        return {"task": task.to_dict()}

    @router.post("/tasks/{task_id}/move")
    async def move_task(task_id: str, body: MoveTaskRequest) -> dict[str, Any]:
        task = service.move_and_reorder_task(
            task_id,
            body.from_container,
            body.to_container,
            body.ordered_ids_in_to,
            body.ordered_ids_in_from,
        )
        if task is None:
            raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
        return {"task": task.to_dict()}

    # -- views --------------------------------------------------------------

    @router.get("/board")
    async def board() -> dict[str, Any]:
        return {"lanes": [_lane_to_dict(lane) for lane in service.get_board()]}

    @router.get("/summary")
    async def summary(
        view: ViewMode = Query(ViewMode.MONTH),
        items: ItemMode = Query(ItemMode.COMPLETED),
        count: int = Query(12, ge=1, le=400),
        start: Optional[date] = Query(None),
    ) -> dict[str, Any]:
        modules, tasks = service.store.read_snapshot()
        text = render_summary(
            modules,
            tasks,
            view=view,
            item_mode=items,
            count=count,
            start=start or service.config.summary_start_date(),
            week_starts_on=service.config.week_starts_on,
        )
        return {"view": view.value, "items": items.value, "text": text}

    return router


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def create_app(
    state_dir: Optional[Path] = None,
    dist_dir: Optional[Path] = None,
    config: Optional[LedgerConfig] = None,
) -> FastAPI:
    """Create the ledger web app.

    Args:
        state_dir: Ledger state directory (default: resolved from the environment).
        dist_dir: UI build directory; when omitted it is looked up, and the UI is
            disabled if none is found.
        config: Ledger configuration; loaded from ``state_dir`` when omitted.

    Returns:
        Configured FastAPI app.  Raises :class:`StoreUnavailable` if the store
        cannot be opened.
    """
    state_dir = resolve_state_dir(state_dir)
    if config is None:
        config, err = load_ledger_config(state_dir)
        if err:
            logger.warning("Ignoring ledger config: {}", err)

    store = open_or_throw(state_dir, lock_timeout=config.lock_timeout)
    service = LedgerService(store, config)
    service.ensure_baseline()

    app = FastAPI(
        title="Task Ledger",
        description="Ordered modules and tasks on a local transactional store",
        version="0.1.0",
    )
    app.state.service = service
    app.state.dist_dir = resolve_dist_dir(dist_dir)
    if app.state.dist_dir is None:
        logger.info("No UI build found; serving the API only")
    else:
        logger.info("Serving UI from {}", app.state.dist_dir)

    @app.exception_handler(ValidationError)
    async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(StoreUnavailable)
    async def _store_unavailable(request: Request, exc: StoreUnavailable) -> JSONResponse:
        logger.error("Store unavailable: {}", exc)
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    app.include_router(create_ledger_router(service))

    @app.get("/{full_path:path}", include_in_schema=False)
    async def spa(full_path: str) -> FileResponse:
        if full_path == "api" or full_path.startswith("api/"):
            raise HTTPException(status_code=404, detail="Not found")
        dist = app.state.dist_dir
        asset = resolve_asset(dist, full_path) if dist is not None else None
        if asset is None:
            raise HTTPException(status_code=404, detail="UI build not found")
        return FileResponse(asset)

    return app
