# src/tasktracker/web/app.py

"""
HTTP layer: FastAPI routes over the TaskStore port.

Handlers only translate requests into store calls and store results (or exceptions)
into JSON responses. Endpoints are sync, so FastAPI runs them on its thread pool and
the store provides all the locking.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator
from datetime import date
from typing import Annotated, Any

from fastapi import Depends, FastAPI, Header, HTTPException, Path, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..core.context import CallContext
from ..core.ports import TaskStore
from ..core.state import AppState
from ..tasks.errors import TaskNotFoundError, TaskStorageError
from .schemas import Pong, TaskCreate, TaskCreated, TaskOut

logger = logging.getLogger(__name__)

_DUE_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


def get_state(request: Request) -> AppState:
    return request.app.state.app_state


def get_store(state: Annotated[AppState, Depends(get_state)]) -> TaskStore:
    return state.task_store


def get_call_context(state: Annotated[AppState, Depends(get_state)]) -> CallContext:
    # One context per request, bounded by the configured write timeout.
    return CallContext.with_timeout(state.settings.write_timeout_s)


def require_json(content_type: Annotated[str | None, Header()] = None) -> None:
    if not content_type:
        raise HTTPException(status_code=400, detail="missing Content-Type header")
    media_type = content_type.split(";", 1)[0].strip().lower()
    if not media_type or "/" not in media_type:
        raise HTTPException(status_code=400, detail=f"malformed Content-Type: {content_type!r}")
    if media_type != "application/json":
        raise HTTPException(status_code=415, detail="expect application/json Content-Type")


StoreDep = Annotated[TaskStore, Depends(get_store)]
CtxDep = Annotated[CallContext, Depends(get_call_context)]


def _tasks_out(tasks: list[Any]) -> list[dict[str, Any]]:
    return [t.to_dict() for t in tasks]


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(TaskNotFoundError)
    async def _not_found(_request: Request, exc: TaskNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(TaskStorageError)
    async def _storage_failure(request: Request, exc: TaskStorageError) -> JSONResponse:
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def _bad_request(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


def _register_routes(app: FastAPI) -> None:
    @app.get("/ping", response_model=Pong)
    def ping() -> Pong:
        return Pong()

    @app.post("/tasks", response_model=TaskCreated, dependencies=[Depends(require_json)])
    def create_task(body: TaskCreate, store: StoreDep, ctx: CtxDep) -> TaskCreated:
        task_id = store.create_task(body.text, body.tags, body.due, ctx=ctx)
        return TaskCreated(id=task_id)

    @app.get("/tasks", response_model=list[TaskOut])
    def get_all_tasks(store: StoreDep, ctx: CtxDep) -> list[dict[str, Any]]:
        return _tasks_out(store.get_all_tasks(ctx=ctx))

    @app.delete("/tasks")
    def delete_all_tasks(store: StoreDep, ctx: CtxDep) -> Response:
        store.delete_all_tasks(ctx=ctx)
        return Response(status_code=200)

    @app.get("/tasks/by-tag/")
    def get_tasks_by_empty_tag() -> None:
        raise HTTPException(status_code=400, detail="could not parse tag")

    @app.get("/tasks/by-tag/{tag}", response_model=list[TaskOut])
    def get_tasks_by_tag(tag: str, store: StoreDep, ctx: CtxDep) -> list[dict[str, Any]]:
        return _tasks_out(store.get_tasks_by_tag(tag, ctx=ctx))

    @app.get("/tasks/by-due-date/{due_date}", response_model=list[TaskOut])
    def get_tasks_by_due_date(
        due_date: Annotated[str, Path(pattern=_DUE_DATE_PATTERN)],
        store: StoreDep,
        ctx: CtxDep,
    ) -> list[dict[str, Any]]:
        try:
            d = date.fromisoformat(due_date)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"could not parse date: {e}") from e
        return _tasks_out(store.get_tasks_by_due_date(d.year, d.month, d.day, ctx=ctx))

    @app.get("/tasks/{task_id}", response_model=TaskOut)
    def get_task(task_id: int, store: StoreDep, ctx: CtxDep) -> dict[str, Any]:
        return store.get_task(task_id, ctx=ctx).to_dict()

    @app.delete("/tasks/{task_id}")
    def delete_task(task_id: int, store: StoreDep, ctx: CtxDep) -> Response:
        store.delete_task(task_id, ctx=ctx)
        return Response(status_code=200)


@contextlib.asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    app.state.app_state.task_store.close()
    logger.info("Task store closed")


def create_app(state: AppState) -> FastAPI:
    """Build the FastAPI app around an already-wired AppState."""
    app = FastAPI(title=state.settings.app_name, version="1.0.0", lifespan=_lifespan)
    app.state.app_state = state
    _register_exception_handlers(app)
    _register_routes(app)
    return app
