"""FastAPI application factory.

Lifespan
--------
On startup the app opens one backend and shares its commander and querier
across all requests via ``request.app.state``:

    file    : the JSON snapshot store (takes the advisory lock)
    sqlite  : the relational backend

On shutdown it releases the lock / closes the connection cleanly.

Errors
------
Every :class:`~hyperlog.errors.HyperlogError` is answered as
``{"detail": <message>, "error": <kind>}`` with a matching status code.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from hyperlog.api.routers import graph as graph_router
from hyperlog.config import settings
from hyperlog.db import SqliteCommander, SqliteQuerier, SqliteStore, get_connection, init_db
from hyperlog.errors import (
    AlreadyExistsError,
    HyperlogError,
    InvalidOperationError,
    LockedError,
    NotFoundError,
)
from hyperlog.events import Events
from hyperlog.state import State
from hyperlog.storage import Storage

logger = logging.getLogger(__name__)

_STATUS: dict[type[HyperlogError], int] = {
    NotFoundError: 404,
    AlreadyExistsError: 409,
    InvalidOperationError: 400,
    LockedError: 423,
}


def status_for(exc: HyperlogError) -> int:
    for cls, status in _STATUS.items():
        if isinstance(exc, cls):
            return status
    return 500


def create_app(
    store: Optional[str] = None,
    data_dir: Optional[Path] = None,
    db_path: Optional[Path] = None,
) -> FastAPI:
    """Return a fully-configured FastAPI application instance.

    Args:
        store: ``"file"`` or ``"sqlite"``.  Defaults to ``settings.server_backend``.
        data_dir: Base directory for the file store.
        db_path: SQLite database path (``":memory:"`` is accepted).
    """
    kind = store or settings.server_backend
    if kind not in ("file", "sqlite"):
        raise ValueError(f"unknown store {kind!r}, expected 'file' or 'sqlite'")

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Open the backend on startup and close it on shutdown."""
        if kind == "sqlite":
            conn = get_connection(db_path)
            init_db(conn)
            sqlite_store = SqliteStore(conn)
            app.state.events = Events()
            app.state.commander = SqliteCommander(sqlite_store, app.state.events)
            app.state.querier = SqliteQuerier(sqlite_store)
            logger.info("serving sqlite store at %s", db_path or settings.db_path)
            try:
                yield
            finally:
                conn.close()
            return

        state = State.local(Storage(data_dir))
        app.state.events = state.events
        app.state.commander = state.commander
        app.state.querier = state.querier
        logger.info("serving %s", state.storage.info() if state.storage else "file store")
        try:
            yield
        finally:
            state.close()

    app = FastAPI(
        title="hyperlog API",
        description=(
            "HTTP interface to a hyperlog graph: create roots, sections and "
            "items, toggle, update, move and archive them, and query subtrees "
            "by dotted path."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    @app.exception_handler(HyperlogError)
    async def hyperlog_error_handler(request: Request, exc: HyperlogError) -> JSONResponse:
        return JSONResponse(
            status_code=status_for(exc),
            content={"detail": str(exc), "error": exc.kind},
        )

    @app.get("/", response_class=PlainTextResponse)
    def root() -> str:
        return "Hello, hyperlog!"

    app.include_router(graph_router.router, tags=["graph"])

    return app


# Module-level instance for `uvicorn hyperlog.api:app`; the backend is only
# opened when the lifespan starts.
app = create_app()
