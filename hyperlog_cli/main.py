"""hyperlog CLI: entry-point for all graph operations.

Usage:
    hyperlog --help

Command groups:
    exec      → mutate the graph (create, update, toggle, move, archive)
    query     → read nodes and roots as JSON
    show      → print a subtree as an ASCII tree
    serve     → run the HTTP server
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

import coloredlogs
import typer

from hyperlog import commands
from hyperlog.config import settings
from hyperlog.errors import NotFoundError
from hyperlog.models import format_path, parse_path
from hyperlog.state import Backend
from hyperlog.storage import Storage

from hyperlog_cli.commands.exec import exec_app
from hyperlog_cli.commands.query import query_app
from hyperlog_cli.context import CliContext, get_context, handle_errors, open_state
from hyperlog_cli.rendering import render_tree

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="hyperlog",
    help="hyperlog: hierarchical notes and tasks addressed by dotted paths.",
    no_args_is_help=True,
)
app.add_typer(exec_app, name="exec")
app.add_typer(query_app, name="query")


class Store(str, Enum):
    FILE = "file"
    SQLITE = "sqlite"


@app.callback()
def main(
    ctx: typer.Context,
    backend: Backend = typer.Option(Backend.LOCAL, "--backend", help="Where commands run."),
    backend_url: Optional[str] = typer.Option(
        None, "--backend-url", help="Server URL for --backend remote."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
) -> None:
    """Configure logging and remember the backend choice for sub-commands."""
    coloredlogs.install(
        level="DEBUG" if verbose else settings.log_level.upper(),
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    ctx.obj = CliContext(backend=backend, backend_url=backend_url)


# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------
@app.command("show")
@handle_errors
def show(
    ctx: typer.Context,
    root: str = typer.Option(..., "--root", help="Root name."),
    path: str = typer.Option("", "--path", help="Dotted path (empty: the whole root)."),
) -> None:
    """Print the node at PATH and everything below it as an ASCII tree."""
    segments = parse_path(path)
    with open_state(ctx) as state:
        item = state.querier.get(root, segments)
    if item is None:
        raise NotFoundError(f"nothing found at {format_path([root] + segments)}")
    typer.echo(render_tree(segments[-1] if segments else root, item))


@app.command("create-root")
@handle_errors
def create_root(
    ctx: typer.Context,
    name: str = typer.Option(..., "--name", help="Name of the new root."),
) -> None:
    """Create an empty root (shortcut for `exec create-root`)."""
    with open_state(ctx) as state:
        state.commander.execute(commands.CreateRoot(root=name))
    typer.echo(f"[create-root] Created root {name!r}")


# ---------------------------------------------------------------------------
# Local storage maintenance
# ---------------------------------------------------------------------------
@app.command("info")
def info(ctx: typer.Context) -> None:
    """Print where the graph is stored."""
    cli_ctx = get_context(ctx)
    if cli_ctx.backend is Backend.REMOTE:
        typer.echo(f"remote:\n\turl: {cli_ctx.backend_url or settings.backend_url}")
        return
    typer.echo(Storage().info())


@app.command("clear-lock")
@handle_errors
def clear_lock() -> None:
    """Remove the lock file left behind by a crashed process."""
    storage = Storage()
    storage.clear_lock_file()
    typer.echo(f"[clear-lock] Removed {storage.lock_path}")


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------
@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address."),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port."),
    store: Optional[Store] = typer.Option(None, "--store", help="Server backend."),
) -> None:
    """Run the HTTP server."""
    import uvicorn

    from hyperlog.api.app import create_app

    kind = store.value if store is not None else settings.server_backend
    bind_host = host or settings.server_host
    bind_port = port or settings.server_port
    logger.info("starting %s server on %s:%d", kind, bind_host, bind_port)
    uvicorn.run(create_app(store=kind), host=bind_host, port=bind_port)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
