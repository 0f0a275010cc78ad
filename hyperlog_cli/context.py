"""Per-invocation state for the hyperlog CLI.

The root callback stores a :class:`CliContext` on ``ctx.obj``; commands open
the selected backend through :func:`open_state` and wrap themselves in
:func:`handle_errors` so typed failures end the run with exit code 1.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, Iterator, Optional

import typer

from hyperlog.errors import HyperlogError
from hyperlog.state import Backend, State

logger = logging.getLogger(__name__)


@dataclass
class CliContext:
    backend: Backend = Backend.LOCAL
    backend_url: Optional[str] = None


def get_context(ctx: typer.Context) -> CliContext:
    """Return the context set up by the root callback (defaults if absent)."""
    root = ctx.find_root()
    if not isinstance(root.obj, CliContext):
        root.obj = CliContext()
    return root.obj


@contextmanager
def open_state(ctx: typer.Context) -> Iterator[State]:
    """Build the backend for this run and release it (and its lock) afterwards."""
    cli_ctx = get_context(ctx)
    state = State.new(cli_ctx.backend, cli_ctx.backend_url)
    try:
        yield state
    finally:
        state.close()


def handle_errors(func: Callable) -> Callable:
    """Decorator turning a :class:`HyperlogError` into a message and exit code 1."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except HyperlogError as exc:
            logger.debug("command failed", exc_info=True)
            typer.echo(f"error: {exc}")
            raise typer.Exit(code=1)

    return wrapper
