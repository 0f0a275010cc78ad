"""`query` command group: read-only lookups printed as JSON."""

from __future__ import annotations

import typer

from hyperlog.models import dumps, item_to_dict, parse_path

from hyperlog_cli.context import handle_errors, open_state

query_app = typer.Typer(help="Query the graph.", no_args_is_help=True)


@query_app.command("get")
@handle_errors
def get(
    ctx: typer.Context,
    root: str = typer.Option(..., "--root", help="Root name."),
    path: str = typer.Option("", "--path", help="Dotted path (empty: the whole root)."),
) -> None:
    """Print the node at PATH as pretty JSON, or `null`."""
    with open_state(ctx) as state:
        item = state.querier.get(root, parse_path(path))
    typer.echo(dumps(item_to_dict(item) if item is not None else None))


@query_app.command("roots")
@handle_errors
def roots(ctx: typer.Context) -> None:
    """List the available roots, one per line."""
    with open_state(ctx) as state:
        names = state.querier.get_available_roots()
    if not names:
        typer.echo("[query roots] No roots found.")
        return
    for name in names:
        typer.echo(name)
