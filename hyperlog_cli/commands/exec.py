"""`exec` command group: one sub-command per graph command."""

from __future__ import annotations

import typer

from hyperlog import commands
from hyperlog.commands import Command
from hyperlog.models import ItemState, parse_path

from hyperlog_cli.context import handle_errors, open_state

exec_app = typer.Typer(help="Execute commands against the graph.", no_args_is_help=True)


def _run(ctx: typer.Context, command: Command) -> None:
    with open_state(ctx) as state:
        state.commander.execute(command)
    typer.echo(f"[exec] {commands.command_name(command)} ok")


@exec_app.command("create-root")
@handle_errors
def create_root(
    ctx: typer.Context,
    root: str = typer.Option(..., "--root", help="Name of the new root."),
) -> None:
    """Create an empty root."""
    _run(ctx, commands.CreateRoot(root=root))


@exec_app.command("create-section")
@handle_errors
def create_section(
    ctx: typer.Context,
    root: str = typer.Option(..., "--root", help="Root name."),
    path: str = typer.Option(..., "--path", help="Dotted path of the section, e.g. work.inbox."),
) -> None:
    """Create (or replace) a section at PATH."""
    _run(ctx, commands.CreateSection(root=root, path=parse_path(path)))


@exec_app.command("create-item")
@handle_errors
def create_item(
    ctx: typer.Context,
    root: str = typer.Option(..., "--root", help="Root name."),
    path: str = typer.Option(..., "--path", help="Dotted path of the item."),
    title: str = typer.Option(..., "--title", help="Item title."),
    description: str = typer.Option("", "--description", help="Item description."),
    state: ItemState = typer.Option(ItemState.NOT_DONE, "--state", help="Initial state."),
) -> None:
    """Create (or replace) an item at PATH."""
    _run(
        ctx,
        commands.CreateItem(
            root=root,
            path=parse_path(path),
            title=title,
            description=description,
            state=state,
        ),
    )


@exec_app.command("update-item")
@handle_errors
def update_item(
    ctx: typer.Context,
    root: str = typer.Option(..., "--root", help="Root name."),
    path: str = typer.Option(..., "--path", help="Dotted path of the existing item."),
    title: str = typer.Option(..., "--title", help="New title; the item is renamed after it."),
    description: str = typer.Option("", "--description", help="New description."),
    state: ItemState = typer.Option(ItemState.NOT_DONE, "--state", help="New state."),
) -> None:
    """Replace an item's content and re-key it by its new title."""
    _run(
        ctx,
        commands.UpdateItem(
            root=root,
            path=parse_path(path),
            title=title,
            description=description,
            state=state,
        ),
    )


@exec_app.command("toggle-item")
@handle_errors
def toggle_item(
    ctx: typer.Context,
    root: str = typer.Option(..., "--root", help="Root name."),
    path: str = typer.Option(..., "--path", help="Dotted path of the item."),
) -> None:
    """Flip an item between not-done and done."""
    _run(ctx, commands.ToggleItem(root=root, path=parse_path(path)))


@exec_app.command("move")
@handle_errors
def move(
    ctx: typer.Context,
    root: str = typer.Option(..., "--root", help="Root name."),
    src: str = typer.Option(..., "--src", help="Dotted path of the node to move."),
    dest: str = typer.Option("", "--dest", help="Dotted path of the new parent (empty: the root)."),
) -> None:
    """Move a node under DEST, keeping its name."""
    _run(ctx, commands.Move(root=root, src=parse_path(src), dest=parse_path(dest)))


@exec_app.command("archive")
@handle_errors
def archive(
    ctx: typer.Context,
    root: str = typer.Option(..., "--root", help="Root name."),
    path: str = typer.Option(..., "--path", help="Dotted path of the node to archive."),
) -> None:
    """Archive a node and everything below it."""
    _run(ctx, commands.Archive(root=root, path=parse_path(path)))
