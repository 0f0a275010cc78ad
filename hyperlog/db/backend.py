"""Relational backend speaking the commander / querier contract.

Paths are stored dot-joined on each row.  Reads rebuild the requested
subtree through an in-memory :class:`~hyperlog.engine.Engine`, so callers
get exactly the same ``GraphItem`` shapes as from the file backend.

Differences from the file backend:

- ``Archive`` marks the subtree ``archive`` instead of deleting it.
- ``Move`` checks the destination before touching the source, so a failed
  move never loses data.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from typing import Iterable, Optional

from hyperlog import commands
from hyperlog.commander import Commander
from hyperlog.commands import Command
from hyperlog.db import nodes as node_rows
from hyperlog.db import roots as root_rows
from hyperlog.db.models import ITEM, SECTION, Node, Root, item_content_json
from hyperlog.engine import Engine, sanitize_title
from hyperlog.errors import AlreadyExistsError, InvalidOperationError, NotFoundError
from hyperlog.events import Events
from hyperlog.models import GraphItem, Item, Section, format_path, validate_path, validate_segment
from hyperlog.querier import Querier

logger = logging.getLogger(__name__)


class SqliteStore:
    """One connection plus the mutex serialising access to it."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn
        self.lock = threading.Lock()

    def require_root(self, root: str) -> Root:
        found = root_rows.get_root(self.conn, root)
        if found is None:
            raise NotFoundError(f"root {root!r} was not found")
        return found

    def resolve_parent(self, root: Root, parent: list[str]) -> Optional[Node]:
        """Return the parent row, ``None`` for the root itself.

        Raises:
            NotFoundError: If the parent path has no active row.
        """
        if not parent:
            return None
        node = node_rows.get_node(self.conn, root.id, format_path(parent))
        if node is None:
            raise NotFoundError(f"path: {format_path(parent)} section was not found")
        return node


class SqliteCommander(Commander):
    def __init__(self, store: SqliteStore, events: Optional[Events] = None) -> None:
        self.store = store
        self.events = events

    def execute(self, command: Command) -> None:
        logger.debug("executing event: %s", json.dumps(commands.to_dict(command)))

        with self.store.lock:
            self._apply(command)
        if self.events is not None:
            self.events.enqueue_command(command)

    def _apply(self, command: Command) -> None:
        if isinstance(command, commands.CreateRoot):
            if not command.root:
                raise InvalidOperationError("root cannot be empty")
            root_rows.create_root(self.store.conn, command.root)
        elif isinstance(command, commands.CreateSection):
            self._create(command.root, command.path, SECTION, None)
        elif isinstance(command, commands.CreateItem):
            item = Item(command.title, command.description, command.state)
            self._create(command.root, command.path, ITEM, item_content_json(item))
        elif isinstance(command, commands.UpdateItem):
            self._update_item(command)
        elif isinstance(command, commands.ToggleItem):
            self._toggle_item(command.root, command.path)
        elif isinstance(command, commands.Move):
            self._move(command.root, command.src, command.dest)
        elif isinstance(command, commands.Archive):
            self._archive(command.root, command.path)
        else:
            raise TypeError(f"unsupported command: {command!r}")

    def _create(
        self, root: str, path: list[str], item_type: str, content: Optional[str]
    ) -> None:
        if not path:
            raise InvalidOperationError("path cannot be empty, must contain at least one item")
        validate_path(path)

        conn = self.store.conn
        root_row = self.store.require_root(root)
        parent = self.store.resolve_parent(root_row, path[:-1])
        if parent is not None and parent.item_type == ITEM:
            raise InvalidOperationError("cannot insert an item into an item")

        dotted = format_path(path)
        with conn:
            # Same overwrite semantics as the engine: replace what was there.
            node_rows.delete_subtree(conn, root_row.id, dotted)
            node_rows.insert_node(conn, root_row.id, dotted, item_type, content)

    def _update_item(self, command: commands.UpdateItem) -> None:
        if not command.path:
            return
        conn = self.store.conn
        root_row = self.store.require_root(command.root)
        try:
            parent = self.store.resolve_parent(root_row, command.path[:-1])
        except NotFoundError:
            return
        if parent is not None and parent.item_type == ITEM:
            raise InvalidOperationError("cannot rename when item is placed in an item")

        existing = node_rows.get_node(conn, root_row.id, format_path(command.path))
        if existing is None:
            return
        if existing.item_type != ITEM:
            raise InvalidOperationError(
                f"path: {command.root}.{format_path(command.path)} found is not an item"
            )

        name = sanitize_title(command.title)
        validate_segment(name)
        new_path = format_path(command.path[:-1] + [name])
        content = item_content_json(Item(command.title, command.description, command.state))

        with conn:
            if new_path != existing.path:
                node_rows.delete_subtree(conn, root_row.id, new_path)
            node_rows.update_node(conn, existing.id, path=new_path, item_content=content)

    def _toggle_item(self, root: str, path: list[str]) -> None:
        conn = self.store.conn
        root_row = self.store.require_root(root)
        existing = node_rows.get_node(conn, root_row.id, format_path(path)) if path else None
        if existing is None:
            if not path:
                raise InvalidOperationError(f"{root} is not an item")
            return
        if existing.item_type != ITEM:
            raise InvalidOperationError(f"{root}.{format_path(path)} is not an item")

        item = existing.to_item()
        item.state = item.state.toggled()
        with conn:
            node_rows.update_node(conn, existing.id, item_content=item_content_json(item))

    def _move(self, root: str, src: list[str], dest: list[str]) -> None:
        conn = self.store.conn
        root_row = self.store.require_root(root)
        if not src or node_rows.get_node(conn, root_row.id, format_path(src)) is None:
            raise NotFoundError("failed to find source path")

        target = self.store.resolve_parent(root_row, dest) if dest else None
        if target is not None and target.item_type == ITEM:
            raise InvalidOperationError(
                "failed to insert src at item, item doesn't support arbitrary items"
            )
        if dest[: len(src)] == src:
            raise InvalidOperationError("cannot move a node into itself")

        new_path = format_path(dest + [src[-1]])
        if new_path == format_path(src):
            return
        if node_rows.get_node(conn, root_row.id, new_path) is not None:
            raise AlreadyExistsError(f"key was already found, aborting: {src[-1]}")

        with conn:
            node_rows.move_subtree(conn, root_row.id, format_path(src), new_path)

    def _archive(self, root: str, path: list[str]) -> None:
        conn = self.store.conn
        root_row = self.store.require_root(root)
        with conn:
            archived = node_rows.archive_subtree(conn, root_row.id, format_path(path)) if path else 0
        if archived == 0:
            raise NotFoundError("item was not found")


class SqliteQuerier(Querier):
    def __init__(self, store: SqliteStore) -> None:
        self.store = store

    def get(self, root: str, path: Iterable[str] = ()) -> Optional[GraphItem]:
        segments = [segment for segment in path if segment]
        with self.store.lock:
            root_row = root_rows.get_root(self.store.conn, root)
            if root_row is None:
                return None
            rows = node_rows.list_nodes(self.store.conn, root_row.id)

        engine = Engine()
        engine.create_root(root)
        for row in rows:
            node: GraphItem = row.to_item() if row.item_type == ITEM else Section()
            engine.create(root, row.segments, node)
        return engine.get(root, segments)

    def get_available_roots(self) -> Optional[list[str]]:
        with self.store.lock:
            names = [r.root_name for r in root_rows.list_roots(self.store.conn)]
        return names or None
