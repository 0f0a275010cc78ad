"""CRUD operations for the ``nodes`` table.

Only rows with ``status = 'active'`` are visible to these helpers.
Subtree helpers match descendants by path prefix with
``substr`` rather than ``LIKE`` so segment names may contain ``%`` or ``_``.

Write helpers never commit; callers group them inside one ``with conn:``
transaction.
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from time import time
from typing import Any, Optional

from hyperlog.db.models import Node


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _row_to_node(row: sqlite3.Row) -> Node:
    content = row["item_content"]
    return Node(
        id=row["id"],
        root_id=row["root_id"],
        path=row["path"],
        item_type=row["item_type"],
        item_content=json.loads(content) if content else None,
        status=row["status"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


_SUBTREE_WHERE = """
    root_id = ?
    AND status = 'active'
    AND (path = ? OR substr(path, 1, length(?)) = ?)
"""


def _subtree_params(root_id: str, path: str) -> tuple[str, str, str, str]:
    prefix = path + "."
    return (root_id, path, prefix, prefix)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def insert_node(
    conn: sqlite3.Connection,
    root_id: str,
    path: str,
    item_type: str,
    item_content: Optional[str] = None,
) -> str:
    """Insert an active node and return its id."""
    nid = str(uuid.uuid4())
    now = int(time())
    conn.execute(
        """
        INSERT INTO nodes (id, root_id, path, item_type, item_content, status, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, 'active', ?, ?)
        """,
        (nid, root_id, path, item_type, item_content, now, now),
    )
    return nid


def get_node(conn: sqlite3.Connection, root_id: str, path: str) -> Optional[Node]:
    """Fetch the active node at *path*.  Returns ``None`` if not found."""
    row = conn.execute(
        "SELECT * FROM nodes WHERE root_id = ? AND path = ? AND status = 'active'",
        (root_id, path),
    ).fetchone()
    return _row_to_node(row) if row else None


def list_nodes(conn: sqlite3.Connection, root_id: str) -> list[Node]:
    """Return all active nodes of a root, parents before children."""
    rows = conn.execute(
        "SELECT * FROM nodes WHERE root_id = ? AND status = 'active'",
        (root_id,),
    ).fetchall()
    nodes = [_row_to_node(r) for r in rows]
    nodes.sort(key=lambda n: n.segments)
    return nodes


def update_node(conn: sqlite3.Connection, node_id: str, **kwargs: Any) -> None:
    """Update ``path`` and/or ``item_content`` on a node.

    ``updated_at`` is always refreshed automatically.

    Raises:
        ValueError: If an unknown field is given.
    """
    allowed = {"path", "item_content"}
    for key in kwargs:
        if key not in allowed:
            raise ValueError(f"Cannot update field {key!r}")

    updates = dict(kwargs)
    updates["updated_at"] = int(time())
    set_clause = ", ".join(f"{col} = ?" for col in updates)
    values = list(updates.values()) + [node_id]
    conn.execute(f"UPDATE nodes SET {set_clause} WHERE id = ?", values)  # noqa: S608


def delete_subtree(conn: sqlite3.Connection, root_id: str, path: str) -> int:
    """Delete the active node at *path* and its descendants."""
    cursor = conn.execute(
        f"DELETE FROM nodes WHERE {_SUBTREE_WHERE}",  # noqa: S608
        _subtree_params(root_id, path),
    )
    return cursor.rowcount


def archive_subtree(conn: sqlite3.Connection, root_id: str, path: str) -> int:
    """Mark the node at *path* and its descendants as archived."""
    cursor = conn.execute(
        f"UPDATE nodes SET status = 'archive', updated_at = ? WHERE {_SUBTREE_WHERE}",  # noqa: S608
        (int(time()),) + _subtree_params(root_id, path),
    )
    return cursor.rowcount


def move_subtree(conn: sqlite3.Connection, root_id: str, src: str, dest: str) -> int:
    """Rewrite the path prefix *src* to *dest* on a subtree."""
    cursor = conn.execute(
        f"""
        UPDATE nodes
        SET    path = ? || substr(path, ?), updated_at = ?
        WHERE  {_SUBTREE_WHERE}
        """,  # noqa: S608
        (dest, len(src) + 1, int(time())) + _subtree_params(root_id, src),
    )
    return cursor.rowcount
