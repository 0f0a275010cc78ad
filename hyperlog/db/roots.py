"""Operations on the ``roots`` table."""

from __future__ import annotations

import sqlite3
import uuid
from time import time
from typing import Optional

from hyperlog.db.models import Root
from hyperlog.errors import AlreadyExistsError


def _row_to_root(row: sqlite3.Row) -> Root:
    return Root(id=row["id"], root_name=row["root_name"], created_at=row["created_at"])


def create_root(conn: sqlite3.Connection, root_name: str) -> Root:
    """Insert a new root and return it.

    Raises:
        AlreadyExistsError: If a root with this name already exists.
    """
    rid = str(uuid.uuid4())
    now = int(time())
    try:
        with conn:
            conn.execute(
                "INSERT INTO roots (id, root_name, created_at) VALUES (?, ?, ?)",
                (rid, root_name, now),
            )
    except sqlite3.IntegrityError as exc:
        raise AlreadyExistsError(f"root {root_name!r} already exists") from exc

    return Root(id=rid, root_name=root_name, created_at=now)


def get_root(conn: sqlite3.Connection, root_name: str) -> Optional[Root]:
    """Fetch a root by name.  Returns ``None`` if not found."""
    row = conn.execute(
        "SELECT * FROM roots WHERE root_name = ?", (root_name,)
    ).fetchone()
    return _row_to_root(row) if row else None


def list_roots(conn: sqlite3.Connection) -> list[Root]:
    """Return all roots ordered by name."""
    rows = conn.execute("SELECT * FROM roots ORDER BY root_name").fetchall()
    return [_row_to_root(r) for r in rows]
