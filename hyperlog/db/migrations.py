"""Database initialisation.

``init_db(conn)`` is idempotent, safe to call on an existing database.
"""

from __future__ import annotations

import sqlite3

from hyperlog.config import settings


def init_db(conn: sqlite3.Connection) -> None:
    """Create all tables and indexes.

    Every DDL statement uses ``IF NOT EXISTS`` so calling this multiple times
    on the same database is safe.

    Args:
        conn: An open, configured SQLite connection.
    """
    sql = settings.schema_path.read_text(encoding="utf-8")
    # executescript() issues an implicit COMMIT first, fine for DDL only.
    conn.executescript(sql)
