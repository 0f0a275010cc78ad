"""Relational (SQLite) backend package.

Public re-exports so callers can write::

    from hyperlog.db import get_connection, init_db
    from hyperlog.db import SqliteCommander, SqliteQuerier, SqliteStore
"""

from hyperlog.db.connection import get_connection
from hyperlog.db.migrations import init_db
from hyperlog.db.backend import SqliteCommander, SqliteQuerier, SqliteStore

__all__ = ["get_connection", "init_db", "SqliteCommander", "SqliteQuerier", "SqliteStore"]
