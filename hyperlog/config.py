"""Centralised settings for hyperlog.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def user_data_dir() -> Path:
    """Return the per-OS directory for user application data.

    Linux and BSD follow ``$XDG_DATA_HOME`` (``~/.local/share``), macOS uses
    ``~/Library/Application Support`` and Windows ``%LOCALAPPDATA%``.

    Raises:
        RuntimeError: If no home directory can be determined.
    """
    try:
        home = Path.home()
    except RuntimeError as exc:
        raise RuntimeError("failed to retrieve the users data dir") from exc

    if sys.platform == "win32":
        local = os.environ.get("LOCALAPPDATA")
        return Path(local) if local else home / "AppData" / "Local"
    if sys.platform == "darwin":
        return home / "Library" / "Application Support"

    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg and Path(xdg).is_absolute():
        return Path(xdg)
    return home / ".local" / "share"


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Local storage
    # ------------------------------------------------------------------
    data_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("HYPERLOG_DATA_DIR") or user_data_dir()
        )
    )
    lock_stale_after: float = field(
        default_factory=lambda: float(
            os.environ.get("HYPERLOG_LOCK_STALE_SECONDS", str(24 * 60 * 60))
        )
    )

    @property
    def db_path(self) -> Path:
        """Absolute path to the SQLite database used by the server backend."""
        return self.data_dir / "hyperlog" / "hyperlog.db"

    @property
    def schema_path(self) -> Path:
        """Absolute path to the schema SQL file bundled with the package."""
        return Path(__file__).resolve().parent / "db" / "schema.sql"

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    event_capacity: int = field(
        default_factory=lambda: int(os.environ.get("HYPERLOG_EVENT_CAPACITY", "10"))
    )

    # ------------------------------------------------------------------
    # Remote backend (client side)
    # ------------------------------------------------------------------
    backend_url: str = field(
        default_factory=lambda: os.environ.get(
            "HYPERLOG_BACKEND_URL", "http://127.0.0.1:3000"
        )
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("HYPERLOG_REQUEST_TIMEOUT", "10.0"))
    )

    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------
    server_host: str = field(
        default_factory=lambda: os.environ.get("HYPERLOG_HOST", "127.0.0.1")
    )
    server_port: int = field(
        default_factory=lambda: int(os.environ.get("HYPERLOG_PORT", "3000"))
    )
    server_backend: str = field(
        default_factory=lambda: os.environ.get("HYPERLOG_SERVER_BACKEND", "file")
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("HYPERLOG_LOG_LEVEL", "WARNING")
    )


# Module-level singleton, import this everywhere:
#   from hyperlog.config import settings
settings = Settings()
