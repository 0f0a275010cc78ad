"""Durable JSON snapshot plus an advisory cross-process lock file.

Layout under the base directory::

    hyperlog/graph.json   pretty JSON snapshot of the whole graph
    hyperlog/graph.lock   marker file; presence and mtime are the lock state

The lock is cooperative: it only excludes other :class:`Storage` handles.
A lock file older than ``stale_after`` seconds is assumed to belong to a
crashed process and is taken over.

Usage::

    with Storage() as storage:
        engine = SharedEngine(storage.load())
        engine.create_root("alice")
        storage.store(engine)
"""

from __future__ import annotations

import logging
import os
import threading
import time
import weakref
from pathlib import Path
from typing import Optional, Protocol

from hyperlog.config import settings
from hyperlog.engine import Engine
from hyperlog.errors import LockedError, StorageIOError

logger = logging.getLogger(__name__)

LOCK_PAYLOAD = "hyperlog-lock"


class Serializable(Protocol):
    def to_str(self) -> str: ...


def _remove_lock_file(path: Path) -> None:
    logger.debug("removing lockfile %s", path)
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("failed to remove lockfile %s: %s", path, exc)


class LockFile:
    """Guard for an acquired lock file.

    :meth:`release` deletes the file.  It runs at most once, and also runs
    when the guard is garbage collected or the interpreter exits.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._finalizer = weakref.finalize(self, _remove_lock_file, path)

    @property
    def held(self) -> bool:
        return self._finalizer.alive

    def release(self) -> None:
        self._finalizer()


class Storage:
    def __init__(
        self,
        base: Optional[Path] = None,
        stale_after: Optional[float] = None,
    ) -> None:
        self.base = Path(base) if base is not None else settings.data_dir
        self.stale_after = (
            stale_after if stale_after is not None else settings.lock_stale_after
        )
        self._lock_file: Optional[LockFile] = None
        self._mutex = threading.Lock()
        # Held across mutate-then-store by commanders sharing this handle.
        self.write_lock = threading.RLock()

    def with_base(self, base: Path) -> None:
        self.base = Path(base)

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------
    @property
    def cache_dir(self) -> Path:
        return self.base / "hyperlog"

    @property
    def state_path(self) -> Path:
        return self.cache_dir / "graph.json"

    @property
    def lock_path(self) -> Path:
        return self.cache_dir / "graph.lock"

    @property
    def locked(self) -> bool:
        """``True`` while this handle holds the lock."""
        return self._lock_file is not None and self._lock_file.held

    def info(self) -> str:
        return f"storage:\n\tgraph: {self.state_path}"

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def load(self) -> Engine:
        """Acquire the lock (first call only) and parse the snapshot.

        Returns an empty engine when no snapshot exists yet.

        Raises:
            LockedError: Another handle holds a lock younger than ``stale_after``.
            StorageIOError: The snapshot or lock file cannot be read or written.
            ParseError: The snapshot is not a valid graph.
        """
        with self._mutex:
            if self._lock_file is None:
                self._lock_file = self._acquire_lock()

        contents = self._read_state()
        if contents is None:
            return Engine()
        return Engine.from_str(contents)

    def store(self, engine: Serializable) -> None:
        """Overwrite the snapshot with the full serialised graph.

        Concurrent calls are serialised on :attr:`write_lock`.  The write is
        not atomic: a crash mid-write can leave a truncated file.
        """
        with self.write_lock:
            payload = engine.to_str()
            try:
                self.cache_dir.mkdir(parents=True, exist_ok=True)
                self.state_path.write_text(payload, encoding="utf-8")
            except OSError as exc:
                raise StorageIOError(f"failed to write {self.state_path}: {exc}") from exc

    def unlock(self) -> None:
        """Release the lock held by this handle.  Safe to call repeatedly."""
        with self._mutex:
            if self._lock_file is not None:
                self._lock_file.release()
                self._lock_file = None

    def clear_lock_file(self) -> None:
        """Remove the lock file whoever holds it (manual recovery)."""
        self.unlock()
        try:
            self.lock_path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageIOError(f"failed to remove {self.lock_path}: {exc}") from exc

    def close(self) -> None:
        self.unlock()

    def __enter__(self) -> Storage:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _read_state(self) -> Optional[str]:
        try:
            return self.state_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageIOError(f"failed to read {self.state_path}: {exc}") from exc

    def _create_lock_file(self) -> LockFile:
        fd = os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(LOCK_PAYLOAD)
        logger.debug("acquired lockfile %s", self.lock_path)
        return LockFile(self.lock_path)

    def _acquire_lock(self) -> LockFile:
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            try:
                return self._create_lock_file()
            except FileExistsError:
                pass

            try:
                age = time.time() - self.lock_path.stat().st_mtime
            except FileNotFoundError:
                # Released between our create attempt and the stat.
                return self._create_lock_file()

            if age <= self.stale_after:
                raise LockedError("lock file exists and is valid. Aborting")

            logger.warning(
                "lock file %s is stale (%.0fs old), taking over", self.lock_path, age
            )
            self.lock_path.unlink(missing_ok=True)
            return self._create_lock_file()
        except FileExistsError as exc:
            raise LockedError("lock file exists and is valid. Aborting") from exc
        except OSError as exc:
            raise StorageIOError(f"failed to acquire {self.lock_path}: {exc}") from exc
