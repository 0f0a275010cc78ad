"""Thread-safe handle sharing one :class:`~hyperlog.engine.Engine`.

Readers run concurrently; a writer waits for active readers to drain and
blocks new ones while it holds the lock.  Each public method is its own
critical section: a sequence such as mutate-then-persist is not atomic
across calls, the commander is responsible for that.
"""

from __future__ import annotations

import copy
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from hyperlog.engine import Engine, Path
from hyperlog.models import GraphItem


class ReadWriteLock:
    """Many readers or one writer, with waiting writers given priority."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class SharedEngine:
    def __init__(self, engine: Optional[Engine] = None) -> None:
        self._engine = engine if engine is not None else Engine()
        self._lock = ReadWriteLock()

    # ------------------------------------------------------------------
    # Reads (shared access, owned copies)
    # ------------------------------------------------------------------
    def to_str(self) -> str:
        with self._lock.read():
            return self._engine.to_str()

    def get(self, root: str, path: Path) -> Optional[GraphItem]:
        with self._lock.read():
            return copy.deepcopy(self._engine.get(root, path))

    def get_roots(self) -> Optional[list[str]]:
        with self._lock.read():
            return self._engine.get_roots()

    # ------------------------------------------------------------------
    # Writes (exclusive access)
    # ------------------------------------------------------------------
    def create_root(self, root: str) -> None:
        with self._lock.write():
            self._engine.create_root(root)

    def create(self, root: str, path: Path, item: GraphItem) -> None:
        item = copy.deepcopy(item)
        with self._lock.write():
            self._engine.create(root, path, item)

    def section_move(self, root: str, src: Path, dest: Path) -> None:
        with self._lock.write():
            self._engine.section_move(root, src, dest)

    def toggle_item(self, root: str, path: Path) -> None:
        with self._lock.write():
            self._engine.toggle_item(root, path)

    def update_item(self, root: str, path: Path, item: GraphItem) -> None:
        with self._lock.write():
            self._engine.update_item(root, path, item)

    def delete(self, root: str, path: Path) -> None:
        with self._lock.write():
            self._engine.delete(root, path)

    def archive(self, root: str, path: Path) -> None:
        with self._lock.write():
            self._engine.archive(root, path)
