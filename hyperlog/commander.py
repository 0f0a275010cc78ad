"""Command sequencing: mutate, persist, notify.

Two backends share the :class:`Commander` interface:

- :class:`LocalCommander` applies the command to the shared engine, writes
  the full snapshot through :class:`~hyperlog.storage.Storage` and then
  broadcasts the command on :class:`~hyperlog.events.Events`.
- :class:`RemoteCommander` forwards the command to a hyperlog server.  The
  server owns persistence and notification, so nothing happens locally.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Optional

from hyperlog import commands
from hyperlog.client import RemoteClient
from hyperlog.commands import Command
from hyperlog.events import Events
from hyperlog.models import Item, Section
from hyperlog.shared_engine import SharedEngine
from hyperlog.storage import Storage

logger = logging.getLogger(__name__)


class Commander(ABC):
    """Executes one command as a single unit of work."""

    @abstractmethod
    def execute(self, command: Command) -> None:
        """Apply *command*.  Raises a :class:`~hyperlog.errors.HyperlogError` on failure."""


# ---------------------------------------------------------------------------
# Local (file-backed)
# ---------------------------------------------------------------------------

class LocalCommander(Commander):
    def __init__(self, engine: SharedEngine, storage: Storage, events: Events) -> None:
        self.engine = engine
        self.storage = storage
        self.events = events

    def execute(self, command: Command) -> None:
        """Mutate, then persist, then broadcast.

        Mutation and write happen under the storage write lock, so snapshots
        reach disk in the order commands were applied.  A failed mutation
        stops before anything is written or broadcast.  A failed write after a
        successful mutation leaves memory ahead of disk; nothing is rolled back.
        """
        logger.debug("executing event: %s", json.dumps(commands.to_dict(command)))

        with self.storage.write_lock:
            self._apply(command)
            self.storage.store(self.engine)
        self.events.enqueue_command(command)

    def _apply(self, command: Command) -> None:
        engine = self.engine
        if isinstance(command, commands.CreateRoot):
            engine.create_root(command.root)
        elif isinstance(command, commands.CreateSection):
            engine.create(command.root, command.path, Section())
        elif isinstance(command, commands.CreateItem):
            engine.create(
                command.root,
                command.path,
                Item(
                    title=command.title,
                    description=command.description,
                    state=command.state,
                ),
            )
        elif isinstance(command, commands.UpdateItem):
            engine.update_item(
                command.root,
                command.path,
                Item(
                    title=command.title,
                    description=command.description,
                    state=command.state,
                ),
            )
        elif isinstance(command, commands.ToggleItem):
            engine.toggle_item(command.root, command.path)
        elif isinstance(command, commands.Move):
            engine.section_move(command.root, command.src, command.dest)
        elif isinstance(command, commands.Archive):
            engine.archive(command.root, command.path)
        else:
            raise TypeError(f"unsupported command: {command!r}")


# ---------------------------------------------------------------------------
# Remote (HTTP)
# ---------------------------------------------------------------------------

_ROUTES: dict[type, tuple[str, str]] = {
    commands.CreateRoot: ("POST", "/roots"),
    commands.CreateSection: ("POST", "/sections"),
    commands.CreateItem: ("POST", "/items"),
    commands.UpdateItem: ("PUT", "/items"),
    commands.ToggleItem: ("POST", "/items/toggle"),
    commands.Move: ("POST", "/move"),
    commands.Archive: ("POST", "/archive"),
}


class RemoteCommander(Commander):
    def __init__(
        self,
        base_url: Optional[str] = None,
        client: Optional[RemoteClient] = None,
    ) -> None:
        self.client = client or RemoteClient(base_url)

    def execute(self, command: Command) -> None:
        body = commands.to_dict(command)
        logger.debug("forwarding event: %s", json.dumps(body))

        method, url = _ROUTES[type(command)]
        body.pop("command")
        self.client.request(method, url, json=body)
