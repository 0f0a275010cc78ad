"""Wiring of storage, engine, events, commander and querier for one backend."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from hyperlog.client import RemoteClient
from hyperlog.commander import Commander, LocalCommander, RemoteCommander
from hyperlog.events import Events
from hyperlog.querier import LocalQuerier, Querier, RemoteQuerier
from hyperlog.shared_engine import SharedEngine
from hyperlog.storage import Storage


class Backend(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"


@dataclass
class State:
    commander: Commander
    querier: Querier
    storage: Optional[Storage] = None
    engine: Optional[SharedEngine] = None
    events: Optional[Events] = None
    client: Optional[RemoteClient] = None

    @classmethod
    def local(cls, storage: Optional[Storage] = None) -> State:
        """Load the snapshot (taking the lock) and build a file-backed state."""
        storage = storage or Storage()
        engine = SharedEngine(storage.load())
        events = Events()
        return cls(
            commander=LocalCommander(engine, storage, events),
            querier=LocalQuerier(engine),
            storage=storage,
            engine=engine,
            events=events,
        )

    @classmethod
    def remote(cls, base_url: Optional[str] = None) -> State:
        client = RemoteClient(base_url)
        return cls(
            commander=RemoteCommander(client=client),
            querier=RemoteQuerier(client=client),
            client=client,
        )

    @classmethod
    def new(cls, backend: Backend, base_url: Optional[str] = None) -> State:
        if backend is Backend.REMOTE:
            return cls.remote(base_url)
        return cls.local()

    def close(self) -> None:
        if self.storage is not None:
            self.storage.close()
        if self.client is not None:
            self.client.close()

    def __enter__(self) -> State:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
