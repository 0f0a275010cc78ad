"""Read-only access to the graph, locally or over HTTP."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from hyperlog.client import RemoteClient
from hyperlog.models import GraphItem, format_path, item_from_dict
from hyperlog.shared_engine import SharedEngine

logger = logging.getLogger(__name__)


def _clean(path: Iterable[str]) -> list[str]:
    return [segment for segment in path if segment]


class Querier(ABC):
    @abstractmethod
    def get(self, root: str, path: Iterable[str] = ()) -> Optional[GraphItem]:
        """Return a copy of the node at *path* under *root*, or ``None``."""

    @abstractmethod
    def get_available_roots(self) -> Optional[list[str]]:
        """Return the root names, or ``None`` when there are none."""


class LocalQuerier(Querier):
    def __init__(self, engine: SharedEngine) -> None:
        self.engine = engine

    def get(self, root: str, path: Iterable[str] = ()) -> Optional[GraphItem]:
        segments = _clean(path)
        logger.debug(
            "querying: root:(%s), path:(%s), len:(%d)",
            root,
            format_path(segments),
            len(segments),
        )
        return self.engine.get(root, segments)

    def get_available_roots(self) -> Optional[list[str]]:
        return self.engine.get_roots()


class RemoteQuerier(Querier):
    def __init__(
        self,
        base_url: Optional[str] = None,
        client: Optional[RemoteClient] = None,
    ) -> None:
        self.client = client or RemoteClient(base_url)

    def get(self, root: str, path: Iterable[str] = ()) -> Optional[GraphItem]:
        segments = _clean(path)
        logger.debug("querying remote: root:(%s), path:(%s)", root, format_path(segments))

        params = {"root": root}
        if segments:
            params["path"] = format_path(segments)
        data = self.client.request("GET", "/graph", params=params)

        item = data.get("item") if data else None
        return item_from_dict(item) if item is not None else None

    def get_available_roots(self) -> Optional[list[str]]:
        data = self.client.request("GET", "/roots")
        roots = data.get("roots") if data else None
        return roots or None
