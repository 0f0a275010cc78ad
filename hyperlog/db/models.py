"""Dataclass models representing DB rows.

These are plain Python objects, not ORM models.  The DB layer serialises /
deserialises to and from these types.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional

from hyperlog.models import Item, ItemState

SECTION = "SECTION"
ITEM = "ITEM"


@dataclass
class Root:
    id: str
    root_name: str
    created_at: int


@dataclass
class Node:
    id: str
    root_id: str
    path: str
    item_type: str
    item_content: Optional[dict[str, Any]]
    status: str
    created_at: int
    updated_at: int

    # ------------------------------------------------------------------
    # Convenience helpers
    # ------------------------------------------------------------------
    @property
    def segments(self) -> list[str]:
        return self.path.split(".")

    def to_item(self) -> Item:
        """Build the graph :class:`~hyperlog.models.Item` for an ITEM row."""
        content = self.item_content or {}
        return Item(
            title=content.get("title", ""),
            description=content.get("description", ""),
            state=ItemState(content.get("state", ItemState.NOT_DONE.value)),
        )


def item_content_json(item: Item) -> str:
    """Serialise an item's content for the ``item_content`` column."""
    return json.dumps(
        {
            "title": item.title,
            "description": item.description,
            "state": item.state.value,
        }
    )
