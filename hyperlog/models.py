"""Dataclass models for the graph.

A graph maps root names to trees of :class:`User`, :class:`Section` and
:class:`Item` nodes.  These are plain Python objects; the engine mutates
them and serialises them to / from the JSON snapshot format::

    {
      "alice": {
        "type": "user",
        "inbox": {
          "type": "section",
          "buy-milk": {
            "type": "item",
            "title": "buy milk",
            "description": "",
            "state": "not-done"
          }
        }
      }
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional, Union

from hyperlog.errors import InvalidOperationError, ParseError

PATH_SEPARATOR = "."

# The discriminator key shares the object with child names in the snapshot.
RESERVED_SEGMENT = "type"


class ItemState(str, Enum):
    NOT_DONE = "not-done"
    DONE = "done"

    def toggled(self) -> ItemState:
        return ItemState.DONE if self is ItemState.NOT_DONE else ItemState.NOT_DONE


@dataclass
class User:
    children: dict[str, GraphItem] = field(default_factory=dict)


@dataclass
class Section:
    children: dict[str, GraphItem] = field(default_factory=dict)


@dataclass
class Item:
    title: str
    description: str = ""
    state: ItemState = ItemState.NOT_DONE


GraphItem = Union[User, Section, Item]
Graph = dict[str, GraphItem]

_TYPE_NAMES: dict[type, str] = {User: "user", Section: "section", Item: "item"}


def is_container(node: GraphItem) -> bool:
    """Return ``True`` for the internal node kinds that can hold children."""
    return isinstance(node, (User, Section))


def type_name(node: GraphItem) -> str:
    return _TYPE_NAMES[type(node)]


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

def parse_path(raw: Optional[str]) -> list[str]:
    """Split a dotted path string into segments, dropping empty ones.

    ``None`` and ``""`` both yield the empty path (the root itself).
    """
    if not raw:
        return []
    return [segment for segment in raw.split(PATH_SEPARATOR) if segment]


def format_path(path: Iterable[str]) -> str:
    return PATH_SEPARATOR.join(path)


def validate_segment(segment: str) -> None:
    """Raise :class:`InvalidOperationError` if *segment* is not a legal name."""
    if not segment:
        raise InvalidOperationError("path cannot contain empty segments")
    if PATH_SEPARATOR in segment:
        raise InvalidOperationError(f"path segment {segment!r} cannot contain `.`")
    if segment == RESERVED_SEGMENT:
        raise InvalidOperationError(f"path segment {segment!r} is reserved")


def validate_path(path: Iterable[str]) -> None:
    for segment in path:
        validate_segment(segment)


# ---------------------------------------------------------------------------
# Serialisation
# ---------------------------------------------------------------------------

def item_to_dict(node: GraphItem) -> dict[str, Any]:
    """Serialise *node* with the discriminator first and children sorted."""
    if isinstance(node, Item):
        return {
            "type": "item",
            "title": node.title,
            "description": node.description,
            "state": node.state.value,
        }

    data: dict[str, Any] = {"type": type_name(node)}
    for name in sorted(node.children):
        data[name] = item_to_dict(node.children[name])
    return data


def item_from_dict(data: Any) -> GraphItem:
    """Parse a JSON object produced by :func:`item_to_dict`.

    Raises:
        ParseError: If the object has no valid ``type``, is missing fields or
            is nested too deeply to walk.
    """
    try:
        return _item_from_dict(data)
    except RecursionError as exc:
        raise ParseError("graph is nested too deeply") from exc


def _item_from_dict(data: Any) -> GraphItem:
    if not isinstance(data, dict):
        raise ParseError(f"expected a JSON object, got {type(data).__name__}")

    kind = data.get("type")
    if kind == "item":
        try:
            title = data["title"]
            description = data["description"]
            state = ItemState(data["state"])
        except KeyError as exc:
            raise ParseError(f"item is missing field {exc.args[0]!r}") from exc
        except ValueError as exc:
            raise ParseError(f"unknown item state {data['state']!r}") from exc
        if not isinstance(title, str) or not isinstance(description, str):
            raise ParseError("item title and description must be strings")
        return Item(title=title, description=description, state=state)

    if kind in ("user", "section"):
        children = {
            name: _item_from_dict(value)
            for name, value in data.items()
            if name != RESERVED_SEGMENT
        }
        return User(children) if kind == "user" else Section(children)

    raise ParseError(f"unknown graph item type {kind!r}")


def graph_to_dict(graph: Graph) -> dict[str, Any]:
    return {name: item_to_dict(graph[name]) for name in sorted(graph)}


def graph_from_dict(data: Any) -> Graph:
    if not isinstance(data, dict):
        raise ParseError("graph must be a JSON object")
    try:
        return {name: _item_from_dict(value) for name, value in data.items()}
    except RecursionError as exc:
        raise ParseError("graph is nested too deeply") from exc


def dumps(data: Any) -> str:
    """Pretty JSON in the canonical snapshot layout (two-space indent)."""
    return json.dumps(data, indent=2, ensure_ascii=False)
