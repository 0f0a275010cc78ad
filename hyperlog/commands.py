"""Commands accepted by every commander backend.

A command is a plain dataclass.  ``to_dict`` gives the JSON form that is
logged and whose fields form the HTTP request bodies; ``command_from_dict``
rebuilds a command from that form.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Union

from hyperlog.errors import ParseError
from hyperlog.models import ItemState


@dataclass
class CreateRoot:
    root: str


@dataclass
class CreateSection:
    root: str
    path: list[str]


@dataclass
class CreateItem:
    root: str
    path: list[str]
    title: str
    description: str = ""
    state: ItemState = ItemState.NOT_DONE


@dataclass
class UpdateItem:
    root: str
    path: list[str]
    title: str
    description: str = ""
    state: ItemState = ItemState.NOT_DONE


@dataclass
class ToggleItem:
    root: str
    path: list[str]


@dataclass
class Move:
    root: str
    src: list[str]
    dest: list[str] = field(default_factory=list)


@dataclass
class Archive:
    root: str
    path: list[str]


Command = Union[CreateRoot, CreateSection, CreateItem, UpdateItem, ToggleItem, Move, Archive]

_NAMES: dict[type, str] = {
    CreateRoot: "create_root",
    CreateSection: "create_section",
    CreateItem: "create_item",
    UpdateItem: "update_item",
    ToggleItem: "toggle_item",
    Move: "move",
    Archive: "archive",
}
_BY_NAME: dict[str, type] = {name: cls for cls, name in _NAMES.items()}


def command_name(command: Command) -> str:
    return _NAMES[type(command)]


def to_dict(command: Command) -> dict[str, Any]:
    data: dict[str, Any] = {"command": command_name(command)}
    for key, value in asdict(command).items():
        data[key] = value.value if isinstance(value, ItemState) else value
    return data


def command_from_dict(data: dict[str, Any]) -> Command:
    """Rebuild a command from :func:`to_dict` output.

    Raises:
        ParseError: On an unknown command name or missing fields.
    """
    payload = dict(data)
    cls = _BY_NAME.get(payload.pop("command", None))
    if cls is None:
        raise ParseError(f"unknown command {data.get('command')!r}")
    if "state" in payload:
        try:
            payload["state"] = ItemState(payload["state"])
        except ValueError as exc:
            raise ParseError(f"unknown item state {payload['state']!r}") from exc
    try:
        return cls(**payload)
    except TypeError as exc:
        raise ParseError(f"invalid {cls.__name__} payload: {exc}") from exc
