"""Tests for command dataclasses and their JSON form."""

from __future__ import annotations

import pytest

from hyperlog import commands
from hyperlog.errors import ParseError
from hyperlog.models import ItemState


def test_to_dict_adds_discriminator_and_state_value():
    cmd = commands.CreateItem(
        root="alice", path=["inbox", "x"], title="x", state=ItemState.DONE
    )
    assert commands.to_dict(cmd) == {
        "command": "create_item",
        "root": "alice",
        "path": ["inbox", "x"],
        "title": "x",
        "description": "",
        "state": "done",
    }


@pytest.mark.parametrize(
    "cmd",
    [
        commands.CreateRoot(root="alice"),
        commands.CreateSection(root="alice", path=["inbox"]),
        commands.UpdateItem(root="alice", path=["inbox", "x"], title="y"),
        commands.ToggleItem(root="alice", path=["inbox", "x"]),
        commands.Move(root="alice", src=["inbox", "x"], dest=["work"]),
        commands.Archive(root="alice", path=["inbox"]),
    ],
)
def test_from_dict_rebuilds_command(cmd):
    assert commands.command_from_dict(commands.to_dict(cmd)) == cmd


def test_unknown_command():
    with pytest.raises(ParseError):
        commands.command_from_dict({"command": "explode", "root": "alice"})


def test_missing_field():
    with pytest.raises(ParseError):
        commands.command_from_dict({"command": "create_section", "root": "alice"})


def test_bad_state():
    with pytest.raises(ParseError):
        commands.command_from_dict(
            {"command": "toggle_item", "root": "a", "path": ["x"], "state": "maybe"}
        )
