"""Tests for the in-memory graph engine.

No disk or network access; every test builds its own :class:`Engine`.
"""

from __future__ import annotations

import pytest

from hyperlog.engine import Engine, sanitize_title
from hyperlog.errors import (
    AlreadyExistsError,
    InvalidOperationError,
    NotFoundError,
    ParseError,
)
from hyperlog.models import Item, ItemState, Section, User


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def engine():
    """alice/{inbox/{buy-milk}, work}"""
    e = Engine()
    e.create_root("alice")
    e.create("alice", ["inbox"], Section())
    e.create("alice", ["work"], Section())
    e.create("alice", ["inbox", "buy-milk"], Item("buy milk"))
    return e


# ---------------------------------------------------------------------------
# create_root / create / get
# ---------------------------------------------------------------------------

class TestCreateRoot:
    def test_first_call_succeeds(self):
        e = Engine()
        e.create_root("alice")
        assert e.get("alice", []) == User()

    def test_duplicate_rejected(self):
        e = Engine()
        e.create_root("alice")
        with pytest.raises(AlreadyExistsError):
            e.create_root("alice")

    def test_empty_name_rejected(self):
        with pytest.raises(InvalidOperationError):
            Engine().create_root("")


class TestCreate:
    def test_get_returns_inserted_item(self, engine):
        assert engine.get("alice", ["inbox", "buy-milk"]) == Item("buy milk")

    def test_empty_path_rejected(self, engine):
        with pytest.raises(InvalidOperationError):
            engine.create("alice", [], Section())

    def test_missing_root(self, engine):
        with pytest.raises(NotFoundError):
            engine.create("bob", ["inbox"], Section())

    def test_missing_parent(self, engine):
        with pytest.raises(NotFoundError):
            engine.create("alice", ["nope", "child"], Section())

    def test_cannot_insert_below_item(self, engine):
        with pytest.raises(InvalidOperationError):
            engine.create("alice", ["inbox", "buy-milk", "child"], Section())

    def test_reserved_segment_rejected(self, engine):
        with pytest.raises(InvalidOperationError):
            engine.create("alice", ["type"], Section())

    def test_overwrites_existing_key(self, engine):
        engine.create("alice", ["inbox"], Section())
        assert engine.get("alice", ["inbox"]) == Section()


class TestGet:
    def test_empty_path_returns_root(self, engine):
        assert isinstance(engine.get("alice", []), User)

    def test_unresolved_returns_none(self, engine):
        assert engine.get("alice", ["nope"]) is None
        assert engine.get("bob", []) is None

    def test_path_through_item_returns_none(self, engine):
        assert engine.get("alice", ["inbox", "buy-milk", "x"]) is None

    def test_get_roots_sorted(self, engine):
        engine.create_root("aaron")
        assert engine.get_roots() == ["aaron", "alice"]

    def test_get_roots_none_when_empty(self):
        assert Engine().get_roots() is None


# ---------------------------------------------------------------------------
# Moves
# ---------------------------------------------------------------------------

class TestSectionMove:
    def test_moves_node_keeping_name(self, engine):
        engine.section_move("alice", ["inbox", "buy-milk"], ["work"])
        assert engine.get("alice", ["work", "buy-milk"]) == Item("buy milk")
        assert engine.get("alice", ["inbox", "buy-milk"]) is None

    def test_move_to_root(self, engine):
        engine.section_move("alice", ["inbox", "buy-milk"], [])
        assert engine.get("alice", ["buy-milk"]) == Item("buy milk")

    def test_missing_source(self, engine):
        with pytest.raises(NotFoundError):
            engine.section_move("alice", ["nope"], ["work"])

    def test_collision_loses_source(self, engine):
        engine.create("alice", ["work", "buy-milk"], Item("other"))
        with pytest.raises(AlreadyExistsError):
            engine.section_move("alice", ["inbox", "buy-milk"], ["work"])
        # The source was detached before the collision was detected.
        assert engine.get("alice", ["inbox", "buy-milk"]) is None
        assert engine.get("alice", ["work", "buy-milk"]) == Item("other")

    def test_missing_destination_loses_source(self, engine):
        with pytest.raises(NotFoundError):
            engine.section_move("alice", ["inbox", "buy-milk"], ["nope"])
        assert engine.get("alice", ["inbox", "buy-milk"]) is None

    def test_item_destination_rejected(self, engine):
        engine.create("alice", ["work", "report"], Item("report"))
        with pytest.raises(InvalidOperationError):
            engine.section_move("alice", ["inbox"], ["work", "report"])


# ---------------------------------------------------------------------------
# Item updates
# ---------------------------------------------------------------------------

class TestToggleItem:
    def test_self_inverse(self, engine):
        path = ["inbox", "buy-milk"]
        engine.toggle_item("alice", path)
        assert engine.get("alice", path).state is ItemState.DONE
        engine.toggle_item("alice", path)
        assert engine.get("alice", path).state is ItemState.NOT_DONE

    def test_section_rejected(self, engine):
        with pytest.raises(InvalidOperationError):
            engine.toggle_item("alice", ["inbox"])

    def test_unresolved_is_noop(self, engine):
        before = engine.to_str()
        engine.toggle_item("alice", ["inbox", "nope"])
        assert engine.to_str() == before


class TestUpdateItem:
    def test_rekeys_by_sanitized_title(self, engine):
        engine.update_item(
            "alice", ["inbox", "buy-milk"], Item("buy oat.milk", "2 l", ItemState.DONE)
        )
        assert engine.get("alice", ["inbox", "buy-milk"]) is None
        assert engine.get("alice", ["inbox", "buy-oat-milk"]) == Item(
            "buy oat.milk", "2 l", ItemState.DONE
        )

    def test_section_target_rejected(self, engine):
        with pytest.raises(InvalidOperationError):
            engine.update_item("alice", ["inbox"], Item("inbox"))
        assert engine.get("alice", ["inbox"]) is not None

    def test_non_item_replacement_rejected(self, engine):
        with pytest.raises(InvalidOperationError):
            engine.update_item("alice", ["inbox", "buy-milk"], Section())

    def test_empty_title_rejected(self, engine):
        with pytest.raises(InvalidOperationError):
            engine.update_item("alice", ["inbox", "buy-milk"], Item(""))
        assert engine.get("alice", ["inbox", "buy-milk"]) == Item("buy milk")

    def test_unresolved_is_noop(self, engine):
        engine.update_item("alice", ["nope", "x"], Item("x"))
        engine.update_item("alice", ["inbox", "x"], Item("x"))
        assert engine.get("alice", ["inbox", "x"]) is None

    def test_sanitize_title(self):
        assert sanitize_title("a.b c") == "a-b-c"


# ---------------------------------------------------------------------------
# Delete / archive
# ---------------------------------------------------------------------------

class TestDelete:
    def test_delete_removes_subtree(self, engine):
        engine.delete("alice", ["inbox"])
        assert engine.get("alice", ["inbox"]) is None
        assert engine.get("alice", ["inbox", "buy-milk"]) is None

    def test_delete_missing(self, engine):
        with pytest.raises(NotFoundError):
            engine.delete("alice", ["nope"])

    def test_archive_equals_delete(self, engine):
        engine.archive("alice", ["inbox", "buy-milk"])
        assert engine.get("alice", ["inbox", "buy-milk"]) is None
        with pytest.raises(NotFoundError):
            engine.archive("alice", ["inbox", "buy-milk"])


# ---------------------------------------------------------------------------
# Serialisation and the end-to-end scenario
# ---------------------------------------------------------------------------

class TestSnapshot:
    def test_round_trip_byte_stable(self, engine):
        text = engine.to_str()
        assert Engine.from_str(text).to_str() == text
        assert str(engine) == text

    def test_invalid_json(self):
        with pytest.raises(ParseError):
            Engine.from_str("{not json")

    def test_invalid_graph(self):
        with pytest.raises(ParseError):
            Engine.from_str('{"alice": {"type": "folder"}}')


def test_alice_scenario():
    e = Engine()
    e.create_root("alice")
    e.create("alice", ["inbox"], Section())
    e.create("alice", ["inbox", "buy-milk"], Item("buy milk", "", ItemState.NOT_DONE))
    assert e.get("alice", ["inbox", "buy-milk"]) == Item("buy milk")

    e.toggle_item("alice", ["inbox", "buy-milk"])
    assert e.get("alice", ["inbox", "buy-milk"]).state is ItemState.DONE

    e.archive("alice", ["inbox", "buy-milk"])
    assert e.get("alice", ["inbox", "buy-milk"]) is None


def _deep_snapshot(depth: int) -> str:
    return (
        '{"alice": '
        + '{"type": "section", "x": ' * depth
        + '{"type": "section"}'
        + "}" * depth
        + "}"
    )


def test_deeply_nested_snapshot_is_parse_error():
    with pytest.raises(ParseError):
        Engine.from_str(_deep_snapshot(100_000))
