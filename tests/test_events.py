"""Tests for the in-process command broadcast."""

from __future__ import annotations

import queue
import threading

import pytest

from hyperlog.commands import CreateRoot
from hyperlog.events import CommandEvent, Events


def test_every_subscriber_receives_the_event():
    events = Events(capacity=4)
    a = events.subscribe()
    b = events.subscribe()

    events.enqueue_command(CreateRoot(root="alice"))

    assert a.recv(timeout=1) == CommandEvent(CreateRoot(root="alice"))
    assert b.recv(timeout=1) == CommandEvent(CreateRoot(root="alice"))


def test_late_subscriber_sees_nothing_from_before():
    events = Events(capacity=4)
    events.enqueue_command(CreateRoot(root="alice"))
    late = events.subscribe()
    assert late.try_recv() is None


def test_full_queue_blocks_producer_without_losing_events():
    events = Events(capacity=2)
    sub = events.subscribe()

    def produce() -> None:
        for name in ("r0", "r1", "r2"):
            events.enqueue_command(CreateRoot(root=name))

    producer = threading.Thread(target=produce)
    producer.start()
    producer.join(timeout=0.3)
    assert producer.is_alive()
    assert sub.pending() == 2

    received = [sub.recv(timeout=1).command.root for _ in range(3)]
    producer.join(timeout=1)

    assert not producer.is_alive()
    assert received == ["r0", "r1", "r2"]


def test_closing_a_full_subscription_unblocks_producer():
    events = Events(capacity=1)
    sub = events.subscribe()
    events.enqueue_command(CreateRoot(root="r0"))

    producer = threading.Thread(
        target=events.enqueue_command, args=(CreateRoot(root="r1"),)
    )
    producer.start()
    producer.join(timeout=0.2)
    assert producer.is_alive()

    sub.close()
    producer.join(timeout=1)
    assert not producer.is_alive()


def test_recv_times_out():
    sub = Events(capacity=1).subscribe()
    with pytest.raises(queue.Empty):
        sub.recv(timeout=0.01)


def test_closed_subscription_is_detached():
    events = Events(capacity=2)
    with events.subscribe() as sub:
        pass
    events.enqueue_command(CreateRoot(root="alice"))
    assert sub.try_recv() is None


def test_recv_blocks_until_broadcast():
    events = Events(capacity=2)
    sub = events.subscribe()
    received = []

    t = threading.Thread(target=lambda: received.append(sub.recv(timeout=5)))
    t.start()
    events.enqueue_command(CreateRoot(root="alice"))
    t.join()

    assert received[0].command == CreateRoot(root="alice")


def test_default_capacity_from_settings(monkeypatch):
    monkeypatch.setattr("hyperlog.config.settings.event_capacity", 3)
    assert Events().capacity == 3
