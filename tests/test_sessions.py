"""Tests for the in-memory session registry."""
from __future__ import annotations

import pytest
from conftest import build_session, build_world_with

from paissa_house.errors import StaleSessionError
from paissa_house.sessions import SessionRegistry


class FakeSubscription:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def is_finished(self) -> bool:
        return self.cancelled


@pytest.fixture
def registry():
    registry = SessionRegistry()
    registry.add(build_session(build_world_with(1), session_id="a"))
    return registry


def test_require_unknown_session_raises(registry):
    assert registry.require("a").session_id == "a"
    with pytest.raises(StaleSessionError):
        registry.require("missing")


def test_bind_replaces_and_cancels_previous(registry):
    first, second = FakeSubscription(), FakeSubscription()

    registry.bind("a", first)
    registry.bind("a", second)

    assert first.cancelled
    assert not second.cancelled
    assert registry.subscription("a") is second


def test_remove_leaves_listener_running(registry):
    subscription = FakeSubscription()
    registry.bind("a", subscription)

    removed = registry.remove("a")

    assert removed is not None
    assert "a" not in registry
    assert not subscription.cancelled
    assert registry.subscription("a") is None


def test_cancel_stops_listener(registry):
    subscription = FakeSubscription()
    registry.bind("a", subscription)

    registry.cancel("a")

    assert subscription.cancelled
    assert len(registry) == 0


def test_lock_is_stable_for_live_sessions(registry):
    assert registry.lock("a") is registry.lock("a")
    assert registry.lock("ghost") is not registry.lock("ghost")


def test_clear_cancels_everything(registry):
    registry.add(build_session(build_world_with(1), session_id="b"))
    subscriptions = [FakeSubscription(), FakeSubscription()]
    registry.bind("a", subscriptions[0])
    registry.bind("b", subscriptions[1])

    registry.clear()

    assert all(item.cancelled for item in subscriptions)
    assert list(registry) == []
