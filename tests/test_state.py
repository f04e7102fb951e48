"""Tests for durable pagination session storage."""
from __future__ import annotations

import dataclasses
from datetime import timedelta

import pytest
from conftest import NOW, build_session, build_world_with

from paissa_house.errors import MalformedPersistedStateError
from paissa_house.models import FilterSpec
from paissa_house.state import SessionStateStore, StoredSession


@pytest.fixture
def store(tmp_path):
    return SessionStateStore(tmp_path / "paissa_house.db")


def test_put_and_get_round_trip(store):
    session = build_session(
        build_world_with(12),
        current_page=1,
        total_pages=2,
        filters=FilterSpec(district=339, plot=30),
    )

    store.put(StoredSession.from_session(session))
    loaded = store.get(session.session_id).to_session()

    assert loaded.owner_id == session.owner_id
    assert loaded.message == session.message
    assert loaded.filters == session.filters
    assert loaded.world == session.world
    assert loaded.current_page == 1
    assert loaded.created_at == NOW


def test_upsert_keeps_original_created_at(store):
    session = build_session(build_world_with(12), total_pages=2)
    store.put(StoredSession.from_session(session))

    session.current_page = 1
    session.created_at = NOW + timedelta(days=1)
    session.last_refreshed = NOW + timedelta(hours=2)
    store.put(StoredSession.from_session(session))

    loaded = store.get(session.session_id).to_session()
    assert loaded.current_page == 1
    assert loaded.created_at == NOW
    assert loaded.last_refreshed == NOW + timedelta(hours=2)
    assert len(store.list()) == 1


def test_get_missing_returns_none(store):
    assert store.get("nope") is None


def test_delete_reports_whether_a_row_existed(store):
    session = build_session(build_world_with(1))
    store.put(StoredSession.from_session(session))

    assert store.delete(session.session_id) is True
    assert store.delete(session.session_id) is False


def test_list_orders_by_creation(store):
    world = build_world_with(1)
    store.put(StoredSession.from_session(build_session(world, session_id="late", created_at=NOW)))
    store.put(
        StoredSession.from_session(
            build_session(world, session_id="early", created_at=NOW - timedelta(days=1))
        )
    )

    assert [row.session_id for row in store.list()] == ["early", "late"]


def test_delete_older_than(store):
    world = build_world_with(1)
    store.put(
        StoredSession.from_session(
            build_session(world, session_id="old", created_at=NOW - timedelta(days=8))
        )
    )
    store.put(
        StoredSession.from_session(
            build_session(world, session_id="fresh", created_at=NOW - timedelta(hours=1))
        )
    )

    deleted = store.delete_older_than(NOW - timedelta(days=7))

    assert deleted == 1
    assert [row.session_id for row in store.list()] == ["fresh"]


def test_malformed_snapshot_raises(store):
    row = StoredSession.from_session(build_session(build_world_with(1)))
    broken = dataclasses.replace(row, world_detail_json="{not json")

    with pytest.raises(MalformedPersistedStateError):
        broken.to_session()


def test_out_of_range_page_raises():
    row = StoredSession.from_session(build_session(build_world_with(1)))
    broken = dataclasses.replace(row, current_page=3, total_pages=2)

    with pytest.raises(MalformedPersistedStateError):
        broken.to_session()


def test_invalid_filter_raises():
    row = StoredSession.from_session(build_session(build_world_with(1)))
    broken = dataclasses.replace(row, plot_filter=31)

    with pytest.raises(MalformedPersistedStateError):
        broken.to_session()


def test_snapshot_that_is_not_an_object_raises():
    row = StoredSession.from_session(build_session(build_world_with(1)))
    broken = dataclasses.replace(row, world_detail_json="[]")

    with pytest.raises(MalformedPersistedStateError):
        broken.to_session()


def test_unconvertible_timestamp_raises():
    row = StoredSession.from_session(build_session(build_world_with(1)))
    broken = dataclasses.replace(row, created_at=10**18)

    with pytest.raises(MalformedPersistedStateError):
        broken.created
    with pytest.raises(MalformedPersistedStateError):
        broken.to_session()
