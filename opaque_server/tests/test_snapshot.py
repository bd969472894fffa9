"""Tests for opaque_server.hooks.snapshot — JSON snapshot codec."""

import json

import pytest

from opaque_server.hooks.snapshot import MalformedSnapshot, deserialize, serialize
from opaque_server.hooks.store import InMemoryAuthStore
from opaque_server.schemas import LoginEntry, SessionData


class TestSerialize:
    """serialize — users and logins only, indented JSON."""

    @pytest.mark.asyncio
    async def test_top_level_keys(self, make_store) -> None:
        store = make_store()
        await store.set_user("alice", "REC1")
        document = json.loads(serialize(store))
        assert set(document) == {"users", "logins"}

    @pytest.mark.asyncio
    async def test_login_carries_timestamp(self, make_store, clock) -> None:
        store = make_store()
        await store.set_login("alice", "STATE1")
        document = json.loads(serialize(store))
        assert document["logins"] == {"alice": {"value": "STATE1", "timestamp": clock()}}

    @pytest.mark.asyncio
    async def test_sessions_never_serialized(self, make_store) -> None:
        store = make_store()
        await store.set_session(
            "sess-1", SessionData(user_identifier="alice", session_key="SECRET-KEY")
        )
        text = serialize(store)
        assert "sess-1" not in text
        assert "SECRET-KEY" not in text

    def test_two_space_indent(self, make_store) -> None:
        text = serialize(make_store(users={"alice": "REC1"}))
        assert '\n  "users": {\n    "alice": "REC1"\n  }' in text

    def test_empty_store(self) -> None:
        assert json.loads(serialize(InMemoryAuthStore.empty())) == {
            "logins": {},
            "users": {},
        }


class TestDeserialize:
    """deserialize — validates shape, raises MalformedSnapshot."""

    def test_parses_serialized_store(self, make_store, clock) -> None:
        store = make_store(
            users={"alice": "REC1", "bob": "REC2"},
            logins={"bob": LoginEntry(value="STATE2", timestamp=clock() - 10)},
        )
        snapshot = deserialize(serialize(store))
        assert snapshot.users == {"alice": "REC1", "bob": "REC2"}
        assert snapshot.logins == {"bob": LoginEntry(value="STATE2", timestamp=clock() - 10)}

    def test_accepts_bytes(self) -> None:
        snapshot = deserialize(b'{"users": {"alice": "REC1"}, "logins": {}}')
        assert snapshot.users == {"alice": "REC1"}

    def test_invalid_json_raises(self) -> None:
        with pytest.raises(MalformedSnapshot):
            deserialize("{not json")

    def test_missing_users_raises(self) -> None:
        with pytest.raises(MalformedSnapshot):
            deserialize('{"logins": {}}')

    def test_missing_logins_raises(self) -> None:
        with pytest.raises(MalformedSnapshot):
            deserialize('{"users": {}}')

    def test_non_object_raises(self) -> None:
        with pytest.raises(MalformedSnapshot):
            deserialize("[]")

    def test_wrong_login_shape_raises(self) -> None:
        with pytest.raises(MalformedSnapshot):
            deserialize('{"users": {}, "logins": {"alice": "STATE1"}}')

    def test_malformed_snapshot_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            deserialize("")


class TestRoundTrip:
    """A store rebuilt from its own snapshot."""

    @pytest.mark.asyncio
    async def test_rebuilt_store_matches_durable_state(
        self, make_store, clock, make_session_data
    ) -> None:
        original = make_store()
        await original.set_user("alice", "REC1")
        await original.set_user("bob", "REC2")
        await original.set_login("bob", "STATE2")
        await original.set_session("sess-1", make_session_data(user_identifier="bob"))
        original.add_listener(lambda: None)

        rebuilt = InMemoryAuthStore.from_snapshot(deserialize(serialize(original)), clock=clock)

        assert rebuilt.snapshot() == original.snapshot()
        assert await rebuilt.get_login("bob") == "STATE2"
        assert await rebuilt.get_session("sess-1") is None
        assert rebuilt._listeners == []
