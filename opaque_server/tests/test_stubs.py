"""Tests for the FakeOpaqueServer stub.

Verifies the stub's deterministic outputs: same inputs give the same
blobs, different inputs or server setups give different ones, and every
blob is unpadded base64url like a real OPAQUE message.
"""

import re

from opaque_server.hooks.interfaces import StartLoginResult
from opaque_server.hooks.opaque import FakeOpaqueServer

_BASE64URL = re.compile(r"^[A-Za-z0-9_-]+$")


class TestRegistration:
    """create_registration_response."""

    def test_deterministic(self) -> None:
        opaque = FakeOpaqueServer("setup")
        first = opaque.create_registration_response("alice", "REQ")
        second = opaque.create_registration_response("alice", "REQ")
        assert first == second

    def test_depends_on_user(self) -> None:
        opaque = FakeOpaqueServer("setup")
        assert opaque.create_registration_response(
            "alice", "REQ"
        ) != opaque.create_registration_response("bob", "REQ")

    def test_depends_on_server_setup(self) -> None:
        assert FakeOpaqueServer("one").create_registration_response(
            "alice", "REQ"
        ) != FakeOpaqueServer("two").create_registration_response("alice", "REQ")

    def test_base64url_output(self) -> None:
        response = FakeOpaqueServer().create_registration_response("alice@example.com", "REQ")
        assert _BASE64URL.match(response)


class TestLogin:
    """start_login / finish_login."""

    def test_start_login_returns_named_result(self) -> None:
        result = FakeOpaqueServer("setup").start_login("alice", "REC1", "START")
        assert isinstance(result, StartLoginResult)
        assert result.server_login_state != result.login_response
        assert _BASE64URL.match(result.server_login_state)
        assert _BASE64URL.match(result.login_response)

    def test_finish_login_deterministic(self) -> None:
        opaque = FakeOpaqueServer("setup")
        state, _ = opaque.start_login("alice", "REC1", "START")
        assert opaque.finish_login(state, "FINISH") == opaque.finish_login(state, "FINISH")

    def test_finish_login_depends_on_request(self) -> None:
        opaque = FakeOpaqueServer("setup")
        state, _ = opaque.start_login("alice", "REC1", "START")
        assert opaque.finish_login(state, "FINISH-A") != opaque.finish_login(state, "FINISH-B")

    def test_session_key_is_sha256_sized(self) -> None:
        opaque = FakeOpaqueServer("setup")
        key = opaque.finish_login("STATE", "FINISH")
        # 32 bytes -> 43 unpadded base64 characters
        assert len(key) == 43
        assert _BASE64URL.match(key)
