"""Fake OPAQUE server — development stub for OpaqueServer.

Produces deterministic base64url blobs derived from its inputs so the
register and login flows run end-to-end without a real OPAQUE library.
There is NO cryptography here: any password "works", and the session key
is a plain hash of the login messages.

TEAM: Replace this with bindings to a real OPAQUE implementation. Subclass
OpaqueServer from opaque_server.hooks.interfaces; load the server setup
from settings.opaque_server_setup.

Tier 2 service module: imports from opaque_server.hooks.interfaces (Tier 1).

Usage:
    from opaque_server.hooks.opaque import FakeOpaqueServer

    opaque = FakeOpaqueServer(server_setup=settings.opaque_server_setup)
    state, response = opaque.start_login(user, record, request)
"""

import base64
import hashlib

from opaque_server.hooks.interfaces import OpaqueServer, StartLoginResult


def _encode(*parts: str) -> str:
    raw = "\x1f".join(parts).encode("utf-8")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


class FakeOpaqueServer(OpaqueServer):
    """STUB — labels and echoes its inputs, performs no key exchange."""

    def __init__(self, server_setup: str = "") -> None:
        """Initialises the fake server.

        Args:
            server_setup: Mixed into every blob so different setups give
                different outputs. Not validated.
        """
        self._server_setup = server_setup

    def create_registration_response(
        self, user_identifier: str, registration_request: str
    ) -> str:
        return _encode(
            "registration-response",
            self._server_setup,
            user_identifier,
            registration_request,
        )

    def start_login(
        self,
        user_identifier: str,
        registration_record: str,
        start_login_request: str,
    ) -> StartLoginResult:
        state = _encode(
            "login-state", self._server_setup, user_identifier, registration_record
        )
        response = _encode(
            "login-response", self._server_setup, user_identifier, start_login_request
        )
        return StartLoginResult(server_login_state=state, login_response=response)

    def finish_login(self, server_login_state: str, finish_login_request: str) -> str:
        digest = hashlib.sha256(
            f"{server_login_state}\x1f{finish_login_request}".encode("utf-8")
        ).digest()
        return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
