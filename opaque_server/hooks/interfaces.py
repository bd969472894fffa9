"""Hook interfaces — abstract base classes for the swappable services.

These ABCs define the contracts between the HTTP layer and the pieces it
delegates to: the authentication-state store and the OPAQUE protocol. Each
one has a development implementation in this package (an in-memory store,
a fake protocol) and can be replaced with a production one.

Tier 1 leaf module: imports only from abc, collections.abc, typing (stdlib)
and opaque_server.schemas (also Tier 1). No project services.

TEAM: To implement a real service, subclass the relevant ABC and implement
every abstract method. Python will raise TypeError at instantiation if
any method is missing.

Usage:
    from opaque_server.hooks.interfaces import AuthStateStore, OpaqueServer
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import NamedTuple

from opaque_server.schemas import SessionData

Listener = Callable[[], None]
Unsubscribe = Callable[[], None]


# ---------------------------------------------------------------------------
# Authentication state
# ---------------------------------------------------------------------------


class AuthStateStore(ABC):
    """Users, in-flight logins and sessions, with lazy expiry.

    Users and logins are durable state: every mutation of either notifies
    the registered listeners, which is how a persistence layer mirrors them
    to disk. Sessions are transient and never notify.

    Absence is always None — no method raises for a missing or expired key.
    The store never rejects a write: callers check has_user / has_login
    before set_user / set_login to keep one registration per identifier
    and one in-flight login per user.
    """

    @abstractmethod
    async def has_user(self, user_identifier: str) -> bool:
        """Returns True iff a registration record exists for the user."""
        ...

    @abstractmethod
    async def get_user(self, user_identifier: str) -> str | None:
        """Returns the registration record, or None if not registered."""
        ...

    @abstractmethod
    async def set_user(self, user_identifier: str, registration_record: str) -> None:
        """Stores a registration record and notifies listeners.

        Args:
            user_identifier: The user's identifier (e.g. an email).
            registration_record: Opaque record from the OPAQUE protocol.
        """
        ...

    @abstractmethod
    async def has_login(self, user_identifier: str) -> bool:
        """Returns True iff a login entry exists and is still fresh.

        A stale entry reads as absent but is not removed.
        """
        ...

    @abstractmethod
    async def get_login(self, user_identifier: str) -> str | None:
        """Returns the server login state if has_login is True, else None."""
        ...

    @abstractmethod
    async def set_login(self, user_identifier: str, login_state: str) -> None:
        """Stores a login state stamped with the current time; notifies."""
        ...

    @abstractmethod
    async def remove_login(self, user_identifier: str) -> None:
        """Deletes the login entry (no-op if absent); notifies."""
        ...

    @abstractmethod
    async def get_session(self, session_id: str) -> SessionData | None:
        """Returns the session, or None if missing or expired.

        An expired session is deleted as a side effect of the read.
        """
        ...

    @abstractmethod
    async def set_session(
        self, session_id: str, session: SessionData, lifetime_days: float = 14
    ) -> None:
        """Stores a session that expires lifetime_days from now.

        Args:
            session_id: Caller-generated random token.
            session: The user identifier and session key.
            lifetime_days: Session lifetime. Defaults to 14 days.
        """
        ...

    @abstractmethod
    async def clear_session(self, session_id: str) -> None:
        """Deletes a session. No-op if not found (idempotent)."""
        ...

    @abstractmethod
    def add_listener(self, listener: Listener) -> Unsubscribe:
        """Registers a callback fired after every user or login mutation.

        Args:
            listener: Zero-argument callable, invoked synchronously.

        Returns:
            A function that removes exactly this registration. Calling it
            more than once is a no-op.
        """
        ...


# ---------------------------------------------------------------------------
# OPAQUE protocol
# ---------------------------------------------------------------------------


class StartLoginResult(NamedTuple):
    """Server side of the first login message."""

    server_login_state: str
    login_response: str


class OpaqueServer(ABC):
    """Server half of the OPAQUE password-authenticated key exchange.

    Every argument and return value is an opaque base64url string. The
    server setup (long-term key material) is the implementation's concern.

    TEAM: Replace the stub (FakeOpaqueServer) with bindings to a real
    OPAQUE implementation. The stub performs no cryptography.
    """

    @abstractmethod
    def create_registration_response(
        self, user_identifier: str, registration_request: str
    ) -> str:
        """Answers a client registration request.

        Returns:
            The registration response to send back to the client.
        """
        ...

    @abstractmethod
    def start_login(
        self,
        user_identifier: str,
        registration_record: str,
        start_login_request: str,
    ) -> StartLoginResult:
        """Answers a client login request.

        Returns:
            The login state to keep server-side until finish_login, and the
            login response to send to the client.
        """
        ...

    @abstractmethod
    def finish_login(self, server_login_state: str, finish_login_request: str) -> str:
        """Completes a login and derives the shared session key.

        Returns:
            The session key.
        """
        ...
