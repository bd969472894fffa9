"""In-memory authentication-state store — development stub for AuthStateStore.

Python dict-backed storage for registered users, in-flight logins and
sessions. Expiry is enforced on read only:

- has_login / get_login treat an entry older than LOGIN_FRESHNESS_MS as
  absent, but leave it in place (a later set_login overwrites it).
- get_session deletes a session whose expires_at has passed.

No background sweeper and no timers — time is read from an injectable
clock so tests can move it forward.

Every coroutine here does one dict read or write and never awaits, so on
a single event loop each operation is atomic and listeners only ever see
a fully-applied mutation.

TEAM: Replace this with your real store (Redis, Postgres, etc.). Subclass
AuthStateStore from opaque_server.hooks.interfaces. Your implementation
MUST enforce login freshness and session expiry — callers never check
timestamps themselves.

Tier 2 service module: imports from opaque_server.hooks.interfaces (Tier 1)
and opaque_server.schemas (Tier 1).

Usage:
    from opaque_server.hooks.store import InMemoryAuthStore

    store = InMemoryAuthStore.empty()
    unsubscribe = store.add_listener(lambda: print("changed"))
    await store.set_user("alice@example.com", registration_record)
    await store.get_session("session-id")  # None if expired
"""

import time
from collections.abc import Callable

from opaque_server.hooks.interfaces import AuthStateStore, Listener, Unsubscribe
from opaque_server.schemas import LoginEntry, SessionData, SessionEntry, StoreSnapshot

LOGIN_FRESHNESS_MS = 2000
MILLISECONDS_PER_DAY = 24 * 60 * 60 * 1000
DEFAULT_SESSION_LIFETIME_DAYS = 14

Clock = Callable[[], int]


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class InMemoryAuthStore(AuthStateStore):
    """STUB — dict-backed auth state, lost on restart unless persisted.

    Users are keyed by user identifier, logins by user identifier, sessions
    by session id. Listeners fire after user and login mutations only;
    hook opaque_server.hooks.persistence onto them to keep a snapshot file
    in sync.
    """

    def __init__(
        self,
        users: dict[str, str] | None = None,
        logins: dict[str, LoginEntry] | None = None,
        *,
        clock: Clock = _now_ms,
    ) -> None:
        """Initialises the store from existing durable state.

        Sessions and listeners always start empty.

        Args:
            users: Initial user identifier -> registration record mapping.
            logins: Initial user identifier -> LoginEntry mapping.
            clock: Returns the current time in epoch milliseconds.
        """
        self._users: dict[str, str] = dict(users or {})
        self._logins: dict[str, LoginEntry] = dict(logins or {})
        self._sessions: dict[str, SessionEntry] = {}
        self._listeners: list[Listener] = []
        self._clock = clock

    @classmethod
    def empty(cls, *, clock: Clock = _now_ms) -> "InMemoryAuthStore":
        """Returns a store with no users, logins or sessions."""
        return cls(clock=clock)

    @classmethod
    def from_snapshot(
        cls, snapshot: StoreSnapshot, *, clock: Clock = _now_ms
    ) -> "InMemoryAuthStore":
        """Rebuilds a store from a decoded snapshot."""
        return cls(snapshot.users, snapshot.logins, clock=clock)

    def snapshot(self) -> StoreSnapshot:
        """Returns a copy of the durable state (users and logins)."""
        return StoreSnapshot(users=dict(self._users), logins=dict(self._logins))

    # -- Listeners ---------------------------------------------------------

    def add_listener(self, listener: Listener) -> Unsubscribe:
        self._listeners.append(listener)
        removed = False

        def unsubscribe() -> None:
            nonlocal removed
            if removed:
                return
            removed = True
            for index, registered in enumerate(self._listeners):
                if registered is listener:
                    del self._listeners[index]
                    break

        return unsubscribe

    def _notify_listeners(self) -> None:
        # Copy so a listener can unsubscribe itself mid fan-out.
        for listener in list(self._listeners):
            listener()

    # -- Users -------------------------------------------------------------

    async def has_user(self, user_identifier: str) -> bool:
        return user_identifier in self._users

    async def get_user(self, user_identifier: str) -> str | None:
        return self._users.get(user_identifier)

    async def set_user(self, user_identifier: str, registration_record: str) -> None:
        self._users[user_identifier] = registration_record
        self._notify_listeners()

    # -- Logins ------------------------------------------------------------

    async def has_login(self, user_identifier: str) -> bool:
        login = self._logins.get(user_identifier)
        if login is None:
            return False
        return self._clock() - login.timestamp < LOGIN_FRESHNESS_MS

    async def get_login(self, user_identifier: str) -> str | None:
        if not await self.has_login(user_identifier):
            return None
        return self._logins[user_identifier].value

    async def set_login(self, user_identifier: str, login_state: str) -> None:
        self._logins[user_identifier] = LoginEntry(
            value=login_state, timestamp=self._clock()
        )
        self._notify_listeners()

    async def remove_login(self, user_identifier: str) -> None:
        self._logins.pop(user_identifier, None)
        self._notify_listeners()

    # -- Sessions ----------------------------------------------------------

    async def get_session(self, session_id: str) -> SessionData | None:
        """Retrieves a session, deleting it if it has expired.

        Args:
            session_id: The session identifier.

        Returns:
            The SessionData without its expiry, or None if the session is
            missing or expires_at <= now.
        """
        session = self._sessions.get(session_id)
        if session is None:
            return None
        if session.expires_at <= self._clock():
            del self._sessions[session_id]
            return None
        return SessionData(
            user_identifier=session.user_identifier,
            session_key=session.session_key,
        )

    async def set_session(
        self,
        session_id: str,
        session: SessionData,
        lifetime_days: float = DEFAULT_SESSION_LIFETIME_DAYS,
    ) -> None:
        expires_at = self._clock() + int(lifetime_days * MILLISECONDS_PER_DAY)
        self._sessions[session_id] = SessionEntry(
            user_identifier=session.user_identifier,
            session_key=session.session_key,
            expires_at=expires_at,
        )

    async def clear_session(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
