"""Shared test fixtures.

Factory-pattern fixtures that return callables accepting **overrides, plus
a controllable clock for expiry tests.

DISABLE_FS is forced on before any app import so importing
opaque_server.main never reads or writes a snapshot file in the working
directory.

Fixtures:
    clock: FakeClock starting at a fixed epoch-millisecond instant
    make_store: Factory for InMemoryAuthStore instances on that clock
    make_session_data: Factory for SessionData instances
"""

import os

os.environ["DISABLE_FS"] = "true"

from uuid import uuid4  # noqa: E402

import pytest  # noqa: E402

from opaque_server.hooks.store import InMemoryAuthStore  # noqa: E402
from opaque_server.schemas import LoginEntry, SessionData  # noqa: E402

CLOCK_START_MS = 1_760_000_000_000


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, now_ms: int = CLOCK_START_MS) -> None:
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    """A FakeClock at CLOCK_START_MS."""
    return FakeClock()


# ---------------------------------------------------------------------------
# Store factory
# ---------------------------------------------------------------------------


@pytest.fixture
def make_store(clock):
    """Returns a factory for InMemoryAuthStore instances driven by `clock`.

    Accepts users= and logins= to seed durable state.
    """

    def _make(
        users: dict[str, str] | None = None,
        logins: dict[str, LoginEntry] | None = None,
    ) -> InMemoryAuthStore:
        return InMemoryAuthStore(users, logins, clock=clock)

    return _make


# ---------------------------------------------------------------------------
# SessionData factory
# ---------------------------------------------------------------------------


@pytest.fixture
def make_session_data():
    """Returns a factory for SessionData with a unique session key."""

    def _make(**overrides) -> SessionData:
        defaults = {
            "user_identifier": "alice@example.com",
            "session_key": f"key-{uuid4().hex[:8]}",
        }
        defaults.update(overrides)
        return SessionData(**defaults)

    return _make
