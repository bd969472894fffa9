"""Fixtures for contract tests — one parameterized fixture per hook interface.

Each fixture yields a fresh implementation instance. Today there's only the
stub ("stub" param). When the team adds a real implementation (e.g. Redis),
they add a second param value and an elif branch.

TEAM: To test your implementation against the contracts:
    1. Add your param string (e.g., "redis") to the params list.
    2. Add an elif branch that yields your implementation instance.
    3. Run: python -m pytest opaque_server/tests/contracts/ -v

Contract tests never move a clock — freshness and expiry that need time to
pass are covered by the implementation's own tests.

Uses @pytest_asyncio.fixture (not @pytest.fixture) for async fixture support
in strict mode.
"""

import pytest_asyncio

from opaque_server.hooks.store import InMemoryAuthStore
from opaque_server.schemas import SessionData


# ---------------------------------------------------------------------------
# Interface fixtures (parameterized for future implementations)
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture(params=["stub"])
async def auth_store(request):
    """Yields an AuthStateStore implementation.

    TEAM: Add your store here:
        @pytest_asyncio.fixture(params=["stub", "redis"])
        async def auth_store(request):
            if request.param == "stub":
                yield InMemoryAuthStore.empty()
            elif request.param == "redis":
                store = YourRedisAuthStore(test_url)
                yield store
                await store.flush()
    """
    if request.param == "stub":
        yield InMemoryAuthStore.empty()


# ---------------------------------------------------------------------------
# Helper fixtures (shared test data)
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def sample_session():
    """SessionData with recognisable values for data integrity assertions."""
    return SessionData(user_identifier="user-contract-1", session_key="KEY-contract-1")
