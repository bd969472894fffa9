"""Shared FastAPI dependencies — store, OPAQUE server and session injection.

Module-level singletons for each service. Route handlers access them via
FastAPI's Depends() system — never by importing implementations directly.
The store singleton is replaced at app startup by init_auth_store(), which
loads it from the snapshot file and wires file persistence.

TEAM: To wire your real services, replace the class on the right side of
each singleton assignment below. The get_* functions and all route
handlers stay unchanged.

Tier 2 service module: imports from hooks/* (Tier 2), hooks/interfaces
(Tier 1), config (Tier 2), schemas (Tier 1).

Usage:
    from opaque_server.api.deps import get_store, require_session

    @router.get("/something")
    async def do_thing(
        session: ActiveSession = Depends(require_session),
        store: AuthStateStore = Depends(get_store),
    ): ...
"""

import logging
from typing import NamedTuple

from fastapi import Depends, HTTPException, Request

from opaque_server.config import Settings, get_settings
from opaque_server.hooks.interfaces import AuthStateStore, OpaqueServer
from opaque_server.hooks.opaque import FakeOpaqueServer
from opaque_server.hooks.persistence import attach_file_persistence, init_store
from opaque_server.hooks.store import InMemoryAuthStore
from opaque_server.schemas import ApiError, ApiResponse, SessionData

logger = logging.getLogger("opaque_server")

# ---------------------------------------------------------------------------
# Service singletons — the swap point
# ---------------------------------------------------------------------------

# TEAM: Replace with your real implementations here.
_store: AuthStateStore = InMemoryAuthStore.empty()
_opaque_server: OpaqueServer | None = None


def init_auth_store(settings: Settings) -> AuthStateStore:
    """Builds the store singleton from the snapshot file.

    With DISABLE_FS set the store is purely in-memory. Otherwise it is
    loaded from settings.db_file (empty if missing or malformed) and every
    durable mutation rewrites that file.
    """
    global _store
    store = init_store(settings.db_file, disable_fs=settings.disable_fs)
    if not settings.disable_fs:
        attach_file_persistence(store, settings.db_file)
    _store = store
    return store


def init_opaque_server(settings: Settings) -> OpaqueServer:
    """Builds the OPAQUE server singleton from the configured server setup."""
    global _opaque_server
    if not settings.opaque_server_setup:
        logger.warning(
            "Missing OPAQUE_SERVER_SETUP. Using an empty server setup."
        )
    _opaque_server = FakeOpaqueServer(server_setup=settings.opaque_server_setup)
    return _opaque_server


# ---------------------------------------------------------------------------
# Dependency providers
# ---------------------------------------------------------------------------


def get_store() -> AuthStateStore:
    """Returns the auth-state store singleton."""
    return _store


def get_opaque_server() -> OpaqueServer:
    """Returns the OPAQUE server singleton.

    Raises HTTPException(503) if it hasn't been initialized yet
    (startup not complete).
    """
    if _opaque_server is None:
        raise HTTPException(
            status_code=503,
            detail=ApiResponse(
                ok=False,
                error=ApiError(
                    code="SERVICE_UNAVAILABLE",
                    message="OPAQUE server is not yet available. Server is starting up.",
                ),
            ).model_dump(),
        )
    return _opaque_server


def get_app_settings() -> Settings:
    """Returns the settings singleton (overridable in tests)."""
    return get_settings()


# ---------------------------------------------------------------------------
# Session dependency — used by route handlers
# ---------------------------------------------------------------------------


class ActiveSession(NamedTuple):
    """A live session resolved from the request cookie."""

    session_id: str
    data: SessionData


def _unauthorized(code: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=ApiResponse(
            ok=False,
            error=ApiError(code=code, message=message),
        ).model_dump(),
    )


async def require_session(
    request: Request,
    store: AuthStateStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> ActiveSession:
    """Resolves the session cookie to a live session.

    Raises:
        HTTPException: 401 UNAUTHORIZED without a cookie, 401
            INVALID_SESSION if the session is unknown or expired.
    """
    session_id = request.cookies.get(settings.session_cookie_name)
    if not session_id:
        raise _unauthorized("UNAUTHORIZED", "not authorized")

    session = await store.get_session(session_id)
    if session is None:
        raise _unauthorized("INVALID_SESSION", "invalid session")

    return ActiveSession(session_id=session_id, data=session)
