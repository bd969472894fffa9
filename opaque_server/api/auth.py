"""Authentication API routes — OPAQUE registration, login, and sessions.

Six endpoints, paths kept at the root so a browser client can proxy them
as-is:
- Registration: POST /register/start, POST /register/finish
- Login: POST /login/start, POST /login/finish (sets the session cookie)
- Session: POST /logout, GET /restricted

The store never rejects a write, so this module enforces the policy: one
registration per user identifier, one in-flight login per user. Success
bodies carry the protocol messages the client expects; failures use the
ApiResponse envelope.

Tier 3 orchestration module: imports from deps (Tier 2), hooks/interfaces
(Tier 1), schemas (Tier 1), config (Tier 2).
"""

import logging
import secrets

from fastapi import APIRouter, Depends, HTTPException, Response

from opaque_server.api.deps import (
    ActiveSession,
    get_app_settings,
    get_opaque_server,
    get_store,
    require_session,
)
from opaque_server.config import Settings
from opaque_server.hooks.interfaces import AuthStateStore, OpaqueServer
from opaque_server.schemas import (
    ApiError,
    ApiResponse,
    LoginFinishParams,
    LoginStartParams,
    RegisterFinishParams,
    RegisterStartParams,
    SessionData,
)

logger = logging.getLogger("opaque_server")

router = APIRouter()


def _bad_request(code: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=400,
        detail=ApiResponse(
            ok=False,
            error=ApiError(code=code, message=message),
        ).model_dump(),
    )


def generate_session_id() -> str:
    """Returns a fresh, URL-safe, cryptographically random session id."""
    return secrets.token_urlsafe(32)


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


@router.post("/register/start")
async def register_start(
    body: RegisterStartParams,
    store: AuthStateStore = Depends(get_store),
    opaque: OpaqueServer = Depends(get_opaque_server),
) -> dict[str, str]:
    """Answers a registration request for a not-yet-registered user."""
    if await store.has_user(body.user_identifier):
        raise _bad_request("USER_EXISTS", "user already registered")

    registration_response = opaque.create_registration_response(
        body.user_identifier, body.registration_request
    )
    return {"registrationResponse": registration_response}


@router.post("/register/finish")
async def register_finish(
    body: RegisterFinishParams,
    store: AuthStateStore = Depends(get_store),
) -> Response:
    """Stores the registration record.

    A record for an already-registered user is ignored: the first
    registration wins and the response is the same either way.
    """
    existing = await store.get_user(body.user_identifier)
    if existing is None:
        await store.set_user(body.user_identifier, body.registration_record)
    else:
        logger.debug("Ignoring repeated registration for an existing user")
    return Response(status_code=200)


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


@router.post("/login/start")
async def login_start(
    body: LoginStartParams,
    store: AuthStateStore = Depends(get_store),
    opaque: OpaqueServer = Depends(get_opaque_server),
) -> dict[str, str]:
    """Starts a login and keeps the server login state for a short window."""
    registration_record = await store.get_user(body.user_identifier)
    if registration_record is None:
        raise _bad_request("USER_NOT_REGISTERED", "user not registered")

    if await store.has_login(body.user_identifier):
        raise _bad_request("LOGIN_ALREADY_STARTED", "login already started")

    result = opaque.start_login(
        body.user_identifier, registration_record, body.start_login_request
    )
    await store.set_login(body.user_identifier, result.server_login_state)
    return {"loginResponse": result.login_response}


@router.post("/login/finish")
async def login_finish(
    body: LoginFinishParams,
    store: AuthStateStore = Depends(get_store),
    opaque: OpaqueServer = Depends(get_opaque_server),
    settings: Settings = Depends(get_app_settings),
) -> Response:
    """Finishes a login, opens a session and sets the session cookie."""
    server_login_state = await store.get_login(body.user_identifier)
    if server_login_state is None:
        raise _bad_request("LOGIN_NOT_STARTED", "login not started")

    session_key = opaque.finish_login(server_login_state, body.finish_login_request)

    session_id = generate_session_id()
    await store.set_session(
        session_id,
        SessionData(user_identifier=body.user_identifier, session_key=session_key),
        settings.session_lifetime_days,
    )
    await store.remove_login(body.user_identifier)

    response = Response(status_code=200)
    response.set_cookie(settings.session_cookie_name, session_id, httponly=True)
    return response


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


@router.post("/logout")
async def logout(
    session: ActiveSession = Depends(require_session),
    store: AuthStateStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> Response:
    """Ends the current session and clears the cookie."""
    await store.clear_session(session.session_id)
    response = Response(status_code=200)
    response.delete_cookie(settings.session_cookie_name, httponly=True)
    return response


@router.get("/restricted")
async def restricted(
    session: ActiveSession = Depends(require_session),
) -> dict[str, str]:
    """A resource only reachable with a live session."""
    return {
        "message": (
            f'Hello "{session.data.user_identifier}" '
            "from opaque-authenticated world!"
        )
    }
