"""Core data models — shared Pydantic types for the OPAQUE demo server.

Store entries, snapshot documents, request bodies and the API envelope all
flow through these types. Registration records, login states and session
keys are opaque strings produced by the OPAQUE protocol — nothing here
inspects their content.

This is a Tier 1 leaf module: it imports only from pydantic and the stdlib.
No project imports allowed — everything else imports from here.

Usage:
    from opaque_server.schemas import LoginEntry, SessionData, ApiResponse
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Store entries
# ---------------------------------------------------------------------------


class LoginEntry(BaseModel):
    """One in-flight login handshake.

    value is the server login state blob. timestamp is the creation time in
    epoch milliseconds; the entry is live only within the freshness window.
    Frozen — a new start-login replaces the entry, it never edits it.
    """

    model_config = ConfigDict(frozen=True)

    value: str
    timestamp: int


class SessionData(BaseModel):
    """What callers get back from a session lookup."""

    model_config = ConfigDict(frozen=True)

    user_identifier: str
    session_key: str


class SessionEntry(SessionData):
    """SessionData plus its absolute expiry (epoch milliseconds)."""

    expires_at: int


# ---------------------------------------------------------------------------
# Snapshot document
# ---------------------------------------------------------------------------


class StoreSnapshot(BaseModel):
    """Durable portion of the store — users and logins, never sessions.

    Both mappings are required: a document missing either one is not a
    snapshot.
    """

    users: dict[str, str]
    logins: dict[str, LoginEntry]


# ---------------------------------------------------------------------------
# Request bodies (camelCase on the wire)
# ---------------------------------------------------------------------------


class _RequestBody(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class RegisterStartParams(_RequestBody):
    user_identifier: str = Field(alias="userIdentifier", min_length=1)
    registration_request: str = Field(alias="registrationRequest", min_length=1)


class RegisterFinishParams(_RequestBody):
    user_identifier: str = Field(alias="userIdentifier", min_length=1)
    registration_record: str = Field(alias="registrationRecord", min_length=1)


class LoginStartParams(_RequestBody):
    user_identifier: str = Field(alias="userIdentifier", min_length=1)
    start_login_request: str = Field(alias="startLoginRequest", min_length=1)


class LoginFinishParams(_RequestBody):
    user_identifier: str = Field(alias="userIdentifier", min_length=1)
    finish_login_request: str = Field(alias="finishLoginRequest", min_length=1)


# ---------------------------------------------------------------------------
# API envelope
# ---------------------------------------------------------------------------


class ApiError(BaseModel):
    """Error detail inside ApiResponse.error.

    code is an uppercase string like "USER_EXISTS", "LOGIN_NOT_STARTED",
    "INVALID_SESSION". Not an enum — codes grow with the routes.
    """

    model_config = ConfigDict(frozen=True)

    code: str
    message: str


class ApiResponse(BaseModel):
    """Universal envelope — errors and the health check use this shape."""

    model_config = ConfigDict(frozen=True)

    ok: bool
    data: Any | None = None
    error: ApiError | None = None
