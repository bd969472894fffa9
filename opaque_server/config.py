"""App configuration — environment variable loading with typed defaults.

Loads settings from .env file (via python-dotenv) and os.environ.
Real environment variables take precedence over .env file values.

OPAQUE_SERVER_SETUP holds the server's long-term key material as a
base64url string; it is checked for shape here, never decoded.

Usage:
    from opaque_server.config import get_settings
    settings = get_settings()
    print(settings.db_file)  # "./sample-db.json"
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Only load .env from the project root — don't traverse parent directories.
PROJECT_ROOT = Path(__file__).resolve().parent.parent
_DOTENV_PATH = PROJECT_ROOT / ".env"

_BASE64URL = re.compile(r"^[A-Za-z0-9_-]*={0,2}$")
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class Settings:
    """Typed configuration for the OPAQUE demo server.

    All fields have sensible defaults for local development.
    """

    # App
    app_env: str
    app_port: int
    log_level: str
    cors_origins: list[str]

    # OPAQUE
    opaque_server_setup: str

    # Persistence
    disable_fs: bool
    db_file: str

    # Sessions
    session_lifetime_days: int
    session_cookie_name: str


def _split_csv(value: str) -> list[str]:
    """Splits a comma-separated string into a list of stripped, non-empty values."""
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_bool(env_var: str, value: str) -> bool:
    """Parses a boolean flag like DISABLE_FS=true.

    Raises:
        ValueError: If the value is not a recognised boolean spelling.
    """
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ValueError(
        f"Invalid value for {env_var}: {value!r}. "
        "Expected true/false, yes/no, on/off or 1/0"
    )


def _parse_int(env_var: str, value: str, minimum: int | None = None) -> int:
    """Parses an integer env var, naming the variable on failure."""
    try:
        parsed = int(value)
    except ValueError:
        raise ValueError(f"Invalid value for {env_var}: {value!r}. Expected an integer") from None
    if minimum is not None and parsed < minimum:
        raise ValueError(f"Invalid value for {env_var}: {value!r}. Expected at least {minimum}")
    return parsed


def _check_base64url(env_var: str, value: str) -> str:
    """Returns value unchanged if it is base64url (or empty).

    Raises:
        ValueError: If the value contains characters outside base64url.
    """
    if _BASE64URL.match(value):
        return value
    raise ValueError(f"Invalid value for {env_var}: expected a base64url string")


def _load_settings() -> Settings:
    """Loads configuration from .env file and environment variables.

    Returns:
        A fully resolved Settings instance.
    """
    load_dotenv(_DOTENV_PATH)

    return Settings(
        # App
        app_env=os.environ.get("APP_ENV", "development"),
        app_port=_parse_int("PORT", os.environ.get("PORT", "8090")),
        log_level=os.environ.get("LOG_LEVEL", "info"),
        cors_origins=_split_csv(
            os.environ.get("CORS_ORIGINS", "http://localhost:5173")
        ),
        # OPAQUE
        opaque_server_setup=_check_base64url(
            "OPAQUE_SERVER_SETUP", os.environ.get("OPAQUE_SERVER_SETUP", "")
        ),
        # Persistence
        disable_fs=_parse_bool("DISABLE_FS", os.environ.get("DISABLE_FS", "false")),
        db_file=os.environ.get("DB_FILE", "./sample-db.json"),
        # Sessions
        session_lifetime_days=_parse_int(
            "SESSION_LIFETIME_DAYS", os.environ.get("SESSION_LIFETIME_DAYS", "14"),
            minimum=1,
        ),
        session_cookie_name=os.environ.get("SESSION_COOKIE_NAME", "session"),
    )


_settings: Settings | None = None


def get_settings() -> Settings:
    """Returns the singleton Settings instance. Loads .env on first call."""
    global _settings
    if _settings is None:
        _settings = _load_settings()
    return _settings
