"""Snapshot codec — JSON encoding of the store's durable state.

A snapshot holds exactly two mappings, users and logins (with each login's
timestamp). Sessions are never written: they are only recreated by a fresh
login, and writing them would put live session keys on disk.

Output is pretty-printed with 2-space indentation so snapshot files diff
cleanly:

    {
      "logins": {},
      "users": {
        "alice@example.com": "<registration record>"
      }
    }

Usage:
    from opaque_server.hooks.snapshot import deserialize, serialize

    text = serialize(store)
    store = InMemoryAuthStore.from_snapshot(deserialize(text))
"""

import json

from pydantic import ValidationError

from opaque_server.hooks.store import InMemoryAuthStore
from opaque_server.schemas import StoreSnapshot


class MalformedSnapshot(ValueError):
    """Raised when snapshot text is not JSON or lacks users/logins."""


def serialize(store: InMemoryAuthStore) -> str:
    """Encodes the store's users and logins as indented JSON."""
    snapshot = store.snapshot()
    document = {
        "logins": {
            user: entry.model_dump() for user, entry in snapshot.logins.items()
        },
        "users": snapshot.users,
    }
    return json.dumps(document, indent=2)


def deserialize(text: str | bytes) -> StoreSnapshot:
    """Decodes a snapshot produced by serialize.

    Args:
        text: The snapshot document.

    Returns:
        The validated StoreSnapshot.

    Raises:
        MalformedSnapshot: If the text is not valid JSON, or either
            top-level mapping is missing or has the wrong shape.
    """
    try:
        return StoreSnapshot.model_validate_json(text)
    except ValidationError as exc:
        raise MalformedSnapshot(f"Invalid snapshot: {exc}") from exc
