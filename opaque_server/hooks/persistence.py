"""Snapshot file persistence — mirrors the store's durable state to disk.

At startup init_store reads the snapshot file into a fresh store, falling
back to an empty store when the file is missing or unreadable. After that
attach_file_persistence rewrites the whole file on every user or login
mutation via a store listener. Sessions never reach the disk.

Nothing here crashes the process: load failures and write failures are
logged and the store keeps working in memory.

Tier 2 service module: imports from opaque_server.hooks.store and
opaque_server.hooks.snapshot.

Usage:
    from opaque_server.hooks.persistence import attach_file_persistence, init_store

    store = init_store("./sample-db.json", disable_fs=False)
    attach_file_persistence(store, "./sample-db.json")
"""

import logging
import os
from pathlib import Path

from opaque_server.hooks.interfaces import Unsubscribe
from opaque_server.hooks.snapshot import MalformedSnapshot, deserialize, serialize
from opaque_server.hooks.store import InMemoryAuthStore

logger = logging.getLogger("opaque_server")


def read_database_file(path: str | Path) -> InMemoryAuthStore:
    """Builds a store from a snapshot file.

    Raises:
        FileNotFoundError: If the file does not exist.
        MalformedSnapshot: If the file content is not a valid snapshot.
    """
    # Raw bytes: invalid UTF-8 surfaces as MalformedSnapshot, not UnicodeDecodeError.
    data = Path(path).read_bytes()
    return InMemoryAuthStore.from_snapshot(deserialize(data))


def write_database_file(path: str | Path, store: InMemoryAuthStore) -> None:
    """Replaces the snapshot file with the store's current durable state.

    The document goes to a sibling ".tmp" file first and is then renamed over
    the target, so a crash mid-write never leaves a truncated snapshot.
    """
    target = Path(path)
    staging = target.with_name(target.name + ".tmp")
    try:
        staging.write_text(serialize(store), encoding="utf-8")
        os.replace(staging, target)
    except OSError:
        staging.unlink(missing_ok=True)
        raise


def init_store(path: str | Path, *, disable_fs: bool = False) -> InMemoryAuthStore:
    """Loads the store from disk, or returns an empty one.

    Args:
        path: Snapshot file location.
        disable_fs: Skip the filesystem entirely (pure in-memory store).

    Returns:
        The loaded store, or an empty store if persistence is disabled or
        the file is missing, unreadable or malformed.
    """
    if disable_fs:
        return InMemoryAuthStore.empty()

    try:
        store = read_database_file(path)
    except FileNotFoundError:
        logger.warning(
            "No database file %r found, initializing an empty database", str(path)
        )
        return InMemoryAuthStore.empty()
    except (OSError, MalformedSnapshot):
        logger.exception(
            "Failed to open database file %r, initializing an empty database",
            str(path),
        )
        return InMemoryAuthStore.empty()

    logger.info("Database successfully initialized from file %r", str(path))
    return store


def attach_file_persistence(store: InMemoryAuthStore, path: str | Path) -> Unsubscribe:
    """Writes a snapshot now and after every durable mutation.

    Args:
        store: The store to mirror.
        path: Snapshot file location.

    Returns:
        The listener's unsubscribe function.
    """

    def _write() -> None:
        try:
            write_database_file(path, store)
        except OSError:
            logger.exception("Failed to write database file %r", str(path))

    _write()
    return store.add_listener(_write)
