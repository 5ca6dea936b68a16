"""
Durable storage for the tenant snapshot.

- **snapshot_backend.py**: ``SnapshotBackend`` contract and the default
  ``JsonSnapshotBackend`` (atomic whole-file JSON writes).
- **sqlite_backend.py**: ``SqliteSnapshotBackend`` storing one JSON document
  per guild row, written wholesale in one transaction.
- **db_connection.py**: ``ConnectionManager`` owning the long-lived aiosqlite
  connection with serialized write transactions.

Use :func:`create_backend` to pick a backend from the application config.
"""

from pathlib import Path

from guildguard.database.snapshot_backend import JsonSnapshotBackend, SnapshotBackend
from guildguard.database.sqlite_backend import SqliteSnapshotBackend


def create_backend(kind: str, path: Path) -> SnapshotBackend:
    """Return the backend named ``kind`` (``json`` or ``sqlite``) stored at ``path``."""
    if kind == "sqlite":
        return SqliteSnapshotBackend(path)
    if kind == "json":
        return JsonSnapshotBackend(path)
    raise ValueError(f"Unknown storage backend {kind!r}; expected 'json' or 'sqlite'")


__all__ = ["SnapshotBackend", "JsonSnapshotBackend", "SqliteSnapshotBackend", "create_backend"]
