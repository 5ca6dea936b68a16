"""
SQLite snapshot backend.

Stores one row per guild holding that tenant's JSON document. A write replaces
every row inside one transaction, so readers always see a complete snapshot
from a single ``flush``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from guildguard.database.db_connection import ConnectionManager
from guildguard.database.snapshot_backend import SnapshotBackend, SnapshotDecodeError, SnapshotDocument
from guildguard.util.logger import get_logger

logger = get_logger("sqlite_backend")

SCHEMA_VERSION = 1

_SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS schema_version (
        version INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tenant_snapshots (
        guild_id TEXT PRIMARY KEY,
        document TEXT NOT NULL,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
]


class SqliteSnapshotBackend(SnapshotBackend):
    """Tenant snapshot persisted as rows of the ``tenant_snapshots`` table."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._connection = ConnectionManager()

    def __repr__(self) -> str:
        return f"SqliteSnapshotBackend({str(self.path)!r})"

    async def open(self) -> None:
        if self._connection.is_open:
            return
        await self._connection.open(self.path)
        async with self._connection.transaction() as conn:
            for statement in _SCHEMA:
                await conn.execute(statement)
            cursor = await conn.execute("SELECT version FROM schema_version LIMIT 1")
            row = await cursor.fetchone()
            if row is None:
                await conn.execute("INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
        logger.info("[SQLITE BACKEND] Schema ready at %s (version %d)", self.path, SCHEMA_VERSION)

    async def close(self) -> None:
        await self._connection.close()

    async def read(self) -> Optional[SnapshotDocument]:
        await self.open()
        async with self._connection.read() as conn:
            cursor = await conn.execute("SELECT guild_id, document FROM tenant_snapshots ORDER BY guild_id")
            rows = await cursor.fetchall()

        if not rows:
            return None

        document: SnapshotDocument = {}
        for row in rows:
            try:
                document[str(row["guild_id"])] = json.loads(row["document"])
            except json.JSONDecodeError as exc:
                raise SnapshotDecodeError(f"Tenant {row['guild_id']} has a corrupt document: {exc}") from exc
        return document

    async def write(self, document: SnapshotDocument) -> None:
        await self.open()
        rows = [
            (guild_id, json.dumps(tenant, ensure_ascii=False, sort_keys=True))
            for guild_id, tenant in document.items()
        ]
        async with self._connection.transaction() as conn:
            await conn.execute("DELETE FROM tenant_snapshots")
            await conn.executemany(
                "INSERT INTO tenant_snapshots (guild_id, document) VALUES (?, ?)",
                rows,
            )
        logger.debug("[SQLITE BACKEND] Wrote %d tenant rows", len(rows))
