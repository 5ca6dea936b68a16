"""
Per-guild tenant store: the single owner of configuration and moderation state.

API:
- get(guild_id) -> TenantRecord: existing record, or a default one created and flushed immediately
- peek(guild_id) -> TenantRecord | None: read without creating
- mutate(guild_id, fn): apply ``fn(record)`` in memory, then write the full snapshot
- flush(): write the full snapshot of every tenant
- load(): read the snapshot once at startup, healing missing fields with defaults

Every durable write is a whole-store snapshot handed to the injected
:class:`SnapshotBackend`. Writes are serialized by a lock and the snapshot is
taken after the lock is acquired, so each write reflects every mutation
applied before it. Mutation functions run synchronously, so no other
coroutine can observe a half-applied change.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Dict, List, Optional, Tuple, TypeVar, Union

from guildguard.database.snapshot_backend import SnapshotBackend, SnapshotDocument
from guildguard.datatypes.discord_datatypes import GuildID
from guildguard.datatypes.tenant import DEFAULT_PREFIX, TenantRecord
from guildguard.util.logger import get_logger

logger = get_logger("tenant_store")

T = TypeVar("T")
GuildKey = Union[GuildID, int, str]


class TenantStore:
    """In-memory tenant registry with whole-snapshot persistence."""

    def __init__(self, backend: SnapshotBackend, *, default_prefix: str = DEFAULT_PREFIX) -> None:
        self._backend = backend
        self._default_prefix = default_prefix
        self._tenants: Dict[GuildID, TenantRecord] = {}
        self._write_lock = asyncio.Lock()
        self._loaded = False

        logger.info("[TENANT STORE] Initialized with %r", backend)

    @property
    def default_prefix(self) -> str:
        return self._default_prefix

    # ========== Lifecycle ==========

    async def load(self) -> int:
        """
        Load the durable snapshot into memory.

        Each tenant is rebuilt from defaults with the loaded fields laid over
        them. Any failure to read or decode the snapshot is logged and leaves
        the store empty.

        Returns:
            Number of tenants loaded.
        """
        try:
            await self._backend.open()
            document = await self._backend.read()
        except Exception:
            logger.exception("[TENANT STORE] Failed to read snapshot; starting with an empty store")
            document = None

        self._tenants.clear()
        for raw_guild_id, raw_record in (document or {}).items():
            try:
                guild_id = GuildID(raw_guild_id)
            except ValueError:
                logger.warning("[TENANT STORE] Skipping tenant with invalid guild id %r", raw_guild_id)
                continue
            self._tenants[guild_id] = TenantRecord.from_dict(guild_id, raw_record, self._default_prefix)

        self._loaded = True
        logger.info("[TENANT STORE] Loaded %d tenant(s)", len(self._tenants))
        return len(self._tenants)

    async def shutdown(self) -> None:
        """Write a final snapshot and release the backend."""
        if self._loaded:
            await self.flush()
        try:
            await self._backend.close()
        except Exception:
            logger.exception("[TENANT STORE] Error while closing backend")
        logger.info("[TENANT STORE] Shutdown complete")

    # ========== Core API ==========

    async def get(self, guild_id: GuildKey) -> TenantRecord:
        """
        Retrieve the record of a guild, creating and persisting defaults if missing.

        Args:
            guild_id: The guild to fetch.

        Returns:
            The live :class:`TenantRecord`; mutate it only through :meth:`mutate`.
        """
        key = GuildID(guild_id)
        record = self._tenants.get(key)
        if record is None:
            record = TenantRecord.default(key, self._default_prefix)
            self._tenants[key] = record
            logger.info("[TENANT STORE] Created tenant %s with defaults", key)
            await self.flush()
        return record

    def peek(self, guild_id: GuildKey) -> Optional[TenantRecord]:
        """Return the record of a guild without creating one."""
        return self._tenants.get(GuildID(guild_id))

    async def mutate(self, guild_id: GuildKey, fn: Callable[[TenantRecord], T]) -> T:
        """
        Apply ``fn`` to the guild's record, then persist the full snapshot.

        ``fn`` must be synchronous; its return value is passed back to the
        caller. If ``fn`` raises, nothing is written and the exception
        propagates.
        """
        record = await self.get(guild_id)
        result = fn(record)
        await self.flush()
        return result

    async def get_prefix(self, guild_id: Optional[GuildKey]) -> str:
        """Command prefix of a guild; the global default outside guilds."""
        if guild_id is None:
            return self._default_prefix
        record = await self.get(guild_id)
        return record.config.command_prefix or self._default_prefix

    def items(self) -> List[Tuple[GuildID, TenantRecord]]:
        """Snapshot list of ``(guild_id, record)`` pairs currently in memory."""
        return list(self._tenants.items())

    def list_guild_ids(self) -> List[GuildID]:
        return list(self._tenants.keys())

    def __len__(self) -> int:
        return len(self._tenants)

    # ========== Persistence ==========

    def snapshot(self) -> SnapshotDocument:
        """Serialize every tenant into the snapshot document shape."""
        return {str(guild_id): record.to_dict() for guild_id, record in self._tenants.items()}

    async def flush(self) -> bool:
        """
        Write the full snapshot through the backend.

        Returns:
            True on success. On failure the error is logged, False is
            returned, and the in-memory state stays authoritative until the
            next successful write.
        """
        async with self._write_lock:
            document = self.snapshot()
            try:
                await self._backend.write(document)
            except Exception:
                logger.exception("[TENANT STORE] Failed to write snapshot of %d tenant(s)", len(document))
                return False
        logger.debug("[TENANT STORE] Persisted snapshot of %d tenant(s)", len(document))
        return True
