"""Tests for TenantStore: lazy creation, mutation persistence and load healing."""

import pytest

from conftest import GUILD_ID, MemoryBackend
from guildguard.database.snapshot_backend import JsonSnapshotBackend
from guildguard.datatypes.discord_datatypes import GuildID
from guildguard.datatypes.tenant import AUTO_MOD_FLAGS, TenantRecord
from guildguard.settings.tenant_store import TenantStore


@pytest.mark.asyncio
async def test_get_creates_default_tenant_and_flushes(store, memory_backend):
    await store.load()

    record = await store.get(GUILD_ID)

    assert record.guild_id == GuildID(GUILD_ID)
    assert record.config.command_prefix == "?"
    assert len(memory_backend.writes) == 1
    assert str(GUILD_ID) in memory_backend.document


@pytest.mark.asyncio
async def test_get_existing_tenant_does_not_write(store, memory_backend):
    await store.get(GUILD_ID)
    await store.get(str(GUILD_ID))
    await store.get(GuildID(GUILD_ID))

    assert len(memory_backend.writes) == 1
    assert len(store) == 1


@pytest.mark.asyncio
async def test_peek_never_creates(store, memory_backend):
    assert store.peek(GUILD_ID) is None
    assert memory_backend.writes == []
    assert len(store) == 0


@pytest.mark.asyncio
async def test_mutate_persists_and_returns_result(store, memory_backend):
    result = await store.mutate(GUILD_ID, lambda r: r.state.whitelist_add("42"))

    assert result is True
    saved = memory_backend.document[str(GUILD_ID)]
    assert saved["state"]["whitelist"] == ["42"]


@pytest.mark.asyncio
async def test_mutate_failure_writes_nothing(store, memory_backend):
    await store.get(GUILD_ID)
    writes_before = len(memory_backend.writes)

    def boom(record):
        raise RuntimeError("nope")

    with pytest.raises(RuntimeError):
        await store.mutate(GUILD_ID, boom)
    assert len(memory_backend.writes) == writes_before


@pytest.mark.asyncio
async def test_load_heals_missing_flag():
    document = TenantRecord.default(GuildID(GUILD_ID)).to_dict()
    del document["config"]["auto_mod_flags"]["anti_raid"]
    document["config"]["auto_mod_flags"]["anti_spam"] = False
    store = TenantStore(MemoryBackend({str(GUILD_ID): document}))

    assert await store.load() == 1

    flags = store.peek(GUILD_ID).config.auto_mod_flags
    assert set(flags) == set(AUTO_MOD_FLAGS)
    assert flags["anti_raid"] is True
    assert flags["anti_spam"] is False


@pytest.mark.asyncio
async def test_load_skips_invalid_guild_ids():
    store = TenantStore(MemoryBackend({"not-a-guild": {}, "5": {}}))
    assert await store.load() == 1
    assert store.list_guild_ids() == [GuildID(5)]


@pytest.mark.asyncio
async def test_corrupt_snapshot_starts_empty(json_path, json_store):
    json_path.parent.mkdir(parents=True)
    json_path.write_text("{corrupt", encoding="utf-8")

    assert await json_store.load() == 0
    assert len(json_store) == 0


@pytest.mark.asyncio
async def test_json_store_survives_restart(json_path, json_store):
    await json_store.load()
    await json_store.mutate(GUILD_ID, lambda r: setattr(r.config, "command_prefix", "!!"))
    await json_store.shutdown()

    restarted = TenantStore(JsonSnapshotBackend(json_path))
    await restarted.load()
    assert await restarted.get_prefix(GUILD_ID) == "!!"


@pytest.mark.asyncio
async def test_write_failure_keeps_memory_authoritative():
    backend = MemoryBackend(fail_writes=True)
    store = TenantStore(backend)

    await store.mutate(GUILD_ID, lambda r: r.state.whitelist_add("7"))

    assert store.peek(GUILD_ID).state.is_whitelisted("7")
    assert await store.flush() is False

    backend.fail_writes = False
    assert await store.flush() is True
    assert backend.document[str(GUILD_ID)]["state"]["whitelist"] == ["7"]


@pytest.mark.asyncio
async def test_get_prefix_defaults_outside_guild():
    store = TenantStore(MemoryBackend(), default_prefix="$")
    assert await store.get_prefix(None) == "$"
    assert await store.get_prefix(GUILD_ID) == "$"


@pytest.mark.asyncio
async def test_shutdown_flushes_and_closes(store, memory_backend):
    await store.load()
    await store.get(GUILD_ID)
    await store.shutdown()

    assert memory_backend.closed is True
    assert len(memory_backend.writes) == 2
