"""Tests for GuildSettingsService configuration operations."""

import pytest

from conftest import GUILD_ID
from guildguard.datatypes.discord_datatypes import ChannelID, GuildID, RoleID, UserID
from guildguard.settings.guild_settings_service import GuildSettingsService

GUILD = GuildID(GUILD_ID)


@pytest.fixture()
def settings(store):
    return GuildSettingsService(store)


@pytest.mark.asyncio
async def test_set_prefix_accepts_short_prefix(settings, store):
    assert await settings.set_prefix(GUILD, "!!") is True
    assert await store.get_prefix(GUILD) == "!!"


@pytest.mark.asyncio
@pytest.mark.parametrize("bad", ["!!!!", "", None, "   "])
async def test_set_prefix_rejects_invalid_without_writing(settings, store, memory_backend, bad):
    assert await settings.set_prefix(GUILD, bad) is False
    assert memory_backend.writes == []
    assert await store.get_prefix(GUILD) == "?"


@pytest.mark.asyncio
async def test_toggle_flag_flips_and_persists(settings, memory_backend):
    assert await settings.toggle_flag(GUILD, "anti_raid") is False
    assert memory_backend.document[str(GUILD_ID)]["config"]["auto_mod_flags"]["anti_raid"] is False
    assert await settings.toggle_flag(GUILD, "anti_raid") is True


@pytest.mark.asyncio
async def test_toggle_unknown_flag_raises(settings):
    with pytest.raises(ValueError):
        await settings.toggle_flag(GUILD, "anti_everything")


@pytest.mark.asyncio
async def test_channel_binding_and_roles(settings, store):
    await settings.set_channel_binding(GUILD, "logs", ChannelID(555))
    await settings.set_auto_role(GUILD, RoleID(666))
    await settings.set_allowed_role(GUILD, RoleID(777))

    config = (await store.get(GUILD)).config
    assert config.channel_for("logs") == "555"
    assert config.auto_role_id == "666"
    assert config.allowed_role_id == "777"

    with pytest.raises(ValueError):
        await settings.set_channel_binding(GUILD, "audit", ChannelID(1))


@pytest.mark.asyncio
async def test_whitelist_add_is_idempotent(settings, memory_backend):
    assert await settings.whitelist_add(GUILD, UserID(42)) is True
    writes = len(memory_backend.writes)

    assert await settings.whitelist_add(GUILD, UserID(42)) is False
    assert len(memory_backend.writes) == writes
    assert await settings.whitelist(GUILD) == ["42"]


@pytest.mark.asyncio
async def test_whitelist_remove_missing_user(settings):
    assert await settings.whitelist_remove(GUILD, UserID(42)) is False
    await settings.whitelist_add(GUILD, UserID(42))
    assert await settings.whitelist_remove(GUILD, UserID(42)) is True
    assert await settings.whitelist(GUILD) == []


@pytest.mark.asyncio
async def test_auto_purge_rules(settings):
    await settings.start_auto_purge(GUILD, ChannelID(888), 3600000, now=1000)

    rules = await settings.auto_purge_rules(GUILD)
    assert rules["888"].interval_ms == 3600000
    assert rules["888"].last_run_ms == 1000

    assert await settings.stop_auto_purge(GUILD, ChannelID(888)) is True
    assert await settings.stop_auto_purge(GUILD, ChannelID(888)) is False

    with pytest.raises(ValueError):
        await settings.start_auto_purge(GUILD, ChannelID(888), 0, now=1000)


@pytest.mark.asyncio
async def test_custom_commands_are_case_insensitive(settings):
    await settings.set_custom_command(GUILD, "Rules", "Be nice.")

    assert await settings.custom_command(GUILD, "RULES") == "Be nice."
    assert await settings.custom_commands(GUILD) == {"rules": "Be nice."}
    assert await settings.remove_custom_command(GUILD, "rules") is True
    assert await settings.remove_custom_command(GUILD, "rules") is False
    assert await settings.custom_command(GUILD, "rules") is None
