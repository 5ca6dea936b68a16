"""
Pytest configuration and fixtures for guildguard tests.
"""

import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from guildguard.database.snapshot_backend import JsonSnapshotBackend  # noqa: E402
from guildguard.moderation.action_dispatcher import ActionDispatcher  # noqa: E402
from guildguard.moderation.heuristics import SpamDetector  # noqa: E402
from guildguard.settings.guild_settings_service import GuildSettingsService  # noqa: E402
from guildguard.settings.tenant_store import TenantStore  # noqa: E402

GUILD_ID = 111111111111111111


class MemoryBackend:
    """Snapshot backend keeping the last written document in memory."""

    def __init__(self, document=None, fail_writes=False):
        self.document = document
        self.fail_writes = fail_writes
        self.writes = []
        self.closed = False

    async def open(self):
        pass

    async def close(self):
        self.closed = True

    async def read(self):
        return self.document

    async def write(self, document):
        if self.fail_writes:
            raise OSError("disk full")
        self.writes.append(document)
        self.document = document


@pytest.fixture()
def memory_backend():
    return MemoryBackend()


@pytest.fixture()
def store(memory_backend):
    return TenantStore(memory_backend)


@pytest.fixture()
def json_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "guild_data.json"


@pytest.fixture()
def json_store(json_path: Path):
    return TenantStore(JsonSnapshotBackend(json_path))


def make_member(user_id=222, name="member", *, administrator=False, roles=(), bot=False):
    """A stand-in for discord.Member with the attributes guildguard reads."""
    member = MagicMock(spec=discord.Member)
    member.id = user_id
    member.bot = bot
    member.name = name
    member.mention = f"<@{user_id}>"
    member.roles = list(roles)
    member.guild_permissions = SimpleNamespace(administrator=administrator)
    member.__str__.return_value = name
    member.kick = AsyncMock()
    member.timeout = AsyncMock()
    member.remove_timeout = AsyncMock()
    member.add_roles = AsyncMock()
    member.remove_roles = AsyncMock()
    member.send = AsyncMock()
    return member


def make_channel(channel_id=333, name="general"):
    channel = MagicMock(name=f"Channel({name})")
    channel.id = channel_id
    channel.name = name
    channel.__str__.return_value = name
    channel.send = AsyncMock()
    channel.purge = AsyncMock(return_value=[])
    channel.delete = AsyncMock()
    partial = MagicMock()
    partial.delete = AsyncMock()
    channel.get_partial_message = MagicMock(return_value=partial)
    return channel


def make_guild(guild_id=GUILD_ID, *, members=(), channels=(), roles=()):
    guild = MagicMock(name="Guild")
    guild.id = guild_id
    guild.name = "Test Guild"
    guild.roles = list(roles)
    member_map = {m.id: m for m in members}
    channel_map = {c.id: c for c in channels}
    role_map = {r.id: r for r in roles}
    guild.get_member = MagicMock(side_effect=member_map.get)
    guild.fetch_member = AsyncMock(side_effect=lambda uid: member_map[uid])
    guild.get_channel = MagicMock(side_effect=channel_map.get)
    guild.get_role = MagicMock(side_effect=role_map.get)
    guild.ban = AsyncMock()
    guild.unban = AsyncMock()
    guild.create_text_channel = AsyncMock(side_effect=lambda name, **kw: SimpleNamespace(name=name, kind="text"))
    guild.create_voice_channel = AsyncMock(side_effect=lambda name, **kw: SimpleNamespace(name=name, kind="voice"))
    guild.create_category = AsyncMock(side_effect=lambda name, **kw: SimpleNamespace(name=name, kind="category"))
    for member in members:
        member.guild = guild
    return guild


def make_bot(*guilds):
    guild_map = {g.id: g for g in guilds}
    return SimpleNamespace(get_guild=lambda guild_id: guild_map.get(guild_id))


def make_config(**overrides):
    """Application settings with the shipped defaults."""
    values = dict(
        default_prefix="?",
        invite_link="https://discord.com/oauth2/authorize?client_id=1",
        spam_window_ms=5000,
        spam_duplicate_threshold=5,
        spam_mute_ms=300000,
        raid_window_ms=10000,
        raid_join_threshold=5,
        caps_min_letters=8,
        caps_ratio=0.7,
        mention_limit=5,
        expiry_sweep_interval=30.0,
        autopurge_sweep_interval=30.0,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def make_guard_bot(store, *guilds, config=None):
    """The attributes of GuardBot that cogs use, wired to real components."""
    guild_map = {g.id: g for g in guilds}
    bot = SimpleNamespace(
        store=store,
        config=config or make_config(),
        settings=GuildSettingsService(store),
        spam_detector=SpamDetector(),
        get_guild=lambda guild_id: guild_map.get(guild_id),
        user=SimpleNamespace(id=999, name="guildguard"),
        change_presence=AsyncMock(),
        get_command=MagicMock(return_value=None),
    )
    bot.dispatcher = ActionDispatcher(store, bot)
    return bot


def make_ctx(guild, author, channel=None, *, mentions=(), channel_mentions=(), role_mentions=()):
    """Command context carrying a message with the given mentions."""
    channel = channel or make_channel()
    message = SimpleNamespace(
        mentions=list(mentions),
        channel_mentions=list(channel_mentions),
        role_mentions=list(role_mentions),
        channel=channel,
        guild=guild,
        author=author,
    )
    return SimpleNamespace(
        guild=guild,
        author=author,
        channel=channel,
        message=message,
        reply=AsyncMock(),
        send=AsyncMock(),
    )
