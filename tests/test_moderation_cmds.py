"""Tests for the moderation prefix commands."""

from types import SimpleNamespace

import pytest
from discord.ext import commands

from conftest import GUILD_ID, make_channel, make_ctx, make_guard_bot, make_guild, make_member
from guildguard.cog.command_base import NO_PERMISSION_MESSAGE
from guildguard.cog.commands.moderation_cmds import ModerationCog


@pytest.fixture()
def moderator():
    return make_member(1, "mod", administrator=True)


@pytest.fixture()
def target():
    return make_member(222, "offender")


@pytest.fixture()
def channel():
    return make_channel(333, "general")


@pytest.fixture()
def guild(moderator, target, channel):
    return make_guild(members=[moderator, target], channels=[channel])


@pytest.fixture()
def bot(store, guild):
    return make_guard_bot(store, guild)


@pytest.fixture()
def cog(bot):
    return ModerationCog(bot)


def _audit(store):
    return [(e.action, e.details) for e in store.peek(GUILD_ID).state.audit_log]


@pytest.mark.asyncio
async def test_cog_check_rejects_plain_member(cog, guild, target):
    ctx = make_ctx(guild, target)
    with pytest.raises(commands.CheckFailure, match=NO_PERMISSION_MESSAGE):
        await cog.cog_check(ctx)


@pytest.mark.asyncio
async def test_cog_check_accepts_allowed_role(cog, store, guild):
    role_holder = make_member(5, "helper", roles=[SimpleNamespace(id=77)])
    await store.mutate(GUILD_ID, lambda r: setattr(r.config, "allowed_role_id", "77"))

    assert await cog.cog_check(make_ctx(guild, role_holder)) is True


@pytest.mark.asyncio
async def test_cog_check_rejects_direct_messages(cog, moderator):
    with pytest.raises(commands.NoPrivateMessage):
        await cog.cog_check(make_ctx(None, moderator))


@pytest.mark.asyncio
async def test_kick_requires_mention(cog, guild, moderator):
    ctx = make_ctx(guild, moderator)
    await ModerationCog.kick.callback(cog, ctx)
    ctx.reply.assert_awaited_once_with("Please mention a user to kick.")


@pytest.mark.asyncio
async def test_kick_success(cog, store, guild, moderator, target):
    ctx = make_ctx(guild, moderator, mentions=[target])

    await ModerationCog.kick.callback(cog, ctx, "<@222>", reason="being rude")

    target.kick.assert_awaited_once_with(reason="being rude")
    ctx.reply.assert_awaited_once_with("Successfully kicked offender")
    assert _audit(store) == [("Kick", "mod kicked offender: being rude")]


@pytest.mark.asyncio
async def test_kick_failure_reply(cog, guild, moderator, target):
    target.kick.side_effect = RuntimeError("Missing Permissions")
    ctx = make_ctx(guild, moderator, mentions=[target])

    await ModerationCog.kick.callback(cog, ctx, "<@222>")

    ctx.reply.assert_awaited_once_with("Failed to kick user.")


@pytest.mark.asyncio
async def test_ban_uses_default_reason(cog, guild, moderator, target):
    ctx = make_ctx(guild, moderator, mentions=[target])

    await ModerationCog.ban.callback(cog, ctx, "<@222>")

    assert guild.ban.await_args.kwargs["reason"] == "No reason provided"
    ctx.reply.assert_awaited_once_with("Successfully banned offender")


@pytest.mark.asyncio
async def test_softban_requires_valid_duration(cog, store, guild, moderator, target):
    ctx = make_ctx(guild, moderator, mentions=[target])

    await ModerationCog.softban.callback(cog, ctx, "<@222>", "forever")

    ctx.reply.assert_awaited_once_with("Please provide a valid duration (e.g., 1d, 2h, 30m).")
    guild.ban.assert_not_awaited()
    assert store.peek(GUILD_ID).state.temp_bans == {}


@pytest.mark.asyncio
async def test_softban_tracks_expiry(cog, store, guild, moderator, target):
    ctx = make_ctx(guild, moderator, mentions=[target])

    await ModerationCog.softban.callback(cog, ctx, "<@222>", "2h", reason="cool off")

    assert "222" in store.peek(GUILD_ID).state.temp_bans
    ctx.reply.assert_awaited_once_with("Successfully softbanned offender for 2h")


@pytest.mark.asyncio
async def test_unban_accepts_mention_or_id(cog, guild, moderator):
    ctx = make_ctx(guild, moderator)

    await ModerationCog.unban.callback(cog, ctx, "<@!444>")

    assert guild.unban.await_args.args[0].id == 444
    assert guild.unban.await_args.kwargs["reason"] == "Manual unban"
    ctx.reply.assert_awaited_once_with("Successfully unbanned user 444")


@pytest.mark.asyncio
async def test_unban_rejects_garbage(cog, guild, moderator):
    ctx = make_ctx(guild, moderator)
    await ModerationCog.unban.callback(cog, ctx, "someone")
    ctx.reply.assert_awaited_once_with("Please provide a valid user ID.")


@pytest.mark.asyncio
async def test_mute_with_duration_and_reason(cog, store, guild, moderator, target):
    ctx = make_ctx(guild, moderator, mentions=[target])

    await ModerationCog.mute.callback(cog, ctx, "<@222>", rest="10m flooding chat")

    assert "222" in store.peek(GUILD_ID).state.mutes
    assert target.timeout.await_args.kwargs["reason"] == "flooding chat"
    ctx.reply.assert_awaited_once_with("Successfully muted offender for 10m")


@pytest.mark.asyncio
async def test_mute_without_duration_is_untracked(cog, store, guild, moderator, target):
    ctx = make_ctx(guild, moderator, mentions=[target])

    await ModerationCog.mute.callback(cog, ctx, "<@222>", rest="flooding")

    assert store.peek(GUILD_ID).state.mutes == {}
    ctx.reply.assert_awaited_once_with("Successfully muted offender permanently")


@pytest.mark.asyncio
async def test_unmute(cog, guild, moderator, target):
    ctx = make_ctx(guild, moderator, mentions=[target])

    await ModerationCog.unmute.callback(cog, ctx, "<@222>")

    target.remove_timeout.assert_awaited_once()
    ctx.reply.assert_awaited_once_with("Successfully unmuted offender")


@pytest.mark.asyncio
async def test_warn_reports_total(cog, guild, moderator, target):
    for expected in (1, 2):
        ctx = make_ctx(guild, moderator, mentions=[target])
        await ModerationCog.warn.callback(cog, ctx, "<@222>", reason="spam")
        ctx.reply.assert_awaited_once_with(f"Successfully warned offender. Total warnings: {expected}")


@pytest.mark.asyncio
async def test_warn_counts_even_when_member_left(cog, store, guild, moderator):
    departed = make_member(555, "ghost")
    ctx = make_ctx(guild, moderator, mentions=[departed])

    await ModerationCog.warn.callback(cog, ctx, "<@555>")

    ctx.reply.assert_awaited_once_with("Successfully warned ghost. Total warnings: 1")


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [None, "0", "101", "lots"])
async def test_purge_rejects_bad_amount(cog, guild, moderator, channel, amount):
    ctx = make_ctx(guild, moderator, channel)

    await ModerationCog.purge.callback(cog, ctx, amount)

    ctx.reply.assert_awaited_once_with("Please provide a number between 1 and 100.")
    channel.purge.assert_not_awaited()


@pytest.mark.asyncio
async def test_purge_includes_command_message(cog, guild, moderator, channel):
    channel.purge.return_value = [object()] * 11
    ctx = make_ctx(guild, moderator, channel)

    await ModerationCog.purge.callback(cog, ctx, "10")

    channel.purge.assert_awaited_once_with(limit=11)
    ctx.send.assert_awaited_once_with("Successfully deleted 10 messages.", delete_after=5)
