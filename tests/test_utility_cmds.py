"""Tests for the role, channel, logs and help commands."""

from types import SimpleNamespace

import pytest

from conftest import GUILD_ID, make_channel, make_ctx, make_guard_bot, make_guild, make_member
from guildguard.cog.commands.utility_cmds import UtilityCog
from guildguard.datatypes.tenant import AuditEntry

MUTED = SimpleNamespace(id=80, name="Muted")


@pytest.fixture()
def admin():
    return make_member(1, "admin", administrator=True)


@pytest.fixture()
def target():
    return make_member(222, "offender")


@pytest.fixture()
def channel():
    return make_channel(333, "general")


@pytest.fixture()
def spare_channel():
    return make_channel(444, "old-stuff")


@pytest.fixture()
def guild(admin, target, channel, spare_channel):
    return make_guild(members=[admin, target], channels=[channel, spare_channel], roles=[MUTED])


@pytest.fixture()
def cog(store, guild):
    return UtilityCog(make_guard_bot(store, guild))


@pytest.mark.asyncio
async def test_setrole_assigns_role(cog, store, guild, admin, target):
    ctx = make_ctx(guild, admin, mentions=[target])

    await UtilityCog.setrole.callback(cog, ctx, "<@222>", role_name="muted")

    target.add_roles.assert_awaited_once()
    assert target.add_roles.await_args.args[0] is MUTED
    ctx.reply.assert_awaited_once_with("Successfully gave offender the role Muted")
    assert store.peek(GUILD_ID).state.audit_log[-1].action == "Role Assignment"


@pytest.mark.asyncio
async def test_removerole_unknown_role(cog, guild, admin, target):
    ctx = make_ctx(guild, admin, mentions=[target])

    await UtilityCog.removerole.callback(cog, ctx, "<@222>", role_name="VIP")

    ctx.reply.assert_awaited_once_with("Role not found.")
    target.remove_roles.assert_not_awaited()


@pytest.mark.asyncio
async def test_removerole_failure_reply(cog, guild, admin, target):
    target.remove_roles.side_effect = RuntimeError("role above bot")
    ctx = make_ctx(guild, admin, mentions=[target])

    await UtilityCog.removerole.callback(cog, ctx, "<@222>", role_name="Muted")

    ctx.reply.assert_awaited_once_with("Failed to remove role.")


@pytest.mark.asyncio
async def test_setrole_requires_member(cog, guild, admin):
    ctx = make_ctx(guild, admin)
    await UtilityCog.setrole.callback(cog, ctx, None, role_name="Muted")
    ctx.reply.assert_awaited_once_with("Please mention a user.")


@pytest.mark.asyncio
@pytest.mark.parametrize("kind, expected", [(None, "text"), ("voice", "voice"), ("CATEGORY", "category"), ("stage", "text")])
async def test_createchannel_kinds(cog, guild, admin, kind, expected):
    ctx = make_ctx(guild, admin)

    await UtilityCog.createchannel.callback(cog, ctx, "lounge", kind)

    ctx.reply.assert_awaited_once_with(f"Successfully created {expected} channel lounge")


@pytest.mark.asyncio
async def test_createchannel_requires_name(cog, guild, admin):
    ctx = make_ctx(guild, admin)
    await UtilityCog.createchannel.callback(cog, ctx)
    ctx.reply.assert_awaited_once_with("Please provide a channel name.")


@pytest.mark.asyncio
async def test_deletechannel_other_channel(cog, guild, admin, channel, spare_channel):
    ctx = make_ctx(guild, admin, channel, channel_mentions=[spare_channel])

    await UtilityCog.deletechannel.callback(cog, ctx)

    spare_channel.delete.assert_awaited_once()
    ctx.reply.assert_awaited_once_with("Successfully deleted channel old-stuff")


@pytest.mark.asyncio
async def test_deletechannel_current_channel_skips_reply(cog, guild, admin, channel):
    ctx = make_ctx(guild, admin, channel, channel_mentions=[channel])

    await UtilityCog.deletechannel.callback(cog, ctx)

    channel.delete.assert_awaited_once()
    ctx.reply.assert_not_awaited()


@pytest.mark.asyncio
async def test_logs_filters_and_limits(cog, store, guild, admin):
    def seed(record):
        for i in range(15):
            action = "Kick" if i % 2 else "Ban"
            record.state.append_audit(AuditEntry(timestamp=f"t{i}", action=action, details=f"entry {i}"))

    await store.mutate(GUILD_ID, seed)

    ctx = make_ctx(guild, admin)
    await UtilityCog.logs.callback(cog, ctx)
    embed = ctx.reply.await_args.kwargs["embed"]
    assert embed.title == "Server Logs"
    assert [f.value for f in embed.fields] == [f"entry {i}" for i in range(5, 15)]

    ctx = make_ctx(guild, admin)
    await UtilityCog.logs.callback(cog, ctx, "kick", "3")
    embed = ctx.reply.await_args.kwargs["embed"]
    assert [f.value for f in embed.fields] == ["entry 9", "entry 11", "entry 13"]


@pytest.mark.asyncio
async def test_logs_empty(cog, guild, admin):
    ctx = make_ctx(guild, admin)
    await UtilityCog.logs.callback(cog, ctx, "all")
    ctx.reply.assert_awaited_once_with("No logs found.")


@pytest.mark.asyncio
async def test_invite_and_help(cog, store, guild, admin):
    ctx = make_ctx(guild, admin)
    await UtilityCog.invite.callback(cog, ctx)
    assert "client_id=1" in ctx.reply.await_args.kwargs["embed"].description

    await store.mutate(GUILD_ID, lambda r: setattr(r.config, "command_prefix", "!"))
    ctx = make_ctx(guild, admin)
    await UtilityCog.help.callback(cog, ctx)
    embed = ctx.reply.await_args.kwargs["embed"]
    assert embed.description == "Server prefix: `!`"
    assert "`!kick @user [reason]`" in embed.fields[0].value
