"""
Shared base for the prefix-command cogs.

Every command in a :class:`GuardedCog` is limited to guild members who are
administrators or hold the guild's configured allowed role. A failed check
raises :class:`discord.ext.commands.CheckFailure`, which the events listener
turns into the permission reply.
"""

from __future__ import annotations

from typing import Optional

from discord.ext import commands

from guildguard.datatypes.action_datatypes import ActionResult, ActionType, ModerationAction
from guildguard.datatypes.discord_datatypes import GuildID
from guildguard.util.discord_utils import has_command_access

NO_PERMISSION_MESSAGE = "You do not have permission to use bot commands."


class GuardedCog(commands.Cog):
    """Cog whose commands require administrator or the allowed role."""

    def __init__(self, bot) -> None:
        self.bot = bot

    async def cog_check(self, ctx: commands.Context) -> bool:
        if ctx.guild is None:
            raise commands.NoPrivateMessage()
        record = await self.bot.store.get(ctx.guild.id)
        if not has_command_access(ctx.author, record.config.allowed_role_id):
            raise commands.CheckFailure(NO_PERMISSION_MESSAGE)
        return True

    async def run_action(self, ctx: commands.Context, kind: ActionType, details: str, **fields) -> ActionResult:
        """Dispatch an action on behalf of the command author."""
        action = ModerationAction(
            kind=kind,
            guild_id=GuildID(ctx.guild.id),
            details=details,
            moderator=str(ctx.author),
            **fields,
        )
        return await self.bot.dispatcher.dispatch(action)

    async def log_setting(self, ctx: commands.Context, details: str) -> ActionResult:
        return await self.run_action(ctx, ActionType.SETTING_CHANGE, details)

    async def guild_prefix(self, ctx: commands.Context) -> str:
        return await self.bot.store.get_prefix(ctx.guild.id if ctx.guild else None)


def rest_or_default(text: Optional[str], default: str = "No reason provided") -> str:
    text = (text or "").strip()
    return text or default
