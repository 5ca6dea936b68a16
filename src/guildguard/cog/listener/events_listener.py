"""Event listener cog for guildguard.

Handles gateway lifecycle and membership events plus command errors:

- on_ready: presence and startup logging
- on_member_join: raid check, auto-role, welcome message
- on_member_remove: leave message
- on_command_error: permission replies, custom commands, generic failure reply
"""

import discord
from discord.ext import commands

from guildguard.cog.command_base import NO_PERMISSION_MESSAGE
from guildguard.datatypes.action_datatypes import ActionType, ModerationAction
from guildguard.datatypes.discord_datatypes import GuildID, UserID
from guildguard.moderation.heuristics import check_raid
from guildguard.ui.embeds import create_leave_embed, create_welcome_embed
from guildguard.util.discord_utils import has_command_access
from guildguard.util.logger import get_logger
from guildguard.util.parsing import now_ms

logger = get_logger("events_listener")

GENERIC_ERROR_MESSAGE = "An error occurred while executing the command."


class EventsListenerCog(commands.Cog):
    """Handles Discord lifecycle, membership and command-error events."""

    def __init__(self, bot) -> None:
        self.bot = bot
        logger.info("[EVENTS LISTENER] Events listener cog loaded")

    # ------------------------------------------------------------------
    # Lifecycle events
    # ------------------------------------------------------------------

    @commands.Cog.listener(name="on_ready")
    async def on_ready(self) -> None:
        if not self.bot.user:
            logger.warning("[EVENTS LISTENER] Bot partially connected; user info not yet available.")
            return

        await self.bot.change_presence(
            status=discord.Status.online,
            activity=discord.Activity(type=discord.ActivityType.watching, name="over your server"),
        )
        logger.info(
            "Bot connected as %s (ID: %s) in %d guild(s)",
            self.bot.user, self.bot.user.id, len(self.bot.guilds),
        )

    # ------------------------------------------------------------------
    # Membership events
    # ------------------------------------------------------------------

    @commands.Cog.listener(name="on_member_join")
    async def on_member_join(self, member: discord.Member) -> None:
        """Raid check first; a raid ban ends handling of the join."""
        guild_id = GuildID(member.guild.id)
        record = await self.bot.store.get(guild_id)
        config = self.bot.config

        if record.config.flag_enabled("anti_raid"):
            now = now_ms()
            is_raid = await self.bot.store.mutate(
                guild_id,
                lambda r: check_raid(r.state, member.id, now, config.raid_window_ms, config.raid_join_threshold),
            )
            if is_raid:
                result = await self.bot.dispatcher.dispatch(ModerationAction(
                    kind=ActionType.AUTO_RAID_BAN,
                    guild_id=guild_id,
                    user_id=UserID(member.id),
                    details=f"Banned {member} ({member.id}) for potential raid",
                    reason="Anti-raid protection",
                ))
                if result.ok:
                    return
                if not result.skipped:
                    logger.warning("[EVENTS LISTENER] Raid ban of %s failed: %s", member.id, result.error)

        if record.config.auto_role_id:
            role = member.guild.get_role(int(record.config.auto_role_id))
            if role is not None:
                try:
                    await member.add_roles(role, reason="Auto-role")
                except discord.HTTPException as exc:
                    logger.warning("[EVENTS LISTENER] Failed to add auto-role in guild %s: %s", guild_id, exc)

        await self._announce(member, "welcome", create_welcome_embed(member))

    @commands.Cog.listener(name="on_member_remove")
    async def on_member_remove(self, member: discord.Member) -> None:
        await self._announce(member, "leave", create_leave_embed(member))

    async def _announce(self, member: discord.Member, binding: str, embed: discord.Embed) -> None:
        # Peek so a leave event never creates a tenant.
        record = self.bot.store.peek(member.guild.id)
        channel_id = record.config.channel_for(binding) if record else None
        if not channel_id:
            return
        channel = member.guild.get_channel(int(channel_id))
        if channel is None:
            return
        try:
            await channel.send(embed=embed)
        except discord.HTTPException as exc:
            logger.warning("[EVENTS LISTENER] Failed to send %s message in guild %s: %s", binding, member.guild.id, exc)

    # ------------------------------------------------------------------
    # Command errors
    # ------------------------------------------------------------------

    @commands.Cog.listener(name="on_command_error")
    async def on_command_error(self, ctx: commands.Context, error: commands.CommandError) -> None:
        if isinstance(error, commands.CommandNotFound):
            await self._run_custom_command(ctx)
            return
        if isinstance(error, commands.NoPrivateMessage):
            return
        if isinstance(error, commands.CheckFailure):
            await ctx.reply(NO_PERMISSION_MESSAGE)
            return

        original = getattr(error, "original", error)
        logger.error(
            "[EVENTS LISTENER] Error executing command %s: %s",
            ctx.command.qualified_name if ctx.command else ctx.invoked_with,
            original,
            exc_info=(type(original), original, original.__traceback__),
        )
        try:
            await ctx.reply(GENERIC_ERROR_MESSAGE)
        except discord.HTTPException as exc:
            logger.debug("[EVENTS LISTENER] Could not send error reply: %s", exc)

    async def _run_custom_command(self, ctx: commands.Context) -> None:
        if ctx.guild is None or not ctx.invoked_with:
            return
        response = await self.bot.settings.custom_command(GuildID(ctx.guild.id), ctx.invoked_with)
        if response is None:
            return
        record = await self.bot.store.get(GuildID(ctx.guild.id))
        if not has_command_access(ctx.author, record.config.allowed_role_id):
            await ctx.reply(NO_PERMISSION_MESSAGE)
            return
        await ctx.send(response)


def setup(bot) -> None:
    bot.add_cog(EventsListenerCog(bot))
