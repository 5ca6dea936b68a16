"""
Moderation commands: kick, ban, softban, unban, mute, unmute, warn, purge.

Each command validates its input, then hands one action to the dispatcher,
which records it before calling Discord. Replies report the dispatcher's
outcome.
"""

from typing import Optional

from discord.ext import commands

from guildguard.cog.command_base import GuardedCog, rest_or_default
from guildguard.datatypes.action_datatypes import ActionType
from guildguard.datatypes.discord_datatypes import ChannelID, UserID
from guildguard.util.discord_utils import first_member_mention, resolve_user_id
from guildguard.util.logger import get_logger
from guildguard.util.parsing import is_duration_literal, parse_duration, parse_purge_amount

logger = get_logger("moderation_cmds")


class ModerationCog(GuardedCog):
    """Sanctions issued by moderators."""

    def __init__(self, bot) -> None:
        super().__init__(bot)
        logger.info("[MODERATION CMDS] Moderation cog loaded")

    @commands.command(name="kick")
    async def kick(self, ctx: commands.Context, target: Optional[str] = None, *, reason: Optional[str] = None) -> None:
        member = first_member_mention(ctx.message)
        if member is None:
            await ctx.reply("Please mention a user to kick.")
            return
        reason = rest_or_default(reason)
        result = await self.run_action(
            ctx, ActionType.KICK, f"{ctx.author} kicked {member}: {reason}",
            user_id=UserID(member.id), reason=reason,
        )
        await ctx.reply(f"Successfully kicked {member}" if result.ok else "Failed to kick user.")

    @commands.command(name="ban")
    async def ban(self, ctx: commands.Context, target: Optional[str] = None, *, reason: Optional[str] = None) -> None:
        member = first_member_mention(ctx.message)
        if member is None:
            await ctx.reply("Please mention a user to ban.")
            return
        reason = rest_or_default(reason)
        result = await self.run_action(
            ctx, ActionType.BAN, f"{ctx.author} banned {member}: {reason}",
            user_id=UserID(member.id), reason=reason,
        )
        await ctx.reply(f"Successfully banned {member}" if result.ok else "Failed to ban user.")

    @commands.command(name="softban")
    async def softban(
        self,
        ctx: commands.Context,
        target: Optional[str] = None,
        duration: Optional[str] = None,
        *,
        reason: Optional[str] = None,
    ) -> None:
        """Ban a member until the expiry sweep lifts it."""
        member = first_member_mention(ctx.message)
        if member is None:
            await ctx.reply("Please mention a user to softban.")
            return
        duration_ms = parse_duration(duration)
        if duration_ms is None:
            await ctx.reply("Please provide a valid duration (e.g., 1d, 2h, 30m).")
            return
        reason = rest_or_default(reason)
        result = await self.run_action(
            ctx, ActionType.SOFTBAN, f"{ctx.author} softbanned {member} for {duration}: {reason}",
            user_id=UserID(member.id), reason=reason, duration_ms=duration_ms,
        )
        await ctx.reply(f"Successfully softbanned {member} for {duration}" if result.ok else "Failed to softban user.")

    @commands.command(name="unban")
    async def unban(self, ctx: commands.Context, user: Optional[str] = None) -> None:
        if not user:
            await ctx.reply("Please provide a user ID to unban.")
            return
        user_id = resolve_user_id(user)
        if user_id is None:
            await ctx.reply("Please provide a valid user ID.")
            return
        result = await self.run_action(
            ctx, ActionType.UNBAN, f"{ctx.author} unbanned user {user_id}",
            user_id=UserID(user_id), reason="Manual unban",
        )
        await ctx.reply(f"Successfully unbanned user {user_id}" if result.ok else "Failed to unban user.")

    @commands.command(name="mute")
    async def mute(self, ctx: commands.Context, target: Optional[str] = None, *, rest: Optional[str] = None) -> None:
        """Time out a member. Without a duration the timeout lasts a day and is not tracked."""
        member = first_member_mention(ctx.message)
        if member is None:
            await ctx.reply("Please mention a user to mute.")
            return

        tokens = (rest or "").split(maxsplit=1)
        duration_ms = None
        literal = None
        if tokens and is_duration_literal(tokens[0]):
            literal = tokens[0]
            duration_ms = parse_duration(literal)
            tokens = tokens[1:]
        reason = rest_or_default(tokens[0] if tokens else None)

        duration_text = f" for {literal}" if duration_ms else " permanently"
        result = await self.run_action(
            ctx, ActionType.MUTE, f"{ctx.author} muted {member}{duration_text}: {reason}",
            user_id=UserID(member.id), reason=reason, duration_ms=duration_ms,
        )
        await ctx.reply(f"Successfully muted {member}{duration_text}" if result.ok else "Failed to mute user.")

    @commands.command(name="unmute")
    async def unmute(self, ctx: commands.Context, target: Optional[str] = None, *, reason: Optional[str] = None) -> None:
        member = first_member_mention(ctx.message)
        if member is None:
            await ctx.reply("Please mention a user to unmute.")
            return
        reason = rest_or_default(reason)
        result = await self.run_action(
            ctx, ActionType.UNMUTE, f"{ctx.author} unmuted {member}: {reason}",
            user_id=UserID(member.id), reason=reason,
        )
        await ctx.reply(f"Successfully unmuted {member}" if result.ok else "Failed to unmute user.")

    @commands.command(name="warn")
    async def warn(self, ctx: commands.Context, target: Optional[str] = None, *, reason: Optional[str] = None) -> None:
        member = first_member_mention(ctx.message)
        if member is None:
            await ctx.reply("Please mention a user to warn.")
            return
        reason = rest_or_default(reason)
        result = await self.run_action(
            ctx, ActionType.WARN, f"{ctx.author} warned {member}: {reason}",
            user_id=UserID(member.id), reason=reason,
        )
        # The warning is stored before the DM is attempted, so the count is valid either way.
        warnings = await self.bot.settings.warnings_for(ctx.guild.id, UserID(member.id))
        await ctx.reply(f"Successfully warned {member}. Total warnings: {len(warnings)}")
        if not result.ok:
            logger.debug("[MODERATION CMDS] Warning DM for %s not delivered: %s", member, result.error)

    @commands.command(name="purge")
    async def purge(self, ctx: commands.Context, amount: Optional[str] = None) -> None:
        """Bulk delete the last ``amount`` messages (1-100) plus the command itself."""
        count = parse_purge_amount(amount)
        if count is None:
            await ctx.reply("Please provide a number between 1 and 100.")
            return
        result = await self.run_action(
            ctx, ActionType.PURGE, f"{ctx.author} purged up to {count} messages in {ctx.channel}",
            channel_id=ChannelID(ctx.channel.id), count=count + 1,
        )
        if not result.ok:
            await ctx.send("Failed to purge messages.")
            return
        deleted = max(int(result.value or 0) - 1, 0)
        await ctx.send(f"Successfully deleted {deleted} messages.", delete_after=5)


def setup(bot) -> None:
    bot.add_cog(ModerationCog(bot))
