"""
Utility commands: role assignment, channel management, log viewing, invite and help.
"""

from typing import Optional

from discord.ext import commands

from guildguard.cog.command_base import GuardedCog
from guildguard.datatypes.action_datatypes import ActionType
from guildguard.datatypes.discord_datatypes import ChannelID, GuildID, RoleID, UserID
from guildguard.ui.embeds import create_audit_log_embed, create_help_embed, create_invite_embed
from guildguard.util.discord_utils import find_role_by_name, first_channel_mention, first_member_mention
from guildguard.util.logger import get_logger

logger = get_logger("utility_cmds")

CHANNEL_KINDS = ("text", "voice", "category")
DEFAULT_LOG_COUNT = 10


class UtilityCog(GuardedCog):
    """Roles, channels, logs and informational commands."""

    def __init__(self, bot) -> None:
        super().__init__(bot)
        logger.info("[UTILITY CMDS] Utility cog loaded")

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------

    async def _change_role(self, ctx: commands.Context, role_name: Optional[str], *, add: bool) -> None:
        member = first_member_mention(ctx.message)
        if member is None:
            await ctx.reply("Please mention a user.")
            return
        if not role_name:
            await ctx.reply("Please provide a role name.")
            return
        role = find_role_by_name(ctx.guild, role_name)
        if role is None:
            await ctx.reply("Role not found.")
            return

        if add:
            kind, details, done, failed = (
                ActionType.ROLE_ADD,
                f"{ctx.author} gave {member} the role {role.name}",
                f"Successfully gave {member} the role {role.name}",
                "Failed to assign role.",
            )
        else:
            kind, details, done, failed = (
                ActionType.ROLE_REMOVE,
                f"{ctx.author} removed the role {role.name} from {member}",
                f"Successfully removed the role {role.name} from {member}",
                "Failed to remove role.",
            )
        result = await self.run_action(ctx, kind, details, user_id=UserID(member.id), role_id=RoleID(role.id))
        await ctx.reply(done if result.ok else failed)

    @commands.command(name="setrole")
    async def setrole(self, ctx: commands.Context, target: Optional[str] = None, *, role_name: Optional[str] = None) -> None:
        await self._change_role(ctx, role_name, add=True)

    @commands.command(name="removerole")
    async def removerole(self, ctx: commands.Context, target: Optional[str] = None, *, role_name: Optional[str] = None) -> None:
        await self._change_role(ctx, role_name, add=False)

    # ------------------------------------------------------------------
    # Channels
    # ------------------------------------------------------------------

    @commands.command(name="createchannel")
    async def createchannel(self, ctx: commands.Context, name: Optional[str] = None, kind: Optional[str] = None) -> None:
        if not name:
            await ctx.reply("Please provide a channel name.")
            return
        kind = (kind or "text").lower()
        if kind not in CHANNEL_KINDS:
            kind = "text"
        result = await self.run_action(
            ctx, ActionType.CHANNEL_CREATE, f"{ctx.author} created {kind} channel {name}",
            channel_name=name, channel_kind=kind,
        )
        if not result.ok:
            await ctx.reply("Failed to create channel.")
            return
        created_name = getattr(result.value, "name", name)
        await ctx.reply(f"Successfully created {kind} channel {created_name}")

    @commands.command(name="deletechannel")
    async def deletechannel(self, ctx: commands.Context) -> None:
        channel = first_channel_mention(ctx.message)
        if channel is None:
            await ctx.reply("Please mention a channel to delete.")
            return
        channel_name = channel.name
        result = await self.run_action(
            ctx, ActionType.CHANNEL_DELETE, f"{ctx.author} deleted channel {channel_name}",
            channel_id=ChannelID(channel.id),
        )
        if not result.ok:
            await ctx.reply("Failed to delete channel.")
            return
        if channel.id != ctx.channel.id:
            await ctx.reply(f"Successfully deleted channel {channel_name}")

    # ------------------------------------------------------------------
    # Information
    # ------------------------------------------------------------------

    @commands.command(name="logs")
    async def logs(self, ctx: commands.Context, kind: Optional[str] = None, count: Optional[str] = None) -> None:
        """Show the most recent audit entries, optionally filtered by action name."""
        kind = (kind or "all").lower()
        try:
            limit = int(count) if count else DEFAULT_LOG_COUNT
        except ValueError:
            limit = DEFAULT_LOG_COUNT
        if limit <= 0:
            limit = DEFAULT_LOG_COUNT

        record = await self.bot.store.get(GuildID(ctx.guild.id))
        entries = record.state.audit_log
        if kind != "all":
            entries = [e for e in entries if kind in e.action.lower()]
        entries = entries[-limit:]

        if not entries:
            await ctx.reply("No logs found.")
            return
        await ctx.reply(embed=create_audit_log_embed(entries))

    @commands.command(name="invite")
    async def invite(self, ctx: commands.Context) -> None:
        await ctx.reply(embed=create_invite_embed(self.bot.config.invite_link))

    @commands.command(name="help")
    async def help(self, ctx: commands.Context) -> None:
        await ctx.reply(embed=create_help_embed(await self.guild_prefix(ctx)))


def setup(bot) -> None:
    bot.add_cog(UtilityCog(bot))
