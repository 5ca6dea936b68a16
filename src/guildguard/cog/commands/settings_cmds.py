"""
Settings cog: per-guild configuration commands.

Commands:
- setautorole, setwelcome, setleave, setlogs, setprefix, restriction
- togglesetting <antiSpam|antiCaps|antiInvites|antiMention|antiRaid>
- whitelist add|remove|list
- autopurge start|stop|list
- customcommand set|remove|list

Changes go through :class:`GuildSettingsService`; each accepted change is then
written to the audit log as a settings action.
"""

from typing import Optional

from discord.ext import commands

from guildguard.cog.command_base import GuardedCog
from guildguard.datatypes.discord_datatypes import ChannelID, GuildID, RoleID, UserID
from guildguard.datatypes.tenant import MAX_PREFIX_LENGTH
from guildguard.ui.embeds import create_autopurge_embed, create_custom_commands_embed, create_whitelist_embed
from guildguard.util.discord_utils import find_role_by_name, first_channel_mention, first_user_mention
from guildguard.util.logger import get_logger
from guildguard.util.parsing import (
    SETTING_NAMES,
    format_interval,
    now_ms,
    parse_duration,
    resolve_setting_name,
    setting_display_name,
)

logger = get_logger("settings_cmds")

CUSTOM_COMMAND_NAME_LIMIT = 32


class SettingsCog(GuardedCog):
    """Guild configuration commands."""

    def __init__(self, bot) -> None:
        super().__init__(bot)
        logger.info("[SETTINGS CMDS] Settings cog loaded")

    # ------------------------------------------------------------------
    # Channels and roles
    # ------------------------------------------------------------------

    async def _bind_channel(self, ctx: commands.Context, binding: str) -> None:
        channel = first_channel_mention(ctx.message)
        if channel is None:
            await ctx.reply("Please mention a channel.")
            return
        await self.bot.settings.set_channel_binding(GuildID(ctx.guild.id), binding, ChannelID(channel.id))
        await self.log_setting(ctx, f"{ctx.author} set {binding} channel to {channel.name}")
        await ctx.reply(f"Successfully set {binding} channel to {channel.name}")

    @commands.command(name="setwelcome")
    async def setwelcome(self, ctx: commands.Context) -> None:
        await self._bind_channel(ctx, "welcome")

    @commands.command(name="setleave")
    async def setleave(self, ctx: commands.Context) -> None:
        await self._bind_channel(ctx, "leave")

    @commands.command(name="setlogs")
    async def setlogs(self, ctx: commands.Context) -> None:
        await self._bind_channel(ctx, "logs")

    @commands.command(name="setautorole")
    async def setautorole(self, ctx: commands.Context, *, role_name: Optional[str] = None) -> None:
        if not role_name:
            await ctx.reply("Please provide a role name.")
            return
        role = find_role_by_name(ctx.guild, role_name)
        if role is None:
            await ctx.reply("Role not found.")
            return
        await self.bot.settings.set_auto_role(GuildID(ctx.guild.id), RoleID(role.id))
        await self.log_setting(ctx, f"{ctx.author} set auto-role to {role.name}")
        await ctx.reply(f"Successfully set auto-role to {role.name}")

    @commands.command(name="restriction")
    async def restriction(self, ctx: commands.Context, *, role_name: Optional[str] = None) -> None:
        """Let members of a role use bot commands without administrator."""
        if not role_name:
            await ctx.reply("Please provide a role name.")
            return
        role = find_role_by_name(ctx.guild, role_name)
        if role is None:
            await ctx.reply("Role not found.")
            return
        await self.bot.settings.set_allowed_role(GuildID(ctx.guild.id), RoleID(role.id))
        await self.log_setting(ctx, f"{ctx.author} set command restriction to role {role.name}")
        await ctx.reply(f"Successfully set command restriction to role {role.name}")

    # ------------------------------------------------------------------
    # Prefix and toggles
    # ------------------------------------------------------------------

    @commands.command(name="setprefix")
    async def setprefix(self, ctx: commands.Context, prefix: Optional[str] = None) -> None:
        if not prefix:
            await ctx.reply("Please provide a new prefix.")
            return
        if len(prefix) > MAX_PREFIX_LENGTH:
            await ctx.reply(f"Prefix must be {MAX_PREFIX_LENGTH} characters or less.")
            return
        if not await self.bot.settings.set_prefix(GuildID(ctx.guild.id), prefix):
            await ctx.reply("Please provide a valid prefix.")
            return
        await self.log_setting(ctx, f"{ctx.author} changed prefix to {prefix}")
        await ctx.reply(f"Server prefix set to: {prefix}")

    @commands.command(name="togglesetting")
    async def togglesetting(self, ctx: commands.Context, setting: Optional[str] = None) -> None:
        flag = resolve_setting_name(setting)
        if flag is None:
            await ctx.reply(f"Usage: {await self.guild_prefix(ctx)}togglesetting <{'|'.join(SETTING_NAMES)}>")
            return
        enabled = await self.bot.settings.toggle_flag(GuildID(ctx.guild.id), flag)
        status = "enabled" if enabled else "disabled"
        name = setting_display_name(flag)
        await self.log_setting(ctx, f"{ctx.author} {status} {name}")
        await ctx.reply(f"{name} is now {status}.")

    # ------------------------------------------------------------------
    # Whitelist
    # ------------------------------------------------------------------

    @commands.command(name="whitelist")
    async def whitelist(self, ctx: commands.Context, action: Optional[str] = None, target: Optional[str] = None) -> None:
        """Exempt users from automatic moderation."""
        action = (action or "").lower()
        guild_id = GuildID(ctx.guild.id)
        if action not in ("add", "remove", "list"):
            await ctx.reply(f"Usage: `{await self.guild_prefix(ctx)}whitelist <add/remove/list> [@user]`")
            return

        if action == "list":
            user_ids = await self.bot.settings.whitelist(guild_id)
            if not user_ids:
                await ctx.reply("Whitelist is empty.")
                return
            await ctx.reply(embed=create_whitelist_embed(user_ids))
            return

        user = first_user_mention(ctx.message)
        if user is None:
            direction = "add to" if action == "add" else "remove from"
            await ctx.reply(f"Please mention a user to {direction} whitelist.")
            return

        if action == "add":
            if not await self.bot.settings.whitelist_add(guild_id, UserID(user.id)):
                await ctx.reply("User is already whitelisted.")
                return
            await self.log_setting(ctx, f"{ctx.author} added {user} to whitelist")
            await ctx.reply(f"Added {user} to whitelist.")
        else:
            if not await self.bot.settings.whitelist_remove(guild_id, UserID(user.id)):
                await ctx.reply("User is not whitelisted.")
                return
            await self.log_setting(ctx, f"{ctx.author} removed {user} from whitelist")
            await ctx.reply(f"Removed {user} from whitelist.")

    # ------------------------------------------------------------------
    # Auto-purge
    # ------------------------------------------------------------------

    @commands.command(name="autopurge")
    async def autopurge(
        self,
        ctx: commands.Context,
        action: Optional[str] = None,
        target: Optional[str] = None,
        interval: Optional[str] = None,
    ) -> None:
        """Schedule recurring bulk deletes in a channel (defaults to the current one)."""
        action = (action or "").lower()
        guild_id = GuildID(ctx.guild.id)
        if action not in ("start", "stop", "list"):
            await ctx.reply(f"Usage: `{await self.guild_prefix(ctx)}autopurge <start/stop/list> [#channel] [interval]`")
            return

        if action == "list":
            rules = await self.bot.settings.auto_purge_rules(guild_id)
            if not rules:
                await ctx.reply("No auto purge channels configured.")
                return
            await ctx.reply(embed=create_autopurge_embed(rules))
            return

        channel = first_channel_mention(ctx.message) or ctx.channel
        # "autopurge start 1h" targets the current channel
        if interval is None and target and not target.startswith("<#"):
            interval = target

        if action == "start":
            if not interval:
                await ctx.reply("Please provide an interval (e.g., 1h, 30m).")
                return
            interval_ms = parse_duration(interval)
            if interval_ms is None:
                await ctx.reply("Invalid interval format.")
                return
            await self.bot.settings.start_auto_purge(guild_id, ChannelID(channel.id), interval_ms, now_ms())
            await self.log_setting(
                ctx, f"{ctx.author} enabled auto purge in {channel.name} every {format_interval(interval_ms)}"
            )
            await ctx.reply(f"Auto purge enabled in {channel.name} every {interval}")
            return

        if not await self.bot.settings.stop_auto_purge(guild_id, ChannelID(channel.id)):
            await ctx.reply("Auto purge is not enabled in this channel.")
            return
        await self.log_setting(ctx, f"{ctx.author} disabled auto purge in {channel.name}")
        await ctx.reply(f"Auto purge disabled in {channel.name}")

    # ------------------------------------------------------------------
    # Custom commands
    # ------------------------------------------------------------------

    @commands.command(name="customcommand")
    async def customcommand(
        self,
        ctx: commands.Context,
        action: Optional[str] = None,
        name: Optional[str] = None,
        *,
        response: Optional[str] = None,
    ) -> None:
        """Manage static text commands answered when no built-in command matches."""
        action = (action or "").lower()
        guild_id = GuildID(ctx.guild.id)
        prefix = await self.guild_prefix(ctx)
        if action not in ("set", "remove", "list"):
            await ctx.reply(f"Usage: `{prefix}customcommand <set/remove/list> [name] [response]`")
            return

        if action == "list":
            await ctx.reply(embed=create_custom_commands_embed(await self.bot.settings.custom_commands(guild_id), prefix))
            return

        if not name:
            await ctx.reply("Please provide a command name.")
            return
        name = name.lower()

        if action == "set":
            if self.bot.get_command(name) is not None:
                await ctx.reply(f"`{name}` is a built-in command.")
                return
            if len(name) > CUSTOM_COMMAND_NAME_LIMIT:
                await ctx.reply(f"Command names must be {CUSTOM_COMMAND_NAME_LIMIT} characters or less.")
                return
            if not response:
                await ctx.reply("Please provide a response.")
                return
            await self.bot.settings.set_custom_command(guild_id, name, response)
            await self.log_setting(ctx, f"{ctx.author} set custom command {name}")
            await ctx.reply(f"Custom command `{prefix}{name}` saved.")
            return

        if not await self.bot.settings.remove_custom_command(guild_id, name):
            await ctx.reply("Custom command not found.")
            return
        await self.log_setting(ctx, f"{ctx.author} removed custom command {name}")
        await ctx.reply(f"Custom command `{prefix}{name}` removed.")


def setup(bot) -> None:
    bot.add_cog(SettingsCog(bot))
