"""
Embed builders for log-channel notifications and command replies.
"""

import datetime
from typing import Dict, List

import discord

from guildguard.datatypes.tenant import AuditEntry, AutoPurgeRule
from guildguard.util.parsing import format_interval


def _now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def create_log_embed(action_label: str, details: str) -> discord.Embed:
    """Notification posted to a guild's logs channel for every dispatched action."""
    return discord.Embed(
        title=f"Moderation Action: {action_label}",
        description=details,
        color=discord.Color.red(),
        timestamp=_now(),
    )


def create_warning_dm_embed(guild_name: str, reason: str, moderator: str, warning_count: int) -> discord.Embed:
    embed = discord.Embed(
        title=f"You have been warned in {guild_name}",
        color=discord.Color.gold(),
        timestamp=_now(),
    )
    embed.add_field(name="Reason", value=reason, inline=False)
    embed.add_field(name="Moderator", value=moderator or "Unknown", inline=True)
    embed.add_field(name="Total warnings", value=str(warning_count), inline=True)
    return embed


def create_welcome_embed(member: discord.Member) -> discord.Embed:
    embed = discord.Embed(
        title="Welcome!",
        description=f"Welcome to {member.guild.name}, {member.mention}!",
        color=discord.Color.green(),
        timestamp=_now(),
    )
    avatar = getattr(member, "display_avatar", None)
    if avatar is not None:
        embed.set_thumbnail(url=avatar.url)
    return embed


def create_leave_embed(member: discord.Member) -> discord.Embed:
    return discord.Embed(
        title="Goodbye!",
        description=f"{member} has left the server.",
        color=discord.Color.orange(),
        timestamp=_now(),
    )


def create_audit_log_embed(entries: List[AuditEntry]) -> discord.Embed:
    """Most recent audit entries, oldest first, one field each."""
    embed = discord.Embed(title="Server Logs", color=discord.Color.blue())
    # Discord allows at most 25 fields per embed.
    for entry in entries[-25:]:
        embed.add_field(name=f"{entry.action} - {entry.timestamp}", value=entry.details[:1024] or "-", inline=False)
    return embed


def create_whitelist_embed(user_ids: List[str]) -> discord.Embed:
    embed = discord.Embed(title="Whitelisted Users", color=discord.Color.green())
    embed.description = "\n".join(f"<@{user_id}>" for user_id in user_ids)
    return embed


def create_autopurge_embed(rules: Dict[str, AutoPurgeRule]) -> discord.Embed:
    embed = discord.Embed(title="Auto-Purge Channels", color=discord.Color.blue())
    if not rules:
        embed.description = "No auto-purge channels configured."
        return embed
    embed.description = "\n".join(
        f"<#{channel_id}>: every {format_interval(rule.interval_ms)}"
        for channel_id, rule in rules.items()
    )
    return embed


def create_custom_commands_embed(commands: Dict[str, str], prefix: str) -> discord.Embed:
    embed = discord.Embed(title="Custom Commands", color=discord.Color.blue())
    if not commands:
        embed.description = "No custom commands configured."
    else:
        embed.description = "\n".join(f"`{prefix}{name}`" for name in sorted(commands))
    return embed


def create_invite_embed(invite_link: str) -> discord.Embed:
    return discord.Embed(
        title="Invite me to your server",
        description=f"[Click here to invite the bot]({invite_link})",
        color=discord.Color.blurple(),
    )


HELP_SECTIONS = (
    ("Moderation", (
        "kick @user [reason]", "ban @user [reason]", "softban @user <duration> [reason]",
        "unban <user id>", "mute @user [duration]", "unmute @user",
        "warn @user [reason]", "purge <1-100>",
    )),
    ("Role Management", ("setrole @user <role name>", "removerole @user <role name>", "setautorole <role name>")),
    ("Channel Management", (
        "createchannel <name> [text|voice|category]", "deletechannel #channel",
        "setwelcome #channel", "setleave #channel", "setlogs #channel",
    )),
    ("Settings", (
        "setprefix <prefix>", "restriction <role name>", "togglesetting <setting>",
        "customcommand set|remove|list",
    )),
    ("Utility", (
        "logs [all|action] [count]", "whitelist add|remove|list [@user]",
        "autopurge start|stop|list [#channel] [interval]", "invite", "help",
    )),
)

AUTO_MODERATION_SUMMARY = "Anti-spam, Anti-caps, Anti-invites, Anti-mention, Anti-raid"


def create_help_embed(prefix: str) -> discord.Embed:
    embed = discord.Embed(
        title="Bot Commands",
        description=f"Server prefix: `{prefix}`",
        color=discord.Color.blue(),
    )
    for name, usages in HELP_SECTIONS:
        embed.add_field(
            name=name,
            value="\n".join(f"`{prefix}{usage}`" for usage in usages),
            inline=False,
        )
    embed.add_field(name="Auto Moderation", value=AUTO_MODERATION_SUMMARY, inline=False)
    embed.set_footer(text=f"Use {prefix}command for each command")
    return embed
