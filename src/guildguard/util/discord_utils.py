"""
discord_utils.py
================

Stateless Discord helpers used by the command and listener cogs: command
access checks and resolution of the mentions, roles and channels carried by a
command message.
"""

from typing import Optional, Union

import discord


def is_ignored_author(author: Union[discord.User, discord.Member]) -> bool:
    """
    Check if an author should be ignored by moderation handlers (bots or non-members).

    Args:
        author (discord.User | discord.Member): The user or member to check.

    Returns:
        bool: True if the author is a bot or not a member, False otherwise.
    """
    return author.bot or not isinstance(author, discord.Member)


def has_command_access(member: Union[discord.User, discord.Member], allowed_role_id: Optional[str]) -> bool:
    """
    Check whether a member may use bot commands in their guild.

    Administrators always may; otherwise the member needs the guild's
    configured allowed role.

    Args:
        member: The command author.
        allowed_role_id: The guild's ``allowed_role_id`` setting, if any.
    """
    if not isinstance(member, discord.Member):
        return False
    if member.guild_permissions.administrator:
        return True
    if not allowed_role_id:
        return False
    return any(str(role.id) == str(allowed_role_id) for role in member.roles)


def first_member_mention(message: discord.Message) -> Optional[discord.Member]:
    """First mentioned guild member of a message, ignoring plain users."""
    for user in message.mentions:
        if isinstance(user, discord.Member):
            return user
    return None


def first_user_mention(message: discord.Message) -> Optional[Union[discord.User, discord.Member]]:
    return message.mentions[0] if message.mentions else None


def first_channel_mention(message: discord.Message) -> Optional[discord.abc.GuildChannel]:
    return message.channel_mentions[0] if message.channel_mentions else None


def find_role_by_name(guild: discord.Guild, name: Optional[str]) -> Optional[discord.Role]:
    """Case-insensitive role lookup by name."""
    if not name:
        return None
    wanted = name.strip().lower()
    for role in guild.roles:
        if role.name.lower() == wanted:
            return role
    return None


def count_mentions(message: discord.Message) -> tuple[int, int]:
    """Number of distinct user and role mentions in a message."""
    return len(message.mentions), len(message.role_mentions)


def resolve_user_id(raw: Optional[str]) -> Optional[int]:
    """Accept a bare snowflake or a ``<@id>``/``<@!id>`` mention and return the id."""
    if not raw:
        return None
    text = raw.strip()
    if text.startswith("<@") and text.endswith(">"):
        text = text[2:-1].lstrip("!")
    if not text.isdigit():
        return None
    return int(text)
