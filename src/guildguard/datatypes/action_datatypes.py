"""
Action types and data structures for moderation actions.

This module defines the closed :class:`ActionType` set understood by the
action dispatcher, the :class:`ModerationAction` request passed to it, and the
:class:`ActionResult` it hands back.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from guildguard.datatypes.discord_datatypes import ChannelID, GuildID, RoleID, UserID


class ActionType(Enum):
    """Enumeration of supported moderation actions."""

    KICK = "kick"
    BAN = "ban"
    SOFTBAN = "softban"
    UNBAN = "unban"
    MUTE = "mute"
    UNMUTE = "unmute"
    WARN = "warn"
    PURGE = "purge"
    ROLE_ADD = "role-add"
    ROLE_REMOVE = "role-remove"
    CHANNEL_CREATE = "channel-create"
    CHANNEL_DELETE = "channel-delete"
    SETTING_CHANGE = "setting-change"
    AUTO_RAID_BAN = "auto-raid-ban"
    AUTO_UNBAN = "auto-unban"
    AUTO_UNMUTE = "auto-unmute"
    AUTO_PURGE = "auto-purge"
    AUTO_SPAM_MUTE = "auto-spam-mute"
    AUTO_DELETE = "auto-delete"

    def __str__(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        """Human-readable name used in the audit log and log-channel embeds."""
        return ACTION_LABELS[self]

    @property
    def is_auto_moderation(self) -> bool:
        """True for heuristic-triggered actions, the only ones the whitelist exempts."""
        return self in AUTO_MODERATION_ACTIONS


ACTION_LABELS = {
    ActionType.KICK: "Kick",
    ActionType.BAN: "Ban",
    ActionType.SOFTBAN: "Softban",
    ActionType.UNBAN: "Unban",
    ActionType.MUTE: "Mute",
    ActionType.UNMUTE: "Unmute",
    ActionType.WARN: "Warn",
    ActionType.PURGE: "Purge",
    ActionType.ROLE_ADD: "Role Assignment",
    ActionType.ROLE_REMOVE: "Role Removal",
    ActionType.CHANNEL_CREATE: "Channel Create",
    ActionType.CHANNEL_DELETE: "Channel Delete",
    ActionType.SETTING_CHANGE: "Settings",
    ActionType.AUTO_RAID_BAN: "Anti-Raid Ban",
    ActionType.AUTO_UNBAN: "Auto Unban",
    ActionType.AUTO_UNMUTE: "Auto Unmute",
    ActionType.AUTO_PURGE: "Auto Purge",
    ActionType.AUTO_SPAM_MUTE: "Anti-Spam Mute",
    ActionType.AUTO_DELETE: "Auto-Mod Delete",
}

AUTO_MODERATION_ACTIONS = frozenset({
    ActionType.AUTO_RAID_BAN,
    ActionType.AUTO_SPAM_MUTE,
    ActionType.AUTO_DELETE,
})


@dataclass(slots=True)
class ModerationAction:
    """A single request to the action dispatcher.

    Attributes:
        kind: What to do.
        guild_id: Guild the action applies to.
        details: Human-readable audit summary, written before the platform call.
        user_id: Target member or user (kick/ban/mute/warn/role/auto actions).
        channel_id: Target channel (purge, channel-delete, auto-delete, auto-purge).
        role_id: Role for role-add/role-remove.
        message_id: Message removed by an auto-delete.
        reason: Reason forwarded to the platform audit log and DMs.
        moderator: Tag of the issuing moderator, empty for automatic actions.
        duration_ms: Sanction length for softban/mute; ``None`` means untimed.
        count: Number of messages for purge actions.
        channel_name: Name for channel-create.
        channel_kind: ``text``, ``voice`` or ``category`` for channel-create.
    """

    kind: ActionType
    guild_id: GuildID
    details: str
    user_id: Optional[UserID] = None
    channel_id: Optional[ChannelID] = None
    role_id: Optional[RoleID] = None
    message_id: Optional[int] = None
    reason: str = "No reason provided"
    moderator: str = ""
    duration_ms: Optional[int] = None
    count: int = 0
    channel_name: Optional[str] = None
    channel_kind: str = "text"


@dataclass(slots=True)
class ActionResult:
    """Outcome of one dispatch.

    ``ok`` reports whether the platform call succeeded; ``skipped`` marks an
    automatic action suppressed by the whitelist, or an expiry lift dropped
    because the sanction was issued again. ``value`` carries the call's
    return value where one matters (the deleted-message count of a purge, the
    created channel).
    """

    action: ModerationAction
    ok: bool
    skipped: bool = False
    error: Optional[str] = None
    value: Any = None
