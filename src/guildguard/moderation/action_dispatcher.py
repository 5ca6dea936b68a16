"""
Action dispatcher: the only component that performs moderation on Discord.

Each :meth:`ActionDispatcher.dispatch` call runs in this order:

1. Automatic heuristic actions against a whitelisted user are skipped, and so
   is an expiry lift for a user whose ban or mute was issued again meanwhile.
2. One tenant-store mutation applies the state change (sanction expiry,
   warning) and appends the audit entry. This happens before the platform
   call, so every attempted action is on record.
3. One py-cord call performs the action.
4. The guild's logs channel, if configured, receives a notification embed.

The contract is best effort: a failing platform call is logged and reported
in the returned :class:`ActionResult`, and the state change from step 2 is
kept. Permissions are checked by the command cogs, not here.
"""

from __future__ import annotations

import datetime
from typing import Any, Optional

import discord

from guildguard.datatypes.action_datatypes import ActionResult, ActionType, ModerationAction
from guildguard.datatypes.tenant import AUDIT_LOG_LIMIT, AuditEntry, TenantRecord, WarningEntry
from guildguard.settings.tenant_store import TenantStore
from guildguard.ui.embeds import create_log_embed, create_warning_dm_embed
from guildguard.util.logger import get_logger
from guildguard.util.parsing import iso_timestamp, now_ms

logger = get_logger("action_dispatcher")

DEFAULT_MUTE_MS = 24 * 60 * 60 * 1000
MAX_TIMEOUT_MS = 28 * 24 * 60 * 60 * 1000


def timeout_length(duration_ms: int) -> int:
    """Clamp a mute to the longest timeout Discord accepts."""
    return min(duration_ms, MAX_TIMEOUT_MS)


class ActionTargetError(LookupError):
    """The guild, member, channel or role an action refers to is not reachable."""


class ActionDispatcher:
    """Turns :class:`ModerationAction` requests into audit entries and py-cord calls."""

    def __init__(self, store: TenantStore, bot: discord.Client, *, audit_limit: int = AUDIT_LOG_LIMIT) -> None:
        self.store = store
        self.bot = bot
        self.audit_limit = audit_limit

    async def dispatch(self, action: ModerationAction) -> ActionResult:
        """
        Record and perform one action.

        Args:
            action: The request; ``details`` becomes the audit summary.

        Returns:
            ActionResult: ``ok`` is False when the platform call failed,
            ``skipped`` is True when the whitelist or a re-issued sanction
            suppressed the action.
        """
        record = await self.store.get(action.guild_id)
        if (
            action.kind.is_auto_moderation
            and action.user_id is not None
            and record.state.is_whitelisted(action.user_id)
        ):
            logger.debug(
                "[DISPATCHER] Skipping %s for whitelisted user %s in guild %s",
                action.kind.value, action.user_id, action.guild_id,
            )
            return ActionResult(action=action, ok=False, skipped=True)

        if self._reissued(record, action):
            logger.debug(
                "[DISPATCHER] Skipping %s for user %s in guild %s: sanction was re-issued",
                action.kind.value, action.user_id, action.guild_id,
            )
            return ActionResult(action=action, ok=False, skipped=True)

        now = now_ms()
        recorded = await self.store.mutate(action.guild_id, lambda r: self._record(r, action, now))

        result: ActionResult
        try:
            value = await self._perform(action, recorded)
        except Exception as exc:
            logger.error(
                "[DISPATCHER] %s failed in guild %s (target %s): %s",
                action.kind.label, action.guild_id, action.user_id or action.channel_id, exc,
            )
            result = ActionResult(action=action, ok=False, error=str(exc))
        else:
            logger.info("[DISPATCHER] %s: %s", action.kind.label, action.details)
            result = ActionResult(action=action, ok=True, value=value if value is not None else recorded)

        await self._notify(record, action, result)
        return result

    def _reissued(self, record: TenantRecord, action: ModerationAction) -> bool:
        """True when an expiry lift targets a user whose sanction was issued again.

        The expiry sweep removes the entry before dispatching, so an entry
        present now belongs to a newer ban or mute.
        """
        if action.user_id is None:
            return False
        user_key = str(action.user_id)
        match action.kind:
            case ActionType.AUTO_UNBAN:
                return user_key in record.state.temp_bans
            case ActionType.AUTO_UNMUTE:
                return user_key in record.state.mutes
        return False

    # ------------------------------------------------------------------
    # State changes (run synchronously inside TenantStore.mutate)
    # ------------------------------------------------------------------

    def _record(self, record: TenantRecord, action: ModerationAction, now: int) -> Any:
        state = record.state
        user_key = str(action.user_id) if action.user_id is not None else None
        recorded = None

        match action.kind:
            case ActionType.SOFTBAN:
                if user_key and action.duration_ms:
                    state.temp_bans[user_key] = now + action.duration_ms
            case ActionType.BAN | ActionType.AUTO_RAID_BAN:
                # A permanent ban must not be lifted by an older temp ban.
                if user_key:
                    state.temp_bans.pop(user_key, None)
            case ActionType.UNBAN:
                if user_key:
                    state.temp_bans.pop(user_key, None)
            case ActionType.MUTE | ActionType.AUTO_SPAM_MUTE:
                if user_key and action.duration_ms:
                    state.mutes[user_key] = now + timeout_length(action.duration_ms)
            case ActionType.UNMUTE:
                if user_key:
                    state.mutes.pop(user_key, None)
            case ActionType.WARN:
                if user_key:
                    recorded = state.add_warning(
                        user_key,
                        WarningEntry(reason=action.reason, moderator=action.moderator, timestamp=iso_timestamp(now)),
                    )
            case _:
                pass

        state.append_audit(
            AuditEntry(timestamp=iso_timestamp(now), action=action.kind.label, details=action.details),
            self.audit_limit,
        )
        return recorded

    # ------------------------------------------------------------------
    # Platform calls
    # ------------------------------------------------------------------

    async def _perform(self, action: ModerationAction, recorded: Any) -> Any:
        guild = self._guild(action)
        reason = action.reason

        match action.kind:
            case ActionType.KICK:
                member = await self._member(guild, action)
                await member.kick(reason=reason)
            case ActionType.BAN | ActionType.SOFTBAN | ActionType.AUTO_RAID_BAN:
                await guild.ban(discord.Object(id=self._user_id(action)), reason=reason)
            case ActionType.UNBAN | ActionType.AUTO_UNBAN:
                await guild.unban(discord.Object(id=self._user_id(action)), reason=reason)
            case ActionType.MUTE | ActionType.AUTO_SPAM_MUTE:
                member = await self._member(guild, action)
                length_ms = timeout_length(action.duration_ms or DEFAULT_MUTE_MS)
                until = discord.utils.utcnow() + datetime.timedelta(milliseconds=length_ms)
                await member.timeout(until, reason=reason)
            case ActionType.UNMUTE | ActionType.AUTO_UNMUTE:
                member = await self._member(guild, action)
                await member.remove_timeout(reason=reason)
            case ActionType.WARN:
                member = await self._member(guild, action)
                await self._send_warning_dm(member, guild, action, recorded or 0)
            case ActionType.PURGE | ActionType.AUTO_PURGE:
                channel = self._channel(guild, action)
                deleted = await channel.purge(limit=action.count)
                return len(deleted)
            case ActionType.ROLE_ADD:
                member = await self._member(guild, action)
                await member.add_roles(self._role(guild, action), reason=reason)
            case ActionType.ROLE_REMOVE:
                member = await self._member(guild, action)
                await member.remove_roles(self._role(guild, action), reason=reason)
            case ActionType.CHANNEL_CREATE:
                return await self._create_channel(guild, action)
            case ActionType.CHANNEL_DELETE:
                channel = self._channel(guild, action)
                await channel.delete(reason=reason)
            case ActionType.AUTO_DELETE:
                channel = self._channel(guild, action)
                await channel.get_partial_message(action.message_id).delete()
            case ActionType.SETTING_CHANGE:
                pass
        return None

    async def _create_channel(self, guild: discord.Guild, action: ModerationAction):
        name = action.channel_name
        if not name:
            raise ValueError("Channel name is required")
        match action.channel_kind:
            case "voice":
                return await guild.create_voice_channel(name, reason=action.reason)
            case "category":
                return await guild.create_category(name, reason=action.reason)
            case _:
                return await guild.create_text_channel(name, reason=action.reason)

    async def _send_warning_dm(self, member, guild, action: ModerationAction, warning_count: int) -> None:
        embed = create_warning_dm_embed(guild.name, action.reason, action.moderator, warning_count)
        try:
            await member.send(embed=embed)
        except discord.Forbidden:
            logger.debug("[DISPATCHER] Could not DM %s about a warning: DMs disabled", member)
        except discord.HTTPException as exc:
            logger.debug("[DISPATCHER] Failed to DM %s about a warning: %s", member, exc)

    # ------------------------------------------------------------------
    # Notification
    # ------------------------------------------------------------------

    async def _notify(self, record: TenantRecord, action: ModerationAction, result: ActionResult) -> None:
        logs_channel_id = record.config.channel_for("logs")
        if not logs_channel_id:
            return
        guild = self.bot.get_guild(action.guild_id.to_int())
        if guild is None:
            return
        channel = guild.get_channel(int(logs_channel_id))
        if channel is None:
            logger.debug("[DISPATCHER] Logs channel %s missing in guild %s", logs_channel_id, guild.id)
            return

        details = action.details
        if not result.ok and result.error:
            details = f"{details}\nFailed: {result.error}"
        try:
            await channel.send(embed=create_log_embed(action.kind.label, details))
        except Exception as exc:
            logger.warning("[DISPATCHER] Failed to post to logs channel in guild %s: %s", guild.id, exc)

    # ------------------------------------------------------------------
    # Target resolution
    # ------------------------------------------------------------------

    def _guild(self, action: ModerationAction) -> discord.Guild:
        guild = self.bot.get_guild(action.guild_id.to_int())
        if guild is None:
            raise ActionTargetError(f"Guild {action.guild_id} is not available")
        return guild

    @staticmethod
    def _user_id(action: ModerationAction) -> int:
        if action.user_id is None:
            raise ActionTargetError(f"{action.kind.label} requires a target user")
        return action.user_id.to_int()

    async def _member(self, guild: discord.Guild, action: ModerationAction) -> discord.Member:
        user_id = self._user_id(action)
        member: Optional[discord.Member] = guild.get_member(user_id)
        if member is None:
            try:
                member = await guild.fetch_member(user_id)
            except discord.NotFound as exc:
                raise ActionTargetError(f"User {user_id} is not a member of guild {guild.id}") from exc
        return member

    @staticmethod
    def _channel(guild: discord.Guild, action: ModerationAction):
        if action.channel_id is None:
            raise ActionTargetError(f"{action.kind.label} requires a target channel")
        channel = guild.get_channel(action.channel_id.to_int())
        if channel is None:
            raise ActionTargetError(f"Channel {action.channel_id} not found in guild {guild.id}")
        return channel

    @staticmethod
    def _role(guild: discord.Guild, action: ModerationAction) -> discord.Role:
        if action.role_id is None:
            raise ActionTargetError(f"{action.kind.label} requires a role")
        role = guild.get_role(action.role_id.to_int())
        if role is None:
            raise ActionTargetError(f"Role {action.role_id} not found in guild {guild.id}")
        return role
