"""
Validated configuration operations on top of the tenant store.

Every method either rejects its input without touching the store or applies
one ``TenantStore.mutate`` (and therefore one durable snapshot write). Audit
entries for these changes are written by the caller through the action
dispatcher so the logs channel sees them too.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from guildguard.datatypes.discord_datatypes import ChannelID, GuildID, RoleID, UserID
from guildguard.datatypes.tenant import (
    AUTO_MOD_FLAGS,
    CHANNEL_BINDINGS,
    AutoPurgeRule,
    TenantRecord,
    WarningEntry,
)
from guildguard.settings.tenant_store import TenantStore
from guildguard.util.logger import get_logger
from guildguard.util.parsing import is_valid_prefix

logger = get_logger("guild_settings_service")


class GuildSettingsService:
    """Configuration commands for one tenant store."""

    def __init__(self, store: TenantStore) -> None:
        self.store = store

    # ---------- prefix ----------

    async def set_prefix(self, guild_id: GuildID, prefix: Optional[str]) -> bool:
        """Set the guild prefix; return False (and change nothing) if invalid."""
        if not is_valid_prefix(prefix):
            return False

        def apply(record: TenantRecord) -> None:
            record.config.command_prefix = prefix

        await self.store.mutate(guild_id, apply)
        logger.debug("[GUILD SETTINGS] Prefix of guild %s set to %r", guild_id, prefix)
        return True

    # ---------- channels and roles ----------

    async def set_channel_binding(self, guild_id: GuildID, binding: str, channel_id: Optional[ChannelID]) -> None:
        if binding not in CHANNEL_BINDINGS:
            raise ValueError(f"Unknown channel binding {binding!r}")

        def apply(record: TenantRecord) -> None:
            record.config.channel_bindings[binding] = str(channel_id) if channel_id is not None else None

        await self.store.mutate(guild_id, apply)

    async def set_auto_role(self, guild_id: GuildID, role_id: Optional[RoleID]) -> None:
        def apply(record: TenantRecord) -> None:
            record.config.auto_role_id = str(role_id) if role_id is not None else None

        await self.store.mutate(guild_id, apply)

    async def set_allowed_role(self, guild_id: GuildID, role_id: Optional[RoleID]) -> None:
        def apply(record: TenantRecord) -> None:
            record.config.allowed_role_id = str(role_id) if role_id is not None else None

        await self.store.mutate(guild_id, apply)

    # ---------- auto-moderation toggles ----------

    async def toggle_flag(self, guild_id: GuildID, flag: str) -> bool:
        """Flip an auto-moderation flag and return its new value."""
        if flag not in AUTO_MOD_FLAGS:
            raise ValueError(f"Unknown auto-moderation flag {flag!r}")

        def apply(record: TenantRecord) -> bool:
            new_value = not record.config.flag_enabled(flag)
            record.config.auto_mod_flags[flag] = new_value
            return new_value

        return await self.store.mutate(guild_id, apply)

    # ---------- whitelist ----------

    async def whitelist_add(self, guild_id: GuildID, user_id: UserID) -> bool:
        """Whitelist a user. Returns False if already whitelisted (nothing written)."""
        record = await self.store.get(guild_id)
        if record.state.is_whitelisted(user_id):
            return False
        return await self.store.mutate(guild_id, lambda r: r.state.whitelist_add(user_id))

    async def whitelist_remove(self, guild_id: GuildID, user_id: UserID) -> bool:
        """Un-whitelist a user. Returns False if the user was not whitelisted."""
        record = await self.store.get(guild_id)
        if not record.state.is_whitelisted(user_id):
            return False
        return await self.store.mutate(guild_id, lambda r: r.state.whitelist_remove(user_id))

    async def whitelist(self, guild_id: GuildID) -> List[str]:
        record = await self.store.get(guild_id)
        return list(record.state.whitelist)

    # ---------- auto-purge ----------

    async def start_auto_purge(self, guild_id: GuildID, channel_id: ChannelID, interval_ms: int, now: int) -> None:
        """Create or replace the auto-purge rule of a channel; the first run is one interval away."""
        if interval_ms <= 0:
            raise ValueError("Auto-purge interval must be positive")

        def apply(record: TenantRecord) -> None:
            record.config.auto_purge_rules[str(channel_id)] = AutoPurgeRule(interval_ms=interval_ms, last_run_ms=now)

        await self.store.mutate(guild_id, apply)

    async def stop_auto_purge(self, guild_id: GuildID, channel_id: ChannelID) -> bool:
        """Remove the auto-purge rule of a channel; False if none existed."""
        record = await self.store.get(guild_id)
        if str(channel_id) not in record.config.auto_purge_rules:
            return False
        await self.store.mutate(guild_id, lambda r: r.config.auto_purge_rules.pop(str(channel_id), None))
        return True

    async def auto_purge_rules(self, guild_id: GuildID) -> Dict[str, AutoPurgeRule]:
        record = await self.store.get(guild_id)
        return dict(record.config.auto_purge_rules)

    # ---------- custom commands ----------

    async def set_custom_command(self, guild_id: GuildID, name: str, response: str) -> None:
        name = name.lower()

        def apply(record: TenantRecord) -> None:
            record.config.custom_commands[name] = response

        await self.store.mutate(guild_id, apply)

    async def remove_custom_command(self, guild_id: GuildID, name: str) -> bool:
        name = name.lower()
        record = await self.store.get(guild_id)
        if name not in record.config.custom_commands:
            return False
        await self.store.mutate(guild_id, lambda r: r.config.custom_commands.pop(name, None))
        return True

    async def custom_command(self, guild_id: GuildID, name: str) -> Optional[str]:
        record = await self.store.get(guild_id)
        return record.config.custom_commands.get(name.lower())

    async def custom_commands(self, guild_id: GuildID) -> Dict[str, str]:
        record = await self.store.get(guild_id)
        return dict(record.config.custom_commands)

    # ---------- warnings ----------

    async def warnings_for(self, guild_id: GuildID, user_id: UserID) -> List[WarningEntry]:
        record = await self.store.get(guild_id)
        return list(record.state.warnings.get(str(user_id), []))
