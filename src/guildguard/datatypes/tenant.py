"""
Per-guild tenant records: configuration plus moderation state.

A :class:`TenantRecord` is the unit the tenant store keeps in memory and
writes to the snapshot. Snowflakes inside the record (users, channels, roles)
are kept as decimal strings so the record serializes to JSON unchanged.

Schema drift is healed by :meth:`TenantRecord.from_dict`: every field starts
from its default and is overridden only when the loaded document carries a
usable value, so snapshots written before a field existed still load into a
fully shaped record.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from guildguard.datatypes.discord_datatypes import GuildID

DEFAULT_PREFIX = "?"
MAX_PREFIX_LENGTH = 3
AUDIT_LOG_LIMIT = 1000

AUTO_MOD_FLAGS = ("anti_spam", "anti_caps", "anti_invites", "anti_mention", "anti_raid")
CHANNEL_BINDINGS = ("welcome", "leave", "logs")


def default_auto_mod_flags() -> Dict[str, bool]:
    return {flag: True for flag in AUTO_MOD_FLAGS}


def default_channel_bindings() -> Dict[str, Optional[str]]:
    return {binding: None for binding in CHANNEL_BINDINGS}


def _snowflake_or_none(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


@dataclass(slots=True)
class AutoPurgeRule:
    """Recurring bulk delete for one channel."""

    interval_ms: int
    last_run_ms: int

    def is_due(self, now_ms: int) -> bool:
        return now_ms - self.last_run_ms >= self.interval_ms


@dataclass(slots=True)
class WarningEntry:
    reason: str
    moderator: str
    timestamp: str


@dataclass(slots=True)
class AuditEntry:
    timestamp: str
    action: str
    details: str


@dataclass(slots=True)
class TenantConfig:
    """Moderator-controlled configuration of one guild."""

    command_prefix: str = DEFAULT_PREFIX
    channel_bindings: Dict[str, Optional[str]] = field(default_factory=default_channel_bindings)
    auto_role_id: Optional[str] = None
    allowed_role_id: Optional[str] = None
    auto_mod_flags: Dict[str, bool] = field(default_factory=default_auto_mod_flags)
    auto_purge_rules: Dict[str, AutoPurgeRule] = field(default_factory=dict)
    custom_commands: Dict[str, str] = field(default_factory=dict)

    def channel_for(self, binding: str) -> Optional[str]:
        return self.channel_bindings.get(binding)

    def flag_enabled(self, flag: str) -> bool:
        return bool(self.auto_mod_flags.get(flag, True))


@dataclass(slots=True)
class GuildState:
    """Moderation history and active sanctions of one guild."""

    whitelist: List[str] = field(default_factory=list)
    warnings: Dict[str, List[WarningEntry]] = field(default_factory=dict)
    temp_bans: Dict[str, int] = field(default_factory=dict)
    mutes: Dict[str, int] = field(default_factory=dict)
    audit_log: List[AuditEntry] = field(default_factory=list)
    recent_join_timestamps: Dict[str, int] = field(default_factory=dict)

    # ----- whitelist (insertion-ordered set) -----
    def is_whitelisted(self, user_id) -> bool:
        return str(user_id) in self.whitelist

    def whitelist_add(self, user_id) -> bool:
        """Add a user; return False when the user was already whitelisted."""
        key = str(user_id)
        if key in self.whitelist:
            return False
        self.whitelist.append(key)
        return True

    def whitelist_remove(self, user_id) -> bool:
        """Remove a user; return False when the user was not whitelisted."""
        key = str(user_id)
        if key not in self.whitelist:
            return False
        self.whitelist.remove(key)
        return True

    # ----- warnings -----
    def add_warning(self, user_id, entry: WarningEntry) -> int:
        """Append a warning and return the user's new warning count."""
        entries = self.warnings.setdefault(str(user_id), [])
        entries.append(entry)
        return len(entries)

    # ----- audit log -----
    def append_audit(self, entry: AuditEntry, limit: int = AUDIT_LOG_LIMIT) -> None:
        """Append an entry, evicting the oldest ones beyond ``limit``."""
        self.audit_log.append(entry)
        overflow = len(self.audit_log) - limit
        if overflow > 0:
            del self.audit_log[:overflow]


@dataclass(slots=True)
class TenantRecord:
    """Configuration and state of one guild, identified by its guild id."""

    guild_id: GuildID
    config: TenantConfig = field(default_factory=TenantConfig)
    state: GuildState = field(default_factory=GuildState)

    @classmethod
    def default(cls, guild_id: GuildID, default_prefix: str = DEFAULT_PREFIX) -> "TenantRecord":
        return cls(guild_id=GuildID(guild_id), config=TenantConfig(command_prefix=default_prefix))

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        config = self.config
        state = self.state
        return {
            "config": {
                "command_prefix": config.command_prefix,
                "channel_bindings": dict(config.channel_bindings),
                "auto_role_id": config.auto_role_id,
                "allowed_role_id": config.allowed_role_id,
                "auto_mod_flags": dict(config.auto_mod_flags),
                "auto_purge_rules": {
                    channel_id: {"interval_ms": rule.interval_ms, "last_run_ms": rule.last_run_ms}
                    for channel_id, rule in config.auto_purge_rules.items()
                },
                "custom_commands": dict(config.custom_commands),
            },
            "state": {
                "whitelist": list(state.whitelist),
                "warnings": {
                    user_id: [
                        {"reason": w.reason, "moderator": w.moderator, "timestamp": w.timestamp}
                        for w in entries
                    ]
                    for user_id, entries in state.warnings.items()
                },
                "temp_bans": dict(state.temp_bans),
                "mutes": dict(state.mutes),
                "audit_log": [
                    {"timestamp": e.timestamp, "action": e.action, "details": e.details}
                    for e in state.audit_log
                ],
                "recent_join_timestamps": dict(state.recent_join_timestamps),
            },
        }

    @classmethod
    def from_dict(
        cls,
        guild_id: GuildID,
        data: Mapping[str, Any],
        default_prefix: str = DEFAULT_PREFIX,
    ) -> "TenantRecord":
        """Build a record from a snapshot document, defaulting every missing field."""
        record = cls.default(guild_id, default_prefix)
        if not isinstance(data, Mapping):
            return record

        raw_config = data.get("config")
        if isinstance(raw_config, Mapping):
            _merge_config(record.config, raw_config)

        raw_state = data.get("state")
        if isinstance(raw_state, Mapping):
            _merge_state(record.state, raw_state)

        return record


def _merge_config(config: TenantConfig, raw: Mapping[str, Any]) -> None:
    prefix = raw.get("command_prefix")
    if isinstance(prefix, str) and 0 < len(prefix) <= MAX_PREFIX_LENGTH:
        config.command_prefix = prefix

    bindings = raw.get("channel_bindings")
    if isinstance(bindings, Mapping):
        for binding in CHANNEL_BINDINGS:
            if binding in bindings:
                config.channel_bindings[binding] = _snowflake_or_none(bindings[binding])

    if "auto_role_id" in raw:
        config.auto_role_id = _snowflake_or_none(raw["auto_role_id"])
    if "allowed_role_id" in raw:
        config.allowed_role_id = _snowflake_or_none(raw["allowed_role_id"])

    flags = raw.get("auto_mod_flags")
    if isinstance(flags, Mapping):
        for flag in AUTO_MOD_FLAGS:
            if isinstance(flags.get(flag), bool):
                config.auto_mod_flags[flag] = flags[flag]

    rules = raw.get("auto_purge_rules")
    if isinstance(rules, Mapping):
        for channel_id, rule in rules.items():
            if not isinstance(rule, Mapping):
                continue
            try:
                config.auto_purge_rules[str(channel_id)] = AutoPurgeRule(
                    interval_ms=int(rule["interval_ms"]),
                    last_run_ms=int(rule.get("last_run_ms", 0)),
                )
            except (KeyError, TypeError, ValueError):
                continue

    commands = raw.get("custom_commands")
    if isinstance(commands, Mapping):
        config.custom_commands = {str(k).lower(): str(v) for k, v in commands.items()}


def _merge_state(state: GuildState, raw: Mapping[str, Any]) -> None:
    whitelist = raw.get("whitelist")
    if isinstance(whitelist, list):
        for user_id in whitelist:
            state.whitelist_add(user_id)

    warnings = raw.get("warnings")
    if isinstance(warnings, Mapping):
        for user_id, entries in warnings.items():
            if not isinstance(entries, list):
                continue
            state.warnings[str(user_id)] = [
                WarningEntry(
                    reason=str(e.get("reason", "")),
                    moderator=str(e.get("moderator", "")),
                    timestamp=str(e.get("timestamp", "")),
                )
                for e in entries
                if isinstance(e, Mapping)
            ]

    for name in ("temp_bans", "mutes", "recent_join_timestamps"):
        raw_map = raw.get(name)
        if isinstance(raw_map, Mapping):
            target: Dict[str, int] = getattr(state, name)
            for user_id, value in raw_map.items():
                try:
                    target[str(user_id)] = int(value)
                except (TypeError, ValueError):
                    continue

    audit = raw.get("audit_log")
    if isinstance(audit, list):
        state.audit_log = [
            AuditEntry(
                timestamp=str(e.get("timestamp", "")),
                action=str(e.get("action", "")),
                details=str(e.get("details", "")),
            )
            for e in audit
            if isinstance(e, Mapping)
        ][-AUDIT_LOG_LIMIT:]
