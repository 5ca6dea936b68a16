"""
The py-cord bot subclass that wires guildguard's components together.

Cogs reach every shared component through the bot instance:

- ``bot.store``: :class:`~guildguard.settings.tenant_store.TenantStore`
- ``bot.settings``: :class:`~guildguard.settings.guild_settings_service.GuildSettingsService`
- ``bot.dispatcher``: :class:`~guildguard.moderation.action_dispatcher.ActionDispatcher`
- ``bot.spam_detector``: :class:`~guildguard.moderation.heuristics.SpamDetector`
- ``bot.scheduler``: :class:`~guildguard.scheduler.sanction_scheduler.SanctionScheduler`
- ``bot.config``: :class:`~guildguard.configuration.app_configuration.AppConfig`
"""

from __future__ import annotations

import discord
from discord.ext import commands

from guildguard.configuration.app_configuration import AppConfig
from guildguard.moderation.action_dispatcher import ActionDispatcher
from guildguard.moderation.heuristics import SpamDetector
from guildguard.scheduler.sanction_scheduler import SanctionScheduler
from guildguard.settings.guild_settings_service import GuildSettingsService
from guildguard.settings.tenant_store import TenantStore
from guildguard.util.logger import get_logger

logger = get_logger("bot")


async def resolve_prefix(bot: "GuardBot", message: discord.Message) -> str:
    """Per-guild command prefix; the configured default in DMs."""
    guild_id = message.guild.id if message.guild is not None else None
    return await bot.store.get_prefix(guild_id)


class GuardBot(commands.Bot):
    """Prefix-command bot whose prefix is looked up per guild."""

    def __init__(self, store: TenantStore, config: AppConfig, *, intents: discord.Intents) -> None:
        super().__init__(
            command_prefix=resolve_prefix,
            intents=intents,
            help_command=None,
            case_insensitive=True,
        )
        self.config = config
        self.store = store
        self.settings = GuildSettingsService(store)
        self.dispatcher = ActionDispatcher(store, self, audit_limit=config.audit_log_limit)
        self.spam_detector = SpamDetector(config.spam_window_ms, config.spam_duplicate_threshold)
        self.scheduler = SanctionScheduler(store, self.dispatcher, batch_size=config.autopurge_batch_size)

    def load_cogs(self) -> None:
        """Register every command and listener cog."""
        from guildguard.cog.commands import moderation_cmds, settings_cmds, utility_cmds
        from guildguard.cog.listener import events_listener, message_listener, scheduler_cog

        for module in (
            events_listener,
            message_listener,
            scheduler_cog,
            moderation_cmds,
            settings_cmds,
            utility_cmds,
        ):
            module.setup(self)
        logger.info("[BOT] All cogs loaded")
