"""Message listener cog for guildguard.

Runs automatic moderation on every guild message from a regular member:

1. Spam: a burst of identical messages times the author out.
2. Content: invite links, shouting in caps and mass mentions delete the message.

Each check is gated by its per-guild toggle. Members who may use bot commands
are not auto-moderated, and the dispatcher skips whitelisted users.
"""

import discord
from discord.ext import commands

from guildguard.datatypes.action_datatypes import ActionType, ModerationAction
from guildguard.datatypes.discord_datatypes import ChannelID, GuildID, UserID
from guildguard.datatypes.tenant import TenantRecord
from guildguard.moderation.heuristics import contains_invite, is_caps_abuse, is_mention_abuse
from guildguard.util.discord_utils import count_mentions, has_command_access, is_ignored_author
from guildguard.util.logger import get_logger
from guildguard.util.parsing import format_interval, now_ms

logger = get_logger("message_listener")


class MessageListenerCog(commands.Cog):
    """Feeds guild messages to the spam detector and content checks."""

    def __init__(self, bot) -> None:
        self.bot = bot
        logger.info("[MESSAGE LISTENER] Message listener cog loaded")

    @commands.Cog.listener(name="on_message")
    async def on_message(self, message: discord.Message) -> None:
        if message.guild is None or is_ignored_author(message.author):
            return

        record = await self.bot.store.get(GuildID(message.guild.id))
        if has_command_access(message.author, record.config.allowed_role_id):
            return

        if await self._check_spam(message, record):
            return
        await self._check_content(message, record)

    async def _check_spam(self, message: discord.Message, record: TenantRecord) -> bool:
        if not record.config.flag_enabled("anti_spam"):
            return False
        detector = self.bot.spam_detector
        if not detector.check(message.guild.id, message.author.id, message.content, now_ms()):
            return False

        detector.reset(message.guild.id, message.author.id)
        mute_ms = self.bot.config.spam_mute_ms
        logger.info("[MESSAGE LISTENER] Spam burst from %s in guild %s", message.author.id, message.guild.id)
        result = await self.bot.dispatcher.dispatch(ModerationAction(
            kind=ActionType.AUTO_SPAM_MUTE,
            guild_id=GuildID(message.guild.id),
            user_id=UserID(message.author.id),
            channel_id=ChannelID(message.channel.id),
            details=f"Muted {message.author} ({message.author.id}) for {format_interval(mute_ms)} for spamming",
            reason="Anti-spam protection",
            duration_ms=mute_ms,
        ))
        return not result.skipped

    async def _check_content(self, message: discord.Message, record: TenantRecord) -> bool:
        config = self.bot.config
        content = message.content or ""
        flags = record.config

        violation = None
        if flags.flag_enabled("anti_invites") and contains_invite(content):
            violation = "posting an invite link"
        elif flags.flag_enabled("anti_caps") and is_caps_abuse(content, config.caps_min_letters, config.caps_ratio):
            violation = "excessive caps"
        elif flags.flag_enabled("anti_mention"):
            users, roles = count_mentions(message)
            if is_mention_abuse(users, roles, config.mention_limit):
                violation = "mass mentions"

        if violation is None:
            return False

        result = await self.bot.dispatcher.dispatch(ModerationAction(
            kind=ActionType.AUTO_DELETE,
            guild_id=GuildID(message.guild.id),
            user_id=UserID(message.author.id),
            channel_id=ChannelID(message.channel.id),
            message_id=message.id,
            details=f"Deleted a message from {message.author} ({message.author.id}) in {message.channel} for {violation}",
            reason=f"Auto-moderation: {violation}",
        ))
        return result.ok


def setup(bot) -> None:
    bot.add_cog(MessageListenerCog(bot))
