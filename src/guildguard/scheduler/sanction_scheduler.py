"""
Sweeps over every tenant that lift expired sanctions and run due auto-purges.

Both sweeps change tenant state first, persist it with one snapshot write,
and only then hand the resulting actions to the dispatcher. A failing
action is logged and the pass continues; the state change is not undone,
so an expired sanction is lifted at most once even if Discord rejects the
revocation.

The sweeps are driven by :mod:`guildguard.cog.listener.scheduler_cog`; they
take ``now`` as a parameter so they can be run deterministically.
"""

from __future__ import annotations

from typing import List, Optional

from guildguard.datatypes.action_datatypes import ActionType, ModerationAction
from guildguard.datatypes.discord_datatypes import ChannelID, UserID
from guildguard.moderation.action_dispatcher import ActionDispatcher
from guildguard.settings.tenant_store import TenantStore
from guildguard.util.logger import get_logger
from guildguard.util.parsing import now_ms

logger = get_logger("sanction_scheduler")

AUTOPURGE_BATCH_SIZE = 50


class SanctionScheduler:
    """
    Expiry and auto-purge sweeps.

    Attributes:
        store (TenantStore): Source of temp bans, mutes and purge rules.
        dispatcher (ActionDispatcher): Performs the emitted actions.
        batch_size (int): Messages removed per auto-purge run.
    """

    def __init__(self, store: TenantStore, dispatcher: ActionDispatcher, *, batch_size: int = AUTOPURGE_BATCH_SIZE) -> None:
        self.store = store
        self.dispatcher = dispatcher
        self.batch_size = batch_size
        self._expiry_running = False
        self._autopurge_running = False

    @property
    def expiry_running(self) -> bool:
        return self._expiry_running

    async def run_expiry_sweep(self, now: Optional[int] = None) -> List[ModerationAction]:
        """
        Remove every temp ban and mute with ``expiry <= now`` and lift it.

        Returns:
            The emitted actions, or an empty list if a sweep was already running.
        """
        if self._expiry_running:
            logger.debug("[SANCTION SCHEDULER] Expiry sweep already running; skipping")
            return []
        self._expiry_running = True
        try:
            now = now_ms() if now is None else now
            actions: List[ModerationAction] = []

            for guild_id, record in self.store.items():
                state = record.state
                for user_id in [u for u, expiry in state.temp_bans.items() if expiry <= now]:
                    del state.temp_bans[user_id]
                    actions.append(ModerationAction(
                        kind=ActionType.AUTO_UNBAN,
                        guild_id=guild_id,
                        user_id=UserID(user_id),
                        details=f"User {user_id} temporary ban expired",
                        reason="Temporary ban expired",
                    ))
                for user_id in [u for u, expiry in state.mutes.items() if expiry <= now]:
                    del state.mutes[user_id]
                    actions.append(ModerationAction(
                        kind=ActionType.AUTO_UNMUTE,
                        guild_id=guild_id,
                        user_id=UserID(user_id),
                        details=f"User {user_id} mute expired",
                        reason="Mute expired",
                    ))

            if actions:
                await self.store.flush()
                logger.info("[SANCTION SCHEDULER] Lifting %d expired sanction(s)", len(actions))
            await self._dispatch_all(actions)
            return actions
        finally:
            self._expiry_running = False

    async def run_autopurge_sweep(self, now: Optional[int] = None) -> List[ModerationAction]:
        """
        Emit one purge for every rule with ``now - last_run >= interval`` and
        move its ``last_run`` to ``now``.

        Returns:
            The emitted actions, or an empty list if a sweep was already running.
        """
        if self._autopurge_running:
            logger.debug("[SANCTION SCHEDULER] Auto-purge sweep already running; skipping")
            return []
        self._autopurge_running = True
        try:
            now = now_ms() if now is None else now
            actions: List[ModerationAction] = []

            for guild_id, record in self.store.items():
                for channel_id, rule in record.config.auto_purge_rules.items():
                    if not rule.is_due(now):
                        continue
                    rule.last_run_ms = now
                    actions.append(ModerationAction(
                        kind=ActionType.AUTO_PURGE,
                        guild_id=guild_id,
                        channel_id=ChannelID(channel_id),
                        count=self.batch_size,
                        details=f"Auto-purged up to {self.batch_size} messages in <#{channel_id}>",
                        reason="Scheduled auto-purge",
                    ))

            if actions:
                await self.store.flush()
                logger.debug("[SANCTION SCHEDULER] Running %d auto-purge(s)", len(actions))
            await self._dispatch_all(actions)
            return actions
        finally:
            self._autopurge_running = False

    async def _dispatch_all(self, actions: List[ModerationAction]) -> None:
        for action in actions:
            try:
                result = await self.dispatcher.dispatch(action)
            except Exception:
                logger.exception("[SANCTION SCHEDULER] Dispatch of %s crashed", action.kind.label)
                continue
            if not result.ok and not result.skipped:
                logger.warning(
                    "[SANCTION SCHEDULER] %s failed in guild %s: %s",
                    action.kind.label, action.guild_id, result.error,
                )
