"""Background sweep cogs for guildguard.

Contains two cogs driving :class:`SanctionScheduler`:
- ExpirySweepCog    – lifts temp bans and mutes whose expiry has passed and
                      drops idle spam windows
- AutoPurgeSweepCog – runs due auto-purge rules

``tasks.loop`` awaits each pass before scheduling the next one, so passes of
the same sweep never overlap.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List

from discord.ext import commands, tasks

from guildguard.datatypes.action_datatypes import ModerationAction
from guildguard.util.logger import get_logger
from guildguard.util.parsing import now_ms

logger = get_logger("scheduler_cog")


class _IntervalSweepCog(commands.Cog):
    """
    Reusable base for cogs that run one sweep on a fixed interval.

    Subclasses supply:
        _name         – tag used in log messages
        _get_interval – callable(bot) returning the interval in seconds
        _run_sweep    – async callable(bot) running one pass
    """

    _name: str
    _get_interval: Callable[..., float]
    _run_sweep: Callable[..., Awaitable[List[ModerationAction]]]

    def __init__(self, bot) -> None:
        self.bot = bot

    @tasks.loop(seconds=30)  # real interval set in on_ready
    async def _sweep_task(self) -> None:
        try:
            await self._run_sweep(self.bot)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("[%s] Sweep failed", self._name)

    @_sweep_task.before_loop
    async def _before_sweep(self) -> None:
        await self.bot.wait_until_ready()

    @commands.Cog.listener()
    async def on_ready(self) -> None:
        interval = self._get_interval(self.bot)
        self._sweep_task.change_interval(seconds=interval)
        if not self._sweep_task.is_running():
            self._sweep_task.start()
            logger.info("[%s] Started (interval=%.1fs)", self._name, interval)

    def cog_unload(self) -> None:
        self._sweep_task.cancel()
        logger.info("[%s] Stopped", self._name)


async def _run_expiry_pass(bot) -> List[ModerationAction]:
    pruned = bot.spam_detector.prune(now_ms())
    if pruned:
        logger.debug("[EXPIRY_SWEEP] Dropped %d idle spam window(s)", pruned)
    return await bot.scheduler.run_expiry_sweep()


class ExpirySweepCog(_IntervalSweepCog):
    """Periodically lifts expired temp bans and mutes and prunes spam windows."""

    _name = "EXPIRY_SWEEP"
    _get_interval = staticmethod(lambda bot: bot.config.expiry_sweep_interval)
    _run_sweep = staticmethod(_run_expiry_pass)


class AutoPurgeSweepCog(_IntervalSweepCog):
    """Periodically bulk deletes messages in channels with a due auto-purge rule."""

    _name = "AUTOPURGE_SWEEP"
    _get_interval = staticmethod(lambda bot: bot.config.autopurge_sweep_interval)
    _run_sweep = staticmethod(lambda bot: bot.scheduler.run_autopurge_sweep())


def setup(bot) -> None:
    bot.add_cog(ExpirySweepCog(bot))
    bot.add_cog(AutoPurgeSweepCog(bot))
