"""
Liveness endpoint for uptime monitors and hosting platforms.

Every GET answers ``200 text/plain`` with a fixed body as long as the event
loop is alive; it does not report gateway state.
"""

from typing import Optional

from aiohttp import web

from guildguard.util.logger import get_logger

logger = get_logger("health_server")

HEALTH_TEXT = "Discord bot is running!\n"


class HealthServer:
    """
    aiohttp server bound to ``host:port`` running inside the bot's event loop.

    Attributes:
        port (int): Port to listen on.
        app (web.Application): Application with the ``/`` and ``/health`` routes.
        runner (web.AppRunner | None): Set while the server is running.
    """

    def __init__(self, port: int = 10000, host: str = "0.0.0.0") -> None:
        self.port = port
        self.host = host
        self.app = web.Application()
        self.runner: Optional[web.AppRunner] = None

        self.app.router.add_get("/", self.health_handler)
        self.app.router.add_get("/health", self.health_handler)

    async def health_handler(self, request: web.Request) -> web.Response:
        return web.Response(text=HEALTH_TEXT, content_type="text/plain")

    async def start(self) -> bool:
        """Start listening. Returns False (after logging) if the port could not be bound."""
        try:
            self.runner = web.AppRunner(self.app)
            await self.runner.setup()
            site = web.TCPSite(self.runner, self.host, self.port)
            await site.start()
        except OSError as exc:
            logger.error("[HEALTH] Failed to start on port %d: %s", self.port, exc)
            await self.stop()
            return False
        logger.info("[HEALTH] Listening on http://%s:%d/", self.host, self.port)
        return True

    async def stop(self) -> None:
        """Stop the server; safe to call when it never started."""
        if self.runner is not None:
            await self.runner.cleanup()
            self.runner = None
            logger.info("[HEALTH] Stopped")
