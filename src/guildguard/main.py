"""
guildguard
==========

Per-guild Discord moderation bot: prefix commands for manual moderation,
automatic spam/raid/content moderation, and sweeps that lift temporary
sanctions and run scheduled purges.
"""

import os
import sys
from pathlib import Path


def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. GUILDGUARD_HOME environment variable, if set.
    2. If running in a frozen/compiled context (e.g., PyInstaller, Nuitka), use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("GUILDGUARD_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]


BASE_DIR = resolve_base_dir()
os.chdir(BASE_DIR)

import asyncio
import discord
from dotenv import load_dotenv

from guildguard.configuration.app_configuration import AppConfig, app_config
from guildguard.core.bot import GuardBot
from guildguard.database import create_backend
from guildguard.settings.tenant_store import TenantStore
from guildguard.util.health_server import HealthServer
from guildguard.util.logger import get_logger, handle_exception


logger = get_logger("main")


def load_environment() -> str:
    """Load environment variables and return the Discord bot token.

    Returns
    -------
    str
        Discord bot token extracted from the loaded environment.

    Raises
    ------
    SystemExit
        If the required ``DISCORD_BOT_TOKEN`` variable is missing.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.critical("'DISCORD_BOT_TOKEN' environment variable not set. Bot cannot start.")
        sys.exit(1)
    return token


def build_intents() -> discord.Intents:
    """Construct the Discord intents required by guildguard.

    Returns
    -------
    discord.Intents
        Intents enabling guild, member and message-content events.
    """
    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.messages = True
    intents.members = True
    return intents


def create_store(config: AppConfig) -> TenantStore:
    """Build the tenant store on the backend named in the application config."""
    backend = create_backend(config.storage_backend, config.storage_path)
    return TenantStore(backend, default_prefix=config.default_prefix)


def create_bot(store: TenantStore, config: AppConfig) -> GuardBot:
    """Instantiate the bot and register all cogs."""
    bot = GuardBot(store, config, intents=build_intents())
    bot.load_cogs()
    return bot


async def start_bot(bot: GuardBot, token: str) -> None:
    """Start the Discord bot and log around the connection lifecycle."""
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        logger.info("Discord bot start routine finished.")


async def shutdown_runtime(bot: GuardBot | None, store: TenantStore, health: HealthServer | None) -> None:
    """Close the bot, stop the health endpoint and write the final snapshot."""
    if bot is not None and not bot.is_closed():
        try:
            await bot.close()
        except Exception as exc:
            logger.exception("Error while closing the Discord client: %s", exc)

    if health is not None:
        await health.stop()

    try:
        await store.shutdown()
    except Exception as exc:
        logger.exception("Error during tenant store shutdown: %s", exc)

    logger.info("Shutdown complete.")


async def async_main() -> int:
    """Bootstrap storage, the health endpoint and the bot, returning an exit code."""
    token = load_environment()

    try:
        store = create_store(app_config)
        logger.info("Loading tenant store (%s at %s)...", app_config.storage_backend, app_config.storage_path)
        await store.load()
    except Exception as exc:
        logger.critical("Failed to initialize storage: %s", exc)
        return 1

    try:
        bot = create_bot(store, app_config)
    except Exception as exc:
        logger.critical("Failed to initialize Discord bot: %s", exc)
        await store.shutdown()
        return 1

    health = None
    if app_config.health_enabled:
        health = HealthServer(app_config.health_port)
        await health.start()

    exit_code = 0
    try:
        await start_bot(bot, token)
    except discord.LoginFailure as exc:
        logger.critical("Discord rejected the bot token: %s", exc)
        exit_code = 1
    except Exception as exc:
        logger.critical("Discord bot runtime error: %s", exc)
        exit_code = 1
    finally:
        await shutdown_runtime(bot, store, health)

    return exit_code


def main() -> int:
    """Entrypoint that runs the async runtime and returns the process exit code."""
    sys.excepthook = handle_exception
    logger.info("Starting guildguard…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except SystemExit as exit_exc:
        code = exit_exc.code
        if isinstance(code, int):
            return code
        return 1
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the bot: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
