import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock

import discord
import pytest

from conftest import MemoryBackend
from guildguard import main
from guildguard.settings.tenant_store import TenantStore


class FakeBot:
    def __init__(self, *args, **kwargs) -> None:
        self._closed = False
        self._close = AsyncMock()

    def is_closed(self) -> bool:
        return self._closed

    async def close(self) -> None:
        self._closed = True
        await self._close()


@pytest.fixture()
def runtime(monkeypatch):
    backend = MemoryBackend()
    bot = FakeBot()
    monkeypatch.setattr(main, "load_environment", lambda: "token")
    monkeypatch.setattr(
        main, "app_config",
        SimpleNamespace(health_enabled=False, storage_backend="json", storage_path="memory"),
    )
    monkeypatch.setattr(main, "create_store", lambda config: TenantStore(backend))
    monkeypatch.setattr(main, "create_bot", lambda store, config: bot)
    start_bot = AsyncMock()
    monkeypatch.setattr(main, "start_bot", start_bot)
    return SimpleNamespace(backend=backend, bot=bot, start_bot=start_bot)


@pytest.mark.asyncio
async def test_async_main_successful_shutdown(runtime):
    result = await main.async_main()

    assert result == 0
    runtime.start_bot.assert_awaited_once_with(runtime.bot, "token")
    assert runtime.bot.is_closed()
    assert runtime.backend.closed is True


@pytest.mark.asyncio
async def test_async_main_login_failure_returns_error(runtime):
    runtime.start_bot.side_effect = discord.LoginFailure("Improper token has been passed.")

    assert await main.async_main() == 1
    assert runtime.backend.closed is True


@pytest.mark.asyncio
async def test_async_main_storage_failure_returns_error(runtime, monkeypatch):
    def broken_store(config):
        raise ValueError("Unknown storage backend 'redis'")

    monkeypatch.setattr(main, "create_store", broken_store)

    assert await main.async_main() == 1
    runtime.start_bot.assert_not_awaited()


@pytest.mark.asyncio
async def test_async_main_starts_health_server(runtime, monkeypatch):
    health = SimpleNamespace(start=AsyncMock(return_value=True), stop=AsyncMock())
    monkeypatch.setattr(main, "HealthServer", lambda port: health)
    main.app_config.health_enabled = True
    main.app_config.health_port = 10000

    assert await main.async_main() == 0
    health.start.assert_awaited_once()
    health.stop.assert_awaited_once()


@pytest.mark.asyncio
async def test_start_bot_swallows_cancellation():
    bot = SimpleNamespace(start=AsyncMock(side_effect=asyncio.CancelledError()))
    await main.start_bot(bot, "token")
    bot.start.assert_awaited_once_with("token")


def test_load_environment_requires_token(monkeypatch):
    monkeypatch.setattr(main, "load_dotenv", lambda **kwargs: None)
    monkeypatch.delenv("DISCORD_BOT_TOKEN", raising=False)

    with pytest.raises(SystemExit):
        main.load_environment()


def test_load_environment_returns_token(monkeypatch):
    monkeypatch.setattr(main, "load_dotenv", lambda **kwargs: None)
    monkeypatch.setenv("DISCORD_BOT_TOKEN", "abc")

    assert main.load_environment() == "abc"


def test_build_intents_enables_members_and_content():
    intents = main.build_intents()
    assert intents.members is True
    assert intents.message_content is True


def test_main_maps_keyboard_interrupt_to_zero(monkeypatch):
    def fake_run(coro):
        coro.close()
        raise KeyboardInterrupt

    monkeypatch.setattr(main.asyncio, "run", fake_run)
    assert main.main() == 0


def test_main_returns_exit_code(monkeypatch):
    def fake_run(coro):
        coro.close()
        raise SystemExit(3)

    monkeypatch.setattr(main.asyncio, "run", fake_run)
    assert main.main() == 3
