from __future__ import annotations
from pathlib import Path
import fcntl
import os
from typing import Any, Dict
import yaml

from guildguard.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()

DEFAULT_PREFIX = "?"
DEFAULT_INVITE_LINK = (
    "https://discord.com/oauth2/authorize?client_id=1376634793659334716"
    "&permissions=8&integration_type=0&scope=bot+applications.commands"
)


def _section_value(section: Any, key: str, default: Any) -> Any:
    if isinstance(section, dict) and section.get(key) is not None:
        return section[key]
    return default


class AppConfig:
    """File-lock based accessor around the YAML-based application configuration.

    The class caches contents of ``./config/app_config.yml`` and exposes typed
    properties for every runtime knob. Every property falls back to a built-in
    default so a missing or partial file still yields a working bot.
    Uses fcntl file locks for safe concurrent access across processes.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = yaml.safe_load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
                if not isinstance(data, dict):
                    if data is not None:
                        logger.error("[APP CONFIGURATION] Config %s is not a mapping; ignoring it.", self.config_path)
                    return {}
                return data
        except FileNotFoundError:
            logger.warning("[APP CONFIGURATION] Config file %s not found; using defaults.", self.config_path)
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
        return {}

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        Returns the raw mapping that was loaded (an empty dict on error).
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the cached configuration mapping. Callers should not mutate it."""
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # Bot
    # --------------------------
    @property
    def default_prefix(self) -> str:
        """Global command prefix used by guilds that never ran ``setprefix``."""
        value = str(self._data.get("default_prefix") or DEFAULT_PREFIX)
        return value[:3]

    @property
    def invite_link(self) -> str:
        return str(self._data.get("invite_link") or DEFAULT_INVITE_LINK)

    @property
    def health_port(self) -> int:
        """Port of the liveness endpoint; the ``PORT`` environment variable wins."""
        env_port = os.getenv("PORT")
        if env_port:
            try:
                return int(env_port)
            except ValueError:
                logger.warning("[APP CONFIGURATION] Ignoring non-numeric PORT=%r", env_port)
        return int(_section_value(self._data.get("health"), "port", 10000))

    @property
    def health_enabled(self) -> bool:
        return bool(_section_value(self._data.get("health"), "enabled", True))

    # --------------------------
    # Storage
    # --------------------------
    @property
    def storage_backend(self) -> str:
        """Either ``json`` (default) or ``sqlite``."""
        return str(_section_value(self._data.get("storage"), "backend", "json")).lower()

    @property
    def storage_path(self) -> Path:
        default = "./data/guildguard.db" if self.storage_backend == "sqlite" else "./data/guild_data.json"
        return Path(str(_section_value(self._data.get("storage"), "path", default))).resolve()

    @property
    def audit_log_limit(self) -> int:
        return int(_section_value(self._data.get("storage"), "audit_log_limit", 1000))

    # --------------------------
    # Scheduler
    # --------------------------
    @property
    def expiry_sweep_interval(self) -> float:
        """Seconds between temp-ban/mute expiry sweeps. Default 30."""
        return float(_section_value(self._data.get("scheduler"), "expiry_interval_seconds", 30.0))

    @property
    def autopurge_sweep_interval(self) -> float:
        """Seconds between auto-purge sweeps. Default 60."""
        return float(_section_value(self._data.get("scheduler"), "autopurge_interval_seconds", 60.0))

    @property
    def autopurge_batch_size(self) -> int:
        return int(_section_value(self._data.get("scheduler"), "autopurge_batch_size", 50))

    # --------------------------
    # Auto-moderation
    # --------------------------
    def _automod(self, key: str, default: Any) -> Any:
        return _section_value(self._data.get("automod"), key, default)

    @property
    def spam_window_ms(self) -> int:
        return int(self._automod("spam_window_ms", 5000))

    @property
    def spam_duplicate_threshold(self) -> int:
        return int(self._automod("spam_duplicate_threshold", 5))

    @property
    def spam_mute_ms(self) -> int:
        return int(self._automod("spam_mute_ms", 5 * 60 * 1000))

    @property
    def raid_window_ms(self) -> int:
        return int(self._automod("raid_window_ms", 10000))

    @property
    def raid_join_threshold(self) -> int:
        return int(self._automod("raid_join_threshold", 5))

    @property
    def caps_min_letters(self) -> int:
        return int(self._automod("caps_min_letters", 8))

    @property
    def caps_ratio(self) -> float:
        return float(self._automod("caps_ratio", 0.7))

    @property
    def mention_limit(self) -> int:
        return int(self._automod("mention_limit", 5))


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
