"""
Application configuration for guildguard.

- **app_configuration.py**: YAML-backed :class:`AppConfig` with typed
  properties (default prefix, storage backend, sweep intervals, auto-mod
  thresholds, health port) and the shared ``app_config`` instance.
"""
