"""
Utility functions and helpers for guildguard.

This package provides reusable utilities:

- **logger.py**: Centralized logging configuration with colored console output,
  rotating file handlers, and per-session log aggregation. Uses prompt_toolkit
  for console output and silences Discord/aiohttp internals.

- **parsing.py**: Validation of moderator input (duration literals, prefixes,
  purge counts, auto-mod setting names) and epoch/ISO time helpers.

- **discord_utils.py**: Stateless Discord helpers for permission checks and
  resolving mentions, roles and channels on a command message.

- **health_server.py**: aiohttp liveness endpoint for uptime monitors.
"""
