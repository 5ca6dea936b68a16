"""
Prefix-command cogs.

- **moderation_cmds.py**: kick, ban, softban, unban, mute, unmute, warn, purge.
- **settings_cmds.py**: channel bindings, roles, prefix, toggles, whitelist,
  auto-purge rules and custom commands.
- **utility_cmds.py**: role assignment, channel management, logs, invite, help.
"""
