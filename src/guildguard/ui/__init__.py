"""
User-facing presentation for guildguard.

- **embeds.py**: builders for the logs-channel notification, welcome and leave
  messages, warning DMs, and the list/help replies of the command cogs.
"""
