"""
Plain data types shared across guildguard.

- **discord_datatypes.py**: ``GuildID``/``UserID``/``ChannelID``/``RoleID``
  snowflake wrappers.
- **tenant.py**: ``TenantRecord`` (``TenantConfig`` + ``GuildState``) and its
  schema-healing serialization.
- **action_datatypes.py**: ``ActionType``, ``ModerationAction`` and
  ``ActionResult`` for the action dispatcher.
"""
