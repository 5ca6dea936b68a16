"""
py-cord cogs.

- **command_base.py**: ``GuardedCog``, the permission-checked base of every
  command cog.
- **commands/**: moderation, settings and utility prefix commands.
- **listener/**: gateway event handlers and the background sweep loops.
"""
