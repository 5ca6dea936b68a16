"""
Event-driven cogs.

- **events_listener.py**: ready, member join/leave and command errors.
- **message_listener.py**: automatic moderation of incoming messages.
- **scheduler_cog.py**: ``tasks.loop`` drivers for the expiry and auto-purge sweeps.
"""
