"""
Bot assembly.

- **bot.py**: ``GuardBot``, the py-cord ``commands.Bot`` holding the tenant
  store, settings service, dispatcher, spam detector and sweep scheduler.
"""
