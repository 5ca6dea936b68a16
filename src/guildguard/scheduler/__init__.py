"""
Background sweeps over the tenant store.

- **sanction_scheduler.py**: ``SanctionScheduler`` with the expiry sweep (lifts
  temp bans and mutes) and the auto-purge sweep.
"""
