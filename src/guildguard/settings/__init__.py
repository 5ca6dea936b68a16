"""
Per-guild settings and state.

- **tenant_store.py**: ``TenantStore``, the owner of every tenant record and
  of the durable snapshot.
- **guild_settings_service.py**: validated configuration operations (prefix,
  channel bindings, roles, auto-mod toggles, whitelist, auto-purge rules,
  custom commands) built on ``TenantStore.mutate``.
"""
