"""
guildguard - Per-guild Discord moderation bot

guildguard keeps one isolated configuration and moderation record per guild
and acts on it from gateway events, moderator commands and background sweeps.

Core Components:

- **Tenant Store**: Per-guild configuration, whitelist, warnings, active temp
  bans and mutes, and a bounded audit log, persisted as a whole snapshot
  (JSON file or SQLite) after every change
- **Heuristics**: Sliding-window spam and join-burst (raid) detection plus
  invite, caps and mass-mention checks
- **Sanction Scheduler**: Sweeps that lift expired temp bans and mutes and run
  scheduled auto-purges
- **Action Dispatcher**: Records every moderation action in the audit log,
  performs it through py-cord and notifies the guild's logs channel
- **Commands**: Prefix commands for moderation, roles, channels and settings,
  gated by administrator or a configurable role

Usage:
    from guildguard.main import main
    main()
"""
