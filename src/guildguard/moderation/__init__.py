"""
Moderation policy: deciding and carrying out actions.

- **heuristics.py**: spam, raid and message-content detectors.
- **action_dispatcher.py**: ``ActionDispatcher``, which records each action in
  the tenant store, performs it through py-cord and notifies the logs channel.
"""
