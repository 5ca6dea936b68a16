"""
Time-windowed heuristics that decide whether auto-moderation should fire.

- :class:`SpamDetector`: repeated identical messages from one member of one
  guild inside a short trailing window. The windows live in memory only.
- :func:`check_raid`: burst of distinct joiners in one guild, tracked in the
  guild's ``recent_join_timestamps``.
- Content checks (:func:`is_caps_abuse`, :func:`contains_invite`,
  :func:`is_mention_abuse`) for single messages.

None of these touch the platform; callers turn a positive result into a
:class:`~guildguard.datatypes.action_datatypes.ModerationAction`.
"""

from __future__ import annotations

import re
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, Tuple

from guildguard.datatypes.tenant import GuildState

SPAM_WINDOW_MS = 5000
SPAM_DUPLICATE_THRESHOLD = 5
RAID_WINDOW_MS = 10000
RAID_JOIN_THRESHOLD = 5

CAPS_MIN_LETTERS = 8
CAPS_RATIO = 0.7
MENTION_LIMIT = 5

INVITE_PATTERN = re.compile(
    r"(?:https?://)?(?:www\.)?(?:discord\.gg|discord(?:app)?\.com/invite)/[\w-]+",
    re.IGNORECASE,
)


@dataclass(slots=True)
class WindowEntry:
    content: str
    timestamp: int


class SpamDetector:
    """
    Sliding-window duplicate-message detector.

    Windows are keyed by ``(guild_id, user_id)`` so activity in one guild never
    counts toward a trigger in another.
    """

    def __init__(self, window_ms: int = SPAM_WINDOW_MS, threshold: int = SPAM_DUPLICATE_THRESHOLD) -> None:
        self.window_ms = window_ms
        self.threshold = threshold
        self._windows: Dict[Tuple[str, str], Deque[WindowEntry]] = {}

    def check(self, guild_id, user_id, content: str, now: int) -> bool:
        """
        Record a message and report whether it completes a spam burst.

        The message is appended first, entries with ``now - timestamp >= window``
        are dropped, then entries equal to ``content`` are counted.
        """
        key = (str(guild_id), str(user_id))
        window = self._windows.setdefault(key, deque())
        window.append(WindowEntry(content=content, timestamp=now))

        while window and now - window[0].timestamp >= self.window_ms:
            window.popleft()

        duplicates = sum(1 for entry in window if entry.content == content)
        return duplicates >= self.threshold

    def reset(self, guild_id, user_id) -> None:
        """Forget the window of one member, e.g. after they were muted."""
        self._windows.pop((str(guild_id), str(user_id)), None)

    def prune(self, now: int) -> int:
        """Drop windows whose newest entry is outside the window. Returns the number removed."""
        stale = [
            key for key, window in self._windows.items()
            if not window or now - window[-1].timestamp >= self.window_ms
        ]
        for key in stale:
            del self._windows[key]
        return len(stale)

    def __len__(self) -> int:
        return len(self._windows)


def check_raid(
    state: GuildState,
    user_id,
    now: int,
    window_ms: int = RAID_WINDOW_MS,
    threshold: int = RAID_JOIN_THRESHOLD,
) -> bool:
    """
    Record a join and report whether the guild is seeing a join burst.

    The joiner's timestamp overwrites any earlier one, so a member who
    rejoins counts once. Timestamps outside the window are removed while
    counting since they can never count again.
    """
    joins = state.recent_join_timestamps
    joins[str(user_id)] = now

    recent = 0
    for joined_user, joined_at in list(joins.items()):
        if now - joined_at < window_ms:
            recent += 1
        else:
            del joins[joined_user]
    return recent >= threshold


def is_caps_abuse(content: str, min_letters: int = CAPS_MIN_LETTERS, ratio: float = CAPS_RATIO) -> bool:
    letters = [ch for ch in content if ch.isalpha()]
    if len(letters) < min_letters:
        return False
    upper = sum(1 for ch in letters if ch.isupper())
    return upper / len(letters) >= ratio


def contains_invite(content: str) -> bool:
    return INVITE_PATTERN.search(content) is not None


def is_mention_abuse(user_mentions: int, role_mentions: int, limit: int = MENTION_LIMIT) -> bool:
    """True when a message pings at least ``limit`` users and roles combined."""
    return user_mentions + role_mentions >= limit
