"""
Validation of moderator input and time helpers.

Durations use the literal grammar ``^\\d+[dhm]$`` (days, hours, minutes) and
are converted to milliseconds. Everything else is rejected so a typo never
turns into an unintended sanction length.
"""

from __future__ import annotations

import re
import time
from datetime import datetime, timezone
from typing import Optional

from guildguard.datatypes.tenant import AUTO_MOD_FLAGS, MAX_PREFIX_LENGTH

DURATION_PATTERN = re.compile(r"^(\d+)([dhm])$")

_UNIT_MS = {
    "d": 24 * 60 * 60 * 1000,
    "h": 60 * 60 * 1000,
    "m": 60 * 1000,
}

PURGE_MIN = 1
PURGE_MAX = 100

# Public setting names as typed by moderators -> stored flag keys
SETTING_NAMES = {
    "antiSpam": "anti_spam",
    "antiCaps": "anti_caps",
    "antiInvites": "anti_invites",
    "antiMention": "anti_mention",
    "antiRaid": "anti_raid",
}


def now_ms() -> int:
    """Current wall-clock time as epoch milliseconds."""
    return int(time.time() * 1000)


def iso_timestamp(epoch_ms: Optional[int] = None) -> str:
    """ISO-8601 UTC timestamp for ``epoch_ms`` (now when omitted)."""
    if epoch_ms is None:
        epoch_ms = now_ms()
    return datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc).isoformat()


def is_duration_literal(literal: Optional[str]) -> bool:
    return bool(literal) and DURATION_PATTERN.match(literal) is not None


def parse_duration(literal: Optional[str]) -> Optional[int]:
    """
    Convert a duration literal such as ``30m``, ``2h`` or ``1d`` to milliseconds.

    Returns:
        Milliseconds, or ``None`` for anything not matching ``^\\d+[dhm]$``
        and for zero-length durations.
    """
    if not literal:
        return None
    match = DURATION_PATTERN.match(literal)
    if match is None:
        return None
    value = int(match.group(1)) * _UNIT_MS[match.group(2)]
    return value or None


def format_interval(interval_ms: int) -> str:
    """Short label for an auto-purge interval: minutes below one hour, else hours."""
    minutes = interval_ms // 60000
    if minutes < 60:
        return f"{minutes}m"
    return f"{interval_ms // 3600000}h"


def is_valid_prefix(prefix: Optional[str]) -> bool:
    return bool(prefix) and len(prefix) <= MAX_PREFIX_LENGTH and not prefix.isspace()


def parse_purge_amount(raw: Optional[str]) -> Optional[int]:
    """Return the purge count if ``raw`` is an integer in 1..100, else None."""
    if raw is None:
        return None
    try:
        amount = int(raw)
    except ValueError:
        return None
    if amount < PURGE_MIN or amount > PURGE_MAX:
        return None
    return amount


def resolve_setting_name(name: Optional[str]) -> Optional[str]:
    """Map ``antiRaid`` (or ``anti_raid``) to the stored flag key."""
    if not name:
        return None
    if name in SETTING_NAMES:
        return SETTING_NAMES[name]
    if name in AUTO_MOD_FLAGS:
        return name
    return None


def setting_display_name(flag: str) -> str:
    """Inverse of :func:`resolve_setting_name` for replies."""
    for display, key in SETTING_NAMES.items():
        if key == flag:
            return display
    return flag
