"""Tests for the spam, raid and content heuristics."""

import pytest

from guildguard.datatypes.tenant import GuildState
from guildguard.moderation.heuristics import (
    SpamDetector,
    check_raid,
    contains_invite,
    is_caps_abuse,
    is_mention_abuse,
)

T0 = 1_700_000_000_000


def test_fifth_identical_message_triggers():
    detector = SpamDetector()
    results = [detector.check(1, 2, "buy now", T0 + i * 200) for i in range(5)]
    assert results == [False, False, False, False, True]


def test_varied_content_never_triggers():
    detector = SpamDetector()
    assert not any(detector.check(1, 2, f"message {i}", T0 + i * 100) for i in range(20))


def test_old_entries_fall_out_of_window():
    detector = SpamDetector()
    for i in range(4):
        detector.check(1, 2, "hi", T0 + i)
    # exactly one window later the first four no longer count
    assert detector.check(1, 2, "hi", T0 + 5000 + 3) is False


def test_windows_are_isolated_per_guild():
    detector = SpamDetector()
    for i in range(3):
        detector.check(1, 2, "same", T0 + i)
    for i in range(3):
        assert detector.check(9, 2, "same", T0 + 10 + i) is False
    assert len(detector) == 2


def test_reset_and_prune():
    detector = SpamDetector()
    for i in range(4):
        detector.check(1, 2, "x", T0 + i)
    detector.reset(1, 2)
    assert detector.check(1, 2, "x", T0 + 10) is False

    assert detector.prune(T0 + 10 + 5000) == 1
    assert len(detector) == 0


def test_fifth_join_within_window_triggers_raid():
    state = GuildState()
    results = [check_raid(state, 100 + i, T0 + i * 1000) for i in range(5)]
    assert results == [False, False, False, False, True]


def test_spaced_joins_do_not_trigger_and_are_pruned():
    state = GuildState()
    results = [check_raid(state, 100 + i, T0 + i * 3000) for i in range(10)]
    assert not any(results)
    assert len(state.recent_join_timestamps) <= 4


def test_rejoining_member_counts_once():
    state = GuildState()
    assert not any(check_raid(state, 100, T0 + i) for i in range(10))
    assert state.recent_join_timestamps == {"100": T0 + 9}


@pytest.mark.parametrize(
    "content, expected",
    [
        ("THIS IS SHOUTING", True),
        ("SHORT", False),
        ("This Is Not Shouting At All", False),
        ("HELLO WORLD AGAIN ok", True),
        ("1234567890!!!!", False),
    ],
)
def test_caps_abuse(content, expected):
    assert is_caps_abuse(content) is expected


@pytest.mark.parametrize(
    "content, expected",
    [
        ("join discord.gg/abc123", True),
        ("https://discord.com/invite/xyz", True),
        ("https://discordapp.com/invite/xyz", True),
        ("I love discord", False),
        ("see https://example.com/invite/x", False),
    ],
)
def test_invite_detection(content, expected):
    assert contains_invite(content) is expected


def test_mention_abuse_counts_users_and_roles():
    assert is_mention_abuse(3, 2) is True
    assert is_mention_abuse(4, 0) is False
    assert is_mention_abuse(0, 0, limit=1) is False
