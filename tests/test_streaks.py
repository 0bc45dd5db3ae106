from datetime import date, datetime, timedelta

from prepbolt.core.streaks import StreakState, advance_streak

TODAY = date(2024, 3, 15)


def test_first_completion_starts_streak():
    state = advance_streak(TODAY, StreakState())
    assert (state.current_streak, state.longest_streak) == (1, 1)
    assert state.last_active_date == TODAY


def test_consecutive_day_increments():
    before = StreakState(5, 5, TODAY - timedelta(days=1))
    after = advance_streak(TODAY, before)
    assert (after.current_streak, after.longest_streak) == (6, 6)


def test_consecutive_day_keeps_higher_longest():
    after = advance_streak(TODAY, StreakState(5, 9, TODAY - timedelta(days=1)))
    assert (after.current_streak, after.longest_streak) == (6, 9)


def test_same_day_leaves_counters_unchanged():
    once = advance_streak(TODAY, StreakState(5, 5, TODAY - timedelta(days=1)))
    twice = advance_streak(TODAY, once)
    assert twice == once


def test_gap_resets_current_only():
    after = advance_streak(TODAY, StreakState(10, 10, TODAY - timedelta(days=3)))
    assert (after.current_streak, after.longest_streak) == (1, 10)
    assert after.last_active_date == TODAY


def test_stored_day_in_the_future_is_kept():
    ahead = StreakState(4, 6, TODAY + timedelta(days=1))
    after = advance_streak(TODAY, ahead)
    assert after == ahead
    assert after.last_active_date == TODAY + timedelta(days=1)


def test_longest_never_decreases():
    state = StreakState()
    longest = 0
    day = TODAY
    for gap in [0, 1, 1, 0, 4, 1, 2, 1, 1, 1]:
        day = day + timedelta(days=gap)
        state = advance_streak(day, state)
        assert state.longest_streak >= longest
        longest = state.longest_streak


def test_document_round_trip_uses_midnight():
    state = StreakState(3, 7, TODAY)
    doc = state.to_document()

    assert doc == {"currentStreak": 3, "longestStreak": 7, "lastActiveDate": datetime(2024, 3, 15)}
    assert StreakState.from_document(doc) == state


def test_from_document_accepts_missing_streak():
    assert StreakState.from_document(None) == StreakState()
    assert StreakState.from_document({"lastActiveDate": datetime(2024, 3, 14, 18, 30)}).last_active_date == date(2024, 3, 14)
