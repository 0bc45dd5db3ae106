# prepbolt/core/streaks.py
"""
Daily-activity streak tracking.

``advance_streak`` is a pure function of (today, last active day, current,
longest). Callers pass calendar dates, never datetimes, so the day gap is
always a whole number of days.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Optional, Union


@dataclass(frozen=True)
class StreakState:
    current_streak: int = 0
    longest_streak: int = 0
    last_active_date: Optional[date] = None

    @classmethod
    def from_document(cls, doc: Optional[Dict[str, Any]]) -> "StreakState":
        doc = doc or {}
        return cls(
            current_streak=int(doc.get("currentStreak") or 0),
            longest_streak=int(doc.get("longestStreak") or 0),
            last_active_date=to_date(doc.get("lastActiveDate")),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "lastActiveDate": start_of_day(self.last_active_date) if self.last_active_date else None,
        }


def to_date(value: Union[date, datetime, None]) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    return value


def start_of_day(day: date) -> datetime:
    """Midnight of ``day`` as a naive datetime, the form stored in MongoDB."""
    return datetime(day.year, day.month, day.day)


def advance_streak(today: date, state: StreakState) -> StreakState:
    """Apply one completion event on ``today``.

    - never active: streak starts at 1
    - active yesterday: current + 1, longest follows it up
    - gap of more than a day: current resets to 1, longest kept
    - already active today: counters unchanged
    - stored day later than today (clock skew): state returned as is
    """
    last = state.last_active_date

    if last is None:
        current, longest = 1, max(1, state.longest_streak)
    else:
        day_diff = (today - last).days
        if day_diff < 0:
            return state
        if day_diff == 1:
            current = state.current_streak + 1
            longest = max(state.longest_streak, current)
        elif day_diff > 1:
            current, longest = 1, state.longest_streak
        else:
            current, longest = state.current_streak, state.longest_streak

    return StreakState(current_streak=current, longest_streak=longest, last_active_date=today)
