# prepbolt/core/spaced_repetition.py
import math
from datetime import datetime, timedelta
from typing import Optional, Tuple

from .config import config

MIN_RATING = 1
MAX_RATING = 5
DEFAULT_RATING = 3


def clamp_rating(rating: Optional[int]) -> int:
    if rating is None:
        return DEFAULT_RATING
    return min(max(MIN_RATING, int(rating)), MAX_RATING)


def next_repetition_level(level: int, rating: int) -> int:
    # ratings below 3 mean the card was hard: start over
    if rating < 3:
        return 0
    return level + 1


def review_interval_days(level: int, rating: int, max_days: Optional[int] = None) -> int:
    """Simplified SM-2 interval for a card at ``level`` rated ``rating``, capped at ``max_days``."""
    if max_days is None:
        max_days = config.MAX_REVIEW_INTERVAL_DAYS
    if level == 0:
        return min(1, max_days)
    if level == 1:
        return min(3, max_days)

    ease_factor = 1.3 + (rating - 1) * 0.3
    # compare in log space; ease ** level overflows a float long before level stops growing
    if (level - 1) * math.log(ease_factor) + math.log(5) >= math.log(max_days):
        return max_days
    # half-up rounding: 12.5 days becomes 13
    return min(math.floor(ease_factor ** (level - 1) * 5 + 0.5), max_days)


def schedule_review(level: int, rating: Optional[int],
                    now: Optional[datetime] = None) -> Tuple[int, datetime]:
    """Return the new repetition level and the next review datetime."""
    now = now or datetime.now()
    rating = clamp_rating(rating)
    new_level = next_repetition_level(level, rating)
    return new_level, now + timedelta(days=review_interval_days(new_level, rating))
