"""
Relative posted-date normalization.

Job boards print posting age as "2 days ago", "3 hours ago", "30+ days ago"
and so on. normalize_posted_date turns the first such phrase into an absolute
date relative to a reference instant:

    day, week, month  ->  ISO date      (2026-10-14)
    hour, minute      ->  ISO datetime  (2026-10-16T09:00:00+00:00)

Anything it does not recognize comes back unchanged. Months are 30 days, so
the result is approximate and should be treated as advisory.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

RELATIVE_DATE_PATTERN = re.compile(
    r"(\d+)\s*\+?\s*(minutes?|mins?|hours?|hrs?|days?|weeks?|months?)\b",
    re.IGNORECASE,
)

UNIT_DELTAS = {
    "minute": timedelta(minutes=1),
    "min": timedelta(minutes=1),
    "hour": timedelta(hours=1),
    "hr": timedelta(hours=1),
    "day": timedelta(days=1),
    "week": timedelta(weeks=1),
    "month": timedelta(days=30),
}

SUB_DAY_UNITS = {"minute", "min", "hour", "hr"}


def _unit_key(unit: str) -> str:
    unit = unit.lower()
    return unit[:-1] if unit.endswith("s") else unit


def normalize_posted_date(text: Optional[str], now: Optional[datetime] = None) -> Optional[str]:
    """
    Convert relative posted-date text into an absolute date string.

    Args:
        text: Scraped posted-date text, e.g. "Posted 2 days ago"
        now: Reference instant (defaults to the current UTC time)

    Returns:
        ISO date for day/week/month units, ISO datetime for hour/minute
        units, the stripped input when nothing matches, or None for None.
    """
    if text is None:
        return None

    match = RELATIVE_DATE_PATTERN.search(text)
    if not match:
        return text.strip()

    now = now or datetime.now(timezone.utc)
    amount = int(match.group(1))
    unit = _unit_key(match.group(2))
    posted = now - UNIT_DELTAS[unit] * amount

    if unit in SUB_DAY_UNITS:
        return posted.replace(microsecond=0).isoformat()
    return posted.date().isoformat()
