import re
from typing import Optional

# "<number><unit>" terms, e.g. "1h 30m", "90 min", "2hr15m"
_TERM_REGEX = re.compile(
    r'(\d+)\s*(hours|hour|hrs|hr|h|minutes|minute|mins|min|m)(?![a-z])',
    re.IGNORECASE,
)
_BARE_NUMBER_REGEX = re.compile(r'\d+')
_HOUR_UNITS = {"h", "hr", "hrs", "hour", "hours"}


def parse_duration(text) -> Optional[int]:
    """
    Parses free-form snooze text into a whole number of minutes.

    Unit-bearing terms are summed (hours count as 60 minutes). Without any
    unit the first bare integer is taken as minutes. Returns None when
    nothing parses or the total is not positive.
    """
    if not isinstance(text, str) or not text.strip():
        return None

    total = 0
    matched = False
    try:
        for number, unit in _TERM_REGEX.findall(text):
            matched = True
            value = int(number)
            total += value * 60 if unit.lower() in _HOUR_UNITS else value

        if not matched:
            bare = _BARE_NUMBER_REGEX.search(text)
            if not bare:
                return None
            total = int(bare.group(0))
    except (ValueError, OverflowError):
        # Digit runs past the int conversion limit
        return None

    return total if total > 0 else None


def format_duration(minutes: int) -> str:
    """Short label for a duration: "15m", "1h", "1.5h"."""
    if minutes >= 60:
        return f"{round(minutes / 60, 1):g}h"
    return f"{minutes}m"
