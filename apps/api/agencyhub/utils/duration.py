"""Free-text duration parsing and formatting for time entries.

Accepted forms (case-insensitive, surrounding whitespace ignored):
    "1h30m", "1h 30m", "1:30"   -> 90
    "2h"                        -> 120
    "45", "45m"                 -> 45   (a bare integer is minutes)
    "1.5", "1.5h"               -> 90   (decimal hours, half rounds up)

Anything else, and any result that is not positive, parses to None.
"""

import re
from decimal import ROUND_HALF_UP, Decimal

# Checked in order; the first match wins.
_HOURS_AND_MINUTES = re.compile(r"^(\d+)\s*[h:]\s*(\d+)\s*m?$")
_WHOLE_HOURS = re.compile(r"^(\d+)\s*h$")
_MINUTES = re.compile(r"^(\d+)\s*m?$")
_DECIMAL_HOURS = re.compile(r"^(\d+(\.\d+)?)\s*h?$")


def parse_duration(text: str | None) -> int | None:
    """Parse a duration into whole minutes, or None if invalid."""
    if text is None:
        return None
    value = text.strip().lower()
    if not value:
        return None

    minutes: int | None = None
    if match := _HOURS_AND_MINUTES.match(value):
        minutes = int(match.group(1)) * 60 + int(match.group(2))
    elif match := _WHOLE_HOURS.match(value):
        minutes = int(match.group(1)) * 60
    elif match := _MINUTES.match(value):
        minutes = int(match.group(1))
    elif match := _DECIMAL_HOURS.match(value):
        hours = Decimal(match.group(1))
        minutes = int((hours * 60).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    if minutes is None or minutes <= 0:
        return None
    return minutes


def format_duration(minutes: int) -> str:
    """Render minutes as "45m", "2h" or "1h 30m"."""
    if minutes < 60:
        return f"{minutes}m"
    hours, rest = divmod(minutes, 60)
    if rest == 0:
        return f"{hours}h"
    return f"{hours}h {rest}m"
