"""
Human-readable durations for ``--freshness``.

Accepts humantime-style spans: ``1month``, ``2 weeks``, ``30d``,
``12h 30m``, ``90s``. Units are case-sensitive where they collide:
``m`` is minutes, ``M`` is months.
"""

from __future__ import annotations

import re
from datetime import timedelta

_MINUTE = 60
_HOUR = 60 * _MINUTE
_DAY = 24 * _HOUR
_MONTH = 2_630_016      # 30.44 days, as humantime counts it
_YEAR = 31_557_600      # 365.25 days

_UNITS: dict[str, int] = {
    **dict.fromkeys(("s", "sec", "secs", "second", "seconds"), 1),
    **dict.fromkeys(("m", "min", "mins", "minute", "minutes"), _MINUTE),
    **dict.fromkeys(("h", "hr", "hrs", "hour", "hours"), _HOUR),
    **dict.fromkeys(("d", "day", "days"), _DAY),
    **dict.fromkeys(("w", "week", "weeks"), 7 * _DAY),
    **dict.fromkeys(("M", "month", "months"), _MONTH),
    **dict.fromkeys(("y", "year", "years"), _YEAR),
}

_TERM = re.compile(r"\s*(\d+)\s*([A-Za-z]+)")


def parse_duration(text: str) -> timedelta:
    """Parse a duration string.

    Raises:
        ValueError: If the text is empty, has an unknown unit, or trailing junk.
    """
    pos = 0
    total = 0
    terms = 0
    stripped = text.strip()

    while pos < len(stripped):
        match = _TERM.match(stripped, pos)
        if match is None:
            raise ValueError(f"Invalid duration '{text}' at '{stripped[pos:]}'")
        amount, unit = match.groups()
        if unit not in _UNITS:
            raise ValueError(f"Unknown duration unit '{unit}' in '{text}'")
        total += int(amount) * _UNITS[unit]
        terms += 1
        pos = match.end()

    if terms == 0:
        raise ValueError("Duration must not be empty")
    return timedelta(seconds=total)
