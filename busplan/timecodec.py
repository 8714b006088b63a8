"""Conversions between ``HH:MM`` strings and minutes since midnight."""
from __future__ import annotations

import re

from busplan.errors import FormatError

MINUTES_PER_DAY = 24 * 60

_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def to_minutes(hhmm: str) -> int:
    """Parse ``HH:MM`` into minutes since midnight."""
    match = _HHMM_RE.match(str(hhmm).strip()) if hhmm is not None else None
    if not match:
        raise FormatError(f"Invalid time of day: {hhmm!r}")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise FormatError(f"Time of day out of range: {hhmm!r}")
    return hours * 60 + minutes


def from_minutes(total: int) -> str:
    """Format minutes since midnight as ``HH:MM``, wrapping around 24h."""
    mins = int(total) % MINUTES_PER_DAY
    return f"{mins // 60:02d}:{mins % 60:02d}"
