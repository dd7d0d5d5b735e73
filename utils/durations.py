"""
Duration strings used in configuration, e.g. "15m" or "7d".

Format: a positive integer magnitude immediately followed by one unit suffix.
Units: s (seconds), m (minutes), h (hours), d (days). Anything else is rejected.
"""
from __future__ import annotations

import re
from datetime import timedelta

UNIT_SECONDS = {
    "s": 1,
    "m": 60,
    "h": 60 * 60,
    "d": 24 * 60 * 60,
}

_DURATION_RE = re.compile(r"^(\d+)([a-zA-Z]+)$")


def parse_duration(text: str) -> timedelta:
    """Parse "<int><unit>" into a timedelta. Raises ValueError on bad input."""
    if not isinstance(text, str):
        raise ValueError(f"Invalid duration: {text!r}")
    match = _DURATION_RE.match(text.strip())
    if not match:
        raise ValueError(f"Invalid duration: {text!r}")
    magnitude, unit = match.groups()
    if unit not in UNIT_SECONDS:
        raise ValueError(f"Unknown duration unit {unit!r} in {text!r}")
    seconds = int(magnitude) * UNIT_SECONDS[unit]
    if seconds <= 0:
        raise ValueError(f"Duration must be positive: {text!r}")
    return timedelta(seconds=seconds)


def duration_seconds(text: str) -> int:
    return int(parse_duration(text).total_seconds())
