"""
Time-of-day conversion between two IANA zones.

The upstream feed publishes "not before" times as a bare ``HH:MM`` in the
tournament's local time. Viewers want the same moment on their own clock,
so the time is anchored to the tournament-local calendar date of a
reference instant and re-rendered in the viewer's zone.
"""
from __future__ import annotations

import re
from datetime import datetime, time, timezone
from typing import Any, Optional
from zoneinfo import ZoneInfo

HHMM_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")


def parse_time_of_day(value: Any) -> Optional[time]:
    """Parse a 24-hour ``HH:MM`` string. Returns None for anything else."""
    if not isinstance(value, str):
        return None
    m = HHMM_RE.match(value)
    if not m:
        return None
    try:
        return time(int(m.group(1)), int(m.group(2)))
    except ValueError:
        return None


def convert_time_of_day(
    value: Any,
    reference: datetime,
    source_tz: ZoneInfo,
    target_tz: ZoneInfo,
) -> Optional[str]:
    """
    Convert a ``HH:MM`` wall time in ``source_tz`` into ``HH:MM`` in ``target_tz``.

    Args:
        value: The time-of-day string from the feed.
        reference: The instant whose calendar date (as observed in
            ``source_tz``) anchors the time. Naive values are taken as UTC.
        source_tz: Zone the time-of-day is expressed in.
        target_tz: Zone to render the result in.

    Returns:
        The converted ``HH:MM`` string, or None if ``value`` does not parse.
    """
    tod = parse_time_of_day(value)
    if tod is None:
        return None
    if reference.tzinfo is None:
        reference = reference.replace(tzinfo=timezone.utc)

    local_date = reference.astimezone(source_tz).date()
    local = datetime.combine(local_date, tod, tzinfo=source_tz)
    return local.astimezone(target_tz).strftime("%H:%M")


class TimeConverter:
    """Binds a source/target zone pair so callers only pass value and reference."""

    def __init__(self, source_tz: ZoneInfo, target_tz: ZoneInfo) -> None:
        self.source_tz = source_tz
        self.target_tz = target_tz

    def __call__(self, value: Any, reference: datetime) -> Optional[str]:
        return convert_time_of_day(value, reference, self.source_tz, self.target_tz)

    def __repr__(self) -> str:
        return f"TimeConverter({self.source_tz.key!r} -> {self.target_tz.key!r})"
