from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Union

Instant = Union[datetime, str, None]


def parse_instant(value: Instant) -> Optional[datetime]:
    """
    Accept a datetime or an ISO string; blank/None means the point is unset.

    Results are naive UTC: values with an offset are converted to UTC and the
    offset dropped, values without one are taken as already in UTC. Mixed inputs
    ("...Z" next to a plain datetime-local string) can then be subtracted.
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        # fromisoformat on older interpreters does not take a trailing Z
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        value = datetime.fromisoformat(value)
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def minutes_between(start: Instant, end: Instant) -> float:
    """
    (end - start) in minutes.

    Returns 0 when either endpoint is unset. The sign is kept: a negative value
    means end comes before start and callers decide what that means.
    """
    a = parse_instant(start)
    b = parse_instant(end)
    if a is None or b is None:
        return 0.0
    return (b - a).total_seconds() / 60
