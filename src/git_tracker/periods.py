from __future__ import annotations

import dataclasses
import datetime as dt


@dataclasses.dataclass(frozen=True)
class DateRange:
    start: dt.date  # inclusive
    end: dt.date  # inclusive, through the last microsecond of the day

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"Start date cannot be after end date: {self.start.isoformat()} > {self.end.isoformat()}")

    @property
    def start_iso(self) -> str:
        return self.start.isoformat()

    @property
    def end_iso(self) -> str:
        return self.end.isoformat()

    def contains(self, when: dt.datetime) -> bool:
        # Wall-clock comparison in the timestamp's own offset, not the absolute
        # instant: 01:00+05:00 on the start day is in range even though it is
        # earlier than 23:00Z the day before.
        local = when.replace(tzinfo=None)
        start = dt.datetime.combine(self.start, dt.time.min)
        end = dt.datetime.combine(self.end, dt.time.max)
        return start <= local <= end


def parse_day(value: str) -> dt.date:
    s = (value or "").strip()
    try:
        return dt.date.fromisoformat(s[:10])
    except ValueError:
        raise ValueError(f"Invalid date: {value!r} (expected YYYY-MM-DD)") from None


def parse_date_range(since: str | None, until: str | None) -> DateRange | None:
    """
    Build an inclusive range from `YYYY-MM-DD` strings.

    Both ends missing means no range. One missing end is left open by using
    the earliest/latest representable date.
    """
    since = (since or "").strip()
    until = (until or "").strip()
    if not since and not until:
        return None
    start = parse_day(since) if since else dt.date.min
    end = parse_day(until) if until else dt.date.max
    return DateRange(start=start, end=end)


def parse_timestamp(value: str | None) -> dt.datetime | None:
    s = (value or "").strip()
    if not s:
        return None
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        d = dt.datetime.fromisoformat(s)
    except ValueError:
        return None
    if d.tzinfo is None:
        d = d.replace(tzinfo=dt.timezone.utc)
    return d


def newest_first_key(value: str | None) -> tuple[int, float]:
    """Sort key: dated values newest first, undated or unparseable values last."""
    d = parse_timestamp(value)
    if d is None:
        return (1, 0.0)
    return (0, -d.timestamp())


def format_local(value: str | None) -> str:
    d = parse_timestamp(value)
    if d is None:
        return ""
    return d.strftime("%Y-%m-%d %H:%M:%S")
