"""Reference clock helpers (fixed UTC+8, no daylight saving)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

REFERENCE_TZ = timezone(timedelta(hours=8))


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


@dataclass
class FixedClock:
    """Clock that returns a settable instant; used by tests and replays."""

    current: datetime

    def now(self) -> datetime:
        return self.current


def to_reference(value: datetime) -> datetime:
    # naive values are already reference wall time (legacy KV format)
    if value.tzinfo is None:
        return value.replace(tzinfo=REFERENCE_TZ)
    return value.astimezone(REFERENCE_TZ)


def reference_day(value: datetime) -> str:
    return to_reference(value).date().isoformat()


def reference_hour(value: datetime) -> int:
    return to_reference(value).hour


def format_reference_time(value: datetime) -> str:
    return to_reference(value).strftime("%Y-%m-%d %H:%M:%S")


def parse_timestamp(value: str) -> datetime:
    """Parse a stored timestamp into an aware datetime at the reference offset."""

    return to_reference(datetime.fromisoformat(value.strip()))
