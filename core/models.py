from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from enum import Enum
from typing import Optional

from core.errors import InvariantViolation


class StatusKind(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    UNKNOWN = "unknown"


class Mode(str, Enum):
    """How a run with no terminating sample is resolved."""
    HISTORICAL = "historical"  # drop it
    LIVE = "live"  # close it at the current time


def parse_ts(ts: str, tz: Optional[tzinfo] = None) -> datetime:
    """Parse an ISO 8601 string into an aware datetime in ``tz`` (default UTC).

    Strings without an offset are taken as already being in ``tz``.
    """
    tz = tz or timezone.utc
    try:
        parsed = datetime.fromisoformat(ts.replace("Z", "+00:00"))
    except (AttributeError, ValueError) as e:
        raise InvariantViolation(f"Unparsable timestamp: {ts!r}") from e
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=tz)
    return parsed.astimezone(tz)


def instant(ts: datetime) -> datetime:
    """Sort/compare key: aware values as UTC, naive ones unchanged.

    Aware datetimes sharing a tzinfo compare on wall-clock time, which is
    wrong inside a repeated DST hour.
    """
    if ts.tzinfo is None:
        return ts
    return ts.astimezone(timezone.utc)


@dataclass(frozen=True)
class StatusSample:
    """One probe reading."""
    status: StatusKind
    timestamp: datetime

    @classmethod
    def from_record(cls, status: str, timestamp: str, tz: Optional[tzinfo] = None) -> "StatusSample":
        try:
            kind = StatusKind(status)
        except ValueError as e:
            raise InvariantViolation(f"Unknown status token: {status!r}") from e
        return cls(kind, parse_ts(timestamp, tz))


@dataclass(frozen=True)
class StatusInterval:
    """Status held constant from start to end."""
    status: StatusKind
    start: datetime
    end: datetime

    def __post_init__(self):
        if instant(self.end) < instant(self.start):
            raise InvariantViolation(
                f"Interval ends before it starts: {self.start.isoformat()} > {self.end.isoformat()}"
            )

    @property
    def minutes(self) -> int:
        return minutes_between(self.start, self.end)


@dataclass
class CategoryTotals:
    online: int = 0
    offline: int = 0
    unknown: int = 0

    def add(self, status: StatusKind, minutes: int) -> None:
        setattr(self, status.value, getattr(self, status.value) + minutes)


# year -> (date -> offline minutes), both levels in ascending order
CalendarMap = dict[str, dict[str, int]]


@dataclass
class UptimeReport:
    totals: CategoryTotals
    calendar: CalendarMap
    intervals: list[StatusInterval] = field(default_factory=list)


def minutes_between(start: datetime, end: datetime) -> int:
    """Elapsed whole minutes from start to end, sub-minute remainder dropped."""
    return int((instant(end) - instant(start)).total_seconds() // 60)
