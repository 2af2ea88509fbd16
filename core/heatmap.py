from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo
from typing import Iterable, Optional

from core.models import (
    CalendarMap,
    CategoryTotals,
    StatusInterval,
    StatusKind,
    minutes_between,
)


def _calendar_skeleton(first_year: int, last_year: int) -> CalendarMap:
    """Every date from Jan 1 of first_year to Dec 31 of last_year, at zero."""
    calendar: CalendarMap = {}
    day = date(first_year, 1, 1)
    end = date(last_year, 12, 31)
    while day <= end:
        calendar.setdefault(f"{day.year:04d}", {})[day.isoformat()] = 0
        day += timedelta(days=1)
    return calendar


def _add(calendar: CalendarMap, day: date, minutes: int) -> None:
    calendar[f"{day.year:04d}"][day.isoformat()] += minutes


def _local_end(interval: StatusInterval) -> datetime:
    tz = interval.start.tzinfo
    return interval.end.astimezone(tz) if tz is not None else interval.end


def _midnight(day: date, tz: Optional[tzinfo]) -> datetime:
    return datetime.combine(day, time(), tzinfo=tz)


def _distribute(calendar: CalendarMap, interval: StatusInterval) -> None:
    """Spread an interval's minutes over the calendar dates it touches.

    Dates are local to the start's timezone; a whole day holds its real
    length (1380 or 1500 minutes on DST change days).
    """
    tz = interval.start.tzinfo
    start = interval.start
    end = _local_end(interval)

    total = interval.minutes
    first_day = start.date()
    last_day = end.date()

    if first_day == last_day:
        _add(calendar, first_day, total)
        return

    head = minutes_between(start, _midnight(first_day + timedelta(days=1), tz))
    _add(calendar, first_day, head)
    spent = head

    day = first_day + timedelta(days=1)
    while day < last_day:
        length = minutes_between(_midnight(day, tz), _midnight(day + timedelta(days=1), tz))
        _add(calendar, day, length)
        spent += length
        day += timedelta(days=1)
    # remainder rather than a separate truncation, so the shares sum to the total
    _add(calendar, last_day, total - spent)


def aggregate(
    intervals: Iterable[StatusInterval],
    span: Optional[tuple[datetime, datetime]] = None,
) -> tuple[CategoryTotals, CalendarMap]:
    """Compute per-status totals and the offline-minutes calendar.

    ``span`` is the (first, last) sample timestamp of the history the
    intervals came from; its years are always part of the calendar even
    when no interval survived.
    """
    intervals = list(intervals)
    totals = CategoryTotals()

    years = [i.start.year for i in intervals] + [_local_end(i).year for i in intervals]
    if span is not None:
        years += [span[0].year, span[1].year]
    if not years:
        return totals, {}

    calendar = _calendar_skeleton(min(years), max(years))
    for interval in intervals:
        totals.add(interval.status, interval.minutes)
        if interval.status is StatusKind.OFFLINE:
            _distribute(calendar, interval)

    return totals, calendar


def calendar_to_wire(calendar: CalendarMap) -> list[list]:
    """Serialize as ``[[year, [[date, minutes], ...]], ...]`` in ascending order."""
    return [
        [year, [[day, calendar[year][day]] for day in sorted(calendar[year])]]
        for year in sorted(calendar)
    ]
