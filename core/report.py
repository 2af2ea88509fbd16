from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Iterable, Optional

from core.heatmap import aggregate, calendar_to_wire
from core.intervals import build_intervals
from core.models import Mode, StatusSample, UptimeReport, instant


def build_report(
    samples: Iterable[StatusSample],
    mode: Mode = Mode.HISTORICAL,
    now: Optional[datetime] = None,
) -> UptimeReport:
    """Recompute totals and the offline calendar from a full sample history."""
    samples = list(samples)
    intervals = build_intervals(samples, mode, now)

    span = None
    if samples:
        stamps = [s.timestamp for s in samples]
        span = (min(stamps, key=instant), max(stamps, key=instant))

    totals, calendar = aggregate(intervals, span)
    return UptimeReport(totals=totals, calendar=calendar, intervals=intervals)


def format_minutes(minutes: int) -> str:
    """Humanize a minute count as ``"{Y}Y {M}M {d}d {h}h {m}m"``.

    Days roll into months using the average Gregorian month
    (146097 days per 4800 months).
    """
    if minutes < 0:
        raise ValueError(f"minutes must be non-negative, got {minutes}")
    minutes = int(minutes)

    hours, mins = divmod(minutes, 60)
    days, hours = divmod(hours, 24)
    months = days * 4800 // 146097
    days -= -(-months * 146097 // 4800)  # ceil
    years, months = divmod(months, 12)
    return f"{years}Y {months}M {days}d {hours}h {mins}m"


def report_to_dict(report: UptimeReport) -> dict:
    counts = asdict(report.totals)
    return {
        "chart": calendar_to_wire(report.calendar),
        "count": counts,
        "count_display": {k: format_minutes(v) for k, v in counts.items()},
    }
