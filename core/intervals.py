from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional

from core.errors import InvariantViolation
from core.models import Mode, StatusInterval, StatusSample, instant

log = logging.getLogger(__name__)


def _sorted(samples: Iterable[StatusSample]) -> list[StatusSample]:
    """Stable sort by instant; samples sharing a timestamp keep input order."""
    return sorted(samples, key=lambda s: instant(s.timestamp))


def _now_like(ts: datetime) -> datetime:
    """Current time on the same clock as ``ts`` (aware in its zone, or naive local)."""
    if ts.tzinfo is None:
        return datetime.now()
    return datetime.now(ts.tzinfo)


def build_intervals(
    samples: Iterable[StatusSample],
    mode: Mode = Mode.HISTORICAL,
    now: Optional[datetime] = None,
) -> list[StatusInterval]:
    """Collapse runs of same-status samples into closed intervals.

    A run is closed by the first sample with a different status; the
    interval carries the status of the run, not of the closing sample.
    The final run has no closing sample: it is dropped in historical mode
    and closed at ``now`` in live mode.
    """
    ordered = _sorted(samples)
    if not ordered:
        return []

    intervals: list[StatusInterval] = []
    run = ordered[0]
    for sample in ordered[1:]:
        if sample.status == run.status:
            continue
        intervals.append(StatusInterval(run.status, run.timestamp, sample.timestamp))
        run = sample

    if Mode(mode) is Mode.LIVE:
        end = now if now is not None else _now_like(run.timestamp)
        if instant(end) < instant(run.timestamp):
            raise InvariantViolation(
                f"Live run at {run.timestamp.isoformat()} is later than now ({end.isoformat()})"
            )
        intervals.append(StatusInterval(run.status, run.timestamp, end))
    else:
        log.debug("Dropping open %s run started at %s", run.status.value, run.timestamp.isoformat())

    return intervals
