from __future__ import annotations

import random
from datetime import datetime, timedelta
from typing import Optional

from core.models import StatusKind, StatusSample

# Mostly online, regular outages, rare unknowns
_WEIGHTS = {
    StatusKind.ONLINE: 8,
    StatusKind.OFFLINE: 4,
    StatusKind.UNKNOWN: 1,
}


def generate_samples(
    count: int = 400,
    start: Optional[datetime] = None,
    seed: Optional[int] = None,
) -> list[StatusSample]:
    """Synthetic probe history for demos and the chart test endpoint.

    Readings are 1 to 101 hours apart. On every status change a sample of
    the previous status is written at the same instant first, like the
    transition pairs a real log holds.
    """
    rng = random.Random(seed)
    if start is None:
        start = datetime.now().replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)

    kinds = list(_WEIGHTS)
    weights = list(_WEIGHTS.values())

    samples: list[StatusSample] = []
    current = start
    for _ in range(count):
        status = rng.choices(kinds, weights)[0]
        if samples and samples[-1].status != status:
            samples.append(StatusSample(samples[-1].status, current))
        samples.append(StatusSample(status, current))
        current += timedelta(hours=rng.randint(1, 101))
    return samples
