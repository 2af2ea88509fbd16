from __future__ import annotations

import asyncio
import logging

from core import storage
from core.models import StatusSample
from core.prober import Prober

log = logging.getLogger(__name__)


class ProbeMonitor:
    """Probes the link on a fixed interval and logs status transitions."""

    def __init__(self, config: dict, prober: Prober | None = None):
        self._probe_config = config.get("probe", {})
        self.interval = self._probe_config.get("interval_seconds", 30)
        self.prober = prober or Prober(self._probe_config)

    async def check_once(self) -> StatusSample:
        sample = await self.prober.probe()
        storage.record_probe(sample)

        if storage.append_sample(sample):
            log.info("Status changed to %s at %s", sample.status.value, storage.format_ts(sample.timestamp))
        return sample

    async def run(self):
        log.info(
            "Probing gateway %s (reference hosts: %s) every %ss",
            self.prober.gateway_host,
            ", ".join(self.prober.reference_hosts),
            self.interval,
        )
        try:
            sample = await self.check_once()
            log.info("Status is %s", sample.status.value)
        except Exception as e:
            log.error("Initial probe failed: %s", e, exc_info=True)

        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.check_once()
            except Exception as e:
                log.error("Probe cycle failed: %s", e, exc_info=True)
