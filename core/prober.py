from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from core.models import StatusKind, StatusSample

log = logging.getLogger(__name__)

DEFAULT_REFERENCE_HOSTS = ("1.1.1.1", "8.8.8.8")


async def ping_host(host: str, timeout: int = 2) -> bool:
    """Send one ICMP echo via the system ping; True if it was answered."""
    try:
        proc = await asyncio.create_subprocess_exec(
            "ping", "-c", "1", "-W", str(timeout), host,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
    except OSError as e:
        log.error("Cannot run ping for %s: %s", host, e)
        return False

    try:
        returncode = await asyncio.wait_for(proc.wait(), timeout + 1)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        log.debug("Ping to %s timed out", host)
        return False
    return returncode == 0


def derive_status(gateway_alive: bool, internet_alive: bool) -> StatusKind:
    """Gateway down with the internet up means our link is down.

    If the reference hosts are unreachable too we cannot tell whose
    fault it is.
    """
    if not internet_alive:
        return StatusKind.UNKNOWN
    if not gateway_alive:
        return StatusKind.OFFLINE
    return StatusKind.ONLINE


class Prober:
    def __init__(self, probe_config: dict):
        self.gateway_host = probe_config.get("gateway_host", "192.168.1.254")
        self.reference_hosts = list(probe_config.get("reference_hosts", DEFAULT_REFERENCE_HOSTS))
        self.timeout = int(probe_config.get("timeout_seconds", 2))

    async def probe(self) -> StatusSample:
        gateway_alive = await ping_host(self.gateway_host, self.timeout)
        results = await asyncio.gather(
            *(ping_host(h, self.timeout) for h in self.reference_hosts)
        )
        internet_alive = bool(results) and all(results)

        status = derive_status(gateway_alive, internet_alive)
        log.debug(
            "Probe: gateway=%s internet=%s -> %s",
            gateway_alive, internet_alive, status.value,
        )
        now_utc = datetime.now(timezone.utc).replace(microsecond=0)
        return StatusSample(status, now_utc)
