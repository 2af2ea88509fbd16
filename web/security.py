from __future__ import annotations

import logging
import re
import time
from collections import defaultdict, deque
from typing import Deque, Dict, Optional

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from core.models import Mode

log = logging.getLogger(__name__)

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}(T\d{2}:\d{2}:\d{2}Z)?$")


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Per-IP sliding-window limiter for the JSON API.
    Static dashboard files are not counted.
    """
    SWEEP_INTERVAL = 300

    def __init__(self, app, requests_per_minute: int = 60, requests_per_second: int = 10):
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self.requests_per_second = requests_per_second
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._last_sweep = time.monotonic()

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith("/api/"):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.monotonic()
        if now - self._last_sweep > self.SWEEP_INTERVAL:
            self._sweep(now)
            self._last_sweep = now

        hits = self._hits[client_ip]
        while hits and hits[0] <= now - 60:
            hits.popleft()

        in_last_second = sum(1 for ts in hits if ts > now - 1)
        if len(hits) >= self.requests_per_minute or in_last_second >= self.requests_per_second:
            log.warning("Rate limit exceeded for %s on %s", client_ip, request.url.path)
            # raised HTTPExceptions don't reach FastAPI's handler from middleware
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"error": "Too many requests. Please slow down."},
            )

        hits.append(now)
        return await call_next(request)

    def _sweep(self, now: float) -> None:
        """Forget clients with no request in the last minute."""
        for ip in list(self._hits):
            if not self._hits[ip] or self._hits[ip][-1] <= now - 60:
                del self._hits[ip]


def validate_mode(mode: str) -> None:
    if mode not in {m.value for m in Mode}:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid mode: must be one of {', '.join(m.value for m in Mode)}",
        )


def validate_date_format(date_str: Optional[str], param_name: str) -> None:
    """Accept YYYY-MM-DD or YYYY-MM-DDTHH:MM:SSZ."""
    if not date_str:
        return
    if not _DATE_RE.match(date_str):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {param_name}: must be YYYY-MM-DD or YYYY-MM-DDTHH:MM:SSZ format",
        )
