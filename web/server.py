from __future__ import annotations

import logging
from datetime import timezone, tzinfo
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from core.errors import AggregationError
from web.routes import create_router
from web.security import RateLimitMiddleware

log = logging.getLogger(__name__)


def create_app(config: Optional[dict] = None, tz: tzinfo = timezone.utc) -> FastAPI:
    config = config or {}
    web_cfg = config.get("web", {})

    app = FastAPI(title="Uptime Heatmap")

    app.add_middleware(
        RateLimitMiddleware,
        requests_per_minute=web_cfg.get("requests_per_minute", 60),
        requests_per_second=web_cfg.get("requests_per_second", 10),
    )

    @app.middleware("http")
    async def log_api_requests(request: Request, call_next):
        response = await call_next(request)
        if request.url.path.startswith("/api/"):
            client_ip = request.client.host if request.client else "unknown"
            level = logging.WARNING if response.status_code >= 400 else logging.DEBUG
            log.log(
                level,
                "%s %s from %s - Status: %d",
                request.method,
                request.url.path,
                client_ip,
                response.status_code,
            )
        return response

    @app.exception_handler(AggregationError)
    async def aggregation_error_handler(request: Request, exc: AggregationError):
        log.warning("Aggregation failed on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=422, content={"error": str(exc)})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        log.error(
            "Unhandled exception on %s %s: %s",
            request.method,
            request.url.path,
            exc,
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error"},
        )

    router = create_router(config.get("report", {}), tz)
    app.include_router(router, prefix="/api")

    static_dir = Path(__file__).parent.parent / "static"
    app.mount("/", StaticFiles(directory=str(static_dir.resolve()), html=True), name="static")

    return app
