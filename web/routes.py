from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Optional

from fastapi import APIRouter, Query

from core import storage
from core.models import Mode
from core.report import build_report, report_to_dict
from core.sample_data import generate_samples
from web.security import validate_date_format, validate_mode


def create_router(report_config: dict, tz: tzinfo) -> APIRouter:
    router = APIRouter()
    default_mode = report_config.get("mode", Mode.HISTORICAL.value)

    def _now() -> datetime:
        return datetime.now(tz).replace(microsecond=0)

    @router.get("/status")
    async def get_status():
        probe = storage.get_probe_state()
        last = storage.get_last_sample(tz)
        return {
            "status": probe["status"] if probe else None,
            "checked_at": probe["checked_at"] if probe else None,
            "since": storage.format_ts(last.timestamp) if last else None,
            "samples_count": storage.count_samples(),
        }

    @router.get("/report")
    async def get_report(
        mode: Optional[str] = Query(None),
        from_date: Optional[str] = Query(None, alias="from"),
        to_date: Optional[str] = Query(None, alias="to"),
    ):
        mode = mode or default_mode
        validate_mode(mode)
        validate_date_format(from_date, "from")
        validate_date_format(to_date, "to")

        samples = storage.fetch_samples(from_date, to_date, tz)
        report = build_report(samples, Mode(mode), _now())
        return report_to_dict(report)

    @router.get("/chart-test")
    async def chart_test(
        count: int = Query(400, ge=1, le=5000),
        seed: Optional[int] = Query(None),
    ):
        samples = generate_samples(count, seed=seed)
        return report_to_dict(build_report(samples))

    return router
