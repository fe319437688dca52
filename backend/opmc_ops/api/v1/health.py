"""
GET /health: load balancer health check.

Always 200.  The body carries DB reachability and the zone report days are
cut in, so a misconfigured REPORT_TIMEZONE shows up without pulling a report.
"""
from fastapi import APIRouter
from pydantic import BaseModel

from opmc_ops.core.config import get_settings
from opmc_ops.core.db import check_db_connection
from opmc_ops.core.timezone import today_in

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    db: str
    report_timezone: str
    report_day: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    tz_name = get_settings().report_timezone
    db_ok = await check_db_connection()
    return HealthResponse(
        status="ok" if db_ok else "degraded",
        db="ok" if db_ok else "error",
        report_timezone=tz_name,
        report_day=today_in(tz_name).isoformat(),
    )
