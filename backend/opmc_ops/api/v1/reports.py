"""
GET /api/reports/daily-operational: per-OPMC daily operations summary.

Query:
  date   YYYY-MM-DD in the operations timezone.  Missing or unparseable
         values fall back to today.

The report is all-or-nothing: any failure while loading or aggregating
returns 500 {"error": "Failed to generate report"} and no rows.
"""
import logging

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from opmc_ops.core.config import get_settings
from opmc_ops.core.db import get_db
from opmc_ops.core.timezone import day_window, parse_report_date
from opmc_ops.reports.daily_operational import build_daily_report, summarize
from opmc_ops.reports.repository import fetch_backlog, fetch_units
from opmc_ops.schemas.daily_report import DailyReportResponse, ReportErrorResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/reports", tags=["reports"])
settings = get_settings()

REPORT_FAILED = "Failed to generate report"


@router.get(
    "/daily-operational",
    response_model=DailyReportResponse,
    responses={500: {"model": ReportErrorResponse}},
)
async def get_daily_operational_report(
    date: str | None = Query(None, description="Report day (YYYY-MM-DD)"),
    db: AsyncSession = Depends(get_db),
):
    report_date = parse_report_date(date, settings.report_timezone)

    try:
        window = day_window(report_date, settings.report_timezone)
        units = await fetch_units(db, window)
        backlog = await fetch_backlog(db, window)
        rows = build_daily_report(units, window, backlog, settings.drop_wire_item_code)
        summary = summarize(rows)
    except Exception:
        logger.exception("Daily operational report failed for %s", report_date)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": REPORT_FAILED},
        )

    logger.info("Daily operational report for %s: %d rows", report_date, len(rows))
    return DailyReportResponse(
        report_data=rows,
        date=report_date.isoformat(),
        region_totals=summary.region_totals,
        grand_total=summary.grand_total,
    )
