"""
Report-day boundaries in the operations timezone.

Timestamps are stored as naive UTC.  A report day is the closed interval
from local midnight to the last microsecond of the same local day,
expressed in that same naive-UTC form so it compares directly against
column values.
"""
import logging
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from pydantic import BaseModel

logger = logging.getLogger(__name__)

DEFAULT_TZ = "Asia/Colombo"


class DayWindow(BaseModel):
    start: datetime
    end: datetime

    model_config = {"frozen": True}

    def contains(self, value: datetime | None) -> bool:
        if value is None:
            return False
        value = to_naive_utc(value)
        return self.start <= value <= self.end


def to_naive_utc(value: datetime) -> datetime:
    """Aware datetimes are shifted to UTC; naive ones are taken as UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def today_in(tz_name: str = DEFAULT_TZ) -> date:
    return datetime.now(ZoneInfo(tz_name)).date()


def day_window(selected: date, tz_name: str = DEFAULT_TZ) -> DayWindow:
    tz = ZoneInfo(tz_name)
    local_start = datetime.combine(selected, time.min, tzinfo=tz)
    local_end = datetime.combine(selected + timedelta(days=1), time.min, tzinfo=tz) - timedelta(microseconds=1)
    return DayWindow(start=to_naive_utc(local_start), end=to_naive_utc(local_end))


def parse_report_date(raw: str | None, tz_name: str = DEFAULT_TZ) -> date:
    """
    Parse the ?date= query value.

    Accepts YYYY-MM-DD or a full ISO datetime (its date part is used).
    Anything missing or unparseable falls back to today in *tz_name*, as
    does a date at the calendar edge whose day window cannot be expressed
    in UTC (0001-01-01 east of Greenwich, 9999-12-31).
    """
    if not raw:
        return today_in(tz_name)

    raw = raw.strip()
    try:
        selected = date.fromisoformat(raw)
    except ValueError:
        try:
            selected = datetime.fromisoformat(raw).date()
        except ValueError:
            logger.warning("Unparseable report date %r, using today", raw)
            return today_in(tz_name)

    try:
        day_window(selected, tz_name)
    except OverflowError:
        logger.warning("Report date %s is out of range, using today", selected)
        return today_in(tz_name)
    return selected
