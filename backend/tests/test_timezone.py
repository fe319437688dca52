from datetime import date, datetime, timedelta, timezone

import pytest

from opmc_ops.core.timezone import day_window, parse_report_date, to_naive_utc, today_in


def test_day_window_is_local_day_in_naive_utc():
    window = day_window(date(2026, 1, 20), "Asia/Colombo")  # UTC+05:30
    assert window.start == datetime(2026, 1, 19, 18, 30)
    assert window.end == datetime(2026, 1, 20, 18, 29, 59, 999999)
    assert window.start.tzinfo is None


def test_day_window_contains_is_inclusive():
    window = day_window(date(2026, 1, 20), "UTC")
    assert window.contains(window.start)
    assert window.contains(window.end)
    assert not window.contains(window.end + timedelta(microseconds=1))
    assert not window.contains(None)


def test_contains_accepts_aware_datetimes():
    window = day_window(date(2026, 1, 20), "Asia/Colombo")
    local_midnight = datetime(2026, 1, 20, 0, 0, tzinfo=timezone(timedelta(hours=5, minutes=30)))
    assert window.contains(local_midnight)


def test_to_naive_utc():
    aware = datetime(2026, 1, 20, 5, 30, tzinfo=timezone(timedelta(hours=5, minutes=30)))
    assert to_naive_utc(aware) == datetime(2026, 1, 20, 0, 0)
    assert to_naive_utc(datetime(2026, 1, 20, 7)) == datetime(2026, 1, 20, 7)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("2026-01-20", date(2026, 1, 20)),
        (" 2026-01-20 ", date(2026, 1, 20)),
        ("2026-01-20T10:15:00", date(2026, 1, 20)),
    ],
)
def test_parse_report_date(raw, expected):
    assert parse_report_date(raw, "Asia/Colombo") == expected


@pytest.mark.parametrize("raw", [None, "", "yesterday", "2026-13-45"])
def test_parse_report_date_falls_back_to_today(raw):
    assert parse_report_date(raw, "Asia/Colombo") == today_in("Asia/Colombo")


@pytest.mark.parametrize("raw", ["9999-12-31", "0001-01-01"])
def test_parse_report_date_rejects_days_outside_utc_range(raw):
    # 9999-12-31 has no following midnight; 0001-01-01 Colombo midnight is before year 1 in UTC
    assert parse_report_date(raw, "Asia/Colombo") == today_in("Asia/Colombo")


def test_parse_report_date_keeps_first_day_in_utc():
    assert parse_report_date("0001-01-01", "UTC") == date(1, 1, 1)
