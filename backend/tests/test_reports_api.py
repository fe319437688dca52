"""
Tests for GET /api/reports/daily-operational.
"""
from datetime import date, timedelta
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from opmc_ops.core.timezone import day_window, today_in
from opmc_ops.models.inventory import InventoryItem
from opmc_ops.models.service_order import ServiceOrderStatusHistory, SodMaterialUsage

URL = "/api/reports/daily-operational"
WINDOW = day_window(date(2026, 1, 20), "Asia/Colombo")
TODAY = WINDOW.start + timedelta(hours=2)
LAST_WEEK = WINDOW.start - timedelta(days=7)


@pytest.mark.asyncio
async def test_empty_database_returns_empty_report(client):
    resp = await client.get(URL, params={"date": "2026-01-20"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["reportData"] == []
    assert body["date"] == "2026-01-20"
    assert body["regionTotals"] == []
    assert body["grandTotal"] is None


@pytest.mark.asyncio
async def test_report_rows_for_day(client, db_session: AsyncSession, opmcs, make_order):
    ad = opmcs["R-AD"]
    wire = InventoryItem(code="OSPFTA003", name="Drop Wire", category="CABLES", unit="km")
    completed = make_order(
        ad,
        order_type="CREATE",
        created_at=LAST_WEEK,
        received_date=TODAY,
        material_source="COMPANY",
        team_id=None,
    )
    backlog_rl = make_order(ad, order_type="CREATE-OR", created_at=LAST_WEEK, slts_status="INPROGRESS")
    returned = make_order(
        opmcs["R-HK"],
        order_type="CREATE",
        created_at=LAST_WEEK,
        slts_status="RETURN",
        status_date=TODAY,
        stb_shortage=True,
        delay_reasons={"cxDelay": True, "sameDay": True},
    )
    db_session.add_all([wire, completed, backlog_rl, returned])
    await db_session.flush()
    db_session.add_all(
        [
            ServiceOrderStatusHistory(service_order_id=completed.id, status="INSTALL_CLOSED", status_date=TODAY),
            SodMaterialUsage(service_order_id=completed.id, item_id=wire.id, quantity=Decimal("1.25")),
        ]
    )
    await db_session.commit()

    resp = await client.get(URL, params={"date": "2026-01-20"})
    assert resp.status_code == 200
    body = resp.json()

    assert [r["rtom"] for r in body["reportData"]] == ["R-HK", "R-AD", "R-JA"]
    rows = {r["rtom"]: r for r in body["reportData"]}

    ad_row = rows["R-AD"]
    assert ad_row["regularTeams"] == 2
    # received-today order was created last week, so it also sits in the morning backlog
    assert ad_row["inHandMorning"] == {"nc": 1, "rl": 1, "data": 0, "total": 2}
    assert ad_row["received"] == {"nc": 1, "rl": 0, "data": 0, "total": 1}
    assert ad_row["totalInHand"] == 3
    assert ad_row["completed"]["create"] == 1
    assert ad_row["completed"]["total"] == 1
    assert ad_row["material"]["dw"] == 1.25
    assert ad_row["material"]["dwCompany"] == 1.25
    assert ad_row["material"]["dwSlt"] == 0
    assert ad_row["balance"] == {"nc": 1, "rl": 1, "data": 0, "total": 2}

    hk_row = rows["R-HK"]
    assert hk_row["returned"]["nc"] == 1
    assert hk_row["delays"]["cxDelay"] == 1
    assert hk_row["delays"]["sameDay"] == 1
    assert hk_row["shortages"] == {"stb": 1, "ont": 0}

    assert [t["rtom"] for t in body["regionTotals"]] == ["METRO - TOTAL", "REGION 03 - TOTAL"]
    grand = body["grandTotal"]
    assert grand["rtom"] == "GRAND TOTAL"
    assert grand["regularTeams"] == 3
    assert grand["returned"]["total"] == 1
    assert grand["completed"]["total"] == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("params", [{}, {"date": "not-a-date"}, {"date": ""}])
async def test_missing_or_bad_date_falls_back_to_today(client, params):
    resp = await client.get(URL, params=params)
    assert resp.status_code == 200
    assert resp.json()["date"] == today_in("Asia/Colombo").isoformat()


@pytest.mark.asyncio
async def test_failure_returns_opaque_500(client, monkeypatch):
    import opmc_ops.api.v1.reports as reports_module

    async def _boom(db, window):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(reports_module, "fetch_backlog", _boom)

    resp = await client.get(URL, params={"date": "2026-01-20"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to generate report"}


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["9999-12-31", "0001-01-01"])
async def test_calendar_edge_date_falls_back_to_today(client, raw):
    resp = await client.get(URL, params={"date": raw})
    assert resp.status_code == 200
    assert resp.json()["date"] == today_in("Asia/Colombo").isoformat()


@pytest.mark.asyncio
async def test_non_object_delay_reasons_do_not_break_report(client, db_session: AsyncSession, opmcs, make_order):
    db_session.add(
        make_order(
            opmcs["R-JA"],
            order_type="CREATE",
            received_date=TODAY,
            delay_reasons=["nokia"],
        )
    )
    await db_session.commit()

    resp = await client.get(URL, params={"date": "2026-01-20"})
    assert resp.status_code == 200
    ja_row = next(r for r in resp.json()["reportData"] if r["rtom"] == "R-JA")
    assert ja_row["received"]["nc"] == 1
    assert set(ja_row["delays"].values()) == {0}
