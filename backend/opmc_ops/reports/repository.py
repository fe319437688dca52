"""
Data access for the daily operational report.

fetch_units() returns every OPMC with the orders touched during the report
day, each carrying its material usage lines and its status history for that
day.  fetch_backlog() returns the orders still open at the start of the day,
grouped per OPMC.  Both materialize plain snapshots so the aggregator never
sees ORM objects.
"""
import logging
import uuid
from collections import defaultdict

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from opmc_ops.core.timezone import DayWindow
from opmc_ops.models.inventory import InventoryItem
from opmc_ops.models.opmc import ContractorTeam, Opmc
from opmc_ops.models.service_order import ServiceOrder, ServiceOrderStatusHistory, SodMaterialUsage
from opmc_ops.reports.daily_operational import RETURN, tally_backlog
from opmc_ops.schemas.daily_report import (
    CategoryCounts,
    MaterialUsageSnapshot,
    OrderSnapshot,
    StatusHistorySnapshot,
    UnitSnapshot,
)

logger = logging.getLogger(__name__)


def _in_window(column, window: DayWindow):
    return column.between(window.start, window.end)


async def fetch_opmcs(db: AsyncSession) -> list[Opmc]:
    result = await db.execute(select(Opmc).order_by(Opmc.region, Opmc.province, Opmc.rtom))
    return list(result.scalars().all())


async def _active_team_counts(db: AsyncSession) -> dict[uuid.UUID, int]:
    result = await db.execute(
        select(ContractorTeam.opmc_id, func.count(ContractorTeam.id))
        .where(ContractorTeam.is_active.is_(True))
        .group_by(ContractorTeam.opmc_id)
    )
    return {opmc_id: count for opmc_id, count in result.all()}


async def _orders_touched(db: AsyncSession, window: DayWindow) -> list[ServiceOrder]:
    """Orders created, received, completed or status-changed in the window, or with history there."""
    history_today = select(ServiceOrderStatusHistory.service_order_id).where(
        _in_window(ServiceOrderStatusHistory.status_date, window)
    )
    result = await db.execute(
        select(ServiceOrder).where(
            or_(
                _in_window(ServiceOrder.created_at, window),
                _in_window(ServiceOrder.received_date, window),
                _in_window(ServiceOrder.completed_date, window),
                _in_window(ServiceOrder.status_date, window),
                ServiceOrder.id.in_(history_today),
            )
        )
    )
    return list(result.scalars().all())


async def _history_by_order(
    db: AsyncSession, order_ids: list[uuid.UUID], window: DayWindow
) -> dict[uuid.UUID, list[StatusHistorySnapshot]]:
    grouped: dict[uuid.UUID, list[StatusHistorySnapshot]] = defaultdict(list)
    if not order_ids:
        return grouped
    result = await db.execute(
        select(ServiceOrderStatusHistory)
        .where(
            ServiceOrderStatusHistory.service_order_id.in_(order_ids),
            _in_window(ServiceOrderStatusHistory.status_date, window),
        )
        .order_by(ServiceOrderStatusHistory.status_date)
    )
    for entry in result.scalars().all():
        grouped[entry.service_order_id].append(
            StatusHistorySnapshot(status=entry.status, status_date=entry.status_date)
        )
    return grouped


async def _usage_by_order(
    db: AsyncSession, order_ids: list[uuid.UUID]
) -> dict[uuid.UUID, list[MaterialUsageSnapshot]]:
    grouped: dict[uuid.UUID, list[MaterialUsageSnapshot]] = defaultdict(list)
    if not order_ids:
        return grouped
    result = await db.execute(
        select(
            SodMaterialUsage.service_order_id,
            SodMaterialUsage.quantity,
            InventoryItem.code,
            InventoryItem.name,
            InventoryItem.category,
        )
        .outerjoin(InventoryItem, InventoryItem.id == SodMaterialUsage.item_id)
        .where(SodMaterialUsage.service_order_id.in_(order_ids))
    )
    for order_id, quantity, code, name, category in result.all():
        grouped[order_id].append(
            MaterialUsageSnapshot(
                item_code=code,
                item_name=name,
                item_category=category,
                quantity=quantity,
            )
        )
    return grouped


def _order_snapshot(
    order: ServiceOrder,
    history: list[StatusHistorySnapshot],
    usage: list[MaterialUsageSnapshot],
) -> OrderSnapshot:
    return OrderSnapshot(
        id=order.id,
        order_type=order.order_type,
        created_at=order.created_at,
        received_date=order.received_date,
        completed_date=order.completed_date,
        status_date=order.status_date,
        slts_status=order.slts_status,
        team_id=order.team_id,
        delay_reasons=order.delay_reasons,
        stb_shortage=bool(order.stb_shortage),
        ont_shortage=bool(order.ont_shortage),
        material_source=order.material_source,
        material_usage=usage,
        status_history=history,
    )


async def fetch_units(db: AsyncSession, window: DayWindow) -> list[UnitSnapshot]:
    opmcs = await fetch_opmcs(db)
    team_counts = await _active_team_counts(db)
    orders = await _orders_touched(db, window)

    order_ids = [o.id for o in orders]
    history = await _history_by_order(db, order_ids, window)
    usage = await _usage_by_order(db, order_ids)

    known_ids = {o.id for o in opmcs}
    id_by_rtom = {o.rtom: o.id for o in opmcs}
    orders_by_opmc: dict[uuid.UUID, list[OrderSnapshot]] = defaultdict(list)
    unassigned = 0
    for order in orders:
        opmc_id = order.opmc_id if order.opmc_id in known_ids else id_by_rtom.get(order.rtom)
        if opmc_id is None:
            unassigned += 1
            continue
        orders_by_opmc[opmc_id].append(
            _order_snapshot(order, history.get(order.id, []), usage.get(order.id, []))
        )

    if unassigned:
        logger.warning("%d service orders matched no OPMC and were left out", unassigned)

    logger.info(
        "Loaded %d OPMCs and %d service orders for %s..%s",
        len(opmcs), len(orders), window.start, window.end,
    )
    return [
        UnitSnapshot(
            region=opmc.region,
            province=opmc.province,
            rtom=opmc.rtom,
            regular_teams=team_counts.get(opmc.id, 0),
            orders=orders_by_opmc.get(opmc.id, []),
        )
        for opmc in opmcs
    ]


async def fetch_backlog(db: AsyncSession, window: DayWindow) -> dict[str, CategoryCounts]:
    """
    Orders open at the start of the day, counted per rtom and category.

    Open means created before the window and, as of the window start, not
    yet completed and not yet returned.  Returns are judged by status_date,
    which is only a coarse stand-in for the time of the return.
    """
    result = await db.execute(
        select(ServiceOrder.rtom, ServiceOrder.order_type, func.count(ServiceOrder.id))
        .where(
            ServiceOrder.created_at < window.start,
            or_(
                ServiceOrder.completed_date.is_(None),
                ServiceOrder.completed_date >= window.start,
            ),
            or_(
                ServiceOrder.slts_status.is_(None),
                ServiceOrder.slts_status != RETURN,
                ServiceOrder.status_date >= window.start,
            ),
        )
        .group_by(ServiceOrder.rtom, ServiceOrder.order_type)
    )
    return tally_backlog(result.all())
