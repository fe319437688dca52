"""
Daily operational report aggregation.

Turns a materialized snapshot of OPMC units and their service orders into
one DailyReportRow per unit: morning backlog, received / completed /
returned / wired-only counts, material consumption, delay tallies,
shortages and the closing balance.

Everything here is pure.  Callers fetch the data (see
opmc_ops.reports.repository) and supply the day window; the functions below
never touch the database or the clock.
"""
import logging
from collections import Counter
from collections.abc import Iterable, Sequence
from decimal import Decimal
from functools import reduce
from typing import Literal

from pydantic import BaseModel

from opmc_ops.core.timezone import DayWindow
from opmc_ops.schemas.daily_report import (
    CategoryCounts,
    CompletedCounts,
    DailyReportRow,
    DailyReportSummary,
    DelayCounts,
    MaterialTotals,
    MaterialUsageSnapshot,
    OrderSnapshot,
    ShortageCounts,
    StatusHistorySnapshot,
    UnitSnapshot,
)

logger = logging.getLogger(__name__)

Category = Literal["nc", "rl", "data"]

INSTALL_CLOSED = "INSTALL_CLOSED"
PROV_CLOSED = "PROV_CLOSED"
RETURN = "RETURN"
COMPANY = "COMPANY"
DEFAULT_DROP_WIRE_CODE = "OSPFTA003"

# Keys of ServiceOrder.delay_reasons, in report column order
DELAY_FLAGS = (
    "ontShortage",
    "stbShortage",
    "nokia",
    "system",
    "opmc",
    "cxDelay",
    "sameDay",
    "polePending",
)

_RELOCATION_MARKERS = ("CREATE-OR", "MODIFY-LOCATION", "MODIFY LOCATION")


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def categorize(order_type: str | None) -> Category:
    """Bucket an order type into nc (new connection), rl (relocation) or data."""
    ot = (order_type or "").upper()
    if "CREATE" in ot and "CREATE-OR" not in ot:
        return "nc"
    if any(marker in ot for marker in _RELOCATION_MARKERS):
        return "rl"
    return "data"


def completion_bucket(order_type: str | None) -> str | None:
    """
    Finer split used only for completions.  Returns the completed-column key
    or None when no column applies (the order still counts in the total).

    fnc, frl and data are never produced here, so those columns stay at
    zero and the balance terms that subtract them contribute nothing.
    """
    ot = (order_type or "").upper()
    if "CREATE" in ot and not any(m in ot for m in ("CREATE-OR", "RECON", "UPGRD")):
        return "create"
    if "RECON" in ot:
        return "recon"
    if "UPGRD" in ot or "UPGRADE" in ot:
        return "upgrade"
    if "CREATE-OR" in ot:
        return "or"
    if "MODIFY-LOCATION" in ot or "MODIFY LOCATION" in ot:
        return "ml"
    return None


def statuses_in_window(history: Iterable[StatusHistorySnapshot], window: DayWindow) -> set[str]:
    """Upper-cased statuses the order entered during *window*."""
    return {
        entry.status.upper()
        for entry in history
        if entry.status and window.contains(entry.status_date)
    }


def tally_backlog(rows: Iterable[tuple[str, str | None, int]]) -> dict[str, CategoryCounts]:
    """Fold (rtom, order_type, count) rows from the backlog query into per-unit counts."""
    counters: dict[str, Counter] = {}
    for rtom, order_type, count in rows:
        counter = counters.setdefault(rtom, Counter())
        counter[categorize(order_type)] += count
        counter["total"] += count
    return {rtom: CategoryCounts.model_validate(dict(c)) for rtom, c in counters.items()}


# ---------------------------------------------------------------------------
# Per-unit aggregation
# ---------------------------------------------------------------------------

def _quantity(usage: MaterialUsageSnapshot) -> Decimal:
    return usage.quantity if usage.quantity is not None else Decimal(0)


def _add_material(
    totals: dict[str, Decimal],
    usage: MaterialUsageSnapshot,
    material_source: str | None,
    drop_wire_code: str,
) -> None:
    code = (usage.item_code or "").upper()
    name = (usage.item_name or "").lower()
    category = (usage.item_category or "").lower()
    quantity = _quantity(usage)

    if code == drop_wire_code or "drop wire" in name:
        totals["dw"] += quantity
        if (material_source or "").upper() == COMPANY:
            totals["dwCompany"] += quantity
        else:
            totals["dwSlt"] += quantity
    elif "pole" in category:
        if "5.6" in name:
            totals["pole56"] += quantity
        elif "6.7" in name:
            totals["pole67"] += quantity
        elif "8.0" in name or "8" in name:
            totals["pole80"] += quantity


def _count_delays(delays: Counter, order: OrderSnapshot) -> None:
    reasons = order.delay_reasons
    if not reasons:
        return
    for flag in DELAY_FLAGS:
        if reasons.get(flag):
            delays[flag] += 1


def aggregate_unit(
    unit: UnitSnapshot,
    window: DayWindow,
    in_hand_morning: CategoryCounts | None = None,
    drop_wire_code: str = DEFAULT_DROP_WIRE_CODE,
) -> DailyReportRow:
    in_hand_morning = in_hand_morning or CategoryCounts()
    drop_wire_code = drop_wire_code.upper()

    received: Counter = Counter()
    completed: Counter = Counter()
    returned: Counter = Counter()
    wired_only: Counter = Counter()
    delays: Counter = Counter()
    material: dict[str, Decimal] = {
        key: Decimal(0) for key in ("dwSlt", "dwCompany", "dw", "pole56", "pole67", "pole80")
    }

    for order in unit.orders:
        category = categorize(order.order_type)
        today_statuses = statuses_in_window(order.status_history, window)

        if window.contains(order.received_date or order.created_at):
            received[category] += 1
            received["total"] += 1

        if INSTALL_CLOSED in today_statuses:
            bucket = completion_bucket(order.order_type)
            if bucket:
                completed[bucket] += 1
            completed["total"] += 1

        if (order.slts_status or "").upper() == RETURN and window.contains(order.status_date):
            returned[category] += 1
            returned["total"] += 1

        if PROV_CLOSED in today_statuses:
            wired_only[category] += 1
            wired_only["total"] += 1

        _count_delays(delays, order)

        for usage in order.material_usage:
            _add_material(material, usage, order.material_source, drop_wire_code)

    received_counts = CategoryCounts.model_validate(dict(received))
    completed_counts = CompletedCounts.model_validate(dict(completed))
    returned_counts = CategoryCounts.model_validate(dict(returned))

    balance_nc = (
        in_hand_morning.nc + received_counts.nc
        - completed_counts.create - completed_counts.fnc
        - returned_counts.nc
    )
    balance_rl = (
        in_hand_morning.rl + received_counts.rl
        - completed_counts.or_ - completed_counts.ml - completed_counts.frl
        - returned_counts.rl
    )
    balance_data = (
        in_hand_morning.data + received_counts.data
        - completed_counts.data
        - returned_counts.data
    )

    row = DailyReportRow(
        region=unit.region,
        province=unit.province,
        rtom=unit.rtom,
        regular_teams=unit.regular_teams,
        teams_worked=len({str(o.team_id) for o in unit.orders if o.team_id}),
        in_hand_morning=in_hand_morning,
        received=received_counts,
        total_in_hand=in_hand_morning.total + received_counts.total,
        completed=completed_counts,
        material=MaterialTotals.model_validate({k: float(v) for k, v in material.items()}),
        returned=returned_counts,
        wired_only=CategoryCounts.model_validate(dict(wired_only)),
        delays=DelayCounts.model_validate(dict(delays)),
        balance=CategoryCounts(
            nc=balance_nc,
            rl=balance_rl,
            data=balance_data,
            total=balance_nc + balance_rl + balance_data,
        ),
        shortages=ShortageCounts(
            stb=sum(1 for o in unit.orders if o.stb_shortage),
            ont=sum(1 for o in unit.orders if o.ont_shortage),
        ),
    )
    logger.debug(
        "%s: orders=%d received=%d completed=%d returned=%d balance=%d",
        unit.rtom,
        len(unit.orders),
        row.received.total,
        row.completed.total,
        row.returned.total,
        row.balance.total,
    )
    return row


def build_daily_report(
    units: Iterable[UnitSnapshot],
    window: DayWindow,
    backlog_by_unit: dict[str, CategoryCounts] | None = None,
    drop_wire_code: str = DEFAULT_DROP_WIRE_CODE,
) -> list[DailyReportRow]:
    """One row per unit, ordered by (region, province, rtom)."""
    backlog_by_unit = backlog_by_unit or {}
    ordered = sorted(units, key=lambda u: (u.region, u.province, u.rtom))
    return [
        aggregate_unit(unit, window, backlog_by_unit.get(unit.rtom), drop_wire_code)
        for unit in ordered
    ]


# ---------------------------------------------------------------------------
# Region subtotals and grand total
# ---------------------------------------------------------------------------

def _add_models(a: BaseModel, b: BaseModel) -> BaseModel:
    return type(a).model_validate(
        {name: getattr(a, name) + getattr(b, name) for name in type(a).model_fields}
    )


def combine_rows(left: DailyReportRow, right: DailyReportRow) -> DailyReportRow:
    """Sum every counter of two rows; labels are taken from *left*."""
    merged = {}
    for name in DailyReportRow.model_fields:
        a, b = getattr(left, name), getattr(right, name)
        if isinstance(a, BaseModel):
            merged[name] = _add_models(a, b)
        elif isinstance(a, str):
            merged[name] = a
        else:
            merged[name] = a + b
    return DailyReportRow.model_validate(merged)


def total_row(rows: Iterable[DailyReportRow], region: str, label: str) -> DailyReportRow:
    empty = DailyReportRow(region=region, province="", rtom=label)
    return reduce(combine_rows, rows, empty)


def summarize(rows: Sequence[DailyReportRow]) -> DailyReportSummary:
    if not rows:
        return DailyReportSummary()

    by_region: dict[str, list[DailyReportRow]] = {}
    for row in rows:
        by_region.setdefault(row.region, []).append(row)

    return DailyReportSummary(
        region_totals=[
            total_row(region_rows, region, f"{region} - TOTAL")
            for region, region_rows in by_region.items()
        ],
        grand_total=total_row(rows, "", "GRAND TOTAL"),
    )
