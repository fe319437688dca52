"""
Daily operational report: aggregator inputs and the JSON response shape.

Output models serialize with camelCase keys (regularTeams, inHandMorning,
dwSlt ...) and are frozen once built.
"""
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

_ROW_CONFIG = {"alias_generator": to_camel, "populate_by_name": True, "frozen": True}


# ---------------------------------------------------------------------------
# Inputs (materialized by opmc_ops.reports.repository)
# ---------------------------------------------------------------------------

class StatusHistorySnapshot(BaseModel):
    status: str | None = None
    status_date: datetime | None = None


class MaterialUsageSnapshot(BaseModel):
    item_code: str | None = None
    item_name: str | None = None
    item_category: str | None = None
    quantity: Decimal | None = Decimal(0)


class OrderSnapshot(BaseModel):
    id: uuid.UUID | str | None = None
    order_type: str | None = None
    created_at: datetime | None = None
    received_date: datetime | None = None
    completed_date: datetime | None = None
    status_date: datetime | None = None
    slts_status: str | None = None
    team_id: uuid.UUID | str | None = None
    delay_reasons: dict[str, Any] | None = None
    stb_shortage: bool = False
    ont_shortage: bool = False
    material_source: str | None = None
    material_usage: list[MaterialUsageSnapshot] = []
    status_history: list[StatusHistorySnapshot] = []

    @field_validator("material_usage", "status_history", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return v or []

    @field_validator("delay_reasons", mode="before")
    @classmethod
    def object_or_none(cls, v: Any) -> Any:
        # Free-form JSON column; lists, strings and numbers carry no flags
        return v if isinstance(v, dict) else None


class UnitSnapshot(BaseModel):
    region: str
    province: str
    rtom: str
    regular_teams: int = 0
    orders: list[OrderSnapshot] = []


# ---------------------------------------------------------------------------
# Output rows
# ---------------------------------------------------------------------------

class CategoryCounts(BaseModel):
    nc: int = 0
    rl: int = 0
    data: int = 0
    total: int = 0

    model_config = _ROW_CONFIG


class CompletedCounts(BaseModel):
    create: int = 0
    recon: int = 0
    upgrade: int = 0
    fnc: int = 0
    or_: int = Field(default=0, alias="or")
    ml: int = 0
    frl: int = 0
    data: int = 0
    total: int = 0

    model_config = _ROW_CONFIG


class MaterialTotals(BaseModel):
    dw_slt: float = 0.0
    dw_company: float = 0.0
    dw: float = 0.0
    pole56: float = 0.0
    pole67: float = 0.0
    pole80: float = 0.0

    model_config = _ROW_CONFIG


class DelayCounts(BaseModel):
    ont_shortage: int = 0
    stb_shortage: int = 0
    nokia: int = 0
    system: int = 0
    opmc: int = 0
    cx_delay: int = 0
    same_day: int = 0
    pole_pending: int = 0

    model_config = _ROW_CONFIG


class ShortageCounts(BaseModel):
    stb: int = 0
    ont: int = 0

    model_config = _ROW_CONFIG


class DailyReportRow(BaseModel):
    region: str
    province: str
    rtom: str
    regular_teams: int = 0
    teams_worked: int = 0
    in_hand_morning: CategoryCounts = CategoryCounts()
    received: CategoryCounts = CategoryCounts()
    total_in_hand: int = 0
    completed: CompletedCounts = CompletedCounts()
    material: MaterialTotals = MaterialTotals()
    returned: CategoryCounts = CategoryCounts()
    wired_only: CategoryCounts = CategoryCounts()
    delays: DelayCounts = DelayCounts()
    balance: CategoryCounts = CategoryCounts()
    shortages: ShortageCounts = ShortageCounts()

    model_config = _ROW_CONFIG


class DailyReportSummary(BaseModel):
    region_totals: list[DailyReportRow] = []
    grand_total: DailyReportRow | None = None

    model_config = _ROW_CONFIG


class DailyReportResponse(BaseModel):
    report_data: list[DailyReportRow]
    date: str
    region_totals: list[DailyReportRow] = []
    grand_total: DailyReportRow | None = None

    model_config = _ROW_CONFIG


class ReportErrorResponse(BaseModel):
    error: str
