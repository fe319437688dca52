import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import JSON, Boolean, DateTime, Numeric, String, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from opmc_ops.models.base import Base

# JSONB on Postgres, plain JSON elsewhere (SQLite test database)
_JsonDocument = JSON().with_variant(JSONB(), "postgresql")


class ServiceOrder(Base):
    __tablename__ = "service_orders"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    so_num: Mapped[str] = mapped_column(String(50), nullable=False)
    rtom: Mapped[str] = mapped_column(String(20), nullable=False)
    opmc_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    order_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    package: Mapped[str | None] = mapped_column(String(200), nullable=True)
    status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    slts_status: Mapped[str | None] = mapped_column(String(30), nullable=True)
    received_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    completed_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    status_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    team_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    delay_reasons: Mapped[dict | None] = mapped_column(_JsonDocument, nullable=True)
    stb_shortage: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    ont_shortage: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    material_source: Mapped[str] = mapped_column(String(10), nullable=False, default="SLT")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())


class ServiceOrderStatusHistory(Base):
    __tablename__ = "service_order_status_history"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    service_order_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    status_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class SodMaterialUsage(Base):
    __tablename__ = "sod_material_usage"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    service_order_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    item_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)
