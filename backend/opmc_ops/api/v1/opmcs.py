"""
OPMC directory (read-only).

The directory changes rarely, so results are cached in memory with a
5-minute TTL.
"""
import logging
import time
from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from opmc_ops.core.db import get_db
from opmc_ops.reports.repository import fetch_opmcs
from opmc_ops.schemas.opmc import OpmcResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/opmcs", tags=["opmcs"])

_cache: dict[str, tuple[float, Any]] = {}
_CACHE_TTL = 300  # 5 minutes


def _cache_get(key: str) -> Any | None:
    if key in _cache:
        ts, value = _cache[key]
        if time.monotonic() - ts < _CACHE_TTL:
            return value
        del _cache[key]
    return None


def _cache_set(key: str, value: Any) -> None:
    _cache[key] = (time.monotonic(), value)


@router.get("", response_model=list[OpmcResponse])
async def list_opmcs(db: AsyncSession = Depends(get_db)) -> list[OpmcResponse]:
    """All OPMCs in report order (region, province, rtom)."""
    cached = _cache_get("opmcs")
    if cached is not None:
        return cached

    rows = await fetch_opmcs(db)
    data = [OpmcResponse.model_validate(r) for r in rows]
    _cache_set("opmcs", data)
    return data
