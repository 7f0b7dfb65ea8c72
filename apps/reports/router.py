from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from apps.reports.service import export_receipts, export_requests
from constants.roles import ADMIN
from models.base import get_db
from security.auth_backend import require_roles

router = APIRouter(prefix="/api/v1/reports", tags=["Reports"])


@router.get("/requests.csv", dependencies=[Depends(require_roles(ADMIN))])
async def requests_report(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    priority: Optional[str] = Query(default=None),
    sectorId: Optional[int] = Query(default=None),
    dateFrom: Optional[datetime] = Query(default=None),
    dateTo: Optional[datetime] = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    """
    Downloadable CSV of requests and their items (one row per item).
    """
    return await export_requests(db, status_filter, priority, sectorId, dateFrom, dateTo)


@router.get("/receipts.csv", dependencies=[Depends(require_roles(ADMIN))])
async def receipts_report(
    requestId: Optional[int] = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    return await export_receipts(db, requestId)
