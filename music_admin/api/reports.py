import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, Query

from music_admin.core.security import require_session
from music_admin.services.report_service import report_service

router = APIRouter(prefix="/reports", dependencies=[Depends(require_session)])

@router.get("/summary")
async def summary():
    return await asyncio.to_thread(report_service.summary)

@router.get("/revenue")
async def revenue(date_from: Optional[str] = Query(None, alias="from"), date_to: Optional[str] = Query(None, alias="to")):
    return await asyncio.to_thread(report_service.revenue, date_from, date_to)

@router.get("/activity")
async def activity(date_from: Optional[str] = Query(None, alias="from"), date_to: Optional[str] = Query(None, alias="to")):
    return await asyncio.to_thread(report_service.activity, date_from, date_to)
