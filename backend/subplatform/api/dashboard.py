"""Dashboard summary (``/manage/dashboard``)."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from subplatform.db.engine import get_db
from subplatform.schemas.subscriptions import DashboardOut
from subplatform.services import dashboard_service

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard", response_model=DashboardOut)
async def get_dashboard(db: AsyncSession = Depends(get_db)):
    return DashboardOut(**await dashboard_service.get_stats(db))
