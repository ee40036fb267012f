"""Plans management API (``/manage/plans``)."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from subplatform.db.engine import get_db
from subplatform.schemas.common import PlanOut
from subplatform.schemas.products import PlanCreate, PlanUpdate
from subplatform.services import plan_service

logger = logging.getLogger("subplatform.api.plans")
router = APIRouter(prefix="/plans", tags=["plans"])


@router.get("", response_model=list[PlanOut])
async def list_plans(
    product_id: str | None = Query(default=None, alias="productId"),
    db: AsyncSession = Depends(get_db),
):
    return await plan_service.list_plans(db, product_id)


@router.post("", response_model=PlanOut, status_code=status.HTTP_201_CREATED)
async def create_plan(body: PlanCreate, db: AsyncSession = Depends(get_db)):
    try:
        return await plan_service.create_plan(
            db,
            product_id=body.product_id,
            name=body.name,
            slug=body.slug,
            price=body.price,
            max_properties=body.max_properties,
            features=body.features,
            is_active=body.is_active,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.get("/{plan_id}", response_model=PlanOut)
async def get_plan(plan_id: str, db: AsyncSession = Depends(get_db)):
    plan = await plan_service.get_plan(db, plan_id)
    if not plan:
        raise HTTPException(status_code=404, detail="Plan not found")
    return plan


@router.patch("/{plan_id}", response_model=PlanOut)
async def update_plan(plan_id: str, body: PlanUpdate, db: AsyncSession = Depends(get_db)):
    try:
        plan = await plan_service.update_plan(db, plan_id, body.model_dump(exclude_unset=True))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    if not plan:
        raise HTTPException(status_code=404, detail="Plan not found")
    return plan


@router.delete("/{plan_id}")
async def delete_plan(plan_id: str, db: AsyncSession = Depends(get_db)):
    try:
        deleted = await plan_service.delete_plan(db, plan_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    if not deleted:
        raise HTTPException(status_code=404, detail="Plan not found")
    return {"success": True}
