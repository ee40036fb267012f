"""Subscriptions management API (``/manage/subscriptions``)."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from subplatform.db.engine import get_db
from subplatform.schemas.subscriptions import (
    SubscriptionCreate,
    SubscriptionDetailOut,
    SubscriptionUpdate,
)
from subplatform.services import subscription_service
from subplatform.services.errors import ConflictError

logger = logging.getLogger("subplatform.api.subscriptions")
router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


@router.get("", response_model=list[SubscriptionDetailOut])
async def list_subscriptions(
    status_filter: str | None = Query(default=None, alias="status"),
    product_id: str | None = Query(default=None, alias="productId"),
    plan_id: str | None = Query(default=None, alias="planId"),
    db: AsyncSession = Depends(get_db),
):
    return await subscription_service.list_subscriptions(
        db, status=status_filter, product_id=product_id, plan_id=plan_id
    )


@router.get("/{subscription_id}", response_model=SubscriptionDetailOut)
async def get_subscription(subscription_id: str, db: AsyncSession = Depends(get_db)):
    sub = await subscription_service.get_subscription(db, subscription_id)
    if not sub:
        raise HTTPException(status_code=404, detail="Subscription not found")
    return sub


@router.post(
    "",
    response_model=SubscriptionDetailOut,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "User already subscribed to the product"}},
)
async def create_subscription(body: SubscriptionCreate, db: AsyncSession = Depends(get_db)):
    try:
        return await subscription_service.create_subscription(db, **body.model_dump())
    except ConflictError as e:
        await db.rollback()
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={
                "error": str(e),
                "hint": "Update the existing subscription instead of creating a new one",
            },
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.patch("/{subscription_id}", response_model=SubscriptionDetailOut)
async def update_subscription(
    subscription_id: str, body: SubscriptionUpdate, db: AsyncSession = Depends(get_db)
):
    try:
        sub = await subscription_service.update_subscription(
            db, subscription_id, body.model_dump(exclude_unset=True)
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    if not sub:
        raise HTTPException(status_code=404, detail="Subscription not found")
    return sub


@router.post("/{subscription_id}/cancel", response_model=SubscriptionDetailOut)
async def cancel_subscription(subscription_id: str, db: AsyncSession = Depends(get_db)):
    sub = await subscription_service.cancel_subscription(db, subscription_id)
    if not sub:
        raise HTTPException(status_code=404, detail="Subscription not found")
    return sub
