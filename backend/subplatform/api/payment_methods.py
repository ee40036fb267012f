"""Payment methods management API (``/manage/payment-methods``)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from subplatform.db.engine import get_db
from subplatform.schemas.products import PaymentMethodCreate, PaymentMethodOut, PaymentMethodUpdate
from subplatform.services import payment_method_service

router = APIRouter(prefix="/payment-methods", tags=["payment-methods"])


@router.get("", response_model=list[PaymentMethodOut])
async def list_payment_methods(db: AsyncSession = Depends(get_db)):
    return await payment_method_service.list_payment_methods(db)


@router.post("", response_model=PaymentMethodOut, status_code=status.HTTP_201_CREATED)
async def create_payment_method(body: PaymentMethodCreate, db: AsyncSession = Depends(get_db)):
    try:
        return await payment_method_service.create_payment_method(db, **body.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.get("/{method_id}", response_model=PaymentMethodOut)
async def get_payment_method(method_id: str, db: AsyncSession = Depends(get_db)):
    method = await payment_method_service.get_payment_method(db, method_id)
    if not method:
        raise HTTPException(status_code=404, detail="Payment method not found")
    return method


@router.patch("/{method_id}", response_model=PaymentMethodOut)
async def update_payment_method(
    method_id: str, body: PaymentMethodUpdate, db: AsyncSession = Depends(get_db)
):
    try:
        method = await payment_method_service.update_payment_method(
            db, method_id, body.model_dump(exclude_unset=True)
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    if not method:
        raise HTTPException(status_code=404, detail="Payment method not found")
    return method


@router.delete("/{method_id}")
async def delete_payment_method(method_id: str, db: AsyncSession = Depends(get_db)):
    try:
        deleted = await payment_method_service.delete_payment_method(db, method_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    if not deleted:
        raise HTTPException(status_code=404, detail="Payment method not found")
    return {"success": True}
