"""Products management API.

Endpoints
---------
GET    /manage/products                          - list products with plans
POST   /manage/products                          - create product, returns the API key once
GET    /manage/products/{id}                     - product with plans and subscriptions
PATCH  /manage/products/{id}                     - rename / (de)activate
POST   /manage/products/{id}/regenerate-key      - issue a new key, the old one stops working
DELETE /manage/products/{id}                     - delete a product without dependents
GET    /manage/products/{id}/payment-methods     - payment method configuration
PUT    /manage/products/{id}/payment-methods     - replace payment method configuration
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from subplatform.auth.admin import require_admin
from subplatform.auth.context import AdminContext
from subplatform.db.engine import get_db
from subplatform.schemas.products import (
    ApiKeyOut,
    ProductCreate,
    ProductCreatedOut,
    ProductDetailOut,
    ProductOut,
    ProductPaymentMethodOut,
    ProductPaymentMethodsIn,
    ProductUpdate,
    ProductWithPlansOut,
)
from subplatform.services import payment_method_service, product_service

logger = logging.getLogger("subplatform.api.products")
router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=list[ProductWithPlansOut])
async def list_products(db: AsyncSession = Depends(get_db)):
    return await product_service.list_products(db)


@router.post("", response_model=ProductCreatedOut, status_code=status.HTTP_201_CREATED)
async def create_product(
    body: ProductCreate,
    db: AsyncSession = Depends(get_db),
    admin: AdminContext = Depends(require_admin),
):
    try:
        product, api_key = await product_service.create_product(
            db, name=body.name, is_active=body.is_active
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    logger.info("Admin '%s' created product '%s'", admin.admin_email, product.id)
    return ProductCreatedOut(
        id=product.id,
        name=product.name,
        is_active=product.is_active,
        created_at=product.created_at,
        api_key=api_key,
    )


@router.get("/{product_id}", response_model=ProductDetailOut)
async def get_product(product_id: str, db: AsyncSession = Depends(get_db)):
    product = await product_service.get_product_detail(db, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.patch("/{product_id}", response_model=ProductOut)
async def update_product(
    product_id: str, body: ProductUpdate, db: AsyncSession = Depends(get_db)
):
    product = await product_service.update_product(
        db, product_id, name=body.name, is_active=body.is_active
    )
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.post("/{product_id}/regenerate-key", response_model=ApiKeyOut)
async def regenerate_key(
    product_id: str,
    db: AsyncSession = Depends(get_db),
    admin: AdminContext = Depends(require_admin),
):
    api_key = await product_service.regenerate_api_key(db, product_id)
    if api_key is None:
        raise HTTPException(status_code=404, detail="Product not found")
    logger.info("Admin '%s' regenerated the API key of '%s'", admin.admin_email, product_id)
    return ApiKeyOut(id=product_id, api_key=api_key)


@router.delete("/{product_id}")
async def delete_product(product_id: str, db: AsyncSession = Depends(get_db)):
    try:
        deleted = await product_service.delete_product(db, product_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    if not deleted:
        raise HTTPException(status_code=404, detail="Product not found")
    return {"success": True}


@router.get("/{product_id}/payment-methods", response_model=list[ProductPaymentMethodOut])
async def get_payment_methods(product_id: str, db: AsyncSession = Depends(get_db)):
    if await product_service.get_product(db, product_id) is None:
        raise HTTPException(status_code=404, detail="Product not found")
    methods = await payment_method_service.get_product_payment_methods(
        db, product_id, active_only=False
    )
    return [ProductPaymentMethodOut.from_product_method(m) for m in methods]


@router.put("/{product_id}/payment-methods", response_model=list[ProductPaymentMethodOut])
async def set_payment_methods(
    product_id: str, body: ProductPaymentMethodsIn, db: AsyncSession = Depends(get_db)
):
    if await product_service.get_product(db, product_id) is None:
        raise HTTPException(status_code=404, detail="Product not found")
    try:
        methods = await payment_method_service.set_product_payment_methods(
            db, product_id, [m.model_dump() for m in body.methods]
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return [ProductPaymentMethodOut.from_product_method(m) for m in methods]
