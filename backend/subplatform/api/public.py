"""Product-facing API, authenticated with the product's ``X-API-Key``.

Every route is scoped to the product the key was issued for.

Endpoints
---------
GET  /plans                              - active plans of the product
GET  /plans/{productId}/payment-methods  - active payment methods of the product
GET  /subscriptions/{userId}             - the user's subscription to the product
POST /subscriptions/{userId}/upgrade     - request a plan upgrade (manual payment)
GET  /admin/pending                      - upgrade requests awaiting verification
POST /admin/verify                       - approve or reject an upgrade request
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from subplatform.auth.api_key import require_product_key
from subplatform.auth.context import ProductContext
from subplatform.db.engine import get_db
from subplatform.schemas.common import PlanOut, SubscriptionOut, SubscriptionWithPlanOut
from subplatform.schemas.products import ProductPaymentMethodOut
from subplatform.schemas.subscriptions import UpgradeRequest, VerifyRequest
from subplatform.services import payment_method_service, plan_service, subscription_service

logger = logging.getLogger("subplatform.api.public")
router = APIRouter(tags=["product"])


@router.get("/plans", response_model=list[PlanOut])
async def list_plans(
    product: ProductContext = Depends(require_product_key),
    db: AsyncSession = Depends(get_db),
):
    return await plan_service.get_active_plans(db, product.product_id)


@router.get("/plans/{product_id}/payment-methods", response_model=list[ProductPaymentMethodOut])
async def list_payment_methods(
    product_id: str,
    product: ProductContext = Depends(require_product_key),
    db: AsyncSession = Depends(get_db),
):
    if product_id != product.product_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="API key does not grant access to this product",
        )
    methods = await payment_method_service.get_product_payment_methods(db, product_id)
    return [ProductPaymentMethodOut.from_product_method(m) for m in methods]


@router.get("/subscriptions/{user_id}", response_model=SubscriptionWithPlanOut)
async def get_subscription(
    user_id: str,
    product: ProductContext = Depends(require_product_key),
    db: AsyncSession = Depends(get_db),
):
    sub = await subscription_service.get_for_user(db, user_id, product.product_id)
    if not sub:
        raise HTTPException(status_code=404, detail="No active subscription found")
    return sub


@router.post(
    "/subscriptions/{user_id}/upgrade",
    response_model=SubscriptionOut,
    status_code=status.HTTP_201_CREATED,
)
async def request_upgrade(
    user_id: str,
    body: UpgradeRequest,
    product: ProductContext = Depends(require_product_key),
    db: AsyncSession = Depends(get_db),
):
    if body.product_id is not None and body.product_id != product.product_id:
        raise HTTPException(status_code=400, detail="productId does not match the API key")
    try:
        return await subscription_service.request_upgrade(
            db,
            user_id=user_id,
            product_id=product.product_id,
            plan_id=body.plan_id,
            payment_proof_url=body.payment_proof_url,
            payment_note=body.payment_note,
            email=body.email,
            name=body.name,
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.get("/admin/pending", response_model=list[SubscriptionWithPlanOut])
async def list_pending(
    product: ProductContext = Depends(require_product_key),
    db: AsyncSession = Depends(get_db),
):
    return await subscription_service.list_pending(db, product.product_id)


@router.post("/admin/verify", response_model=SubscriptionOut)
async def verify(
    body: VerifyRequest,
    product: ProductContext = Depends(require_product_key),
    db: AsyncSession = Depends(get_db),
):
    sub = await subscription_service.verify_subscription(
        db, body.subscription_id, approve=body.approve, product_id=product.product_id
    )
    if not sub:
        raise HTTPException(status_code=404, detail="Subscription not found")
    logger.info(
        "Product '%s' %s subscription %s",
        product.product_id,
        "approved" if body.approve else "rejected",
        body.subscription_id,
    )
    return sub
