"""Subscriptions: manual management, upgrade requests and their verification.

A user holds at most one subscription per product. The unique constraint on
``(user_id, product_id)`` is the backstop; the service checks first so it
can report a readable conflict.

Status lifecycle::

    pending_verification --approve--> active
    pending_verification --reject---> canceled
    any                  --cancel---> canceled (end_date = now)
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from subplatform.db.models import Plan, Subscription
from subplatform.services import payment_method_service, plan_service, product_service, user_service
from subplatform.services.errors import ConflictError

logger = logging.getLogger("subplatform.subscriptions")

VALID_STATUSES = ("active", "pending_verification", "past_due", "canceled")
VALID_PROVIDERS = ("MANUAL", "STRIPE", "PAYPAL", "SYSTEM")

_DETAIL_OPTIONS = (
    selectinload(Subscription.plan),
    selectinload(Subscription.user),
    selectinload(Subscription.product),
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _check_status(status: str) -> None:
    if status not in VALID_STATUSES:
        raise ValueError(f"Invalid status '{status}'. Must be one of: {VALID_STATUSES}")


def _check_provider(provider: str | None) -> None:
    if provider is not None and provider not in VALID_PROVIDERS:
        raise ValueError(f"Invalid provider '{provider}'. Must be one of: {VALID_PROVIDERS}")


# ── Queries ───────────────────────────────────────────────────


async def get_subscription(db: AsyncSession, subscription_id: str) -> Subscription | None:
    """Subscription with plan, user and product loaded."""
    result = await db.execute(
        select(Subscription)
        .where(Subscription.id == subscription_id)
        .options(*_DETAIL_OPTIONS)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def list_subscriptions(
    db: AsyncSession,
    *,
    status: str | None = None,
    product_id: str | None = None,
    plan_id: str | None = None,
) -> list[Subscription]:
    stmt = select(Subscription).options(*_DETAIL_OPTIONS).order_by(Subscription.created_at.desc())
    if status:
        stmt = stmt.where(Subscription.status == status)
    if product_id:
        stmt = stmt.where(Subscription.product_id == product_id)
    if plan_id:
        stmt = stmt.where(Subscription.plan_id == plan_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_for_user(db: AsyncSession, user_id: str, product_id: str) -> Subscription | None:
    result = await db.execute(
        select(Subscription)
        .where(Subscription.user_id == user_id, Subscription.product_id == product_id)
        .options(selectinload(Subscription.plan))
    )
    return result.scalar_one_or_none()


async def list_pending(db: AsyncSession, product_id: str | None = None) -> list[Subscription]:
    stmt = (
        select(Subscription)
        .where(Subscription.status == "pending_verification")
        .options(selectinload(Subscription.plan))
        .order_by(Subscription.created_at)
    )
    if product_id:
        stmt = stmt.where(Subscription.product_id == product_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def _plan_in_product(db: AsyncSession, plan_id: str, product_id: str) -> Plan:
    plan = await plan_service.get_plan(db, plan_id)
    if plan is None:
        raise ValueError(f"Plan '{plan_id}' not found")
    if plan.product_id != product_id:
        raise ValueError("Plan does not belong to the specified product")
    return plan


async def _check_payment_method(db: AsyncSession, payment_method_id: str | None) -> None:
    if payment_method_id is None:
        return
    if await payment_method_service.get_payment_method(db, payment_method_id) is None:
        raise ValueError(f"Payment method '{payment_method_id}' not found")


# ── Management ────────────────────────────────────────────────


async def create_subscription(
    db: AsyncSession,
    *,
    user_id: str,
    plan_id: str,
    product_id: str,
    status: str = "active",
    provider: str | None = "MANUAL",
    payment_method_id: str | None = None,
    external_id: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> Subscription:
    _check_status(status)
    _check_provider(provider)
    if await user_service.get_user(db, user_id) is None:
        raise ValueError(f"User '{user_id}' not found")
    if await product_service.get_product(db, product_id) is None:
        raise ValueError(f"Product '{product_id}' not found")
    await _plan_in_product(db, plan_id, product_id)
    await _check_payment_method(db, payment_method_id)

    if await get_for_user(db, user_id, product_id) is not None:
        raise ConflictError("User already has a subscription for this product")

    now = _now()
    sub = Subscription(
        user_id=user_id,
        plan_id=plan_id,
        product_id=product_id,
        status=status,
        provider=provider,
        payment_method_id=payment_method_id,
        external_id=external_id,
        start_date=start_date or (now if status == "active" else None),
        end_date=end_date,
        created_at=now,
        updated_at=now,
    )
    db.add(sub)
    try:
        await db.flush()
    except IntegrityError as exc:
        raise ConflictError("User already has a subscription for this product") from exc
    logger.info("Created subscription %s for user '%s' on '%s'", sub.id, user_id, product_id)
    return await get_subscription(db, sub.id)


async def update_subscription(
    db: AsyncSession, subscription_id: str, changes: dict
) -> Subscription | None:
    """Apply *changes* (column name -> value).

    A plan change must stay within the subscription's product.
    """
    sub = await get_subscription(db, subscription_id)
    if not sub:
        return None

    if changes.get("plan_id") is not None and changes["plan_id"] != sub.plan_id:
        await _plan_in_product(db, changes["plan_id"], sub.product_id)
        sub.plan_id = changes["plan_id"]
    if changes.get("status") is not None:
        _check_status(changes["status"])
        sub.status = changes["status"]
    if "provider" in changes:
        _check_provider(changes["provider"])
        sub.provider = changes["provider"]
    if "payment_method_id" in changes:
        await _check_payment_method(db, changes["payment_method_id"])
        sub.payment_method_id = changes["payment_method_id"]
    for field in ("external_id", "payment_proof_url", "payment_note", "start_date", "end_date"):
        if field in changes:
            setattr(sub, field, changes[field])
    sub.updated_at = _now()
    await db.flush()
    return await get_subscription(db, subscription_id)


async def cancel_subscription(db: AsyncSession, subscription_id: str) -> Subscription | None:
    sub = await get_subscription(db, subscription_id)
    if not sub:
        return None
    now = _now()
    sub.status = "canceled"
    sub.end_date = now
    sub.updated_at = now
    await db.flush()
    logger.info("Canceled subscription %s", subscription_id)
    return await get_subscription(db, subscription_id)


# ── Upgrade requests (product-facing) ─────────────────────────


async def request_upgrade(
    db: AsyncSession,
    *,
    user_id: str,
    product_id: str,
    plan_id: str,
    payment_proof_url: str | None = None,
    payment_note: str | None = None,
    email: str | None = None,
    name: str | None = None,
) -> Subscription:
    """Record an upgrade request awaiting manual payment verification.

    Unknown users are registered when *email* is given; otherwise
    ``LookupError`` is raised. An existing subscription for the product is
    moved to ``pending_verification`` on the requested plan.
    """
    plan = await _plan_in_product(db, plan_id, product_id)
    if not plan.is_active:
        raise ValueError("Plan is not available")

    if await user_service.get_user(db, user_id) is None:
        if not email:
            raise LookupError("User not found")
        await user_service.create_user(db, user_id=user_id, email=email, name=name)

    now = _now()
    sub = await get_for_user(db, user_id, product_id)
    if sub is None:
        sub = Subscription(
            user_id=user_id,
            plan_id=plan_id,
            product_id=product_id,
            created_at=now,
        )
        db.add(sub)
    sub.plan_id = plan_id
    sub.status = "pending_verification"
    sub.provider = "MANUAL"
    sub.payment_proof_url = payment_proof_url
    sub.payment_note = payment_note
    sub.updated_at = now
    try:
        await db.flush()
    except IntegrityError as exc:
        raise ConflictError("User already has a subscription for this product") from exc
    logger.info("Upgrade requested by user '%s' on '%s' (plan %s)", user_id, product_id, plan_id)
    return sub


async def verify_subscription(
    db: AsyncSession, subscription_id: str, *, approve: bool, product_id: str | None = None
) -> Subscription | None:
    """Approve (``active``) or reject (``canceled``) a pending subscription.

    With *product_id* the subscription must belong to that product.
    """
    sub = await get_subscription(db, subscription_id)
    if not sub or (product_id is not None and sub.product_id != product_id):
        return None
    now = _now()
    sub.status = "active" if approve else "canceled"
    if approve:
        sub.start_date = now
    sub.updated_at = now
    await db.flush()
    logger.info(
        "Subscription %s %s", subscription_id, "approved" if approve else "rejected"
    )
    return sub
