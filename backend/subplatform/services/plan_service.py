"""Pricing plans of a product."""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from subplatform.db.models import Plan, Subscription
from subplatform.services import product_service
from subplatform.services.errors import ConflictError, HasDependentsError

logger = logging.getLogger("subplatform.plans")


async def get_active_plans(db: AsyncSession, product_id: str) -> list[Plan]:
    result = await db.execute(
        select(Plan)
        .where(Plan.product_id == product_id, Plan.is_active.is_(True))
        .order_by(Plan.price)
    )
    return list(result.scalars().all())


async def list_plans(db: AsyncSession, product_id: str | None = None) -> list[Plan]:
    stmt = select(Plan).order_by(Plan.created_at.desc())
    if product_id:
        stmt = stmt.where(Plan.product_id == product_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_plan(db: AsyncSession, plan_id: str) -> Plan | None:
    result = await db.execute(select(Plan).where(Plan.id == plan_id))
    return result.scalar_one_or_none()


async def get_plan_by_slug(db: AsyncSession, slug: str) -> Plan | None:
    result = await db.execute(select(Plan).where(Plan.slug == slug))
    return result.scalar_one_or_none()


def _features(features: list[str] | str | None) -> str:
    if features is None:
        return ""
    if isinstance(features, str):
        return features
    return ",".join(f.strip() for f in features if f.strip())


async def create_plan(
    db: AsyncSession,
    *,
    product_id: str,
    name: str,
    slug: str,
    price: int,
    max_properties: int,
    features: list[str] | str | None = None,
    is_active: bool = True,
) -> Plan:
    if await product_service.get_product(db, product_id) is None:
        raise ValueError(f"Product '{product_id}' not found")
    if price < 0:
        raise ValueError("Price must not be negative")
    if await get_plan_by_slug(db, slug) is not None:
        raise ConflictError(f"Plan slug '{slug}' already exists")

    plan = Plan(
        product_id=product_id,
        name=name,
        slug=slug,
        price=price,
        features=_features(features),
        max_properties=max_properties,
        is_active=is_active,
    )
    db.add(plan)
    try:
        await db.flush()
    except IntegrityError as exc:
        raise ConflictError(f"Plan slug '{slug}' already exists") from exc
    await db.refresh(plan)
    logger.info("Created plan '%s' for product '%s'", slug, product_id)
    return plan


async def update_plan(db: AsyncSession, plan_id: str, changes: dict) -> Plan | None:
    """Apply *changes* (column name -> value); ``product_id`` is not editable."""
    plan = await get_plan(db, plan_id)
    if not plan:
        return None
    if "slug" in changes and changes["slug"] != plan.slug:
        if await get_plan_by_slug(db, changes["slug"]) is not None:
            raise ConflictError(f"Plan slug '{changes['slug']}' already exists")
    if changes.get("price") is not None and changes["price"] < 0:
        raise ValueError("Price must not be negative")
    for field in ("name", "slug", "price", "max_properties", "is_active"):
        if changes.get(field) is not None:
            setattr(plan, field, changes[field])
    if "features" in changes:
        plan.features = _features(changes["features"])
    await db.flush()
    await db.refresh(plan)
    return plan


async def delete_plan(db: AsyncSession, plan_id: str) -> bool:
    plan = await get_plan(db, plan_id)
    if not plan:
        return False
    in_use = (
        await db.execute(
            select(func.count()).select_from(Subscription).where(Subscription.plan_id == plan_id)
        )
    ).scalar_one()
    if in_use:
        raise HasDependentsError("Cannot delete plan with existing subscriptions")
    await db.delete(plan)
    await db.flush()
    logger.info("Deleted plan '%s'", plan.slug)
    return True
