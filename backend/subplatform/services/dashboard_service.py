"""Headline counts for the admin dashboard."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from subplatform.db.models import Plan, Product, Subscription, User


async def _count(db: AsyncSession, model, *criteria) -> int:
    stmt = select(func.count()).select_from(model)
    if criteria:
        stmt = stmt.where(*criteria)
    return (await db.execute(stmt)).scalar_one()


async def get_stats(db: AsyncSession) -> dict[str, int]:
    return {
        "active_products": await _count(db, Product, Product.is_active.is_(True)),
        "active_plans": await _count(db, Plan, Plan.is_active.is_(True)),
        "total_users": await _count(db, User),
        "active_subscriptions": await _count(db, Subscription, Subscription.status == "active"),
        "pending_subscriptions": await _count(
            db, Subscription, Subscription.status == "pending_verification"
        ),
    }
