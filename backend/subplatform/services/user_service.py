"""End users of the products.

User ids come from the external identity provider, so they are supplied by
the caller rather than generated here.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from subplatform.db.models import Subscription, User
from subplatform.services.errors import ConflictError

logger = logging.getLogger("subplatform.users")

VALID_ROLES = ("USER", "SUPER_ADMIN")


async def list_users(
    db: AsyncSession, *, search: str | None = None, product_id: str | None = None
) -> list[User]:
    stmt = (
        select(User)
        .options(selectinload(User.subscriptions).selectinload(Subscription.plan))
        .order_by(User.created_at.desc())
    )
    if search:
        stmt = stmt.where(func.lower(User.email).contains(search.lower(), autoescape=True))
    if product_id:
        stmt = stmt.where(
            User.id.in_(select(Subscription.user_id).where(Subscription.product_id == product_id))
        )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_user(db: AsyncSession, user_id: str) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_detail(db: AsyncSession, user_id: str) -> User | None:
    """User with subscriptions, their plan and product loaded."""
    result = await db.execute(
        select(User)
        .where(User.id == user_id)
        .options(
            selectinload(User.subscriptions).selectinload(Subscription.plan),
            selectinload(User.subscriptions).selectinload(Subscription.product),
        )
    )
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


async def create_user(
    db: AsyncSession,
    *,
    user_id: str,
    email: str,
    name: str | None = None,
    role: str = "USER",
) -> User:
    if role not in VALID_ROLES:
        raise ValueError(f"Invalid role '{role}'. Must be one of: {VALID_ROLES}")
    if await get_user(db, user_id) is not None:
        raise ConflictError(f"User '{user_id}' already exists")
    if await get_user_by_email(db, email) is not None:
        raise ConflictError("Email already exists")

    user = User(id=user_id, email=email, name=name, role=role)
    db.add(user)
    await db.flush()
    await db.refresh(user)
    logger.info("Registered user '%s'", user_id)
    return user


async def update_user(
    db: AsyncSession,
    user: User,
    *,
    email: str | None = None,
    name: str | None = None,
    role: str | None = None,
) -> User:
    if role is not None:
        if role not in VALID_ROLES:
            raise ValueError(f"Invalid role '{role}'. Must be one of: {VALID_ROLES}")
        user.role = role
    if email is not None and email.lower() != user.email.lower():
        if await get_user_by_email(db, email) is not None:
            raise ConflictError("Email already exists")
        user.email = email
    if name is not None:
        user.name = name
    user.updated_at = datetime.now(timezone.utc)
    await db.flush()
    await db.refresh(user)
    return user
