"""Admin user management: the dashboard operators behind Basic auth.

Roles (ascending privilege):
    ADMIN < SUPER_ADMIN

Emails are stored lower-cased and compared lower-cased, so
``Admin@Example.com`` and ``admin@example.com`` are the same identity.

A default ``SUPER_ADMIN`` is seeded at startup when the admin_users table is
empty (see ``SEED_DEFAULT_ADMIN``). Change its password in production.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from subplatform.auth.hashing import hash_secret
from subplatform.config import settings
from subplatform.db.models import AdminUser
from subplatform.services.errors import ConflictError

logger = logging.getLogger("subplatform.admins")

VALID_ROLES = ("ADMIN", "SUPER_ADMIN")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _check_role(role: str) -> None:
    if role not in VALID_ROLES:
        raise ValueError(f"Invalid role '{role}'. Must be one of: {VALID_ROLES}")


# ── CRUD ──────────────────────────────────────────────────────


async def get_admin_by_email(db: AsyncSession, email: str) -> AdminUser | None:
    result = await db.execute(
        select(AdminUser).where(func.lower(AdminUser.email) == normalize_email(email))
    )
    return result.scalar_one_or_none()


async def get_admin_by_id(db: AsyncSession, admin_id: str) -> AdminUser | None:
    result = await db.execute(select(AdminUser).where(AdminUser.id == admin_id))
    return result.scalar_one_or_none()


async def list_admins(db: AsyncSession) -> list[AdminUser]:
    result = await db.execute(select(AdminUser).order_by(AdminUser.created_at.desc()))
    return list(result.scalars().all())


async def create_admin(
    db: AsyncSession,
    *,
    email: str,
    password: str,
    name: str,
    role: str = "ADMIN",
) -> AdminUser:
    _check_role(role)
    if not password:
        raise ValueError("Password must not be empty")
    if await get_admin_by_email(db, email) is not None:
        raise ConflictError("Email already exists")

    admin = AdminUser(
        email=normalize_email(email),
        password_hash=hash_secret(password),
        name=name,
        role=role,
        is_active=True,
    )
    db.add(admin)
    await db.flush()
    await db.refresh(admin)
    logger.info("Created admin '%s' with role '%s'", admin.email, role)
    return admin


async def update_admin(
    db: AsyncSession,
    admin: AdminUser,
    *,
    email: str | None = None,
    name: str | None = None,
    role: str | None = None,
    is_active: bool | None = None,
    password: str | None = None,
) -> AdminUser:
    if role is not None:
        _check_role(role)
        admin.role = role
    if email is not None:
        email = normalize_email(email)
        if email != admin.email:
            existing = await get_admin_by_email(db, email)
            if existing is not None and existing.id != admin.id:
                raise ConflictError("Email already exists")
            admin.email = email
    if name is not None:
        admin.name = name
    if is_active is not None:
        admin.is_active = is_active
    if password is not None:
        if not password:
            raise ValueError("Password must not be empty")
        admin.password_hash = hash_secret(password)
    admin.updated_at = datetime.now(timezone.utc)
    await db.flush()
    await db.refresh(admin)
    return admin


async def delete_admin(db: AsyncSession, admin: AdminUser) -> None:
    await db.delete(admin)
    await db.flush()
    logger.info("Deleted admin '%s'", admin.email)


async def record_login(db: AsyncSession, admin_id: str, ts: datetime) -> None:
    """Set ``last_login_at`` without touching any other column."""
    await db.execute(
        update(AdminUser).where(AdminUser.id == admin_id).values(last_login_at=ts)
    )
    await db.flush()


async def ensure_default_admin(db: AsyncSession) -> None:
    """Seed the configured super admin if no admin exists yet."""
    result = await db.execute(select(AdminUser.id).limit(1))
    if result.scalar_one_or_none() is not None:
        return
    await create_admin(
        db,
        email=settings.DEFAULT_ADMIN_EMAIL,
        password=settings.DEFAULT_ADMIN_PASSWORD,
        name=settings.DEFAULT_ADMIN_NAME,
        role="SUPER_ADMIN",
    )
    await db.commit()
    logger.info(
        "Seeded default super admin (email=%s). Change its password immediately in production!",
        settings.DEFAULT_ADMIN_EMAIL,
    )
