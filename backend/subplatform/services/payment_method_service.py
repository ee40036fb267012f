"""Payment methods and their per-product configuration."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from subplatform.db.models import PaymentMethod, ProductPaymentMethod, Subscription
from subplatform.services.errors import ConflictError, HasDependentsError

logger = logging.getLogger("subplatform.payment_methods")

VALID_TYPES = ("manual", "automated")
_SLUG_RE = re.compile(r"^[a-z0-9_]+$")


@dataclass
class ProductMethod:
    """A payment method as offered by one product."""

    method: PaymentMethod
    display_order: int
    is_default: bool


def _check_config(config: str | None) -> None:
    if not config:
        return
    try:
        json.loads(config)
    except json.JSONDecodeError as exc:
        raise ValueError("Invalid JSON in config field") from exc


def _check_type(type_: str) -> None:
    if type_ not in VALID_TYPES:
        raise ValueError(f"Invalid type '{type_}'. Must be one of: {VALID_TYPES}")


async def list_payment_methods(db: AsyncSession) -> list[PaymentMethod]:
    result = await db.execute(select(PaymentMethod).order_by(PaymentMethod.name))
    return list(result.scalars().all())


async def get_payment_method(db: AsyncSession, method_id: str) -> PaymentMethod | None:
    result = await db.execute(select(PaymentMethod).where(PaymentMethod.id == method_id))
    return result.scalar_one_or_none()


async def create_payment_method(
    db: AsyncSession,
    *,
    slug: str,
    name: str,
    type: str,
    provider: str | None = None,
    config: str | None = None,
    is_active: bool = True,
) -> PaymentMethod:
    if not _SLUG_RE.match(slug):
        raise ValueError("Slug must contain only lowercase letters, numbers, and underscores")
    _check_type(type)
    _check_config(config)
    existing = await db.execute(select(PaymentMethod.id).where(PaymentMethod.slug == slug))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError(f"Payment method '{slug}' already exists")

    method = PaymentMethod(
        slug=slug,
        name=name,
        type=type,
        provider=provider or None,
        config=config or None,
        is_active=is_active,
    )
    db.add(method)
    try:
        await db.flush()
    except IntegrityError as exc:
        raise ConflictError(f"Payment method '{slug}' already exists") from exc
    await db.refresh(method)
    logger.info("Created payment method '%s'", slug)
    return method


async def update_payment_method(
    db: AsyncSession, method_id: str, changes: dict
) -> PaymentMethod | None:
    """Apply *changes*; the slug is immutable. Empty provider/config clear the value."""
    method = await get_payment_method(db, method_id)
    if not method:
        return None
    if changes.get("type") is not None:
        _check_type(changes["type"])
        method.type = changes["type"]
    if "config" in changes:
        _check_config(changes["config"])
        method.config = changes["config"] or None
    if "provider" in changes:
        method.provider = changes["provider"] or None
    if changes.get("name") is not None:
        method.name = changes["name"]
    if changes.get("is_active") is not None:
        method.is_active = changes["is_active"]
    await db.flush()
    await db.refresh(method)
    return method


async def delete_payment_method(db: AsyncSession, method_id: str) -> bool:
    method = await get_payment_method(db, method_id)
    if not method:
        return False

    product_usages = (
        await db.execute(
            select(func.count())
            .select_from(ProductPaymentMethod)
            .where(ProductPaymentMethod.payment_method_id == method_id)
        )
    ).scalar_one()
    subscription_usages = (
        await db.execute(
            select(func.count())
            .select_from(Subscription)
            .where(Subscription.payment_method_id == method_id)
        )
    ).scalar_one()
    if product_usages or subscription_usages:
        raise HasDependentsError(
            f"Cannot delete payment method: {product_usages} product(s) and "
            f"{subscription_usages} subscription(s) are using it"
        )

    await db.delete(method)
    await db.flush()
    logger.info("Deleted payment method '%s'", method.slug)
    return True


# ── Product configuration ─────────────────────────────────────


async def get_product_payment_methods(
    db: AsyncSession, product_id: str, *, active_only: bool = True
) -> list[ProductMethod]:
    result = await db.execute(
        select(ProductPaymentMethod)
        .where(ProductPaymentMethod.product_id == product_id)
        .options(selectinload(ProductPaymentMethod.payment_method))
        .order_by(ProductPaymentMethod.display_order)
        .execution_options(populate_existing=True)
    )
    return [
        ProductMethod(
            method=link.payment_method,
            display_order=link.display_order,
            is_default=link.is_default,
        )
        for link in result.scalars().all()
        if link.payment_method.is_active or not active_only
    ]


async def set_product_payment_methods(
    db: AsyncSession, product_id: str, methods: list[dict]
) -> list[ProductMethod]:
    """Replace the product's configuration with *methods*.

    Each entry carries ``payment_method_id``, ``display_order`` and ``is_default``.
    """
    seen: set[str] = set()
    for entry in methods:
        method_id = entry["payment_method_id"]
        if method_id in seen:
            raise ValueError(f"Payment method '{method_id}' listed more than once")
        seen.add(method_id)
        if await get_payment_method(db, method_id) is None:
            raise ValueError(f"Payment method '{method_id}' not found")
    if sum(1 for entry in methods if entry.get("is_default")) > 1:
        raise ValueError("Only one payment method can be the default")

    await db.execute(
        delete(ProductPaymentMethod).where(ProductPaymentMethod.product_id == product_id)
    )
    for entry in methods:
        db.add(
            ProductPaymentMethod(
                product_id=product_id,
                payment_method_id=entry["payment_method_id"],
                display_order=entry.get("display_order", 0),
                is_default=entry.get("is_default", False),
            )
        )
    await db.flush()
    logger.info("Configured %d payment method(s) for product '%s'", len(methods), product_id)
    return await get_product_payment_methods(db, product_id, active_only=False)
