"""Product CRUD and API key provisioning.

The product id doubles as the API key prefix, so ids are derived from the
product name using only ``[a-z0-9-]`` and never contain the key separator.
The plaintext key is returned exactly once (on creation or regeneration);
only its bcrypt hash is stored, and regeneration overwrites it.
"""

from __future__ import annotations

import logging
import re

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from subplatform.auth.hashing import hash_secret
from subplatform.auth.keys import generate_api_key
from subplatform.db.models import Plan, Product, ProductPaymentMethod, Subscription
from subplatform.services.errors import ConflictError, HasDependentsError

logger = logging.getLogger("subplatform.products")

MAX_PRODUCT_ID_LENGTH = 30


def derive_product_id(name: str) -> str:
    product_id = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    product_id = product_id[:MAX_PRODUCT_ID_LENGTH].rstrip("-")
    if not product_id:
        raise ValueError("Product name must contain at least one letter or digit")
    return product_id


async def list_products(db: AsyncSession) -> list[Product]:
    result = await db.execute(
        select(Product)
        .options(selectinload(Product.plans))
        .order_by(Product.created_at.desc())
    )
    return list(result.scalars().all())


async def get_product(db: AsyncSession, product_id: str) -> Product | None:
    result = await db.execute(select(Product).where(Product.id == product_id))
    return result.scalar_one_or_none()


async def get_product_detail(db: AsyncSession, product_id: str) -> Product | None:
    """Product with its plans and subscriptions loaded."""
    result = await db.execute(
        select(Product)
        .where(Product.id == product_id)
        .options(selectinload(Product.plans), selectinload(Product.subscriptions))
    )
    return result.scalar_one_or_none()


async def create_product(
    db: AsyncSession, *, name: str, is_active: bool = True
) -> tuple[Product, str]:
    """Create a product and return it with its plaintext API key."""
    product_id = derive_product_id(name)
    if await get_product(db, product_id) is not None:
        raise ConflictError(f"Product '{product_id}' already exists")

    api_key = generate_api_key(product_id)
    product = Product(
        id=product_id,
        name=name,
        api_key_hash=hash_secret(api_key),
        is_active=is_active,
    )
    db.add(product)
    try:
        await db.flush()
    except IntegrityError as exc:
        raise ConflictError(f"Product '{product_id}' already exists") from exc
    await db.refresh(product)
    logger.info("Created product '%s'", product_id)
    return product, api_key


async def update_product(
    db: AsyncSession,
    product_id: str,
    *,
    name: str | None = None,
    is_active: bool | None = None,
) -> Product | None:
    product = await get_product(db, product_id)
    if not product:
        return None
    if name is not None:
        product.name = name
    if is_active is not None:
        product.is_active = is_active
    await db.flush()
    await db.refresh(product)
    return product


async def regenerate_api_key(db: AsyncSession, product_id: str) -> str | None:
    """Replace the product's key hash; the previous key stops working immediately."""
    product = await get_product(db, product_id)
    if not product:
        return None
    api_key = generate_api_key(product.id)
    product.api_key_hash = hash_secret(api_key)
    await db.flush()
    logger.info("Regenerated API key for product '%s'", product_id)
    return api_key


async def delete_product(db: AsyncSession, product_id: str) -> bool:
    product = await get_product(db, product_id)
    if not product:
        return False

    plan_count = (
        await db.execute(select(func.count()).select_from(Plan).where(Plan.product_id == product_id))
    ).scalar_one()
    sub_count = (
        await db.execute(
            select(func.count())
            .select_from(Subscription)
            .where(Subscription.product_id == product_id)
        )
    ).scalar_one()
    if plan_count or sub_count:
        raise HasDependentsError("Cannot delete product with existing plans or subscriptions")

    # Payment method links belong to the product and go with it.
    await db.execute(
        delete(ProductPaymentMethod).where(ProductPaymentMethod.product_id == product_id)
    )
    await db.delete(product)
    try:
        await db.flush()
    except IntegrityError as exc:
        raise HasDependentsError(
            "Cannot delete product with existing plans or subscriptions"
        ) from exc
    logger.info("Deleted product '%s'", product_id)
    return True
