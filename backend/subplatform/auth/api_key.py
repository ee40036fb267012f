"""API key gate for the product-facing routes.

Usage::

    from subplatform.auth.api_key import require_product_key

    @router.get("/plans")
    async def list_plans(product: ProductContext = Depends(require_product_key)): ...

The gate never writes. Unknown product, inactive product and wrong key all
end in the same 401 so product ids cannot be enumerated.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from fastapi import Depends, Security
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from subplatform.auth.context import ProductContext
from subplatform.auth.errors import (
    AuthError,
    InvalidCredential,
    MalformedCredential,
    MissingCredential,
    UnknownIdentity,
)
from subplatform.auth.hashing import verify_secret
from subplatform.auth.keys import parse_product_id
from subplatform.db.engine import get_db
from subplatform.services import product_service
from subplatform.utils.logger import ctx_product_id
from subplatform.utils.metrics import record_auth_failure, record_auth_success

logger = logging.getLogger("subplatform.auth")

GATE = "api_key"
INVALID_API_KEY = "Invalid API Key"

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def authenticate_product(db: AsyncSession, raw_key: str | None) -> ProductContext:
    """Resolve *raw_key* to the product it was issued for.

    Raises an :class:`~subplatform.auth.errors.AuthError` subclass on any failure.
    """
    if not raw_key:
        raise MissingCredential("Missing API Key")

    product_id = parse_product_id(raw_key)
    if product_id is None:
        raise MalformedCredential("Invalid API Key format")

    product = await product_service.get_product(db, product_id)
    if product is None or not product.is_active:
        raise UnknownIdentity(INVALID_API_KEY)

    if not verify_secret(raw_key, product.api_key_hash):
        raise InvalidCredential(INVALID_API_KEY)

    return ProductContext(product_id=product.id)


async def require_product_key(
    raw_key: str | None = Security(api_key_header),
    db: AsyncSession = Depends(get_db),
) -> AsyncIterator[ProductContext]:
    """FastAPI dependency: the :class:`ProductContext` of the ``X-API-Key`` header.

    The product id stays in the log context until the request finishes.
    """
    try:
        context = await authenticate_product(db, raw_key)
    except AuthError as exc:
        record_auth_failure(GATE, exc.reason)
        logger.info("API key rejected (%s)", exc.reason)
        raise
    record_auth_success(GATE)
    token = ctx_product_id.set(context.product_id)
    try:
        yield context
    finally:
        ctx_product_id.reset(token)
