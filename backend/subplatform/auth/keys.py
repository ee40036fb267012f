"""Product API key format: ``{productId}_{tag}_{random}``.

Only the first segment carries meaning (the product id). Product ids are
assigned from a separator-free alphabet, see
:func:`subplatform.services.product_service.derive_product_id`.
"""

from __future__ import annotations

import uuid

from subplatform.config import settings

SEPARATOR = "_"


def generate_api_key(product_id: str, tag: str | None = None) -> str:
    if SEPARATOR in product_id:
        raise ValueError(f"Product id {product_id!r} must not contain {SEPARATOR!r}")
    return SEPARATOR.join((product_id, tag or settings.API_KEY_TAG, str(uuid.uuid4())))


def parse_product_id(api_key: str) -> str | None:
    """Return the candidate product id of *api_key*, or None when the prefix is empty."""
    candidate = api_key.split(SEPARATOR, 1)[0]
    return candidate or None
