"""Authentication and authorization gates for the subscription platform.

Two independent credential schemes guard the API:

1. ``X-API-Key: {productId}_{tag}_{random}``
   Product-scoped key checked against the product's bcrypt hash.
   See :func:`subplatform.auth.api_key.require_product_key`.

2. ``Authorization: Basic base64(email:password)``
   Admin dashboard operators. See :func:`subplatform.auth.admin.require_admin`.

Role hierarchy (checked with ``subplatform.auth.roles``)
--------------------------------------------------------
``SUPER_ADMIN`` > ``ADMIN``

Gate modules import the service layer, so only the leaf modules are
re-exported here.
"""

from subplatform.auth.context import AdminContext, ProductContext
from subplatform.auth.errors import (
    AuthError,
    InsufficientPrivilege,
    InvalidCredential,
    MalformedCredential,
    MissingCredential,
    SelfDeletionForbidden,
    UnknownIdentity,
    UnsupportedScheme,
)

__all__ = [
    "AdminContext",
    "ProductContext",
    "AuthError",
    "InsufficientPrivilege",
    "InvalidCredential",
    "MalformedCredential",
    "MissingCredential",
    "SelfDeletionForbidden",
    "UnknownIdentity",
    "UnsupportedScheme",
]
