"""Per-request authenticated identities.

Both are frozen: a gate builds one only after every check has passed and
hands it to the route through the dependency return value.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ProductContext:
    """Product resolved from an ``X-API-Key`` header."""

    product_id: str


@dataclass(frozen=True)
class AdminContext:
    """Admin resolved from a Basic ``Authorization`` header."""

    admin_id: str
    admin_role: str
    admin_email: str
