"""Pydantic models for products, plans and payment methods."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from subplatform.schemas.common import CamelModel, PlanOut, ProductOut, SubscriptionOut


# ── Products ───────────────────────────────────────────────────


class ProductCreate(CamelModel):
    name: str = Field(min_length=1)
    is_active: bool = True


class ProductUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1)
    is_active: bool | None = None


class ProductWithPlansOut(ProductOut):
    plans: list[PlanOut] = []


class ProductDetailOut(ProductWithPlansOut):
    subscriptions: list[SubscriptionOut] = []


class ProductCreatedOut(ProductOut):
    """Returned once: the plaintext key is not stored and cannot be shown again."""
    api_key: str


class ApiKeyOut(CamelModel):
    id: str
    api_key: str


# ── Plans ──────────────────────────────────────────────────────


class PlanCreate(CamelModel):
    product_id: str
    name: str = Field(min_length=1)
    slug: str = Field(min_length=1)
    price: int  # cents
    features: list[str] | str | None = None
    max_properties: int = 1
    is_active: bool = True


class PlanUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1)
    slug: str | None = Field(default=None, min_length=1)
    price: int | None = None
    features: list[str] | str | None = None
    max_properties: int | None = None
    is_active: bool | None = None


# ── Payment methods ────────────────────────────────────────────


class PaymentMethodCreate(CamelModel):
    slug: str
    name: str = Field(min_length=1)
    type: str = "manual"
    provider: str | None = None
    config: str | None = None
    is_active: bool = True


class PaymentMethodUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1)
    type: str | None = None
    provider: str | None = None
    config: str | None = None
    is_active: bool | None = None


class PaymentMethodOut(CamelModel):
    id: str
    slug: str
    name: str
    type: str
    provider: str | None = None
    config: str | None = None
    is_active: bool
    created_at: datetime


class ProductPaymentMethodOut(PaymentMethodOut):
    display_order: int
    is_default: bool

    @classmethod
    def from_product_method(cls, entry) -> "ProductPaymentMethodOut":
        base = PaymentMethodOut.model_validate(entry.method).model_dump()
        return cls(**base, display_order=entry.display_order, is_default=entry.is_default)


class ProductPaymentMethodIn(CamelModel):
    payment_method_id: str
    display_order: int = 0
    is_default: bool = False


class ProductPaymentMethodsIn(CamelModel):
    methods: list[ProductPaymentMethodIn]
