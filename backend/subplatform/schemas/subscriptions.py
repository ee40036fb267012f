"""Pydantic models for end users, subscriptions and upgrade verification."""

from __future__ import annotations

from datetime import datetime

from pydantic import EmailStr, Field

from subplatform.schemas.common import (
    CamelModel,
    PlanOut,
    ProductOut,
    SubscriptionOut,
    SubscriptionWithPlanOut,
    UserOut,
)


# ── Users ──────────────────────────────────────────────────────


class UserUpdate(CamelModel):
    email: EmailStr | None = None
    name: str | None = None
    role: str | None = None


class SubscriptionDetailOut(SubscriptionOut):
    plan: PlanOut
    user: UserOut
    product: ProductOut


class UserSubscriptionOut(SubscriptionOut):
    plan: PlanOut
    product: ProductOut


class UserListItemOut(UserOut):
    subscriptions: list[SubscriptionWithPlanOut] = []


class UserDetailOut(UserOut):
    subscriptions: list[UserSubscriptionOut] = []


# ── Subscriptions ──────────────────────────────────────────────


class SubscriptionCreate(CamelModel):
    user_id: str
    plan_id: str
    product_id: str
    status: str = "active"
    provider: str | None = "MANUAL"
    payment_method_id: str | None = None
    external_id: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None


class SubscriptionUpdate(CamelModel):
    """Body for PATCH /manage/subscriptions/{id}; only sent fields change."""
    plan_id: str | None = None
    status: str | None = None
    provider: str | None = None
    payment_method_id: str | None = None
    external_id: str | None = None
    payment_proof_url: str | None = None
    payment_note: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None


# ── Product-facing ─────────────────────────────────────────────


class UpgradeRequest(CamelModel):
    plan_id: str = Field(min_length=1)
    product_id: str | None = None
    payment_proof_url: str | None = None
    payment_note: str | None = None
    # Registers the user on first contact.
    email: EmailStr | None = None
    name: str | None = None


class VerifyRequest(CamelModel):
    subscription_id: str
    approve: bool


class DashboardOut(CamelModel):
    active_products: int
    active_plans: int
    total_users: int
    active_subscriptions: int
    pending_subscriptions: int
