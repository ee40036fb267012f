"""Shared pydantic base and the flat record models.

JSON uses camelCase (``isActive``, ``productId``) as the dashboard expects;
snake_case is accepted on input as well.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ErrorOut(CamelModel):
    error: str
    hint: str | None = None


class ProductOut(CamelModel):
    id: str
    name: str
    is_active: bool
    created_at: datetime


class PlanOut(CamelModel):
    id: str
    product_id: str
    name: str
    slug: str
    price: int
    features: str
    max_properties: int
    is_active: bool
    created_at: datetime


class UserOut(CamelModel):
    id: str
    email: str
    name: str | None = None
    role: str
    created_at: datetime
    updated_at: datetime


class SubscriptionOut(CamelModel):
    id: str
    user_id: str
    plan_id: str
    product_id: str
    payment_method_id: str | None = None
    status: str
    provider: str | None = None
    external_id: str | None = None
    payment_proof_url: str | None = None
    payment_note: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    created_at: datetime
    updated_at: datetime


class SubscriptionWithPlanOut(SubscriptionOut):
    plan: PlanOut
