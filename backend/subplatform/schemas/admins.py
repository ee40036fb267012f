"""Pydantic models for admin users. Password hashes never leave the service."""

from __future__ import annotations

from datetime import datetime

from pydantic import EmailStr, Field

from subplatform.schemas.common import CamelModel


class AdminCreate(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)
    name: str = Field(min_length=1)
    role: str = "ADMIN"


class AdminUpdate(CamelModel):
    """Body for PATCH /manage/admins/{id}; all fields optional."""
    email: EmailStr | None = None
    password: str | None = Field(default=None, min_length=1)
    name: str | None = None
    role: str | None = None
    is_active: bool | None = None


class AdminOut(CamelModel):
    id: str
    email: str
    name: str
    role: str
    is_active: bool
    last_login_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class AdminMeOut(CamelModel):
    admin_id: str
    admin_role: str
    admin_email: str
