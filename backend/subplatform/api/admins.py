"""Admin users management API.

Endpoints
---------
GET    /manage/me            - the authenticated admin (any admin)
GET    /manage/admins        - list admins (any admin)
POST   /manage/admins        - create admin (SUPER_ADMIN)
GET    /manage/admins/{id}   - get admin (any admin)
PATCH  /manage/admins/{id}   - update role / status / password (SUPER_ADMIN)
DELETE /manage/admins/{id}   - delete admin (SUPER_ADMIN, never oneself)
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from subplatform.auth.admin import require_admin
from subplatform.auth.context import AdminContext
from subplatform.auth.roles import authorize_admin_delete, require_super_admin
from subplatform.db.engine import get_db
from subplatform.schemas.admins import AdminCreate, AdminMeOut, AdminOut, AdminUpdate
from subplatform.services import admin_user_service

logger = logging.getLogger("subplatform.api.admins")
router = APIRouter(tags=["admins"])


@router.get("/me", response_model=AdminMeOut)
async def whoami(admin: AdminContext = Depends(require_admin)):
    return AdminMeOut(
        admin_id=admin.admin_id, admin_role=admin.admin_role, admin_email=admin.admin_email
    )


@router.get("/admins", response_model=list[AdminOut])
async def list_admins(db: AsyncSession = Depends(get_db)):
    return await admin_user_service.list_admins(db)


@router.post("/admins", response_model=AdminOut, status_code=status.HTTP_201_CREATED)
async def create_admin(
    body: AdminCreate,
    db: AsyncSession = Depends(get_db),
    admin: AdminContext = Depends(require_super_admin),
):
    try:
        created = await admin_user_service.create_admin(
            db, email=body.email, password=body.password, name=body.name, role=body.role
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    logger.info("Admin '%s' created admin '%s'", admin.admin_email, created.email)
    return created


@router.get("/admins/{admin_id}", response_model=AdminOut)
async def get_admin(admin_id: str, db: AsyncSession = Depends(get_db)):
    target = await admin_user_service.get_admin_by_id(db, admin_id)
    if not target:
        raise HTTPException(status_code=404, detail="Admin not found")
    return target


@router.patch("/admins/{admin_id}", response_model=AdminOut)
async def update_admin(
    admin_id: str,
    body: AdminUpdate,
    db: AsyncSession = Depends(get_db),
    _: AdminContext = Depends(require_super_admin),
):
    target = await admin_user_service.get_admin_by_id(db, admin_id)
    if not target:
        raise HTTPException(status_code=404, detail="Admin not found")
    try:
        return await admin_user_service.update_admin(
            db,
            target,
            email=body.email,
            name=body.name,
            role=body.role,
            is_active=body.is_active,
            password=body.password,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.delete("/admins/{admin_id}")
async def delete_admin(
    admin_id: str,
    db: AsyncSession = Depends(get_db),
    admin: AdminContext = Depends(require_admin),
):
    authorize_admin_delete(admin, admin_id)
    target = await admin_user_service.get_admin_by_id(db, admin_id)
    if not target:
        raise HTTPException(status_code=404, detail="Admin not found")
    await admin_user_service.delete_admin(db, target)
    return {"success": True}
