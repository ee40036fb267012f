"""End users management API (``/manage/users``)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from subplatform.db.engine import get_db
from subplatform.schemas.common import UserOut
from subplatform.schemas.subscriptions import UserDetailOut, UserListItemOut, UserUpdate
from subplatform.services import user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=list[UserListItemOut])
async def list_users(
    search: str | None = Query(default=None),
    product_id: str | None = Query(default=None, alias="productId"),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.list_users(db, search=search, product_id=product_id)


@router.get("/{user_id}", response_model=UserDetailOut)
async def get_user(user_id: str, db: AsyncSession = Depends(get_db)):
    user = await user_service.get_user_detail(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.patch("/{user_id}", response_model=UserOut)
async def update_user(user_id: str, body: UserUpdate, db: AsyncSession = Depends(get_db)):
    user = await user_service.get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    try:
        return await user_service.update_user(
            db, user, email=body.email, name=body.name, role=body.role
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
