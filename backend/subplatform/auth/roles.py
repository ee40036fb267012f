"""Role authorizer for admin operations.

Usage::

    from subplatform.auth.roles import require_super_admin

    @router.post("/admins")
    async def create_admin(..., admin: AdminContext = Depends(require_super_admin)): ...

``authorize`` and ``authorize_admin_delete`` are pure: they only inspect the
context and raise, so a denied request never reaches the mutation.
"""

from __future__ import annotations

import logging
from enum import Enum

from fastapi import Depends

from subplatform.auth.admin import require_admin
from subplatform.auth.context import AdminContext
from subplatform.auth.errors import InsufficientPrivilege, SelfDeletionForbidden
from subplatform.utils.metrics import record_auth_failure

logger = logging.getLogger("subplatform.auth")


class AdminRole(str, Enum):
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


# Higher index = more privilege.
_ROLE_ORDER = [AdminRole.ADMIN.value, AdminRole.SUPER_ADMIN.value]


def has_role(context: AdminContext, required: AdminRole | str) -> bool:
    """Return True if *context* holds *required* or a higher role."""
    required = AdminRole(required).value
    try:
        return _ROLE_ORDER.index(context.admin_role) >= _ROLE_ORDER.index(required)
    except ValueError:
        return False


def authorize(context: AdminContext, required: AdminRole | str = AdminRole.SUPER_ADMIN) -> None:
    if not has_role(context, required):
        logger.warning(
            "Access denied: admin '%s' (role=%s) needs role '%s'",
            context.admin_email,
            context.admin_role,
            AdminRole(required).value,
        )
        record_auth_failure("role", InsufficientPrivilege.reason)
        raise InsufficientPrivilege("Super admin access required")


def authorize_admin_delete(context: AdminContext, target_admin_id: str) -> None:
    """Guard admin deletion: never oneself, and only as a super admin.

    The self-deletion check runs first, so a super admin deleting their own
    account gets the 400 rather than a role error.
    """
    if context.admin_id == target_admin_id:
        raise SelfDeletionForbidden("Cannot delete yourself")
    authorize(context, AdminRole.SUPER_ADMIN)


async def require_super_admin(admin: AdminContext = Depends(require_admin)) -> AdminContext:
    """FastAPI dependency: an authenticated admin holding ``SUPER_ADMIN``."""
    authorize(admin, AdminRole.SUPER_ADMIN)
    return admin
