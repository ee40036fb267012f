"""Basic-auth gate for the ``/manage`` routes.

Only the ``Basic`` scheme is accepted; bearer and session tokens are not
supported. The password is always verified before ``last_login_at`` is
written, and a failure of that write never fails the request.
"""

from __future__ import annotations

import base64
import binascii
import logging
from collections.abc import AsyncIterator
from datetime import datetime, timezone

from fastapi import Depends, Security
from fastapi.security import APIKeyHeader
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from subplatform.auth.context import AdminContext
from subplatform.auth.errors import (
    AuthError,
    InvalidCredential,
    MalformedCredential,
    MissingCredential,
    UnknownIdentity,
    UnsupportedScheme,
)
from subplatform.auth.hashing import verify_secret
from subplatform.db.engine import get_db
from subplatform.services import admin_user_service
from subplatform.utils.logger import ctx_admin_id
from subplatform.utils.metrics import (
    record_auth_failure,
    record_auth_success,
    record_last_login_write_failure,
)

logger = logging.getLogger("subplatform.auth")

GATE = "admin"
INVALID_CREDENTIALS = "Invalid credentials"

# A plain header scheme hands the raw value to parse_basic_credentials;
# the docs UI accepts "Basic <base64>" in it.
authorization_header = APIKeyHeader(
    name="Authorization", scheme_name="BasicAuth", auto_error=False
)


def parse_basic_credentials(header: str | None) -> tuple[str, str]:
    """Split an ``Authorization`` header into ``(email, password)``.

    The decoded payload is split on the first colon, so passwords may
    themselves contain colons.
    """
    if not header:
        raise MissingCredential("Missing Authorization header")

    scheme, _, encoded = header.strip().partition(" ")
    if scheme.lower() != "basic":
        raise UnsupportedScheme("Unsupported authentication method")

    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, ValueError):
        raise MalformedCredential("Invalid credentials format") from None

    email, sep, password = decoded.partition(":")
    if not sep or not email or not password:
        raise MalformedCredential("Invalid credentials format")
    return email, password


async def _record_login(db: AsyncSession, admin_id: str) -> None:
    # Committed here: the route's own rollback must not undo a successful login.
    try:
        await admin_user_service.record_login(db, admin_id, datetime.now(timezone.utc))
        await db.commit()
    except SQLAlchemyError:
        logger.exception("Failed to record last login for admin %s", admin_id)
        record_last_login_write_failure()
        await db.rollback()


async def authenticate_admin(db: AsyncSession, header: str | None) -> AdminContext:
    """Resolve a Basic ``Authorization`` header to an active admin.

    Raises an :class:`~subplatform.auth.errors.AuthError` subclass on any failure.
    """
    email, password = parse_basic_credentials(header)

    admin = await admin_user_service.get_admin_by_email(db, email)
    if admin is None or not admin.is_active:
        raise UnknownIdentity(INVALID_CREDENTIALS)

    if not verify_secret(password, admin.password_hash):
        raise InvalidCredential(INVALID_CREDENTIALS)

    context = AdminContext(admin_id=admin.id, admin_role=admin.role, admin_email=admin.email)
    await _record_login(db, admin.id)
    return context


async def require_admin(
    authorization: str | None = Security(authorization_header),
    db: AsyncSession = Depends(get_db),
) -> AsyncIterator[AdminContext]:
    """FastAPI dependency: the :class:`AdminContext` of the Basic credentials.

    The admin id stays in the log context until the request finishes.
    """
    try:
        context = await authenticate_admin(db, authorization)
    except AuthError as exc:
        record_auth_failure(GATE, exc.reason)
        logger.info("Admin authentication rejected (%s)", exc.reason)
        raise
    record_auth_success(GATE)
    token = ctx_admin_id.set(context.admin_id)
    try:
        yield context
    finally:
        ctx_admin_id.reset(token)
