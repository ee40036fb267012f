"""Authentication / authorization failures.

Every failure is an :class:`fastapi.HTTPException` carrying its own status
code, so the application's HTTPException handler turns it into
``{"error": <detail>}`` at the gate boundary.

``UnknownIdentity`` subclasses ``InvalidCredential`` and the gates raise both
with the same message: callers cannot tell an unknown or disabled identity
from a wrong secret.
"""

from __future__ import annotations

from fastapi import HTTPException, status


class AuthError(HTTPException):
    """Base class for gate rejections."""

    status_code: int = status.HTTP_401_UNAUTHORIZED
    reason: str = "auth_error"

    def __init__(self, detail: str) -> None:
        super().__init__(status_code=type(self).status_code, detail=detail)


class MissingCredential(AuthError):
    reason = "missing"


class MalformedCredential(AuthError):
    reason = "malformed"


class UnsupportedScheme(AuthError):
    reason = "unsupported_scheme"


class InvalidCredential(AuthError):
    reason = "invalid"


class UnknownIdentity(InvalidCredential):
    reason = "unknown_identity"


class InsufficientPrivilege(AuthError):
    status_code = status.HTTP_403_FORBIDDEN
    reason = "insufficient_privilege"


class SelfDeletionForbidden(AuthError):
    status_code = status.HTTP_400_BAD_REQUEST
    reason = "self_deletion"
