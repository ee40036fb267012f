"""Rule violations raised by the service layer; routers map them to HTTP errors."""

from __future__ import annotations


class ConflictError(ValueError):
    """A uniqueness rule would be broken (duplicate slug, email, subscription...)."""


class HasDependentsError(ValueError):
    """The record is still referenced and cannot be deleted."""
