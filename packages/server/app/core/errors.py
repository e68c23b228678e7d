"""
Domain errors raised by the ledger services.

Lookup misses are not errors: services return ``None`` or an empty list and
the HTTP layer decides whether that is a 404.
"""

from __future__ import annotations

from typing import Optional


class LedgerError(Exception):
    """Base class. ``code`` and ``status`` feed the API error envelope."""

    code = "LEDGER_ERROR"
    status = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "status": self.status}


class ValidationError(LedgerError):
    """A required field is missing or malformed."""

    code = "VALIDATION_ERROR"
    status = 422

    def __init__(self, message: str, errors: Optional[list[str]] = None):
        super().__init__(message)
        self.errors = errors or [message]


class DuplicateKey(LedgerError):
    code = "DUPLICATE_KEY"
    status = 409


class Unauthorized(LedgerError):
    """The acting identity lacks the capability for this operation."""

    code = "UNAUTHORIZED"
    status = 403


class LastAdminProtection(LedgerError):
    code = "LAST_ADMIN_PROTECTION"
    status = 409

    def __init__(
        self,
        message: str = "Cannot remove the last Super Admin. At least one Super Admin must remain in the system.",
    ):
        super().__init__(message)


class InvalidCredentials(LedgerError):
    """Sign-in failed. The message is normalized at the login boundary."""

    code = "INVALID_CREDENTIALS"
    status = 401

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message)


class UpstreamFailure(LedgerError):
    """The store or identity provider failed; carries the underlying message."""

    code = "UPSTREAM_FAILURE"
    status = 502


def upstream_message(exc: BaseException) -> str:
    """The driver's own message for a store failure, without SQLAlchemy's wrapper text."""
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)
