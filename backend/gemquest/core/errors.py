# gemquest/core/errors.py
"""
Error taxonomy for the authentication and authorization core.

Every error carries a stable machine-readable code, a human message and the
HTTP status the API layer maps it to. Services raise these; the exception
handler registered in gemquest.main turns them into the response envelope
{"success": False, "error": {"code": ..., "message": ...}}.
"""
from typing import Any, Optional


class GemQuestError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, code: Optional[str] = None, **extra: Any):
        self.message = message or self.message
        self.code = code or self.code
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Serialize into the `error` part of the response envelope."""
        body = {"code": self.code, "message": self.message}
        body.update(self.extra)
        return body


class AuthenticationError(GemQuestError):
    """Missing, invalid or expired bearer credential, or bad login credentials."""
    status_code = 401
    code = "AUTH_REQUIRED"
    message = "Authentication required"


class InvalidOrExpiredToken(GemQuestError):
    """
    A confirmation/reset token was absent, mismatched or expired.
    The three cases are deliberately indistinguishable.
    """
    status_code = 400
    code = "INVALID_OR_EXPIRED_TOKEN"
    message = "Invalid or expired token"


class BadRequestError(GemQuestError):
    status_code = 400
    code = "BAD_REQUEST"
    message = "Bad request"


class ConflictError(GemQuestError):
    """Uniqueness violation (duplicate email/username, conflicting assignment)."""
    status_code = 409
    code = "CONFLICT"
    message = "Resource already exists"


class ForbiddenError(GemQuestError):
    """Authenticated but lacking the required roles/permissions."""
    status_code = 403
    code = "FORBIDDEN"
    message = "Forbidden"


class NotFoundError(GemQuestError):
    """Referenced role/tenant/group/resource does not exist."""
    status_code = 404
    code = "NOT_FOUND"
    message = "Not found"


class DependencyFailure(GemQuestError):
    """Repository, hashing or other collaborator failure. Fatal for the request."""
    status_code = 500
    code = "DEPENDENCY_FAILURE"
    message = "An internal error occurred"


class CredentialFailure(DependencyFailure):
    code = "CREDENTIAL_FAILURE"


class NotificationFailure(DependencyFailure):
    code = "EMAIL_DELIVERY_FAILED"
    message = "Failed to send email"
