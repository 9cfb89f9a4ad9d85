"""Typed API errors.

Learn: Services raise these at the point of detection. They are caught
once, at the HTTP boundary (socialnet.middleware.errors), and turned into
the error envelope {statusCode, message, success: false, errors}.
Anything that is not an ApiError becomes a 500 with a generic message.
"""

from typing import Any, Optional


class ApiError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = 500
    default_message: str = "Something went wrong"

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[list[Any]] = None,
    ):
        self.message = message or self.default_message
        self.errors = errors or []
        super().__init__(self.message)


class ValidationError(ApiError):
    status_code = 400
    default_message = "Invalid request"


class UnauthorizedError(ApiError):
    status_code = 401
    default_message = "Unauthorized request"


class RefreshMismatchError(UnauthorizedError):
    """The presented refresh token is not the account's current one.

    Either it was superseded by a later rotation, or the account logged
    out. Clients should treat this as "sign in again".
    """

    default_message = "Refresh token mismatch, it may be expired or already used"


class InvalidOrExpiredTokenError(UnauthorizedError):
    """An email-verification or password-reset token was reused or timed out."""

    default_message = "Token is invalid or expired"


class ForbiddenError(ApiError):
    status_code = 403
    default_message = "You are not allowed to perform this action"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(ApiError):
    status_code = 409
    default_message = "Resource already exists"


class InternalError(ApiError):
    status_code = 500
