"""Application error taxonomy. Each error maps to one HTTP status and a stable error code."""

from typing import Any


class AppError(Exception):
    """Base class for errors rendered as {"error", "message", "details"?} responses."""

    status_code: int = 500
    error: str = "InternalError"
    default_message: str = "Internal server error."

    def __init__(
        self,
        message: str | None = None,
        details: list[dict[str, Any]] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.details = details
        self.headers = headers
        super().__init__(self.message)


class InputValidationError(AppError):
    """Request body or parameters failed schema validation."""

    status_code = 422
    error = "ValidationError"
    default_message = "Request validation failed."


class ConflictError(AppError):
    status_code = 409
    error = "Conflict"
    default_message = "Resource already exists."


class InvalidCredentialsError(AppError):
    """Sign-in failed. Same message whether the email is unknown or the password is wrong."""

    status_code = 401
    error = "InvalidCredentials"
    default_message = "Invalid email or password."


class UnauthenticatedError(AppError):
    status_code = 401
    error = "Unauthenticated"
    default_message = "Authentication required."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class UnauthorizedError(AppError):
    """Bearer token was presented but is expired, tampered with or unparseable."""

    status_code = 401
    error = "Unauthorized"
    default_message = "Invalid or expired token."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message, headers={"WWW-Authenticate": 'Bearer error="invalid_token"'})


class ForbiddenError(AppError):
    status_code = 403
    error = "Forbidden"
    default_message = "Insufficient permissions."


class NotFoundError(AppError):
    status_code = 404
    error = "NotFound"
    default_message = "Resource not found."


class TooManyRequestsError(AppError):
    status_code = 429
    error = "TooManyRequests"
    default_message = "Rate limit exceeded."

    def __init__(self, message: str | None = None, retry_after: int | None = None) -> None:
        headers = {"Retry-After": str(retry_after)} if retry_after is not None else None
        self.retry_after = retry_after
        super().__init__(message, headers=headers)


class ServiceUnavailableError(AppError):
    status_code = 503
    error = "ServiceUnavailable"
    default_message = "Service temporarily unavailable."


class InternalServerError(AppError):
    status_code = 500
    error = "InternalError"
    default_message = "Internal server error."
