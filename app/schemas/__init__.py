"""Pydantic request/response schemas."""

from app.schemas.auth import (
    AuthResponse,
    MessageResponse,
    SignInRequest,
    SignUpRequest,
    UserOut,
)
from app.schemas.health import HealthResponse
from app.schemas.users import UserUpdateRequest, UsersListResponse

__all__ = [
    "AuthResponse",
    "HealthResponse",
    "MessageResponse",
    "SignInRequest",
    "SignUpRequest",
    "UserOut",
    "UserUpdateRequest",
    "UsersListResponse",
]
