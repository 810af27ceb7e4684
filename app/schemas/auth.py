"""Request/response schemas for auth endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.core.security import NAME_MAX_LEN, PASSWORD_MAX_LEN, PASSWORD_MIN_LEN
from app.models.user import Role

# Roles a caller may pick for themselves at sign-up. Admins come from the
# create_user script or from an admin promoting an existing account.
SELF_ASSIGNABLE_ROLES = frozenset({Role.USER, Role.GUEST})


def normalize_email(value: str) -> str:
    return value.strip().lower()


def check_password_policy(value: str) -> str:
    if not value.strip():
        raise ValueError("Password must not be blank.")
    return value


class SignUpRequest(BaseModel):
    """Payload for creating an account."""

    email: EmailStr = Field(..., description="Email address (case-insensitive, unique)")
    password: str = Field(
        ...,
        min_length=PASSWORD_MIN_LEN,
        max_length=PASSWORD_MAX_LEN,
        description=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters)",
    )
    name: str | None = Field(default=None, min_length=1, max_length=NAME_MAX_LEN)
    role: Role = Field(default=Role.USER, description="Requested role: user or guest")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_policy(v)

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: Role) -> Role:
        if v not in SELF_ASSIGNABLE_ROLES:
            raise ValueError("Admin accounts cannot be self-registered.")
        return v


class SignInRequest(BaseModel):
    """Credentials for sign-in."""

    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN, description="Password")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)


class UserOut(BaseModel):
    """User as returned by the API (never includes the password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str | None = None
    role: Role
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AuthResponse(BaseModel):
    """Returned after sign-up and sign-in. Send the token as: Authorization: Bearer <token>"""

    user: UserOut
    token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Token lifetime in seconds")


class MessageResponse(BaseModel):
    message: str
