"""Request/response schemas for the users resource."""

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from app.core.security import NAME_MAX_LEN, PASSWORD_MAX_LEN, PASSWORD_MIN_LEN
from app.models.user import Role
from app.schemas.auth import UserOut, check_password_policy, normalize_email


class UserUpdateRequest(BaseModel):
    """Partial update; only fields that are present are changed."""

    email: EmailStr | None = None
    password: str | None = Field(
        default=None, min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN
    )
    name: str | None = Field(default=None, min_length=1, max_length=NAME_MAX_LEN)
    role: Role | None = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        return normalize_email(v) if v is not None else None

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str | None) -> str | None:
        return check_password_policy(v) if v is not None else None

    @model_validator(mode="after")
    def require_some_field(self) -> "UserUpdateRequest":
        if not self.model_fields_set or all(
            getattr(self, f) is None for f in self.model_fields_set
        ):
            raise ValueError("At least one of email, password, name or role must be provided.")
        return self


class UsersListResponse(BaseModel):
    """Response for GET /users."""

    users: list[UserOut]
    offset: int
    limit: int
