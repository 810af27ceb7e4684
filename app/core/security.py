"""Password hashing and JWT creation/verification for authentication."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import bcrypt
import jwt

from app.models.user import Role

if TYPE_CHECKING:
    from app.core.config import Settings

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

# Input validation limits shared by schemas and the create_user script.
EMAIL_MAX_LEN = 255
NAME_MAX_LEN = 255
PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128

REQUIRED_CLAIMS = ["sub", "role", "iat", "exp"]


class TokenError(Exception):
    """Base class for access token verification failures."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class TokenExpiredError(TokenError):
    """Token signature is valid but exp is in the past."""


class TokenSignatureError(TokenError):
    """Token was not signed with the configured secret."""


class TokenMalformedError(TokenError):
    """Token cannot be parsed or lacks the expected claims."""


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    role: Role
    issued_at: datetime
    expires_at: datetime


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash. Malformed hashes verify as False."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError, AttributeError):
        return False


def create_access_token(
    user_id: int,
    role: Role,
    settings: "Settings",
    now: datetime | None = None,
) -> str:
    """Create a JWT access token with sub (user id), role, iat and exp."""
    issued_at = now or datetime.now(UTC)
    expire = issued_at + timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "role": Role(role).value,
        "iat": issued_at,
        "exp": expire,
    }
    return jwt.encode(
        payload,
        settings.JWT_SECRET.get_secret_value(),
        algorithm=settings.JWT_ALGORITHM,
    )


def decode_access_token(token: str, settings: "Settings") -> TokenClaims:
    """
    Verify signature and expiry of a JWT and return its claims.

    Raises TokenExpiredError, TokenSignatureError or TokenMalformedError.
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET.get_secret_value(),
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": REQUIRED_CLAIMS},
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenExpiredError("Token has expired.") from e
    except jwt.InvalidSignatureError as e:
        raise TokenSignatureError("Token signature is invalid.") from e
    except jwt.PyJWTError as e:
        raise TokenMalformedError("Token is malformed.") from e

    try:
        user_id = int(payload["sub"])
        role = Role(payload["role"])
    except (TypeError, ValueError) as e:
        raise TokenMalformedError("Token payload is invalid.") from e
    return TokenClaims(
        user_id=user_id,
        role=role,
        issued_at=datetime.fromtimestamp(payload["iat"], UTC),
        expires_at=datetime.fromtimestamp(payload["exp"], UTC),
    )
