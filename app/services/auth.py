"""Sign-up, sign-in and sign-out orchestration."""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from app.core.errors import ConflictError, InvalidCredentialsError
from app.core.security import create_access_token, hash_password, verify_password
from app.models.user import User
from app.schemas.auth import SignInRequest, SignUpRequest
from app.services.user_store import UserStore

if TYPE_CHECKING:
    from app.api.deps import AuthContext
    from app.core.config import Settings

logger = logging.getLogger(__name__)

# Verified against when the email is unknown so sign-in costs one bcrypt check either way.
_DUMMY_PASSWORD_HASH = "$2b$12$C6UzMDM.H6dfI/f/IKcEeO5K8o4qOGqGd5S8L2QXz/mE0Xq2b1Yxm"

SIGN_OUT_MESSAGE = "Signed out. Discard the access token on the client."


@dataclass(frozen=True)
class AuthResult:
    user: User
    token: str
    expires_in: int


class AuthService:
    """Stateless orchestration over a UserStore; tokens are never stored server-side."""

    def __init__(self, store: UserStore, settings: "Settings") -> None:
        self.store = store
        self.settings = settings

    def _issue(self, user: User) -> AuthResult:
        token = create_access_token(user.id, user.role, self.settings)
        return AuthResult(
            user=user,
            token=token,
            expires_in=self.settings.JWT_EXPIRE_MINUTES * 60,
        )

    def sign_up(self, body: SignUpRequest) -> AuthResult:
        """Create an account and return it with a fresh token. Raises ConflictError for a taken email."""
        if self.store.get_by_email(body.email) is not None:
            logger.info("Sign-up rejected: email already registered")
            raise ConflictError("Email is already registered.")
        user = User(
            email=body.email,
            name=body.name,
            password_hash=hash_password(body.password),
            role=body.role.value,
        )
        user = self.store.add(user)
        logger.info("User signed up", extra={"user_id": user.id, "role": user.role})
        return self._issue(user)

    def sign_in(self, body: SignInRequest) -> AuthResult:
        """
        Verify credentials and return a fresh token.

        Unknown email and wrong password raise the same InvalidCredentialsError.
        """
        user = self.store.get_by_email(body.email)
        if user is None:
            verify_password(body.password, _DUMMY_PASSWORD_HASH)
            logger.info("Sign-in failed", extra={"reason": "invalid_credentials"})
            raise InvalidCredentialsError()
        if not verify_password(body.password, user.password_hash):
            logger.info("Sign-in failed", extra={"reason": "invalid_credentials"})
            raise InvalidCredentialsError()
        logger.info("User signed in", extra={"user_id": user.id, "role": user.role})
        return self._issue(user)

    def sign_out(self, context: "AuthContext") -> str:
        """Nothing to revoke server-side; the client drops its token."""
        logger.info(
            "User signed out",
            extra={"user_id": context.user_id, "role": context.role.value},
        )
        return SIGN_OUT_MESSAGE
