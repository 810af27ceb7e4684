"""Request pipeline dependencies: bearer auth, role gate, rate limiter wiring and services.

Rate limiting runs first, in RateLimitMiddleware, ahead of routing. For a
protected route the remaining order is fixed by how the dependencies are
declared: get_current_user (router) -> require_roles (route) -> body
validation -> handler.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.errors import ForbiddenError, UnauthenticatedError, UnauthorizedError
from app.core.security import TokenError, decode_access_token
from app.models.user import Role
from app.services.auth import AuthService
from app.services.rate_limit import RateLimiter, build_rate_limiter
from app.services.user_store import UserStore

logger = logging.getLogger(__name__)
security = HTTPBearer(auto_error=False)

SettingsDep = Annotated[Settings, Depends(get_settings)]
CredentialsDep = Annotated[HTTPAuthorizationCredentials | None, Depends(security)]


@dataclass(frozen=True)
class AuthContext:
    """Identity attached to an authenticated request."""

    user_id: int
    role: Role


def get_user_store(db: Annotated[Session, Depends(get_db)]) -> UserStore:
    return UserStore(db)


def get_auth_service(
    store: Annotated[UserStore, Depends(get_user_store)],
    settings: SettingsDep,
) -> AuthService:
    return AuthService(store, settings)


@lru_cache
def get_rate_limiter() -> RateLimiter:
    """Process-wide limiter built from settings on first use."""
    return build_rate_limiter(get_settings())


def identify_caller(
    credentials: HTTPAuthorizationCredentials | None,
    settings: Settings,
) -> tuple[Role, int | None]:
    """Role and user id for rate limiting. Missing or invalid tokens count as guest."""
    if credentials is None:
        return Role.GUEST, None
    try:
        claims = decode_access_token(credentials.credentials, settings)
    except TokenError:
        return Role.GUEST, None
    return claims.role, claims.user_id


def get_current_user(
    request: Request,
    credentials: CredentialsDep,
    settings: SettingsDep,
) -> AuthContext:
    """Dependency: require a valid Bearer JWT and attach its identity to request.state.auth."""
    if credentials is None:
        raise UnauthenticatedError("Authentication required. Send Authorization: Bearer <token>.")
    try:
        claims = decode_access_token(credentials.credentials, settings)
    except TokenError as e:
        raise UnauthorizedError(e.message) from e
    context = AuthContext(user_id=claims.user_id, role=claims.role)
    request.state.auth = context
    return context


class RoleGate:
    """Dependency admitting only authenticated callers whose role is in roles."""

    def __init__(self, roles: frozenset[Role]) -> None:
        self.roles = roles

    def __call__(self, request: Request) -> AuthContext:
        context = getattr(request.state, "auth", None)
        if not isinstance(context, AuthContext):
            # Declared without get_current_user ahead of it: fail closed.
            logger.error("Role gate reached without an authenticated context", extra={"path": request.url.path})
            raise UnauthenticatedError()
        if context.role not in self.roles:
            raise ForbiddenError(
                "This action requires role: "
                + ", ".join(sorted(r.value for r in self.roles))
                + "."
            )
        return context


def require_roles(*roles: Role) -> RoleGate:
    """Build a role gate; declare it after get_current_user."""
    if not roles:
        raise ValueError("require_roles needs at least one role")
    return RoleGate(frozenset(Role(r) for r in roles))


CurrentUser = Annotated[AuthContext, Depends(get_current_user)]
