"""CRUD operations on users with ownership and role rules."""

import logging
from typing import TYPE_CHECKING

from app.core.errors import ConflictError, ForbiddenError, NotFoundError
from app.core.security import hash_password
from app.models.user import Role, User
from app.schemas.users import UserUpdateRequest
from app.services.user_store import UserStore

if TYPE_CHECKING:
    from app.api.deps import AuthContext

logger = logging.getLogger(__name__)


def list_users(store: UserStore, offset: int = 0, limit: int = 50) -> list[User]:
    return store.list_users(offset=offset, limit=limit)


def get_user(store: UserStore, user_id: int) -> User:
    """Return the user or raise NotFoundError."""
    user = store.get_by_id(user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found.")
    return user


def update_user(
    store: UserStore,
    actor: "AuthContext",
    user_id: int,
    changes: UserUpdateRequest,
) -> User:
    """
    Apply a partial update.

    Non-admins may only update their own record and may not change role.
    An email already held by another user raises ConflictError. Nothing is
    written unless every check passes.
    """
    is_admin = actor.role is Role.ADMIN
    if not is_admin and actor.user_id != user_id:
        raise ForbiddenError("You can only update your own account.")
    if not is_admin and changes.role is not None:
        raise ForbiddenError("Only admins can change roles.")

    user = get_user(store, user_id)

    if changes.email is not None and changes.email != user.email:
        existing = store.get_by_email(changes.email)
        if existing is not None and existing.id != user.id:
            raise ConflictError("Email is already registered.")
        user.email = changes.email
    if changes.name is not None:
        user.name = changes.name
    if changes.password is not None:
        user.password_hash = hash_password(changes.password)
    if changes.role is not None:
        user.role = changes.role.value

    user = store.save(user)
    logger.info(
        "User updated",
        extra={
            "user_id": user.id,
            "actor_id": actor.user_id,
            "fields": sorted(f for f in changes.model_fields_set if getattr(changes, f) is not None),
        },
    )
    return user


def delete_user(store: UserStore, actor: "AuthContext", user_id: int) -> None:
    """Delete a user or raise NotFoundError. Callers gate this to admins."""
    user = get_user(store, user_id)
    store.delete(user)
    logger.info("User deleted", extra={"user_id": user_id, "actor_id": actor.user_id})
