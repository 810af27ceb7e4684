"""Users resource: list, fetch, update (self or admin) and delete (admin only)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query

from app.api.deps import CurrentUser, get_current_user, get_user_store, require_roles
from app.models.user import Role
from app.schemas.auth import MessageResponse, UserOut
from app.schemas.users import UserUpdateRequest, UsersListResponse
from app.services import users as users_service
from app.services.user_store import UserStore

router = APIRouter(dependencies=[Depends(get_current_user)])

UserId = Annotated[int, Path(ge=1, description="User id")]
StoreDep = Annotated[UserStore, Depends(get_user_store)]


@router.get("", response_model=UsersListResponse)
def list_users(
    store: StoreDep,
    offset: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
) -> UsersListResponse:
    """List users ordered by id."""
    users = users_service.list_users(store, offset=offset, limit=limit)
    return UsersListResponse(
        users=[UserOut.model_validate(u) for u in users],
        offset=offset,
        limit=limit,
    )


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: UserId, store: StoreDep) -> UserOut:
    return UserOut.model_validate(users_service.get_user(store, user_id))


@router.put("/{user_id}", response_model=UserOut)
def update_user(
    user_id: UserId,
    body: UserUpdateRequest,
    actor: CurrentUser,
    store: StoreDep,
) -> UserOut:
    """Update a user. Non-admins may only update themselves and cannot change role."""
    user = users_service.update_user(store, actor, user_id, body)
    return UserOut.model_validate(user)


@router.delete(
    "/{user_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require_roles(Role.ADMIN))],
)
def delete_user(user_id: UserId, actor: CurrentUser, store: StoreDep) -> MessageResponse:
    """Delete a user (admin only)."""
    users_service.delete_user(store, actor, user_id)
    return MessageResponse(message=f"User {user_id} deleted.")
