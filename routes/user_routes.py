"""
User management.

GET    /users        list users (admin)
GET    /users/{id}   one user (bearer)
PATCH  /users/{id}   update username/image (self, or admin)
DELETE /users/{id}   delete a user (admin)
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from dependencies import get_current_user, get_user_service, require_admin
from schemas.dto.requests.request import ListQuery
from schemas.dto.requests.user import UpdateUserRequest
from schemas.dto.responses.auth import UserListResponse, UserProfileResponse
from schemas.dto.responses.common import MessageResponse, PaginationMeta
from schemas.models.user import UserDoc
from services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=UserListResponse)
async def list_users(
    query: Annotated[ListQuery, Query()],
    _admin: UserDoc = Depends(require_admin),
    users: UserService = Depends(get_user_service),
) -> UserListResponse:
    items, total, built = await users.list_users(query)
    return UserListResponse(
        users=[UserProfileResponse.from_user(u) for u in items],
        pagination=PaginationMeta(page=built.page, limit=built.limit, total=total),
    )


@router.get("/{user_id}", response_model=UserProfileResponse)
async def get_user(
    user_id: str,
    _user: UserDoc = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
) -> UserProfileResponse:
    return UserProfileResponse.from_user(await users.get_user(user_id))


@router.patch("/{user_id}", response_model=UserProfileResponse)
async def update_user(
    user_id: str,
    body: UpdateUserRequest,
    user: UserDoc = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
) -> UserProfileResponse:
    return UserProfileResponse.from_user(await users.update_user(user, user_id, body))


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str,
    admin: UserDoc = Depends(require_admin),
    users: UserService = Depends(get_user_service),
) -> MessageResponse:
    await users.delete_user(admin, user_id)
    return MessageResponse(success=True, message="User deleted")
