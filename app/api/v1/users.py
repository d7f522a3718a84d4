"""Admin user management: list, view, provision, edit (incl. forced password reset), delete."""

from typing import Annotated

from fastapi import APIRouter, Query, status

from app.api.deps import AppSettings, DbSession
from app.api.v1.auth import AdminIdentity
from app.schemas.auth import UserOut
from app.schemas.common import MessageResponse
from app.schemas.users import (
    Pagination,
    RoleFilter,
    UserCreateRequest,
    UserResponse,
    UsersListResponse,
    UserStatistics,
    UserStatisticsResponse,
    UserUpdateRequest,
)
from app.services import credentials

router = APIRouter()


@router.get("", response_model=UsersListResponse)
def list_users(
    _admin: AdminIdentity,
    db: DbSession,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    search: Annotated[str, Query(max_length=255)] = "",
    role: RoleFilter = "",
) -> UsersListResponse:
    result = credentials.list_users(db, page=page, limit=limit, search=search, role=role)
    return UsersListResponse(
        users=[UserOut.model_validate(u) for u in result.users],
        pagination=Pagination(
            page=result.page,
            limit=result.limit,
            total=result.total,
            total_pages=result.total_pages,
        ),
    )


@router.get("/stats/overview", response_model=UserStatisticsResponse)
def user_stats(_admin: AdminIdentity, db: DbSession) -> UserStatisticsResponse:
    return UserStatisticsResponse(
        statistics=UserStatistics(**credentials.user_statistics(db))
    )


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int, _admin: AdminIdentity, db: DbSession) -> UserResponse:
    user = credentials.require_user(db, user_id)
    return UserResponse(user=UserOut.model_validate(user))


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    body: UserCreateRequest,
    _admin: AdminIdentity,
    db: DbSession,
    settings: AppSettings,
) -> UserResponse:
    """Provision a user with a temporary password; they must change it on first login."""
    user = credentials.create_user(
        db,
        settings,
        username=body.username,
        password=body.password,
        role=body.role,
        first_name=body.first_name,
        middle_name=body.middle_name,
        last_name=body.last_name,
        position=body.position,
    )
    return UserResponse(message="User created successfully", user=UserOut.model_validate(user))


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    body: UserUpdateRequest,
    _admin: AdminIdentity,
    db: DbSession,
    settings: AppSettings,
) -> UserResponse:
    user = credentials.update_user(db, settings, user_id, body.model_dump(exclude_unset=True))
    return UserResponse(message="User updated successfully", user=UserOut.model_validate(user))


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(user_id: int, admin: AdminIdentity, db: DbSession) -> MessageResponse:
    """Delete a user with its password history, refresh tokens and QR tokens. Admins cannot delete themselves."""
    credentials.delete_user(db, user_id, acting_user_id=admin.user_id)
    return MessageResponse(message="User deleted successfully")
