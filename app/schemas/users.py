"""Schemas for admin user management."""

from typing import Literal

from pydantic import Field

from app.schemas.auth import UserOut
from app.schemas.common import CamelModel


class UserCreateRequest(CamelModel):
    username: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=128, description="Temporary password")
    first_name: str = Field(..., min_length=1, max_length=255)
    middle_name: str = Field(default="", max_length=255)
    last_name: str = Field(..., min_length=1, max_length=255)
    position: str = Field(..., min_length=1, max_length=255)
    role: str = Field(default="user", max_length=32)


class UserUpdateRequest(CamelModel):
    """Partial update; a password here is an admin-forced reset."""

    first_name: str | None = Field(default=None, max_length=255)
    middle_name: str | None = Field(default=None, max_length=255)
    last_name: str | None = Field(default=None, max_length=255)
    position: str | None = Field(default=None, max_length=255)
    role: str | None = Field(default=None, max_length=32)
    password: str | None = Field(default=None, max_length=128)


class UserResponse(CamelModel):
    message: str | None = None
    user: UserOut


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class UsersListResponse(CamelModel):
    users: list[UserOut]
    pagination: Pagination


class UserStatistics(CamelModel):
    total_users: int
    admin_count: int
    user_count: int
    pending_password_change: int
    users_with_picture: int


class UserStatisticsResponse(CamelModel):
    statistics: UserStatistics


RoleFilter = Literal["", "admin", "user"]
