"""Pydantic request/response schemas."""

from app.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    RefreshResponse,
    UserOut,
)
from app.schemas.common import CamelModel, ErrorResponse, HealthResponse, MessageResponse

__all__ = [
    "CamelModel",
    "ChangePasswordRequest",
    "ErrorResponse",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "RefreshResponse",
    "UserOut",
]
