"""Request/response schemas for auth endpoints."""

from datetime import datetime

from pydantic import Field

from app.schemas.common import CamelModel


class LoginRequest(CamelModel):
    """Credentials for login."""

    username: str = Field(..., min_length=1, max_length=255, description="Username")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class UserOut(CamelModel):
    """User profile as returned to clients (never includes the password hash)."""

    id: int
    username: str
    first_name: str
    middle_name: str
    last_name: str
    position: str
    role: str
    profile_picture: str | None = None
    must_change_password: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class LoginResponse(CamelModel):
    """Access token in the body; the refresh token is set as an HTTP-only cookie."""

    message: str = "Login successful"
    token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user: UserOut


class RefreshResponse(CamelModel):
    message: str = "Token refreshed successfully"
    token: str


class VerifyResponse(CamelModel):
    valid: bool = True
    user: UserOut


class ProfileResponse(CamelModel):
    user: UserOut


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=1, max_length=128)


class ChangePasswordResponse(CamelModel):
    message: str = "Password changed successfully"
    token: str
    user: UserOut


class PasswordStrengthRequest(CamelModel):
    password: str = Field(..., max_length=128)
