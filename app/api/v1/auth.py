"""Login, refresh, logout and password endpoints, plus the auth dependencies
(get_current_user, get_auth_context, require_admin) used by every protected route."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response
from fastapi.security import (
    APIKeyHeader,
    APIKeyQuery,
    HTTPAuthorizationCredentials,
    HTTPBearer,
)

from app.api.deps import AppSettings, DbSession
from app.core.config import Settings
from app.core.errors import AuthenticationError, ErrorCode
from app.schemas.auth import (
    ChangePasswordRequest,
    ChangePasswordResponse,
    LoginRequest,
    LoginResponse,
    PasswordStrengthRequest,
    ProfileResponse,
    RefreshResponse,
    UserOut,
    VerifyResponse,
)
from app.schemas.common import MessageResponse
from app.services import authorization, credentials, session_tokens
from app.services.authorization import AuthorizationContext, Identity
from app.services.password_policy import PasswordStrength, validate_strength

router = APIRouter()
security = HTTPBearer(auto_error=False)
qr_token_query = APIKeyQuery(name="qrToken", auto_error=False)
qr_token_header = APIKeyHeader(name="X-QR-Token", auto_error=False)


def get_current_user(
    credentials_: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: DbSession,
    settings: AppSettings,
) -> Identity:
    """Dependency: require a valid Bearer access token and return the session identity."""
    token = credentials_.credentials if credentials_ is not None else None
    return authorization.resolve_session(db, settings, token)


def get_auth_context(
    credentials_: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    qr_query: Annotated[str | None, Depends(qr_token_query)],
    qr_header: Annotated[str | None, Depends(qr_token_header)],
    db: DbSession,
    settings: AppSettings,
) -> AuthorizationContext:
    """
    Dependency: a QR token (?qrToken= or X-QR-Token) yields a device Capability;
    otherwise a Bearer access token is required and yields an Identity.
    """
    token = credentials_.credentials if credentials_ is not None else None
    return authorization.authorize(db, settings, token, (qr_query or "").strip() or qr_header)


def require_admin(
    current_user: Annotated[Identity, Depends(get_current_user)],
) -> Identity:
    """Dependency: require an authenticated user with role 'admin'. Raises 403 for non-admin."""
    return authorization.require_admin(current_user)


CurrentIdentity = Annotated[Identity, Depends(get_current_user)]
AdminIdentity = Annotated[Identity, Depends(require_admin)]
AuthContext = Annotated[AuthorizationContext, Depends(get_auth_context)]


def _set_refresh_cookie(response: Response, settings: Settings, token: str) -> None:
    response.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value=token,
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=bool(settings.COOKIE_SECURE),
        samesite="strict",
        path="/",
    )


def _clear_refresh_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        httponly=True,
        secure=bool(settings.COOKIE_SECURE),
        samesite="strict",
        path="/",
    )


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    response: Response,
    db: DbSession,
    settings: AppSettings,
) -> LoginResponse:
    """
    Authenticate with username and password.

    Returns the access token in the body (send it as: Authorization: Bearer <token>)
    and sets the refresh token as an HTTP-only cookie. user.mustChangePassword tells
    the client to force a password change.
    """
    result = session_tokens.login(db, settings, body.username.strip(), body.password)
    _set_refresh_cookie(response, settings, result.refresh_token)
    return LoginResponse(
        token=result.access_token,
        user=UserOut.model_validate(result.user),
    )


@router.post("/refresh", response_model=RefreshResponse)
def refresh(request: Request, db: DbSession, settings: AppSettings) -> RefreshResponse:
    """Exchange the refresh-token cookie for a new access token. The cookie is not rotated."""
    raw_token = request.cookies.get(settings.REFRESH_COOKIE_NAME)
    if not raw_token:
        raise AuthenticationError(ErrorCode.NO_REFRESH_TOKEN, "Refresh token not found")
    access_token = session_tokens.refresh(db, settings, raw_token)
    return RefreshResponse(token=access_token)


@router.post("/logout", response_model=MessageResponse)
def logout(
    request: Request,
    response: Response,
    _user: CurrentIdentity,
    db: DbSession,
    settings: AppSettings,
) -> MessageResponse:
    """Revoke this session's refresh token (other devices stay logged in) and clear the cookie."""
    raw_token = request.cookies.get(settings.REFRESH_COOKIE_NAME)
    if raw_token:
        session_tokens.revoke(db, raw_token)
    _clear_refresh_cookie(response, settings)
    return MessageResponse(message="Logout successful")


@router.get("/verify", response_model=VerifyResponse)
def verify(current_user: CurrentIdentity, db: DbSession) -> VerifyResponse:
    user = credentials.require_user(db, current_user.user_id)
    return VerifyResponse(user=UserOut.model_validate(user))


@router.get("/profile", response_model=ProfileResponse)
def profile(current_user: CurrentIdentity, db: DbSession) -> ProfileResponse:
    user = credentials.require_user(db, current_user.user_id)
    return ProfileResponse(user=UserOut.model_validate(user))


@router.post("/change-password", response_model=ChangePasswordResponse)
def change_password(
    body: ChangePasswordRequest,
    current_user: CurrentIdentity,
    db: DbSession,
    settings: AppSettings,
) -> ChangePasswordResponse:
    """
    Change the caller's password. Rejects weak passwords and any password found in
    the caller's history; clears mustChangePassword and returns a fresh access token.
    """
    user = credentials.require_user(db, current_user.user_id)
    user = credentials.change_password(
        db, settings, user, body.current_password, body.new_password
    )
    return ChangePasswordResponse(
        token=session_tokens.issue_access_token(user, settings),
        user=UserOut.model_validate(user),
    )


@router.post("/password-strength", response_model=PasswordStrength)
def password_strength(body: PasswordStrengthRequest) -> PasswordStrength:
    """Requirement checklist for a candidate password (same rules the server enforces)."""
    return validate_strength(body.password)
