"""Authorization gate: resolve each request to a session identity or a device capability.

A request presenting a QR token takes the capability branch and skips session checks
entirely. Otherwise a bearer access token is required. The resulting
AuthorizationContext is built once per request and passed explicitly to handlers.

Capabilities carry no role: they never satisfy require_admin, and every resource
read through one must pass ensure_device_access for the device actually being read.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import (
    AuthenticationError,
    AuthorizationError,
    ErrorCode,
    StorageUnavailableError,
)
from app.core.security import TokenStatus, verify_access_token
from app.models.user import ROLE_ADMIN
from app.services import credentials, qr_tokens

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

ACCESS_MODE_QR = "qr"
ACCESS_MODE_AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class Identity:
    """Verified session identity."""

    user_id: int
    username: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def access_mode(self) -> str:
        return ACCESS_MODE_AUTHENTICATED


@dataclass(frozen=True)
class Capability:
    """Verified QR capability: read access to one device, no identity."""

    device_id: int

    @property
    def access_mode(self) -> str:
        return ACCESS_MODE_QR


AuthorizationContext = Union[Identity, Capability]

_TOKEN_FAILURES: dict[TokenStatus, tuple[ErrorCode, str]] = {
    TokenStatus.EXPIRED: (ErrorCode.TOKEN_EXPIRED, "Token expired."),
    TokenStatus.INVALID: (ErrorCode.INVALID_TOKEN, "Invalid token."),
    TokenStatus.ERROR: (ErrorCode.TOKEN_ERROR, "Token verification failed."),
}


def _user_id_from_claims(claims: dict) -> int | None:
    raw = claims.get("id", claims.get("sub"))
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def resolve_session(db: Session, settings: "Settings", token: str | None) -> Identity:
    """
    Session branch: verify the bearer token, then confirm the user still exists.

    Failures are classified (NO_TOKEN, TOKEN_EXPIRED, INVALID_TOKEN, TOKEN_ERROR,
    USER_NOT_FOUND) so clients know when a refresh is worth attempting.
    """
    if not token:
        raise AuthenticationError(ErrorCode.NO_TOKEN, "Access denied. No token provided.")

    result = verify_access_token(token, settings)
    if result.status is not TokenStatus.VALID:
        code, message = _TOKEN_FAILURES[result.status]
        raise AuthenticationError(code, message)

    user_id = _user_id_from_claims(result.claims)
    if user_id is None:
        raise AuthenticationError(ErrorCode.INVALID_TOKEN, "Invalid token.")

    try:
        user = credentials.get_user(db, user_id)
    except SQLAlchemyError as e:
        logger.error("User lookup failed during authentication: %s", type(e).__name__)
        raise StorageUnavailableError() from e
    if user is None:
        raise AuthenticationError(ErrorCode.USER_NOT_FOUND, "User not found.")
    return Identity(user_id=user.id, username=user.username, role=user.role)


def resolve_capability(db: Session, token: str) -> Capability:
    """Capability branch: validate the QR token (counts the access) and bind its device."""
    try:
        validation = qr_tokens.validate(db, token)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("QR token validation failed: %s", type(e).__name__)
        raise StorageUnavailableError() from e
    return Capability(device_id=validation.device_id)


def authorize(
    db: Session,
    settings: "Settings",
    bearer_token: str | None,
    qr_token: str | None,
) -> AuthorizationContext:
    """Pick the branch: a non-blank QR token wins, otherwise require a session."""
    if qr_token and qr_token.strip():
        return resolve_capability(db, qr_token.strip())
    return resolve_session(db, settings, bearer_token)


def require_identity(ctx: AuthorizationContext) -> Identity:
    if isinstance(ctx, Identity):
        return ctx
    raise AuthorizationError(ErrorCode.FORBIDDEN, "Access denied. Login required.")


def require_admin(ctx: AuthorizationContext) -> Identity:
    """Admin-only check; capabilities and non-admin identities are rejected."""
    identity = require_identity(ctx)
    if not identity.is_admin:
        raise AuthorizationError(ErrorCode.FORBIDDEN, "Access denied. Admin only.")
    return identity


def ensure_device_access(ctx: AuthorizationContext, device_id: int) -> None:
    """
    Resource-boundary check for device-scoped reads.

    Sessions may read any device; a capability only the device it was minted for.
    """
    if isinstance(ctx, Capability) and int(ctx.device_id) != int(device_id):
        logger.warning(
            "QR token used for another device",
            extra={"token_device_id": ctx.device_id, "requested_device_id": device_id},
        )
        raise AuthorizationError(
            ErrorCode.DEVICE_MISMATCH,
            "QR token is not valid for this device",
        )
