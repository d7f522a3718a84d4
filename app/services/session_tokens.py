"""Session token issuer: short-lived JWT access tokens and persisted opaque refresh tokens.

Refresh tokens are not rotated on use; a token stays valid until it expires or the
session logs out. Expired rows are swept before each login and each refresh lookup.

Refresh token lifecycle:
    Active --(expiry elapses)--> Expired --(sweep or lookup)--> Deleted
    Active --(logout / revoke)--> Deleted
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from app.core.errors import AuthenticationError, AuthorizationError, ErrorCode, NotFoundError
from app.core.security import (
    create_access_token,
    digest_token,
    generate_opaque_token,
)
from app.models import RefreshToken, User
from app.services import credentials
from app.utils.datetime_utils import is_expired, utc_now

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class LoginResult:
    user: User
    access_token: str
    refresh_token: str


def issue_access_token(user: User, settings: "Settings") -> str:
    """Signed access token carrying the user's id, username and role."""
    return create_access_token(user.id, user.username, user.role, settings)


def issue_refresh_token(db: Session, settings: "Settings", user_id: int) -> str:
    """Persist a new refresh token (digest only) and return the raw value. Commits."""
    raw_token = generate_opaque_token(settings.REFRESH_TOKEN_BYTES)
    expires_at = utc_now() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    db.add(
        RefreshToken(
            user_id=user_id,
            token_hash=digest_token(raw_token),
            expires_at=expires_at,
        )
    )
    db.commit()
    return raw_token


def sweep_expired(db: Session, exclude_token_hash: str | None = None) -> int:
    """
    Delete every refresh token past expiry. Returns the number of deleted rows.

    exclude_token_hash keeps the token about to be looked up, so its caller can still
    report REFRESH_TOKEN_EXPIRED for it instead of a bare not-found.
    """
    query = db.query(RefreshToken).filter(RefreshToken.expires_at < utc_now())
    if exclude_token_hash is not None:
        query = query.filter(RefreshToken.token_hash != exclude_token_hash)
    deleted = query.delete(synchronize_session=False)
    db.commit()
    if deleted:
        logger.info("Swept expired refresh tokens", extra={"deleted": deleted})
    return deleted


def login(db: Session, settings: "Settings", username: str, password: str) -> LoginResult:
    """
    Authenticate with username and password and open a new session.

    Unknown username and wrong password produce the same INVALID_CREDENTIALS error.
    """
    user = credentials.find_by_username(db, username)
    if user is None or not credentials.verify_password(user, password):
        logger.warning("Login failed")
        raise AuthenticationError(
            ErrorCode.INVALID_CREDENTIALS,
            "Invalid username or password",
        )
    access_token = issue_access_token(user, settings)
    sweep_expired(db)
    refresh_token = issue_refresh_token(db, settings, user.id)
    logger.info("Login succeeded", extra={"user_id": user.id})
    return LoginResult(user=user, access_token=access_token, refresh_token=refresh_token)


def refresh(db: Session, settings: "Settings", raw_token: str) -> str:
    """
    Exchange a refresh token for a new access token.

    NotFound -> INVALID_REFRESH_TOKEN; past expiry -> REFRESH_TOKEN_EXPIRED (row deleted);
    owner gone -> USER_NOT_FOUND. The refresh token itself is left untouched.
    """
    token_hash = digest_token(raw_token)
    sweep_expired(db, exclude_token_hash=token_hash)

    record = db.query(RefreshToken).filter(RefreshToken.token_hash == token_hash).first()
    if record is None:
        raise AuthorizationError(ErrorCode.INVALID_REFRESH_TOKEN, "Invalid refresh token")

    if is_expired(record.expires_at):
        db.delete(record)
        db.commit()
        raise AuthorizationError(ErrorCode.REFRESH_TOKEN_EXPIRED, "Refresh token expired")

    user = credentials.get_user(db, record.user_id)
    if user is None:
        raise NotFoundError(ErrorCode.USER_NOT_FOUND, "User not found")

    return issue_access_token(user, settings)


def revoke(db: Session, raw_token: str) -> bool:
    """Delete the matching refresh token. Idempotent; returns whether a row was removed."""
    deleted = (
        db.query(RefreshToken)
        .filter(RefreshToken.token_hash == digest_token(raw_token))
        .delete(synchronize_session=False)
    )
    db.commit()
    return bool(deleted)

