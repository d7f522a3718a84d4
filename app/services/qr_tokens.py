"""QR capability tokens: scoped, revocable, unauthenticated read access to one device.

A capability token says nothing about its holder; it only grants reading the bound
device's maintenance history. TTLs are not capped, so tokens printed on physical
labels can outlive any session.

Expiry detection (validate) and expiry cleanup (cleanup_expired, generate's
per-device sweep) are separate: validate never deletes an expired row.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session, joinedload

from app.core.errors import (
    AuthorizationError,
    ErrorCode,
    NotFoundError,
    ValidationFailed,
)
from app.core.security import generate_opaque_token
from app.models import Device, QRToken
from app.services import devices
from app.utils.datetime_utils import as_utc, is_expired, utc_now

if TYPE_CHECKING:
    from app.core.config import Settings
    from app.services.authorization import Identity

logger = logging.getLogger(__name__)


@dataclass
class GeneratedQRToken:
    token: str
    url: str
    device_id: int
    device_name: str
    expires_at: datetime
    expires_in_hours: int


@dataclass
class QRValidation:
    device_id: int
    access_count: int
    expires_at: datetime
    device: Device


def build_qr_url(settings: "Settings", token: str) -> str:
    return f"{settings.FRONTEND_URL}/pm-history?token={token}"


def generate(
    db: Session,
    settings: "Settings",
    device_id: int,
    requesting_user_id: int,
    ttl_hours: int | None = None,
) -> GeneratedQRToken:
    """Mint a token bound to device_id after sweeping that device's expired tokens."""
    if ttl_hours is None:
        ttl_hours = settings.QR_TOKEN_DEFAULT_TTL_HOURS
    device = devices.get_device(db, device_id)
    try:
        expires_at = utc_now() + timedelta(hours=ttl_hours)
    except OverflowError:
        # Uncapped TTL, but the expiry must still be a representable datetime.
        raise ValidationFailed(
            ErrorCode.VALIDATION_ERROR,
            "expiresInHours is too large",
            details={"expires_in_hours": ttl_hours},
        ) from None

    swept = (
        db.query(QRToken)
        .filter(QRToken.device_id == device_id, QRToken.expires_at < utc_now())
        .delete(synchronize_session=False)
    )

    raw_token = generate_opaque_token(settings.QR_TOKEN_BYTES)
    try:
        db.add(
            QRToken(
                token=raw_token,
                device_id=device_id,
                generated_by=requesting_user_id,
                expires_at=expires_at,
            )
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "QR token generated",
        extra={
            "device_id": device_id,
            "generated_by": requesting_user_id,
            "ttl_hours": ttl_hours,
            "expired_swept": swept,
        },
    )
    return GeneratedQRToken(
        token=raw_token,
        url=build_qr_url(settings, raw_token),
        device_id=device_id,
        device_name=device.device_name,
        expires_at=expires_at,
        expires_in_hours=ttl_hours,
    )


def validate(db: Session, token: str) -> QRValidation:
    """
    Resolve a token to its device and count the access.

    Unknown -> INVALID_QR_TOKEN (404); expired -> TOKEN_EXPIRED (403, row kept).
    """
    record = (
        db.query(QRToken)
        .options(joinedload(QRToken.device))
        .filter(QRToken.token == token)
        .first()
    )
    if record is None:
        raise NotFoundError(ErrorCode.INVALID_QR_TOKEN, "Invalid QR token")
    if is_expired(record.expires_at):
        raise AuthorizationError(ErrorCode.TOKEN_EXPIRED, "QR token has expired")

    # Increment in SQL so concurrent scans never lose a count.
    db.query(QRToken).filter(QRToken.id == record.id).update(
        {
            QRToken.access_count: QRToken.access_count + 1,
            QRToken.last_accessed_at: utc_now(),
        },
        synchronize_session=False,
    )
    db.commit()
    db.refresh(record)
    return QRValidation(
        device_id=record.device_id,
        access_count=record.access_count,
        expires_at=as_utc(record.expires_at),
        device=record.device,
    )


def revoke(db: Session, token: str, requesting_user: "Identity") -> None:
    """Delete a token. Only its generator or an admin may do so."""
    record = db.query(QRToken).filter(QRToken.token == token).first()
    if record is None:
        raise NotFoundError(ErrorCode.TOKEN_NOT_FOUND, "Token not found")
    if record.generated_by != requesting_user.user_id and not requesting_user.is_admin:
        raise AuthorizationError(ErrorCode.FORBIDDEN, "Access denied")
    db.delete(record)
    db.commit()
    logger.info(
        "QR token revoked",
        extra={"device_id": record.device_id, "revoked_by": requesting_user.user_id},
    )


def cleanup_expired(db: Session) -> int:
    """Bulk delete of every expired token. Returns the number of deleted rows."""
    deleted = (
        db.query(QRToken)
        .filter(QRToken.expires_at < utc_now())
        .delete(synchronize_session=False)
    )
    db.commit()
    if deleted:
        logger.info("Cleaned up expired QR tokens", extra={"deleted": deleted})
    return deleted


def list_for_device(db: Session, device_id: int) -> list[QRToken]:
    """All tokens for a device, newest first, with the generating user loaded."""
    return (
        db.query(QRToken)
        .options(joinedload(QRToken.generated_by_user))
        .filter(QRToken.device_id == device_id)
        .order_by(QRToken.created_at.desc(), QRToken.id.desc())
        .all()
    )

