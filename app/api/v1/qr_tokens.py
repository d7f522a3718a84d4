"""QR capability token endpoints: generate, validate (public), revoke, list, cleanup."""

from fastapi import APIRouter, status

from app.api.deps import AppSettings, DbSession
from app.api.v1.auth import CurrentIdentity
from app.schemas.common import MessageResponse
from app.schemas.qr import (
    QRCleanupResponse,
    QRGenerateRequest,
    QRGenerateResponse,
    QRTokenItem,
    QRTokensResponse,
    QRValidateResponse,
)
from app.services import qr_tokens
from app.utils.datetime_utils import is_expired

router = APIRouter()


@router.post("/generate", response_model=QRGenerateResponse, status_code=status.HTTP_201_CREATED)
def generate_token(
    body: QRGenerateRequest,
    current_user: CurrentIdentity,
    db: DbSession,
    settings: AppSettings,
) -> QRGenerateResponse:
    """
    Mint a QR token for one device. expiresInHours defaults to QR_TOKEN_DEFAULT_TTL_HOURS
    and has no upper limit (labels fixed to hardware may never expire in practice).
    """
    generated = qr_tokens.generate(
        db,
        settings,
        body.device_id,
        current_user.user_id,
        ttl_hours=body.expires_in_hours,
    )
    return QRGenerateResponse(
        token=generated.token,
        qr_url=generated.url,
        device_id=generated.device_id,
        device_name=generated.device_name,
        expires_at=generated.expires_at,
        expires_in_hours=generated.expires_in_hours,
    )


@router.get("/validate/{token}", response_model=QRValidateResponse)
def validate_token(token: str, db: DbSession) -> QRValidateResponse:
    """Public: resolve a scanned token to its device and count the access. No session needed."""
    validation = qr_tokens.validate(db, token)
    device = validation.device
    return QRValidateResponse(
        device_id=validation.device_id,
        device_name=device.device_name,
        serial_number=device.serial_number,
        manufacturer=device.manufacturer,
        location=device.location,
        expires_at=validation.expires_at,
        access_count=validation.access_count,
    )


@router.delete("/revoke/{token}", response_model=MessageResponse)
def revoke_token(token: str, current_user: CurrentIdentity, db: DbSession) -> MessageResponse:
    """Revoke a token; allowed for the user who generated it and for admins."""
    qr_tokens.revoke(db, token, current_user)
    return MessageResponse(message="QR token revoked successfully")


@router.get("/device/{device_id}", response_model=QRTokensResponse)
def list_device_tokens(device_id: int, _user: CurrentIdentity, db: DbSession) -> QRTokensResponse:
    records = qr_tokens.list_for_device(db, device_id)
    items = [
        QRTokenItem(
            id=r.id,
            token=r.token,
            device_id=r.device_id,
            generated_by=r.generated_by,
            generated_by_username=r.generated_by_user.username if r.generated_by_user else None,
            expires_at=r.expires_at,
            access_count=r.access_count,
            last_accessed_at=r.last_accessed_at,
            created_at=r.created_at,
            expired=is_expired(r.expires_at),
        )
        for r in records
    ]
    return QRTokensResponse(tokens=items, total=len(items))


@router.post("/cleanup", response_model=QRCleanupResponse)
def cleanup_tokens(_user: CurrentIdentity, db: DbSession) -> QRCleanupResponse:
    """Delete every expired QR token (validation alone never deletes them)."""
    return QRCleanupResponse(deleted_count=qr_tokens.cleanup_expired(db))
