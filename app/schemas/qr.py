"""Schemas for QR capability token endpoints."""

from datetime import datetime

from pydantic import Field

from app.schemas.common import CamelModel


class QRGenerateRequest(CamelModel):
    device_id: int = Field(..., ge=1)
    # No upper bound: long-lived tokens back printed device labels.
    expires_in_hours: int | None = Field(default=None, ge=1)


class QRGenerateResponse(CamelModel):
    message: str = "QR token generated successfully"
    token: str
    qr_url: str
    device_id: int
    device_name: str
    expires_at: datetime
    expires_in_hours: int


class QRValidateResponse(CamelModel):
    valid: bool = True
    device_id: int
    device_name: str
    serial_number: str
    manufacturer: str
    location: str
    expires_at: datetime
    access_count: int


class QRTokenItem(CamelModel):
    id: int
    token: str
    device_id: int
    generated_by: int
    generated_by_username: str | None = None
    expires_at: datetime
    access_count: int
    last_accessed_at: datetime | None = None
    created_at: datetime
    expired: bool


class QRTokensResponse(CamelModel):
    tokens: list[QRTokenItem]
    total: int


class QRCleanupResponse(CamelModel):
    message: str = "Expired tokens cleaned up successfully"
    deleted_count: int
