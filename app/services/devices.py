"""Device registry: the minimal surface the token core and PM log reads depend on."""

import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, ErrorCode, NotFoundError
from app.models import Device

logger = logging.getLogger(__name__)


def device_exists(db: Session, device_id: int) -> bool:
    return db.query(Device.id).filter(Device.id == device_id).first() is not None


def get_device(db: Session, device_id: int) -> Device:
    device = db.query(Device).filter(Device.id == device_id).first()
    if device is None:
        raise NotFoundError(ErrorCode.DEVICE_NOT_FOUND, "Device not found")
    return device


def list_devices(db: Session, search: str = "") -> list[Device]:
    query = db.query(Device)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                Device.device_name.ilike(pattern),
                Device.serial_number.ilike(pattern),
                Device.device_code.ilike(pattern),
                Device.location.ilike(pattern),
            )
        )
    return query.order_by(Device.created_at.desc(), Device.id.desc()).all()


def create_device(db: Session, **fields: str) -> Device:
    """Register a device; serial number and device code must be unique."""
    duplicate = (
        db.query(Device.id)
        .filter(
            or_(
                Device.serial_number == fields["serial_number"],
                Device.device_code == fields["device_code"],
            )
        )
        .first()
    )
    if duplicate is not None:
        raise ConflictError(
            ErrorCode.SERIAL_NUMBER_EXISTS,
            "A device with this serial number or device ID already exists",
        )
    device = Device(**fields)
    try:
        db.add(device)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(device)
    logger.info("Device created", extra={"device_id": device.id})
    return device


def delete_device(db: Session, device_id: int) -> None:
    """Delete a device together with its PM logs, their tasks and its QR tokens."""
    device = get_device(db, device_id)
    try:
        db.delete(device)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Device deleted", extra={"device_id": device_id})
