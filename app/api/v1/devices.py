"""Device registry endpoints (reads for any session, writes for admins)."""

from typing import Annotated

from fastapi import APIRouter, Query, status

from app.api.deps import DbSession
from app.api.v1.auth import AdminIdentity, CurrentIdentity
from app.schemas.common import MessageResponse
from app.schemas.devices import (
    DeviceCreateRequest,
    DeviceOut,
    DeviceResponse,
    DevicesListResponse,
)
from app.services import devices

router = APIRouter()


@router.get("", response_model=DevicesListResponse)
def list_devices(
    _user: CurrentIdentity,
    db: DbSession,
    search: Annotated[str, Query(max_length=255)] = "",
) -> DevicesListResponse:
    items = devices.list_devices(db, search=search)
    return DevicesListResponse(
        devices=[DeviceOut.model_validate(d) for d in items],
        total=len(items),
    )


@router.get("/{device_id}", response_model=DeviceResponse)
def get_device(device_id: int, _user: CurrentIdentity, db: DbSession) -> DeviceResponse:
    return DeviceResponse(device=DeviceOut.model_validate(devices.get_device(db, device_id)))


@router.post("", response_model=DeviceResponse, status_code=status.HTTP_201_CREATED)
def create_device(
    body: DeviceCreateRequest,
    _admin: AdminIdentity,
    db: DbSession,
) -> DeviceResponse:
    device = devices.create_device(db, **body.model_dump())
    return DeviceResponse(
        message="Device created successfully",
        device=DeviceOut.model_validate(device),
    )


@router.delete("/{device_id}", response_model=MessageResponse)
def delete_device(device_id: int, _admin: AdminIdentity, db: DbSession) -> MessageResponse:
    """Delete a device; its PM logs and QR tokens go with it."""
    devices.delete_device(db, device_id)
    return MessageResponse(message="Device deleted successfully")
