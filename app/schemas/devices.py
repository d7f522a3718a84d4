"""Schemas for the device registry."""

from datetime import datetime

from pydantic import Field

from app.schemas.common import CamelModel


class DeviceCreateRequest(CamelModel):
    device_name: str = Field(..., min_length=1, max_length=255)
    serial_number: str = Field(..., min_length=1, max_length=255)
    manufacturer: str = Field(..., min_length=1, max_length=255)
    device_code: str = Field(..., min_length=1, max_length=255, alias="deviceId")
    date_purchased: str = Field(..., min_length=1, max_length=32)
    responsible_person: str = Field(..., min_length=1, max_length=255)
    location: str = Field(..., min_length=1, max_length=255)


class DeviceOut(CamelModel):
    id: int
    device_name: str
    serial_number: str
    manufacturer: str
    device_code: str = Field(..., alias="deviceId")
    date_purchased: str
    responsible_person: str
    location: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DeviceResponse(CamelModel):
    message: str | None = None
    device: DeviceOut


class DevicesListResponse(CamelModel):
    devices: list[DeviceOut]
    total: int
