"""Schemas for PM log history (readable via session or QR capability)."""

from datetime import datetime
from typing import Literal

from pydantic import Field

from app.schemas.common import CamelModel

AccessMode = Literal["qr", "authenticated"]


class PMLogTaskIn(CamelModel):
    task_description: str = Field(..., min_length=1)
    maintenance_type: str = Field(default="", max_length=255)
    is_checked: bool = False


class PMLogCreateRequest(CamelModel):
    device_id: int = Field(..., ge=1)
    date: str = Field(..., min_length=1, max_length=32)
    fully_functional: str = Field(default="Yes", max_length=16)
    recommendation: str = ""
    performed_by: str = Field(..., min_length=1, max_length=255)
    validated_by: str = Field(default="", max_length=255)
    acknowledged_by: str = Field(default="", max_length=255)
    findings_solutions: str = ""
    tasks: list[PMLogTaskIn] = Field(default_factory=list)


class PMLogTaskOut(CamelModel):
    id: int
    pm_log_id: int
    task_description: str
    maintenance_type: str
    is_checked: bool


class PMLogOut(CamelModel):
    id: int
    device_id: int
    date: str
    fully_functional: str
    recommendation: str
    performed_by: str
    validated_by: str
    acknowledged_by: str
    findings_solutions: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PMLogSummary(PMLogOut):
    total_tasks: int
    checked_tasks: int


class HistoryDevice(CamelModel):
    id: int
    device_name: str
    serial_number: str
    manufacturer: str
    location: str


class DeviceHistoryResponse(CamelModel):
    device: HistoryDevice
    last_pm_date: str | None = Field(default=None, alias="lastPMDate")
    last_pm_performed_by: str | None = Field(default=None, alias="lastPMPerformedBy")
    logs: list[PMLogSummary]
    total: int
    access_mode: AccessMode


class PMLogStatistics(CamelModel):
    total_tasks: int
    checked_tasks: int
    unchecked_tasks: int


class PMLogDetailResponse(CamelModel):
    log: PMLogOut
    tasks: list[PMLogTaskOut]
    tasks_by_type: dict[str, list[PMLogTaskOut]]
    statistics: PMLogStatistics
    access_mode: AccessMode


class PMLogCreatedResponse(CamelModel):
    message: str = "PM log created successfully"
    log: PMLogOut
    tasks: list[PMLogTaskOut]
