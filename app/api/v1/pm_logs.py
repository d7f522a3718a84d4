"""PM log endpoints. History reads accept a session or a QR token (?qrToken= / X-QR-Token)."""

from typing import Annotated

from fastapi import APIRouter, Query, status

from app.api.deps import DbSession
from app.api.v1.auth import AuthContext, CurrentIdentity
from app.schemas.pm_logs import (
    DeviceHistoryResponse,
    HistoryDevice,
    PMLogCreatedResponse,
    PMLogCreateRequest,
    PMLogDetailResponse,
    PMLogOut,
    PMLogStatistics,
    PMLogSummary,
    PMLogTaskOut,
)
from app.services import pm_logs

router = APIRouter()


@router.get("/device/{device_id}", response_model=DeviceHistoryResponse)
def get_device_history(
    device_id: int,
    ctx: AuthContext,
    db: DbSession,
    limit: Annotated[int, Query(ge=1, le=500)] = pm_logs.DEFAULT_HISTORY_LIMIT,
) -> DeviceHistoryResponse:
    """
    Maintenance history of one device, newest first.

    A QR token only opens the device it was generated for (DEVICE_MISMATCH otherwise).
    """
    history = pm_logs.device_history(db, ctx, device_id, limit=limit)
    summaries = [
        PMLogSummary(
            **PMLogOut.model_validate(log).model_dump(),
            total_tasks=len(log.tasks),
            checked_tasks=sum(1 for t in log.tasks if t.is_checked),
        )
        for log in history.logs
    ]
    last = history.logs[0] if history.logs else None
    return DeviceHistoryResponse(
        device=HistoryDevice.model_validate(history.device),
        last_pm_date=last.date if last else None,
        last_pm_performed_by=last.performed_by if last else None,
        logs=summaries,
        total=len(summaries),
        access_mode=ctx.access_mode,
    )


@router.get("/{log_id}", response_model=PMLogDetailResponse)
def get_log(log_id: int, ctx: AuthContext, db: DbSession) -> PMLogDetailResponse:
    """Single PM log with its tasks; a QR token must belong to the log's device."""
    log = pm_logs.get_log(db, ctx, log_id)
    tasks = [PMLogTaskOut.model_validate(t) for t in log.tasks]
    checked = sum(1 for t in tasks if t.is_checked)
    return PMLogDetailResponse(
        log=PMLogOut.model_validate(log),
        tasks=tasks,
        tasks_by_type={
            maintenance_type: [PMLogTaskOut.model_validate(t) for t in group]
            for maintenance_type, group in pm_logs.tasks_by_type(log).items()
        },
        statistics=PMLogStatistics(
            total_tasks=len(tasks),
            checked_tasks=checked,
            unchecked_tasks=len(tasks) - checked,
        ),
        access_mode=ctx.access_mode,
    )


@router.post("", response_model=PMLogCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_log(
    body: PMLogCreateRequest,
    _user: CurrentIdentity,
    db: DbSession,
) -> PMLogCreatedResponse:
    fields = body.model_dump(exclude={"device_id", "tasks"})
    tasks = [t.model_dump() for t in body.tasks]
    log = pm_logs.create_log(db, body.device_id, fields, tasks)
    return PMLogCreatedResponse(
        log=PMLogOut.model_validate(log),
        tasks=[PMLogTaskOut.model_validate(t) for t in log.tasks],
    )
