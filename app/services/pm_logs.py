"""PM log reads and writes. History reads accept either a session or a device capability."""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import Session, selectinload

from app.core.errors import ErrorCode, NotFoundError
from app.models import Device, PMLog, PMLogTask
from app.services import devices
from app.services.authorization import AuthorizationContext, ensure_device_access

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 10


@dataclass
class DeviceHistory:
    device: Device
    logs: list[PMLog]


def device_history(
    db: Session,
    ctx: AuthorizationContext,
    device_id: int,
    limit: int = DEFAULT_HISTORY_LIMIT,
) -> DeviceHistory:
    """Newest-first PM logs for a device. Capability holders may only read their device."""
    ensure_device_access(ctx, device_id)
    device = devices.get_device(db, device_id)
    logs = (
        db.query(PMLog)
        .options(selectinload(PMLog.tasks))
        .filter(PMLog.device_id == device_id)
        .order_by(PMLog.date.desc(), PMLog.created_at.desc())
        .limit(limit)
        .all()
    )
    return DeviceHistory(device=device, logs=logs)


def get_log(db: Session, ctx: AuthorizationContext, log_id: int) -> PMLog:
    """Single PM log with tasks. The capability check uses the log's own device."""
    log = (
        db.query(PMLog)
        .options(selectinload(PMLog.tasks))
        .filter(PMLog.id == log_id)
        .first()
    )
    if log is None:
        raise NotFoundError(ErrorCode.PM_LOG_NOT_FOUND, "PM log not found")
    ensure_device_access(ctx, log.device_id)
    return log


def create_log(db: Session, device_id: int, fields: dict[str, Any], tasks: list[dict]) -> PMLog:
    if not devices.device_exists(db, device_id):
        raise NotFoundError(ErrorCode.DEVICE_NOT_FOUND, "Device not found")
    log = PMLog(device_id=device_id, **fields)
    log.tasks = [PMLogTask(**task) for task in tasks]
    try:
        db.add(log)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(log)
    logger.info("PM log created", extra={"device_id": device_id, "pm_log_id": log.id})
    return log


def tasks_by_type(log: PMLog) -> dict[str, list[PMLogTask]]:
    grouped: dict[str, list[PMLogTask]] = defaultdict(list)
    for task in sorted(log.tasks, key=lambda t: (t.maintenance_type, t.id)):
        grouped[task.maintenance_type].append(task)
    return dict(grouped)
