"""ORM models for preventive-maintenance execution logs and their checklist tasks."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.models.base import Base
from app.utils.datetime_utils import utc_now


class PMLog(Base):
    """One maintenance visit for a device."""

    __tablename__ = "pm_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    device_id = Column(
        Integer,
        ForeignKey("devices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    date = Column(String(32), nullable=False, index=True)
    fully_functional = Column(String(16), nullable=False, default="Yes")
    recommendation = Column(Text, nullable=False, default="")
    performed_by = Column(String(255), nullable=False, default="")
    validated_by = Column(String(255), nullable=False, default="")
    acknowledged_by = Column(String(255), nullable=False, default="")
    findings_solutions = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    device = relationship("Device", back_populates="pm_logs")
    tasks = relationship(
        "PMLogTask",
        back_populates="pm_log",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PMLogTask.id",
    )


class PMLogTask(Base):
    """Checklist item performed (or not) during a PM visit."""

    __tablename__ = "pm_log_tasks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    pm_log_id = Column(
        Integer,
        ForeignKey("pm_logs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    task_description = Column(Text, nullable=False)
    maintenance_type = Column(String(255), nullable=False, default="")
    is_checked = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    pm_log = relationship("PMLog", back_populates="tasks")
