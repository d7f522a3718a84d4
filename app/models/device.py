"""ORM model for registered devices."""

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from app.models.base import Base
from app.utils.datetime_utils import utc_now


class Device(Base):
    """Device under preventive maintenance. Owns its PM logs and QR tokens."""

    __tablename__ = "devices"

    id = Column(Integer, primary_key=True, autoincrement=True)
    device_name = Column(String(255), nullable=False)
    serial_number = Column(String(255), nullable=False, unique=True, index=True)
    manufacturer = Column(String(255), nullable=False, default="")
    device_code = Column(String(255), nullable=False, unique=True, index=True)
    date_purchased = Column(String(32), nullable=False, default="")
    responsible_person = Column(String(255), nullable=False, default="", index=True)
    location = Column(String(255), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    pm_logs = relationship(
        "PMLog",
        back_populates="device",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    qr_tokens = relationship(
        "QRToken",
        back_populates="device",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
