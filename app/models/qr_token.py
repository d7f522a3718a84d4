"""ORM model for QR capability tokens scoped to a single device."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.models.base import Base
from app.utils.datetime_utils import utc_now


class QRToken(Base):
    """
    Capability to read one device's maintenance history without a session.

    The token proves nothing about who holds it. access_count and last_accessed_at
    are updated on every successful validation. Expired rows are kept until an
    explicit cleanup so they remain visible for audit.
    """

    __tablename__ = "qr_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    token = Column(String(512), nullable=False, unique=True, index=True)
    device_id = Column(
        Integer,
        ForeignKey("devices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    generated_by = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    access_count = Column(Integer, nullable=False, default=0)
    last_accessed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    device = relationship("Device", back_populates="qr_tokens")
    generated_by_user = relationship("User", back_populates="qr_tokens")
