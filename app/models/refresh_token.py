"""ORM model for persisted refresh tokens (one row per login session)."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.models.base import Base
from app.utils.datetime_utils import utc_now


class RefreshToken(Base):
    """
    Long-lived opaque credential exchanged for new access tokens.

    Only a SHA-256 digest of the raw value is stored; the raw value goes to the client
    in an HTTP-only cookie. Several rows per user are allowed (multi-device login).
    """

    __tablename__ = "refresh_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token_hash = Column(String(64), nullable=False, unique=True, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    user = relationship("User", back_populates="refresh_tokens")
