"""ORM model for prior password hashes, used only for reuse detection."""

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from app.models.base import Base
from app.utils.datetime_utils import utc_now


class PasswordHistory(Base):
    """
    Append-only record of a user's previous password hashes.

    Bounded to the newest PASSWORD_HISTORY_LIMIT rows per user; pruned after every insert.
    """

    __tablename__ = "password_history"
    __table_args__ = (
        Index("idx_password_history_user_created", "user_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    user = relationship("User", back_populates="password_history")
