"""ORM model for application users (auth and RBAC)."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from app.models.base import Base
from app.utils.datetime_utils import utc_now

ROLE_ADMIN = "admin"
ROLE_USER = "user"
VALID_ROLES = (ROLE_ADMIN, ROLE_USER)


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    role: 'admin' or 'user'. A user exclusively owns its password history, refresh
    tokens and the QR tokens it generated; deleting the user deletes all of them
    (ORM cascade plus ON DELETE CASCADE foreign keys).
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default=ROLE_USER)
    must_change_password = Column(Boolean, nullable=False, default=True)

    first_name = Column(String(255), nullable=False, default="")
    middle_name = Column(String(255), nullable=False, default="")
    last_name = Column(String(255), nullable=False, default="")
    position = Column(String(255), nullable=False, default="")
    profile_picture = Column(String(1024), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    password_history = relationship(
        "PasswordHistory",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    refresh_tokens = relationship(
        "RefreshToken",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    qr_tokens = relationship(
        "QRToken",
        back_populates="generated_by_user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
