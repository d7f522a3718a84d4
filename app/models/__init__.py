"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.device import Device
from app.models.password_history import PasswordHistory
from app.models.pm_log import PMLog, PMLogTask
from app.models.qr_token import QRToken
from app.models.refresh_token import RefreshToken
from app.models.user import User

__all__ = [
    "Base",
    "Device",
    "PMLog",
    "PMLogTask",
    "PasswordHistory",
    "QRToken",
    "RefreshToken",
    "User",
]
