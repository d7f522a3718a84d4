"""Core app configuration, storage handle, errors and security primitives."""

from app.core.config import Settings, get_settings
from app.core.database import Database, get_db
from app.core.errors import AppError, ErrorCode

__all__ = ["AppError", "Database", "ErrorCode", "Settings", "get_db", "get_settings"]
