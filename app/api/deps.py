"""Shared FastAPI dependencies: app-scoped settings and the database session."""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.database import get_db


def get_app_settings(request: Request) -> Settings:
    """Settings the app was constructed with (see create_app)."""
    return request.app.state.settings


DbSession = Annotated[Session, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]
