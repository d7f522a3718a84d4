"""API routes."""

from fastapi import APIRouter

from app.api.v1 import auth, devices, health, pm_logs, qr_tokens, users

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(devices.router, prefix="/devices", tags=["devices"])
router.include_router(pm_logs.router, prefix="/pm-logs", tags=["pm-logs"])
router.include_router(qr_tokens.router, prefix="/qr-tokens", tags=["qr-tokens"])
