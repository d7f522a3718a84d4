"""Token housekeeping: delete expired refresh tokens and expired QR tokens."""

import logging
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from app.services import qr_tokens, session_tokens

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


def run_housekeeping(session: Session, settings: "Settings") -> tuple[int, int]:
    """
    Sweep both token families. Returns (refresh_tokens_deleted, qr_tokens_deleted).

    Idempotent: safe to run repeatedly. Login, refresh and QR generation already
    sweep opportunistically; this is for operators who also want a cron sweep.
    """
    if not settings.HOUSEKEEPING_ENABLED:
        logger.info("Housekeeping is disabled (HOUSEKEEPING_ENABLED=false); skipping.")
        return (0, 0)

    refresh_deleted = session_tokens.sweep_expired(session)
    qr_deleted = qr_tokens.cleanup_expired(session)

    if refresh_deleted or qr_deleted:
        logger.info(
            "Housekeeping run: refresh_tokens_deleted=%s, qr_tokens_deleted=%s",
            refresh_deleted,
            qr_deleted,
        )
    return (refresh_deleted, qr_deleted)
