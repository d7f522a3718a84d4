"""
CLI entrypoint for the token housekeeping job. Run from cron, e.g.:

  python -m app.housekeeping

Or hourly: 0 * * * * cd /path/to/pmtrack && .venv/bin/python -m app.housekeeping
"""

import logging
import sys

from dotenv import load_dotenv

from app.core.config import get_settings
from app.core.database import Database
from app.services.housekeeping import run_housekeeping

logger = logging.getLogger(__name__)


def main() -> int:
    """Delete expired refresh tokens and expired QR tokens."""
    load_dotenv()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )
    settings = get_settings()
    database = Database(settings)
    db = database.session()
    try:
        refresh_deleted, qr_deleted = run_housekeeping(db, settings)
        logger.info(
            "Housekeeping completed: refresh_tokens_deleted=%s qr_tokens_deleted=%s",
            refresh_deleted,
            qr_deleted,
        )
        return 0
    except Exception as e:
        logger.exception("Housekeeping job failed: %s", e)
        return 1
    finally:
        db.close()
        database.dispose()


if __name__ == "__main__":
    sys.exit(main())
