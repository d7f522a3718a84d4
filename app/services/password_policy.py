"""Password policy: strength rules and reuse prevention against bounded password history.

validate_strength is the single implementation used for user creation, password
change and admin-forced resets.
"""

import logging
import re

from pydantic import Field
from sqlalchemy.orm import Session

from app.core.errors import ErrorCode, ValidationFailed
from app.core.security import verify_password
from app.models import PasswordHistory
from app.schemas.common import CamelModel

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
DEFAULT_HISTORY_LIMIT = 100

_UPPER = re.compile(r"[A-Z]")
_LOWER = re.compile(r"[a-z]")
_DIGIT = re.compile(r"[0-9]")
_SPECIAL = re.compile(r"""[!@#$%^&*(),.?":{}|<>_+\-=\[\];'/\\`~]""")


class PasswordStrength(CamelModel):
    """Which strength requirements a password meets."""

    min_length: bool = Field(..., description="At least 8 characters")
    has_upper: bool = Field(..., description="Contains an uppercase letter")
    has_lower: bool = Field(..., description="Contains a lowercase letter")
    has_digit: bool = Field(..., description="Contains a digit")
    has_special: bool = Field(..., description="Contains a special character")
    is_valid: bool = Field(..., description="All requirements met")

    def unmet(self) -> list[str]:
        labels = {
            "min_length": f"at least {MIN_PASSWORD_LENGTH} characters",
            "has_upper": "an uppercase letter",
            "has_lower": "a lowercase letter",
            "has_digit": "a number",
            "has_special": "a special character",
        }
        return [label for name, label in labels.items() if not getattr(self, name)]


def validate_strength(password: str) -> PasswordStrength:
    """Pure check of length and character classes."""
    min_length = len(password) >= MIN_PASSWORD_LENGTH
    has_upper = bool(_UPPER.search(password))
    has_lower = bool(_LOWER.search(password))
    has_digit = bool(_DIGIT.search(password))
    has_special = bool(_SPECIAL.search(password))
    return PasswordStrength(
        min_length=min_length,
        has_upper=has_upper,
        has_lower=has_lower,
        has_digit=has_digit,
        has_special=has_special,
        is_valid=min_length and has_upper and has_lower and has_digit and has_special,
    )


def ensure_strong(password: str) -> PasswordStrength:
    """Raise WEAK_PASSWORD listing unmet requirements; return the strength report otherwise."""
    strength = validate_strength(password)
    if not strength.is_valid:
        raise ValidationFailed(
            ErrorCode.WEAK_PASSWORD,
            "Password must contain " + ", ".join(strength.unmet()),
            details=strength.model_dump(),
        )
    return strength


def recent_hashes(db: Session, user_id: int, limit: int = DEFAULT_HISTORY_LIMIT) -> list[str]:
    """Newest-first password hashes from the user's history, at most limit rows."""
    rows = (
        db.query(PasswordHistory.password_hash)
        .filter(PasswordHistory.user_id == user_id)
        .order_by(PasswordHistory.created_at.desc(), PasswordHistory.id.desc())
        .limit(limit)
        .all()
    )
    return [row.password_hash for row in rows]


def is_reused(
    db: Session,
    user_id: int,
    candidate_password: str,
    limit: int = DEFAULT_HISTORY_LIMIT,
) -> bool:
    """
    True if candidate_password matches any of the last limit recorded hashes.

    One bcrypt comparison per history row, stopping at the first match; the
    history limit bounds the worst case.
    """
    for password_hash in recent_hashes(db, user_id, limit):
        if verify_password(candidate_password, password_hash):
            return True
    return False


def record_password(
    db: Session,
    user_id: int,
    password_hash: str,
    limit: int = DEFAULT_HISTORY_LIMIT,
) -> int:
    """
    Append a hash to the user's history and prune everything but the newest limit rows.

    Runs inside the caller's transaction (flushes, never commits). Returns the number
    of pruned rows.
    """
    db.add(PasswordHistory(user_id=user_id, password_hash=password_hash))
    db.flush()

    keep_ids = (
        db.query(PasswordHistory.id)
        .filter(PasswordHistory.user_id == user_id)
        .order_by(PasswordHistory.created_at.desc(), PasswordHistory.id.desc())
        .limit(limit)
        .scalar_subquery()
    )
    pruned = (
        db.query(PasswordHistory)
        .filter(
            PasswordHistory.user_id == user_id,
            PasswordHistory.id.notin_(keep_ids),
        )
        .delete(synchronize_session=False)
    )
    if pruned:
        logger.debug("Pruned password history", extra={"user_id": user_id, "pruned": pruned})
    return pruned
