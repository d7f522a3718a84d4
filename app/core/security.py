"""Password hashing, JWT access tokens and opaque token generation."""

import hashlib
import secrets
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any

import bcrypt
import jwt

from app.core.config import Settings
from app.utils.datetime_utils import utc_now

# Bcrypt cost used when no settings are at hand (scripts); the app uses BCRYPT_ROUNDS.
BCRYPT_ROUNDS = 12


def hash_password(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


class TokenStatus(str, Enum):
    """Outcome of access-token verification."""

    VALID = "valid"
    EXPIRED = "expired"
    INVALID = "invalid"
    ERROR = "error"


@dataclass(frozen=True)
class AccessTokenResult:
    """Typed result of verify_access_token; claims are only populated when VALID."""

    status: TokenStatus
    claims: dict[str, Any] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return self.status is TokenStatus.VALID


def create_access_token(
    user_id: int,
    username: str,
    role: str,
    settings: Settings,
) -> str:
    """Create a signed JWT carrying id, username, role, iat and exp."""
    now = utc_now()
    expire = now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "id": user_id,
        "username": username,
        "role": role,
        "exp": expire,
        "iat": now,
    }
    return jwt.encode(
        payload,
        settings.JWT_SECRET.get_secret_value(),
        algorithm=settings.JWT_ALGORITHM,
    )


def verify_access_token(token: str, settings: Settings) -> AccessTokenResult:
    """
    Check signature and expiry of an access token.

    Never raises for a bad token: the caller matches on the returned status
    (EXPIRED lets the client know a refresh is worth trying).
    """
    try:
        claims = jwt.decode(
            token,
            settings.JWT_SECRET.get_secret_value(),
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        return AccessTokenResult(TokenStatus.EXPIRED)
    except jwt.InvalidTokenError:
        return AccessTokenResult(TokenStatus.INVALID)
    except (ValueError, TypeError):
        return AccessTokenResult(TokenStatus.ERROR)
    return AccessTokenResult(TokenStatus.VALID, claims)


def generate_opaque_token(nbytes: int) -> str:
    """Cryptographically random hex token with nbytes of entropy."""
    return secrets.token_hex(nbytes)


def digest_token(raw_token: str) -> str:
    """SHA-256 hex digest used to store refresh tokens at rest."""
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()
