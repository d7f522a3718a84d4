"""Application configuration loaded from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Allowed URL schemes for DATABASE_URL (module-level so validators can use it).
VALID_DATABASE_URL_PREFIXES = (
    "sqlite://",
    "sqlite+pysqlite://",
    "postgresql://",
    "postgresql+psycopg2://",
    "postgres://",
    "postgres+psycopg2://",
)

# Entropy floors for opaque tokens (bytes of randomness before hex encoding).
MIN_REFRESH_TOKEN_BYTES = 40
MIN_QR_TOKEN_BYTES = 32


class Settings(BaseSettings):
    """Validated application settings from env and optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    APP_ENV: Literal["dev", "prod"] = "dev"
    DEBUG: bool = False
    API_V1_PREFIX: str = "/api"

    # SQLite by default (single-tenant, self-hosted); PostgreSQL also supported
    DATABASE_URL: str = "sqlite:///./db/pmlog.db"
    DATABASE_TIMEOUT_SEC: float = 5.0

    # Access tokens (JWT)
    JWT_SECRET: SecretStr = SecretStr("change-me-in-production")
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15

    # Refresh tokens (opaque, persisted, delivered as an HTTP-only cookie)
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    REFRESH_TOKEN_BYTES: int = MIN_REFRESH_TOKEN_BYTES
    REFRESH_COOKIE_NAME: str = "refreshToken"
    # None means "secure in prod only"
    COOKIE_SECURE: bool | None = None

    # Password hashing and reuse prevention
    BCRYPT_ROUNDS: int = 12
    PASSWORD_HISTORY_LIMIT: int = 100

    # QR capability tokens. TTL has no upper bound: printed labels may be permanent.
    QR_TOKEN_BYTES: int = MIN_QR_TOKEN_BYTES
    QR_TOKEN_DEFAULT_TTL_HOURS: int = 24
    FRONTEND_URL: str = "http://localhost:3000"

    CORS_ORIGINS: list[str] = []

    # Explicit expiry sweep (python -m app.housekeeping); hot-path sweeps always run
    HOUSEKEEPING_ENABLED: bool = True

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("DATABASE_URL must be set and non-empty")
        if not any(v.startswith(prefix) for prefix in VALID_DATABASE_URL_PREFIXES):
            raise ValueError(
                "DATABASE_URL must be a SQLite or PostgreSQL URL (e.g. sqlite:///./db/pmlog.db)"
            )
        return v.strip()

    @field_validator("DATABASE_TIMEOUT_SEC")
    @classmethod
    def validate_database_timeout(cls, v: float) -> float:
        if v <= 0 or v > 60:
            raise ValueError("DATABASE_TIMEOUT_SEC must be greater than 0 and at most 60")
        return v

    @field_validator("JWT_SECRET")
    @classmethod
    def validate_jwt_secret(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value() or not v.get_secret_value().strip():
            raise ValueError("JWT_SECRET must be set and non-empty")
        return v

    @field_validator("JWT_ALGORITHM")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("JWT_ALGORITHM must be set and non-empty")
        return v.strip()

    @field_validator("ACCESS_TOKEN_EXPIRE_MINUTES")
    @classmethod
    def validate_access_token_expire_minutes(cls, v: int) -> int:
        if v < 1 or v > 1440:
            raise ValueError(
                "ACCESS_TOKEN_EXPIRE_MINUTES must be between 1 and 1440 (1 min to 1 day)"
            )
        return v

    @field_validator("REFRESH_TOKEN_EXPIRE_DAYS")
    @classmethod
    def validate_refresh_token_expire_days(cls, v: int) -> int:
        if v < 1 or v > 365:
            raise ValueError("REFRESH_TOKEN_EXPIRE_DAYS must be between 1 and 365")
        return v

    @field_validator("REFRESH_TOKEN_BYTES")
    @classmethod
    def validate_refresh_token_bytes(cls, v: int) -> int:
        if v < MIN_REFRESH_TOKEN_BYTES or v > 256:
            raise ValueError(
                f"REFRESH_TOKEN_BYTES must be between {MIN_REFRESH_TOKEN_BYTES} and 256"
            )
        return v

    @field_validator("REFRESH_COOKIE_NAME")
    @classmethod
    def validate_refresh_cookie_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("REFRESH_COOKIE_NAME must be set and non-empty")
        return v.strip()

    @field_validator("BCRYPT_ROUNDS")
    @classmethod
    def validate_bcrypt_rounds(cls, v: int) -> int:
        if v < 4 or v > 16:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 16")
        return v

    @field_validator("PASSWORD_HISTORY_LIMIT")
    @classmethod
    def validate_password_history_limit(cls, v: int) -> int:
        if v < 1 or v > 1000:
            raise ValueError("PASSWORD_HISTORY_LIMIT must be between 1 and 1000")
        return v

    @field_validator("QR_TOKEN_BYTES")
    @classmethod
    def validate_qr_token_bytes(cls, v: int) -> int:
        if v < MIN_QR_TOKEN_BYTES or v > 256:
            raise ValueError(f"QR_TOKEN_BYTES must be between {MIN_QR_TOKEN_BYTES} and 256")
        return v

    @field_validator("QR_TOKEN_DEFAULT_TTL_HOURS")
    @classmethod
    def validate_qr_token_default_ttl(cls, v: int) -> int:
        if v < 1:
            raise ValueError("QR_TOKEN_DEFAULT_TTL_HOURS must be at least 1")
        return v

    @field_validator("FRONTEND_URL")
    @classmethod
    def validate_frontend_url(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("FRONTEND_URL must be set and non-empty")
        s = v.strip().rstrip("/").lower()
        if not (s.startswith("http://") or s.startswith("https://")):
            raise ValueError(
                "FRONTEND_URL must use http or https (e.g. http://localhost:3000)"
            )
        return v.strip().rstrip("/")

    @model_validator(mode="after")
    def fill_derived_defaults(self) -> "Settings":
        if self.COOKIE_SECURE is None:
            self.COOKIE_SECURE = self.APP_ENV == "prod"
        if not self.CORS_ORIGINS:
            self.CORS_ORIGINS = [self.FRONTEND_URL]
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance (safe to call from dependencies)."""
    return Settings()
