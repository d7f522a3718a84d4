"""Domain errors with stable machine-readable codes.

Services and the authorization gate raise AppError subclasses; the API layer turns
them into {"error": <message>, "code": <CODE>} responses.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Stable error codes returned to clients."""

    # Session authentication
    NO_TOKEN = "NO_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_ERROR = "TOKEN_ERROR"
    # Capability authentication (expiry reuses TOKEN_EXPIRED)
    INVALID_QR_TOKEN = "INVALID_QR_TOKEN"
    # Refresh flow
    NO_REFRESH_TOKEN = "NO_REFRESH_TOKEN"
    INVALID_REFRESH_TOKEN = "INVALID_REFRESH_TOKEN"
    REFRESH_TOKEN_EXPIRED = "REFRESH_TOKEN_EXPIRED"
    # Authorization
    FORBIDDEN = "FORBIDDEN"
    DEVICE_MISMATCH = "DEVICE_MISMATCH"
    # Credentials
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INVALID_PASSWORD = "INVALID_PASSWORD"
    WEAK_PASSWORD = "WEAK_PASSWORD"
    PASSWORD_REUSED = "PASSWORD_REUSED"
    # Resources
    USER_NOT_FOUND = "USER_NOT_FOUND"
    DEVICE_NOT_FOUND = "DEVICE_NOT_FOUND"
    TOKEN_NOT_FOUND = "TOKEN_NOT_FOUND"
    PM_LOG_NOT_FOUND = "PM_LOG_NOT_FOUND"
    # Request shape / conflicts
    USERNAME_EXISTS = "USERNAME_EXISTS"
    SERIAL_NUMBER_EXISTS = "SERIAL_NUMBER_EXISTS"
    INVALID_ROLE = "INVALID_ROLE"
    SELF_DELETE = "SELF_DELETE"
    NO_UPDATES = "NO_UPDATES"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    # Server
    SERVER_ERROR = "SERVER_ERROR"


class AppError(Exception):
    """Raised for any client-facing failure; carries a stable code and HTTP status."""

    status_code = 400

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status_code: int | None = None,
        details: dict | list | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code.value!r}, status_code={self.status_code})"


class AuthenticationError(AppError):
    """Missing, invalid or expired credential."""

    status_code = 401


class AuthorizationError(AppError):
    """Authenticated (or holding a capability) but not allowed to do this."""

    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ValidationFailed(AppError):
    """User-correctable input problem (weak or reused password, bad role, ...)."""

    status_code = 400


class ConflictError(AppError):
    status_code = 409


class StorageUnavailableError(AppError):
    """Storage failed or timed out; the request is denied (fail closed)."""

    status_code = 503

    def __init__(self, message: str = "Service temporarily unavailable") -> None:
        super().__init__(ErrorCode.SERVER_ERROR, message)
