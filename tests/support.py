"""Shared builders for tests: settings, an in-memory database, users and devices."""

from datetime import timedelta

from app.core.config import Settings
from app.core.database import Database
from app.core.security import hash_password
from app.models import Device, User
from app.utils.datetime_utils import utc_now

TEST_ROUNDS = 4
STRONG_PASSWORD = "Str0ng!Passw0rd"
OTHER_STRONG_PASSWORD = "An0ther!Secret"


def make_settings(**overrides: object) -> Settings:
    """Settings for tests: in-memory SQLite, cheap bcrypt, fixed secret, no .env file."""
    values: dict[str, object] = {
        "DATABASE_URL": "sqlite://",
        "BCRYPT_ROUNDS": TEST_ROUNDS,
        "JWT_SECRET": "test-secret-for-unit-tests-only-0123456789",
        "FRONTEND_URL": "http://testserver",
        "HOUSEKEEPING_ENABLED": True,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_database(settings: Settings | None = None) -> Database:
    database = Database(settings or make_settings())
    database.create_all()
    return database


def add_user(
    db,
    username: str = "alice",
    password: str = STRONG_PASSWORD,
    role: str = "user",
    must_change_password: bool = False,
) -> User:
    user = User(
        username=username,
        password_hash=hash_password(password, rounds=TEST_ROUNDS),
        role=role,
        must_change_password=must_change_password,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def add_device(db, serial: str = "SN-001", code: str = "DEV-001", name: str = "Infusion Pump") -> Device:
    device = Device(
        device_name=name,
        serial_number=serial,
        manufacturer="Acme Medical",
        device_code=code,
        date_purchased="2023-01-15",
        responsible_person="Biomed",
        location="Ward 3",
    )
    db.add(device)
    db.commit()
    db.refresh(device)
    return device


def hours_ago(hours: int):
    return utc_now() - timedelta(hours=hours)
