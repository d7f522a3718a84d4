"""Credential store: user lookup, password verification and administrative provisioning.

Password history is not written by update_password; callers do that in the order
verify -> check reuse -> hash -> persist -> append history (see password_policy).
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.core.errors import (
    AuthenticationError,
    ConflictError,
    ErrorCode,
    NotFoundError,
    ValidationFailed,
)
from app.core.security import hash_password, verify_password as _bcrypt_verify
from app.models import User
from app.models.user import ROLE_ADMIN, ROLE_USER, VALID_ROLES
from app.services import password_policy
from app.utils.datetime_utils import utc_now

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("first_name", "middle_name", "last_name", "position")


def find_by_username(db: Session, username: str) -> User | None:
    return db.query(User).filter(User.username == username).first()


def get_user(db: Session, user_id: int) -> User | None:
    return db.query(User).filter(User.id == user_id).first()


def require_user(db: Session, user_id: int) -> User:
    user = get_user(db, user_id)
    if user is None:
        raise NotFoundError(ErrorCode.USER_NOT_FOUND, "User not found")
    return user


def verify_password(user: User, candidate: str) -> bool:
    """Slow salted comparison of candidate against the user's stored bcrypt hash."""
    return _bcrypt_verify(candidate, user.password_hash)


def update_password(db: Session, user: User, new_hash: str) -> None:
    """Set a new password hash, clear the forced-change flag and stamp updated_at. Does not commit."""
    user.password_hash = new_hash
    user.must_change_password = False
    user.updated_at = utc_now()
    db.add(user)


def _validate_role(role: str) -> None:
    if role not in VALID_ROLES:
        raise ValidationFailed(
            ErrorCode.INVALID_ROLE,
            "Invalid role. Must be 'admin' or 'user'",
        )


def create_user(
    db: Session,
    settings: "Settings",
    *,
    username: str,
    password: str,
    role: str = ROLE_USER,
    first_name: str = "",
    middle_name: str = "",
    last_name: str = "",
    position: str = "",
) -> User:
    """Provision a user with a temporary password (must be changed on first login)."""
    username = username.strip()
    password_policy.ensure_strong(password)
    _validate_role(role)
    if find_by_username(db, username) is not None:
        raise ConflictError(ErrorCode.USERNAME_EXISTS, "Username already exists")

    password_hash = hash_password(password, settings.BCRYPT_ROUNDS)
    user = User(
        username=username,
        password_hash=password_hash,
        role=role,
        must_change_password=True,
        first_name=first_name,
        middle_name=middle_name,
        last_name=last_name,
        position=position,
    )
    try:
        db.add(user)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(user)
    logger.info("User created", extra={"user_id": user.id, "role": role})
    return user


def update_user(
    db: Session,
    settings: "Settings",
    user_id: int,
    changes: dict[str, Any],
) -> User:
    """
    Apply admin edits: profile fields, role, and an optional forced password reset.

    A reset password goes through the same strength policy as every other password
    path, the replaced hash is appended to history, and the user must change it on
    next login.
    """
    user = require_user(db, user_id)
    updates = {k: v for k, v in changes.items() if v is not None}
    if not updates:
        raise ValidationFailed(ErrorCode.NO_UPDATES, "No fields to update")

    role = updates.get("role")
    if role is not None:
        _validate_role(role)

    new_password = updates.pop("password", None)
    try:
        for name in PROFILE_FIELDS + ("role",):
            if name in updates:
                setattr(user, name, updates[name])
        if new_password:
            password_policy.ensure_strong(new_password)
            old_hash = user.password_hash
            user.password_hash = hash_password(new_password, settings.BCRYPT_ROUNDS)
            user.must_change_password = True
            password_policy.record_password(
                db, user.id, old_hash, limit=settings.PASSWORD_HISTORY_LIMIT
            )
        user.updated_at = utc_now()
        db.add(user)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(user)
    logger.info(
        "User updated",
        extra={"user_id": user.id, "password_reset": bool(new_password)},
    )
    return user


def delete_user(db: Session, user_id: int, acting_user_id: int) -> None:
    """
    Delete a user and everything it owns (password history, refresh tokens, QR tokens).

    Cascade runs through the ORM relationships and is backed by ON DELETE CASCADE.
    """
    if user_id == acting_user_id:
        raise ValidationFailed(ErrorCode.SELF_DELETE, "You cannot delete your own account")
    user = require_user(db, user_id)
    try:
        db.delete(user)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("User deleted", extra={"user_id": user_id, "deleted_by": acting_user_id})


@dataclass
class UserPage:
    users: list[User]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 0


def list_users(
    db: Session,
    *,
    page: int = 1,
    limit: int = 10,
    search: str = "",
    role: str = "",
) -> UserPage:
    """Paginated user listing, newest first, filtered by name/username search and role."""
    query = db.query(User)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                User.username.ilike(pattern),
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
            )
        )
    if role:
        query = query.filter(User.role == role)
    total = query.count()
    users = (
        query.order_by(User.created_at.desc(), User.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return UserPage(users=users, page=page, limit=limit, total=total)


def user_statistics(db: Session) -> dict[str, int]:
    total = db.query(func.count(User.id)).scalar() or 0
    admins = db.query(func.count(User.id)).filter(User.role == ROLE_ADMIN).scalar() or 0
    pending = (
        db.query(func.count(User.id)).filter(User.must_change_password.is_(True)).scalar() or 0
    )
    with_picture = (
        db.query(func.count(User.id)).filter(User.profile_picture.isnot(None)).scalar() or 0
    )
    return {
        "total_users": total,
        "admin_count": admins,
        "user_count": total - admins,
        "pending_password_change": pending,
        "users_with_picture": with_picture,
    }


def change_password(
    db: Session,
    settings: "Settings",
    user: User,
    current_password: str,
    new_password: str,
) -> User:
    """
    Self-service password change.

    Order: verify current -> strength -> reuse (history and current hash) -> hash new ->
    persist new hash and append the replaced hash to history in one transaction.
    """
    if not verify_password(user, current_password):
        raise AuthenticationError(ErrorCode.INVALID_PASSWORD, "Current password is incorrect")

    password_policy.ensure_strong(new_password)

    if verify_password(user, new_password) or password_policy.is_reused(
        db, user.id, new_password, limit=settings.PASSWORD_HISTORY_LIMIT
    ):
        raise ValidationFailed(
            ErrorCode.PASSWORD_REUSED,
            "Cannot reuse any of your previous passwords",
        )

    old_hash = user.password_hash
    new_hash = hash_password(new_password, settings.BCRYPT_ROUNDS)
    try:
        update_password(db, user, new_hash)
        password_policy.record_password(
            db, user.id, old_hash, limit=settings.PASSWORD_HISTORY_LIMIT
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(user)
    logger.info("Password changed", extra={"user_id": user.id})
    return user
