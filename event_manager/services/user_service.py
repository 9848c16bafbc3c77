"""User service: registration, profile updates, soft deactivation."""
import logging
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from event_manager.exceptions import (
    NotFoundError,
    UnauthorizedError,
    UserAlreadyExistsError,
    ValidationError,
)
from event_manager.models.attendance import Attendance
from event_manager.models.event import Event
from event_manager.models.user import User, UserRole
from event_manager.schemas.user import (
    AdminUserUpdate,
    PasswordChange,
    UserRegister,
    UserStatsOut,
    UserUpdate,
)
from event_manager.security.passwords import hash_password, verify_password

logger = logging.getLogger(__name__)


def _get_user(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise NotFoundError(f"User not found with ID: {user_id}")
    return user


def _get_active_actor(db: Session, actor_user_id: Optional[str]) -> Optional[User]:
    if actor_user_id is None:
        return None
    actor = db.query(User).filter(User.user_id == actor_user_id).first()
    if actor is None or not actor.is_active:
        return None
    return actor


def _check_self_or_admin(db: Session, user_id: str, actor_user_id: Optional[str]) -> None:
    actor = _get_active_actor(db, actor_user_id)
    if actor is None or (actor.user_id != user_id and not actor.is_admin):
        logger.info("Actor %s denied change to user %s", actor_user_id, user_id)
        raise UnauthorizedError("Only the account owner or an ADMIN can modify this user")


def _email_taken(db: Session, email: str, exclude_user_id: Optional[str] = None) -> bool:
    query = db.query(User).filter(func.lower(User.email) == email.lower())
    if exclude_user_id:
        query = query.filter(User.user_id != exclude_user_id)
    return db.query(query.exists()).scalar()


def register(db: Session, payload: UserRegister) -> User:
    logger.info("Registering new user with email: %s", payload.email)
    if payload.password != payload.confirm_password:
        raise ValidationError("Passwords do not match")
    if _email_taken(db, payload.email):
        raise UserAlreadyExistsError(f"Email already in use: {payload.email}")

    user = User(
        name=payload.name,
        email=payload.email.lower(),
        password_hash=hash_password(payload.password),
        role=UserRole.user,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User registered successfully: %s", user.user_id)
    return user


def get_user(db: Session, user_id: str) -> User:
    return _get_user(db, user_id)


def get_user_by_email(db: Session, email: str) -> User:
    user = db.query(User).filter(func.lower(User.email) == email.lower()).first()
    if not user:
        raise NotFoundError(f"User not found with email: {email}")
    return user


def list_users(
    db: Session,
    role: Optional[UserRole] = None,
    active_only: bool = False,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 20,
) -> list[User]:
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    if active_only:
        query = query.filter(User.is_active.is_(True))
    if search:
        term = f"%{search.lower()}%"
        query = query.filter(or_(func.lower(User.name).like(term), func.lower(User.email).like(term)))
    return query.order_by(User.created_at, User.name).offset(skip).limit(limit).all()


def update_user(db: Session, user_id: str, actor_user_id: str, payload: UserUpdate) -> User:
    logger.info("Updating user: %s", user_id)
    user = _get_user(db, user_id)
    _check_self_or_admin(db, user_id, actor_user_id)
    updates = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "email" in updates:
        if _email_taken(db, updates["email"], exclude_user_id=user_id):
            raise UserAlreadyExistsError(f"Email already in use: {updates['email']}")
        updates["email"] = updates["email"].lower()
    for field, value in updates.items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return user


def change_password(db: Session, user_id: str, payload: PasswordChange) -> None:
    logger.info("Changing password for user: %s", user_id)
    if payload.new_password != payload.confirm_password:
        raise ValidationError("Passwords do not match")
    user = _get_user(db, user_id)
    if not verify_password(payload.current_password, user.password_hash):
        raise ValidationError("Current password is incorrect")
    user.password_hash = hash_password(payload.new_password)
    db.commit()
    logger.info("Password changed successfully for user: %s", user_id)


def update_user_as_admin(db: Session, user_id: str, actor_user_id: str, payload: AdminUserUpdate) -> User:
    actor = _get_active_actor(db, actor_user_id)
    if not actor or not actor.is_admin:
        raise UnauthorizedError("Only an ADMIN can perform this operation")

    logger.info("Admin %s updating user: %s", actor_user_id, user_id)
    user = _get_user(db, user_id)
    updates = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "email" in updates:
        if _email_taken(db, updates["email"], exclude_user_id=user_id):
            raise UserAlreadyExistsError(f"Email already in use: {updates['email']}")
        updates["email"] = updates["email"].lower()
    for field, value in updates.items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return user


def deactivate_user(db: Session, user_id: str, actor_user_id: str) -> User:
    """Soft delete: users are flagged inactive, never removed."""
    user = _get_user(db, user_id)
    _check_self_or_admin(db, user_id, actor_user_id)
    user.is_active = False
    db.commit()
    db.refresh(user)
    logger.info("User soft-deleted: %s", user_id)
    return user


def get_user_stats(db: Session, user_id: str) -> UserStatsOut:
    user = _get_user(db, user_id)
    hosted = (
        db.query(func.count(Event.event_id))
        .filter(Event.host_id == user_id, Event.is_deleted.is_(False))
        .scalar()
    )
    attending = (
        db.query(func.count(Attendance.event_id))
        .join(Event, Event.event_id == Attendance.event_id)
        .filter(Attendance.user_id == user_id, Event.is_deleted.is_(False))
        .scalar()
    )
    return UserStatsOut(
        user_id=user.user_id,
        name=user.name,
        hosted_events=hosted or 0,
        attending_events=attending or 0,
        created_at=user.created_at,
    )
