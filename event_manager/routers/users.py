"""User API routes."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from event_manager.config import settings
from event_manager.database import get_db
from event_manager.models.user import UserRole
from event_manager.schemas.user import (
    AdminUserUpdate,
    PasswordChange,
    UserOut,
    UserRegister,
    UserStatsOut,
    UserUpdate,
)
from event_manager.services import user_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register(payload: UserRegister, db: Session = Depends(get_db)):
    """Register a new user account."""
    return user_service.register(db, payload)


@router.get("/", response_model=list[UserOut])
def list_users(
    role: Optional[UserRole] = Query(None),
    active_only: bool = Query(False),
    q: Optional[str] = Query(None, description="Search name and email"),
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
):
    return user_service.list_users(db, role=role, active_only=active_only, search=q, skip=skip, limit=limit)


@router.get("/by-email/{email}", response_model=UserOut)
def get_user_by_email(email: str, db: Session = Depends(get_db)):
    return user_service.get_user_by_email(db, email)


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: str, db: Session = Depends(get_db)):
    """Fetch a single user by ID."""
    return user_service.get_user(db, user_id)


@router.get("/{user_id}/stats", response_model=UserStatsOut)
def get_user_stats(user_id: str, db: Session = Depends(get_db)):
    return user_service.get_user_stats(db, user_id)


@router.patch("/{user_id}", response_model=UserOut)
def update_user(
    user_id: str,
    payload: UserUpdate,
    actor_user_id: str = Query(..., description="The user themself or an ADMIN"),
    db: Session = Depends(get_db),
):
    """Update name and/or email (partial update)."""
    return user_service.update_user(db, user_id, actor_user_id, payload)


@router.post("/{user_id}/password", status_code=status.HTTP_200_OK)
def change_password(user_id: str, payload: PasswordChange, db: Session = Depends(get_db)):
    user_service.change_password(db, user_id, payload)
    return {"status": "ok"}


@router.patch("/{user_id}/admin", response_model=UserOut)
def admin_update_user(
    user_id: str,
    payload: AdminUserUpdate,
    actor_user_id: str = Query(..., description="ID of the ADMIN performing the update"),
    db: Session = Depends(get_db),
):
    """Change role / active flag (ADMIN only)."""
    return user_service.update_user_as_admin(db, user_id, actor_user_id, payload)


@router.delete("/{user_id}", response_model=UserOut)
def deactivate_user(
    user_id: str,
    actor_user_id: str = Query(..., description="The user themself or an ADMIN"),
    db: Session = Depends(get_db),
):
    """Soft-deactivate a user; the row is kept."""
    return user_service.deactivate_user(db, user_id, actor_user_id)
