"""Read-side store used by the rule engine.

Wraps a SQLAlchemy session behind the handful of lookups the guards and the
conflict detector need, so they never touch ORM relationships directly.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from event_manager.models.attendance import Attendance
from event_manager.models.event import Event
from event_manager.models.user import User, UserRole
from event_manager.utils.timeutils import as_utc

logger = logging.getLogger(__name__)


class SqlEventStore:
    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, event_id: str, include_deleted: bool = False) -> Optional[Event]:
        query = self.db.query(Event).filter(Event.event_id == event_id)
        if not include_deleted:
            query = query.filter(Event.is_deleted.is_(False))
        return query.first()

    def find_user(self, user_id: Optional[str]) -> Optional[User]:
        if user_id is None:
            return None
        return self.db.query(User).filter(User.user_id == user_id).first()

    def find_attendance(self, event_id: str, user_id: Optional[str]) -> Optional[Attendance]:
        if user_id is None:
            return None
        return (
            self.db.query(Attendance)
            .filter(Attendance.event_id == event_id, Attendance.user_id == user_id)
            .first()
        )

    def find_active_user(self, user_id: Optional[str]) -> Optional[User]:
        user = self.find_user(user_id)
        if user is None or not user.is_active:
            return None
        return user

    def is_admin(self, user_id: Optional[str]) -> bool:
        """Deactivated accounts lose the ADMIN role's rights."""
        if user_id is None:
            return False
        role = (
            self.db.query(User.role)
            .filter(User.user_id == user_id, User.is_active.is_(True))
            .scalar()
        )
        return role == UserRole.admin

    def find_by_attendee(self, user_id: str) -> list[Event]:
        return (
            self.db.query(Event)
            .join(Attendance, Attendance.event_id == Event.event_id)
            .filter(Attendance.user_id == user_id, Event.is_deleted.is_(False))
            .order_by(Event.start_time)
            .all()
        )

    def find_overlapping(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
        inclusive: bool = False,
    ) -> list[Event]:
        """Non-deleted events hosted or attended by ``user_id`` overlapping ``[start, end]``.

        ``inclusive`` makes events that merely touch the window count as
        overlapping (``E.start <= end AND E.end >= start``); otherwise the
        intervals are half-open (``E.start < end AND E.end > start``).
        """
        start, end = as_utc(start), as_utc(end)
        attended = select(Attendance.event_id).where(Attendance.user_id == user_id)
        if inclusive:
            window = (Event.start_time <= end, Event.end_time >= start)
        else:
            window = (Event.start_time < end, Event.end_time > start)

        return (
            self.db.query(Event)
            .filter(
                Event.is_deleted.is_(False),
                or_(Event.host_id == user_id, Event.event_id.in_(attended)),
                *window,
            )
            .order_by(Event.start_time)
            .all()
        )
