"""Attendance ORM model: one RSVP per (event, user)."""
import enum

from sqlalchemy import Column, DateTime, Enum as SAEnum, ForeignKey, String

from event_manager.database import Base
from event_manager.utils.timeutils import utcnow


class AttendanceStatus(str, enum.Enum):
    going = "GOING"
    maybe = "MAYBE"
    declined = "DECLINED"


class Attendance(Base):
    __tablename__ = "attendance"

    event_id = Column(String(36), ForeignKey("events.event_id"), primary_key=True, index=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), primary_key=True, index=True)
    status = Column(SAEnum(AttendanceStatus), nullable=False, default=AttendanceStatus.going, index=True)
    responded_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
