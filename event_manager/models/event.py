"""Event ORM model.

Events reference their host by key only; attendees are resolved through
``Attendance`` queries rather than ORM back-references.
"""
import enum
import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    String,
    Text,
)
from sqlalchemy.sql import func

from event_manager.database import Base


class Visibility(str, enum.Enum):
    public = "PUBLIC"
    private = "PRIVATE"


class Event(Base):
    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint("end_time >= start_time", name="ck_events_end_after_start"),
    )

    event_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    host_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    end_time = Column(DateTime(timezone=True), nullable=False)
    location = Column(String(100), nullable=False, index=True)
    visibility = Column(SAEnum(Visibility), nullable=False, default=Visibility.public, index=True)
    is_deleted = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
