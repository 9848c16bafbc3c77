"""Pydantic schemas for Events."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from event_manager.models.attendance import AttendanceStatus
from event_manager.models.event import Visibility


class EventCreate(BaseModel):
    title: str = Field(min_length=5, max_length=100)
    description: str = Field(min_length=10, max_length=1000)
    start_time: datetime
    end_time: datetime
    location: str = Field(min_length=3, max_length=100)
    visibility: Visibility = Visibility.public


class EventUpdate(BaseModel):
    title: str = Field(min_length=5, max_length=100)
    description: str = Field(min_length=10, max_length=1000)
    start_time: datetime
    end_time: datetime
    location: str = Field(min_length=3, max_length=100)
    visibility: Visibility


class EventOut(BaseModel):
    event_id: str
    title: str
    description: str
    host_id: str
    host_name: Optional[str] = None
    start_time: datetime
    end_time: datetime
    location: str
    visibility: Visibility
    is_deleted: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    attendee_count: int = 0
    is_attending: bool = False
    attendance_status: Optional[AttendanceStatus] = None

    model_config = {"from_attributes": True}


class EventSummaryOut(BaseModel):
    """Listing row, without attendee details."""

    event_id: str
    title: str
    description: str
    host_id: str
    host_name: Optional[str] = None
    start_time: datetime
    end_time: datetime
    location: str
    visibility: Visibility
    attendee_count: int = 0
    is_upcoming: bool = False
    is_ongoing: bool = False
    is_past: bool = False


class ConflictDescriptor(BaseModel):
    event_id: str
    title: str
    start_time: datetime
    end_time: datetime
    location: str
    conflict_reason: str


class EventStatsOut(BaseModel):
    event_id: str
    title: str
    host_name: Optional[str] = None
    start_time: datetime
    total_attendees: int
    going_count: int
    maybe_count: int
    declined_count: int
    attendance_rate: float
    created_at: Optional[datetime] = None
