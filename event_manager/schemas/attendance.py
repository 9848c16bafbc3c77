"""Pydantic schemas for Attendance (RSVP) records."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from event_manager.models.attendance import AttendanceStatus


class AttendanceCreate(BaseModel):
    event_id: str
    status: AttendanceStatus = AttendanceStatus.going


class StatusUpdate(BaseModel):
    status: AttendanceStatus


class BulkAttendanceCreate(BaseModel):
    event_id: str
    user_ids: list[str] = Field(min_length=1)
    status: AttendanceStatus = AttendanceStatus.going


class AttendanceOut(BaseModel):
    event_id: str
    event_title: Optional[str] = None
    event_start_time: Optional[datetime] = None
    event_location: Optional[str] = None
    user_id: str
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    status: AttendanceStatus
    responded_at: Optional[datetime] = None


class AttendanceStatsOut(BaseModel):
    going: int
    maybe: int
    declined: int
    total: int
    going_percentage: float
    maybe_percentage: float
    declined_percentage: float


class AttendanceHistoryOut(BaseModel):
    user_id: str
    user_name: Optional[str] = None
    event_id: str
    event_title: str
    event_location: str
    event_start_time: datetime
    event_end_time: datetime
    status: AttendanceStatus
    responded_at: Optional[datetime] = None
    event_completed: bool
    host_name: Optional[str] = None


class EventAttendanceSummaryOut(BaseModel):
    event_id: str
    event_title: str
    event_start_time: datetime
    event_location: str
    host_name: Optional[str] = None
    stats: AttendanceStatsOut
    last_updated: datetime


class UserAttendanceSummaryOut(BaseModel):
    user_id: str
    user_name: str
    total_events_attended: int
    upcoming_events: int
    past_events: int
    going_count: int
    maybe_count: int
    declined_count: int
    attendance_rate: float
    first_event_date: Optional[datetime] = None
    last_event_date: Optional[datetime] = None
