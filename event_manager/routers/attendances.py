"""Attendance / RSVP API routes."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from event_manager.database import get_db
from event_manager.schemas.attendance import (
    AttendanceCreate,
    AttendanceHistoryOut,
    AttendanceOut,
    AttendanceStatsOut,
    BulkAttendanceCreate,
    EventAttendanceSummaryOut,
    StatusUpdate,
    UserAttendanceSummaryOut,
)
from event_manager.schemas.event import EventSummaryOut
from event_manager.services import attendance_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=AttendanceOut, status_code=status.HTTP_201_CREATED)
def rsvp(
    payload: AttendanceCreate,
    actor_user_id: str = Query(..., description="ID of the user responding"),
    db: Session = Depends(get_db),
):
    """RSVP the acting user to an event."""
    return attendance_service.create_attendance(db, actor_user_id, payload)


@router.post("/bulk", response_model=list[AttendanceOut], status_code=status.HTTP_201_CREATED)
def bulk_rsvp(
    payload: BulkAttendanceCreate,
    actor_user_id: str = Query(...),
    db: Session = Depends(get_db),
):
    """Add several users to an event (host or admin only)."""
    return attendance_service.create_bulk_attendance(db, actor_user_id, payload)


@router.get("/events/{event_id}", response_model=list[AttendanceOut])
def event_attendees(event_id: str, viewer_id: Optional[str] = Query(None), db: Session = Depends(get_db)):
    return attendance_service.get_attendees_by_event(db, event_id, viewer_id)


@router.get("/events/{event_id}/stats", response_model=AttendanceStatsOut)
def event_attendance_stats(event_id: str, viewer_id: Optional[str] = Query(None), db: Session = Depends(get_db)):
    return attendance_service.get_attendance_stats(db, event_id, viewer_id)


@router.get("/events/{event_id}/summary", response_model=EventAttendanceSummaryOut)
def event_attendance_summary(event_id: str, viewer_id: Optional[str] = Query(None), db: Session = Depends(get_db)):
    return attendance_service.get_event_attendance_summary(db, event_id, viewer_id)


@router.get("/users/{user_id}/events", response_model=list[EventSummaryOut])
def events_by_attendee(user_id: str, viewer_id: Optional[str] = Query(None), db: Session = Depends(get_db)):
    """Events a user holds an RSVP for."""
    return attendance_service.get_events_by_attendee(db, user_id, viewer_id)


@router.get("/users/{user_id}/summary", response_model=UserAttendanceSummaryOut)
def user_attendance_summary(user_id: str, viewer_id: Optional[str] = Query(None), db: Session = Depends(get_db)):
    """Counts over the user's RSVPs that ``viewer_id`` may see."""
    return attendance_service.get_user_attendance_summary(db, user_id, viewer_id)


@router.get("/users/{user_id}/upcoming", response_model=list[AttendanceHistoryOut])
def upcoming_attendance(user_id: str, viewer_id: Optional[str] = Query(None), db: Session = Depends(get_db)):
    return attendance_service.get_upcoming_attendance(db, user_id, viewer_id)


@router.get("/users/{user_id}/past", response_model=list[AttendanceHistoryOut])
def past_attendance(user_id: str, viewer_id: Optional[str] = Query(None), db: Session = Depends(get_db)):
    return attendance_service.get_past_attendance(db, user_id, viewer_id)


@router.get("/{event_id}/{user_id}", response_model=AttendanceOut)
def get_rsvp(event_id: str, user_id: str, viewer_id: Optional[str] = Query(None), db: Session = Depends(get_db)):
    return attendance_service.get_attendance(db, user_id, event_id, viewer_id)


@router.put("/{event_id}/{user_id}", response_model=AttendanceOut)
def change_rsvp(
    event_id: str,
    user_id: str,
    payload: StatusUpdate,
    actor_user_id: str = Query(..., description="The attendee, the event's host or an ADMIN"),
    db: Session = Depends(get_db),
):
    """Change an existing RSVP's status."""
    return attendance_service.update_attendance_status(db, user_id, event_id, payload.status, actor_user_id)


@router.delete("/{event_id}/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def withdraw_rsvp(
    event_id: str,
    user_id: str,
    actor_user_id: str = Query(..., description="The attendee, the event's host or an ADMIN"),
    db: Session = Depends(get_db),
):
    """Withdraw an RSVP while the event is not yet past."""
    attendance_service.delete_attendance(db, user_id, event_id, actor_user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
