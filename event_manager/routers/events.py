"""Event API routes. Delegates to event_service for rule enforcement.

The caller's identity travels as an explicit ``actor_user_id`` (writes) or
``viewer_id`` (reads) query parameter.
"""
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from event_manager.config import settings
from event_manager.database import get_db
from event_manager.models.event import Visibility
from event_manager.schemas.event import (
    ConflictDescriptor,
    EventCreate,
    EventOut,
    EventStatsOut,
    EventSummaryOut,
    EventUpdate,
)
from event_manager.services import conflict_service, event_service

logger = logging.getLogger(__name__)
router = APIRouter()


def _limit(limit: Optional[int] = Query(None, ge=1, le=settings.MAX_PAGE_SIZE)) -> int:
    return limit or settings.DEFAULT_PAGE_SIZE


@router.post("/", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_event(
    payload: EventCreate,
    actor_user_id: str = Query(..., description="ID of the user hosting the event"),
    db: Session = Depends(get_db),
):
    """Create an event hosted by the acting user."""
    return event_service.create_event(db, actor_user_id, payload)


@router.get("/", response_model=list[EventSummaryOut])
def list_events(
    viewer_id: Optional[str] = Query(None),
    visibility: Optional[Visibility] = Query(None),
    location: Optional[str] = Query(None),
    start_after: Optional[datetime] = Query(None),
    start_before: Optional[datetime] = Query(None),
    q: Optional[str] = Query(None, description="Search title, description and location"),
    skip: int = Query(0, ge=0),
    limit: int = Depends(_limit),
    db: Session = Depends(get_db),
):
    """List visible, non-deleted events with optional filters."""
    return event_service.list_events(
        db,
        viewer_id=viewer_id,
        visibility=visibility,
        location=location,
        start_after=start_after,
        start_before=start_before,
        search=q,
        skip=skip,
        limit=limit,
    )


@router.get("/upcoming", response_model=list[EventSummaryOut])
def upcoming_events(
    viewer_id: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Depends(_limit),
    db: Session = Depends(get_db),
):
    return event_service.get_upcoming_events(db, viewer_id, skip, limit)


@router.get("/today", response_model=list[EventSummaryOut])
def events_today(viewer_id: Optional[str] = Query(None), db: Session = Depends(get_db)):
    return event_service.get_events_happening_today(db, viewer_id)


@router.get("/popular", response_model=list[EventSummaryOut])
def popular_events(
    viewer_id: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Depends(_limit),
    db: Session = Depends(get_db),
):
    return event_service.get_most_popular_events(db, viewer_id, skip, limit)


@router.get("/by-host/{host_id}", response_model=list[EventSummaryOut])
def events_by_host(host_id: str, viewer_id: Optional[str] = Query(None), db: Session = Depends(get_db)):
    return event_service.get_events_by_host(db, host_id, viewer_id)


@router.get("/conflicts", response_model=list[ConflictDescriptor])
def check_conflicts(
    user_id: str = Query(...),
    start_time: datetime = Query(...),
    end_time: datetime = Query(...),
    exclude_event_id: Optional[str] = Query(None),
    viewer_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """Events of ``user_id`` that overlap the given window and ``viewer_id`` may see."""
    return conflict_service.detect_conflicts(db, user_id, start_time, end_time, exclude_event_id, viewer_id)


@router.get("/{event_id}", response_model=EventOut)
def get_event(event_id: str, viewer_id: Optional[str] = Query(None), db: Session = Depends(get_db)):
    """Fetch a single event; PRIVATE events only for the host and attendees."""
    return event_service.get_event(db, event_id, viewer_id)


@router.get("/{event_id}/status", response_model=bool)
def event_status(event_id: str, db: Session = Depends(get_db)):
    """True if the event exists and has not been deleted."""
    return event_service.event_exists(db, event_id)


@router.get("/{event_id}/stats", response_model=EventStatsOut)
def event_stats(event_id: str, viewer_id: Optional[str] = Query(None), db: Session = Depends(get_db)):
    return event_service.get_event_stats(db, event_id, viewer_id)


@router.put("/{event_id}", response_model=EventOut)
def update_event(
    event_id: str,
    payload: EventUpdate,
    actor_user_id: str = Query(..., description="ID of the user performing the update"),
    db: Session = Depends(get_db),
):
    """Update an event (host or admin only)."""
    return event_service.update_event(db, event_id, actor_user_id, payload)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_event(
    event_id: str,
    actor_user_id: str = Query(...),
    db: Session = Depends(get_db),
):
    """Soft-delete an event (host or admin only)."""
    event_service.delete_event(db, event_id, actor_user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{event_id}/restore", response_model=EventOut)
def restore_event(
    event_id: str,
    actor_user_id: str = Query(...),
    db: Session = Depends(get_db),
):
    """Restore a soft-deleted event (host or admin only)."""
    return event_service.restore_event(db, event_id, actor_user_id)
