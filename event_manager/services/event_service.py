"""Core event service. Runs the rule engine around every write.

Write path, in order:
- lookup (NotFound)
- lifecycle guard: is the action legal in the event's current state
- authorization guard: host or ADMIN only
- time validation and conflict detection (create/update)
- persist

Deletion is soft (``is_deleted``) and reversible through restore.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from event_manager.exceptions import NotFoundError
from event_manager.models.attendance import Attendance, AttendanceStatus
from event_manager.models.event import Event, Visibility
from event_manager.schemas.event import (
    EventCreate,
    EventOut,
    EventStatsOut,
    EventSummaryOut,
    EventUpdate,
)
from event_manager.services import mappers
from event_manager.services.conflict_service import ensure_no_conflicts
from event_manager.services.event_store import SqlEventStore
from event_manager.services.lifecycle import (
    LifecycleAction,
    check_lifecycle_transition,
    validate_event_times,
)
from event_manager.services.visibility import (
    check_active_user,
    check_mutable,
    check_viewable,
    visible_to_clause,
)
from event_manager.utils.timeutils import as_utc, utcnow

logger = logging.getLogger(__name__)


def _get_active_event(store: SqlEventStore, event_id: str) -> Event:
    event = store.find_by_id(event_id)
    if not event:
        raise NotFoundError(f"Event not found with ID: {event_id}")
    return event


def _get_any_event(store: SqlEventStore, event_id: str) -> Event:
    event = store.find_by_id(event_id, include_deleted=True)
    if not event:
        raise NotFoundError(f"Event not found with ID: {event_id}")
    return event


def create_event(db: Session, host_id: str, payload: EventCreate) -> EventOut:
    logger.info("Creating new event for host: %s", host_id)
    store = SqlEventStore(db)
    start, end = as_utc(payload.start_time), as_utc(payload.end_time)

    validate_event_times(start, end)
    check_active_user(store, host_id)
    ensure_no_conflicts(store, host_id, start, end)

    event = Event(
        title=payload.title,
        description=payload.description,
        host_id=host_id,
        start_time=start,
        end_time=end,
        location=payload.location,
        visibility=payload.visibility,
        is_deleted=False,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    logger.info("Event created successfully: %s", event.event_id)
    return mappers.to_event_out(db, event, host_id)


def get_event(db: Session, event_id: str, viewer_id: Optional[str] = None) -> EventOut:
    store = SqlEventStore(db)
    event = _get_active_event(store, event_id)
    check_viewable(store, event, viewer_id)
    return mappers.to_event_out(db, event, viewer_id)


def event_exists(db: Session, event_id: str) -> bool:
    """True if the event exists and is not soft-deleted."""
    return SqlEventStore(db).find_by_id(event_id) is not None


def update_event(db: Session, event_id: str, actor_user_id: str, payload: EventUpdate) -> EventOut:
    logger.info("Updating event: %s", event_id)
    store = SqlEventStore(db)
    event = _get_active_event(store, event_id)

    check_lifecycle_transition(event, LifecycleAction.update)
    check_mutable(store, event, actor_user_id)

    start, end = as_utc(payload.start_time), as_utc(payload.end_time)
    validate_event_times(start, end)
    ensure_no_conflicts(store, event.host_id, start, end, exclude_event_id=event.event_id)

    event.title = payload.title
    event.description = payload.description
    event.start_time = start
    event.end_time = end
    event.location = payload.location
    event.visibility = payload.visibility
    db.commit()
    db.refresh(event)
    logger.info("Event updated successfully: %s", event_id)
    return mappers.to_event_out(db, event, actor_user_id)


def delete_event(db: Session, event_id: str, actor_user_id: str) -> None:
    """Soft delete. Deleting an already-deleted event is rejected."""
    logger.info("Deleting event: %s", event_id)
    store = SqlEventStore(db)
    event = _get_any_event(store, event_id)

    check_lifecycle_transition(event, LifecycleAction.delete)
    check_mutable(store, event, actor_user_id)

    event.is_deleted = True
    db.commit()
    logger.info("Event soft-deleted: %s", event_id)


def restore_event(db: Session, event_id: str, actor_user_id: str) -> EventOut:
    logger.info("Restoring event: %s", event_id)
    store = SqlEventStore(db)
    event = _get_any_event(store, event_id)

    check_lifecycle_transition(event, LifecycleAction.restore)
    check_mutable(store, event, actor_user_id)

    event.is_deleted = False
    db.commit()
    db.refresh(event)
    logger.info("Event restored: %s", event_id)
    return mappers.to_event_out(db, event, actor_user_id)


def list_events(
    db: Session,
    viewer_id: Optional[str] = None,
    visibility: Optional[Visibility] = None,
    location: Optional[str] = None,
    start_after: Optional[datetime] = None,
    start_before: Optional[datetime] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 20,
) -> list[EventSummaryOut]:
    """Non-deleted events the viewer may see, with optional filters."""
    query = db.query(Event).filter(Event.is_deleted.is_(False), visible_to_clause(viewer_id))
    if visibility:
        query = query.filter(Event.visibility == visibility)
    if location:
        query = query.filter(func.lower(Event.location).like(f"%{location.lower()}%"))
    if start_after:
        query = query.filter(Event.start_time >= as_utc(start_after))
    if start_before:
        query = query.filter(Event.start_time <= as_utc(start_before))
    if search:
        term = f"%{search.lower()}%"
        query = query.filter(or_(
            func.lower(Event.title).like(term),
            func.lower(Event.description).like(term),
            func.lower(Event.location).like(term),
        ))
    events = query.order_by(Event.start_time).offset(skip).limit(limit).all()
    return mappers.to_summaries(db, events)


def get_upcoming_events(
    db: Session, viewer_id: Optional[str] = None, skip: int = 0, limit: int = 20
) -> list[EventSummaryOut]:
    events = (
        db.query(Event)
        .filter(Event.is_deleted.is_(False), Event.start_time > utcnow(), visible_to_clause(viewer_id))
        .order_by(Event.start_time)
        .offset(skip)
        .limit(limit)
        .all()
    )
    return mappers.to_summaries(db, events)


def get_events_happening_today(
    db: Session, viewer_id: Optional[str] = None, now: Optional[datetime] = None
) -> list[EventSummaryOut]:
    """Events starting today (UTC) or already running at the start of the day."""
    now = as_utc(now) if now else utcnow()
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    end_of_day = start_of_day + timedelta(days=1) - timedelta(seconds=1)
    events = (
        db.query(Event)
        .filter(
            Event.is_deleted.is_(False),
            visible_to_clause(viewer_id),
            or_(
                Event.start_time.between(start_of_day, end_of_day),
                (Event.start_time <= start_of_day) & (Event.end_time >= start_of_day),
            ),
        )
        .order_by(Event.start_time)
        .all()
    )
    return mappers.to_summaries(db, events, now)


def get_most_popular_events(
    db: Session, viewer_id: Optional[str] = None, skip: int = 0, limit: int = 20
) -> list[EventSummaryOut]:
    attendee_count = func.count(Attendance.user_id)
    events = (
        db.query(Event)
        .outerjoin(Attendance, Attendance.event_id == Event.event_id)
        .filter(Event.is_deleted.is_(False), visible_to_clause(viewer_id))
        .group_by(Event.event_id)
        .order_by(attendee_count.desc(), Event.start_time)
        .offset(skip)
        .limit(limit)
        .all()
    )
    return mappers.to_summaries(db, events)


def get_events_by_host(
    db: Session, host_id: str, viewer_id: Optional[str] = None
) -> list[EventSummaryOut]:
    events = (
        db.query(Event)
        .filter(Event.host_id == host_id, Event.is_deleted.is_(False), visible_to_clause(viewer_id))
        .order_by(Event.start_time)
        .all()
    )
    return mappers.to_summaries(db, events)


def get_event_stats(db: Session, event_id: str, viewer_id: Optional[str] = None) -> EventStatsOut:
    store = SqlEventStore(db)
    event = _get_active_event(store, event_id)
    check_viewable(store, event, viewer_id)

    rows = (
        db.query(Attendance.status, func.count(Attendance.user_id))
        .filter(Attendance.event_id == event_id)
        .group_by(Attendance.status)
        .all()
    )
    counts = {status: count for status, count in rows}
    going = counts.get(AttendanceStatus.going, 0)
    maybe = counts.get(AttendanceStatus.maybe, 0)
    declined = counts.get(AttendanceStatus.declined, 0)
    total = going + maybe + declined
    host = store.find_user(event.host_id)

    return EventStatsOut(
        event_id=event.event_id,
        title=event.title,
        host_name=host.name if host else None,
        start_time=as_utc(event.start_time),
        total_attendees=total,
        going_count=going,
        maybe_count=maybe,
        declined_count=declined,
        attendance_rate=going / total * 100 if total else 0.0,
        created_at=as_utc(event.created_at),
    )
