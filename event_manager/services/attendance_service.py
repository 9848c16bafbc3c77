"""Attendance (RSVP) service.

Every RSVP write is refused once the event is past, whoever asks.
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from event_manager.exceptions import NotFoundError, UnauthorizedError, ValidationError
from event_manager.models.attendance import Attendance, AttendanceStatus
from event_manager.models.event import Event
from event_manager.models.user import User
from event_manager.schemas.attendance import (
    AttendanceCreate,
    AttendanceHistoryOut,
    AttendanceOut,
    AttendanceStatsOut,
    BulkAttendanceCreate,
    EventAttendanceSummaryOut,
    UserAttendanceSummaryOut,
)
from event_manager.schemas.event import EventSummaryOut
from event_manager.services import mappers
from event_manager.services.event_store import SqlEventStore
from event_manager.services.lifecycle import (
    EventPhase,
    LifecycleAction,
    check_lifecycle_transition,
    event_phase,
)
from event_manager.services.visibility import (
    can_view,
    check_active_user,
    check_attendance_mutable,
    check_mutable,
    check_viewable,
)
from event_manager.utils.timeutils import as_utc, utcnow

logger = logging.getLogger(__name__)


def _get_user(store: SqlEventStore, user_id: str) -> User:
    user = store.find_user(user_id)
    if not user:
        raise NotFoundError(f"User not found with ID: {user_id}")
    return user


def _get_active_event(store: SqlEventStore, event_id: str) -> Event:
    event = store.find_by_id(event_id)
    if not event:
        raise NotFoundError(f"Event not found with ID: {event_id}")
    return event


def _get_attendance(store: SqlEventStore, event_id: str, user_id: str) -> Attendance:
    attendance = store.find_attendance(event_id, user_id)
    if not attendance:
        raise NotFoundError("Attendance record not found")
    return attendance


def create_attendance(db: Session, user_id: str, payload: AttendanceCreate) -> AttendanceOut:
    logger.info("Creating attendance for user: %s and event: %s", user_id, payload.event_id)
    store = SqlEventStore(db)
    check_active_user(store, user_id)
    event = _get_active_event(store, payload.event_id)

    check_lifecycle_transition(event, LifecycleAction.join)
    if not can_view(store, event, user_id):
        raise UnauthorizedError("You are not authorized to attend this private event")
    if store.find_attendance(event.event_id, user_id) is not None:
        raise ValidationError("You are already attending this event")

    attendance = Attendance(
        event_id=event.event_id,
        user_id=user_id,
        status=payload.status,
        responded_at=utcnow(),
    )
    db.add(attendance)
    db.commit()
    db.refresh(attendance)
    logger.info("Attendance created successfully for user: %s and event: %s", user_id, event.event_id)
    return mappers.to_attendance_out(db, attendance)


def update_attendance_status(
    db: Session, user_id: str, event_id: str, status: AttendanceStatus, actor_user_id: str
) -> AttendanceOut:
    logger.info("Updating attendance status for user: %s and event: %s", user_id, event_id)
    store = SqlEventStore(db)
    attendance = _get_attendance(store, event_id, user_id)
    event = store.find_by_id(event_id, include_deleted=True)

    check_lifecycle_transition(event, LifecycleAction.change_rsvp)
    check_attendance_mutable(store, event, user_id, actor_user_id)

    attendance.status = status
    attendance.responded_at = utcnow()
    db.commit()
    db.refresh(attendance)
    logger.info("Attendance status updated successfully for user: %s and event: %s", user_id, event_id)
    return mappers.to_attendance_out(db, attendance)


def delete_attendance(db: Session, user_id: str, event_id: str, actor_user_id: str) -> None:
    logger.info("Deleting attendance for user: %s and event: %s", user_id, event_id)
    store = SqlEventStore(db)
    attendance = _get_attendance(store, event_id, user_id)
    event = store.find_by_id(event_id, include_deleted=True)

    check_lifecycle_transition(event, LifecycleAction.leave)
    check_attendance_mutable(store, event, user_id, actor_user_id)

    db.delete(attendance)
    db.commit()
    logger.info("Attendance deleted successfully for user: %s and event: %s", user_id, event_id)


def get_attendance(
    db: Session, user_id: str, event_id: str, viewer_id: Optional[str] = None
) -> AttendanceOut:
    store = SqlEventStore(db)
    attendance = _get_attendance(store, event_id, user_id)
    check_viewable(store, store.find_by_id(event_id, include_deleted=True), viewer_id)
    return mappers.to_attendance_out(db, attendance)


def get_attendees_by_event(
    db: Session, event_id: str, viewer_id: Optional[str] = None
) -> list[AttendanceOut]:
    store = SqlEventStore(db)
    event = _get_active_event(store, event_id)
    check_viewable(store, event, viewer_id)
    rows = (
        db.query(Attendance)
        .filter(Attendance.event_id == event_id)
        .order_by(Attendance.responded_at)
        .all()
    )
    return [mappers.to_attendance_out(db, row) for row in rows]


def get_events_by_attendee(
    db: Session, user_id: str, viewer_id: Optional[str] = None
) -> list[EventSummaryOut]:
    store = SqlEventStore(db)
    _get_user(store, user_id)
    events = [ev for ev in store.find_by_attendee(user_id) if can_view(store, ev, viewer_id)]
    return mappers.to_summaries(db, events)


def _stats(db: Session, event_id: str) -> AttendanceStatsOut:
    statuses = [s for (s,) in db.query(Attendance.status).filter(Attendance.event_id == event_id)]
    total = len(statuses)
    going = statuses.count(AttendanceStatus.going)
    maybe = statuses.count(AttendanceStatus.maybe)
    declined = statuses.count(AttendanceStatus.declined)

    def pct(n: int) -> float:
        return n / total * 100 if total else 0.0

    return AttendanceStatsOut(
        going=going,
        maybe=maybe,
        declined=declined,
        total=total,
        going_percentage=pct(going),
        maybe_percentage=pct(maybe),
        declined_percentage=pct(declined),
    )


def get_attendance_stats(db: Session, event_id: str, viewer_id: Optional[str] = None) -> AttendanceStatsOut:
    store = SqlEventStore(db)
    event = _get_active_event(store, event_id)
    check_viewable(store, event, viewer_id)
    return _stats(db, event_id)


def get_event_attendance_summary(
    db: Session, event_id: str, viewer_id: Optional[str] = None
) -> EventAttendanceSummaryOut:
    store = SqlEventStore(db)
    event = _get_active_event(store, event_id)
    check_viewable(store, event, viewer_id)
    host = store.find_user(event.host_id)
    return EventAttendanceSummaryOut(
        event_id=event.event_id,
        event_title=event.title,
        event_start_time=as_utc(event.start_time),
        event_location=event.location,
        host_name=host.name if host else None,
        stats=_stats(db, event_id),
        last_updated=utcnow(),
    )


def _visible_rows(
    db: Session, store: SqlEventStore, user_id: str, viewer_id: Optional[str]
):
    """The user's RSVPs on non-deleted events that ``viewer_id`` may view."""
    query = (
        db.query(Attendance, Event)
        .join(Event, Event.event_id == Attendance.event_id)
        .filter(Attendance.user_id == user_id, Event.is_deleted.is_(False))
    )
    return [(att, ev) for att, ev in query.order_by(Event.start_time) if can_view(store, ev, viewer_id)]


def get_user_attendance_summary(
    db: Session, user_id: str, viewer_id: Optional[str] = None
) -> UserAttendanceSummaryOut:
    store = SqlEventStore(db)
    user = _get_user(store, user_id)
    rows = _visible_rows(db, store, user_id, viewer_id)
    now = utcnow()
    total = len(rows)
    statuses = [att.status for att, _ in rows]
    going = statuses.count(AttendanceStatus.going)
    starts = [as_utc(ev.start_time) for _, ev in rows]

    return UserAttendanceSummaryOut(
        user_id=user.user_id,
        user_name=user.name,
        total_events_attended=total,
        upcoming_events=sum(1 for _, ev in rows if event_phase(ev, now) == EventPhase.upcoming),
        past_events=sum(1 for _, ev in rows if event_phase(ev, now) == EventPhase.past),
        going_count=going,
        maybe_count=statuses.count(AttendanceStatus.maybe),
        declined_count=statuses.count(AttendanceStatus.declined),
        attendance_rate=going / total * 100 if total else 0.0,
        first_event_date=min(starts) if starts else None,
        last_event_date=max(starts) if starts else None,
    )


def create_bulk_attendance(
    db: Session, actor_user_id: str, payload: BulkAttendanceCreate
) -> list[AttendanceOut]:
    """Host/admin adds several users at once; users already attending are skipped."""
    logger.info("Creating bulk attendance for event: %s", payload.event_id)
    store = SqlEventStore(db)
    event = _get_active_event(store, payload.event_id)

    check_lifecycle_transition(event, LifecycleAction.join)
    check_mutable(store, event, actor_user_id)

    user_ids = list(dict.fromkeys(payload.user_ids))
    found = {uid for (uid,) in db.query(User.user_id).filter(User.user_id.in_(user_ids))}
    if len(found) != len(user_ids):
        raise ValidationError("Some users were not found")

    now = utcnow()
    created = [
        Attendance(event_id=event.event_id, user_id=uid, status=payload.status, responded_at=now)
        for uid in user_ids
        if store.find_attendance(event.event_id, uid) is None
    ]
    if not created:
        raise ValidationError("All users are already attending this event")

    db.add_all(created)
    db.commit()
    logger.info("Bulk attendance created for event %s: %d user(s)", event.event_id, len(created))
    return [mappers.to_attendance_out(db, att) for att in created]


def _history(
    db: Session, user_id: str, phase: EventPhase, viewer_id: Optional[str]
) -> list[AttendanceHistoryOut]:
    store = SqlEventStore(db)
    _get_user(store, user_id)
    now = utcnow()
    rows = [(att, ev) for att, ev in _visible_rows(db, store, user_id, viewer_id) if event_phase(ev, now) == phase]
    return mappers.to_history(db, rows, now)


def get_upcoming_attendance(
    db: Session, user_id: str, viewer_id: Optional[str] = None
) -> list[AttendanceHistoryOut]:
    logger.info("Getting upcoming events for user: %s", user_id)
    return _history(db, user_id, EventPhase.upcoming, viewer_id)


def get_past_attendance(
    db: Session, user_id: str, viewer_id: Optional[str] = None
) -> list[AttendanceHistoryOut]:
    logger.info("Getting past events for user: %s", user_id)
    return _history(db, user_id, EventPhase.past, viewer_id)
