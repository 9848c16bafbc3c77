"""ORM row → wire schema conversion.

Relationships are resolved here by explicit lookups (host name, attendee
counts) since the models carry no back-references.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from event_manager.models.attendance import Attendance
from event_manager.models.event import Event
from event_manager.models.user import User
from event_manager.schemas.attendance import AttendanceHistoryOut, AttendanceOut
from event_manager.schemas.event import EventOut, EventSummaryOut
from event_manager.services.lifecycle import EventPhase, event_phase
from event_manager.utils.timeutils import as_utc, utcnow


def _user_names(db: Session, user_ids: set[str]) -> dict[str, str]:
    if not user_ids:
        return {}
    rows = db.query(User.user_id, User.name).filter(User.user_id.in_(user_ids)).all()
    return {uid: name for uid, name in rows}


def _attendee_counts(db: Session, event_ids: list[str]) -> dict[str, int]:
    if not event_ids:
        return {}
    rows = (
        db.query(Attendance.event_id, func.count(Attendance.user_id))
        .filter(Attendance.event_id.in_(event_ids))
        .group_by(Attendance.event_id)
        .all()
    )
    return {eid: count for eid, count in rows}


def to_event_out(db: Session, event: Event, viewer_id: Optional[str] = None) -> EventOut:
    attendance = None
    if viewer_id is not None:
        attendance = (
            db.query(Attendance)
            .filter(Attendance.event_id == event.event_id, Attendance.user_id == viewer_id)
            .first()
        )
    return EventOut(
        event_id=event.event_id,
        title=event.title,
        description=event.description,
        host_id=event.host_id,
        host_name=_user_names(db, {event.host_id}).get(event.host_id),
        start_time=as_utc(event.start_time),
        end_time=as_utc(event.end_time),
        location=event.location,
        visibility=event.visibility,
        is_deleted=event.is_deleted,
        created_at=as_utc(event.created_at),
        updated_at=as_utc(event.updated_at),
        attendee_count=_attendee_counts(db, [event.event_id]).get(event.event_id, 0),
        is_attending=attendance is not None,
        attendance_status=attendance.status if attendance else None,
    )


def to_summaries(db: Session, events: list[Event], now: Optional[datetime] = None) -> list[EventSummaryOut]:
    now = now or utcnow()
    names = _user_names(db, {ev.host_id for ev in events})
    counts = _attendee_counts(db, [ev.event_id for ev in events])
    summaries = []
    for ev in events:
        phase = event_phase(ev, now)
        summaries.append(EventSummaryOut(
            event_id=ev.event_id,
            title=ev.title,
            description=ev.description,
            host_id=ev.host_id,
            host_name=names.get(ev.host_id),
            start_time=as_utc(ev.start_time),
            end_time=as_utc(ev.end_time),
            location=ev.location,
            visibility=ev.visibility,
            attendee_count=counts.get(ev.event_id, 0),
            is_upcoming=phase == EventPhase.upcoming,
            is_ongoing=phase == EventPhase.ongoing,
            is_past=phase == EventPhase.past,
        ))
    return summaries


def to_attendance_out(db: Session, attendance: Attendance) -> AttendanceOut:
    event = db.query(Event).filter(Event.event_id == attendance.event_id).first()
    user = db.query(User).filter(User.user_id == attendance.user_id).first()
    return AttendanceOut(
        event_id=attendance.event_id,
        event_title=event.title if event else None,
        event_start_time=as_utc(event.start_time) if event else None,
        event_location=event.location if event else None,
        user_id=attendance.user_id,
        user_name=user.name if user else None,
        user_email=user.email if user else None,
        status=attendance.status,
        responded_at=as_utc(attendance.responded_at),
    )


def to_history(
    db: Session,
    rows: list[tuple[Attendance, Event]],
    now: Optional[datetime] = None,
) -> list[AttendanceHistoryOut]:
    now = now or utcnow()
    names = _user_names(db, {ev.host_id for _, ev in rows} | {att.user_id for att, _ in rows})
    return [
        AttendanceHistoryOut(
            user_id=att.user_id,
            user_name=names.get(att.user_id),
            event_id=ev.event_id,
            event_title=ev.title,
            event_location=ev.location,
            event_start_time=as_utc(ev.start_time),
            event_end_time=as_utc(ev.end_time),
            status=att.status,
            responded_at=as_utc(att.responded_at),
            event_completed=event_phase(ev, now) == EventPhase.past,
            host_name=names.get(ev.host_id),
        )
        for att, ev in rows
    ]
