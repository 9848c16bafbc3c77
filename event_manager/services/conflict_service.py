"""Conflict detector: overlapping commitments for a single user.

A user is committed to every non-deleted event they host or hold an
Attendance row for, whatever the RSVP status.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from event_manager.config import settings
from event_manager.exceptions import EventConflictError, NotFoundError
from event_manager.schemas.event import ConflictDescriptor
from event_manager.services.event_store import SqlEventStore
from event_manager.services.visibility import can_view
from event_manager.utils.timeutils import as_utc

logger = logging.getLogger(__name__)

CONFLICT_REASON = "Time overlap with existing event"


def find_conflicts(
    store: SqlEventStore,
    user_id: str,
    start_time: datetime,
    end_time: datetime,
    exclude_event_id: Optional[str] = None,
    inclusive: Optional[bool] = None,
) -> list[ConflictDescriptor]:
    """Return one descriptor per event of ``user_id`` overlapping the window.

    ``exclude_event_id`` drops the event being edited so an unmoved event is
    never reported against itself. ``inclusive`` defaults to
    ``settings.CONFLICT_INCLUSIVE_BOUNDARIES``.
    """
    if store.find_user(user_id) is None:
        raise NotFoundError(f"User not found with ID: {user_id}")
    if inclusive is None:
        inclusive = settings.CONFLICT_INCLUSIVE_BOUNDARIES

    overlapping = store.find_overlapping(user_id, start_time, end_time, inclusive=inclusive)
    conflicts = [
        ConflictDescriptor(
            event_id=ev.event_id,
            title=ev.title,
            start_time=as_utc(ev.start_time),
            end_time=as_utc(ev.end_time),
            location=ev.location,
            conflict_reason=CONFLICT_REASON,
        )
        for ev in overlapping
        if ev.event_id != exclude_event_id
    ]
    logger.info(
        "Conflict check for user %s in %s to %s: %d conflict(s)",
        user_id, start_time, end_time, len(conflicts),
    )
    return conflicts


def detect_conflicts(
    db: Session,
    user_id: str,
    start_time: datetime,
    end_time: datetime,
    exclude_event_id: Optional[str] = None,
    viewer_id: Optional[str] = None,
) -> list[ConflictDescriptor]:
    """Session-level entry point used by the routers.

    Conflicts on events ``viewer_id`` may not view are left out.
    """
    store = SqlEventStore(db)
    conflicts = find_conflicts(store, user_id, start_time, end_time, exclude_event_id)
    return [
        c for c in conflicts
        if can_view(store, store.find_by_id(c.event_id), viewer_id)
    ]


def ensure_no_conflicts(
    store: SqlEventStore,
    user_id: str,
    start_time: datetime,
    end_time: datetime,
    exclude_event_id: Optional[str] = None,
) -> None:
    """Raise ``EventConflictError`` carrying every conflict, if there are any."""
    conflicts = find_conflicts(store, user_id, start_time, end_time, exclude_event_id)
    if conflicts:
        raise EventConflictError("Event conflicts with existing events", conflicts)
