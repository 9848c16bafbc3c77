"""Lifecycle guard: temporal phase and soft-delete transitions.

An event's phase is derived from the clock, never stored:

    UPCOMING  now < start
    ONGOING   start <= now < end
    PAST      now >= end

Each phase is crossed with the ``is_deleted`` flag. Deleted events come back
through restore; there is no hard delete.
"""
import enum
import logging
from datetime import datetime
from typing import Optional

from event_manager.exceptions import ValidationError
from event_manager.models.event import Event
from event_manager.utils.timeutils import as_utc, utcnow

logger = logging.getLogger(__name__)


class EventPhase(str, enum.Enum):
    upcoming = "UPCOMING"
    ongoing = "ONGOING"
    past = "PAST"


class LifecycleAction(str, enum.Enum):
    join = "join"
    change_rsvp = "changeRsvp"
    leave = "leave"
    delete = "delete"
    restore = "restore"
    update = "update"


_RSVP_PAST_MESSAGES = {
    LifecycleAction.join: "Cannot attend a past event",
    LifecycleAction.change_rsvp: "Cannot update attendance for a past event",
    LifecycleAction.leave: "Cannot remove attendance for a past event",
}


def event_phase(event: Event, now: Optional[datetime] = None) -> EventPhase:
    now = as_utc(now) if now else utcnow()
    if now < as_utc(event.start_time):
        return EventPhase.upcoming
    if now < as_utc(event.end_time):
        return EventPhase.ongoing
    return EventPhase.past


def check_lifecycle_transition(
    event: Event,
    action: LifecycleAction,
    now: Optional[datetime] = None,
) -> None:
    """Raise ``ValidationError`` if ``action`` is illegal in the event's current state."""
    if action in _RSVP_PAST_MESSAGES:
        if event.is_deleted:
            raise ValidationError("Event is deleted")
        if event_phase(event, now) == EventPhase.past:
            raise ValidationError(_RSVP_PAST_MESSAGES[action])
    elif action == LifecycleAction.delete:
        if event.is_deleted:
            raise ValidationError("Event is already deleted")
    elif action == LifecycleAction.restore:
        if not event.is_deleted:
            raise ValidationError("Event is not deleted")
    elif action == LifecycleAction.update:
        if event.is_deleted:
            raise ValidationError("Event is deleted")
    else:
        raise ValueError(f"Unknown lifecycle action: {action!r}")


def validate_event_times(start_time: datetime, end_time: datetime, now: Optional[datetime] = None) -> None:
    """Creation/update rule: start strictly in the future, end after start and in the future."""
    now = as_utc(now) if now else utcnow()
    start_time, end_time = as_utc(start_time), as_utc(end_time)
    if start_time <= now:
        raise ValidationError("Event start time must be in the future")
    if end_time <= start_time:
        raise ValidationError("Event end time must be after start time")
    if end_time <= now:
        raise ValidationError("Event end time must be in the future")
