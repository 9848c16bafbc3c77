"""Visibility and authorization guard for events."""
import logging
from typing import Optional

from sqlalchemy import or_, select

from event_manager.exceptions import NotFoundError, UnauthorizedError
from event_manager.models.attendance import Attendance
from event_manager.models.event import Event, Visibility
from event_manager.models.user import User
from event_manager.services.event_store import SqlEventStore

logger = logging.getLogger(__name__)

MUTATION_ROLES = "host or ADMIN"


def can_view(store: SqlEventStore, event: Event, viewer_id: Optional[str]) -> bool:
    """PUBLIC: anyone. PRIVATE: the host and users with an Attendance row."""
    if event.visibility == Visibility.public:
        return True
    if event.visibility == Visibility.private:
        if viewer_id is None:
            return False
        if event.host_id == viewer_id:
            return True
        return store.find_attendance(event.event_id, viewer_id) is not None
    raise ValueError(f"Unknown visibility: {event.visibility!r}")


def can_mutate(store: SqlEventStore, event: Event, actor_id: Optional[str]) -> bool:
    """True iff the actor is active and hosts the event or has the ADMIN role."""
    if store.find_active_user(actor_id) is None:
        return False
    return event.host_id == actor_id or store.is_admin(actor_id)


def can_manage_attendance(
    store: SqlEventStore, event: Event, attendee_id: str, actor_id: Optional[str]
) -> bool:
    """An RSVP belongs to its user; the event's host and admins may also change it."""
    if store.find_active_user(actor_id) is None:
        return False
    return attendee_id == actor_id or can_mutate(store, event, actor_id)


def check_active_user(store: SqlEventStore, user_id: str) -> User:
    """Look up an acting user; deactivated accounts cannot act."""
    user = store.find_user(user_id)
    if user is None:
        raise NotFoundError(f"User not found with ID: {user_id}")
    if not user.is_active:
        logger.info("Inactive user %s refused", user_id)
        raise UnauthorizedError("User is inactive")
    return user


def check_viewable(store: SqlEventStore, event: Event, viewer_id: Optional[str]) -> None:
    # The message must not reveal anything about the private event.
    if not can_view(store, event, viewer_id):
        logger.info("Viewer %s denied access to private event %s", viewer_id, event.event_id)
        raise UnauthorizedError("You are not authorized to view this private event")


def check_mutable(store: SqlEventStore, event: Event, actor_id: Optional[str]) -> None:
    if not can_mutate(store, event, actor_id):
        logger.info("Actor %s denied mutation of event %s", actor_id, event.event_id)
        raise UnauthorizedError(f"Only the {MUTATION_ROLES} can modify this event")


def check_attendance_mutable(
    store: SqlEventStore, event: Event, attendee_id: str, actor_id: Optional[str]
) -> None:
    if not can_manage_attendance(store, event, attendee_id, actor_id):
        logger.info("Actor %s denied change to attendance of %s on %s", actor_id, attendee_id, event.event_id)
        raise UnauthorizedError(f"Only the attendee, the {MUTATION_ROLES} can modify this attendance")


def visible_to_clause(viewer_id: Optional[str]):
    """SQL form of ``can_view`` for listing queries."""
    if viewer_id is None:
        return Event.visibility == Visibility.public
    attended = select(Attendance.event_id).where(Attendance.user_id == viewer_id)
    return or_(
        Event.visibility == Visibility.public,
        Event.host_id == viewer_id,
        Event.event_id.in_(attended),
    )
