"""Domain exceptions raised by the services and the rule engine.

Each carries the HTTP status the API layer renders it with; see
``event_manager.main`` for the handler.
"""
from fastapi import status


class EventManagerError(Exception):
    """Base exception for all domain errors."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(EventManagerError):
    """Referenced user, event or attendance record does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ValidationError(EventManagerError):
    """Bad date ordering, past-event mutation, already-in-state."""

    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(EventManagerError):
    """Visibility or mutation guard failure."""

    status_code = status.HTTP_403_FORBIDDEN


class UserAlreadyExistsError(EventManagerError):
    status_code = status.HTTP_409_CONFLICT


class EventConflictError(EventManagerError):
    """The requested time window overlaps other commitments of the user."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str, conflicts: list):
        super().__init__(message)
        self.conflicts = conflicts
