"""Shared wire schemas."""
from typing import Optional
from pydantic import BaseModel

from event_manager.schemas.event import ConflictDescriptor


class ErrorResponse(BaseModel):
    status: int
    message: str
    timestamp: int
    conflicts: Optional[list[ConflictDescriptor]] = None
