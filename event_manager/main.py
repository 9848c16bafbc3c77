"""FastAPI application entry point."""
import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from event_manager.config import settings
from event_manager.database import Base, engine
from event_manager.exceptions import EventConflictError, EventManagerError
from event_manager.schemas.common import ErrorResponse

# Import routers
from event_manager.routers import attendances, events, users

# Import all models so Base.metadata knows about them
from event_manager.models.user import User              # noqa: F401
from event_manager.models.event import Event            # noqa: F401
from event_manager.models.attendance import Attendance  # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Event Manager",
    description="Create and browse events, RSVP, and keep schedules free of clashes",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(events.router, prefix="/api/events", tags=["Events"])
app.include_router(attendances.router, prefix="/api/attendances", tags=["Attendances"])


@app.exception_handler(EventManagerError)
def handle_domain_error(request: Request, exc: EventManagerError):
    """Render domain errors as ``{status, message, timestamp[, conflicts]}``."""
    body = ErrorResponse(
        status=exc.status_code,
        message=exc.message,
        timestamp=int(time.time() * 1000),
        conflicts=exc.conflicts if isinstance(exc, EventConflictError) else None,
    )
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected (%d): %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json", exclude_none=True))


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
