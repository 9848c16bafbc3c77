"""Pytest fixtures: a fresh SQLite database per test."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_startup.db")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "4")

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from event_manager.database import Base, get_db
from event_manager.main import app

# Import all models so they register with Base.metadata
from event_manager.models.user import User, UserRole       # noqa: F401
from event_manager.models.event import Event, Visibility    # noqa: F401
from event_manager.models.attendance import Attendance, AttendanceStatus  # noqa: F401


@pytest.fixture(scope="function")
def db_engine(tmp_path):
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}", connect_args={"check_same_thread": False})

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine):
    """Yield a database session bound to the test engine."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_engine):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def create_test_user(client: TestClient, name: str = "Test User", email: Optional[str] = None) -> dict:
    """POST /api/users/register and return response JSON."""
    email = email or f"{uuid.uuid4().hex[:10]}@eventhub.io"
    resp = client.post("/api/users/register", json={
        "name": name,
        "email": email,
        "password": "s3cret-pass",
        "confirm_password": "s3cret-pass",
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def make_admin(db, user_id: str) -> None:
    """Promote a user straight in the database."""
    user = db.query(User).filter(User.user_id == user_id).one()
    user.role = UserRole.admin
    db.commit()


def create_test_event(
    client: TestClient,
    host_id: str,
    title: str = "Team Offsite",
    start_offset_hours: float = 24,
    duration_hours: float = 2,
    visibility: str = "PUBLIC",
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
):
    """POST /api/events and return the raw response."""
    if start is None:
        start = datetime.now(timezone.utc) + timedelta(hours=start_offset_hours)
    if end is None:
        end = start + timedelta(hours=duration_hours)
    return client.post(f"/api/events/?actor_user_id={host_id}", json={
        "title": title,
        "description": "An event created by the test-suite.",
        "start_time": start.isoformat(),
        "end_time": end.isoformat(),
        "location": "Main Hall",
        "visibility": visibility,
    })


def insert_event(
    db,
    host_id: str,
    start: datetime,
    end: datetime,
    title: str = "Inserted Event",
    visibility: Visibility = Visibility.public,
    is_deleted: bool = False,
) -> Event:
    """Write an event row directly, bypassing the future-start rule."""
    ev = Event(
        title=title,
        description="Inserted directly for testing.",
        host_id=host_id,
        start_time=start,
        end_time=end,
        location="Annex",
        visibility=visibility,
        is_deleted=is_deleted,
    )
    db.add(ev)
    db.commit()
    db.refresh(ev)
    return ev


def insert_attendance(db, event_id: str, user_id: str, status: AttendanceStatus = AttendanceStatus.going) -> Attendance:
    att = Attendance(event_id=event_id, user_id=user_id, status=status)
    db.add(att)
    db.commit()
    return att


def insert_user(db, name: str = "Direct User", role: UserRole = UserRole.user) -> User:
    """Write a user row directly (no password hashing round-trip)."""
    user = User(
        name=name,
        email=f"{uuid.uuid4().hex[:10]}@eventhub.io",
        password_hash="not-a-real-hash",
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
