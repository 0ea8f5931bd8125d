"""Pytest fixtures — per-test SQLite database for fast, isolated tests."""
import math
import os
from datetime import datetime, timezone, timedelta

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from attendance.database import Base, get_db
from attendance.main import app

# Import all models so they register with Base.metadata
from attendance.models.user import User                 # noqa: F401
from attendance.models.team import Team, TeamMember     # noqa: F401
from attendance.models.event import Event               # noqa: F401
from attendance.models.event_window import EventWindow  # noqa: F401
from attendance.models.rsvp import RsvpResponse         # noqa: F401
from attendance.models.attendance import Attendance     # noqa: F401

SQLITE_URL = "sqlite:///./test.db"

# A field in Cambridge, MA used as the default venue
VENUE_LAT = 42.3736
VENUE_LNG = -71.1097


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine):
    """Yield a database session, closed after the test."""
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
# Helpers: create entities via the API, return the JSON response dict
# ---------------------------------------------------------------------------
def create_test_user(client: TestClient, name: str = "Test User", role: str = "player",
                     tz: str = "America/New_York") -> dict:
    """Helper — POST /api/users and return response JSON."""
    resp = client.post("/api/users/", json={
        "display_name": name,
        "role": role,
        "default_timezone": tz,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_team(client: TestClient, creator_id: str, name: str = "U12 Lions") -> dict:
    """Helper — POST /api/teams and return response JSON."""
    resp = client.post("/api/teams/", json={
        "name": name,
        "created_by": creator_id,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_event(client: TestClient, organizer_id: str, start: datetime = None,
                      title: str = "Practice", team_id: str = None, geofence: bool = True,
                      radius: float = None, windows: list = None) -> dict:
    """Helper — POST /api/events (starts in 10 minutes unless ``start`` is given)."""
    if start is None:
        start = datetime.now(timezone.utc) + timedelta(minutes=10)
    payload = {
        "title": title,
        "start_time_utc": start.isoformat(),
        "end_time_utc": (start + timedelta(hours=1, minutes=30)).isoformat(),
        "location_name": "Riverside Field",
        "organizer_id": organizer_id,
        "team_id": team_id,
        "windows": windows or [],
    }
    if geofence:
        payload["latitude"] = VENUE_LAT
        payload["longitude"] = VENUE_LNG
    if radius is not None:
        payload["checkin_radius_m"] = radius
    resp = client.post("/api/events/", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


def offset_north(lat: float, lng: float, meters: float) -> tuple[float, float]:
    """A point ``meters`` due north of (lat, lng) on the haversine sphere."""
    return lat + math.degrees(meters / 6_371_000.0), lng
