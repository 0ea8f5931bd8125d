"""FastAPI application entry point."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from attendance.config import settings
from attendance.database import Base, engine

# Import routers
from attendance.routers import users, teams, events, event_windows, rsvp, attendances

# Import all models so Base.metadata knows about them
from attendance.models.user import User                 # noqa: F401
from attendance.models.team import Team, TeamMember     # noqa: F401
from attendance.models.event import Event               # noqa: F401
from attendance.models.event_window import EventWindow  # noqa: F401
from attendance.models.rsvp import RsvpResponse         # noqa: F401
from attendance.models.attendance import Attendance     # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Team Event Attendance",
    description="RSVP windows, geofenced and QR check-in for youth sports team events",
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
app.include_router(teams.router, prefix="/api/teams", tags=["Teams"])
app.include_router(events.router, prefix="/api/events", tags=["Events"])
app.include_router(event_windows.router, prefix="/api/event-windows", tags=["EventWindows"])
app.include_router(rsvp.router, prefix="/api/rsvp", tags=["RSVP"])
app.include_router(attendances.router, prefix="/api/attendances", tags=["Attendances"])


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
