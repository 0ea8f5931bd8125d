"""Injectable data access for an event and everything hanging off it.

Routers and services receive an ``EventDataAccess`` through ``Depends`` instead
of querying a shared cache. Reads are memoized per instance (one request);
writers call ``invalidate(event_id)`` after committing so later reads in the
same request see fresh rows.
"""
import logging
from typing import Any, Callable, Optional

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from attendance.database import get_db
from attendance.models.attendance import Attendance
from attendance.models.event import Event
from attendance.models.event_window import EventWindow
from attendance.models.rsvp import RsvpResponse
from attendance.models.team import TeamMember
from attendance.models.user import User

logger = logging.getLogger(__name__)

# Cache key kinds keyed by event id; user reads are shared across events.
EVENT_SCOPED = frozenset({"event", "windows", "rsvps", "attendances", "participants"})


class EventDataAccess:
    def __init__(self, db: Session):
        self.db = db
        self._cache: dict[tuple, Any] = {}

    def _cached(self, key: tuple, loader: Callable[[], Any]) -> Any:
        if key not in self._cache:
            self._cache[key] = loader()
        return self._cache[key]

    def invalidate(self, event_id: str) -> None:
        """Drop every cached read belonging to ``event_id``."""
        stale = [key for key in self._cache if key[0] in EVENT_SCOPED and key[1] == event_id]
        for key in stale:
            del self._cache[key]
        logger.debug("Invalidated %d cached reads for event %s", len(stale), event_id)

    # -- reads ---------------------------------------------------------

    def event(self, event_id: str) -> Event:
        """Fetch an event or raise 404."""
        event = self._cached(
            ("event", event_id),
            lambda: self.db.query(Event).filter(Event.event_id == event_id).first(),
        )
        if not event:
            raise HTTPException(status_code=404, detail="Event not found")
        return event

    def user(self, user_id: str) -> User:
        """Fetch a user or raise 404."""
        user = self._cached(
            ("user", user_id),
            lambda: self.db.query(User).filter(User.user_id == user_id).first(),
        )
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        return user

    def windows(self, event_id: str) -> list[EventWindow]:
        return self._cached(
            ("windows", event_id),
            lambda: self.db.query(EventWindow).filter(EventWindow.event_id == event_id).all(),
        )

    def rsvps(self, event_id: str) -> list[RsvpResponse]:
        return self._cached(
            ("rsvps", event_id),
            lambda: self.db.query(RsvpResponse).filter(RsvpResponse.event_id == event_id).all(),
        )

    def rsvp_for(self, event_id: str, user_id: str) -> Optional[RsvpResponse]:
        return next((r for r in self.rsvps(event_id) if r.user_id == user_id), None)

    def attendances(self, event_id: str) -> list[Attendance]:
        return self._cached(
            ("attendances", event_id),
            lambda: (
                self.db.query(Attendance)
                .filter(Attendance.event_id == event_id)
                .order_by(Attendance.checked_in_at)
                .all()
            ),
        )

    def attendance_for(self, event_id: str, user_id: str) -> Optional[Attendance]:
        return next((a for a in self.attendances(event_id) if a.user_id == user_id), None)

    def participants(self, event_id: str) -> list[User]:
        """The event team's roster, or every user when the event has no team."""
        event = self.event(event_id)

        def _load() -> list[User]:
            query = self.db.query(User)
            if event.team_id:
                query = query.join(TeamMember, TeamMember.user_id == User.user_id).filter(
                    TeamMember.team_id == event.team_id
                )
            return query.order_by(User.display_name).all()

        return self._cached(("participants", event_id), _load)


def get_data_access(db: Session = Depends(get_db)) -> EventDataAccess:
    """FastAPI dependency — one data-access object per request."""
    return EventDataAccess(db)
