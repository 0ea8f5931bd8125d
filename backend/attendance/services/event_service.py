"""Event service — creation with inline window rules, and window rule maintenance.

Responsibilities:
- Authorization hook: only admins and coaches may organize events or edit windows
- One rule per (window_type, open_role) slot for an event
- Cascade of window rules with their event
"""
import logging
from typing import Any, Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from attendance.models.event import Event, EventType
from attendance.models.event_window import EventWindow
from attendance.models.team import Team
from attendance.models.user import User
from attendance.schemas.event_window import EventWindowRule
from attendance.services.event_data import EventDataAccess
from attendance.services.window_service import as_utc

logger = logging.getLogger(__name__)


def _require_staff(user: Optional[User], action: str) -> None:
    """Only admins and coaches may perform ``action``."""
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    if not user.is_privileged:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Only admins and coaches can {action}",
        )


def _check_unique_slots(rules: list[EventWindowRule]) -> None:
    seen = set()
    for rule in rules:
        slot = (rule.window_type, rule.open_role)
        if slot in seen:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Duplicate {rule.window_type.value} {rule.open_role.value} window",
            )
        seen.add(slot)


def create_event(db: Session, organizer_id: str, windows: list[EventWindowRule], **fields: Any) -> Event:
    """Create an event and its window rules in one transaction."""
    organizer = db.query(User).filter(User.user_id == organizer_id).first()
    _require_staff(organizer, "organize events")

    team_id = fields.get("team_id")
    if team_id and not db.query(Team).filter(Team.team_id == team_id).first():
        raise HTTPException(status_code=404, detail="Team not found")

    fields["start_time_utc"] = as_utc(fields["start_time_utc"])
    fields["end_time_utc"] = as_utc(fields["end_time_utc"])
    if fields["end_time_utc"] < fields["start_time_utc"]:
        raise HTTPException(status_code=400, detail="Event cannot end before it starts")

    _check_unique_slots(windows)

    fields["event_type"] = EventType(fields.get("event_type") or EventType.practice)
    event = Event(organizer_id=organizer_id, **fields)
    db.add(event)
    db.flush()

    for rule in windows:
        db.add(EventWindow(event_id=event.event_id, **rule.model_dump()))

    db.commit()
    db.refresh(event)
    logger.info("Created event '%s' (%s) by organizer %s with %d window rules",
                event.title, event.event_id, organizer_id, len(windows))
    return event


def add_window(data: EventDataAccess, actor_user_id: str, event_id: str, rule: EventWindowRule) -> EventWindow:
    """Attach a window rule to an event; a slot may only be filled once."""
    _require_staff(data.user(actor_user_id), "create event windows")
    data.event(event_id)

    if any(
        w.window_type == rule.window_type and w.open_role == rule.open_role
        for w in data.windows(event_id)
    ):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Event already has a {rule.window_type.value} {rule.open_role.value} window",
        )

    window = EventWindow(event_id=event_id, **rule.model_dump())
    data.db.add(window)
    try:
        data.db.commit()
    except IntegrityError:
        data.db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Window slot already taken")
    data.db.refresh(window)
    data.invalidate(event_id)
    logger.info("Added %s/%s window to event %s", rule.window_type.value, rule.open_role.value, event_id)
    return window


def _get_window(data: EventDataAccess, window_id: str) -> EventWindow:
    window = data.db.query(EventWindow).filter(EventWindow.window_id == window_id).first()
    if not window:
        raise HTTPException(status_code=404, detail="Event window not found")
    return window


def update_window(data: EventDataAccess, actor_user_id: str, window_id: str, updates: dict[str, Any]) -> EventWindow:
    """Partial update of amount / unit / direction. The slot itself is immutable."""
    _require_staff(data.user(actor_user_id), "update event windows")
    window = _get_window(data, window_id)
    for field, value in updates.items():
        setattr(window, field, value)
    data.db.commit()
    data.db.refresh(window)
    data.invalidate(window.event_id)
    logger.info("Updated window %s on event %s", window_id, window.event_id)
    return window


def delete_window(data: EventDataAccess, actor_user_id: str, window_id: str) -> None:
    """Remove a rule; the slot reverts to its default offset."""
    _require_staff(data.user(actor_user_id), "delete event windows")
    window = _get_window(data, window_id)
    event_id = window.event_id
    data.db.delete(window)
    data.db.commit()
    data.invalidate(event_id)
    logger.info("Deleted window %s from event %s", window_id, event_id)
