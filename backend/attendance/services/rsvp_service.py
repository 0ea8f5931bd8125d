"""RSVP service — one response per (event, user), last write wins."""
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError

from attendance.models.rsvp import RsvpResponse, RsvpStatus
from attendance.services import window_service
from attendance.services.event_data import EventDataAccess

logger = logging.getLogger(__name__)

TOGGLE_NEXT = {
    RsvpStatus.no_response: RsvpStatus.attending,
    RsvpStatus.attending: RsvpStatus.not_attending,
    RsvpStatus.not_attending: RsvpStatus.attending,
}


def _check_window(data: EventDataAccess, event_id: str, now: datetime) -> None:
    event = data.event(event_id)
    windows = window_service.resolve_windows(event.start_time_utc, data.windows(event_id))
    if not window_service.is_open(now, windows.rsvp_open, windows.rsvp_close):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "reason": "window_closed",
                "message": "RSVP is not open for this event",
                "rsvp_open": windows.rsvp_open.isoformat(),
                "rsvp_close": windows.rsvp_close.isoformat(),
            },
        )


def set_rsvp(
    data: EventDataAccess,
    event_id: str,
    user_id: str,
    response: RsvpStatus,
    now: Optional[datetime] = None,
) -> RsvpResponse:
    """Create or overwrite the user's response. ``no_response`` cannot replace a real answer."""
    now = now or datetime.now(timezone.utc)
    data.user(user_id)
    _check_window(data, event_id, now)

    existing = data.rsvp_for(event_id, user_id)
    if existing:
        if response == RsvpStatus.no_response and existing.response != RsvpStatus.no_response:
            raise HTTPException(status_code=400, detail="An RSVP cannot be reset to no_response")
        existing.response = response
        existing.responded_at = now
        rsvp = existing
    else:
        rsvp = RsvpResponse(event_id=event_id, user_id=user_id, response=response, responded_at=now)
        data.db.add(rsvp)

    try:
        data.db.commit()
    except IntegrityError:
        data.db.rollback()
        raise HTTPException(status_code=409, detail="Concurrent RSVP for this user; re-fetch and retry")
    data.db.refresh(rsvp)
    data.invalidate(event_id)
    logger.info("User %s RSVP'd '%s' to event %s", user_id, response.value, event_id)
    return rsvp


def toggle_rsvp(
    data: EventDataAccess,
    event_id: str,
    user_id: str,
    now: Optional[datetime] = None,
) -> RsvpResponse:
    """Flip between attending and not_attending; a first toggle means attending."""
    data.event(event_id)
    existing = data.rsvp_for(event_id, user_id)
    current = RsvpStatus(existing.response) if existing else RsvpStatus.no_response
    return set_rsvp(data, event_id, user_id, TOGGLE_NEXT[current], now)


def delete_rsvp(data: EventDataAccess, rsvp_id: str, actor_user_id: str) -> None:
    """Staff-only removal of a response row."""
    if not data.user(actor_user_id).is_privileged:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins and coaches can delete RSVP responses",
        )
    rsvp = data.db.query(RsvpResponse).filter(RsvpResponse.rsvp_id == rsvp_id).first()
    if not rsvp:
        raise HTTPException(status_code=404, detail="RSVP response not found")
    event_id = rsvp.event_id
    data.db.delete(rsvp)
    data.db.commit()
    data.invalidate(event_id)
    logger.info("Deleted RSVP %s for event %s", rsvp_id, event_id)
