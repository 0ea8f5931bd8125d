"""Event API routes — creation, listing, participants, QR tokens and the detail view."""
import logging
from typing import Optional
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from attendance.database import get_db
from attendance.models.event import Event
from attendance.schemas.checkin import CheckinTokenOut
from attendance.schemas.event import EventCreate, EventOut
from attendance.schemas.event_detail import EventDetail
from attendance.schemas.user import UserOut
from attendance.services import checkin_service, event_detail_service, event_service
from attendance.services.event_data import EventDataAccess, get_data_access
from attendance.services.window_service import as_utc

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_event(payload: EventCreate, db: Session = Depends(get_db)):
    """Create an event, optionally with its RSVP / check-in window rules."""
    return event_service.create_event(
        db=db,
        organizer_id=payload.organizer_id,
        windows=payload.windows,
        **payload.model_dump(exclude={"organizer_id", "windows"}),
    )


@router.get("/", response_model=list[EventOut])
def list_events(
    team_id: Optional[str] = Query(None),
    start_after: Optional[datetime] = Query(None),
    start_before: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
):
    """List events with optional filters, soonest first."""
    query = db.query(Event)
    if team_id:
        query = query.filter(Event.team_id == team_id)
    if start_after:
        query = query.filter(Event.start_time_utc >= as_utc(start_after))
    if start_before:
        query = query.filter(Event.start_time_utc <= as_utc(start_before))
    return query.order_by(Event.start_time_utc).all()


@router.get("/{event_id}", response_model=EventOut)
def get_event(event_id: str, data: EventDataAccess = Depends(get_data_access)):
    """Fetch a single event with its window rules."""
    return data.event(event_id)


@router.get("/{event_id}/participants", response_model=list[UserOut])
def list_participants(
    event_id: str,
    actor_user_id: str = Query(..., description="ID of the admin or coach asking"),
    data: EventDataAccess = Depends(get_data_access),
):
    """Roster expected at the event (admins and coaches only)."""
    if not data.user(actor_user_id).is_privileged:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins and coaches can view participant lists",
        )
    return data.participants(event_id)


@router.post("/{event_id}/checkin-token", response_model=CheckinTokenOut, status_code=status.HTTP_201_CREATED)
def create_checkin_token(
    event_id: str,
    actor_user_id: str = Query(..., description="ID of the admin or coach showing the QR code"),
    data: EventDataAccess = Depends(get_data_access),
):
    """Mint a short-lived QR check-in token. Earlier tokens stay valid until they expire."""
    token = checkin_service.issue_token_for_event(data, event_id, actor_user_id)
    return CheckinTokenOut(
        token=token,
        qr_text=checkin_service.serialize_token(token),
        expires_at=datetime.fromtimestamp(token.exp / 1000, tz=timezone.utc),
    )


@router.get("/{event_id}/detail", response_model=EventDetail)
def get_event_detail(
    event_id: str,
    user_id: str = Query(..., description="ID of the viewing user"),
    now: Optional[datetime] = Query(None, description="Evaluate windows at this instant instead of the clock"),
    data: EventDataAccess = Depends(get_data_access),
):
    """What the viewer can do with this event right now: RSVP, check in, who is coming."""
    return event_detail_service.build_event_detail(data, event_id, user_id, now)
