"""RSVP response API routes."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status

from attendance.schemas.rsvp import RsvpSet, RsvpToggle, RsvpOut
from attendance.services import rsvp_service
from attendance.services.event_data import EventDataAccess, get_data_access

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/event/{event_id}", response_model=list[RsvpOut])
def list_event_rsvps(event_id: str, data: EventDataAccess = Depends(get_data_access)):
    """All responses recorded for an event."""
    data.event(event_id)
    return data.rsvps(event_id)


@router.get("/user/{user_id}/event/{event_id}", response_model=Optional[RsvpOut])
def get_user_rsvp(user_id: str, event_id: str, data: EventDataAccess = Depends(get_data_access)):
    """A single user's response, or null when they have not answered."""
    data.event(event_id)
    return data.rsvp_for(event_id, user_id)


@router.post("/", response_model=RsvpOut)
def set_rsvp(payload: RsvpSet, data: EventDataAccess = Depends(get_data_access)):
    """Set or overwrite a user's RSVP (last write wins)."""
    return rsvp_service.set_rsvp(data, payload.event_id, payload.user_id, payload.response)


@router.post("/toggle", response_model=RsvpOut)
def toggle_rsvp(payload: RsvpToggle, data: EventDataAccess = Depends(get_data_access)):
    """Flip a user's RSVP between attending and not_attending."""
    return rsvp_service.toggle_rsvp(data, payload.event_id, payload.user_id)


@router.delete("/{rsvp_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_rsvp(
    rsvp_id: str,
    actor_user_id: str = Query(..., description="ID of the admin or coach removing the response"),
    data: EventDataAccess = Depends(get_data_access),
):
    """Remove a response row (staff only)."""
    rsvp_service.delete_rsvp(data, rsvp_id, actor_user_id)
