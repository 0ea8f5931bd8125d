"""Pydantic schemas for RSVP responses."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from attendance.models.rsvp import RsvpStatus


class RsvpSet(BaseModel):
    event_id: str
    user_id: str
    response: RsvpStatus


class RsvpToggle(BaseModel):
    event_id: str
    user_id: str


class RsvpOut(BaseModel):
    rsvp_id: str
    event_id: str
    user_id: str
    response: RsvpStatus
    responded_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
