"""Pydantic schemas for resolved windows and the event detail view."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from attendance.models.attendance import CheckinMethod
from attendance.models.rsvp import RsvpStatus
from attendance.schemas.event import EventOut
from attendance.schemas.checkin import AttendanceOut
from attendance.schemas.user import UserOut


class ResolvedWindows(BaseModel):
    rsvp_open: datetime
    rsvp_close: datetime
    checkin_open: datetime
    checkin_close: datetime


class RsvpTally(BaseModel):
    attending: int = 0
    not_attending: int = 0
    no_response: int = 0


class EventDetail(BaseModel):
    event: EventOut
    windows: ResolvedWindows
    evaluated_at: datetime
    start_local: str
    viewer_rsvp: RsvpStatus
    viewer_checked_in: bool
    rsvp_enabled: bool
    checkin_enabled: bool
    checkin_methods: list[CheckinMethod]
    countdown: Optional[str] = None
    rsvp_tally: RsvpTally
    attendances: list[AttendanceOut] = []
    participants: Optional[list[UserOut]] = None  # admin/coach viewers only
