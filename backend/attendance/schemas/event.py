"""Pydantic schemas for Events."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from attendance.models.event import EventType
from attendance.schemas.event_window import EventWindowRule, EventWindowOut


class EventCreate(BaseModel):
    title: str
    start_time_utc: datetime
    end_time_utc: datetime
    location_name: str
    organizer_id: str
    team_id: Optional[str] = None
    description: Optional[str] = None
    event_type: EventType = EventType.practice
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    checkin_radius_m: Optional[float] = Field(default=None, gt=0)
    opponent_team: Optional[str] = None
    windows: list[EventWindowRule] = []


class EventOut(BaseModel):
    event_id: str
    team_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    event_type: EventType
    start_time_utc: datetime
    end_time_utc: datetime
    location_name: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    checkin_radius_m: Optional[float] = None
    opponent_team: Optional[str] = None
    organizer_id: str
    created_at: datetime
    windows: list[EventWindowOut] = []

    model_config = {"from_attributes": True}
