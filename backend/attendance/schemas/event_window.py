"""Pydantic schemas for EventWindow rules."""
from typing import Optional
from pydantic import BaseModel, Field

from attendance.models.event_window import WindowType, OpenRole, WindowUnit, WindowDirection


class EventWindowRule(BaseModel):
    """A window rule without its owning event — used inline on event creation."""

    window_type: WindowType
    open_role: OpenRole
    amount: int = Field(ge=0)
    unit: WindowUnit
    direction: WindowDirection


class EventWindowCreate(EventWindowRule):
    event_id: str


class EventWindowUpdate(BaseModel):
    amount: Optional[int] = Field(default=None, ge=0)
    unit: Optional[WindowUnit] = None
    direction: Optional[WindowDirection] = None


class EventWindowOut(BaseModel):
    window_id: str
    event_id: str
    window_type: WindowType
    open_role: OpenRole
    amount: int
    unit: WindowUnit
    direction: WindowDirection

    model_config = {"from_attributes": True}
