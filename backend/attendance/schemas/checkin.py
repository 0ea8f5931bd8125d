"""Pydantic schemas for check-in: coordinates, QR tokens, admission decisions and attendance."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from attendance.models.attendance import CheckinMethod


class Coordinates(BaseModel):
    latitude: float
    longitude: float


class CheckinToken(BaseModel):
    """QR payload. Short keys are the wire format rendered into the QR image."""

    event: str
    nonce: str
    exp: int  # epoch milliseconds
    sig: str


class CheckinTokenOut(BaseModel):
    token: CheckinToken
    qr_text: str
    expires_at: datetime


class AdmissionDecision(BaseModel):
    admitted: bool
    method: Optional[CheckinMethod] = None
    reason: Optional[str] = None
    message: str
    distance_m: Optional[float] = None
    radius_m: Optional[float] = None
    shortfall_m: Optional[float] = None
    suggest_qr: bool = False
    coordinates: Optional[Coordinates] = None


class AttendanceCreate(BaseModel):
    event_id: str
    user_id: str
    type: CheckinMethod = CheckinMethod.onsite
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    token: Optional[str] = None  # raw scanned QR text


class AttendanceOut(BaseModel):
    attendance_id: str
    event_id: str
    user_id: str
    type: CheckinMethod
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    checked_in_at: Optional[datetime] = None
    recorded_by: Optional[str] = None

    model_config = {"from_attributes": True}
