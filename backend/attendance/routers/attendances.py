"""Attendance / check-in API routes."""
import logging
from fastapi import APIRouter, Depends, HTTPException, Query, status

from attendance.models.attendance import CheckinMethod
from attendance.schemas.checkin import AttendanceCreate, AttendanceOut, Coordinates
from attendance.services import checkin_service
from attendance.services.event_data import EventDataAccess, get_data_access

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/{event_id}", response_model=list[AttendanceOut])
def list_attendances(event_id: str, data: EventDataAccess = Depends(get_data_access)):
    """Everyone checked in to an event, earliest first."""
    data.event(event_id)
    return data.attendances(event_id)


@router.post("/", response_model=AttendanceOut, status_code=status.HTTP_201_CREATED)
def create_attendance(
    payload: AttendanceCreate,
    actor_user_id: str = Query(..., description="ID of the user performing the check-in"),
    data: EventDataAccess = Depends(get_data_access),
):
    """Check a user in. Players and parents need a geofence match or a valid QR token."""
    if (payload.latitude is None) != (payload.longitude is None):
        raise HTTPException(status_code=400, detail="latitude and longitude must be sent together")
    if payload.type == CheckinMethod.qr and not payload.token:
        raise HTTPException(status_code=400, detail="QR check-in requires the scanned token")

    coords = None
    if payload.latitude is not None:
        coords = Coordinates(latitude=payload.latitude, longitude=payload.longitude)

    return checkin_service.check_in(
        data,
        event_id=payload.event_id,
        user_id=payload.user_id,
        actor_user_id=actor_user_id,
        coords=coords,
        token_text=payload.token if payload.type == CheckinMethod.qr else None,
    )
