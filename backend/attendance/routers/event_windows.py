"""Event window rule API routes."""
import logging
from fastapi import APIRouter, Depends, Query, status

from attendance.schemas.event_window import EventWindowCreate, EventWindowOut, EventWindowRule, EventWindowUpdate
from attendance.services import event_service
from attendance.services.event_data import EventDataAccess, get_data_access

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/event/{event_id}", response_model=list[EventWindowOut])
def list_event_windows(event_id: str, data: EventDataAccess = Depends(get_data_access)):
    """Window rules configured for an event (missing slots use defaults)."""
    data.event(event_id)
    return data.windows(event_id)


@router.post("/", response_model=EventWindowOut, status_code=status.HTTP_201_CREATED)
def create_event_window(
    payload: EventWindowCreate,
    actor_user_id: str = Query(..., description="ID of the admin or coach"),
    data: EventDataAccess = Depends(get_data_access),
):
    rule = EventWindowRule(**payload.model_dump(exclude={"event_id"}))
    return event_service.add_window(data, actor_user_id, payload.event_id, rule)


@router.patch("/{window_id}", response_model=EventWindowOut)
def update_event_window(
    window_id: str,
    payload: EventWindowUpdate,
    actor_user_id: str = Query(..., description="ID of the admin or coach"),
    data: EventDataAccess = Depends(get_data_access),
):
    updates = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    return event_service.update_window(data, actor_user_id, window_id, updates)


@router.delete("/{window_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_event_window(
    window_id: str,
    actor_user_id: str = Query(..., description="ID of the admin or coach"),
    data: EventDataAccess = Depends(get_data_access),
):
    event_service.delete_window(data, actor_user_id, window_id)
