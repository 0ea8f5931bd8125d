"""Event detail view-model — what a viewer may do with an event right now.

Sequencing only: load the event and its related rows through the injected
data access, resolve windows once, then gate RSVP and check-in against ``now``.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

import pytz

from attendance.models.attendance import CheckinMethod
from attendance.models.rsvp import RsvpStatus
from attendance.models.user import User
from attendance.schemas.checkin import AttendanceOut
from attendance.schemas.event import EventOut
from attendance.schemas.event_detail import EventDetail, RsvpTally
from attendance.schemas.user import UserOut
from attendance.services import window_service
from attendance.services.event_data import EventDataAccess

logger = logging.getLogger(__name__)


def _local_start(start: datetime, viewer: User) -> str:
    """Event start in the viewer's timezone, e.g. 'Sat Mar 07, 09:30 AM EST'."""
    try:
        tz = pytz.timezone(viewer.default_timezone or "UTC")
    except pytz.UnknownTimeZoneError:
        tz = pytz.utc
    return window_service.as_utc(start).astimezone(tz).strftime("%a %b %d, %I:%M %p %Z")


def _checkin_methods(viewer: User, has_geofence: bool) -> list[CheckinMethod]:
    if viewer.is_privileged:
        return [CheckinMethod.manual]
    methods = [CheckinMethod.onsite] if has_geofence else []
    methods.append(CheckinMethod.qr)
    return methods


def _tally(data: EventDataAccess, event_id: str) -> RsvpTally:
    tally = RsvpTally()
    for rsvp in data.rsvps(event_id):
        key = RsvpStatus(rsvp.response).value
        setattr(tally, key, getattr(tally, key) + 1)
    return tally


def build_event_detail(
    data: EventDataAccess,
    event_id: str,
    viewer_id: str,
    now: Optional[datetime] = None,
) -> EventDetail:
    """Assemble the detail view for ``viewer_id`` as of ``now``."""
    now = window_service.as_utc(now or datetime.now(timezone.utc))
    event = data.event(event_id)
    viewer = data.user(viewer_id)

    windows = window_service.resolve_windows(event.start_time_utc, data.windows(event_id))

    rsvp = data.rsvp_for(event_id, viewer_id)
    viewer_rsvp = RsvpStatus(rsvp.response) if rsvp else RsvpStatus.no_response
    checked_in = data.attendance_for(event_id, viewer_id) is not None
    methods = _checkin_methods(viewer, event.has_geofence)

    rsvp_enabled = window_service.is_open(now, windows.rsvp_open, windows.rsvp_close)
    # Staff may record attendance outside the check-in window.
    checkin_enabled = (
        (viewer.is_privileged or window_service.is_open(now, windows.checkin_open, windows.checkin_close))
        and not checked_in
        and bool(methods)
    )

    participants = None
    if viewer.is_privileged:
        participants = [UserOut.model_validate(u) for u in data.participants(event_id)]

    logger.debug(
        "Detail for event %s viewer %s: rsvp_enabled=%s checkin_enabled=%s",
        event_id, viewer_id, rsvp_enabled, checkin_enabled,
    )
    return EventDetail(
        event=EventOut.model_validate(event),
        windows=windows,
        evaluated_at=now,
        start_local=_local_start(event.start_time_utc, viewer),
        viewer_rsvp=viewer_rsvp,
        viewer_checked_in=checked_in,
        rsvp_enabled=rsvp_enabled,
        checkin_enabled=checkin_enabled,
        checkin_methods=methods,
        countdown=window_service.describe_countdown(windows, event.start_time_utc, now),
        rsvp_tally=_tally(data, event_id),
        attendances=[AttendanceOut.model_validate(a) for a in data.attendances(event_id)],
        participants=participants,
    )
