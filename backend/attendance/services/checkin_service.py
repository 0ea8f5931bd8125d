"""Check-in verification and attendance recording.

Two independent admission paths gate a non-staff check-in:
- geofence: the device location lies within the event's radius
- QR token: a signed, short-lived token shown by staff at the venue

Admins and coaches mark attendance on behalf of others and are admitted
unconditionally. A rejection never writes anything; the caller gets the
decision back (distance, shortfall, whether to offer the QR path).
"""
import hashlib
import hmac
import json
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import urlparse, parse_qs

from fastapi import HTTPException, status
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from attendance.config import settings
from attendance.models.attendance import Attendance, CheckinMethod
from attendance.models.event import Event
from attendance.models.user import User
from attendance.schemas.checkin import AdmissionDecision, CheckinToken, Coordinates
from attendance.services import geo, window_service
from attendance.services.event_data import EventDataAccess

logger = logging.getLogger(__name__)


class TokenError(ValueError):
    """A scanned token is unusable. ``reason`` is the machine-readable code."""

    def __init__(self, reason: str, message: str):
        super().__init__(message)
        self.reason = reason
        self.message = message


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def epoch_ms(moment: datetime) -> int:
    """Whole milliseconds since the Unix epoch, without float rounding."""
    return (window_service.as_utc(moment) - EPOCH) // timedelta(milliseconds=1)


def _sign(event_id: str, nonce: str, exp: int) -> str:
    message = f"{event_id}.{nonce}.{exp}".encode()
    return hmac.new(settings.CHECKIN_TOKEN_SECRET.encode(), message, hashlib.sha256).hexdigest()


# ── Tokens ─────────────────────────────────────────────────────────


def issue_token(event_id: str, now: Optional[datetime] = None) -> CheckinToken:
    """Mint a fresh QR token for ``event_id`` valid for CHECKIN_TOKEN_TTL_SECONDS."""
    now = now or datetime.now(timezone.utc)
    exp = epoch_ms(now) + settings.CHECKIN_TOKEN_TTL_SECONDS * 1000
    nonce = secrets.token_urlsafe(16)
    return CheckinToken(event=event_id, nonce=nonce, exp=exp, sig=_sign(event_id, nonce, exp))


def serialize_token(token: CheckinToken) -> str:
    """Text encoded into the QR image."""
    return json.dumps(token.model_dump(), separators=(",", ":"))


def parse_token(text: str) -> CheckinToken:
    """Decode scanned QR text: either the JSON payload or a URL carrying it as query params.

    An unsigned ``{event, nonce, exp}`` payload parses with an empty ``sig`` and
    is then rejected by ``verify_token`` as ``token_invalid``: only tokens minted
    by ``issue_token`` are accepted.
    """
    text = (text or "").strip()
    payload = None
    if text.startswith("{"):
        try:
            payload = json.loads(text)
        except json.JSONDecodeError:
            payload = None
    else:
        parsed = urlparse(text)
        if parsed.scheme and parsed.query:
            query = parse_qs(parsed.query)
            payload = {key: values[0] for key, values in query.items()}

    if not isinstance(payload, dict) or not all(payload.get(k) for k in ("event", "nonce", "exp")):
        raise TokenError("token_invalid", "This QR code is not valid for event check-in.")
    try:
        return CheckinToken(
            event=str(payload["event"]),
            nonce=str(payload["nonce"]),
            exp=int(payload["exp"]),
            sig=str(payload.get("sig", "")),
        )
    except (TypeError, ValueError, ValidationError):
        raise TokenError("token_invalid", "This QR code is not valid for event check-in.")


def verify_token(token: CheckinToken, event_id: str, now: Optional[datetime] = None) -> None:
    """Raise TokenError unless the token is authentic, unexpired and issued for ``event_id``."""
    now_ms = epoch_ms(now or datetime.now(timezone.utc))
    if not hmac.compare_digest(token.sig, _sign(token.event, token.nonce, token.exp)):
        raise TokenError("token_invalid", "This QR code was not issued by this team.")
    if token.event != event_id:
        raise TokenError("token_event_mismatch", "This QR code belongs to a different event.")
    if token.exp <= now_ms:
        raise TokenError("token_expired", "This QR code has expired. Ask staff to generate a new one.")


# ── Admission ──────────────────────────────────────────────────────


def decide_admission(
    actor: User,
    event: Event,
    coords: Optional[Coordinates] = None,
    token_text: Optional[str] = None,
    now: Optional[datetime] = None,
) -> AdmissionDecision:
    """Decide whether ``actor`` may check in to ``event``. Pure: no writes, no clock unless ``now`` is None."""
    if actor.is_privileged:
        return AdmissionDecision(
            admitted=True,
            method=CheckinMethod.manual,
            message="Attendance recorded by staff.",
            coordinates=coords,
        )

    token_error = None
    if token_text:
        try:
            verify_token(parse_token(token_text), event.event_id, now)
        except TokenError as exc:
            token_error = exc
        else:
            return AdmissionDecision(admitted=True, method=CheckinMethod.qr, message="Checked in with QR code.")
        # An unusable token still admits a user the geofence places at the venue.
        if coords is None or not event.has_geofence:
            return AdmissionDecision(admitted=False, reason=token_error.reason, message=token_error.message)

    if not event.has_geofence:
        return AdmissionDecision(
            admitted=False,
            reason="geofence_unavailable",
            message="This event has no location set. Scan the QR code shown by your coach.",
            suggest_qr=True,
        )

    if coords is None:
        return AdmissionDecision(
            admitted=False,
            reason="location_unavailable",
            message="Location unavailable. Allow location access or scan the QR code instead.",
            suggest_qr=True,
        )

    radius = event.checkin_radius_m or settings.CHECKIN_DEFAULT_RADIUS_M
    target = Coordinates(latitude=event.latitude, longitude=event.longitude)
    distance = geo.distance_meters(coords, target)
    if geo.within_range(coords, target, radius):
        return AdmissionDecision(
            admitted=True,
            method=CheckinMethod.onsite,
            message="Checked in at the venue.",
            distance_m=distance,
            radius_m=radius,
            coordinates=coords,
        )

    if token_error is not None:
        return AdmissionDecision(
            admitted=False,
            reason=token_error.reason,
            message=token_error.message,
            distance_m=distance,
            radius_m=radius,
            shortfall_m=distance - radius,
        )

    return AdmissionDecision(
        admitted=False,
        reason="out_of_range",
        message=f"You are {round(distance)}m away. You must be within {round(radius)}m of the venue to check in.",
        distance_m=distance,
        radius_m=radius,
        shortfall_m=distance - radius,
        suggest_qr=True,
    )


def issue_token_for_event(
    data: EventDataAccess,
    event_id: str,
    actor_user_id: str,
    now: Optional[datetime] = None,
) -> CheckinToken:
    """Staff-only: mint a QR token for an existing event."""
    event = data.event(event_id)
    actor = data.user(actor_user_id)
    if not actor.is_privileged:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins and coaches can generate check-in QR codes",
        )
    token = issue_token(event.event_id, now)
    logger.info("Issued check-in token for event %s by %s (exp %d)", event_id, actor_user_id, token.exp)
    return token


def check_in(
    data: EventDataAccess,
    event_id: str,
    user_id: str,
    actor_user_id: str,
    coords: Optional[Coordinates] = None,
    token_text: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Attendance:
    """Run admission for ``user_id`` and persist an Attendance row when admitted."""
    now = now or datetime.now(timezone.utc)
    event = data.event(event_id)
    actor = data.user(actor_user_id)
    data.user(user_id)

    if not actor.is_privileged and actor.user_id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins and coaches can check in other users",
        )

    if data.attendance_for(event_id, user_id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"reason": "already_checked_in", "message": "Already checked in to this event"},
        )

    if not actor.is_privileged:
        windows = window_service.resolve_windows(event.start_time_utc, data.windows(event_id))
        if not window_service.is_open(now, windows.checkin_open, windows.checkin_close):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={
                    "reason": "window_closed",
                    "message": "Check-in is not open for this event",
                    "checkin_open": windows.checkin_open.isoformat(),
                    "checkin_close": windows.checkin_close.isoformat(),
                },
            )

    decision = decide_admission(actor, event, coords, token_text, now)
    if not decision.admitted:
        logger.warning(
            "Check-in rejected for user %s at event %s: %s", user_id, event_id, decision.reason
        )
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=decision.model_dump(mode="json"))

    attached = decision.coordinates
    attendance = Attendance(
        event_id=event_id,
        user_id=user_id,
        type=decision.method,
        latitude=attached.latitude if attached else None,
        longitude=attached.longitude if attached else None,
        checked_in_at=now,
        recorded_by=actor_user_id,
    )
    data.db.add(attendance)
    try:
        data.db.commit()
    except IntegrityError:
        data.db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"reason": "already_checked_in", "message": "Already checked in to this event"},
        )
    data.db.refresh(attendance)
    data.invalidate(event_id)
    logger.info("User %s checked in to event %s via %s", user_id, event_id, decision.method.value)
    return attendance
