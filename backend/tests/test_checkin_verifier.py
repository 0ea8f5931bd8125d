"""Tests for admission decisions and QR tokens (no database needed)."""
import json
from datetime import datetime, timezone, timedelta

import pytest

from attendance.models.attendance import CheckinMethod
from attendance.models.event import Event
from attendance.models.user import User, UserRole
from attendance.schemas.checkin import Coordinates
from attendance.services.checkin_service import (
    EPOCH, TokenError, decide_admission, issue_token, parse_token, serialize_token, verify_token,
)
from tests.conftest import VENUE_LAT, VENUE_LNG, offset_north

NOW = datetime(2026, 3, 7, 14, 0, tzinfo=timezone.utc)


def _user(role: UserRole) -> User:
    return User(user_id=f"{role.value}-1", display_name=role.value.title(), role=role)


def _event(geofence: bool = True, radius: float = None) -> Event:
    return Event(
        event_id="evt-1",
        title="Practice",
        start_time_utc=NOW + timedelta(minutes=10),
        end_time_utc=NOW + timedelta(hours=2),
        location_name="Riverside Field",
        latitude=VENUE_LAT if geofence else None,
        longitude=VENUE_LNG if geofence else None,
        checkin_radius_m=radius,
    )


def _north(meters: float) -> Coordinates:
    lat, lng = offset_north(VENUE_LAT, VENUE_LNG, meters)
    return Coordinates(latitude=lat, longitude=lng)


def _at_ms(ms: int) -> datetime:
    return EPOCH + timedelta(milliseconds=ms)


class TestPrivilegedAdmission:
    @pytest.mark.parametrize("role", [UserRole.admin, UserRole.coach])
    def test_no_location_no_token(self, role):
        decision = decide_admission(_user(role), _event(geofence=False), now=NOW)
        assert decision.admitted
        assert decision.method == CheckinMethod.manual

    def test_far_away_still_admitted(self):
        decision = decide_admission(_user(UserRole.coach), _event(), coords=_north(5000), now=NOW)
        assert decision.admitted


class TestGeofenceAdmission:
    def test_inside_radius(self):
        decision = decide_admission(_user(UserRole.player), _event(), coords=_north(120), now=NOW)
        assert decision.admitted
        assert decision.method == CheckinMethod.onsite
        assert decision.coordinates is not None

    def test_250m_outside_200m_radius(self):
        decision = decide_admission(_user(UserRole.player), _event(radius=200), coords=_north(250), now=NOW)
        assert not decision.admitted
        assert decision.reason == "out_of_range"
        assert decision.distance_m == pytest.approx(250, abs=0.5)
        assert decision.shortfall_m == pytest.approx(50, abs=0.5)
        assert decision.suggest_qr

    def test_event_radius_overrides_default(self):
        decision = decide_admission(_user(UserRole.parent), _event(radius=500), coords=_north(250), now=NOW)
        assert decision.admitted

    def test_location_unavailable_suggests_qr(self):
        decision = decide_admission(_user(UserRole.player), _event(), now=NOW)
        assert not decision.admitted
        assert decision.reason == "location_unavailable"
        assert decision.suggest_qr

    def test_event_without_coordinates(self):
        decision = decide_admission(_user(UserRole.player), _event(geofence=False), coords=_north(0), now=NOW)
        assert not decision.admitted
        assert decision.reason == "geofence_unavailable"


class TestTokens:
    def test_issue_expires_in_five_minutes(self):
        token = issue_token("evt-1", NOW)
        assert _at_ms(token.exp) == NOW + timedelta(minutes=5)
        assert token.event == "evt-1"
        assert token.nonce

    def test_nonces_are_fresh(self):
        assert issue_token("evt-1", NOW).nonce != issue_token("evt-1", NOW).nonce

    def test_one_ms_before_expiry_accepted(self):
        token = issue_token("evt-1", NOW)
        verify_token(token, "evt-1", _at_ms(token.exp - 1))

    def test_one_ms_after_expiry_rejected(self):
        token = issue_token("evt-1", NOW)
        with pytest.raises(TokenError) as exc:
            verify_token(token, "evt-1", _at_ms(token.exp + 1))
        assert exc.value.reason == "token_expired"

    def test_other_event_rejected(self):
        token = issue_token("evt-2", NOW)
        with pytest.raises(TokenError) as exc:
            verify_token(token, "evt-1", NOW)
        assert exc.value.reason == "token_event_mismatch"

    def test_tampered_expiry_rejected(self):
        token = issue_token("evt-1", NOW)
        forged = token.model_copy(update={"exp": token.exp + 3_600_000})
        with pytest.raises(TokenError) as exc:
            verify_token(forged, "evt-1", NOW)
        assert exc.value.reason == "token_invalid"

    def test_parse_json_payload(self):
        token = issue_token("evt-1", NOW)
        text = serialize_token(token)
        assert set(json.loads(text)) == {"event", "nonce", "exp", "sig"}
        assert parse_token(text) == token

    def test_parse_url_payload(self):
        token = issue_token("evt-1", NOW)
        url = f"https://example.org/checkin?event=evt-1&nonce={token.nonce}&exp={token.exp}&sig={token.sig}"
        assert parse_token(url) == token

    @pytest.mark.parametrize("text", ["", "not a token", "{broken", '{"event": "evt-1"}', "https://x.org/?a=1"])
    def test_malformed(self, text):
        with pytest.raises(TokenError):
            parse_token(text)


class TestTokenAdmission:
    def test_valid_token_admits_without_location(self):
        text = serialize_token(issue_token("evt-1", NOW))
        decision = decide_admission(_user(UserRole.player), _event(geofence=False), token_text=text, now=NOW)
        assert decision.admitted
        assert decision.method == CheckinMethod.qr

    def test_expired_token_rejected(self):
        text = serialize_token(issue_token("evt-1", NOW))
        later = NOW + timedelta(minutes=5, milliseconds=1)
        decision = decide_admission(_user(UserRole.player), _event(), token_text=text, now=later)
        assert not decision.admitted
        assert decision.reason == "token_expired"

    def test_stale_token_at_venue_falls_back_to_geofence(self):
        text = serialize_token(issue_token("evt-1", NOW))
        later = NOW + timedelta(minutes=10)
        decision = decide_admission(_user(UserRole.player), _event(), coords=_north(0), token_text=text, now=later)
        assert decision.admitted
        assert decision.method == CheckinMethod.onsite

    def test_garbage_token_away_from_venue_reports_token_reason(self):
        decision = decide_admission(
            _user(UserRole.player), _event(), coords=_north(250), token_text="stale-garbage", now=NOW,
        )
        assert not decision.admitted
        assert decision.reason == "token_invalid"
        assert decision.distance_m == pytest.approx(250, abs=0.5)

    def test_bad_token_without_geofence_reports_token_reason(self):
        decision = decide_admission(
            _user(UserRole.player), _event(geofence=False), coords=_north(0), token_text="stale-garbage", now=NOW,
        )
        assert not decision.admitted
        assert decision.reason == "token_invalid"


class TestUnsignedPayload:
    def test_parses_with_empty_signature(self):
        exp = (NOW + timedelta(minutes=5) - EPOCH) // timedelta(milliseconds=1)
        token = parse_token(json.dumps({"event": "evt-1", "nonce": "abc", "exp": exp}))
        assert token.sig == ""

    def test_rejected_as_invalid(self):
        exp = (NOW + timedelta(minutes=5) - EPOCH) // timedelta(milliseconds=1)
        text = json.dumps({"event": "evt-1", "nonce": "abc", "exp": exp})
        with pytest.raises(TokenError) as exc:
            verify_token(parse_token(text), "evt-1", NOW)
        assert exc.value.reason == "token_invalid"

        decision = decide_admission(_user(UserRole.player), _event(geofence=False), token_text=text, now=NOW)
        assert not decision.admitted
        assert decision.reason == "token_invalid"
