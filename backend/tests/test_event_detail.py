"""Tests for the event detail view: gating, countdowns, tallies and participants."""
from datetime import datetime, timezone, timedelta

from tests.conftest import create_test_user, create_test_team, create_test_event, VENUE_LAT, VENUE_LNG

START = datetime.now(timezone.utc).replace(microsecond=0) + timedelta(days=5)


def _detail(client, event_id, user_id, now=None):
    params = {"user_id": user_id}
    if now is not None:
        params["now"] = now.isoformat()
    resp = client.get(f"/api/events/{event_id}/detail", params=params)
    assert resp.status_code == 200, resp.text
    return resp.json()


def _setup(client, start=START, **kwargs):
    coach = create_test_user(client, name="Coach", role="coach")
    player = create_test_user(client, name="Player")
    event = create_test_event(client, coach["user_id"], start=start, **kwargs)
    return coach, player, event


class TestGating:
    def test_checkin_closed_forty_minutes_before(self, client):
        _, player, event = _setup(client)
        detail = _detail(client, event["event_id"], player["user_id"], now=START - timedelta(minutes=40))
        assert detail["rsvp_enabled"] is True
        assert detail["checkin_enabled"] is False
        assert detail["countdown"] == "Check-in opens in 10 minutes"

    def test_checkin_open_twenty_minutes_before(self, client):
        _, player, event = _setup(client)
        detail = _detail(client, event["event_id"], player["user_id"], now=START - timedelta(minutes=20))
        assert detail["checkin_enabled"] is True
        assert detail["countdown"] is None

    def test_rsvp_not_yet_open(self, client):
        _, player, event = _setup(client)
        detail = _detail(client, event["event_id"], player["user_id"], now=START - timedelta(days=4))
        assert detail["rsvp_enabled"] is False
        assert detail["countdown"] == "RSVP opens in 24 hours"

    def test_rsvp_close_rule_counts_down(self, client):
        _, player, event = _setup(client, windows=[
            {"window_type": "rsvp", "open_role": "close", "amount": 1, "unit": "days", "direction": "before"},
        ])
        detail = _detail(client, event["event_id"], player["user_id"], now=START - timedelta(days=2))
        assert detail["rsvp_enabled"] is True
        assert detail["countdown"] == "RSVP closes in 24 hours"

    def test_staff_checkin_enabled_outside_window(self, client):
        coach, player, event = _setup(client)
        at = START - timedelta(minutes=40)
        assert _detail(client, event["event_id"], coach["user_id"], now=at)["checkin_enabled"] is True
        assert _detail(client, event["event_id"], player["user_id"], now=at)["checkin_enabled"] is False

    def test_checked_in_viewer_cannot_check_in_again(self, client):
        coach, player, _ = _setup(client)
        event = create_test_event(client, coach["user_id"])
        client.post("/api/attendances/", params={"actor_user_id": player["user_id"]}, json={
            "event_id": event["event_id"], "user_id": player["user_id"],
            "latitude": VENUE_LAT, "longitude": VENUE_LNG,
        })
        detail = _detail(client, event["event_id"], player["user_id"])
        assert detail["viewer_checked_in"] is True
        assert detail["checkin_enabled"] is False
        assert len(detail["attendances"]) == 1


class TestViewerState:
    def test_defaults(self, client):
        _, player, event = _setup(client)
        detail = _detail(client, event["event_id"], player["user_id"])
        assert detail["viewer_rsvp"] == "no_response"
        assert detail["viewer_checked_in"] is False
        assert detail["checkin_methods"] == ["onsite", "qr"]
        assert detail["participants"] is None
        assert detail["start_local"].endswith(("EST", "EDT"))

    def test_no_geofence_offers_qr_only(self, client):
        _, player, event = _setup(client, geofence=False)
        detail = _detail(client, event["event_id"], player["user_id"])
        assert detail["checkin_methods"] == ["qr"]

    def test_staff_view(self, client):
        coach, player, _ = _setup(client)
        team = create_test_team(client, coach["user_id"])
        client.post(f"/api/teams/{team['team_id']}/members", json={"user_id": player["user_id"]})
        event = create_test_event(client, coach["user_id"], start=START, team_id=team["team_id"])
        detail = _detail(client, event["event_id"], coach["user_id"])
        assert detail["checkin_methods"] == ["manual"]
        assert {p["user_id"] for p in detail["participants"]} == {coach["user_id"], player["user_id"]}

    def test_tally_and_viewer_rsvp(self, client):
        coach, player, _ = _setup(client)
        teammate = create_test_user(client, name="Teammate")
        event = create_test_event(client, coach["user_id"])
        for user, response in ((player, "attending"), (teammate, "not_attending"), (coach, "attending")):
            client.post("/api/rsvp/", json={
                "event_id": event["event_id"], "user_id": user["user_id"], "response": response,
            })
        detail = _detail(client, event["event_id"], player["user_id"])
        assert detail["viewer_rsvp"] == "attending"
        assert detail["rsvp_tally"] == {"attending": 2, "not_attending": 1, "no_response": 0}

    def test_unknown_viewer(self, client):
        _, _, event = _setup(client)
        resp = client.get(f"/api/events/{event['event_id']}/detail", params={"user_id": "missing"})
        assert resp.status_code == 404
