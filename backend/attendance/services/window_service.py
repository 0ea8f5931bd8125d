"""Time window resolution — turns offset rules into absolute RSVP / check-in boundaries.

Each event may carry up to four rules, one per (window_type, open_role) slot.
A rule is an offset from the event start: ``amount`` ``unit`` ``before|after``.
Missing slots fall back to fixed defaults. "Never closes" is expressed as
start + 100 years so callers can always compare ``open <= now <= close``.
"""
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from attendance.models.event_window import EventWindow, WindowType, OpenRole, WindowUnit, WindowDirection
from attendance.schemas.event_detail import ResolvedWindows

UNIT_DELTAS = {
    WindowUnit.minutes: timedelta(minutes=1),
    WindowUnit.hours: timedelta(hours=1),
    WindowUnit.days: timedelta(days=1),
}

UNBOUNDED = timedelta(days=365 * 100)

DEFAULT_OFFSETS = {
    (WindowType.rsvp, OpenRole.open): -timedelta(days=3),
    (WindowType.rsvp, OpenRole.close): UNBOUNDED,
    (WindowType.checkin, OpenRole.open): -timedelta(minutes=30),
    (WindowType.checkin, OpenRole.close): UNBOUNDED,
}


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on round-trip)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def rule_offset(rule: EventWindow) -> timedelta:
    offset = UNIT_DELTAS[WindowUnit(rule.unit)] * rule.amount
    return -offset if WindowDirection(rule.direction) == WindowDirection.before else offset


def _find_rule(rules: list, window_type: WindowType, open_role: OpenRole) -> Optional[EventWindow]:
    for rule in rules:
        if WindowType(rule.window_type) == window_type and OpenRole(rule.open_role) == open_role:
            return rule
    return None


def resolve_windows(event_start: datetime, rules: Iterable[EventWindow]) -> ResolvedWindows:
    """Compute the four window boundaries for an event. Never reads the clock."""
    start = as_utc(event_start)
    rules = list(rules)

    resolved = {}
    for slot, default in DEFAULT_OFFSETS.items():
        rule = _find_rule(rules, *slot)
        resolved[slot] = start + (rule_offset(rule) if rule is not None else default)

    return ResolvedWindows(
        rsvp_open=resolved[(WindowType.rsvp, OpenRole.open)],
        rsvp_close=resolved[(WindowType.rsvp, OpenRole.close)],
        checkin_open=resolved[(WindowType.checkin, OpenRole.open)],
        checkin_close=resolved[(WindowType.checkin, OpenRole.close)],
    )


def is_open(now: datetime, opens: datetime, closes: datetime) -> bool:
    return as_utc(opens) <= as_utc(now) <= as_utc(closes)


def is_unbounded(boundary: datetime, event_start: datetime) -> bool:
    return as_utc(boundary) - as_utc(event_start) >= UNBOUNDED


def _humanize(delta: timedelta) -> str:
    minutes = max(1, int(delta.total_seconds() // 60))
    if minutes < 60:
        return f"{minutes} minute{'s' if minutes != 1 else ''}"
    hours = minutes // 60
    if hours < 48:
        return f"{hours} hour{'s' if hours != 1 else ''}"
    days = hours // 24
    return f"{days} days"


def describe_countdown(windows: ResolvedWindows, event_start: datetime, now: datetime) -> Optional[str]:
    """Next upcoming boundary as a sentence, or None once nothing is pending."""
    now = as_utc(now)
    if now < as_utc(windows.rsvp_open):
        return f"RSVP opens in {_humanize(as_utc(windows.rsvp_open) - now)}"
    if now < as_utc(windows.rsvp_close) and not is_unbounded(windows.rsvp_close, event_start):
        return f"RSVP closes in {_humanize(as_utc(windows.rsvp_close) - now)}"
    if now < as_utc(windows.checkin_open):
        return f"Check-in opens in {_humanize(as_utc(windows.checkin_open) - now)}"
    if now < as_utc(windows.checkin_close) and not is_unbounded(windows.checkin_close, event_start):
        return f"Check-in closes in {_humanize(as_utc(windows.checkin_close) - now)}"
    return None
