"""Great-circle distance and geofence helpers."""
import math
from typing import Optional

from attendance.config import settings
from attendance.schemas.checkin import Coordinates

EARTH_RADIUS_M = 6_371_000.0


def distance_meters(a: Coordinates, b: Coordinates) -> float:
    """Haversine distance between two points in decimal degrees, in meters.

    Inputs are not validated; out-of-range coordinates give meaningless results.
    """
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    d_lat = lat2 - lat1
    d_lng = math.radians(b.longitude - a.longitude)

    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))


def within_range(user: Coordinates, target: Coordinates, radius_m: Optional[float] = None) -> bool:
    """True iff ``user`` lies within ``radius_m`` of ``target`` (boundary inclusive)."""
    if radius_m is None:
        radius_m = settings.CHECKIN_DEFAULT_RADIUS_M
    return distance_meters(user, target) <= radius_m
