"""Great-circle distance helpers for team matching."""

from math import asin, cos, degrees, radians, sin, sqrt
from typing import Tuple

EARTH_RADIUS_MILES = 3958.8


def haversine_miles(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    lat1, lng1, lat2, lng2 = map(radians, (lat1, lng1, lat2, lng2))
    dlat = lat2 - lat1
    dlng = lng2 - lng1
    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_MILES * asin(min(1.0, sqrt(a)))


def bounding_box(lat: float, lng: float, radius_miles: float) -> Tuple[float, float, float, float]:
    """
    (min_lat, max_lat, min_lng, max_lng) enclosing the radius.

    Used as an index-friendly prefilter before the exact haversine check, so
    it is deliberately a little larger than the circle. Near the poles the
    longitude span is left unbounded.
    """
    dlat = degrees(radius_miles / EARTH_RADIUS_MILES) * 1.01
    cos_lat = cos(radians(lat))
    if cos_lat < 1e-6:
        return lat - dlat, lat + dlat, -180.0, 180.0
    dlng = min(180.0, degrees(radius_miles / (EARTH_RADIUS_MILES * cos_lat)) * 1.01)
    return lat - dlat, lat + dlat, lng - dlng, lng + dlng
