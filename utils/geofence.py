# app/utils/geofence.py

from math import radians, sin, cos, sqrt, atan2, isfinite
from typing import Iterable, List, Optional

from models.office import Office

EARTH_RADIUS_KM = 6371.0


def haversine_dist(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points in kilometres."""
    φ1, φ2 = radians(lat1), radians(lat2)
    Δφ = radians(lat2 - lat1)
    Δλ = radians(lng2 - lng1)

    a = sin(Δφ/2)**2 + cos(φ1) * cos(φ2) * sin(Δλ/2)**2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))
    return EARTH_RADIUS_KM * c

def is_within_radius(
    lat: float,
    lng: float,
    center_lat: float,
    center_lng: float,
    radius_km: float
) -> bool:

    return haversine_dist(lat, lng, center_lat, center_lng) <= radius_km


class GeoMatcher:
    """
    Maps a shared location to the first office whose geofence contains it.

    Offices are sorted once by (position, id) so overlapping geofences always
    resolve the same way. Instances are read-only after construction.
    """

    def __init__(self, offices: Iterable[Office]):
        self._offices: List[Office] = sorted(offices, key=lambda o: (o.position, o.id))

    @property
    def offices(self) -> List[Office]:
        return list(self._offices)

    def get(self, office_id: str) -> Optional[Office]:
        for office in self._offices:
            if office.id == office_id:
                return office
        return None

    def locate(self, lat: float, lng: float) -> Optional[str]:
        if lat is None or lng is None or not (isfinite(lat) and isfinite(lng)):
            return None
        for office in self._offices:
            if is_within_radius(lat, lng, office.latitude, office.longitude, office.radius_km):
                return office.id
        return None
