"""
geo.py — Search regions and great-circle distance.
"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence

EARTH_RADIUS_M = 6_371_000


@dataclass(frozen=True)
class Neighborhood:
    name: str
    latitude: float
    longitude: float
    radius: float  # meters


def distance_meters(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Haversine distance between two coordinates, in meters."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = (math.sin(d_phi / 2) ** 2
         + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def nearest_neighborhood(latitude: float, longitude: float,
                         neighborhoods: Sequence[Neighborhood]) -> Optional[Neighborhood]:
    """
    Return the neighborhood whose center is closest to the point.

    Search circles overlap, so the same restaurant can come back from several
    regions; labelling by nearest center keeps its neighborhood stable.
    """
    if not neighborhoods:
        return None
    return min(
        neighborhoods,
        key=lambda n: distance_meters(latitude, longitude, n.latitude, n.longitude),
    )
