#Purpose: Great-circle geometry for the pooling engine.
#Everything here is a pure function on (lat, lon) pairs in degrees:
#point-to-point haversine distance
#cumulative length of an ordered stop path
#coordinate validation used before any state is touched
#No routing engine, no road network. Straight-line km only.

import math
from typing import Any, Sequence, Tuple

#internal coordinate type :(lat,lon)
LatLon = Tuple[float, float]

EARTH_RADIUS_KM = 6371.0


class InvalidCoordinatesError(ValueError):
    """Raised when a point is not a usable (lat, lon) pair."""
    pass


def validate_point(point: Any) -> LatLon:
    """
    Normalises a point to a (lat, lon) tuple of floats.

    Raises InvalidCoordinatesError for anything that is not a pair of finite
    numbers with latitude in [-90, 90] and longitude in [-180, 180].
    """
    try:
        lat, lon = point
        lat = float(lat)
        lon = float(lon)
    except (TypeError, ValueError):
        raise InvalidCoordinatesError(f"Expected a (lat, lon) pair, got {point!r}")

    if math.isnan(lat) or math.isnan(lon) or math.isinf(lat) or math.isinf(lon):
        raise InvalidCoordinatesError(f"Coordinates must be finite, got {point!r}")
    if not -90.0 <= lat <= 90.0:
        raise InvalidCoordinatesError(f"Latitude {lat} out of range [-90, 90]")
    if not -180.0 <= lon <= 180.0:
        raise InvalidCoordinatesError(f"Longitude {lon} out of range [-180, 180]")

    return (lat, lon)


def haversine_km(a: LatLon, b: LatLon) -> float:
    """
    Great-circle distance between two points on a spherical Earth (km).
    Symmetric and non-negative; zero when the points coincide.
    """
    lat1, lon1 = a
    lat2, lon2 = b

    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)

    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    # clamp: rounding can push h a hair above 1 for antipodal points
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def path_length_km(points: Sequence[LatLon]) -> float:
    """
    Sum of haversine legs over consecutive points, in order.
    Empty or single point paths have length 0.
    """
    total = 0.0
    for a, b in zip(points[:-1], points[1:]):
        total += haversine_km(a, b)
    return total
