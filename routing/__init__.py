#Marks routing as a package.
#Re-exports the geometry helpers so other modules import from routing
#without knowing internal file names.
#No business logic.

from .geo import (
    EARTH_RADIUS_KM,
    InvalidCoordinatesError,
    LatLon,
    haversine_km,
    path_length_km,
    validate_point,
)

__all__ = [
    "EARTH_RADIUS_KM",
    "InvalidCoordinatesError",
    "LatLon",
    "haversine_km",
    "path_length_km",
    "validate_point",
]
