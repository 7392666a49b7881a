"""Distance and bearing between geographic positions.

Two interchangeable strategies are provided: an ellipsoidal solver on the
WGS-84 ellipsoid (geographiclib, the geodesic engine behind geopy) and a
spherical haversine model. The strategy is picked once, at startup, with
``create_geodesy`` and then injected into the components that need it.

Typical usage:
    from navplan.navigation.geodesy import create_geodesy

    geodesy = create_geodesy("ellipsoidal")
    result = geodesy.inverse(37.6191, -122.3756, 33.9425, -118.4081)
    print(f"{result.distance_nm:.1f} NM on {result.initial_bearing:.0f}°")
"""

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass

from geographiclib.geodesic import Geodesic

logger = logging.getLogger(__name__)

METERS_PER_NM = 1852.0
EARTH_RADIUS_NM = 3440.065


def normalize_heading(degrees: float) -> float:
    """Normalize an angle to the range [0, 360)."""
    normalized = degrees % 360.0
    # -1e-15 % 360 rounds to 360.0
    return 0.0 if normalized >= 360.0 else normalized


@dataclass(frozen=True)
class InverseResult:
    """Solution of the inverse geodesic problem.

    Attributes:
        distance_m: Distance between the two points in meters
        initial_bearing: True bearing at the start point, degrees [0, 360)
        final_bearing: True bearing on arrival at the end point, degrees [0, 360)
    """

    distance_m: float
    initial_bearing: float
    final_bearing: float

    @property
    def distance_nm(self) -> float:
        """Distance in nautical miles."""
        return self.distance_m / METERS_PER_NM


class GeodesyModel(ABC):
    """Strategy interface for inverse geodesic computations."""

    name: str = ""

    @abstractmethod
    def inverse(self, lat1: float, lon1: float, lat2: float, lon2: float) -> InverseResult:
        """Solve the inverse problem between two points.

        Args:
            lat1: Start latitude in degrees
            lon1: Start longitude in degrees
            lat2: End latitude in degrees
            lon2: End longitude in degrees

        Returns:
            Distance and bearings between the points
        """

    def distance_nm(self, lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """Distance between two points in nautical miles."""
        return self.inverse(lat1, lon1, lat2, lon2).distance_nm

    def initial_bearing(self, lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """Initial true bearing from the first point to the second."""
        return self.inverse(lat1, lon1, lat2, lon2).initial_bearing


class EllipsoidalGeodesy(GeodesyModel):
    """WGS-84 ellipsoidal geodesics (Karney's algorithm).

    Accurate to a few nanometers and, unlike Vincenty's iteration, converges
    for nearly antipodal points as well.
    """

    name = "ellipsoidal"

    def __init__(self) -> None:
        self._geod = Geodesic.WGS84

    def inverse(self, lat1: float, lon1: float, lat2: float, lon2: float) -> InverseResult:
        if lat1 == lat2 and lon1 == lon2:
            return InverseResult(0.0, 0.0, 0.0)

        solution = self._geod.Inverse(lat1, lon1, lat2, lon2)
        return InverseResult(
            distance_m=solution["s12"],
            initial_bearing=normalize_heading(solution["azi1"]),
            final_bearing=normalize_heading(solution["azi2"]),
        )


class SphericalGeodesy(GeodesyModel):
    """Great-circle geodesics on a sphere of radius 3440.065 NM.

    Haversine distance and forward azimuth. Differs from the ellipsoidal
    result by up to about 0.5%, which is below nautical-mile precision on
    typical legs.
    """

    name = "spherical"

    def inverse(self, lat1: float, lon1: float, lat2: float, lon2: float) -> InverseResult:
        if lat1 == lat2 and lon1 == lon2:
            return InverseResult(0.0, 0.0, 0.0)

        distance_nm = self._haversine_nm(lat1, lon1, lat2, lon2)
        initial = self._bearing(lat1, lon1, lat2, lon2)
        final = normalize_heading(self._bearing(lat2, lon2, lat1, lon1) + 180.0)
        return InverseResult(distance_nm * METERS_PER_NM, initial, final)

    @staticmethod
    def _haversine_nm(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        phi1, phi2 = math.radians(lat1), math.radians(lat2)
        dphi = phi2 - phi1
        dlam = math.radians(lon2 - lon1)

        a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlam / 2) ** 2
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
        return c * EARTH_RADIUS_NM

    @staticmethod
    def _bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        phi1, phi2 = math.radians(lat1), math.radians(lat2)
        dlam = math.radians(lon2 - lon1)

        y = math.sin(dlam) * math.cos(phi2)
        x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(dlam)
        return normalize_heading(math.degrees(math.atan2(y, x)))


_MODELS: dict[str, type[GeodesyModel]] = {
    EllipsoidalGeodesy.name: EllipsoidalGeodesy,
    SphericalGeodesy.name: SphericalGeodesy,
}


def create_geodesy(name: str = "ellipsoidal") -> GeodesyModel:
    """Create a geodesy strategy by name.

    Args:
        name: "ellipsoidal" or "spherical"

    Returns:
        GeodesyModel instance

    Raises:
        ValueError: If the name is unknown
    """
    try:
        model = _MODELS[name.lower()]()
    except KeyError:
        raise ValueError(
            f"Unknown geodesy model '{name}' (expected one of: {', '.join(sorted(_MODELS))})"
        ) from None

    logger.info("Using %s geodesy", model.name)
    return model
