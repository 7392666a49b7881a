"""Resolved route waypoints.

A resolved waypoint is one of four immutable records: an airport, a navaid,
a fix or an ad-hoc coordinate typed into the route. Consumers dispatch on
``kind`` (or ``match`` on the class) and every variant exposes ``ident``,
``lat`` and ``lon``.

Typical usage:
    from navplan.navigation.waypoint import Airport, WaypointKind

    ksfo = Airport(icao="KSFO", iata="SFO", name="San Francisco Intl",
                   lat=37.6191, lon=-122.3756, country="US")
    assert ksfo.kind is WaypointKind.AIRPORT
"""

from dataclasses import dataclass, field
from enum import Enum


class WaypointKind(Enum):
    """Waypoint variant discriminant.

    Attributes:
        AIRPORT: Airport reference point
        NAVAID: Ground radio navigation aid (VOR, NDB, ...)
        FIX: Named intersection or RNAV waypoint
        COORDINATE: Latitude/longitude typed directly into the route
    """

    AIRPORT = "airport"
    NAVAID = "navaid"
    FIX = "fix"
    COORDINATE = "coordinate"


@dataclass(frozen=True)
class Airport:
    """Airport waypoint.

    Attributes:
        icao: ICAO or local identifier (e.g., "KSFO", "1B1")
        name: Airport name
        lat: Latitude in degrees
        lon: Longitude in degrees
        country: ISO country code
        iata: IATA code, if the airport has one
        elevation_ft: Field elevation in feet MSL
        municipality: City served
    """

    icao: str
    name: str
    lat: float
    lon: float
    country: str = ""
    iata: str | None = None
    elevation_ft: float | None = None
    municipality: str | None = None
    kind: WaypointKind = field(default=WaypointKind.AIRPORT, init=False)

    @property
    def ident(self) -> str:
        """Route identifier of the airport (its ICAO code)."""
        return self.icao

    def __str__(self) -> str:
        return f"{self.icao} ({self.name})"


@dataclass(frozen=True)
class Navaid:
    """Navaid waypoint.

    Attributes:
        ident: Navaid identifier (e.g., "SFO")
        type: Navaid type as published ("VOR", "VORTAC", "NDB", ...)
        lat: Latitude in degrees
        lon: Longitude in degrees
        name: Navaid name
        frequency: Frequency (MHz for VHF aids, kHz for NDBs)
        elevation_ft: Elevation in feet MSL
    """

    ident: str
    type: str
    lat: float
    lon: float
    name: str = ""
    frequency: float | None = None
    elevation_ft: float | None = None
    kind: WaypointKind = field(default=WaypointKind.NAVAID, init=False)

    def __str__(self) -> str:
        if self.frequency:
            return f"{self.ident} ({self.type} {self.frequency:.2f})"
        return f"{self.ident} ({self.type})"


@dataclass(frozen=True)
class Fix:
    """Named fix.

    Attributes:
        name: Fix name (e.g., "MODET")
        lat: Latitude in degrees
        lon: Longitude in degrees
        is_reporting_point: Whether the fix is a compulsory reporting point
    """

    name: str
    lat: float
    lon: float
    is_reporting_point: bool = False
    kind: WaypointKind = field(default=WaypointKind.FIX, init=False)

    @property
    def ident(self) -> str:
        """Route identifier of the fix (its name)."""
        return self.name

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Coordinate:
    """User-defined coordinate waypoint, never stored in the database.

    Attributes:
        ident: Route token the coordinate was parsed from (e.g., "3407/10615")
        lat: Latitude in degrees
        lon: Longitude in degrees
        name: Human readable label (e.g., "34°7'N 106°15'W")
    """

    ident: str
    lat: float
    lon: float
    name: str = ""
    kind: WaypointKind = field(default=WaypointKind.COORDINATE, init=False)

    def __str__(self) -> str:
        return self.name or self.ident


Waypoint = Airport | Navaid | Fix | Coordinate
