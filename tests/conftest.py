"""Pytest configuration and fixtures for all tests."""

import pytest

from navplan.navigation.geodesy import EllipsoidalGeodesy, SphericalGeodesy
from navplan.navigation.navdata import NavDatabase, Procedure, ProcedureKind, Transition
from navplan.navigation.waypoint import Airport, Fix, Navaid

KSFO = Airport(icao="KSFO", iata="SFO", name="San Francisco Intl", lat=37.6191, lon=-122.3756, country="US")
KLAX = Airport(icao="KLAX", iata="LAX", name="Los Angeles Intl", lat=33.9425, lon=-118.4081, country="US")


@pytest.fixture
def db() -> NavDatabase:
    """Small navigation database shared by the route engine tests.

    Q822 runs east along 40°N through X, A, Y, B, Z (one degree apart).
    WYNDE3 is a STAR with two transitions, PORTE3 a legacy flat DP.
    """
    nav = NavDatabase()

    nav.add_airport(KSFO)
    nav.add_airport(KLAX)
    nav.add_airport(Airport(icao="KOAK", iata="OAK", name="Oakland Intl", lat=37.7213, lon=-122.2208))
    nav.add_airport(Airport(icao="1B1", name="Columbia County", lat=42.2913, lon=-73.7103))

    nav.add_navaid(Navaid(ident="SFO", type="VORTAC", name="San Francisco", lat=37.6195, lon=-122.3739, frequency=115.8))
    nav.add_navaid(Navaid(ident="OSI", type="VORTAC", name="Woodside", lat=37.3925, lon=-122.2813, frequency=113.9))

    for name, lon in (("X", -100.0), ("A", -99.0), ("Y", -98.0), ("B", -97.0), ("Z", -96.0)):
        nav.add_fix(Fix(name=name, lat=40.0, lon=lon))
    nav.add_airway("Q822", ["X", "A", "Y", "B", "Z"])

    for name, lat, lon in (
        ("WYNDE", 34.23, -119.30),
        ("FIXER", 34.08, -118.90),
        ("HUNDA", 33.97, -118.55),
        ("NORTH", 35.50, -119.50),
        ("SOUTH", 33.00, -119.50),
        ("NEARN", 35.80, -119.60),
        ("NEARS", 32.70, -119.60),
    ):
        nav.add_fix(Fix(name=name, lat=lat, lon=lon))

    nav.add_procedure(
        "WYNDE.WYNDE3",
        Procedure(
            name="WYNDE3",
            kind=ProcedureKind.STAR,
            body=("WYNDE", "FIXER", "HUNDA"),
            transitions=(
                Transition(name="NORTH", entry_fix="NORTH", fixes=("NORTH", "WYNDE")),
                Transition(name="SOUTH", entry_fix="SOUTH", fixes=("SOUTH", "WYNDE")),
            ),
        ),
    )
    nav.add_flat_procedure("PORTE3", ProcedureKind.DP, ["KSFO", "OSI", "WYNDE"])

    return nav


@pytest.fixture
def ellipsoidal() -> EllipsoidalGeodesy:
    return EllipsoidalGeodesy()


@pytest.fixture
def spherical() -> SphericalGeodesy:
    return SphericalGeodesy()
