"""Route string tokens and the token classifier.

A route string is a whitespace separated list of identifiers. This module
splits it into tokens, recognizes latitude/longitude tokens, and reports
which lookup table a token is found in.

Coordinate tokens use the FAA/ICAO flight plan form ``DDMM/DDDMM`` or
``DDMMSS/DDDMMSS`` with optional hemisphere letters, either after each half
(``4814N/06848W``) or together at the end (``4814/06848NW``). Tokens without
hemisphere letters are taken as north latitude and west longitude, which is
right for the contiguous US and wrong almost everywhere else.
"""

import logging
import re
from enum import Enum

from navplan.navigation.navdata import LookupTables
from navplan.navigation.waypoint import Coordinate

logger = logging.getLogger(__name__)

COORDINATE_PATTERN = re.compile(
    r"^(?P<lat>\d{4}|\d{6})(?P<ns>[NS])?/(?P<lon>\d{5}|\d{7})(?P<ns_end>[NS])?(?P<ew>[EW])?$"
)


class TokenKind(Enum):
    """What a route token was found to be."""

    AIRPORT = "AIRPORT"
    NAVAID = "NAVAID"
    FIX = "FIX"
    AIRWAY = "AIRWAY"
    PROCEDURE = "PROCEDURE"
    COORDINATE = "COORDINATE"
    UNKNOWN = "UNKNOWN"


def tokenize(route: str) -> list[str]:
    """Split a route string into upper-case tokens.

    Examples:
        >>> tokenize("  ksfo dct  KLAX ")
        ['KSFO', 'DCT', 'KLAX']
    """
    return route.upper().split()


def is_coordinate_token(token: str) -> bool:
    """True if the token has the shape of a lat/long coordinate."""
    return COORDINATE_PATTERN.match(token) is not None


def classify(token: str, tables: LookupTables) -> TokenKind:
    """Report what kind of entity a token is.

    Tables are consulted in the order airport (ICAO identifiers, 4+
    characters), navaid, fix, airway, procedure; the first hit wins. Never
    raises.

    Args:
        token: Upper-case route token
        tables: Lookup tables to consult

    Returns:
        TokenKind of the token, UNKNOWN if no table knows it
    """
    if is_coordinate_token(token):
        return TokenKind.COORDINATE
    if len(token) >= 4 and tables.get_airport(token) is not None:
        return TokenKind.AIRPORT
    if tables.get_navaid(token) is not None:
        return TokenKind.NAVAID
    if tables.get_fix(token) is not None:
        return TokenKind.FIX
    if tables.get_airway(token) is not None:
        return TokenKind.AIRWAY
    if tables.find_procedure(token) is not None:
        return TokenKind.PROCEDURE
    return TokenKind.UNKNOWN


def _split_dms(digits: str, degree_width: int) -> tuple[int, int, int]:
    degrees = int(digits[:degree_width])
    minutes = int(digits[degree_width : degree_width + 2])
    seconds = int(digits[degree_width + 2 :]) if len(digits) > degree_width + 2 else 0
    return degrees, minutes, seconds


def _dms_label(degrees: int, minutes: int, seconds: int, hemisphere: str) -> str:
    if seconds > 0:
        return f"{degrees}°{minutes}'{seconds}\"{hemisphere}"
    return f"{degrees}°{minutes}'{hemisphere}"


def parse_coordinate_token(token: str) -> Coordinate | None:
    """Parse a lat/long route token into a Coordinate waypoint.

    Args:
        token: Route token such as "3407/10615" or "4814N/06848W"

    Returns:
        Coordinate, or None if the token is not a valid coordinate
        (wrong shape, degrees/minutes/seconds out of range, or conflicting
        hemisphere letters)

    Examples:
        >>> parse_coordinate_token("3407/10615").lon
        -106.25
    """
    match = COORDINATE_PATTERN.match(token)
    if not match:
        return None

    if match.group("ns") and match.group("ns_end"):
        logger.debug("Coordinate %s has two latitude hemisphere letters", token)
        return None

    lat_deg, lat_min, lat_sec = _split_dms(match.group("lat"), 2)
    lon_deg, lon_min, lon_sec = _split_dms(match.group("lon"), 3)

    if lat_deg > 90 or lat_min >= 60 or lat_sec >= 60:
        logger.debug("Latitude out of range in %s", token)
        return None
    if lon_deg > 180 or lon_min >= 60 or lon_sec >= 60:
        logger.debug("Longitude out of range in %s", token)
        return None

    lat = lat_deg + lat_min / 60 + lat_sec / 3600
    lon = lon_deg + lon_min / 60 + lon_sec / 3600

    lat_hemisphere = match.group("ns") or match.group("ns_end") or "N"
    lon_hemisphere = match.group("ew") or "W"
    if lat_hemisphere == "S":
        lat = -lat
    if lon_hemisphere == "W":
        lon = -lon

    name = (
        f"{_dms_label(lat_deg, lat_min, lat_sec, lat_hemisphere)} "
        f"{_dms_label(lon_deg, lon_min, lon_sec, lon_hemisphere)}"
    )
    logger.debug("Parsed coordinate %s = %s (%.5f, %.5f)", token, name, lat, lon)
    return Coordinate(ident=token, lat=lat, lon=lon, name=name)


def format_coordinate_token(lat: float, lon: float) -> str:
    """Format a position as a ``DDMM[NS]/DDDMM[EW]`` route token.

    Values are rounded to the nearest minute.

    Examples:
        >>> format_coordinate_token(34.1167, -106.25)
        '3407N/10615W'
    """
    lat_deg, lat_min = divmod(round(abs(lat) * 60), 60)
    lon_deg, lon_min = divmod(round(abs(lon) * 60), 60)
    ns = "S" if lat < 0 else "N"
    ew = "E" if lon >= 0 else "W"
    return f"{lat_deg:02d}{lat_min:02d}{ns}/{lon_deg:03d}{lon_min:02d}{ew}"
