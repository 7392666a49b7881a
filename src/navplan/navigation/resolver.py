"""Waypoint resolution.

Turns expanded route tokens into waypoint records. Identifier namespaces
overlap (a three-letter token can be a navaid, a fix or an IATA airport code),
so every token goes through a fixed priority order:

1. lat/long coordinate token
2. airport by ICAO/local identifier (4+ characters, or 3 characters with a digit)
3. navaid
4. fix
5. airport by IATA code (exactly three letters)

Resolution is all or nothing: if any token is unknown, no waypoints are
returned and the unknown tokens are reported by category.
"""

import logging
import re
from dataclasses import dataclass, field

from navplan.navigation.navdata import LookupTables
from navplan.navigation.tokens import parse_coordinate_token
from navplan.navigation.waypoint import Waypoint

logger = logging.getLogger(__name__)

NAT_TRACK_PATTERN = re.compile(r"^N\d{2,3}[A-Z]$")
OCEANIC_PATTERN = re.compile(r"^[A-Z]{5}$")
IATA_PATTERN = re.compile(r"^[A-Z]{3}$")


@dataclass
class NotFoundReport:
    """Unresolved tokens grouped for diagnostics.

    Attributes:
        oceanic: Five-letter names, most likely oceanic/international fixes
        nat_tracks: North Atlantic Track identifiers (N###X, NATX)
        unknown: Everything else
    """

    oceanic: list[str] = field(default_factory=list)
    nat_tracks: list[str] = field(default_factory=list)
    unknown: list[str] = field(default_factory=list)

    def add(self, token: str) -> None:
        """File a token under its category."""
        if NAT_TRACK_PATTERN.match(token) or token == "NATX":
            self.nat_tracks.append(token)
        elif OCEANIC_PATTERN.match(token):
            self.oceanic.append(token)
        else:
            self.unknown.append(token)

    @property
    def tokens(self) -> list[str]:
        """All unresolved tokens."""
        return self.oceanic + self.nat_tracks + self.unknown

    def __bool__(self) -> bool:
        return bool(self.oceanic or self.nat_tracks or self.unknown)

    def format_message(self) -> str:
        """Pilot-facing error text listing the unresolved tokens."""
        lines = ["ERROR: WAYPOINT(S) NOT IN DATABASE", ""]
        if self.oceanic:
            lines.append(f"OCEANIC/INTERNATIONAL: {', '.join(self.oceanic)}")
        if self.nat_tracks:
            lines.append(f"NAT TRACKS: {', '.join(self.nat_tracks)}")
        if self.unknown:
            lines.append(f"UNKNOWN: {', '.join(self.unknown)}")
        lines.append("")
        lines.append("NOTE: Oceanic waypoints and NAT tracks are not included")
        return "\n".join(lines)


@dataclass
class ResolutionResult:
    """Outcome of resolving a token stream.

    Attributes:
        waypoints: Resolved waypoints, empty unless every token resolved
        not_found: Categorized unresolved tokens, None on success
    """

    waypoints: list[Waypoint] = field(default_factory=list)
    not_found: NotFoundReport | None = None

    @property
    def ok(self) -> bool:
        """True if every token resolved."""
        return self.not_found is None


class WaypointResolver:
    """Resolves route tokens against the lookup tables.

    Examples:
        >>> resolver = WaypointResolver(db)
        >>> result = resolver.resolve(["KSFO", "SFO", "3407/10615"])
        >>> [w.ident for w in result.waypoints]
        ['KSFO', 'SFO', '3407/10615']
    """

    def __init__(self, tables: LookupTables) -> None:
        """Initialize the resolver.

        Args:
            tables: Read-only lookup tables
        """
        self.tables = tables

    def resolve_token(self, token: str) -> Waypoint | None:
        """Resolve a single token using the priority order.

        Args:
            token: Upper-case route token

        Returns:
            Waypoint, or None if the token is not in any table
        """
        coordinate = parse_coordinate_token(token)
        if coordinate is not None:
            return coordinate

        waypoint: Waypoint | None = None

        if len(token) >= 4 or (len(token) == 3 and any(ch.isdigit() for ch in token)):
            waypoint = self.tables.get_airport(token)

        if waypoint is None:
            waypoint = self.tables.get_navaid(token)

        if waypoint is None:
            waypoint = self.tables.get_fix(token)

        if waypoint is None and IATA_PATTERN.match(token):
            waypoint = self.tables.get_airport_by_iata(token)

        return waypoint

    def resolve(self, tokens: list[str]) -> ResolutionResult:
        """Resolve every token of an expanded route.

        Args:
            tokens: Expanded route tokens, in order

        Returns:
            ResolutionResult with either all waypoints or the not-found report
        """
        waypoints: list[Waypoint] = []
        not_found = NotFoundReport()

        for token in tokens:
            waypoint = self.resolve_token(token)
            if waypoint is None:
                not_found.add(token)
            else:
                waypoints.append(waypoint)

        if not_found:
            logger.warning("Unresolved waypoints: %s", ", ".join(not_found.tokens))
            return ResolutionResult(waypoints=[], not_found=not_found)

        logger.debug("Resolved %d waypoints", len(waypoints))
        return ResolutionResult(waypoints=waypoints)
