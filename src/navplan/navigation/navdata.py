"""Navigation lookup tables.

The route engine never reaches for global data: it is handed a read-only
``LookupTables`` object that answers identifier lookups for airports,
navaids, fixes, airways and procedures. ``NavDatabase`` is the in-memory
implementation, filled either programmatically or from a YAML snapshot.

Typical usage:
    db = NavDatabase()
    db.load_from_yaml("data/navdata.yaml")

    ksfo = db.get_airport("KSFO")
    q822 = db.get_airway("Q822")
"""

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from navplan.navigation.waypoint import Airport, Fix, Navaid

logger = logging.getLogger(__name__)

# Procedure computer code: name of 3+ letters followed by the revision number
PROCEDURE_TOKEN = re.compile(r"^([A-Z]{3,})(\d+)$")


class NavDataError(Exception):
    """Raised when a navigation data snapshot cannot be loaded."""


class ProcedureKind(Enum):
    """Terminal procedure type.

    Attributes:
        STAR: Standard Terminal Arrival Route
        DP: Departure Procedure (SID)
    """

    STAR = "STAR"
    DP = "DP"


@dataclass(frozen=True)
class Airway:
    """Airway as an ordered, directionless list of fix identifiers.

    Attributes:
        id: Airway designator (e.g., "V25", "J80", "Q822")
        fixes: Fix identifiers in published order
    """

    id: str
    fixes: tuple[str, ...]


@dataclass(frozen=True)
class Transition:
    """Named procedure transition leading into (or out of) the common body.

    Attributes:
        name: Transition name (usually the entry fix)
        entry_fix: Fix where the transition begins
        fixes: Ordered transition fixes
    """

    name: str
    entry_fix: str
    fixes: tuple[str, ...]


@dataclass(frozen=True)
class Procedure:
    """STAR or DP.

    A procedure without transitions is the legacy flat form: its ``body`` is
    the complete fix sequence.

    Attributes:
        name: Procedure computer code (e.g., "WYNDE3")
        kind: STAR or DP
        body: Common route fixes
        transitions: Available transitions
    """

    name: str
    kind: ProcedureKind
    body: tuple[str, ...]
    transitions: tuple[Transition, ...] = field(default_factory=tuple)

    @property
    def is_flat(self) -> bool:
        """True for the legacy representation without transitions."""
        return not self.transitions


class LookupTables(ABC):
    """Read-only identifier lookups used by the route engine.

    All lookups return None on a miss; implementations must not raise for
    unknown identifiers.
    """

    @abstractmethod
    def get_airport(self, icao: str) -> Airport | None:
        """Look up an airport by ICAO or local identifier."""

    @abstractmethod
    def get_airport_by_iata(self, iata: str) -> Airport | None:
        """Look up an airport through the IATA secondary index."""

    @abstractmethod
    def get_navaid(self, ident: str) -> Navaid | None:
        """Look up a navaid by identifier."""

    @abstractmethod
    def get_fix(self, name: str) -> Fix | None:
        """Look up a fix by name."""

    @abstractmethod
    def get_airway(self, airway_id: str) -> Airway | None:
        """Look up an airway by designator."""

    @abstractmethod
    def get_procedure(self, name: str, kind: ProcedureKind) -> Procedure | None:
        """Look up a STAR or DP by key or computer code."""

    def get_fix_coordinates(self, ident: str) -> tuple[float, float] | None:
        """Get (lat, lon) of any point an airway or procedure can reference.

        Fixes are tried first, then navaids, then airports.

        Args:
            ident: Fix, navaid or airport identifier

        Returns:
            (lat, lon) tuple, or None if the identifier is unknown
        """
        point = self.get_fix(ident) or self.get_navaid(ident) or self.get_airport(ident)
        if point is None:
            return None
        return point.lat, point.lon

    def find_procedure(self, token: str) -> tuple[str, Procedure] | None:
        """Find the procedure a route token refers to.

        Procedure tokens are a name followed by a number (``WYNDE3``). The
        keys ``NAME.NAME#``, ``NAME#`` and ``NAME#.NAME`` are tried in that
        order, each against the STAR table and then the DP table.

        Args:
            token: Upper-case route token

        Returns:
            (matched key, procedure), or None if the token is not a procedure
        """
        for key in procedure_candidate_keys(token):
            for kind in (ProcedureKind.STAR, ProcedureKind.DP):
                procedure = self.get_procedure(key, kind)
                if procedure is not None:
                    return key, procedure
        return None


class NavDatabase(LookupTables):
    """In-memory lookup tables.

    Attributes:
        airports: ICAO/local identifier to Airport
        navaids: Identifier to Navaid
        fixes: Name to Fix
        airways: Designator to Airway

    Examples:
        >>> db = NavDatabase()
        >>> db.add_fix(Fix(name="MODET", lat=37.5, lon=-122.5))
        >>> db.get_fix("MODET").lat
        37.5
    """

    def __init__(self) -> None:
        """Initialize empty lookup tables."""
        self.airports: dict[str, Airport] = {}
        self.navaids: dict[str, Navaid] = {}
        self.fixes: dict[str, Fix] = {}
        self.airways: dict[str, Airway] = {}
        self._iata_index: dict[str, str] = {}
        self._procedures: dict[ProcedureKind, dict[str, Procedure]] = {
            ProcedureKind.STAR: {},
            ProcedureKind.DP: {},
        }

    def add_airport(self, airport: Airport) -> None:
        """Add an airport; its IATA code (if any) is indexed as well.

        Note:
            The first airport registered under an IATA code keeps it.
        """
        self.airports[airport.icao] = airport
        if airport.iata and airport.iata not in self._iata_index:
            self._iata_index[airport.iata] = airport.icao

    def add_navaid(self, navaid: Navaid) -> None:
        """Add a navaid, replacing any navaid with the same identifier."""
        self.navaids[navaid.ident] = navaid

    def add_fix(self, fix: Fix) -> None:
        """Add a fix, replacing any fix with the same name."""
        self.fixes[fix.name] = fix

    def add_airway(self, airway_id: str, fixes: Iterable[str]) -> Airway:
        """Add an airway from its ordered fix identifiers.

        Returns:
            The stored Airway
        """
        airway = Airway(id=airway_id, fixes=tuple(fixes))
        self.airways[airway_id] = airway
        return airway

    def add_procedure(self, key: str, procedure: Procedure) -> None:
        """Register a procedure under a lookup key.

        Keys follow the published conventions (``WYNDE.WYNDE3``,
        ``WYNDE3``, ``WYNDE3.WYNDE``). The procedure is also reachable by
        its computer code unless another procedure already claimed it.

        Args:
            key: Lookup key
            procedure: Procedure to register
        """
        table = self._procedures[procedure.kind]
        table[key] = procedure
        table.setdefault(procedure.name, procedure)

    def add_flat_procedure(self, key: str, kind: ProcedureKind, fixes: Iterable[str]) -> Procedure:
        """Register a legacy procedure given only as a fix list."""
        procedure = Procedure(name=key, kind=kind, body=tuple(fixes))
        self.add_procedure(key, procedure)
        return procedure

    def get_airport(self, icao: str) -> Airport | None:
        return self.airports.get(icao)

    def get_airport_by_iata(self, iata: str) -> Airport | None:
        icao = self._iata_index.get(iata)
        return self.airports.get(icao) if icao else None

    def get_navaid(self, ident: str) -> Navaid | None:
        return self.navaids.get(ident)

    def get_fix(self, name: str) -> Fix | None:
        return self.fixes.get(name)

    def get_airway(self, airway_id: str) -> Airway | None:
        return self.airways.get(airway_id)

    def get_procedure(self, name: str, kind: ProcedureKind) -> Procedure | None:
        return self._procedures[kind].get(name)

    def count(self) -> dict[str, int]:
        """Return the number of records per table."""
        return {
            "airports": len(self.airports),
            "navaids": len(self.navaids),
            "fixes": len(self.fixes),
            "airways": len(self.airways),
            "stars": len(self._procedures[ProcedureKind.STAR]),
            "dps": len(self._procedures[ProcedureKind.DP]),
        }

    def load_from_yaml(self, path: str | Path) -> dict[str, int]:
        """Load a pre-built navigation data snapshot.

        Expected layout::

            airports: [{icao, name, lat, lon, iata?, elevation_ft?, country?, municipality?}]
            navaids:  [{ident, type, lat, lon, name?, frequency?, elevation_ft?}]
            fixes:    [{name, lat, lon, reporting_point?}]
            airways:  {V25: [FIX1, FIX2, ...]}
            stars:    {WYNDE.WYNDE3: {name, body: [...], transitions: [{name, entry_fix, fixes}]}}
            dps:      {KEY: [FIX1, FIX2]}   # legacy flat form

        Invalid records are skipped with a warning.

        Args:
            path: Path to the YAML snapshot

        Returns:
            Record counts after loading

        Raises:
            NavDataError: If the file is missing or is not valid YAML
        """
        path = Path(path)
        if not path.exists():
            raise NavDataError(f"Navigation data not found: {path}")

        try:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise NavDataError(f"Failed to load navigation data: {e}") from e

        if not isinstance(data, dict):
            raise NavDataError(f"Navigation data root must be a mapping: {path}")

        self.load_from_dict(data)
        counts = self.count()
        logger.info("Loaded navigation data from %s: %s", path, counts)
        return counts

    def load_from_dict(self, data: dict[str, Any]) -> None:
        """Populate the tables from an already parsed snapshot."""
        for row in data.get("airports") or []:
            try:
                self.add_airport(
                    Airport(
                        icao=str(row["icao"]).upper(),
                        name=row.get("name", ""),
                        lat=float(row["lat"]),
                        lon=float(row["lon"]),
                        country=row.get("country", ""),
                        iata=str(row["iata"]).upper() if row.get("iata") else None,
                        elevation_ft=_optional_float(row.get("elevation_ft")),
                        municipality=row.get("municipality"),
                    )
                )
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping invalid airport record %r: %s", row, e)

        for row in data.get("navaids") or []:
            try:
                self.add_navaid(
                    Navaid(
                        ident=str(row["ident"]).upper(),
                        type=str(row.get("type", "VOR")).upper(),
                        lat=float(row["lat"]),
                        lon=float(row["lon"]),
                        name=row.get("name", ""),
                        frequency=_optional_float(row.get("frequency")),
                        elevation_ft=_optional_float(row.get("elevation_ft")),
                    )
                )
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping invalid navaid record %r: %s", row, e)

        for row in data.get("fixes") or []:
            try:
                self.add_fix(
                    Fix(
                        name=str(row["name"]).upper(),
                        lat=float(row["lat"]),
                        lon=float(row["lon"]),
                        is_reporting_point=bool(row.get("reporting_point", False)),
                    )
                )
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping invalid fix record %r: %s", row, e)

        for airway_id, fixes in (data.get("airways") or {}).items():
            if not isinstance(fixes, list) or not fixes:
                logger.warning("Skipping airway %s without fixes", airway_id)
                continue
            self.add_airway(str(airway_id).upper(), (str(f).upper() for f in fixes))

        for section, kind in (("stars", ProcedureKind.STAR), ("dps", ProcedureKind.DP)):
            for key, entry in (data.get(section) or {}).items():
                try:
                    self._load_procedure(str(key).upper(), kind, entry)
                except (KeyError, TypeError, ValueError) as e:
                    logger.warning("Skipping invalid %s %s: %s", kind.value, key, e)

    def _load_procedure(self, key: str, kind: ProcedureKind, entry: Any) -> None:
        if isinstance(entry, list):
            if not entry:
                raise ValueError("empty fix list")
            self.add_flat_procedure(key, kind, (str(f).upper() for f in entry))
            return

        body = tuple(str(f).upper() for f in entry["body"])
        transitions = tuple(
            Transition(
                name=str(t["name"]).upper(),
                entry_fix=str(t.get("entry_fix") or t["fixes"][0]).upper(),
                fixes=tuple(str(f).upper() for f in t["fixes"]),
            )
            for t in entry.get("transitions") or []
        )
        procedure = Procedure(
            name=str(entry.get("name", key)).upper(),
            kind=kind,
            body=body,
            transitions=transitions,
        )
        self.add_procedure(key, procedure)


def procedure_candidate_keys(token: str) -> list[str]:
    """Lookup keys for a procedure token, in priority order.

    Examples:
        >>> procedure_candidate_keys("WYNDE3")
        ['WYNDE.WYNDE3', 'WYNDE3', 'WYNDE3.WYNDE']
        >>> procedure_candidate_keys("KSFO")
        []
    """
    match = PROCEDURE_TOKEN.match(token)
    if not match:
        return []
    name = match.group(1)
    return [f"{name}.{token}", token, f"{token}.{name}"]


def _optional_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    return float(value)
