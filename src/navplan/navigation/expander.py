"""Route expansion.

Replaces airway and procedure references in a tokenized route with the fix
sequences they stand for, before any waypoint is resolved:

    KSFO SFO V25 MOVER WYNDE3 KLAX
    -> KSFO SFO ... MOVER ... (STAR fixes) ... KLAX

Airways are written ``FROM AIRWAY TO``; the scan advances to ``TO`` rather
than past it so chained airways (``PAYGE Q822 GONZZ Q822 FNT``) share their
junction fix. Expansion problems never abort the scan: they are collected as
advisory messages and the literal token stays in the route, where the
resolver will report it.
"""

import logging
from dataclasses import dataclass, field

from navplan.navigation.geodesy import GeodesyModel
from navplan.navigation.navdata import (
    PROCEDURE_TOKEN,
    LookupTables,
    Procedure,
    ProcedureKind,
    Transition,
)
from navplan.navigation.tokens import TokenKind, classify, is_coordinate_token, tokenize

logger = logging.getLogger(__name__)

DIRECT = "DCT"


class ExpansionError(Exception):
    """Raised when an airway or procedure reference cannot be expanded."""


@dataclass(frozen=True)
class AirwayExpansion:
    """Fixes flown along an airway segment.

    Attributes:
        fixes: Fixes from the entry fix to the exit fix, both included
        direction: "forward" if flown in published order, else "reverse"
    """

    fixes: tuple[str, ...]
    direction: str


@dataclass(frozen=True)
class ProcedureExpansion:
    """Fixes flown on a STAR or DP.

    Attributes:
        fixes: Transition fixes (if one was selected) followed by the body
        kind: STAR or DP
        key: Lookup key the procedure was found under
        transition: Name of the selected transition, None if only the body is flown
    """

    fixes: tuple[str, ...]
    kind: ProcedureKind
    key: str
    transition: str | None = None


@dataclass
class ExpansionResult:
    """Expanded tokens plus advisory errors."""

    tokens: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def route_string(self) -> str:
        """Expanded route as a single string."""
        return " ".join(self.tokens)


class RouteExpander:
    """Expands airways and terminal procedures in a token stream.

    Examples:
        >>> expander = RouteExpander(db, create_geodesy())
        >>> expander.expand(["A", "Q822", "B"]).tokens
        ['A', 'Y', 'B']
    """

    def __init__(self, tables: LookupTables, geodesy: GeodesyModel) -> None:
        """Initialize the expander.

        Args:
            tables: Read-only lookup tables (airways, procedures, fix positions)
            geodesy: Distance model used to pick procedure transitions
        """
        self.tables = tables
        self.geodesy = geodesy

    def expand_string(self, route: str) -> ExpansionResult:
        """Tokenize and expand a route string."""
        return self.expand(tokenize(route))

    def expand(self, tokens: list[str]) -> ExpansionResult:
        """Expand airway and procedure references.

        Args:
            tokens: Upper-case route tokens

        Returns:
            ExpansionResult with the expanded tokens and any advisory errors
        """
        result = ExpansionResult()
        expanded = result.tokens
        exit_fix: str | None = None
        i = 0

        while i < len(tokens):
            token = tokens[i]

            if token == DIRECT:
                i += 1
                continue

            if is_coordinate_token(token):
                expanded.append(token)
                i += 1
                continue

            kind = classify(token, self.tables)

            if kind is TokenKind.PROCEDURE:
                previous_fix = expanded[-1] if expanded else None
                try:
                    procedure = self.expand_procedure(token, previous_fix)
                except ExpansionError as e:
                    logger.warning("Procedure %s not expanded: %s", token, e)
                    result.errors.append(f"Procedure {token} expansion failed: {e}")
                else:
                    _splice(expanded, procedure.fixes)
                    i += 1
                    continue

            if i + 2 < len(tokens) and classify(tokens[i + 1], self.tables) is TokenKind.AIRWAY:
                from_fix, airway_id, to_fix = tokens[i : i + 3]
                try:
                    segment = self.expand_airway(from_fix, airway_id, to_fix)
                except ExpansionError as e:
                    logger.warning("Airway %s not expanded: %s", airway_id, e)
                    result.errors.append(
                        f"Airway {airway_id} expansion failed: {from_fix} to {to_fix} ({e})"
                    )
                else:
                    logger.debug(
                        "Expanded %s %s %s to %d fixes (%s)",
                        from_fix,
                        airway_id,
                        to_fix,
                        len(segment.fixes),
                        segment.direction,
                    )
                    _splice(expanded, segment.fixes)
                    # Resume at the exit fix so it can start a chained airway
                    exit_fix = to_fix
                    i += 2
                    continue

            if token == exit_fix:
                # Already emitted as the end of the airway segment
                exit_fix = None
                i += 1
                continue

            expanded.append(token)
            i += 1

        if result.errors:
            logger.info("Route expanded with %d advisory error(s)", len(result.errors))
        return result

    def expand_airway(self, from_fix: str, airway_id: str, to_fix: str) -> AirwayExpansion:
        """Fixes flown along an airway between two of its fixes.

        Args:
            from_fix: Entry fix
            airway_id: Airway designator
            to_fix: Exit fix

        Returns:
            AirwayExpansion, forward or reverse depending on the fixes' order

        Raises:
            ExpansionError: If the airway is unknown, empty, or does not contain
                both fixes
        """
        airway = self.tables.get_airway(airway_id)
        if airway is None:
            raise ExpansionError(f"Airway {airway_id} not found")
        if not airway.fixes:
            raise ExpansionError(f"Airway {airway_id} has no fixes")

        fixes = list(airway.fixes)
        for fix in (from_fix, to_fix):
            if fix not in fixes:
                raise ExpansionError(f"{fix} not on {airway_id}")

        from_idx = fixes.index(from_fix)
        to_idx = fixes.index(to_fix)

        if from_idx < to_idx:
            return AirwayExpansion(tuple(fixes[from_idx : to_idx + 1]), "forward")
        return AirwayExpansion(tuple(reversed(fixes[to_idx : from_idx + 1])), "reverse")

    def expand_procedure(self, token: str, previous_fix: str | None = None) -> ProcedureExpansion:
        """Fixes flown on a STAR or DP.

        Args:
            token: Procedure computer code (e.g., "WYNDE3")
            previous_fix: Last fix flown before the procedure, used to choose
                a transition

        Returns:
            ProcedureExpansion

        Raises:
            ExpansionError: If the token is not a known procedure
        """
        if not PROCEDURE_TOKEN.match(token):
            raise ExpansionError(f"{token} is not a procedure name")

        found = self.tables.find_procedure(token)
        if found is None:
            raise ExpansionError(f"Procedure {token} not found")

        key, procedure = found
        if not procedure.body:
            raise ExpansionError(f"Procedure {key} has no fixes")

        transition = self._select_transition(procedure, previous_fix)
        if transition is None:
            return ProcedureExpansion(procedure.body, procedure.kind, key)

        fixes = list(transition.fixes)
        body = procedure.body
        if fixes and fixes[-1] == body[0]:
            fixes.extend(body[1:])
        else:
            fixes.extend(body)
        logger.debug("Procedure %s via %s transition", key, transition.name)
        return ProcedureExpansion(tuple(fixes), procedure.kind, key, transition.name)

    def _select_transition(self, procedure: Procedure, previous_fix: str | None) -> Transition | None:
        """Transition whose entry fix is closest to the previous fix."""
        if procedure.is_flat or previous_fix is None or previous_fix == procedure.body[0]:
            return None

        origin = self.tables.get_fix_coordinates(previous_fix)
        if origin is None:
            logger.debug("No position for %s, flying %s body only", previous_fix, procedure.name)
            return None

        best: Transition | None = None
        best_distance = float("inf")
        for transition in procedure.transitions:
            entry = self.tables.get_fix_coordinates(transition.entry_fix)
            if entry is None:
                continue
            distance = self.geodesy.distance_nm(origin[0], origin[1], entry[0], entry[1])
            if distance < best_distance:
                best, best_distance = transition, distance
        return best


def _splice(expanded: list[str], fixes: tuple[str, ...]) -> None:
    """Append fixes, skipping the first one if it was just emitted."""
    if expanded and fixes and expanded[-1] == fixes[0]:
        expanded.extend(fixes[1:])
    else:
        expanded.extend(fixes)
