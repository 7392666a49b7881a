"""Route planner: from a route string to a computed Route.

    tokenize -> expand -> drop repeated tokens -> resolve -> calculate

Only resolution is allowed to stop the pipeline. Expansion problems travel
with the Route as advisories; missing magnetic or wind data only blanks the
derived fields.

Typical usage:
    planner = RoutePlanner(db, create_geodesy(), WorldMagneticModel())
    route = planner.plan_sync("KSFO SFO V25 MOVER KLAX", PlanningOptions())
"""

import asyncio
import logging
from dataclasses import replace

from navplan.navigation.calculator import NavigationCalculator, PlanningOptions, Route
from navplan.navigation.expander import RouteExpander
from navplan.navigation.geodesy import GeodesyModel
from navplan.navigation.magnetic import MagneticModel
from navplan.navigation.navdata import LookupTables
from navplan.navigation.resolver import NotFoundReport, WaypointResolver
from navplan.navigation.tokens import tokenize
from navplan.navigation.winds import WindService

logger = logging.getLogger(__name__)


class EmptyRouteError(ValueError):
    """Raised when a route string contains no waypoint."""


class UnresolvedWaypointsError(Exception):
    """Raised when route tokens are not in the navigation database.

    Attributes:
        report: Unresolved tokens grouped by category
    """

    def __init__(self, report: NotFoundReport) -> None:
        super().__init__(report.format_message())
        self.report = report


def dedupe_consecutive(tokens: list[str]) -> list[str]:
    """Drop tokens repeating the token just before them.

    Examples:
        >>> dedupe_consecutive(["A", "B", "B", "C", "B"])
        ['A', 'B', 'C', 'B']
    """
    result: list[str] = []
    for token in tokens:
        if not result or result[-1] != token:
            result.append(token)
    return result


class RoutePlanner:
    """Plans routes against one set of lookup tables and models."""

    def __init__(
        self,
        tables: LookupTables,
        geodesy: GeodesyModel,
        magnetic_model: MagneticModel,
        wind_service: WindService | None = None,
    ) -> None:
        self.expander = RouteExpander(tables, geodesy)
        self.resolver = WaypointResolver(tables)
        self.calculator = NavigationCalculator(geodesy, magnetic_model, wind_service)

    async def plan(self, route: str, options: PlanningOptions | None = None) -> Route:
        """Plan a route string.

        Args:
            route: Route string, e.g. "KSFO DCT SFO V25 MOVER KLAX"
            options: Planning options

        Returns:
            Route with the expanded route string and expansion advisories

        Raises:
            EmptyRouteError: If the route has no waypoints
            UnresolvedWaypointsError: If any waypoint is not in the database
        """
        tokens = tokenize(route)
        if not tokens:
            raise EmptyRouteError("Route is empty")

        expansion = self.expander.expand(tokens)
        expanded = dedupe_consecutive(expansion.tokens)
        if not expanded:
            raise EmptyRouteError(f"Route has no waypoints: {route.strip()}")

        resolution = self.resolver.resolve(expanded)
        if not resolution.ok:
            raise UnresolvedWaypointsError(resolution.not_found)

        computed = await self.calculator.calculate_route(resolution.waypoints, options)
        logger.info(
            "Planned %s: %d waypoints, %.1f NM",
            " ".join(expanded),
            len(computed.points),
            computed.total_distance_nm,
        )
        return replace(
            computed,
            expanded_route=" ".join(expanded),
            expansion_errors=tuple(expansion.errors),
        )

    def plan_sync(self, route: str, options: PlanningOptions | None = None) -> Route:
        """Blocking wrapper around ``plan`` for callers without an event loop."""
        return asyncio.run(self.plan(route, options))
