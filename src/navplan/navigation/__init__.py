"""Route resolution and navigation computations.

This package turns a route string into a computed route: tokens are
expanded (airways, procedures), resolved against lookup tables, and the
resulting legs get distances, courses, headings, winds, times and fuel.

Typical usage:
    from navplan.navigation import (
        NavDatabase, RoutePlanner, WorldMagneticModel, create_geodesy,
    )

    db = NavDatabase()
    db.load_from_yaml("data/navdata.yaml")

    planner = RoutePlanner(db, create_geodesy(), WorldMagneticModel())
    route = planner.plan_sync("KSFO SFO V25 MOVER KLAX")
"""

from navplan.navigation.calculator import (
    FuelStatus,
    Leg,
    NavigationCalculator,
    PlanningOptions,
    Route,
    RoutePoint,
)
from navplan.navigation.expander import (
    AirwayExpansion,
    ExpansionError,
    ExpansionResult,
    ProcedureExpansion,
    RouteExpander,
)
from navplan.navigation.geodesy import (
    EllipsoidalGeodesy,
    GeodesyModel,
    InverseResult,
    SphericalGeodesy,
    create_geodesy,
)
from navplan.navigation.magnetic import (
    FixedDeclinationModel,
    MagneticModel,
    NullMagneticModel,
    WorldMagneticModel,
)
from navplan.navigation.navdata import (
    Airway,
    LookupTables,
    NavDatabase,
    NavDataError,
    Procedure,
    ProcedureKind,
    Transition,
)
from navplan.navigation.planner import EmptyRouteError, RoutePlanner, UnresolvedWaypointsError
from navplan.navigation.resolver import NotFoundReport, ResolutionResult, WaypointResolver
from navplan.navigation.tokens import TokenKind, classify, parse_coordinate_token, tokenize
from navplan.navigation.waypoint import Airport, Coordinate, Fix, Navaid, Waypoint, WaypointKind
from navplan.navigation.winds import (
    AviationWeatherWindService,
    StaticWindService,
    WindEstimate,
    WindReport,
    WindsAloft,
    WindService,
    WindServiceError,
    interpolate_wind,
)

__all__ = [
    "Airport",
    "Airway",
    "AirwayExpansion",
    "AviationWeatherWindService",
    "Coordinate",
    "create_geodesy",
    "classify",
    "EllipsoidalGeodesy",
    "EmptyRouteError",
    "ExpansionError",
    "ExpansionResult",
    "Fix",
    "FixedDeclinationModel",
    "FuelStatus",
    "GeodesyModel",
    "interpolate_wind",
    "InverseResult",
    "Leg",
    "LookupTables",
    "MagneticModel",
    "Navaid",
    "NavDatabase",
    "NavDataError",
    "NavigationCalculator",
    "NotFoundReport",
    "NullMagneticModel",
    "parse_coordinate_token",
    "PlanningOptions",
    "Procedure",
    "ProcedureExpansion",
    "ProcedureKind",
    "ResolutionResult",
    "Route",
    "RouteExpander",
    "RoutePlanner",
    "RoutePoint",
    "SphericalGeodesy",
    "StaticWindService",
    "tokenize",
    "TokenKind",
    "Transition",
    "UnresolvedWaypointsError",
    "Waypoint",
    "WaypointKind",
    "WaypointResolver",
    "WindEstimate",
    "WindReport",
    "WindsAloft",
    "WindService",
    "WindServiceError",
    "WorldMagneticModel",
]
