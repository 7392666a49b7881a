"""navplan - route planning from the command line.

Resolves a route string against a navigation data snapshot and prints the
nav log: legs with distance, courses, headings, winds, times and fuel.

Typical usage:
    navplan "KSFO SFO V25 MOVER KLAX" --navdata data/navdata.yaml
    navplan "KPAO DCT 3725/12130 KSQL" --tas 110 --altitude 5500 --winds
    navplan "KSFO KLAX" --tas 120 --fuel --usable-fuel 53 --taxi-fuel 1.4 --burn-rate 9
"""

import argparse
import sys
from pathlib import Path

from navplan.core.config import ConfigError, ConfigLoader
from navplan.core.logging_system import get_logger, initialize_logging
from navplan.core.resource_path import get_config_path, get_data_path, get_resource_path
from navplan.navigation.calculator import PlanningOptions, Route
from navplan.navigation.geodesy import create_geodesy
from navplan.navigation.magnetic import MagneticModel, NullMagneticModel, WorldMagneticModel
from navplan.navigation.navdata import NavDatabase, NavDataError
from navplan.navigation.planner import EmptyRouteError, RoutePlanner, UnresolvedWaypointsError
from navplan.navigation.winds import (
    WINDS_ALOFT_URL,
    AviationWeatherWindService,
    StaticWindService,
    WindService,
    WindServiceError,
    build_winds_aloft,
    get_forecast_period,
    load_station_positions,
    parse_winds_aloft,
)

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_UNRESOLVED = 2


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(description="navplan - flight route planner")

    parser.add_argument("route", nargs="+", help='Route string, e.g. "KSFO SFO V25 MOVER KLAX"')
    parser.add_argument("--navdata", type=Path, help="Navigation data snapshot (YAML)")
    parser.add_argument("--config", type=Path, help="Planner configuration (YAML)")
    parser.add_argument("--logging-config", type=Path, help="Logging configuration (YAML)")

    parser.add_argument("--tas", type=float, help="True airspeed in knots (enables times)")
    parser.add_argument("--altitude", type=float, help="Planned altitude in feet MSL")
    parser.add_argument("--winds", action="store_true", help="Apply forecast winds aloft")
    parser.add_argument("--winds-file", type=Path, help="Use a saved winds aloft text product")
    parser.add_argument("--forecast-period", choices=["06", "12", "24"], help="Winds forecast period")
    parser.add_argument("--departure-time", help="Local departure time HH:MM (picks the forecast period)")

    parser.add_argument("--fuel", action="store_true", help="Track fuel on board")
    parser.add_argument("--usable-fuel", type=float, help="Usable fuel in gallons")
    parser.add_argument("--taxi-fuel", type=float, help="Taxi fuel in gallons")
    parser.add_argument("--burn-rate", type=float, help="Fuel burn in gallons per hour")
    parser.add_argument("--reserve", type=float, help="VFR reserve in minutes")

    parser.add_argument("--geodesy", choices=["ellipsoidal", "spherical"], help="Distance model")
    parser.add_argument("--mag-year", type=float, help="Decimal year for magnetic variation")
    parser.add_argument("--no-magvar", action="store_true", help="Do not compute magnetic headings")

    return parser.parse_args(argv)


def resolve_path(value: str) -> Path:
    """Resolve a configured path; relative paths are taken from the project root."""
    path = Path(value)
    return path if path.is_absolute() else get_resource_path(value)


def load_config(path: Path | None) -> ConfigLoader:
    """Load the bundled configuration, with the file at ``path`` merged over it."""
    config = ConfigLoader()
    default = get_config_path("navplan.yaml")
    if default.exists():
        config = ConfigLoader.load(default)
    else:
        logger.info("No bundled configuration, using built-in defaults")

    if path is not None:
        config.merge(ConfigLoader.load(path))
    return config


def build_options(args: argparse.Namespace, config: ConfigLoader) -> PlanningOptions:
    """Combine configuration defaults with command line overrides."""
    forecast_period = args.forecast_period
    if forecast_period is None and args.departure_time:
        forecast_period = get_forecast_period(args.departure_time)

    return PlanningOptions.from_config(
        config,
        enable_winds=True if args.winds else None,
        altitude=args.altitude,
        forecast_period=forecast_period,
        enable_time=True if args.tas is not None else None,
        tas=args.tas,
        enable_fuel=True if args.fuel else None,
        usable_fuel=args.usable_fuel,
        taxi_fuel=args.taxi_fuel,
        burn_rate=args.burn_rate,
        vfr_reserve=args.reserve,
    )


def build_magnetic_model(args: argparse.Namespace, config: ConfigLoader) -> MagneticModel:
    if args.no_magvar or config.get("magnetic.model", "wmm") == "none":
        return NullMagneticModel()
    year = args.mag_year if args.mag_year is not None else config.get("magnetic.year")
    return WorldMagneticModel(year=year)


def build_wind_service(args: argparse.Namespace, config: ConfigLoader) -> WindService | None:
    """Create the winds aloft source, or None when winds are not used."""
    if not args.winds and not config.get("planning.enable_winds", False):
        return None

    stations_file = config.get("winds.stations_file")
    positions = load_station_positions(
        resolve_path(stations_file) if stations_file else get_data_path("wind_stations.yaml")
    )

    if args.winds_file is not None:
        try:
            text = args.winds_file.read_text(encoding="utf-8")
        except OSError as e:
            raise WindServiceError(f"Failed to read winds file: {e}") from e
        winds = build_winds_aloft(parse_winds_aloft(text), positions, {"source": str(args.winds_file)})
        return StaticWindService(winds)

    return AviationWeatherWindService(
        positions,
        url_template=config.get("winds.url", WINDS_ALOFT_URL),
        timeout_s=float(config.get("winds.timeout_s", 10.0)),
        cache_expiry_s=float(config.get("winds.cache_hours", 3)) * 3600,
    )


def format_nav_log(route: Route) -> str:
    """Render a route as a plain-text nav log."""

    def fmt(value: float | None, pattern: str = "{:.0f}") -> str:
        return "-" if value is None else pattern.format(value)

    header = (
        f"{'FROM':<8} {'TO':<8} {'DIST':>6} {'TC':>4} {'TH':>4} {'MH':>4} "
        f"{'WIND':>8} {'GS':>4} {'ETE':>5} {'FOB':>6}"
    )
    lines = [f"Route: {route.expanded_route or ' '.join(p.ident for p in route.points)}", "", header]

    for leg in route.legs:
        wind = "-"
        if leg.wind_direction is not None:
            wind = f"{leg.wind_direction:03d}/{leg.wind_speed}"
        lines.append(
            f"{leg.from_point.ident:<8} {leg.to_point.ident:<8} {leg.distance_nm:>6.1f} "
            f"{fmt(leg.true_course, '{:03.0f}'):>4} {fmt(leg.true_heading, '{:03.0f}'):>4} "
            f"{fmt(leg.mag_heading, '{:03.0f}'):>4} {wind:>8} {fmt(leg.ground_speed):>4} "
            f"{fmt(leg.leg_time_min):>5} {fmt(leg.fob_at_to, '{:.1f}'):>6}"
            + ("  UNREACHABLE" if leg.unreachable else "")
        )

    lines.append("")
    lines.append(f"Total distance: {route.total_distance_nm:.1f} NM")
    if route.total_time_min is not None:
        hours, minutes = divmod(round(route.total_time_min), 60)
        lines.append(f"Total time: {hours}:{minutes:02d}")

    fuel = route.fuel_status
    if fuel is not None:
        verdict = "OK" if fuel.is_sufficient else "INSUFFICIENT"
        lines.append(
            f"Fuel at destination: {fuel.final_fob:.1f} gal "
            f"(reserve {fuel.required_reserve:.1f} gal) {verdict}"
        )

    for error in route.expansion_errors:
        lines.append(f"Note: {error}")

    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success, 2 if waypoints are not in the database)
    """
    args = parse_args(argv)

    logging_config = args.logging_config or get_config_path("logging.yaml")
    initialize_logging(logging_config if logging_config.exists() else None)

    try:
        config = load_config(args.config)
        options = build_options(args, config)

        db = NavDatabase()
        navdata_file = config.get("navdata.file")
        db.load_from_yaml(
            args.navdata or (resolve_path(navdata_file) if navdata_file else get_data_path("navdata.yaml"))
        )

        planner = RoutePlanner(
            db,
            create_geodesy(args.geodesy or config.get("geodesy.model", "ellipsoidal")),
            build_magnetic_model(args, config),
            build_wind_service(args, config),
        )
        route = planner.plan_sync(" ".join(args.route), options)
    except UnresolvedWaypointsError as e:
        print(e.report.format_message(), file=sys.stderr)
        return EXIT_UNRESOLVED
    except (ConfigError, NavDataError, WindServiceError, EmptyRouteError, ValueError) as e:
        logger.error("%s", e)
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR

    print(format_nav_log(route))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
