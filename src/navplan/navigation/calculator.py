"""Navigation calculator.

Computes the nav log of a resolved route: per-leg distance and true course,
wind correction, magnetic heading, ground speed, time and fuel.

    TC  true course        geodesic initial bearing of the leg
    WCA wind correction    asin(crosswind / TAS)
    TH  true heading       TC + WCA
    MH  magnetic heading   TH - variation at the leg's start (east positive)

Missing inputs never stop the computation: unknown magnetic variation leaves
MH empty, unavailable winds leave the wind fields empty, and the fuel block
is only produced when every fuel input is present.

Typical usage:
    calculator = NavigationCalculator(create_geodesy(), WorldMagneticModel())
    route = asyncio.run(calculator.calculate_route(waypoints, PlanningOptions()))
    print(route.total_distance_nm)
"""

import asyncio
import logging
import math
from dataclasses import dataclass, field
from typing import Any

from navplan.core.config import ConfigLoader
from navplan.navigation.geodesy import GeodesyModel, normalize_heading
from navplan.navigation.magnetic import MagneticModel
from navplan.navigation.waypoint import Waypoint
from navplan.navigation.winds import (
    FORECAST_PERIODS,
    WindEstimate,
    WindsAloft,
    WindService,
    WindServiceError,
    calculate_wind_components,
    interpolate_wind,
)

logger = logging.getLogger(__name__)

# Offsets of the per-leg wind table around the planned altitude (ft)
WIND_TABLE_OFFSETS = (-2000, -1000, 0, 1000, 2000)


@dataclass(frozen=True)
class PlanningOptions:
    """What to compute and with which aircraft figures.

    Attributes:
        enable_winds: Apply forecast winds (requires altitude)
        altitude: Planned altitude in feet MSL
        forecast_period: Winds aloft forecast period ("06", "12", "24")
        enable_time: Compute ground speed and times (requires tas)
        tas: True airspeed in knots
        enable_fuel: Compute fuel on board (requires time and fuel inputs)
        usable_fuel: Usable fuel at engine start (gal)
        taxi_fuel: Fuel used before takeoff (gal)
        burn_rate: Cruise fuel burn (gal/hr)
        vfr_reserve: Required reserve in minutes
        wind_timeout_s: Longest wait for the winds aloft forecast
    """

    enable_winds: bool = False
    altitude: float | None = None
    forecast_period: str = "06"
    enable_time: bool = False
    tas: float | None = None
    enable_fuel: bool = False
    usable_fuel: float | None = None
    taxi_fuel: float | None = None
    burn_rate: float | None = None
    vfr_reserve: float = 30.0
    wind_timeout_s: float = 10.0

    def __post_init__(self) -> None:
        if self.enable_winds and self.altitude is None:
            raise ValueError("Wind correction requires a planned altitude")
        if self.enable_time and (self.tas is None or self.tas <= 0):
            raise ValueError("Time estimates require a positive true airspeed")
        if self.forecast_period not in FORECAST_PERIODS:
            raise ValueError(f"Invalid forecast period: {self.forecast_period}")

    @property
    def fuel_inputs_complete(self) -> bool:
        """True if fuel on board can be tracked."""
        return (
            self.enable_fuel
            and self.enable_time
            and self.usable_fuel is not None
            and self.taxi_fuel is not None
            and self.burn_rate is not None
            and self.burn_rate > 0
        )

    @classmethod
    def from_config(cls, config: ConfigLoader, **overrides: Any) -> "PlanningOptions":
        """Build options from the ``planning`` section of a configuration.

        Keys left empty (None) in the configuration or the overrides keep the
        field default.

        Args:
            config: Loaded configuration
            **overrides: Values taking precedence over the configuration

        Returns:
            PlanningOptions

        Raises:
            ConfigError: If ``planning`` is present but is not a section
            ValueError: If the resulting combination is inconsistent
        """
        section = config.get_section("planning") if config.get("planning") else {}
        values = {
            key: value for key, value in section.items() if key in cls.__dataclass_fields__ and value is not None
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        if "forecast_period" in values:
            values["forecast_period"] = f"{int(values['forecast_period']):02d}"
        return cls(**values)


@dataclass(frozen=True)
class RoutePoint:
    """Waypoint with the magnetic variation computed for this route.

    Attributes:
        waypoint: Resolved waypoint
        mag_var: Magnetic variation in degrees (east positive), None if unknown
    """

    waypoint: Waypoint
    mag_var: float | None = None

    @property
    def ident(self) -> str:
        return self.waypoint.ident

    @property
    def lat(self) -> float:
        return self.waypoint.lat

    @property
    def lon(self) -> float:
        return self.waypoint.lon


@dataclass(frozen=True)
class Leg:
    """One leg of the nav log.

    Distances are in nautical miles, angles in degrees true unless noted,
    speeds in knots, times in minutes and fuel in gallons. Headwind is
    positive against the aircraft, crosswind positive from the right.
    """

    from_point: RoutePoint
    to_point: RoutePoint
    distance_nm: float
    true_course: float
    true_heading: float
    mag_heading: float | None = None
    mag_var: float | None = None
    wind_direction: int | None = None
    wind_speed: int | None = None
    wind_temperature: int | None = None
    headwind: float | None = None
    crosswind: float | None = None
    wca: float | None = None
    ground_speed: float | None = None
    leg_time_min: float | None = None
    unreachable: bool = False
    fuel_burn: float | None = None
    fob_at_to: float | None = None
    fob_time_hr: float | None = None
    winds_at_altitudes: dict[int, WindEstimate] = field(default_factory=dict)


@dataclass(frozen=True)
class FuelStatus:
    """Fuel summary of a route (gallons, minutes, gal/hr)."""

    usable_fuel: float
    taxi_fuel: float
    burn_rate: float
    vfr_reserve: float
    required_reserve: float
    final_fob: float
    is_sufficient: bool


@dataclass(frozen=True)
class Route:
    """A computed route.

    Attributes:
        points: Waypoints with their magnetic variation
        legs: One leg per consecutive pair of points
        total_distance_nm: Sum of leg distances
        total_time_min: Sum of leg times, None when times are not computed
        fuel_status: Fuel summary, None when fuel is not computed
        wind_metadata: Metadata of the forecast used, None without winds
        expanded_route: Route string after airway/procedure expansion
        expansion_errors: Advisory expansion problems
    """

    points: tuple[RoutePoint, ...]
    legs: tuple[Leg, ...]
    total_distance_nm: float
    total_time_min: float | None = None
    fuel_status: FuelStatus | None = None
    wind_metadata: dict[str, Any] | None = None
    expanded_route: str | None = None
    expansion_errors: tuple[str, ...] = ()

    @property
    def waypoints(self) -> list[Waypoint]:
        """Resolved waypoints in route order."""
        return [point.waypoint for point in self.points]


class NavigationCalculator:
    """Turns resolved waypoints into a Route.

    The calculator holds no per-route state, so concurrent calls with
    different inputs are independent.
    """

    def __init__(
        self,
        geodesy: GeodesyModel,
        magnetic_model: MagneticModel,
        wind_service: WindService | None = None,
    ) -> None:
        """Initialize the calculator.

        Args:
            geodesy: Distance and bearing model
            magnetic_model: Source of magnetic variation
            wind_service: Winds aloft source, None to plan without winds
        """
        self.geodesy = geodesy
        self.magnetic_model = magnetic_model
        self.wind_service = wind_service

    async def calculate_route(self, waypoints: list[Waypoint], options: PlanningOptions | None = None) -> Route:
        """Compute legs, totals and fuel for a route.

        Args:
            waypoints: Resolved waypoints in route order
            options: Planning options (defaults: distances and courses only)

        Returns:
            Route
        """
        options = options or PlanningOptions()
        points = tuple(self._route_point(waypoint) for waypoint in waypoints)

        winds = await self._fetch_winds(options)

        fuel_enabled = options.fuel_inputs_complete
        if options.enable_fuel and not fuel_enabled:
            logger.info("Fuel planning skipped: time, usable fuel, taxi fuel and burn rate are required")

        fob = options.usable_fuel - options.taxi_fuel if fuel_enabled else None

        legs: list[Leg] = []
        for from_point, to_point in zip(points, points[1:]):
            leg = self._compute_leg(from_point, to_point, options, winds, fob)
            if leg.fob_at_to is not None:
                fob = leg.fob_at_to
            legs.append(leg)

        total_distance = sum(leg.distance_nm for leg in legs)
        total_time = sum(leg.leg_time_min or 0.0 for leg in legs) if options.enable_time else None

        fuel_status = None
        if fuel_enabled:
            required_reserve = options.vfr_reserve / 60 * options.burn_rate
            fuel_status = FuelStatus(
                usable_fuel=options.usable_fuel,
                taxi_fuel=options.taxi_fuel,
                burn_rate=options.burn_rate,
                vfr_reserve=options.vfr_reserve,
                required_reserve=required_reserve,
                final_fob=fob,
                is_sufficient=fob >= required_reserve,
            )
            if not fuel_status.is_sufficient:
                logger.warning(
                    "Fuel on board at destination %.1f gal is below the %.1f gal reserve",
                    fob,
                    required_reserve,
                )

        logger.debug("Calculated %d legs, %.1f NM", len(legs), total_distance)
        return Route(
            points=points,
            legs=tuple(legs),
            total_distance_nm=total_distance,
            total_time_min=total_time,
            fuel_status=fuel_status,
            wind_metadata=winds.metadata if winds else None,
        )

    def _route_point(self, waypoint: Waypoint) -> RoutePoint:
        try:
            mag_var = self.magnetic_model.declination(waypoint.lat, waypoint.lon)
        except (ArithmeticError, ValueError) as e:
            logger.warning("Magnetic model error for %s: %s", waypoint.ident, e)
            mag_var = None

        if mag_var is None:
            logger.warning(
                "No magnetic variation for %s at %.4f, %.4f", waypoint.ident, waypoint.lat, waypoint.lon
            )
        return RoutePoint(waypoint=waypoint, mag_var=mag_var)

    async def _fetch_winds(self, options: PlanningOptions) -> WindsAloft | None:
        """Fetch the forecast once; any failure turns winds off for this route."""
        if not options.enable_winds:
            return None
        if self.wind_service is None:
            logger.warning("Wind correction requested but no wind service is configured")
            return None

        try:
            return await asyncio.wait_for(
                self.wind_service.fetch_winds_aloft(options.forecast_period),
                timeout=options.wind_timeout_s,
            )
        except asyncio.TimeoutError:
            logger.warning("Winds aloft fetch timed out after %.0f s, planning without winds", options.wind_timeout_s)
        except WindServiceError as e:
            logger.warning("Winds aloft unavailable, planning without winds: %s", e)
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.warning("Wind service error, planning without winds: %s", e, exc_info=True)
        return None

    def _compute_leg(
        self,
        from_point: RoutePoint,
        to_point: RoutePoint,
        options: PlanningOptions,
        winds: WindsAloft | None,
        fob: float | None,
    ) -> Leg:
        inverse = self.geodesy.inverse(from_point.lat, from_point.lon, to_point.lat, to_point.lon)
        distance = inverse.distance_nm
        true_course = inverse.initial_bearing
        values: dict[str, Any] = {}

        true_heading = true_course
        headwind = 0.0
        if winds is not None:
            mid_lat = (from_point.lat + to_point.lat) / 2
            mid_lon = (from_point.lon + to_point.lon) / 2

            wind = interpolate_wind(mid_lat, mid_lon, options.altitude, winds.stations)
            if wind is None:
                logger.warning("No wind data for leg %s-%s", from_point.ident, to_point.ident)
            else:
                headwind, crosswind = calculate_wind_components(wind.direction, wind.speed, true_course)
                values.update(
                    wind_direction=wind.direction,
                    wind_speed=wind.speed,
                    wind_temperature=wind.temperature,
                    headwind=headwind,
                    crosswind=crosswind,
                )
                if options.tas:
                    wca = math.degrees(math.asin(min(abs(crosswind) / options.tas, 1.0)))
                    wca = math.copysign(wca, crosswind) if crosswind else 0.0
                    values["wca"] = wca
                    true_heading = true_course + wca

            values["winds_at_altitudes"] = self._wind_table(mid_lat, mid_lon, options.altitude, winds)

        true_heading = normalize_heading(true_heading)
        mag_heading = None
        if from_point.mag_var is not None:
            mag_heading = normalize_heading(true_heading - from_point.mag_var)

        if options.enable_time:
            ground_speed = max(options.tas - headwind, 0.0)
            if ground_speed > 0:
                leg_time = distance / ground_speed * 60
            else:
                leg_time = 0.0
                values["unreachable"] = True
                logger.warning(
                    "Leg %s-%s unreachable: headwind %.0f kt at TAS %.0f kt",
                    from_point.ident,
                    to_point.ident,
                    headwind,
                    options.tas,
                )
            values.update(ground_speed=ground_speed, leg_time_min=leg_time)

            if fob is not None:
                burn = options.burn_rate * leg_time / 60
                fob_at_to = fob - burn
                values.update(
                    fuel_burn=burn,
                    fob_at_to=fob_at_to,
                    fob_time_hr=fob_at_to / options.burn_rate,
                )

        return Leg(
            from_point=from_point,
            to_point=to_point,
            distance_nm=distance,
            true_course=true_course,
            true_heading=true_heading,
            mag_heading=mag_heading,
            mag_var=from_point.mag_var,
            **values,
        )

    @staticmethod
    def _wind_table(lat: float, lon: float, altitude: float, winds: WindsAloft) -> dict[int, WindEstimate]:
        table: dict[int, WindEstimate] = {}
        for offset in WIND_TABLE_OFFSETS:
            level = int(altitude) + offset
            if level <= 0:
                continue
            estimate = interpolate_wind(lat, lon, level, winds.stations)
            if estimate is not None:
                table[level] = estimate
        return table
