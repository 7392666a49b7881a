"""Winds aloft: parsing, interpolation and the wind data service.

Winds come from the NOAA "FB" winds and temperatures aloft forecast, a text
product with one row per reporting station and one coded group per altitude:

    FT  3000    6000    9000   12000   18000   24000  30000  34000  39000
    ALB 2922 3032-03 2931-02 2733-08 2651-20 2663-31 269447 259752 258451

Each group is ``DDSS[TT]``: direction in tens of degrees, speed in knots and
an optional temperature. Above 24000 ft the minus sign of the temperature is
omitted, and ``99xx`` means light and variable.

A wind at an arbitrary position and altitude is estimated from the four
nearest stations: each station's report is interpolated to the altitude, then
the stations are combined with inverse-distance weights, averaging direction
as a vector so 350° and 010° give 360° rather than 180°.
"""

import asyncio
import logging
import math
import re
import time
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from http.client import HTTPException
from pathlib import Path
from typing import Any
from urllib import request
from urllib.error import URLError

import numpy as np
import yaml

from navplan.navigation.geodesy import SphericalGeodesy

logger = logging.getLogger(__name__)

# Standard forecast levels in feet MSL
WIND_LEVELS = (3000, 6000, 9000, 12000, 18000, 24000, 30000, 34000, 39000)

FORECAST_PERIODS = ("06", "12", "24")

WINDS_ALOFT_URL = "https://aviationweather.gov/api/data/windtemp?region=us&level=low&fcst={period}"

CACHE_EXPIRY_S = 3 * 60 * 60

NEAREST_STATION_COUNT = 4

_STATION_LINE = re.compile(r"^\s*([A-Z0-9]{3})\s+(.+)$")

_station_geodesy = SphericalGeodesy()


class WindServiceError(Exception):
    """Raised when winds aloft cannot be fetched or parsed."""


@dataclass(frozen=True)
class WindReport:
    """Forecast wind at one station and level.

    Attributes:
        direction: True direction the wind blows from, degrees
        speed: Speed in knots
        temperature: Temperature in °C, None if not forecast
    """

    direction: int
    speed: int
    temperature: int | None = None


@dataclass(frozen=True)
class WindEstimate:
    """Wind interpolated to a position and altitude.

    Attributes:
        direction: True direction the wind blows from, degrees [0, 360)
        speed: Speed in knots
        temperature: Temperature in °C, None if no nearby station forecasts it
        stations: Codes of the stations the estimate was built from
    """

    direction: int
    speed: int
    temperature: int | None = None
    stations: tuple[str, ...] = ()


@dataclass
class StationWinds:
    """Forecast levels of one reporting station.

    Attributes:
        code: Three character station identifier
        lat: Latitude in degrees
        lon: Longitude in degrees
        levels: Altitude (ft) to WindReport
    """

    code: str
    lat: float
    lon: float
    levels: dict[int, WindReport] = field(default_factory=dict)


@dataclass
class WindsAloft:
    """A winds aloft forecast ready for interpolation.

    Attributes:
        stations: Station code to StationWinds, for stations with a known position
        metadata: Forecast period, source, fetch time
    """

    stations: dict[str, StationWinds] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)


def parse_wind_code(code: str, altitude: int | None = None) -> WindReport | None:
    """Decode one wind group.

    Args:
        code: Wind group ("2922", "3032-03", "269447", "9900")
        altitude: Level of the group, only used in log messages

    Returns:
        WindReport, or None if the group is empty or malformed

    Examples:
        >>> parse_wind_code("3032-03")
        WindReport(direction=300, speed=32, temperature=-3)
        >>> parse_wind_code("269447")
        WindReport(direction=260, speed=94, temperature=-47)
    """
    if not code or len(code) < 4:
        return None

    if code.startswith("99"):
        return WindReport(direction=0, speed=0)

    try:
        tens = int(code[0:2])
        extra_speed = 0
        if 51 <= tens <= 86:
            # 100 kt or more: direction coded +50, speed coded -100
            tens -= 50
            extra_speed = 100
        direction = tens * 10

        if len(code) == 4:
            return WindReport(direction=direction, speed=int(code[2:4]) + extra_speed)

        sign_idx = max(code.find("+"), code.find("-"))
        if sign_idx > 0:
            return WindReport(
                direction=direction,
                speed=int(code[2:sign_idx]) + extra_speed,
                temperature=int(code[sign_idx:]),
            )

        if len(code) == 6:
            # Minus sign omitted at high altitude
            return WindReport(
                direction=direction,
                speed=int(code[2:4]) + extra_speed,
                temperature=-abs(int(code[4:6])),
            )
    except ValueError:
        pass

    logger.warning("Unknown wind code format: %s at %s ft", code, altitude)
    return None


def parse_winds_aloft(text: str) -> dict[str, dict[int, WindReport]]:
    """Parse the winds aloft text product.

    Groups are right aligned under the altitude header, and stations near
    high terrain leave their lowest levels blank, so each group is matched
    to the header altitude whose column it ends closest to.

    Args:
        text: Raw product text

    Returns:
        Station code to {altitude: WindReport}; levels a station does not
        report are absent
    """
    columns: list[tuple[int, int]] = []
    winds: dict[str, dict[int, WindReport]] = {}

    for line in text.splitlines():
        if not line.strip():
            continue

        if line.lstrip().startswith("FT "):
            columns = [(m.end(), int(m.group())) for m in re.finditer(r"\d+", line)]
            continue

        match = _STATION_LINE.match(line)
        if not match or not columns:
            continue

        station = match.group(1)
        levels: dict[int, WindReport] = {}
        for group in re.finditer(r"\S+", line[match.start(2):]):
            end = match.start(2) + group.end()
            altitude = min(columns, key=lambda column: abs(column[0] - end))[1]
            report = parse_wind_code(group.group(), altitude)
            if report is not None:
                levels[altitude] = report
        winds[station] = levels

    return winds


def interpolate_altitude(target: float, levels: Mapping[int, WindReport]) -> WindReport | None:
    """Interpolate a station's forecast to an altitude.

    Below the lowest or above the highest reported level the nearest level is
    used as is. Between levels, speed and temperature are interpolated
    linearly and direction along the shorter arc.

    Args:
        target: Altitude in feet
        levels: Altitude to WindReport

    Returns:
        WindReport, or None if the station reports no level
    """
    if not levels:
        return None

    altitudes = sorted(levels)
    if target in levels:
        return levels[int(target)]
    if target <= altitudes[0]:
        return levels[altitudes[0]]
    if target >= altitudes[-1]:
        return levels[altitudes[-1]]

    lower = max(a for a in altitudes if a < target)
    upper = min(a for a in altitudes if a > target)
    low, high = levels[lower], levels[upper]
    ratio = (target - lower) / (upper - lower)

    speed = low.speed + (high.speed - low.speed) * ratio

    if low.temperature is not None and high.temperature is not None:
        temperature = low.temperature + (high.temperature - low.temperature) * ratio
    else:
        temperature = low.temperature if low.temperature is not None else high.temperature

    dir_low, dir_high = float(low.direction), float(high.direction)
    if abs(dir_high - dir_low) > 180:
        if dir_high > dir_low:
            dir_low += 360
        else:
            dir_high += 360
    direction = (dir_low + (dir_high - dir_low) * ratio) % 360

    return WindReport(
        direction=round(direction) % 360,
        speed=round(speed),
        temperature=round(temperature) if temperature is not None else None,
    )


def find_nearest_stations(
    lat: float, lon: float, stations: Mapping[str, StationWinds], count: int = NEAREST_STATION_COUNT
) -> list[tuple[StationWinds, float]]:
    """Nearest stations that have forecast data, with their distance in NM."""
    distances = [
        (station, _station_geodesy.distance_nm(lat, lon, station.lat, station.lon))
        for station in stations.values()
        if station.levels
    ]
    distances.sort(key=lambda item: item[1])
    return distances[:count]


def interpolate_wind(
    lat: float, lon: float, altitude: float, stations: Mapping[str, StationWinds]
) -> WindEstimate | None:
    """Estimate the wind at a position and altitude.

    Args:
        lat: Latitude in degrees
        lon: Longitude in degrees
        altitude: Altitude in feet MSL
        stations: Forecast stations

    Returns:
        WindEstimate, or None if no station has data
    """
    reports: list[WindReport] = []
    distances: list[float] = []
    codes: list[str] = []

    for station, distance in find_nearest_stations(lat, lon, stations):
        report = interpolate_altitude(altitude, station.levels)
        if report is None:
            continue
        reports.append(report)
        distances.append(distance)
        codes.append(station.code)

    if not reports:
        logger.debug("No wind data near (%.2f, %.2f)", lat, lon)
        return None

    weights = 1.0 / np.maximum(np.array(distances), 1.0)
    speeds = np.array([r.speed for r in reports], dtype=float)
    radians = np.radians([r.direction for r in reports])

    x = np.sum(np.sin(radians) * speeds * weights)
    y = np.sum(np.cos(radians) * speeds * weights)
    direction = (math.degrees(math.atan2(x, y)) + 360) % 360
    speed = float(np.sum(speeds * weights) / np.sum(weights))

    temp_weights = np.array([w for w, r in zip(weights, reports) if r.temperature is not None])
    temperature = None
    if temp_weights.size:
        temps = np.array([r.temperature for r in reports if r.temperature is not None], dtype=float)
        temperature = round(float(np.sum(temps * temp_weights) / np.sum(temp_weights)))

    return WindEstimate(
        direction=round(direction) % 360,
        speed=round(speed),
        temperature=temperature,
        stations=tuple(codes),
    )


def calculate_wind_components(direction: float, speed: float, track: float) -> tuple[float, float]:
    """Split a wind into components along and across a track.

    Args:
        direction: Direction the wind blows from, degrees true
        speed: Wind speed in knots
        track: True course, degrees

    Returns:
        (headwind, crosswind) in knots. Headwind is positive against the
        aircraft, crosswind positive from the right.
    """
    angle = math.radians(direction - track)
    return speed * math.cos(angle), speed * math.sin(angle)


def get_forecast_period(departure_time: str | None = None, now: datetime | None = None) -> str:
    """Pick the forecast period covering a departure.

    Args:
        departure_time: Local departure time "HH:MM", None for "now"
        now: Current time (defaults to datetime.now())

    Returns:
        "06", "12" or "24"
    """
    if not departure_time:
        return "06"

    hours, minutes = (int(part) for part in departure_time.split(":"))
    now = now or datetime.now()

    hours_until = (hours * 60 + minutes - (now.hour * 60 + now.minute)) / 60
    if hours_until < 0:
        hours_until += 24

    if hours_until <= 6:
        return "06"
    if hours_until <= 12:
        return "12"
    return "24"


def load_station_positions(path: str | Path) -> dict[str, tuple[float, float]]:
    """Load wind station positions from YAML.

    Expected layout::

        stations:
          SFO: {lat: 37.62, lon: -122.37}

    Raises:
        WindServiceError: If the file is missing or malformed
    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise WindServiceError(f"Failed to load wind stations from {path}: {e}") from e

    positions: dict[str, tuple[float, float]] = {}
    for code, entry in (data.get("stations") or {}).items():
        try:
            positions[str(code).upper()] = (float(entry["lat"]), float(entry["lon"]))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping invalid wind station %s: %s", code, e)
    return positions


def build_winds_aloft(
    parsed: Mapping[str, Mapping[int, WindReport]],
    positions: Mapping[str, tuple[float, float]],
    metadata: dict[str, Any] | None = None,
) -> WindsAloft:
    """Attach station positions to parsed forecasts.

    Stations without a known position cannot be used for interpolation and
    are left out.
    """
    stations: dict[str, StationWinds] = {}
    for code, levels in parsed.items():
        position = positions.get(code)
        if position is None:
            logger.debug("No position for wind station %s", code)
            continue
        stations[code] = StationWinds(code=code, lat=position[0], lon=position[1], levels=dict(levels))
    return WindsAloft(stations=stations, metadata=dict(metadata or {}))


class WindService(ABC):
    """Asynchronous source of winds aloft forecasts."""

    @abstractmethod
    async def fetch_winds_aloft(self, forecast_period: str = "06") -> WindsAloft:
        """Fetch the forecast for a period.

        Args:
            forecast_period: "06", "12" or "24"

        Returns:
            WindsAloft

        Raises:
            WindServiceError: If the forecast cannot be obtained
        """


class StaticWindService(WindService):
    """Serves one pre-built forecast for every period."""

    def __init__(self, winds: WindsAloft) -> None:
        self.winds = winds
        self.fetch_count = 0

    async def fetch_winds_aloft(self, forecast_period: str = "06") -> WindsAloft:
        self.fetch_count += 1
        return self.winds


class AviationWeatherWindService(WindService):
    """Winds aloft from aviationweather.gov.

    Forecasts are cached per period for three hours. The HTTP request runs in
    a worker thread so the event loop is never blocked.

    Attributes:
        positions: Station code to (lat, lon)
        url_template: Product URL with a ``{period}`` placeholder
        timeout_s: HTTP timeout in seconds
        cache_expiry_s: Cache lifetime in seconds
    """

    def __init__(
        self,
        positions: Mapping[str, tuple[float, float]],
        url_template: str = WINDS_ALOFT_URL,
        timeout_s: float = 10.0,
        cache_expiry_s: float = CACHE_EXPIRY_S,
    ) -> None:
        self.positions = dict(positions)
        self.url_template = url_template
        self.timeout_s = timeout_s
        self.cache_expiry_s = cache_expiry_s
        self._cache: dict[str, tuple[float, WindsAloft]] = {}
        self._lock = asyncio.Lock()

    @classmethod
    def from_station_file(cls, path: str | Path, **kwargs: Any) -> "AviationWeatherWindService":
        """Create the service with station positions loaded from YAML."""
        return cls(load_station_positions(path), **kwargs)

    async def fetch_winds_aloft(self, forecast_period: str = "06") -> WindsAloft:
        if forecast_period not in FORECAST_PERIODS:
            raise WindServiceError(f"Invalid forecast period: {forecast_period}")

        async with self._lock:
            cached = self._cache.get(forecast_period)
            if cached and time.monotonic() - cached[0] < self.cache_expiry_s:
                logger.debug("Using cached %s hr winds aloft", forecast_period)
                return cached[1]

            url = self.url_template.format(period=forecast_period)
            logger.info("Fetching %s hr winds aloft forecast", forecast_period)
            text = await asyncio.to_thread(self._download, url)

            parsed = parse_winds_aloft(text)
            if not parsed:
                raise WindServiceError("Winds aloft product contained no stations")

            winds = build_winds_aloft(
                parsed,
                self.positions,
                {
                    "forecast_period": forecast_period,
                    "source": url,
                    "fetched_at": datetime.now().isoformat(timespec="seconds"),
                    "station_count": len(parsed),
                },
            )
            self._cache[forecast_period] = (time.monotonic(), winds)
            logger.info("Fetched winds aloft for %d stations", len(parsed))
            return winds

    def clear_cache(self) -> None:
        """Drop every cached forecast."""
        self._cache.clear()

    def _download(self, url: str) -> str:
        try:
            with request.urlopen(url, timeout=self.timeout_s) as response:
                return response.read().decode("utf-8", errors="replace")
        except (URLError, OSError, ValueError, HTTPException) as e:
            # ValueError: malformed URL template
            raise WindServiceError(f"Failed to fetch winds aloft: {e}") from e
