"""Tests for the route planner pipeline."""

import asyncio

import pytest

from navplan.core.resource_path import get_data_path
from navplan.navigation.calculator import PlanningOptions
from navplan.navigation.geodesy import EllipsoidalGeodesy
from navplan.navigation.magnetic import NullMagneticModel
from navplan.navigation.navdata import NavDatabase
from navplan.navigation.planner import (
    EmptyRouteError,
    RoutePlanner,
    UnresolvedWaypointsError,
    dedupe_consecutive,
)
from navplan.navigation.waypoint import Airport, Navaid


@pytest.fixture
def planner(db: NavDatabase, ellipsoidal: EllipsoidalGeodesy) -> RoutePlanner:
    return RoutePlanner(db, ellipsoidal, NullMagneticModel())


class TestDedupeConsecutive:
    """Test dedupe_consecutive."""

    def test_drops_repeats(self):
        assert dedupe_consecutive(["A", "A", "B", "A", "A"]) == ["A", "B", "A"]

    def test_empty(self):
        assert dedupe_consecutive([]) == []


class TestRoutePlanner:
    """Test RoutePlanner."""

    def test_airway_route(self, planner: RoutePlanner):
        """Test "A Q822 B" plans A, Y, B."""
        route = planner.plan_sync("A Q822 B")

        assert route.expanded_route == "A Y B"
        assert [point.ident for point in route.points] == ["A", "Y", "B"]
        assert len(route.legs) == 2
        assert route.expansion_errors == ()

    def test_airport_to_airport(self, planner: RoutePlanner):
        route = planner.plan_sync("ksfo dct klax")

        assert route.total_distance_nm == pytest.approx(294, abs=2)
        assert route.legs[0].mag_heading is None

    def test_three_letter_tokens(self, planner: RoutePlanner):
        """Test SFO is the navaid and LAX falls back to the airport."""
        route = planner.plan_sync("SFO LAX")

        assert isinstance(route.waypoints[0], Navaid)
        assert isinstance(route.waypoints[1], Airport)

    def test_repeated_fix_is_one_waypoint(self, planner: RoutePlanner):
        route = planner.plan_sync("KSFO KSFO DCT OSI OSI")

        assert route.expanded_route == "KSFO OSI"
        assert len(route.legs) == 1

    def test_procedure_route(self, planner: RoutePlanner):
        route = planner.plan_sync("KOAK NEARS WYNDE3 KLAX")

        assert route.expanded_route == "KOAK NEARS SOUTH WYNDE FIXER HUNDA KLAX"

    def test_unresolved_waypoints(self, planner: RoutePlanner):
        with pytest.raises(UnresolvedWaypointsError) as excinfo:
            planner.plan_sync("KSFO ZZZZZ N45A KLAX")

        report = excinfo.value.report
        assert report.oceanic == ["ZZZZZ"]
        assert report.nat_tracks == ["N45A"]
        assert str(excinfo.value).startswith("ERROR: WAYPOINT(S) NOT IN DATABASE")

    @pytest.mark.parametrize("route", ["", "   ", "DCT", "DCT DCT"])
    def test_empty_route(self, planner: RoutePlanner, route):
        with pytest.raises(EmptyRouteError):
            planner.plan_sync(route)

    def test_empty_route_is_a_value_error(self, planner: RoutePlanner):
        with pytest.raises(ValueError):
            planner.plan_sync("")

    def test_expansion_errors_are_advisory(self, db: NavDatabase, planner: RoutePlanner):
        """Test a failed airway keeps its tokens and reports the problem."""
        # OAK is both an airway here and the IATA code of KOAK
        db.add_airway("OAK", ["X", "A"])

        route = planner.plan_sync("KSFO OAK KLAX")

        assert route.expanded_route == "KSFO OAK KLAX"
        assert route.waypoints[1].ident == "KOAK"
        assert len(route.expansion_errors) == 1
        assert "KSFO not on OAK" in route.expansion_errors[0]

    def test_options_flow_to_calculator(self, planner: RoutePlanner):
        route = planner.plan_sync("A Q822 B", PlanningOptions(enable_time=True, tas=120))

        assert route.total_time_min == pytest.approx(route.total_distance_nm / 2, rel=1e-9)

    def test_plan_is_awaitable(self, planner: RoutePlanner):
        async def plan_two():
            return await asyncio.gather(planner.plan("A Q822 B"), planner.plan("KSFO KLAX"))

        first, second = asyncio.run(plan_two())

        assert first.expanded_route == "A Y B"
        assert second.expanded_route == "KSFO KLAX"


class TestBundledSnapshot:
    """Test planning against the sample snapshot in data/."""

    @pytest.fixture
    def sample_planner(self, ellipsoidal: EllipsoidalGeodesy) -> RoutePlanner:
        nav = NavDatabase()
        nav.load_from_yaml(get_data_path("navdata.yaml"))
        return RoutePlanner(nav, ellipsoidal, NullMagneticModel())

    def test_victor_airway(self, sample_planner: RoutePlanner):
        route = sample_planner.plan_sync("KSFO SFO V25 MOVER KLAX")

        assert route.expanded_route == "KSFO SFO OSI SNS MOVER KLAX"

    def test_star_with_transition(self, sample_planner: RoutePlanner):
        route = sample_planner.plan_sync("KSBA RZS WYNDE3 KLAX")

        assert route.expanded_route == "KSBA RZS WYNDE FIXER SADDE HUNDA KLAX"
