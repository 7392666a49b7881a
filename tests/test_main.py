"""Tests for the command line entry point.

These run against the sample snapshot in data/ and never touch the network:
winds come from a saved text product.
"""

import logging
from pathlib import Path

import pytest

from navplan.main import EXIT_ERROR, EXIT_OK, EXIT_UNRESOLVED, main, parse_args

WINDS_PRODUCT = """\
FT  3000    6000    9000   12000   18000   24000  30000  34000  39000
SFO 3011 3113+08 3012+02 2908-03 2718-16 2727-27 273742 274052 274661
SBA 2707 2810+10 2812+04 2715-01 2625-14 2634-26 264441 265051 265661
LAX 2606 2709+11 2711+05 2714-01 2624-14 2632-26 263941 264851 265461
"""


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Put back the root handlers pytest installed."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def winds_file(tmp_path: Path) -> Path:
    path = tmp_path / "fb.txt"
    path.write_text(WINDS_PRODUCT)
    return path


class TestParseArgs:
    """Test parse_args."""

    def test_route_words_are_collected(self):
        args = parse_args(["KSFO", "SFO", "V25", "MOVER", "KLAX"])

        assert args.route == ["KSFO", "SFO", "V25", "MOVER", "KLAX"]
        assert args.tas is None
        assert not args.winds

    def test_invalid_forecast_period(self):
        with pytest.raises(SystemExit):
            parse_args(["KSFO", "--forecast-period", "03"])


class TestMain:
    """Test main."""

    def test_nav_log(self, capsys):
        assert main(["KSFO SFO V25 MOVER KLAX", "--no-magvar"]) == EXIT_OK

        out = capsys.readouterr().out
        assert "Route: KSFO SFO OSI SNS MOVER KLAX" in out
        assert "Total distance:" in out
        assert "Total time" not in out

    def test_time_and_fuel(self, capsys):
        code = main(
            ["KSFO", "KLAX", "--tas", "120", "--fuel", "--usable-fuel", "53", "--taxi-fuel", "1.4", "--burn-rate", "9"]
        )

        out = capsys.readouterr().out
        assert code == EXIT_OK
        assert "Total time: 2:" in out
        assert "Fuel at destination:" in out
        assert "OK" in out

    def test_winds_from_file(self, capsys, winds_file: Path):
        code = main(
            ["KSFO KLAX", "--tas", "110", "--altitude", "6000", "--winds", "--winds-file", str(winds_file)]
        )

        out = capsys.readouterr().out
        assert code == EXIT_OK
        assert "/" in out.splitlines()[3]

    def test_unresolved_waypoints(self, capsys):
        assert main(["KSFO ZZZZZ KLAX"]) == EXIT_UNRESOLVED

        err = capsys.readouterr().err
        assert "ERROR: WAYPOINT(S) NOT IN DATABASE" in err
        assert "OCEANIC/INTERNATIONAL: ZZZZZ" in err

    def test_empty_route(self, capsys):
        assert main(["DCT"]) == EXIT_ERROR

        assert "no waypoints" in capsys.readouterr().err

    def test_missing_navdata(self, capsys, tmp_path: Path):
        assert main(["KSFO KLAX", "--navdata", str(tmp_path / "missing.yaml")]) == EXIT_ERROR

        assert "Navigation data not found" in capsys.readouterr().err

    def test_inconsistent_options(self, capsys):
        """Test winds without an altitude are rejected."""
        assert main(["KSFO KLAX", "--winds"]) == EXIT_ERROR

        assert "altitude" in capsys.readouterr().err

    def test_custom_navdata(self, capsys, tmp_path: Path):
        navdata = tmp_path / "navdata.yaml"
        navdata.write_text(
            "airports:\n"
            "  - {icao: KAAA, name: Alpha, lat: 40.0, lon: -100.0}\n"
            "  - {icao: KBBB, name: Bravo, lat: 41.0, lon: -100.0}\n"
        )

        code = main(["KAAA KBBB", "--navdata", str(navdata), "--geodesy", "spherical", "--no-magvar"])

        out = capsys.readouterr().out
        assert code == EXIT_OK
        assert "Total distance: 60.0 NM" in out

    def test_config_overlays_bundled_defaults(self, capsys, tmp_path: Path):
        """Test a partial --config keeps the bundled navigation data."""
        config = tmp_path / "navplan.yaml"
        config.write_text("planning:\n  enable_time: true\n  tas: 120\n")

        code = main(["KSFO SFO V25 MOVER KLAX", "--config", str(config), "--no-magvar"])

        out = capsys.readouterr().out
        assert code == EXIT_OK
        assert "Route: KSFO SFO OSI SNS MOVER KLAX" in out
        assert "Total time:" in out
