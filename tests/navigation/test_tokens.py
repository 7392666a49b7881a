"""Tests for route tokens and the token classifier."""

import pytest

from navplan.navigation.navdata import NavDatabase
from navplan.navigation.tokens import (
    TokenKind,
    classify,
    format_coordinate_token,
    is_coordinate_token,
    parse_coordinate_token,
    tokenize,
)


class TestTokenize:
    """Test tokenize."""

    def test_upper_cases_and_splits(self):
        assert tokenize("  ksfo dct\tSFO\n klax ") == ["KSFO", "DCT", "SFO", "KLAX"]

    def test_empty(self):
        assert tokenize("   ") == []


class TestParseCoordinateToken:
    """Test parse_coordinate_token."""

    def test_defaults_to_north_west(self):
        """Test tokens without hemisphere letters are N/W."""
        coord = parse_coordinate_token("3407/10615")

        assert coord.lat == pytest.approx(34 + 7 / 60)
        assert coord.lon == pytest.approx(-106.25)
        assert coord.ident == "3407/10615"
        assert coord.name == "34°7'N 106°15'W"

    def test_hemisphere_after_each_half(self):
        coord = parse_coordinate_token("4814S/06848E")

        assert coord.lat == pytest.approx(-(48 + 14 / 60))
        assert coord.lon == pytest.approx(68 + 48 / 60)

    def test_hemisphere_letters_at_end(self):
        coord = parse_coordinate_token("4814/06848SE")

        assert coord.lat < 0
        assert coord.lon > 0

    def test_seconds_form(self):
        """Test DDMMSS/DDDMMSS tokens."""
        coord = parse_coordinate_token("340730/1061500")

        assert coord.lat == pytest.approx(34 + 7 / 60 + 30 / 3600)
        assert coord.lon == pytest.approx(-106.25)
        assert coord.name == "34°7'30\"N 106°15'W"

    @pytest.mark.parametrize(
        "token",
        [
            "9107/10615",  # latitude > 90
            "3407/18115",  # longitude > 180
            "3460/10615",  # minutes >= 60
            "3407/10675",  # minutes >= 60
            "340760/1061500",  # seconds >= 60
            "3407N/10615SW",  # two latitude hemispheres
            "KSFO",
            "3407-10615",
        ],
    )
    def test_invalid_tokens(self, token):
        """Test malformed or out-of-range tokens are rejected."""
        assert parse_coordinate_token(token) is None


class TestFormatCoordinateToken:
    """Test format_coordinate_token."""

    def test_format(self):
        assert format_coordinate_token(34.1167, -106.25) == "3407N/10615W"
        assert format_coordinate_token(-48.2333, 68.8) == "4814S/06848E"

    @pytest.mark.parametrize("token", ["3407/10615", "0000/00000", "4559/12201", "8959/17959", "0130/00545"])
    def test_round_trip(self, token):
        """Test parse then format reproduces the position within one minute."""
        coord = parse_coordinate_token(token)
        again = parse_coordinate_token(format_coordinate_token(coord.lat, coord.lon))

        assert again.lat == pytest.approx(coord.lat, abs=1 / 60)
        assert again.lon == pytest.approx(coord.lon, abs=1 / 60)


class TestClassify:
    """Test classify."""

    def test_coordinate(self, db: NavDatabase):
        assert classify("3407/10615", db) is TokenKind.COORDINATE
        assert is_coordinate_token("3407/10615")

    def test_airport(self, db: NavDatabase):
        assert classify("KSFO", db) is TokenKind.AIRPORT

    def test_three_letter_navaid_is_not_an_airport(self, db: NavDatabase):
        """Test a 3-letter token hits the navaid table, not the IATA index."""
        assert classify("SFO", db) is TokenKind.NAVAID

    def test_fix_airway_procedure(self, db: NavDatabase):
        assert classify("WYNDE", db) is TokenKind.FIX
        assert classify("Q822", db) is TokenKind.AIRWAY
        assert classify("WYNDE3", db) is TokenKind.PROCEDURE
        assert classify("PORTE3", db) is TokenKind.PROCEDURE

    def test_unknown(self, db: NavDatabase):
        assert classify("ZZZZZ", db) is TokenKind.UNKNOWN
        assert classify("LAX", db) is TokenKind.UNKNOWN
