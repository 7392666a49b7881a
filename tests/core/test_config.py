"""Tests for the YAML configuration loader."""

from pathlib import Path

import pytest

from navplan.core.config import ConfigError, ConfigLoader
from navplan.core.resource_path import get_config_path, get_data_path, get_project_root


class TestConfigLoader:
    """Test ConfigLoader."""

    def test_load_and_get_with_dot_notation(self, tmp_path: Path) -> None:
        """Test nested values are reachable with dot notation."""
        path = tmp_path / "navplan.yaml"
        path.write_text("planning:\n  tas: 110\n  vfr_reserve: 45\ngeodesy:\n  model: spherical\n")

        config = ConfigLoader.load(path)

        assert config.get("planning.tas") == 110
        assert config.get("geodesy.model") == "spherical"
        assert config.get("planning.missing", default=7) == 7
        assert config.get("planning.tas.deeper") is None

    def test_empty_file_gives_empty_config(self, tmp_path: Path) -> None:
        """Test an empty YAML file loads as an empty configuration."""
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert ConfigLoader.load(path).get("planning") is None

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        """Test loading a missing file."""
        with pytest.raises(ConfigError, match="not found"):
            ConfigLoader.load(tmp_path / "nope.yaml")

    def test_invalid_yaml_raises(self, tmp_path: Path) -> None:
        """Test loading malformed YAML."""
        path = tmp_path / "bad.yaml"
        path.write_text("planning: [unclosed")

        with pytest.raises(ConfigError, match="Failed to load"):
            ConfigLoader.load(path)

    def test_non_mapping_root_raises(self, tmp_path: Path) -> None:
        """Test a YAML list at the root is rejected."""
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigError, match="mapping"):
            ConfigLoader.load(path)

    def test_get_section(self) -> None:
        """Test section access and its errors."""
        config = ConfigLoader({"planning": {"tas": 100}, "name": "x"})

        assert config.get_section("planning") == {"tas": 100}
        with pytest.raises(ConfigError, match="not found"):
            config.get_section("winds")
        with pytest.raises(ConfigError, match="not a section"):
            config.get_section("name")

    def test_merge_overrides_nested_values(self) -> None:
        """Test merging keeps untouched keys of nested sections."""
        config = ConfigLoader({"planning": {"tas": 100, "vfr_reserve": 30}, "geodesy": {"model": "ellipsoidal"}})
        config.merge(ConfigLoader({"planning": {"tas": 120}}))

        assert config.get("planning.tas") == 120
        assert config.get("planning.vfr_reserve") == 30
        assert config.get("geodesy.model") == "ellipsoidal"


class TestBundledConfiguration:
    """Test the configuration files shipped with the project."""

    def test_bundled_config_loads(self) -> None:
        """Test config/navplan.yaml is valid and has the expected sections."""
        config = ConfigLoader.load(get_config_path("navplan.yaml"))

        assert config.get("geodesy.model") == "ellipsoidal"
        assert config.get("planning.vfr_reserve") == 30
        assert "{period}" in config.get("winds.url")

    def test_resource_paths(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """Test NAVPLAN_HOME relocates configuration and data."""
        monkeypatch.setenv("NAVPLAN_HOME", str(tmp_path))

        assert get_project_root() == tmp_path
        assert get_config_path("navplan.yaml") == tmp_path / "config" / "navplan.yaml"
        assert get_data_path("wind_stations.yaml") == tmp_path / "data" / "wind_stations.yaml"
