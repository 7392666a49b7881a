"""Locations of bundled configuration and data files.

Running from a source checkout (or an editable install), the project root is
three levels above this file; ``NAVPLAN_HOME`` overrides it, which is how a
deployment points the planner at its own configuration and data.

Typical usage:
    from navplan.core.resource_path import get_config_path, get_data_path

    config_path = get_config_path("navplan.yaml")
    stations = get_data_path("wind_stations.yaml")
"""

import os
from pathlib import Path

HOME_ENV_VAR = "NAVPLAN_HOME"


def get_project_root() -> Path:
    """Get the project root directory.

    Returns:
        ``$NAVPLAN_HOME`` if set, otherwise the source checkout root.

    Examples:
        >>> get_project_root()
        PosixPath('/Users/user/dev/navplan')
    """
    home = os.environ.get(HOME_ENV_VAR)
    if home:
        return Path(home)
    # src/navplan/core -> project root
    return Path(__file__).parent.parent.parent.parent


def get_resource_path(relative_path: str) -> Path:
    """Get absolute path to a resource file or directory.

    Args:
        relative_path: Relative path from project root (e.g., "config/logging.yaml")

    Returns:
        Absolute path to the resource.
    """
    return get_project_root() / relative_path


def get_config_path(config_file: str) -> Path:
    """Get path to a configuration file.

    Examples:
        >>> str(get_config_path("logging.yaml"))
        '/Users/user/dev/navplan/config/logging.yaml'
    """
    return get_resource_path(f"config/{config_file}")


def get_data_path(data_file: str) -> Path:
    """Get path to a data file.

    Examples:
        >>> str(get_data_path("wind_stations.yaml"))
        '/Users/user/dev/navplan/data/wind_stations.yaml'
    """
    return get_resource_path(f"data/{data_file}")
