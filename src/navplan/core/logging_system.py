"""Logging setup for the navplan command line and embedding applications.

Library modules only ever call ``logging.getLogger(__name__)``; this module is
what an application calls once at startup to attach handlers. Configuration
comes from a YAML file (or built-in defaults) and supports a console handler,
a combined log file rotated on every start, and per-component levels. Component
levels are applied at initialization, so they reach the module loggers too.

Platform-specific log locations:
    - macOS: ~/Library/Logs/NavPlan/navplan.log
    - Linux: ~/.navplan/logs/navplan.log
    - Windows: %AppData%/NavPlan/Logs/navplan.log

Typical usage example:
    from navplan.core.logging_system import get_logger, initialize_logging

    initialize_logging("config/logging.yaml")
    log = get_logger("navplan.cli")
    log.info("Planning route %s", route_string)
"""

import logging
import os
import platform
import time
from pathlib import Path
from typing import Any

import yaml

_logging_config: dict[str, Any] = {}
_loggers_cache: dict[str, logging.Logger] = {}
_initialized = False


class LoggingError(Exception):
    """Raised when logging system operations fail."""


def get_platform_log_dir() -> Path:
    """Get platform-specific log directory.

    Returns:
        Path to the platform-appropriate log directory.
    """
    system = platform.system()

    if system == "Darwin":
        return Path.home() / "Library" / "Logs" / "NavPlan"
    elif system == "Windows":
        appdata = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return appdata / "NavPlan" / "Logs"
    else:
        return Path.home() / ".navplan" / "logs"


def rotate_logs(log_dir: Path, log_filename: str = "navplan.log", keep_count: int = 5) -> None:
    """Rotate logs on startup, keeping the last N runs.

    ``navplan.log`` becomes ``navplan.log.1``, older files shift up by one
    and anything beyond ``keep_count`` is deleted.

    Args:
        log_dir: Directory containing log files.
        log_filename: Base name of the log file.
        keep_count: Number of old logs to keep.
    """
    log_file = log_dir / log_filename

    if not log_file.exists():
        return

    oldest_log = log_dir / f"{log_filename}.{keep_count}"
    if oldest_log.exists():
        oldest_log.unlink()

    for i in range(keep_count - 1, 0, -1):
        old_log = log_dir / f"{log_filename}.{i}"
        if old_log.exists():
            old_log.rename(log_dir / f"{log_filename}.{i + 1}")

    log_file.rename(log_dir / f"{log_filename}.1")


def initialize_logging(config_path: str | Path | None = None, use_platform_dir: bool = False) -> None:
    """Initialize logging from YAML configuration.

    Args:
        config_path: Path to logging configuration YAML file.
            If None, the built-in defaults are used.
        use_platform_dir: If True, write the log file to the platform log
            directory instead of the ``log_dir`` from the config.

    Raises:
        LoggingError: If the configuration file cannot be read.

    Examples:
        >>> initialize_logging("config/logging.yaml")
        >>> get_logger("navplan").info("Logging initialized")
    """
    global _logging_config, _initialized

    if config_path:
        config_path = Path(config_path)
        if not config_path.exists():
            raise LoggingError(f"Logging config file not found: {config_path}")

        try:
            with config_path.open("r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise LoggingError(f"Failed to load logging config: {e}") from e

        _logging_config = _merge_defaults(loaded)
    else:
        _logging_config = _get_default_config()

    if use_platform_dir:
        _logging_config["log_dir"] = str(get_platform_log_dir())

    file_config = _logging_config["file"]
    if file_config.get("enabled", False):
        log_dir = Path(_logging_config["log_dir"])
        log_dir.mkdir(parents=True, exist_ok=True)
        rotate_logs(log_dir, file_config["filename"], file_config.get("backup_count", 5))

    _loggers_cache.clear()
    _configure_root_logger()
    _configure_component_loggers()
    _initialized = True


def _get_default_config() -> dict[str, Any]:
    return {
        "level": "INFO",
        "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        "date_format": "%Y-%m-%d %H:%M:%S",
        "log_dir": "logs",
        "file": {
            "enabled": False,
            "filename": "navplan.log",
            "backup_count": 5,
        },
        "console": {
            "enabled": True,
            "level": "WARNING",
        },
        "components": {},
    }


def _merge_defaults(loaded: dict[str, Any]) -> dict[str, Any]:
    config = _get_default_config()
    for key, value in loaded.items():
        if isinstance(value, dict) and isinstance(config.get(key), dict):
            config[key] = {**config[key], **value}
        else:
            config[key] = value
    return config


def _configure_root_logger() -> None:
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, _logging_config.get("level", "INFO")))
    root_logger.handlers.clear()

    console_config = _logging_config["console"]
    if console_config.get("enabled", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(getattr(logging, console_config.get("level", "WARNING")))
        console_handler.setFormatter(_get_formatter())
        root_logger.addHandler(console_handler)

    file_config = _logging_config["file"]
    if file_config.get("enabled", False):
        log_file = Path(_logging_config["log_dir"]) / file_config["filename"]
        # Rotation already happened in initialize_logging
        file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(_get_formatter())
        root_logger.addHandler(file_handler)


def _configure_component_loggers() -> None:
    # Module loggers come from logging.getLogger(__name__), not get_logger
    for name in _logging_config.get("components") or {}:
        _loggers_cache[name] = _apply_component_config(logging.getLogger(name))


def _apply_component_config(logger: logging.Logger) -> logging.Logger:
    component_config = (_logging_config.get("components") or {}).get(logger.name) or {}

    if component_config.get("enabled", True):
        if "level" in component_config:
            logger.setLevel(getattr(logging, component_config["level"]))
    else:
        logger.disabled = True
    return logger


class MillisecondFormatter(logging.Formatter):
    """Formatter that appends milliseconds with a dot separator."""

    def formatTime(self, record, datefmt=None):
        """Format time with milliseconds using dot separator."""
        ct = self.converter(record.created)
        s = time.strftime(datefmt or "%Y-%m-%d %H:%M:%S", ct)
        return f"{s}.{int(record.msecs):03d}"


def _get_formatter() -> logging.Formatter:
    return MillisecondFormatter(
        _logging_config.get("format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
        _logging_config.get("date_format", "%Y-%m-%d %H:%M:%S"),
    )


def get_logger(name: str) -> logging.Logger:
    """Get a configured logger for a component.

    Levels for individual components can be set under ``components`` in the
    logging YAML, e.g. ``components: {navplan.navigation.winds: {level: DEBUG}}``.

    Args:
        name: Logger name.

    Returns:
        Configured logger instance.
    """
    if not _initialized:
        initialize_logging()

    if name in _loggers_cache:
        return _loggers_cache[name]

    logger = _apply_component_config(logging.getLogger(name))
    _loggers_cache[name] = logger
    return logger


def shutdown_logging() -> None:
    """Flush and close all handlers."""
    global _initialized

    logging.shutdown()
    _loggers_cache.clear()
    _initialized = False
