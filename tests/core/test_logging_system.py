"""Unit tests for the logging system with platform-aware paths and rotation."""

import logging
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from navplan.core.logging_system import (
    LoggingError,
    get_logger,
    get_platform_log_dir,
    initialize_logging,
    rotate_logs,
    shutdown_logging,
)

FILE_LOGGING_CONFIG = """
level: DEBUG
file:
  enabled: true
  filename: navplan.log
  backup_count: 3
console:
  enabled: false
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
def file_config(tmp_path: Path) -> Path:
    """Logging config with the file handler enabled."""
    path = tmp_path / "logging.yaml"
    path.write_text(FILE_LOGGING_CONFIG)
    return path


class TestPlatformLogDir:
    """Tests for get_platform_log_dir function."""

    def test_macos_log_dir(self) -> None:
        """Test macOS log directory path."""
        with patch("platform.system", return_value="Darwin"):
            log_dir = get_platform_log_dir()
            assert log_dir == Path.home() / "Library" / "Logs" / "NavPlan"

    def test_linux_log_dir(self) -> None:
        """Test Linux log directory path."""
        with patch("platform.system", return_value="Linux"):
            log_dir = get_platform_log_dir()
            assert log_dir == Path.home() / ".navplan" / "logs"

    def test_windows_log_dir(self) -> None:
        """Test Windows log directory path."""
        with patch("platform.system", return_value="Windows"):
            with patch.dict("os.environ", {"APPDATA": "C:/Users/Test/AppData/Roaming"}):
                log_dir = get_platform_log_dir()
                assert "NavPlan" in str(log_dir)
                assert "Logs" in str(log_dir)

    def test_unknown_platform_defaults_to_linux(self) -> None:
        """Test unknown platform defaults to Linux-style path."""
        with patch("platform.system", return_value="FreeBSD"):
            assert get_platform_log_dir() == Path.home() / ".navplan" / "logs"


class TestLogRotation:
    """Tests for log rotation functionality."""

    def test_rotate_logs_no_existing_log(self) -> None:
        """Test rotation when no log file exists - should do nothing."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_dir = Path(tmpdir)
            rotate_logs(log_dir, "test.log", 5)
            assert len(list(log_dir.glob("*"))) == 0

    def test_rotate_logs_multiple_files(self) -> None:
        """Test rotation with multiple existing log files."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_dir = Path(tmpdir)
            (log_dir / "test.log").write_text("current")
            (log_dir / "test.log.1").write_text("previous-1")
            (log_dir / "test.log.2").write_text("previous-2")

            rotate_logs(log_dir, "test.log", 5)

            assert not (log_dir / "test.log").exists()
            assert (log_dir / "test.log.1").read_text() == "current"
            assert (log_dir / "test.log.2").read_text() == "previous-1"
            assert (log_dir / "test.log.3").read_text() == "previous-2"

    def test_rotate_logs_deletes_oldest(self) -> None:
        """Test that oldest log beyond keep_count is deleted."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_dir = Path(tmpdir)
            (log_dir / "test.log").write_text("current")
            for i in range(1, 3):
                (log_dir / f"test.log.{i}").write_text(f"old-{i}")

            rotate_logs(log_dir, "test.log", keep_count=2)

            assert (log_dir / "test.log.1").read_text() == "current"
            assert (log_dir / "test.log.2").read_text() == "old-1"
            assert not (log_dir / "test.log.3").exists()


class TestLoggingInitialization:
    """Tests for logging system initialization."""

    def test_initialize_with_platform_dir(self, file_config: Path) -> None:
        """Test the log file goes to the platform directory."""
        with tempfile.TemporaryDirectory() as tmpdir, patch(
            "navplan.core.logging_system.get_platform_log_dir", return_value=Path(tmpdir)
        ):
            initialize_logging(file_config, use_platform_dir=True)
            get_logger("test").info("Test message")
            shutdown_logging()

            assert (Path(tmpdir) / "navplan.log").exists()

    def test_defaults_do_not_write_files(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that the built-in defaults log to the console only."""
        monkeypatch.chdir(tmp_path)
        initialize_logging()
        get_logger("test").warning("Console only")
        shutdown_logging()

        assert not (tmp_path / "logs").exists()

    def test_initialize_with_missing_config(self) -> None:
        """Test initialization fails with a missing config file."""
        with pytest.raises(LoggingError, match="Logging config file not found"):
            initialize_logging(config_path="/nonexistent/config.yaml")

    def test_initialize_with_invalid_yaml(self, tmp_path: Path) -> None:
        """Test initialization fails with unparsable YAML."""
        path = tmp_path / "bad.yaml"
        path.write_text("level: [unclosed")

        with pytest.raises(LoggingError, match="Failed to load logging config"):
            initialize_logging(path)


class TestLoggerFunctionality:
    """Tests for logger creation and usage."""

    def test_get_logger_caches_loggers(self) -> None:
        """Test that loggers are cached and reused."""
        initialize_logging()

        assert get_logger("test") is get_logger("test")
        assert get_logger("test").name == "test"

        shutdown_logging()

    def test_component_level_from_config(self, tmp_path: Path) -> None:
        """Test per-component levels from the components section."""
        path = tmp_path / "logging.yaml"
        path.write_text("components:\n  navplan.navigation.winds:\n    level: DEBUG\n")

        initialize_logging(path)
        logger = get_logger("navplan.navigation.winds")
        assert logger.level == logging.DEBUG

        logger.setLevel(logging.NOTSET)
        shutdown_logging()

    def test_component_level_reaches_module_loggers(self, tmp_path: Path) -> None:
        """Test component levels apply to loggers made with logging.getLogger."""
        path = tmp_path / "logging.yaml"
        path.write_text(
            "components:\n"
            "  navplan.test.verbose:\n"
            "    level: DEBUG\n"
            "  navplan.test.quiet:\n"
            "    enabled: false\n"
        )
        verbose = logging.getLogger("navplan.test.verbose")
        quiet = logging.getLogger("navplan.test.quiet")

        initialize_logging(path)

        assert verbose.level == logging.DEBUG
        assert verbose.isEnabledFor(logging.DEBUG)
        assert quiet.disabled

        verbose.setLevel(logging.NOTSET)
        quiet.disabled = False
        shutdown_logging()

    def test_logger_writes_to_file(self, file_config: Path) -> None:
        """Test that logger messages are written to the log file."""
        with tempfile.TemporaryDirectory() as tmpdir, patch(
            "navplan.core.logging_system.get_platform_log_dir", return_value=Path(tmpdir)
        ):
            initialize_logging(file_config, use_platform_dir=True)

            logger = get_logger("test")
            logger.info("Test log message")
            logger.debug("Debug message")

            shutdown_logging()

            content = (Path(tmpdir) / "navplan.log").read_text()
            assert "Test log message" in content
            assert "Debug message" in content

    def test_startup_rotates_existing_log(self, file_config: Path) -> None:
        """Test that initialization rotates the log of the previous run."""
        with tempfile.TemporaryDirectory() as tmpdir, patch(
            "navplan.core.logging_system.get_platform_log_dir", return_value=Path(tmpdir)
        ):
            initialize_logging(file_config, use_platform_dir=True)
            get_logger("test").info("First session")
            shutdown_logging()

            initialize_logging(file_config, use_platform_dir=True)
            get_logger("test").info("Second session")
            shutdown_logging()

            assert "First session" in (Path(tmpdir) / "navplan.log.1").read_text()
            assert "Second session" in (Path(tmpdir) / "navplan.log").read_text()
