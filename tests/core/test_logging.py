"""Tests for structured logging."""

import json
import logging
from pathlib import Path

import structlog

from metadiff.config.models import LoggingConfig, LogOutputConfig
from metadiff.core.logging import (
    clear_run_id,
    configure_logging,
    get_run_id,
    set_run_id,
)


class TestRunIdCorrelation:
    """Run ID context variable tests."""

    def setup_method(self) -> None:
        clear_run_id()

    def test_given_run_id_when_set_then_can_retrieve(self) -> None:
        # When
        result = set_run_id("run-123")

        # Then
        assert result == "run-123"
        assert get_run_id() == "run-123"

    def test_given_no_id_when_set_then_generates_short_uuid(self) -> None:
        rid = set_run_id()
        assert len(rid) == 12

    def test_given_set_id_when_clear_then_removes_id(self) -> None:
        set_run_id("to-clear")
        clear_run_id()
        assert get_run_id() is None


class TestLoggingConfiguration:
    """Logging configuration tests."""

    def setup_method(self) -> None:
        """Reset structlog and stdlib logging before each test."""
        structlog.reset_defaults()
        logging.getLogger().handlers.clear()
        clear_run_id()

    def teardown_method(self) -> None:
        for handler in logging.getLogger().handlers:
            handler.close()
        logging.getLogger().handlers.clear()
        clear_run_id()

    def test_given_json_file_output_when_log_then_valid_json(self, tmp_path: Path) -> None:
        """JSON format produces valid JSON with the run id attached."""
        # Given
        log_file = tmp_path / "run.log"
        config = LoggingConfig(
            level="INFO",
            outputs=[LogOutputConfig(format="json", destination=str(log_file))],
        )
        configure_logging(config=config)
        set_run_id("abc123")

        # When
        structlog.get_logger("test").info("module_diffed", module="a.dll")

        # Then
        data = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert data["event"] == "module_diffed"
        assert data["module"] == "a.dll"
        assert data["run_id"] == "abc123"
        assert data["level"] == "info"
        assert "timestamp" in data

    def test_given_config_object_when_configure_then_takes_precedence(
        self, tmp_path: Path
    ) -> None:
        """LoggingConfig object takes precedence over simple params."""
        log_file = tmp_path / "test.log"
        config = LoggingConfig(
            level="DEBUG",
            outputs=[LogOutputConfig(format="json", destination=str(log_file))],
        )

        configure_logging(config=config, json_format=False, level="ERROR")
        structlog.get_logger().debug("debug msg")

        assert "debug msg" in log_file.read_text()

    def test_given_multi_output_config_when_configure_then_levels_per_output(
        self, tmp_path: Path
    ) -> None:
        """Each output filters by its own level."""
        debug_file = tmp_path / "debug.log"
        info_file = tmp_path / "info.log"
        config = LoggingConfig(
            level="DEBUG",
            outputs=[
                LogOutputConfig(format="json", destination=str(info_file), level="INFO"),
                LogOutputConfig(format="json", destination=str(debug_file)),
            ],
        )

        configure_logging(config=config)
        logger = structlog.get_logger()
        logger.debug("debug only")
        logger.info("info msg")

        info_content = info_file.read_text()
        assert "info msg" in info_content
        assert "debug only" not in info_content
        debug_content = debug_file.read_text()
        assert "debug only" in debug_content
        assert "info msg" in debug_content

    def test_given_default_level_when_info_logged_then_suppressed(self, tmp_path: Path) -> None:
        log_file = tmp_path / "quiet.log"
        config = LoggingConfig(outputs=[LogOutputConfig(destination=str(log_file))])

        configure_logging(config=config)
        logger = structlog.get_logger()
        logger.info("chatter")
        logger.warning("pair_failed")

        content = log_file.read_text()
        assert "chatter" not in content
        assert "pair_failed" in content

    def test_given_named_logger_when_log_then_name_bound(self, tmp_path: Path) -> None:
        log_file = tmp_path / "named.log"
        config = LoggingConfig(
            level="INFO",
            outputs=[LogOutputConfig(format="json", destination=str(log_file))],
        )

        configure_logging(config=config)
        structlog.get_logger("metadiff.diff").info("hello")

        data = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert data["logger"] == "metadiff.diff"
