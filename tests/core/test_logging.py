"""Tests for structured logging."""

import json
import logging
from pathlib import Path

import structlog

from semtag.config.models import LoggingConfig, LogOutputConfig
from semtag.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)


class TestRunIdCorrelation:
    """Run ID context variable tests."""

    def setup_method(self) -> None:
        clear_run_id()

    def test_given_run_id_when_set_then_can_retrieve(self) -> None:
        # Given
        run_id = "batch-123"

        # When
        result = set_run_id(run_id)

        # Then
        assert result == run_id
        assert get_run_id() == run_id

    def test_given_no_id_when_set_then_generates_short_hex(self) -> None:
        rid = set_run_id()
        assert len(rid) == 12

    def test_given_set_id_when_clear_then_removes_id(self) -> None:
        # Given
        set_run_id("to-clear")

        # When
        clear_run_id()

        # Then
        assert get_run_id() is None


class TestConfigureLogging:
    def teardown_method(self) -> None:
        clear_run_id()
        logging.getLogger().handlers.clear()
        structlog.reset_defaults()

    def test_given_json_file_output_when_logging_then_writes_json_with_run_id(self, tmp_path: Path) -> None:
        # Given
        log_file = tmp_path / "logs" / "semtag.jsonl"
        configure_logging(
            config=LoggingConfig(
                level="DEBUG",
                outputs=[LogOutputConfig(format="json", destination=str(log_file))],
            )
        )
        set_run_id("run-42")

        # When
        get_logger("test").info("question_analyzed", question_id="q1")
        for handler in logging.getLogger().handlers:
            handler.flush()

        # Then
        lines = log_file.read_text().strip().splitlines()
        record = json.loads(lines[-1])
        assert record["event"] == "question_analyzed"
        assert record["question_id"] == "q1"
        assert record["run_id"] == "run-42"
        assert record["level"] == "info"

    def test_given_warning_level_when_info_logged_then_dropped(self, tmp_path: Path) -> None:
        # Given
        log_file = tmp_path / "semtag.log"
        configure_logging(
            config=LoggingConfig(
                level="WARNING",
                outputs=[LogOutputConfig(format="json", destination=str(log_file))],
            )
        )

        # When
        get_logger().info("ignored_event")
        get_logger().warning("kept_event")
        for handler in logging.getLogger().handlers:
            handler.flush()

        # Then
        content = log_file.read_text()
        assert "ignored_event" not in content
        assert "kept_event" in content

    def test_given_simple_params_when_configured_then_single_console_handler(self) -> None:
        configure_logging(level="INFO")
        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.StreamHandler)
