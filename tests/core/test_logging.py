"""Tests for structured logging setup."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from specparity.config.models import LoggingConfig, LogOutputConfig
from specparity.core.logging import (
    ConsoleSuppressingFilter,
    _create_handler,
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)
from specparity.core.progress import suppress_console_logs


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    yield
    clear_run_id()
    configure_logging()


def _read_records(path: Path) -> list[dict[str, object]]:
    return [json.loads(line) for line in path.read_text().splitlines() if line.strip()]


class TestRunId:
    """Run correlation IDs."""

    def test_default_is_none(self) -> None:
        clear_run_id()
        assert get_run_id() is None

    def test_generated_id(self) -> None:
        rid = set_run_id()
        assert len(rid) == 12
        assert get_run_id() == rid

    def test_explicit_id(self) -> None:
        assert set_run_id("abc123") == "abc123"
        assert get_run_id() == "abc123"

    def test_clear(self) -> None:
        set_run_id("abc123")
        clear_run_id()
        assert get_run_id() is None


class TestConfigureLogging:
    """configure_logging() handler setup."""

    def test_simple_params_install_one_console_handler(self) -> None:
        configure_logging(level="DEBUG")

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.DEBUG
        assert any(isinstance(f, ConsoleSuppressingFilter) for f in root.handlers[0].filters)

    def test_file_output_writes_json_with_run_id(self, tmp_path: Path) -> None:
        # Given
        log_file = tmp_path / "logs" / "specparity.jsonl"
        config = LoggingConfig(
            level="INFO",
            outputs=[LogOutputConfig(format="json", destination=str(log_file))],
        )
        configure_logging(config=config)
        set_run_id("run-1")

        # When
        get_logger("test").info("file_checked", path="app/models/user.rb")

        # Then
        records = _read_records(log_file)
        assert len(records) == 1
        assert records[0]["event"] == "file_checked"
        assert records[0]["path"] == "app/models/user.rb"
        assert records[0]["run_id"] == "run-1"
        assert records[0]["logger"] == "test"
        assert records[0]["level"] == "info"

    def test_output_level_filters_records(self, tmp_path: Path) -> None:
        log_file = tmp_path / "warn.jsonl"
        config = LoggingConfig(
            level="DEBUG",
            outputs=[LogOutputConfig(format="json", destination=str(log_file), level="WARNING")],
        )
        configure_logging(config=config)

        log = get_logger()
        log.info("quiet")
        log.warning("loud")

        assert [r["event"] for r in _read_records(log_file)] == ["loud"]

    def test_file_handler_has_no_console_filter(self, tmp_path: Path) -> None:
        config = LoggingConfig(
            outputs=[LogOutputConfig(format="json", destination=str(tmp_path / "a.jsonl"))],
        )
        configure_logging(config=config)

        handler = logging.getLogger().handlers[0]
        assert not any(isinstance(f, ConsoleSuppressingFilter) for f in handler.filters)


class TestCreateHandler:
    """Handler factory."""

    def test_stream_destinations(self) -> None:
        assert isinstance(_create_handler("stderr"), logging.StreamHandler)
        assert isinstance(_create_handler("stdout"), logging.StreamHandler)

    def test_file_destination_creates_parent(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "dir" / "out.log"

        handler = _create_handler(str(path))
        try:
            assert isinstance(handler, logging.FileHandler)
            assert path.parent.is_dir()
        finally:
            handler.close()


class TestConsoleSuppressingFilter:
    """Console records are dropped while a live display is active."""

    def test_passes_records_normally(self) -> None:
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        assert ConsoleSuppressingFilter().filter(record) is True

    def test_drops_records_when_suppressed(self) -> None:
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        with suppress_console_logs():
            assert ConsoleSuppressingFilter().filter(record) is False
