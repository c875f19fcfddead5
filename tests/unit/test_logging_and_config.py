"""Unit tests for logging helpers and settings parsing."""

from __future__ import annotations

import json
import logging

import pytest
from pydantic import ValidationError

from contentops.config import Settings
from contentops.core.logging import (
    ROOT_LOGGER_NAME,
    JSONExtrasFormatter,
    get_workflow_logger,
    setup_logging,
)


def _record(message: str = "Phase started", **extras: object) -> logging.LogRecord:
    record = logging.LogRecord(
        "contentops.workflow", logging.INFO, __file__, 1, message, None, None
    )
    for key, value in extras.items():
        setattr(record, key, value)
    return record


def test_formatter_appends_extras_as_json() -> None:
    formatter = JSONExtrasFormatter(datefmt="%Y-%m-%d")

    line = formatter.format(_record(phase="interlinking", progress=65.0))

    prefix, _, extras = line.partition(" {")
    assert prefix.endswith(" | INFO     | contentops.workflow | Phase started")
    assert json.loads("{" + extras) == {"phase": "interlinking", "progress": 65.0}


def test_formatter_without_extras_is_plain() -> None:
    line = JSONExtrasFormatter().format(_record())

    assert line.endswith("| contentops.workflow | Phase started")


def test_workflow_logger_merges_workflow_id_into_extras() -> None:
    adapter = get_workflow_logger("contentops.workflow", "workflow_1")

    _, kwargs = adapter.process("Phase started", {"extra": {"phase": "interlinking"}})

    assert kwargs["extra"] == {"workflow_id": "workflow_1", "phase": "interlinking"}


def test_setup_logging_installs_a_single_handler() -> None:
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    original_handlers = list(logger.handlers)
    original_level = logger.level
    original_propagate = logger.propagate
    logger.handlers = []
    try:
        setup_logging(debug=True)
        setup_logging(debug=True)

        assert len(logger.handlers) == 1
        assert logger.level == logging.DEBUG
        assert isinstance(logger.handlers[0].formatter, JSONExtrasFormatter)
    finally:
        logger.handlers = original_handlers
        logger.setLevel(original_level)
        logger.propagate = original_propagate


def test_cors_origins_accept_comma_separated_values() -> None:
    settings = Settings(cors_origins="https://a.example, https://b.example")

    assert settings.cors_origins == ["https://a.example", "https://b.example"]


def test_cors_origins_accept_json_list() -> None:
    settings = Settings(cors_origins='["https://a.example"]')

    assert settings.cors_origins == ["https://a.example"]


def test_poll_attempts_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        Settings(content_job_max_poll_attempts=0)
