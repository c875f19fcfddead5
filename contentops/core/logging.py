"""Logging setup: readable lines with structured extras rendered as JSON."""

import json
import logging
import sys
from collections.abc import MutableMapping
from typing import Any

ROOT_LOGGER_NAME = "contentops"

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_STANDARD_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}


class JSONExtrasFormatter(logging.Formatter):
    """Render ``timestamp | LEVEL | logger | message {extras}``.

    Example:
        2024-01-15 10:30:45 | INFO     | contentops.services.workflow | Phase started {"phase": "interlinking"}
    """

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()
        line = (
            f"{self.formatTime(record, self.datefmt)} | {record.levelname:<8} | "
            f"{record.name} | {record.message}"
        )

        extras = self.collect_extras(record)
        if extras:
            try:
                line = f"{line} {json.dumps(extras, default=str, ensure_ascii=False)}"
            except (TypeError, ValueError):
                pass

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            line = f"{line}\n{record.exc_text}"
        return line

    @staticmethod
    def collect_extras(record: logging.LogRecord) -> dict[str, Any]:
        return {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_RECORD_ATTRS and not key.startswith("_")
        }


class WorkflowLoggerAdapter(logging.LoggerAdapter):
    """Attach the workflow id to every record emitted for one run."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        extra = dict(self.extra or {})
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return msg, kwargs


def get_workflow_logger(name: str, workflow_id: str) -> WorkflowLoggerAdapter:
    """Return a logger adapter bound to ``workflow_id``."""
    return WorkflowLoggerAdapter(logging.getLogger(name), {"workflow_id": workflow_id})


def setup_logging(debug: bool = False) -> None:
    """Configure the 'contentops' logger with console output and JSON extras."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(level)

    # Called from every app startup; keep a single handler.
    if logger.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JSONExtrasFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    logger.propagate = False
