"""
Logging for container security builds.

Two channels:

- Module loggers (``logging.getLogger(__name__)``) configured once by
  ``configure_logging`` for the process.
- ``BuildLogger``, the console of a single build execution. Each
  diagnostic line goes to the build console, and named build events are
  mirrored as JSON entries on the ``containersecurity.build`` logger so
  log shippers can filter on container reference and attestor.

Usage:
    from containersecurity.logger import BuildLogger

    build_logger = BuildLogger(stream=sys.stdout, project="my-project")
    build_logger.println("Creating attestation ...")
    build_logger.log_event("attestation.created", reference=ref, occurrence=name)
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional, TextIO

_PACKAGE_LOGGER = "containersecurity"
_build_logger = logging.getLogger("containersecurity.build")


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(
    level: str = "info",
    fmt: str = "text",
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """Install a single stream handler on the package logger.

    Calling it again replaces the previous handler.
    """
    logger = logging.getLogger(_PACKAGE_LOGGER)
    logger.setLevel(level.upper())
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
    logger.addHandler(handler)
    return logger


class BuildLogger:
    """
    Console and event log for one build execution.

    Each event entry carries:
    - timestamp, level, event name
    - project_id of the build
    - event-specific fields (reference, attestor, occurrence, error)
    """

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        project: str = "",
        service_name: str = "containersecurity",
    ):
        self.stream = stream if stream is not None else sys.stdout
        self.project = project
        self.service_name = service_name
        self._logger = _build_logger

    def println(self, line: str) -> None:
        """Write one line to the build console."""
        self.stream.write(line + "\n")
        self.stream.flush()

    def log_event(self, event: str, level: str = "info", **fields: Any) -> None:
        """Emit a structured log entry for a build event."""
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "event": event,
            "service": self.service_name,
            "project_id": self.project,
        }
        entry.update({k: v for k, v in fields.items() if v is not None})

        log_line = json.dumps(entry, default=str)

        if level == "error":
            self._logger.error(log_line)
        elif level == "warn":
            self._logger.warning(log_line)
        else:
            self._logger.info(log_line)
