# -*- coding: utf-8 -*-
"""
Logging configuration for the proxy setup.

Console output is human readable and carries the configured log prefix.
Optionally every record is also written as one JSON object per line to a
log file, so that a provisioning run can be audited afterwards.
"""

import json
import logging
import os
import socket
import sys
from datetime import datetime, timezone
from typing import Optional

SERVICE_NAME = "tribenest-proxy-setup"

# Attributes present on every LogRecord; anything else came in via `extra`.
_STANDARD_RECORD_ATTRS = frozenset(
    [
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
        "message",
        "asctime",
    ]
)


class JSONFormatter(logging.Formatter):
    """
    Formats log records as JSON with a consistent structure:
    timestamp (ISO, UTC), level, service, logger, message, location
    and any extra fields passed to the logging call.
    """

    def __init__(self, service_name: str = SERVICE_NAME):
        super().__init__()
        self.service_name = service_name
        self.hostname = socket.gethostname()

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "service": self.service_name,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "process": record.process,
            "hostname": self.hostname,
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extra_fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_RECORD_ATTRS
        }
        if extra_fields:
            log_entry["extra"] = extra_fields

        return json.dumps(log_entry, ensure_ascii=False, default=str)


def resolve_log_level(log_level: Optional[str] = None) -> int:
    """Turn a level name (or $LOGLEVEL) into a logging level, INFO on garbage."""
    level_str = (log_level or os.environ.get("LOGLEVEL", "INFO")).upper()
    level = getattr(logging, level_str, None)
    if not isinstance(level, int):
        print(
            f"Warning: Invalid LOGLEVEL string '{level_str}'. Defaulting to INFO.",
            file=sys.stderr,
        )
        return logging.INFO
    return level


def setup_logging(
    log_prefix: str,
    log_level: Optional[str] = None,
    log_file_path: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the root logger for a provisioning run.

    Args:
        log_prefix: Prefix put in front of every console line.
        log_level: Level name. Defaults to $LOGLEVEL, then INFO.
        log_file_path: When given, also write JSON lines to this file.

    Returns:
        The logger for the setup service.
    """
    level = resolve_log_level(log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter(
            f"{log_prefix} %(asctime)s - [%(levelname)s] - %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root_logger.addHandler(console_handler)

    if log_file_path:
        file_handler = logging.FileHandler(log_file_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)
        # The file receives debug output (e.g. captured command output).
        root_logger.setLevel(logging.DEBUG)

    logger = logging.getLogger(SERVICE_NAME)
    logger.debug(
        "Logging initialized",
        extra={
            "log_level": logging.getLevelName(level),
            "file_enabled": bool(log_file_path),
        },
    )
    return logger
