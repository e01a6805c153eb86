"""
Logging Configuration
Custom JSON Logger for the function runtime.

Provides:
- CustomJsonFormatter: one JSON object per record, tagged with the current invocation
- setup_logging: YAML dictConfig with environment substitution
- flush_handlers: drain handlers before the platform freezes the environment
"""

import json
import logging
import logging.config
import os
import string
from datetime import datetime, timezone

import yaml

from .request_context import get_invocation_id, get_trace_id

STANDARD_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)


class CustomJsonFormatter(logging.Formatter):
    """
    JSON Formatter for runtime logs.

    Fields:
      - _time: ISO8601 timestamp (millisecond precision)
      - level: Log level
      - logger: Logger name (e.g. funcrt.loop, stdout)
      - message: Log message
      - invocation_id: Invocation being processed, if any
      - trace_id: Trace header sent by the platform, if any
    """

    def format(self, record: logging.LogRecord) -> str:
        invocation_id = getattr(record, "invocation_id", None) or get_invocation_id()
        trace_id = getattr(record, "trace_id", None) or get_trace_id()

        log_data = {
            "_time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if invocation_id:
            log_data["invocation_id"] = invocation_id
        if trace_id:
            log_data["trace_id"] = trace_id

        # Include extra fields
        for key, value in record.__dict__.items():
            if key not in STANDARD_ATTRS and not key.startswith("_") and key not in log_data:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logging(config_path: str, level: str = "INFO"):
    """
    Load the YAML config, substitute environment variables, and initialize logging.
    """
    if not os.path.exists(config_path):
        logging.basicConfig(level=level.upper())
        return

    with open(config_path, "r", encoding="utf-8") as f:
        # Supports ${LOG_LEVEL} format.
        template = string.Template(f.read())

        mapping = os.environ.copy()
        mapping.setdefault("LOG_LEVEL", level.upper())

        content = template.safe_substitute(mapping)
        config = yaml.safe_load(content)
        logging.config.dictConfig(config)


def flush_handlers():
    """
    Flush every handler known to the logging system.

    Called at the end of each invocation: the platform may freeze the
    environment as soon as the result is reported.
    """
    loggers = [logging.getLogger()]
    loggers.extend(
        lg for lg in logging.Logger.manager.loggerDict.values() if isinstance(lg, logging.Logger)
    )

    seen = set()
    for lg in loggers:
        for handler in lg.handlers:
            if id(handler) in seen:
                continue
            seen.add(id(handler))
            try:
                handler.flush()
            except (OSError, ValueError):
                # Closed streams cannot be flushed; nothing left to drain.
                pass
