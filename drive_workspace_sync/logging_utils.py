"""
Structured JSON logging utilities.

Sync cycles run unattended, so log records are emitted as single-line
JSON objects. Sync context attached through ``extra`` (workspace, remote
object, local item, page token) is grouped under a ``sync`` key so log
collectors can index every record of a workspace the same way.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

# Extra fields grouped under "sync", in output order
SYNC_CONTEXT_FIELDS = ("workspace_id", "folder_id", "remote_id", "item_id", "page_token")

# LogRecord attributes that are not user supplied context
_STANDARD_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "taskName", "message", "asctime",
}


def _jsonable(value: Any) -> Any:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


class StructuredJsonFormatter(logging.Formatter):
    """
    JSON formatter for sync logs.

    Outputs single-line JSON objects:
    - timestamp: ISO 8601 format in UTC
    - level, logger, message
    - sync: the sync context fields present on the record
    - exception: formatted traceback, if any
    - any other extra field, as is
    """

    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = {
            key: _jsonable(getattr(record, key))
            for key in SYNC_CONTEXT_FIELDS
            if getattr(record, key, None) is not None
        }
        if context:
            log_obj["sync"] = context

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS or key in SYNC_CONTEXT_FIELDS or key.startswith("_"):
                continue
            log_obj[key] = _jsonable(value)

        return json.dumps(log_obj, default=str)


def configure_structured_logging(
    level: int = logging.INFO,
    logger_name: str | None = "drive_workspace_sync",
) -> logging.Logger:
    """
    Route sync logs to stdout as structured JSON.

    Args:
        level: Logging level (default: INFO)
        logger_name: Logger to configure (default: the package logger)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(logger_name)

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredJsonFormatter())

    logger.addHandler(handler)
    logger.setLevel(level)

    return logger


class WorkspaceLoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that adds workspace context to all log messages.

    Typically created with ``{"workspace_id": ..., "folder_id": ...}``.
    Per-call ``extra`` fields are kept alongside.
    """

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs
