"""
Structured JSON logging configuration.

This module sets up package-wide JSON logging with:
- Consistent field names across all logs
- Data-access context (operation, user/role ids, rows affected)
- Timestamp, level, message, logger name

Logs are output to stdout in JSON format for easy parsing by
log aggregation systems.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict


# Attributes present on every LogRecord; anything else arrived via extra={...}
_RESERVED_RECORD_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName", "relativeCreated",
    "thread", "threadName", "exc_info", "exc_text", "stack_info",
    "taskName",
})


class JSONFormatter(logging.Formatter):
    """
    Custom JSON formatter for structured logging.

    Outputs log records as single-line JSON objects with consistent fields:
    - timestamp: ISO 8601 format (UTC) with microseconds
    - level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - message: Log message
    - logger: Logger name (module path)
    - operation: Repository operation name (if available)
    - user_id / role_id: Entity identities involved (if available)
    - rows_affected: Rows reported by the store for a write (if available)
    - exception: Exception details (if exception occurred)
    - extra: Any additional fields from log record

    Example output:
        {"timestamp": "2025-11-24T10:30:00.123456+00:00", "level": "INFO",
         "message": "User update rejected", "logger": "identity_store.repositories.identity",
         "operation": "update_user", "user_id": "0d4c..."}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_data["stack_info"] = self.formatStack(record.stack_info)

        # Fields passed via logger.info("msg", extra={...})
        for key, value in record.__dict__.items():
            if key in _RESERVED_RECORD_ATTRS or key in log_data:
                continue
            if value is not None:
                log_data[key] = value

        # UUIDs and datetimes fall back to str()
        return json.dumps(log_data, default=str)


def setup_logging(
    level: str = "INFO",
    json_format: bool = True
) -> None:
    """
    Configure root logging for processes embedding the identity store.

    Sets up:
    - Root logger with specified level
    - JSON formatter (if json_format=True)
    - StreamHandler to stdout
    - Removes existing handlers

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON formatter (True) or simple formatter (False)

    Example:
        from identity_store.core.config import settings
        setup_logging(level=settings.log_level, json_format=settings.log_json_format)

    Note:
        Call this once at process startup, before any logging occurs.
    """
    root_logger = logging.getLogger()

    log_level = getattr(logging, level.upper(), logging.INFO)
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)

    if json_format:
        formatter = JSONFormatter()
    else:
        # Simple format for development/debugging
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Suppress noisy third-party loggers
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get logger instance with given name.

    Args:
        name: Logger name (usually __name__ of the module)

    Returns:
        Logger instance

    Example:
        logger = get_logger(__name__)
        logger.info("Role inserted", extra={"role_id": str(role.role_id)})
    """
    return logging.getLogger(name)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **fields: Any
) -> None:
    """
    Log message with structured context fields.

    Fields whose value is None are dropped so callers can pass optional
    context unconditionally.

    Example:
        log_with_context(
            logger,
            "debug",
            "User inserted",
            operation="insert_user",
            user_id=user.user_id,
            rows_affected=1,
        )
    """
    extra = {key: value for key, value in fields.items() if value is not None}
    log_method = getattr(logger, level.lower())
    log_method(message, extra=extra)
