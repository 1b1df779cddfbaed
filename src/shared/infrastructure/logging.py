"""
Structured Logging
==================

JSON-structured logging with correlation ID tracking.

Provides:
- Structured JSON logs on stdout (parseable by log aggregators)
- Optional shipping to New Relic through the Log API
- Correlation ID for request tracing
- Caller-facing level names mapped to stdlib levels

Usage:
    from shared.infrastructure.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Form data created", extra={"fields": ["text_field"]})
"""

import logging
import sys
import time
from datetime import datetime, timezone
from typing import Any, Optional
from contextlib import contextmanager

from pythonjsonlogger import jsonlogger

from core import ValidationException


# Level names accepted from API callers. "http", "verbose" and "silly" are
# kept for clients that speak npm-style level names.
LOG_LEVELS = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "http": logging.INFO,
    "verbose": logging.DEBUG,
    "debug": logging.DEBUG,
    "silly": logging.DEBUG,
}

SENSITIVE_KEYS = ("password", "api_key", "license_key")

NOISY_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "snowflake.connector": logging.WARNING,
}


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    Custom JSON formatter with additional fields.

    Adds:
    - timestamp in ISO format
    - correlation_id when available
    - Environment info
    """

    def __init__(self, *args: Any, environment: str = "unknown", **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.environment = environment

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat()

        if hasattr(record, "correlation_id"):
            log_record["correlation_id"] = record.correlation_id

        log_record["environment"] = getattr(record, "environment", self.environment)

        for key, value in list(log_record.items()):
            if isinstance(value, str) and _is_sensitive(key):
                log_record[key] = "***REDACTED***"


def _is_sensitive(key: str) -> bool:
    key = key.lower()
    if any(marker in key for marker in SENSITIVE_KEYS):
        return True
    return "token" in key and "tokens_used" not in key


def resolve_log_level(name: Optional[str]) -> int:
    """
    Map a caller-supplied level name to a stdlib logging level.

    Args:
        name: Level name such as "info" or "warn" (case-insensitive)

    Returns:
        int: The stdlib logging level

    Raises:
        ValidationException: If the name is not a known level
    """
    key = (name or "info").strip().lower()
    try:
        return LOG_LEVELS[key]
    except KeyError:
        raise ValidationException(
            f"Unknown log level '{name}'",
            details={"allowed": sorted(LOG_LEVELS)}
        ) from None


def setup_logging(
    level: str = "INFO",
    environment: str = "development",
    new_relic_license_key: Optional[str] = None,
    new_relic_endpoint: Optional[str] = None,
    new_relic_timeout: float = 5.0,
) -> None:
    """
    Configure structured JSON logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        environment: Environment name for log context
        new_relic_license_key: Enables the New Relic transport when set
        new_relic_endpoint: Override for the New Relic Log API URL
        new_relic_timeout: Timeout in seconds for each shipped record
    """
    from shared.infrastructure.newrelic import (
        close_new_relic_handler,
        init_new_relic_handler,
        start_log_shipping,
    )

    numeric_level = getattr(logging, level.upper())

    # Drain and stop any previous shipping thread before replacing handlers.
    close_new_relic_handler()

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)
        existing.close()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(
        CustomJsonFormatter(
            fmt="%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
            environment=environment,
        )
    )
    root_logger.addHandler(handler)

    if new_relic_license_key:
        kwargs: dict[str, Any] = {"timeout": new_relic_timeout, "level": numeric_level}
        if new_relic_endpoint:
            kwargs["endpoint"] = new_relic_endpoint
        new_relic_handler = init_new_relic_handler(new_relic_license_key, **kwargs)
        root_logger.addHandler(start_log_shipping(new_relic_handler))

    # Silence noisy loggers
    for name, noisy_level in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(noisy_level)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the given name.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        logging.Logger: Configured logger instance
    """
    return logging.getLogger(name)


def get_context_logger(
    name: str, correlation_id: Optional[str] = None
) -> logging.Logger | logging.LoggerAdapter:
    """
    Get a logger with correlation ID for request tracing.

    Args:
        name: Logger name
        correlation_id: Request correlation ID

    Returns:
        Logger, or a LoggerAdapter carrying correlation_id in extra
    """
    logger = get_logger(name)
    if correlation_id:
        return logging.LoggerAdapter(logger, {"correlation_id": correlation_id})
    return logger


@contextmanager
def log_latency(logger: logging.Logger, operation: str, **extra_context: Any):
    """
    Context manager for measuring and logging operation latency.

    Usage:
        with log_latency(logger, "warehouse_query", statement="version"):
            result = warehouse.execute(sql)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        latency_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"{operation} completed",
            extra={
                "operation": operation,
                "latency_ms": round(latency_ms, 2),
                **extra_context,
            },
        )
