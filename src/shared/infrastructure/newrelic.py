"""
New Relic Log Transport
=======================

Ships log records to New Relic through the Log API.

Each record is posted as one detailed-format payload:

    [{"common": {"attributes": {...service info...}},
      "logs": [{"timestamp": ..., "message": ..., "attributes": {...}}]}]

Logging calls only enqueue records; a ``QueueListener`` thread posts them,
so a slow or unreachable collector never blocks the event loop. Failures
are reported through ``logging.Handler.handleError`` and never reach the
caller.
"""

import copy
import json
import logging
import queue
from logging.handlers import QueueHandler, QueueListener
from typing import Any, Dict, List, Optional

import httpx

from config import settings
from shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

DEFAULT_LOG_ENDPOINT = "https://log-api.newrelic.com/log/v1"

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}

# Loggers used by the transport itself.
_TRANSPORT_LOGGERS = ("httpx", "httpcore")


class NewRelicLogHandler(logging.Handler):
    """
    Logging handler forwarding records to the New Relic Log API.

    Uses an httpx client with the license key in ``X-License-Key``.
    """

    def __init__(
        self,
        license_key: str,
        endpoint: str = DEFAULT_LOG_ENDPOINT,
        timeout: float = 5.0,
        level: int = logging.INFO,
        client: Optional[httpx.Client] = None,
    ):
        """
        Initialize the New Relic transport.

        Args:
            license_key: New Relic ingest license key
            endpoint: Log API URL (US or EU region)
            timeout: Per-request timeout in seconds
            level: Minimum level shipped
            client: Preconfigured httpx client (mainly for tests)
        """
        super().__init__(level=level)
        self._license_key = license_key
        self._endpoint = endpoint
        self._client = client or httpx.Client(timeout=timeout)
        self._enabled = bool(license_key)
        self.addFilter(_skip_transport_records)

        logger.info(
            "New Relic log transport initialized",
            extra={"endpoint": endpoint, "level": logging.getLevelName(level)}
        )

    def is_enabled(self) -> bool:
        """Check if the transport has credentials to ship with."""
        return self._enabled

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def build_payload(self, record: logging.LogRecord) -> List[Dict[str, Any]]:
        """
        Build the Log API body for a single record.

        Args:
            record: The record being shipped

        Returns:
            Detailed-format payload with common service attributes
        """
        attributes = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }
        if record.exc_info:
            attributes["error.stack"] = logging.Formatter().formatException(record.exc_info)
        elif record.exc_text:
            attributes["error.stack"] = record.exc_text

        return [
            {
                "common": {
                    "attributes": {
                        "service.name": settings.app_name,
                        "service.version": settings.app_version,
                        "environment": settings.environment,
                    }
                },
                "logs": [
                    {
                        "timestamp": int(record.created * 1000),
                        "message": record.getMessage(),
                        "level": record.levelname.lower(),
                        "logger": record.name,
                        "attributes": attributes,
                    }
                ],
            }
        ]

    def emit(self, record: logging.LogRecord) -> None:
        if not self._enabled:
            return

        try:
            response = self._client.post(
                self._endpoint,
                content=json.dumps(self.build_payload(record), default=str),
                headers={
                    "Content-Type": "application/json",
                    "X-License-Key": self._license_key,
                },
            )
            response.raise_for_status()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        try:
            self._client.close()
        finally:
            super().close()


def _skip_transport_records(record: logging.LogRecord) -> bool:
    return not record.name.startswith(_TRANSPORT_LOGGERS)


class ShippingQueueHandler(QueueHandler):
    """
    Queues records for the New Relic listener thread.

    The message is rendered here, while the record's args are still live;
    any traceback is kept in ``exc_text`` rather than folded into the message.
    """

    def prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        record = copy.copy(record)
        record.message = record.getMessage()
        if record.exc_info and not record.exc_text:
            record.exc_text = logging.Formatter().formatException(record.exc_info)
        record.msg = record.message
        record.args = None
        record.exc_info = None
        return record


# Global handler, listener and the queue handler attached to the root logger
_new_relic_handler: Optional[NewRelicLogHandler] = None
_listener: Optional[QueueListener] = None
_queue_handler: Optional[ShippingQueueHandler] = None


def get_new_relic_handler() -> Optional[NewRelicLogHandler]:
    """Get the installed New Relic handler, if log shipping is configured."""
    return _new_relic_handler


def init_new_relic_handler(license_key: str, **kwargs: Any) -> NewRelicLogHandler:
    """Create the New Relic handler, closing any previously created one."""
    global _new_relic_handler
    close_new_relic_handler()
    _new_relic_handler = NewRelicLogHandler(license_key, **kwargs)
    return _new_relic_handler


def start_log_shipping(handler: NewRelicLogHandler) -> ShippingQueueHandler:
    """
    Start the listener thread that feeds ``handler``.

    Returns:
        The queue handler to attach to a logger; logging calls only enqueue.
    """
    global _listener, _queue_handler
    log_queue: queue.SimpleQueue = queue.SimpleQueue()

    _queue_handler = ShippingQueueHandler(log_queue)
    _queue_handler.setLevel(handler.level)
    _queue_handler.addFilter(_skip_transport_records)

    _listener = QueueListener(log_queue, handler, respect_handler_level=True)
    _listener.start()
    return _queue_handler


def close_new_relic_handler() -> None:
    """
    Stop shipping: drain the queue, then close the handler.

    Safe to call when shipping was never started.
    """
    global _new_relic_handler, _listener, _queue_handler
    if _queue_handler is not None:
        logging.getLogger().removeHandler(_queue_handler)
        _queue_handler = None
    if _listener is not None:
        _listener.stop()
        _listener = None
    if _new_relic_handler is not None:
        _new_relic_handler.close()
        _new_relic_handler = None
