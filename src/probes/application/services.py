"""
Probe Application Services
==========================

Each service drives one integration and returns plain results; the
controllers decide how results and failures look on the wire.

Warehouse calls block, so they run in Starlette's threadpool.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from starlette.concurrency import run_in_threadpool

from core import WarehouseConnectionException, WarehouseQueryException
from infrastructure.forms import MultipartForm
from infrastructure.warehouse import QueryResult, SnowflakeWarehouse
from probes.application.dto import (
    FormDataResult,
    IntegrationResults,
    LoggingResult,
    WarehouseResult,
)
from shared.infrastructure.logging import get_logger, log_latency, resolve_log_level
from shared.infrastructure.newrelic import get_new_relic_handler

logger = get_logger(__name__)

DEFAULT_LOG_MESSAGE = "Test log message"
DEFAULT_TEST_DATA: Dict[str, Any] = {"test": "integration"}

VERSION_QUERY = "SELECT CURRENT_VERSION() AS version, CURRENT_TIMESTAMP() AS timestamp"
ECHO_QUERY = "SELECT :test_data AS test_data, CURRENT_TIMESTAMP() AS processed_at"

SAMPLE_FORM_FIELDS = {
    "text_field": "Test text data",
    "number_field": "12345",
    "json_field": {"test": "data", "array": [1, 2, 3]},
}


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def active_transport() -> str:
    """Name of the sink log records are shipped to."""
    handler = get_new_relic_handler()
    if handler is not None and handler.is_enabled():
        return "newrelic"
    return "console"


def message_text(message: Any) -> str:
    """Render a caller-supplied log message as text."""
    if message is None or message == "":
        return DEFAULT_LOG_MESSAGE
    if isinstance(message, str):
        return message
    return json.dumps(message, default=str)

class LoggingProbeService:
    """Emits caller-supplied messages through the configured log sinks."""

    def __init__(self, probe_logger: Optional[logging.Logger] = None):
        self._logger = probe_logger or logger

    def emit(
        self,
        message: Any,
        level: Optional[str] = "info",
        context: Optional[Dict[str, Any]] = None,
    ) -> int:
        """
        Log one message at the requested level.

        Args:
            message: Text to log; a default is used when empty, and
                non-string values are logged as their JSON text
            level: Level name (see ``resolve_log_level``)
            context: Extra attributes attached to the record

        Returns:
            int: The stdlib level the message was logged at

        Raises:
            ValidationException: If the level name is unknown
        """
        numeric_level = resolve_log_level(level)
        self._logger.log(numeric_level, message_text(message), extra=context or {})
        return numeric_level


class FormDataProbeService:
    """Builds the sample multipart form."""

    def build_sample_form(self) -> MultipartForm:
        form = MultipartForm()
        for name, value in SAMPLE_FORM_FIELDS.items():
            form.append(name, value)
        form.append("timestamp", utc_now_iso())

        logger.info(
            "Form data created successfully",
            extra={"endpoint": "/form-data-test", "fields": form.fields}
        )
        return form


class WarehouseProbeService:
    """Checks warehouse connectivity with a version query."""

    def __init__(self, warehouse: SnowflakeWarehouse):
        self._warehouse = warehouse

    async def check_version(self) -> QueryResult:
        with log_latency(logger, "snowflake_version_query", endpoint="/snowflake-test"):
            result = await run_in_threadpool(self._warehouse.execute, VERSION_QUERY)
        logger.info(
            "Snowflake query executed successfully",
            extra={"rowCount": result.row_count, "queryId": result.query_id}
        )
        return result


class IntegrationProbeService:
    """
    Runs the form, log and warehouse probes as one sequence.

    The test data is encoded into a form, logged, then round-tripped
    through the warehouse as a bound parameter.
    """

    def __init__(self, warehouse: SnowflakeWarehouse):
        self._warehouse = warehouse

    async def run(self, test_data: Any = None) -> IntegrationResults:
        """
        Execute the integration sequence.

        Args:
            test_data: Any JSON value; ``{"test": "integration"}`` when None

        Raises:
            WarehouseConnectionException: If the warehouse is unreachable
            WarehouseQueryException: If the echo query fails
        """
        payload = json.dumps(
            test_data if test_data is not None else DEFAULT_TEST_DATA,
            separators=(",", ":"),
        )

        form = MultipartForm()
        form.append("integration_test", payload)
        form.append("timestamp", utc_now_iso())

        logger.info(
            "Integration test started",
            extra={
                "endpoint": "/integration-test",
                "formDataSize": form.get_length(),
                "testData": test_data,
            }
        )

        try:
            result = await run_in_threadpool(
                self._warehouse.execute, ECHO_QUERY, {"test_data": payload}
            )
        except WarehouseConnectionException as e:
            logger.error(
                "Integration test - Snowflake connection failed",
                extra={"error": e.reason}
            )
            raise
        except WarehouseQueryException as e:
            logger.error(
                "Integration test - Snowflake query failed",
                extra={"error": e.reason}
            )
            raise

        logger.info(
            "Integration test completed successfully",
            extra={
                "formDataCreated": True,
                "snowflakeQueryExecuted": True,
                "queryId": result.query_id,
                "resultRows": result.row_count,
            }
        )

        return IntegrationResults(
            form_data=FormDataResult(size=form.get_length(), headers=form.get_headers()),
            logging=LoggingResult(transport=active_transport()),
            snowflake=WarehouseResult(query_id=result.query_id, data=result.rows),
        )
