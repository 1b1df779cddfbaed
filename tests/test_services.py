"""
Unit tests for the probe application services.
"""
import asyncio
import json
import logging
from unittest.mock import Mock, patch

import pytest

from core import (
    ValidationException,
    WarehouseConnectionException,
    WarehouseQueryException,
)
from probes.application import (
    FormDataProbeService,
    IntegrationProbeService,
    LoggingProbeService,
    WarehouseProbeService,
    active_transport,
)
from probes.application.services import ECHO_QUERY, VERSION_QUERY

from conftest import FakeWarehouse


class TestLoggingProbeService:

    def test_emit_at_requested_level(self):
        probe_logger = Mock()
        service = LoggingProbeService(probe_logger)

        level = service.emit("disk almost full", "warn", {"endpoint": "/log-test"})

        assert level == logging.WARNING
        probe_logger.log.assert_called_once_with(
            logging.WARNING, "disk almost full", extra={"endpoint": "/log-test"}
        )

    def test_emit_default_message(self):
        probe_logger = Mock()
        LoggingProbeService(probe_logger).emit(None)
        probe_logger.log.assert_called_once_with(logging.INFO, "Test log message", extra={})

    @pytest.mark.parametrize("message,expected", [
        (42, "42"),
        (0, "0"),
        (False, "false"),
        ({"user": "ada", "count": 2}, '{"user": "ada", "count": 2}'),
        ("", "Test log message"),
    ])
    def test_emit_non_string_message(self, message, expected):
        probe_logger = Mock()
        LoggingProbeService(probe_logger).emit(message)
        probe_logger.log.assert_called_once_with(logging.INFO, expected, extra={})

    def test_emit_unknown_level(self):
        probe_logger = Mock()
        with pytest.raises(ValidationException):
            LoggingProbeService(probe_logger).emit("hi", "loud")
        probe_logger.log.assert_not_called()


class TestFormDataProbeService:

    def test_sample_form(self, caplog):
        with caplog.at_level(logging.INFO):
            form = FormDataProbeService().build_sample_form()

        assert form.fields == ["text_field", "number_field", "json_field", "timestamp"]
        assert form.get_length() == len(form.get_body())
        assert any(r.getMessage() == "Form data created successfully" for r in caplog.records)


class TestWarehouseProbeService:

    def test_check_version(self, fake_warehouse):
        result = asyncio.run(WarehouseProbeService(fake_warehouse).check_version())

        assert fake_warehouse.calls == [(VERSION_QUERY, None)]
        assert result.query_id == "01b2c3d4-0000-1a2b-0000-000123456789"
        assert result.rows[0]["VERSION"] == "8.40.1"

    def test_check_version_logs_latency(self, fake_warehouse, caplog):
        with caplog.at_level(logging.INFO):
            asyncio.run(WarehouseProbeService(fake_warehouse).check_version())

        record = next(r for r in caplog.records if r.getMessage() == "snowflake_version_query completed")
        assert record.operation == "snowflake_version_query"
        assert record.endpoint == "/snowflake-test"
        assert record.latency_ms >= 0

    def test_check_version_propagates_errors(self):
        warehouse = FakeWarehouse(error=WarehouseConnectionException("timed out"))
        with pytest.raises(WarehouseConnectionException):
            asyncio.run(WarehouseProbeService(warehouse).check_version())


class TestIntegrationProbeService:

    def test_run_with_test_data(self, fake_warehouse):
        results = asyncio.run(
            IntegrationProbeService(fake_warehouse).run({"order": 7, "tags": ["a"]})
        )

        sql, params = fake_warehouse.calls[0]
        assert sql == ECHO_QUERY
        assert params == {"test_data": '{"order":7,"tags":["a"]}'}

        assert results.form_data.created is True
        assert results.form_data.size > 0
        assert results.form_data.headers["content-type"].startswith("multipart/form-data")
        assert results.logging.logged is True
        assert results.snowflake.query_id == "01b2c3d4-0000-1a2b-0000-000123456789"
        assert results.snowflake.data == fake_warehouse.result.rows

    def test_run_default_test_data(self, fake_warehouse):
        asyncio.run(IntegrationProbeService(fake_warehouse).run())
        assert fake_warehouse.calls[0][1] == {"test_data": json.dumps({"test": "integration"}, separators=(",", ":"))}

    @pytest.mark.parametrize("error", [
        WarehouseConnectionException("unreachable"),
        WarehouseQueryException("syntax error"),
    ])
    def test_run_propagates_warehouse_errors(self, error, caplog):
        warehouse = FakeWarehouse(error=error)
        with caplog.at_level(logging.ERROR):
            with pytest.raises(type(error)):
                asyncio.run(IntegrationProbeService(warehouse).run())
        assert any(r.getMessage().startswith("Integration test - Snowflake") for r in caplog.records)


class TestActiveTransport:

    def test_console_when_not_configured(self):
        with patch("probes.application.services.get_new_relic_handler", return_value=None):
            assert active_transport() == "console"

    def test_newrelic_when_configured(self):
        handler = Mock()
        handler.is_enabled.return_value = True
        with patch("probes.application.services.get_new_relic_handler", return_value=handler):
            assert active_transport() == "newrelic"
