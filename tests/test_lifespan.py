"""
Tests for the application lifespan: startup logging, engine creation and
shutdown cleanup.
"""
import json
from unittest.mock import patch

from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from config import settings
from infrastructure.warehouse import close_warehouse, get_engine, is_initialized
from shared.infrastructure import newrelic


def json_lines(output):
    return [json.loads(line) for line in output.splitlines() if line.startswith("{")]


class TestLifespan:

    def test_startup_and_shutdown(self, root_logger, capsys):
        from main import app

        close_warehouse()
        with patch.object(settings, "new_relic_license_key", None), \
                patch.object(Engine, "dispose", autospec=True) as dispose:
            with TestClient(app) as client:
                assert is_initialized()
                engine = get_engine()
                assert engine.dialect.name == "snowflake"
                assert client.get("/health").json()["checks"]["warehouse"] == "configured"
                dispose.assert_not_called()

            assert not is_initialized()
            dispose.assert_called_once_with(engine)

        records = json_lines(capsys.readouterr().out)
        started = next(
            r for r in records
            if r["message"] == f"Integration probe started on port {settings.port}"
        )
        assert started["port"] == settings.port
        assert started["python_version"]
        assert any(
            r["message"] == "NEW_RELIC_LICENSE_KEY not set - logging to console only"
            for r in records
        )
        assert any(r["message"] == "Shutting down integration probe" for r in records)

    def test_shutdown_stops_log_shipping(self, root_logger):
        from main import app

        close_warehouse()
        with patch.object(settings, "new_relic_license_key", "NRAL-lifespan"), \
                patch.object(newrelic.NewRelicLogHandler, "emit"):
            with TestClient(app):
                assert isinstance(newrelic.get_new_relic_handler(), newrelic.NewRelicLogHandler)
                assert any(
                    isinstance(h, newrelic.ShippingQueueHandler) for h in root_logger.handlers
                )

        assert newrelic.get_new_relic_handler() is None
        assert newrelic._listener is None
        assert not any(
            isinstance(h, newrelic.ShippingQueueHandler) for h in root_logger.handlers
        )
        assert not is_initialized()
