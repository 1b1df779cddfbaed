import logging
import sys
from pathlib import Path

# Add src directory to Python path FIRST
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))

# Now import after path is set
import pytest
from fastapi.testclient import TestClient

from infrastructure.warehouse import QueryResult


class FakeWarehouse:
    """Stands in for SnowflakeWarehouse; records calls and replays a result or error."""

    def __init__(self, result=None, error=None):
        self.result = result or QueryResult(rows=[], query_id=None)
        self.error = error
        self.calls = []

    def execute(self, sql, params=None):
        self.calls.append((sql, params))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def fake_warehouse():
    return FakeWarehouse(
        result=QueryResult(
            rows=[{"VERSION": "8.40.1", "TIMESTAMP": "2024-01-15T10:00:00+00:00"}],
            query_id="01b2c3d4-0000-1a2b-0000-000123456789",
        )
    )


@pytest.fixture
def client_factory():
    """Build a TestClient whose warehouse dependency returns the given fake."""
    from main import app
    from infrastructure.warehouse import get_warehouse

    def build(warehouse):
        app.dependency_overrides[get_warehouse] = lambda: warehouse
        return TestClient(app, raise_server_exceptions=False)

    yield build
    app.dependency_overrides.clear()


@pytest.fixture
def root_logger():
    """Snapshot and restore the root logger around tests that reconfigure it."""
    from shared.infrastructure import newrelic

    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    newrelic.close_new_relic_handler()
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
