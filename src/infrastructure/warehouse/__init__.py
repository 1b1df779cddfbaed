"""
Warehouse Infrastructure
========================

Manages the Snowflake engine and runs statements against it.

Uses SQLAlchemy with the snowflake-sqlalchemy dialect. The engine is a
process-wide singleton created at startup; it does not pool, so every
statement opens and closes its own connection.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Dialect, Engine
from sqlalchemy.pool import NullPool
from snowflake.sqlalchemy import URL

from config import Settings, settings
from core import WarehouseConnectionException, WarehouseQueryException
from shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


@dataclass
class QueryResult:
    """Rows returned by a warehouse statement."""
    rows: List[Dict[str, Any]] = field(default_factory=list)
    query_id: Optional[str] = None

    @property
    def row_count(self) -> int:
        return len(self.rows)


def denormalize_row(dialect: Dialect, row: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Restore the warehouse's own column-name case.

    Dialects that normalize names (Snowflake reports unquoted identifiers in
    upper case) hand back lower-cased keys; this undoes that so rows read
    ``VERSION`` rather than ``version``.
    """
    if not getattr(dialect, "requires_name_normalize", False):
        return dict(row)
    return {dialect.denormalize_name(key): value for key, value in row.items()}


class SnowflakeWarehouse:
    """
    Runs single statements against the warehouse.

    Connection failures and statement failures are raised as distinct
    exceptions so callers can tell which step broke.
    """

    def __init__(self, engine: Engine):
        self._engine = engine

    def execute(self, sql: str, params: Optional[Dict[str, Any]] = None) -> QueryResult:
        """
        Execute a statement and fetch every row.

        Args:
            sql: Statement text, with ``:name`` bind parameters
            params: Values for the bind parameters

        Returns:
            QueryResult with rows as dicts and the warehouse query ID

        Raises:
            WarehouseConnectionException: If no connection could be opened
            WarehouseQueryException: If the statement failed
        """
        try:
            connection = self._engine.connect()
        except Exception as e:
            logger.error("Failed to connect to Snowflake", extra={"error": str(e)})
            raise WarehouseConnectionException(str(e)) from e

        with connection:
            try:
                result = connection.execute(text(sql), params or {})
                # Snowflake cursors expose the query ID as ``sfqid``.
                query_id = getattr(result.cursor, "sfqid", None)
                rows = [denormalize_row(connection.dialect, row) for row in result.mappings()]
            except Exception as e:
                logger.error("Snowflake query failed", extra={"error": str(e)})
                raise WarehouseQueryException(str(e)) from e

        return QueryResult(rows=rows, query_id=query_id)


# Global engine
_engine: Engine | None = None


def build_warehouse_url(config: Settings = settings) -> str:
    """Build the snowflake:// SQLAlchemy URL from settings."""
    return URL(
        account=config.snowflake_account,
        user=config.snowflake_username,
        password=config.snowflake_password,
        database=config.snowflake_database,
        schema=config.snowflake_schema,
        warehouse=config.snowflake_warehouse,
    )


def init_warehouse(config: Settings = settings) -> Engine:
    """
    Initialize the warehouse engine.

    Should be called during application startup. No connection is opened
    until the first statement runs.

    Returns:
        Engine: The initialized engine
    """
    global _engine

    if _engine is not None:
        _engine.dispose()

    _engine = create_engine(
        build_warehouse_url(config),
        poolclass=NullPool,
        connect_args={"login_timeout": config.snowflake_login_timeout},
    )
    logger.info(
        "Snowflake engine initialized",
        extra={
            "account": config.snowflake_account,
            "warehouse": config.snowflake_warehouse,
            "database": config.snowflake_database,
            "schema": config.snowflake_schema,
        }
    )
    return _engine


def get_engine() -> Engine:
    """
    Get the warehouse engine.

    Raises:
        RuntimeError: If the engine has not been initialized
    """
    if _engine is None:
        raise RuntimeError("Warehouse engine not initialized. Call init_warehouse() first.")
    return _engine


def is_initialized() -> bool:
    return _engine is not None


def close_warehouse() -> None:
    """
    Dispose of the warehouse engine.

    Should be called during application shutdown.
    """
    global _engine

    if _engine is not None:
        _engine.dispose()
        _engine = None


def get_warehouse() -> SnowflakeWarehouse:
    """FastAPI dependency returning a warehouse over the shared engine."""
    return SnowflakeWarehouse(get_engine())
