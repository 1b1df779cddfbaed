"""
Integration Probe - Main Application
====================================

Demonstration service where each endpoint exercises one third-party
integration:

- Structured JSON logging shipped to New Relic
- Multipart form-data construction
- Snowflake warehouse queries

Layers:
- Interfaces: FastAPI controllers
- Application: Probe services and DTOs
- Infrastructure: Form encoder, warehouse engine, log transport
"""

import platform
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

# Configuration and Core
from config import settings
from core import ApplicationException

# Infrastructure
from infrastructure.warehouse import init_warehouse, close_warehouse, is_initialized

# Module Routers
from probes.interfaces import probes_router
from probes.application import StatusResponse, HealthResponse, active_transport

# Logging
from shared.infrastructure.logging import setup_logging, get_logger
from shared.infrastructure.newrelic import close_new_relic_handler

logger = get_logger(__name__)

LIBRARIES = ["python-json-logger", "httpx", "snowflake-sqlalchemy"]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging (and New Relic shipping when configured)
    2. Create the warehouse engine

    SHUTDOWN:
    1. Dispose the warehouse engine
    2. Close the New Relic transport
    """
    # === STARTUP ===
    setup_logging(
        level=settings.log_level,
        environment=settings.environment,
        new_relic_license_key=settings.new_relic_license_key,
        new_relic_endpoint=settings.new_relic_log_endpoint,
        new_relic_timeout=settings.new_relic_timeout_seconds,
    )
    if not settings.log_shipping_enabled:
        logger.info("NEW_RELIC_LICENSE_KEY not set - logging to console only")

    init_warehouse()

    logger.info(
        f"Integration probe started on port {settings.port}",
        extra={
            "port": settings.port,
            "python_version": sys.version.split()[0],
            "platform": platform.system().lower(),
            "version": settings.app_version,
            "environment": settings.environment,
        }
    )

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down integration probe")
    close_warehouse()
    close_new_relic_handler()


# Create FastAPI application
app = FastAPI(
    title="Integration Probe API",
    description="""
    ## Third-party integration probes

    | Endpoint | Integration |
    |----------|-------------|
    | `GET /` | Service status |
    | `POST /log-test` | JSON logging shipped to New Relic |
    | `POST /form-data-test` | multipart/form-data encoding |
    | `GET /snowflake-test` | Snowflake connection and query |
    | `POST /integration-test` | All of the above together |

    Every failure is returned as HTTP 500 with `{"success": false, "error": ...}`.
    """,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# === CORS Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# === Custom Middleware (from shared) ===
from shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    application_exception_handler,
    validation_exception_handler,
    global_exception_handler
)

# Added last so it runs first and the logging middleware sees the ID.
app.add_middleware(LoggingMiddleware)
app.add_middleware(CorrelationIDMiddleware)
app.add_exception_handler(ApplicationException, application_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# === Include Module Routers ===
app.include_router(probes_router)


@app.get("/", tags=["Root"], response_model=StatusResponse)
async def root():
    """Service status with the integrations it exercises."""
    logger.info("Health check endpoint accessed")
    return StatusResponse(
        message="Integration probe is running",
        timestamp=datetime.now(timezone.utc).isoformat(),
        libraries=LIBRARIES,
    )


@app.get("/health", tags=["Health"], response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint for load balancers and orchestrators.

    Reports configuration state only; no remote call is made.
    """
    return HealthResponse(
        version=settings.app_version,
        environment=settings.environment,
        checks={
            "warehouse": "configured" if is_initialized() else "not_initialized",
            "log_shipping": "enabled" if active_transport() == "newrelic" else "disabled",
        }
    )


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower()
    )
