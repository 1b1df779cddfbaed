"""
Probe Controllers (API Routes)
==============================

FastAPI routes for the integration probes.

Controllers are thin - they delegate to application services and map
failures to ``{"success": false, ...}`` bodies with HTTP 500.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from core import (
    ApplicationException,
    WarehouseConnectionException,
    WarehouseQueryException,
)
from infrastructure.warehouse import SnowflakeWarehouse, get_warehouse
from probes.application import (
    LoggingProbeService,
    FormDataProbeService,
    WarehouseProbeService,
    IntegrationProbeService,
    LogTestRequest,
    IntegrationTestRequest,
    LogTestResponse,
    FormDataTestResponse,
    WarehouseTestResponse,
    IntegrationTestResponse,
    ErrorResponse,
)
from probes.application.services import utc_now_iso
from shared.infrastructure.logging import get_context_logger, get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["Integration Probes"])


# ========== Example payloads for Swagger ==========

FORM_DATA_RESPONSE_EXAMPLE = {
    "success": True,
    "message": "Form data created successfully",
    "headers": {"content-type": "multipart/form-data; boundary=5b1e0c7f9d3a4e6b8c2d1f0a9e8b7c6d"},
    "length": 612
}

WAREHOUSE_RESPONSE_EXAMPLE = {
    "success": True,
    "message": "Snowflake connection and query successful",
    "data": [{"VERSION": "8.40.1", "TIMESTAMP": "2024-01-15T10:00:00.000000-08:00"}],
    "queryId": "01b2c3d4-0000-1a2b-0000-000123456789"
}

ERROR_RESPONSES = {
    500: {"model": ErrorResponse, "description": "The integration failed"}
}


# ========== Dependencies ==========

def get_logging_service() -> LoggingProbeService:
    return LoggingProbeService()


def get_form_service() -> FormDataProbeService:
    return FormDataProbeService()


def get_warehouse_service(
    warehouse: SnowflakeWarehouse = Depends(get_warehouse)
) -> WarehouseProbeService:
    return WarehouseProbeService(warehouse)


def get_integration_service(
    warehouse: SnowflakeWarehouse = Depends(get_warehouse)
) -> IntegrationProbeService:
    return IntegrationProbeService(warehouse)


def error_response(error: str, **fields) -> JSONResponse:
    body = ErrorResponse(error=error, **fields)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=body.model_dump(exclude_none=True)
    )


# ========== Route Handlers ==========

@router.post(
    "/log-test",
    response_model=LogTestResponse,
    summary="Emit a log line through every configured sink",
    responses=ERROR_RESPONSES
)
async def log_test(
    request: Request,
    payload: Optional[LogTestRequest] = None,
    service: LoggingProbeService = Depends(get_logging_service)
):
    payload = payload or LogTestRequest()
    try:
        service.emit(
            payload.message,
            payload.level,
            context={
                "endpoint": "/log-test",
                "userAgent": request.headers.get("user-agent"),
                "ip": request.client.host if request.client else None,
                "timestamp": utc_now_iso(),
            }
        )
    except ApplicationException as e:
        request_logger = get_context_logger(__name__, getattr(request.state, "correlation_id", None))
        request_logger.error("Error emitting log", extra={"error": e.message})
        return error_response(e.message)

    return LogTestResponse()


@router.post(
    "/form-data-test",
    response_model=FormDataTestResponse,
    summary="Build a multipart form in memory",
    responses={
        200: {"content": {"application/json": {"example": FORM_DATA_RESPONSE_EXAMPLE}}},
        **ERROR_RESPONSES
    }
)
async def form_data_test(service: FormDataProbeService = Depends(get_form_service)):
    try:
        form = service.build_sample_form()
        return FormDataTestResponse(headers=form.get_headers(), length=form.get_length())
    except Exception as e:
        logger.error("Error creating form data", extra={"error": str(e)})
        return error_response(str(e))


@router.get(
    "/snowflake-test",
    response_model=WarehouseTestResponse,
    summary="Connect to Snowflake and run a version query",
    responses={
        200: {"content": {"application/json": {"example": WAREHOUSE_RESPONSE_EXAMPLE}}},
        **ERROR_RESPONSES
    }
)
async def snowflake_test(service: WarehouseProbeService = Depends(get_warehouse_service)):
    try:
        result = await service.check_version()
    except WarehouseConnectionException as e:
        return error_response("Snowflake connection failed", details=e.reason)
    except WarehouseQueryException as e:
        return error_response("Query execution failed", details=e.reason)

    return WarehouseTestResponse(data=result.rows, query_id=result.query_id)


@router.post(
    "/integration-test",
    response_model=IntegrationTestResponse,
    summary="Run the form, logging and warehouse probes together",
    responses=ERROR_RESPONSES
)
async def integration_test(
    payload: Optional[IntegrationTestRequest] = None,
    service: IntegrationProbeService = Depends(get_integration_service)
):
    payload = payload or IntegrationTestRequest()
    try:
        results = await service.run(payload.test_data)
    except WarehouseConnectionException as e:
        return error_response(e.reason, step="snowflake_connection")
    except WarehouseQueryException as e:
        return error_response(e.reason, step="snowflake_query")
    except Exception as e:
        logger.error("Integration test failed", extra={"error": str(e)})
        return error_response(str(e), step="general_error")

    return IntegrationTestResponse(results=results)
