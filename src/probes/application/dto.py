"""
Probe Application DTOs
======================

Data Transfer Objects for the probe endpoints.

Field names on the wire are camelCase (``queryId``, ``testData``); the
models accept either spelling when populated from Python.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional


class WireModel(BaseModel):
    """Base for models serialized with camelCase aliases."""
    model_config = ConfigDict(populate_by_name=True)


# ========== Request DTOs ==========

class LogTestRequest(BaseModel):
    """Request model for the logging probe."""
    message: Optional[Any] = Field(
        None, description="Message to log; non-string values are logged as JSON"
    )
    level: Optional[str] = Field("info", description="Level name, e.g. info, warn, error")


class IntegrationTestRequest(WireModel):
    """Request model for the combined integration probe."""
    test_data: Optional[Any] = Field(
        None,
        alias="testData",
        description="Arbitrary JSON carried through the form, the log and the query"
    )


# ========== Response DTOs ==========

class StatusResponse(BaseModel):
    """Response model for the root status endpoint."""
    message: str
    timestamp: str
    libraries: List[str]


class HealthResponse(BaseModel):
    """Response model for the health check."""
    status: Literal["healthy"] = "healthy"
    version: str
    environment: str
    checks: Dict[str, str]


class LogTestResponse(BaseModel):
    success: bool = True
    message: str = "Log sent successfully"


class FormDataTestResponse(BaseModel):
    """Headers and encoded size of the sample multipart form."""
    success: bool = True
    message: str = "Form data created successfully"
    headers: Dict[str, str]
    length: int


class WarehouseTestResponse(WireModel):
    """Rows returned by the warehouse version query."""
    success: bool = True
    message: str = "Snowflake connection and query successful"
    data: List[Dict[str, Any]] = Field(default_factory=list)
    query_id: Optional[str] = Field(None, alias="queryId")


class FormDataResult(BaseModel):
    created: bool = True
    size: int
    headers: Dict[str, str]


class LoggingResult(BaseModel):
    logged: bool = True
    transport: str


class WarehouseResult(WireModel):
    connected: bool = True
    query_executed: bool = Field(True, alias="queryExecuted")
    query_id: Optional[str] = Field(None, alias="queryId")
    data: List[Dict[str, Any]] = Field(default_factory=list)


class IntegrationResults(WireModel):
    form_data: FormDataResult = Field(..., alias="formData")
    logging: LoggingResult
    snowflake: WarehouseResult


class IntegrationTestResponse(BaseModel):
    success: bool = True
    message: str = "All libraries integrated successfully"
    results: IntegrationResults


class ErrorResponse(BaseModel):
    """Body of every HTTP 500 returned by the probes."""
    success: Literal[False] = False
    error: str
    details: Optional[Any] = None
    step: Optional[str] = None
