"""
Probe Application Layer
=======================

Contains:
- Services: drive one integration each, or all of them in sequence
- DTOs: request and response models for the API
"""

from probes.application.dto import (
    LogTestRequest,
    IntegrationTestRequest,
    StatusResponse,
    HealthResponse,
    LogTestResponse,
    FormDataTestResponse,
    WarehouseTestResponse,
    IntegrationTestResponse,
    IntegrationResults,
    ErrorResponse,
)
from probes.application.services import (
    LoggingProbeService,
    FormDataProbeService,
    WarehouseProbeService,
    IntegrationProbeService,
    active_transport,
)

__all__ = [
    # DTOs
    "LogTestRequest",
    "IntegrationTestRequest",
    "StatusResponse",
    "HealthResponse",
    "LogTestResponse",
    "FormDataTestResponse",
    "WarehouseTestResponse",
    "IntegrationTestResponse",
    "IntegrationResults",
    "ErrorResponse",
    # Services
    "LoggingProbeService",
    "FormDataProbeService",
    "WarehouseProbeService",
    "IntegrationProbeService",
    "active_transport",
]
