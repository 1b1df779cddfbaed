"""
Probe Interfaces Layer
======================

FastAPI route handlers for the integration probes.
"""

from probes.interfaces.controllers import router as probes_router

__all__ = ["probes_router"]
