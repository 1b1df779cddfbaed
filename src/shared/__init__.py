"""
Shared Kernel Module
====================

Shared infrastructure used by every probe: structured logging, the New
Relic log transport, and the API middleware.

DO NOT add probe-specific logic to the shared kernel.
"""

__version__ = "1.0.0"
