"""
Integration Probes Module
=========================

Endpoints that each exercise one third-party integration:

- POST /log-test: structured logging shipped to New Relic
- POST /form-data-test: in-memory multipart/form-data construction
- GET /snowflake-test: Snowflake connection and version query
- POST /integration-test: all of the above in one sequence
"""

__version__ = "1.0.0"
