"""
Infrastructure Package
======================

Adapters for the third-party integrations the probes exercise:
- forms: in-memory multipart/form-data encoding
- warehouse: Snowflake engine and statement execution
"""
