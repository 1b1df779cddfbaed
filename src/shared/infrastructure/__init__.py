"""
Infrastructure Layer
=====================

Low-level technical concerns:
- Logging setup
- Log shipping to New Relic
"""
