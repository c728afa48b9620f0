# telemetry_analyzer/utils/__init__.py - Utilities module
"""
Utility functions and helpers.

This module provides:
- config.py: YAML configuration and ALP matching-group loading
- logger.py: Logging setup
- helpers.py: Artifact reading and formatting helpers
"""
