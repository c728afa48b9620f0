# telemetry_analyzer/exporters/__init__.py - Exporters module
"""
Exporters for outputting analysis results.

This module provides:
- json_exporter.py: JSON serialization to strings and files
"""
