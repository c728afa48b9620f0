# telemetry_analyzer/__init__.py - Telemetry artifact analysis engine
"""
Analyzers for operational telemetry artifacts.

This package provides:
- profile: pprof snapshot decoding and hotspot reporting
- httplog: access-log endpoint aggregation
- slowlog: MySQL slow-query log aggregation
"""

__version__ = "0.1.0"
