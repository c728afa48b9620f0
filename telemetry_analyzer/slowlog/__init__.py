# telemetry_analyzer/slowlog/__init__.py - Slow-query aggregator
"""
Slowlog module for MySQL slow-query log analysis.

This module provides:
- parser.py: Producer-thread slow log parser
- fingerprint.py: Query fingerprinting
- aggregator.py: Per-pattern statistics under a deadline
"""

from telemetry_analyzer.exporters.json_exporter import JSONExporter
from telemetry_analyzer.slowlog.aggregator import DEFAULT_TIMEOUT, SlowQueryAggregator


def analyze(content: bytes, threshold: float, timeout: float = DEFAULT_TIMEOUT) -> str:
    """Aggregate a slow-query log and return the result as JSON"""
    result = SlowQueryAggregator(timeout=timeout).aggregate(content, threshold)
    return JSONExporter().to_json(result)
