# telemetry_analyzer/httplog/__init__.py - Access-log aggregator
"""
Httplog module for access-log analysis.

This module provides:
- parser.py: Tab-delimited key:value line tokenizer
- patterns.py: URI pattern normalization and matching groups
- aggregator.py: Per-endpoint statistics and slow requests
"""

from typing import Optional, Sequence

from telemetry_analyzer.exporters.json_exporter import JSONExporter
from telemetry_analyzer.httplog.aggregator import AccessLogAggregator
from telemetry_analyzer.utils.config import Config


def analyze(content: bytes, slow_threshold: float,
            matching_groups: Optional[Sequence[str]] = None) -> str:
    """
    Aggregate an access log and return the result as JSON.

    Without explicit matching groups, the ALP config search paths are tried.
    """
    if matching_groups is None:
        aggregator = AccessLogAggregator.from_config(Config())
    else:
        aggregator = AccessLogAggregator(matching_groups)
    result = aggregator.aggregate(content, slow_threshold)
    return JSONExporter().to_json(result)
