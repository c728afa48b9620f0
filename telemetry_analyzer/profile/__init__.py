# telemetry_analyzer/profile/__init__.py - Profile decoder and reporter
"""
Profile module for pprof snapshot analysis.

This module provides:
- schema.py: pprof protocol buffer message classes
- decoder.py: Snapshot decoding into a resolved graph
- reporter.py: Structured summary, detailed graph and hotspot report
"""

from typing import Optional

from telemetry_analyzer.exporters.json_exporter import JSONExporter
from telemetry_analyzer.profile.reporter import ProfileReporter


def analyze(data: bytes, profile_type: str) -> str:
    """Structured summary of a snapshot as JSON"""
    return JSONExporter().to_json(ProfileReporter().structured_summary(data, profile_type))


def convert_to_detailed_json(data: bytes) -> str:
    """Detailed graph of a snapshot as JSON"""
    return JSONExporter().to_json(ProfileReporter().detailed_graph(data))


def generate_text_report(data: bytes) -> str:
    """Hotspot report of a snapshot as plain text"""
    return ProfileReporter().hotspot_report(data)


def text_report_json(data: bytes, profile_type: str, entry_id: Optional[str] = None) -> str:
    """Hotspot report wrapped with its metadata as JSON"""
    return JSONExporter().to_json(ProfileReporter().text_report(data, profile_type, entry_id))
