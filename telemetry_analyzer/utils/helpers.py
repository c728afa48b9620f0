# telemetry_analyzer/utils/helpers.py - Helper functions
"""
General utility and helper functions.
"""

from pathlib import Path
import logging


logger = logging.getLogger(__name__)

GZIP_MAGIC = b'\x1f\x8b'


def read_artifact(path: str) -> bytes:
    """
    Read a raw artifact file.

    Args:
        path: File path

    Returns:
        File content as bytes
    """
    data = Path(path).read_bytes()
    logger.debug(f"Read {len(data)} bytes from {path}")
    return data


def is_gzipped(data: bytes) -> bool:
    """Check for the gzip magic number"""
    return data[:2] == GZIP_MAGIC


def infer_profile_type(name: str, default: str = 'unknown') -> str:
    """
    Infer the profile type from an artifact name.

    Args:
        name: File name or entry id (e.g. "1700000000-cpu-pprof.pb.gz")
        default: Value used when no known type appears in the name

    Returns:
        'cpu', 'heap' or the default
    """
    lowered = name.lower()
    if 'cpu' in lowered:
        return 'cpu'
    elif 'heap' in lowered:
        return 'heap'
    return default


def format_duration(duration_ns: int) -> str:
    """
    Format duration in nanoseconds to human-readable string.

    Args:
        duration_ns: Duration in nanoseconds

    Returns:
        Formatted string (e.g., "1.5ms")
    """
    if duration_ns < 1000:
        return f"{duration_ns}ns"
    elif duration_ns < 1_000_000:
        return f"{duration_ns/1000:.1f}us"
    elif duration_ns < 1_000_000_000:
        return f"{duration_ns/1_000_000:.1f}ms"
    else:
        return f"{duration_ns/1_000_000_000:.1f}s"

