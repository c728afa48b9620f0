# telemetry_analyzer/errors.py - Error taxonomy
"""
Exceptions raised by the analyzers.

Only DecodeError and EncodeError propagate to callers; ConfigError and
FieldParseError are recovered from where they are raised.
"""


class AnalysisError(Exception):
    """Base class for analysis failures"""


class DecodeError(AnalysisError):
    """Malformed or corrupt binary profile"""


class ConfigError(AnalysisError):
    """Unreadable or invalid operator pattern configuration"""


class FieldParseError(AnalysisError):
    """A single log field could not be parsed"""

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__(f"Cannot parse {field!r} value {value!r}")


class EncodeError(AnalysisError):
    """Final result could not be serialized"""
