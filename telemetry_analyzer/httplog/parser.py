# telemetry_analyzer/httplog/parser.py - Access-log tokenizer
"""
Splits tab-delimited ``key:value`` access-log lines into records.

Malformed fields never abort parsing: a missing field becomes an empty
string and an unparsable number becomes zero.
"""

from dataclasses import dataclass
from typing import List, Sequence
import logging
import math

from telemetry_analyzer.errors import FieldParseError


logger = logging.getLogger(__name__)

FIELD_SEPARATOR = '\t'


@dataclass(frozen=True)
class AccessLogRecord:
    """
    One access-log request.
    """
    time: str
    uri: str
    method: str
    reqtime: float
    status: int
    vhost: str


def extract_field(fields: Sequence[str], prefix: str) -> str:
    """
    Return the value of the first field starting with prefix.

    Args:
        fields: Tab-separated fields of one line
        prefix: Field prefix including the colon, e.g. "uri:"

    Returns:
        Field value, or "" when no field matches
    """
    for field in fields:
        if field.startswith(prefix):
            return field[len(prefix):]
    return ""


def parse_float(name: str, value: str) -> float:
    """
    Strictly parse a finite float field.

    Raises:
        FieldParseError: If the value is not a finite number
    """
    try:
        number = float(value)
    except ValueError:
        raise FieldParseError(name, value)
    if not math.isfinite(number):
        raise FieldParseError(name, value)
    return number


def parse_int(name: str, value: str) -> int:
    """
    Strictly parse an integer field.

    Raises:
        FieldParseError: If the value is not an integer
    """
    try:
        return int(value)
    except ValueError:
        raise FieldParseError(name, value)


def _number_or_zero(parser, name: str, value: str):
    try:
        return parser(name, value)
    except FieldParseError as e:
        if value:
            logger.debug(str(e))
        return 0


def parse_line(line: str) -> AccessLogRecord:
    """
    Parse one access-log line.

    Args:
        line: Raw line without the trailing newline

    Returns:
        AccessLogRecord with empty/zero values for missing or bad fields
    """
    fields = line.rstrip('\r').split(FIELD_SEPARATOR)

    return AccessLogRecord(
        time=extract_field(fields, 'time:'),
        uri=extract_field(fields, 'uri:'),
        method=extract_field(fields, 'method:'),
        reqtime=float(_number_or_zero(parse_float, 'reqtime', extract_field(fields, 'reqtime:'))),
        status=_number_or_zero(parse_int, 'status', extract_field(fields, 'status:')),
        vhost=extract_field(fields, 'vhost:'),
    )


def split_lines(content: bytes) -> List[str]:
    """
    Decode log content and split it into non-blank lines.

    Args:
        content: Raw UTF-8 log bytes

    Returns:
        Lines in log order
    """
    text = content.decode('utf-8', errors='replace')
    return [line for line in text.split('\n') if line.strip()]
