# telemetry_analyzer/slowlog/parser.py - MySQL slow-query log parser
"""
Line-oriented parser for MySQL slow-query logs.

The parser runs as a producer thread and puts one QueryEvent per completed
query record onto a bounded queue, closing it with a None sentinel.
"""

import math
import queue
import re
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterator, List, Optional
import logging


logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 128

USER_HOST = re.compile(
    r'^# User@Host:\s*([^\[\s]*)(?:\[([^\]]*)\])?\s*@\s*([^\s\[]*)\s*(?:\[([^\]]*)\])?'
)
METRIC_PAIR = re.compile(r'(\w+):\s+(\S+)')
SET_TIMESTAMP = re.compile(r'^SET\s+timestamp\s*=\s*(\d+)\s*;?\s*$', re.IGNORECASE)
USE_DATABASE = re.compile(r'^use\s+`?([^`;\s]+)`?\s*;?\s*$', re.IGNORECASE)
SERVER_BANNER = re.compile(r'^(?:\S+, Version: .*|Tcp port: .*|Time\s+Id\s+Command\s+Argument\s*)$')
ADMIN_COMMAND = re.compile(r'^# administrator command:\s*(.*)$')


@dataclass
class QueryEvent:
    """
    One query record of a slow-query log.
    """
    query: str
    ts: Optional[datetime] = None
    user: str = ""
    host: str = ""
    db: str = ""
    time_metrics: Dict[str, float] = field(default_factory=dict)
    number_metrics: Dict[str, int] = field(default_factory=dict)
    bool_metrics: Dict[str, bool] = field(default_factory=dict)
    line_number: int = 0

    @property
    def query_time(self) -> float:
        return self.time_metrics.get('Query_time', 0.0)

    @property
    def lock_time(self) -> float:
        return self.time_metrics.get('Lock_time', 0.0)

    @property
    def rows_sent(self) -> int:
        return self.number_metrics.get('Rows_sent', 0)

    @property
    def rows_examined(self) -> int:
        return self.number_metrics.get('Rows_examined', 0)


def parse_log_time(value: str) -> Optional[datetime]:
    """
    Parse a ``# Time:`` header value.

    Accepts ISO-8601 ("2024-01-02T03:04:05.123456Z") and the legacy
    "YYMMDD H:MM:SS" format. Naive times are taken as UTC.

    Args:
        value: Header value

    Returns:
        Timezone-aware datetime, or None if the value is not recognized
    """
    value = value.strip()
    if not value:
        return None

    try:
        ts = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        try:
            ts = datetime.strptime(' '.join(value.split()), '%y%m%d %H:%M:%S')
        except ValueError:
            logger.debug(f"Unrecognized slow log time: {value}")
            return None

    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


class _EventBuilder:
    """Header and query lines of the record being read"""

    def __init__(self, line_number: int = 0):
        self.ts: Optional[datetime] = None
        self.user = ""
        self.host = ""
        self.db = ""
        self.time_metrics: Dict[str, float] = {}
        self.number_metrics: Dict[str, int] = {}
        self.bool_metrics: Dict[str, bool] = {}
        self.query_lines: List[str] = []
        self.line_number = line_number

    def add_metrics(self, line: str):
        for key, value in METRIC_PAIR.findall(line):
            if key == 'Schema':
                self.db = value
            elif value in ('Yes', 'No'):
                self.bool_metrics[key] = value == 'Yes'
            elif key.endswith('_time'):
                try:
                    parsed = float(value)
                except ValueError:
                    parsed = math.nan
                if math.isfinite(parsed):
                    self.time_metrics[key] = parsed
                else:
                    logger.debug(f"Bad time metric {key}={value}")
            else:
                try:
                    self.number_metrics[key] = int(value)
                except ValueError:
                    try:
                        self.number_metrics[key] = int(float(value))
                    except (ValueError, OverflowError):
                        logger.debug(f"Bad number metric {key}={value}")

    def build(self, last_ts: Optional[datetime]) -> Optional[QueryEvent]:
        query = "\n".join(self.query_lines).strip().rstrip(';').rstrip()
        if not query:
            return None
        return QueryEvent(
            query=query,
            ts=self.ts or last_ts,
            user=self.user,
            host=self.host,
            db=self.db,
            time_metrics=self.time_metrics,
            number_metrics=self.number_metrics,
            bool_metrics=self.bool_metrics,
            line_number=self.line_number,
        )


class SlowLogParser:
    """
    Parses a slow-query log in a producer thread.

    Events are consumed from ``events``; a None item marks the end of the
    log. ``stop()`` makes the producer give up early.
    """

    def __init__(self, content: bytes, queue_size: int = DEFAULT_QUEUE_SIZE):
        """
        Initialize the parser.

        Args:
            content: Raw slow-query log bytes
            queue_size: Bound of the event queue
        """
        self.content = content
        self.events: queue.Queue = queue.Queue(maxsize=queue_size)
        self.event_count = 0

        self._stopped = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.logger = logging.getLogger(__name__)

    def start(self):
        """Start the producer thread"""
        self._thread = threading.Thread(target=self._run, name='slowlog-parser', daemon=True)
        self._thread.start()

    def stop(self):
        """Ask the producer to stop"""
        self._stopped.set()

    def join(self, timeout: Optional[float] = None):
        if self._thread is not None:
            self._thread.join(timeout)

    def _put(self, item) -> bool:
        while not self._stopped.is_set():
            try:
                self.events.put(item, timeout=0.1)
                return True
            except queue.Full:
                continue
        return False

    def _run(self):
        try:
            for event in self.iter_events():
                if not self._put(event):
                    self.logger.debug("Parser stopped before end of log")
                    return
                self.event_count += 1
        except Exception as e:
            self.logger.error(f"Error parsing slow log: {e}")
        finally:
            self._put(None)

    def iter_events(self) -> Iterator[QueryEvent]:
        """
        Parse the whole log synchronously.

        Yields:
            QueryEvent per query record, in log order
        """
        text = self.content.decode('utf-8', errors='replace')
        builder = _EventBuilder()
        last_ts: Optional[datetime] = None

        for line_number, line in enumerate(text.splitlines(), 1):
            is_header = line.startswith('#')
            is_banner = bool(SERVER_BANNER.match(line))

            if (is_header or is_banner) and builder.query_lines:
                event = builder.build(last_ts)
                if event is not None:
                    yield event
                builder = _EventBuilder(line_number)

            if is_banner:
                continue

            if is_header:
                if not builder.line_number:
                    builder.line_number = line_number
                self._parse_header(builder, line)
                if builder.ts is not None:
                    last_ts = builder.ts
                # An administrator command completes its record
                if builder.query_lines:
                    event = builder.build(last_ts)
                    if event is not None:
                        yield event
                    builder = _EventBuilder()
                continue

            if not builder.query_lines:
                match = USE_DATABASE.match(line.strip())
                if match:
                    builder.db = match.group(1)
                    continue
                match = SET_TIMESTAMP.match(line.strip())
                if match:
                    builder.ts = datetime.fromtimestamp(int(match.group(1)), tz=timezone.utc)
                    continue
                if not line.strip():
                    continue

            builder.query_lines.append(line)

        event = builder.build(last_ts)
        if event is not None:
            yield event

    @staticmethod
    def _parse_header(builder: _EventBuilder, line: str):
        if line.startswith('# Time:'):
            builder.ts = parse_log_time(line[len('# Time:'):])
        elif line.startswith('# User@Host:'):
            match = USER_HOST.match(line)
            if match:
                user, bracket_user, host, ip = match.groups()
                builder.user = user or bracket_user or ""
                builder.host = host or ip or ""
        elif line.startswith('# administrator command:'):
            builder.query_lines = [ADMIN_COMMAND.match(line).group(1)]
        else:
            builder.add_metrics(line)
