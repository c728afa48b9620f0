# telemetry_analyzer/slowlog/aggregator.py - Slow-query aggregation
"""
Aggregates MySQL slow-query logs into per-pattern statistics and a ranked
list of slow queries.

The log is parsed by a producer thread; this module's consumer loop races
each queue read against a wall-clock deadline and finalizes whatever was
accumulated when the deadline fires.
"""

import math
import queue
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional
import logging

from telemetry_analyzer.slowlog.fingerprint import fingerprint_query
from telemetry_analyzer.slowlog.parser import DEFAULT_QUEUE_SIZE, QueryEvent, SlowLogParser


TOP_QUERY_PATTERNS = 20
TOP_SLOW_QUERIES = 10
DEFAULT_TIMEOUT = 30.0
PRODUCER_JOIN_TIMEOUT = 1.0


def _isoformat(ts: Optional[datetime]) -> Optional[str]:
    return ts.isoformat() if ts is not None else None


@dataclass
class QueryStats:
    """
    Statistics of one query fingerprint.

    Averages are only valid after finalize().
    """
    pattern: str
    example: str = ""
    count: int = 0
    total_time: float = 0.0
    avg_time: float = 0.0
    max_time: float = 0.0
    min_time: float = math.inf
    rows_examined: int = 0
    rows_examined_avg: float = 0.0
    rows_sent: int = 0
    rows_sent_avg: float = 0.0
    first_seen: Optional[datetime] = None
    last_seen: Optional[datetime] = None

    def add(self, event: QueryEvent):
        """Fold one event into the statistics"""
        query_time = event.query_time

        if self.count == 0:
            self.first_seen = event.ts
        self.count += 1
        self.total_time += query_time
        self.last_seen = event.ts

        if query_time > self.max_time:
            self.max_time = query_time
        if query_time < self.min_time:
            self.min_time = query_time

        self.rows_examined += event.rows_examined
        self.rows_sent += event.rows_sent

    def finalize(self):
        """Compute averages from the accumulated totals"""
        if self.count:
            self.avg_time = self.total_time / self.count
            self.rows_examined_avg = self.rows_examined / self.count
            self.rows_sent_avg = self.rows_sent / self.count

    def to_dict(self) -> Dict:
        return {
            'pattern': self.pattern,
            'count': self.count,
            'total_time': self.total_time,
            'avg_time': self.avg_time,
            'max_time': self.max_time,
            'min_time': self.min_time,
            'rows_examined': self.rows_examined,
            'rows_examined_avg': self.rows_examined_avg,
            'rows_sent': self.rows_sent,
            'rows_sent_avg': self.rows_sent_avg,
            'example': self.example,
            'first_seen': _isoformat(self.first_seen),
            'last_seen': _isoformat(self.last_seen),
        }


@dataclass(frozen=True)
class SlowQuery:
    """A query at or above the slow threshold"""
    time: Optional[datetime]
    user: str
    host: str
    db: str
    query_time: float
    lock_time: float
    rows_sent: int
    rows_examined: int
    query: str

    @classmethod
    def from_event(cls, event: QueryEvent) -> 'SlowQuery':
        return cls(
            time=event.ts,
            user=event.user,
            host=event.host,
            db=event.db,
            query_time=event.query_time,
            lock_time=event.lock_time,
            rows_sent=event.rows_sent,
            rows_examined=event.rows_examined,
            query=event.query,
        )

    def to_dict(self) -> Dict:
        result = {
            'time': _isoformat(self.time),
            'user': self.user,
            'host': self.host,
        }
        if self.db:
            result['db'] = self.db
        result.update({
            'query_time': self.query_time,
            'lock_time': self.lock_time,
            'rows_sent': self.rows_sent,
            'rows_examined': self.rows_examined,
            'query': self.query,
        })
        return result


@dataclass
class SlowLogResult:
    """Result of a slow-query log aggregation"""
    top_query_patterns: List[QueryStats]
    slowest_queries: List[SlowQuery]
    total_queries: int = 0
    total_time: float = 0.0
    timed_out: bool = field(default=False, compare=False)

    def to_dict(self) -> Dict:
        return {
            'top_query_patterns': [stats.to_dict() for stats in self.top_query_patterns],
            'slowest_queries': [query.to_dict() for query in self.slowest_queries],
            'total_queries': self.total_queries,
            'total_time': self.total_time,
        }


class SlowLogAccumulator:
    """
    Mutable aggregation state of one analysis call.

    Only the consumer loop touches it.
    """

    def __init__(self, threshold: float):
        """
        Initialize the accumulator.

        Args:
            threshold: Slow-query threshold in seconds
        """
        self.threshold = threshold
        self.pattern_stats: Dict[str, QueryStats] = {}
        self.slow_queries: List[SlowQuery] = []
        self.total_queries = 0
        self.total_time = 0.0

    def add(self, event: QueryEvent):
        """
        Fold one event in.

        Args:
            event: Parsed query event
        """
        if event.query_time >= self.threshold:
            self.slow_queries.append(SlowQuery.from_event(event))

        pattern = fingerprint_query(event.query)
        stats = self.pattern_stats.get(pattern)
        if stats is None:
            stats = QueryStats(pattern=pattern, example=event.query)
            self.pattern_stats[pattern] = stats
        stats.add(event)

        self.total_queries += 1
        self.total_time += event.query_time

    def result(self, timed_out: bool = False) -> SlowLogResult:
        """
        Finalize the statistics and rank them.

        Returns:
            SlowLogResult with the top 20 patterns by total time and the
            10 slowest queries
        """
        patterns = [stats for stats in self.pattern_stats.values() if stats.count > 0]
        for stats in patterns:
            stats.finalize()
        patterns.sort(key=lambda s: (-s.total_time, s.pattern))

        slowest = sorted(self.slow_queries, key=lambda q: q.query_time, reverse=True)

        return SlowLogResult(
            top_query_patterns=patterns[:TOP_QUERY_PATTERNS],
            slowest_queries=slowest[:TOP_SLOW_QUERIES],
            total_queries=self.total_queries,
            total_time=self.total_time,
            timed_out=timed_out,
        )


class SlowQueryAggregator:
    """
    Streams a slow-query log through a SlowLogParser and aggregates the
    events under a wall-clock deadline.

    A deadline hit is not an error: the result then reflects only the events
    consumed in time.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT,
                 queue_size: int = DEFAULT_QUEUE_SIZE,
                 parser_factory: Callable[..., SlowLogParser] = SlowLogParser):
        """
        Initialize the aggregator.

        Args:
            timeout: Deadline of the whole streaming operation in seconds
            queue_size: Bound of the producer's event queue
            parser_factory: Builds the producer from (content, queue_size=...)
        """
        self.timeout = timeout
        self.queue_size = queue_size
        self.parser_factory = parser_factory
        self.logger = logging.getLogger(__name__)

    def aggregate(self, content: bytes, threshold: float) -> SlowLogResult:
        """
        Aggregate a slow-query log.

        Args:
            content: Raw slow-query log bytes
            threshold: Slow-query threshold in seconds

        Returns:
            SlowLogResult, possibly partial if the deadline fired
        """
        accumulator = SlowLogAccumulator(threshold)
        parser = self.parser_factory(content, queue_size=self.queue_size)

        deadline = time.monotonic() + self.timeout
        timed_out = False

        parser.start()
        try:
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    timed_out = True
                    break
                try:
                    event = parser.events.get(timeout=remaining)
                except queue.Empty:
                    timed_out = True
                    break
                if event is None:
                    break
                accumulator.add(event)
        finally:
            parser.stop()
            parser.join(timeout=PRODUCER_JOIN_TIMEOUT)

        if timed_out:
            self.logger.warning(
                f"Slow log analysis timed out after {self.timeout}s; "
                f"returning {accumulator.total_queries} queries processed so far"
            )

        result = accumulator.result(timed_out=timed_out)
        self.logger.info(
            f"Aggregated {result.total_queries} queries into {len(accumulator.pattern_stats)} patterns, "
            f"{len(accumulator.slow_queries)} slow queries (threshold {threshold}s)"
        )
        return result
