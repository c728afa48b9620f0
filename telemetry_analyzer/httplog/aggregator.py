# telemetry_analyzer/httplog/aggregator.py - Access-log endpoint aggregation
"""
Aggregates access logs into per-endpoint timing/status statistics and a
ranked list of slow requests.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence
import logging

from telemetry_analyzer.errors import ConfigError
from telemetry_analyzer.httplog.parser import AccessLogRecord, parse_line, split_lines
from telemetry_analyzer.httplog.patterns import MatchingGroups, patternize_uri
from telemetry_analyzer.utils.config import Config, load_alp_config


TOP_SLOW_REQUESTS = 10


@dataclass
class EndpointStats:
    """
    Timing and status statistics of one endpoint pattern.

    avg_time is only valid after finalize().
    """
    count: int = 0
    total_time: float = 0.0
    avg_time: float = 0.0
    max_time: float = 0.0
    status_codes: Dict[int, int] = field(default_factory=lambda: defaultdict(int))

    def add(self, reqtime: float, status: int):
        """Fold one request into the statistics"""
        self.count += 1
        self.total_time += reqtime
        if reqtime > self.max_time:
            self.max_time = reqtime
        self.status_codes[status] += 1

    def finalize(self):
        """Compute the average from the accumulated totals"""
        self.avg_time = self.total_time / self.count if self.count else 0.0

    def to_dict(self) -> Dict:
        return {
            'count': self.count,
            'totalTime': self.total_time,
            'avgTime': self.avg_time,
            'maxTime': self.max_time,
            'statusCodes': {str(code): n for code, n in sorted(self.status_codes.items())},
        }


@dataclass(frozen=True)
class SlowRequest:
    """A request at or above the slow threshold"""
    time: str
    uri: str
    method: str
    req_time: float
    host: str

    @classmethod
    def from_record(cls, record: AccessLogRecord) -> 'SlowRequest':
        return cls(time=record.time, uri=record.uri, method=record.method,
                   req_time=record.reqtime, host=record.vhost)

    def to_dict(self) -> Dict:
        return {
            'time': self.time,
            'uri': self.uri,
            'method': self.method,
            'reqTime': self.req_time,
            'host': self.host,
        }


@dataclass
class AccessLogResult:
    """Result of an access-log aggregation"""
    endpoint_stats: Dict[str, EndpointStats]
    slow_requests: List[SlowRequest]
    config_used: bool = False

    def to_dict(self) -> Dict:
        return {
            'endpoint_stats': {
                pattern: stats.to_dict()
                for pattern, stats in sorted(self.endpoint_stats.items())
            },
            'slow_requests': [req.to_dict() for req in self.slow_requests],
            'config_used': self.config_used,
        }


class AccessLogAggregator:
    """
    Groups access-log requests by normalized endpoint pattern.

    Every call owns its own statistics tables.
    """

    def __init__(self, matching_groups: Optional[Sequence[str]] = None):
        """
        Initialize the aggregator.

        Args:
            matching_groups: Operator URI patterns, tried in order before
                numeric-id normalization
        """
        self.groups = MatchingGroups(matching_groups)
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config: Config, alp_config: Optional[str] = None) -> 'AccessLogAggregator':
        """
        Build an aggregator from configuration.

        Matching groups come from the explicit ALP file, else from the inline
        ``httplog.matching_groups`` list, else from the first readable
        ``httplog.alp_config_paths`` entry. A bad or missing file falls back
        to numeric-id normalization.

        Args:
            config: Configuration
            alp_config: Optional explicit ALP config path

        Returns:
            AccessLogAggregator
        """
        logger = logging.getLogger(__name__)
        inline_groups = config.get('httplog.matching_groups') or []

        if inline_groups and not alp_config:
            return cls(inline_groups)

        try:
            groups = load_alp_config(alp_config, config.get('httplog.alp_config_paths', []))
        except ConfigError as e:
            logger.warning(f"Failed to load ALP config, using default URI patterns: {e}")
            groups = []

        return cls(groups)

    def aggregate(self, content: bytes, threshold: float) -> AccessLogResult:
        """
        Aggregate an access log.

        Args:
            content: Raw log bytes
            threshold: Slow-request threshold in seconds

        Returns:
            AccessLogResult with at most 10 slow requests
        """
        lines = split_lines(content)

        endpoint_stats = self.analyze_log(lines)
        slow_requests = self.extract_slow_requests(lines, threshold)

        self.logger.info(
            f"Aggregated {len(lines)} requests into {len(endpoint_stats)} endpoints, "
            f"{len(slow_requests)} slow requests (threshold {threshold}s)"
        )

        return AccessLogResult(
            endpoint_stats=endpoint_stats,
            slow_requests=slow_requests[:TOP_SLOW_REQUESTS],
            config_used=bool(self.groups),
        )

    def analyze_log(self, lines: Sequence[str]) -> Dict[str, EndpointStats]:
        """
        Compute per-endpoint statistics.

        Args:
            lines: Log lines

        Returns:
            Finalized statistics keyed by URI pattern
        """
        stats: Dict[str, EndpointStats] = {}

        for line in lines:
            record = parse_line(line)
            pattern = patternize_uri(record.uri, self.groups)

            if pattern not in stats:
                stats[pattern] = EndpointStats()
            stats[pattern].add(record.reqtime, record.status)

        for endpoint in stats.values():
            endpoint.finalize()

        return stats

    def extract_slow_requests(self, lines: Sequence[str], threshold: float) -> List[SlowRequest]:
        """
        Collect requests whose reqtime meets the threshold.

        Args:
            lines: Log lines
            threshold: Threshold in seconds

        Returns:
            All slow requests, slowest first; ties keep log order
        """
        slow = []

        for line in lines:
            record = parse_line(line)
            if record.reqtime >= threshold:
                slow.append(SlowRequest.from_record(record))

        slow.sort(key=lambda r: r.req_time, reverse=True)

        return slow
