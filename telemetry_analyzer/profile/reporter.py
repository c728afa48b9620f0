# telemetry_analyzer/profile/reporter.py - Profile summaries and hotspot report
"""
Renders decoded profiles as a structured summary, a detailed graph or a
ranked textual hotspot report.

Each output shape has its own result type and a mapping function from the
decoded ProfileGraph.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional
import logging

from telemetry_analyzer.profile.decoder import (
    Function,
    Location,
    Mapping,
    ProfileGraph,
    Sample,
    ValueType,
    decode_profile,
)
from telemetry_analyzer.utils.helpers import format_duration


TOP_FUNCTIONS = 50
TOP_CALL_PATHS = 50

OPTIMIZATION_HINTS = [
    "Focus on top functions (especially those consuming more than 10% of total resources)",
    "Deep call paths may indicate excessive recursion or library calls",
    "Consider optimizing functions that appear in multiple call paths",
    "Consider algorithm improvements, caching, and parallel processing for optimization",
]


@dataclass
class CallFrame:
    """A resolved frame of a stack trace"""
    function: str
    filename: str
    line: int

    def to_dict(self) -> Dict:
        return {'function': self.function, 'filename': self.filename, 'line': self.line}


@dataclass
class StackTrace:
    """A location with its resolved call stack"""
    id: int
    address: int
    call_stack: List[CallFrame]

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'address': self.address,
            'callStack': [frame.to_dict() for frame in self.call_stack],
        }


@dataclass
class SampleSummary:
    """Flattened view of a sample"""
    location_ids: List[int]
    values: List[int]
    labels: Dict[str, List[str]]

    def to_dict(self) -> Dict:
        return {'locationIDs': self.location_ids, 'values': self.values, 'labels': self.labels}


@dataclass
class ProfileMetadata:
    """Snapshot-level metadata of a structured summary"""
    profile_type: str
    time_nanos: int
    duration: int
    period: int
    period_type: str
    period_unit: str

    def to_dict(self) -> Dict:
        return {
            'profileType': self.profile_type,
            'timeNanos': self.time_nanos,
            'duration': self.duration,
            'period': self.period,
            'periodType': self.period_type,
            'periodUnit': self.period_unit,
        }


@dataclass
class StructuredSummary:
    """
    Flat structured view of a profile: metadata, the locations that resolve
    to at least one function line, and every sample.
    """
    metadata: ProfileMetadata
    stack_traces: List[StackTrace] = field(default_factory=list)
    samples: List[SampleSummary] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            'metadata': self.metadata.to_dict(),
            'stackTraces': [trace.to_dict() for trace in self.stack_traces],
            'samples': [sample.to_dict() for sample in self.samples],
        }


@dataclass
class DetailedGraph:
    """
    Lossless re-encoding of the whole decoded graph. Samples, locations and
    lines reference other tables by numeric id.
    """
    graph: ProfileGraph

    def to_dict(self) -> Dict:
        g = self.graph
        return {
            'sampleType': [_value_type_dict(st) for st in g.sample_types],
            'defaultSampleType': g.default_sample_type,
            'sample': [_detailed_sample_dict(s) for s in g.samples],
            'mapping': [_mapping_dict(m) for m in g.mappings],
            'location': [_detailed_location_dict(loc) for loc in g.locations],
            'function': [_function_dict(fn) for fn in g.functions],
            'comments': list(g.comments),
            'dropFrames': g.drop_frames,
            'keepFrames': g.keep_frames,
            'timeNanos': g.time_nanos,
            'durationNanos': g.duration_nanos,
            'periodType': _value_type_dict(g.period_type) if g.period_type else None,
            'period': g.period,
        }


@dataclass
class TextReport:
    """Hotspot report wrapped for transport as JSON"""
    profile_type: str
    report: str
    entry_id: Optional[str] = None
    format: str = 'text'

    def to_dict(self) -> Dict:
        result = {'format': self.format, 'profile_type': self.profile_type}
        if self.entry_id:
            result['entry_id'] = self.entry_id
        result['report'] = self.report
        return result


@dataclass
class FunctionHotspot:
    """A function ranked by cumulative primary value"""
    function: Function
    value: int
    percent: float


@dataclass
class CallPathHotspot:
    """A sample's call path, outermost caller first"""
    names: List[str]
    value: int
    percent: float


def _value_type_dict(vt: ValueType) -> Dict:
    return {'type': vt.type, 'unit': vt.unit}


def _mapping_dict(m: Mapping) -> Dict:
    return {
        'id': m.id,
        'start': m.start,
        'limit': m.limit,
        'offset': m.offset,
        'file': m.file,
        'buildId': m.build_id,
        'hasFunctions': m.has_functions,
        'hasFilenames': m.has_filenames,
        'hasLineNumbers': m.has_line_numbers,
        'hasInlineFrames': m.has_inline_frames,
    }


def _function_dict(fn: Function) -> Dict:
    return {
        'id': fn.id,
        'name': fn.name,
        'systemName': fn.system_name,
        'filename': fn.filename,
        'startLine': fn.start_line,
    }


def _detailed_location_dict(loc: Location) -> Dict:
    return {
        'id': loc.id,
        'mapping': loc.mapping_id,
        'address': loc.address,
        'line': [
            {'function': ln.function_id, 'line': ln.line, 'column': ln.column}
            for ln in loc.lines
        ],
        'isFolded': loc.is_folded,
    }


def _detailed_sample_dict(s: Sample) -> Dict:
    return {
        'location': list(s.location_ids),
        'value': list(s.values),
        'label': s.labels,
        'numLabel': s.num_labels,
        'numUnit': s.num_units,
    }


def _percent(value: int, total: int) -> float:
    return value / total * 100 if total > 0 else 0.0


def to_structured_summary(graph: ProfileGraph, profile_type: str) -> StructuredSummary:
    """
    Map a decoded graph to its structured summary.

    Args:
        graph: Decoded profile
        profile_type: Measurement label ("cpu", "heap", ...), metadata only

    Returns:
        StructuredSummary
    """
    period_type = graph.period_type or ValueType(type="", unit="")
    metadata = ProfileMetadata(
        profile_type=profile_type,
        time_nanos=graph.time_nanos,
        duration=graph.duration_nanos,
        period=graph.period,
        period_type=period_type.type,
        period_unit=period_type.unit,
    )

    stack_traces = []
    for location in graph.locations:
        call_stack = [
            CallFrame(function=fn.name, filename=fn.filename, line=line.line)
            for fn, line in graph.resolve_lines(location)
        ]
        if call_stack:
            stack_traces.append(StackTrace(id=location.id, address=location.address, call_stack=call_stack))

    samples = [
        SampleSummary(location_ids=list(s.location_ids), values=list(s.values), labels=s.labels)
        for s in graph.samples
    ]

    return StructuredSummary(metadata=metadata, stack_traces=stack_traces, samples=samples)


def to_detailed_graph(graph: ProfileGraph) -> DetailedGraph:
    """Map a decoded graph to its detailed id-referencing form"""
    return DetailedGraph(graph=graph)


def rank_functions(graph: ProfileGraph, limit: int = TOP_FUNCTIONS) -> List[FunctionHotspot]:
    """
    Rank functions by cumulative primary value.

    Every resolved line of every location in a sample credits the sample's
    values[0] to that line's function, so a function appearing several times
    in one stack is credited once per appearance.

    Args:
        graph: Decoded profile
        limit: Maximum number of functions returned

    Returns:
        Hotspots sorted by value descending, then name, then id
    """
    cumulative: Dict[int, int] = defaultdict(int)
    for sample in graph.samples:
        if not sample.values or not sample.location_ids:
            continue
        value = sample.values[0]
        for location in graph.sample_locations(sample):
            for fn, _ in graph.resolve_lines(location):
                cumulative[fn.id] += value

    total = graph.total_value(0)
    hotspots = [
        FunctionHotspot(function=graph.function_by_id[fid], value=value,
                        percent=_percent(value, total))
        for fid, value in cumulative.items()
        if graph.function_by_id[fid].name
    ]
    hotspots.sort(key=lambda h: (-h.value, h.function.name, h.function.id))

    return hotspots[:limit]


def rank_call_paths(graph: ProfileGraph, limit: int = TOP_CALL_PATHS) -> List[CallPathHotspot]:
    """
    Rank sample call paths by primary value.

    Locations are walked outermost first; each contributes the function of
    its last line. Ties keep sample order.

    Args:
        graph: Decoded profile
        limit: Maximum number of paths returned

    Returns:
        Call paths sorted by value descending
    """
    total = graph.total_value(0)
    paths = []

    for sample in graph.samples:
        if not sample.values or not sample.location_ids:
            continue

        names = []
        for location in reversed(graph.sample_locations(sample)):
            if not location.lines:
                continue
            fn = graph.function_by_id.get(location.lines[-1].function_id)
            if fn is not None:
                names.append(fn.name)

        if names:
            value = sample.values[0]
            paths.append(CallPathHotspot(names=names, value=value, percent=_percent(value, total)))

    paths.sort(key=lambda p: -p.value)

    return paths[:limit]


def render_hotspot_report(graph: ProfileGraph) -> str:
    """
    Render the four-section hotspot report.

    Args:
        graph: Decoded profile

    Returns:
        Report text
    """
    lines = []

    lines.append("===== Profile Information Summary =====")
    if graph.duration_nanos > 0:
        lines.append(
            f"Measurement Time: {graph.duration_nanos} nanoseconds "
            f"({format_duration(graph.duration_nanos)})"
        )
    if graph.period_type is not None:
        lines.append(f"Sampling Period: {graph.period} {graph.period_type.unit}")
        lines.append(f"Measurement Unit: {graph.period_type.type} ({graph.period_type.unit})")
    if graph.sample_types:
        lines.append("Sample Types: " + ", ".join(f"{st.type} ({st.unit})" for st in graph.sample_types))
        for index, st in enumerate(graph.sample_types):
            lines.append(f"Total {st.type}: {graph.total_value(index)} {st.unit}")
    lines.append("")

    lines.append(f"===== Top {TOP_FUNCTIONS} Hotspot Functions =====")
    for rank, hotspot in enumerate(rank_functions(graph), 1):
        fn = hotspot.function
        lines.append(f"{rank}. {fn.name} ({fn.filename}:{fn.start_line})")
        lines.append(f"   Value: {hotspot.value} ({hotspot.percent:.2f}%)")
        lines.append("")

    lines.append("===== Important Call Paths =====")
    for rank, path in enumerate(rank_call_paths(graph), 1):
        lines.append(f"Path {rank} - Value: {path.value} ({path.percent:.2f}%)")
        for depth, name in enumerate(path.names):
            lines.append(f"{'  ' * depth}-> {name}")
        lines.append("")

    lines.append("===== Bottleneck Analysis Hints =====")
    for i, hint in enumerate(OPTIMIZATION_HINTS, 1):
        lines.append(f"{i}. {hint}")

    return "\n".join(lines) + "\n"


class ProfileReporter:
    """
    Decodes profiling snapshots and renders them in one of three shapes.

    Each call decodes its own copy of the graph; nothing is shared between
    calls.
    """

    def __init__(self):
        """
        Initialize the profile reporter.
        """
        self.logger = logging.getLogger(__name__)

    def structured_summary(self, data: bytes, profile_type: str) -> StructuredSummary:
        """
        Build the structured summary of a snapshot.

        Args:
            data: Raw snapshot bytes
            profile_type: Measurement label for the metadata

        Returns:
            StructuredSummary

        Raises:
            DecodeError: If the bytes are not a valid snapshot
        """
        graph = decode_profile(data)
        summary = to_structured_summary(graph, profile_type)
        self.logger.info(
            f"Structured {profile_type} profile: {len(summary.stack_traces)} stack traces, "
            f"{len(summary.samples)} samples"
        )
        return summary

    def detailed_graph(self, data: bytes) -> DetailedGraph:
        """
        Build the lossless detailed graph of a snapshot.

        Raises:
            DecodeError: If the bytes are not a valid snapshot
        """
        return to_detailed_graph(decode_profile(data))

    def hotspot_report(self, data: bytes) -> str:
        """
        Render the hotspot report of a snapshot.

        Raises:
            DecodeError: If the bytes are not a valid snapshot
        """
        graph = decode_profile(data)
        report = render_hotspot_report(graph)
        self.logger.info(f"Generated hotspot report ({len(graph.samples)} samples)")
        return report

    def text_report(self, data: bytes, profile_type: str, entry_id: Optional[str] = None) -> TextReport:
        """
        Render the hotspot report wrapped with its transport metadata.

        Args:
            data: Raw snapshot bytes
            profile_type: Measurement label
            entry_id: Optional id of the stored artifact

        Returns:
            TextReport
        """
        return TextReport(profile_type=profile_type, report=self.hotspot_report(data), entry_id=entry_id)
