# telemetry_analyzer/profile/decoder.py - pprof snapshot decoding
"""
Decodes pprof snapshots into a resolved sample/location/function graph.

String-table indexes are resolved to text and id references are indexed
for lookup. Unresolved id references are kept as-is and simply resolve to
nothing; only structural damage raises DecodeError.
"""

import gzip
import zlib
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import logging

from google.protobuf.message import DecodeError as ProtobufDecodeError

from telemetry_analyzer.errors import DecodeError
from telemetry_analyzer.profile import schema
from telemetry_analyzer.utils.helpers import is_gzipped


logger = logging.getLogger(__name__)


@dataclass
class ValueType:
    """Measurement dimension, e.g. cpu/nanoseconds"""
    type: str
    unit: str


@dataclass
class Function:
    """
    A source-level function.
    """
    id: int
    name: str
    system_name: str = ""
    filename: str = ""
    start_line: int = 0


@dataclass
class Mapping:
    """
    A binary or shared object mapped into the profiled process.
    """
    id: int
    start: int = 0
    limit: int = 0
    offset: int = 0
    file: str = ""
    build_id: str = ""
    has_functions: bool = False
    has_filenames: bool = False
    has_line_numbers: bool = False
    has_inline_frames: bool = False


@dataclass
class Line:
    """One (possibly inlined) function line of a location"""
    function_id: int
    line: int = 0
    column: int = 0


@dataclass
class Location:
    """
    A program counter with its inlined lines, innermost first.
    """
    id: int
    mapping_id: int = 0
    address: int = 0
    lines: List[Line] = field(default_factory=list)
    is_folded: bool = False


@dataclass
class Sample:
    """
    A measured call stack. location_ids run innermost frame first and
    values align with the profile's sample types.
    """
    location_ids: List[int]
    values: List[int]
    labels: Dict[str, List[str]] = field(default_factory=dict)
    num_labels: Dict[str, List[int]] = field(default_factory=dict)
    num_units: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def primary_value(self) -> Optional[int]:
        """values[0], the dimension used for ranking"""
        return self.values[0] if self.values else None


@dataclass
class ProfileGraph:
    """
    A fully decoded profiling snapshot.

    Lookup tables by id are built on construction.
    """
    sample_types: List[ValueType] = field(default_factory=list)
    samples: List[Sample] = field(default_factory=list)
    mappings: List[Mapping] = field(default_factory=list)
    locations: List[Location] = field(default_factory=list)
    functions: List[Function] = field(default_factory=list)
    comments: List[str] = field(default_factory=list)
    drop_frames: str = ""
    keep_frames: str = ""
    time_nanos: int = 0
    duration_nanos: int = 0
    period_type: Optional[ValueType] = None
    period: int = 0
    default_sample_type: str = ""

    function_by_id: Dict[int, Function] = field(init=False, repr=False)
    location_by_id: Dict[int, Location] = field(init=False, repr=False)
    mapping_by_id: Dict[int, Mapping] = field(init=False, repr=False)

    def __post_init__(self):
        self.function_by_id = {f.id: f for f in self.functions}
        self.location_by_id = {loc.id: loc for loc in self.locations}
        self.mapping_by_id = {m.id: m for m in self.mappings}

    def resolve_lines(self, location: Location) -> List[Tuple[Function, Line]]:
        """
        Resolve a location's lines against the function table.

        Args:
            location: Location to resolve

        Returns:
            (function, line) pairs; lines naming unknown functions are dropped
        """
        resolved = []
        for line in location.lines:
            function = self.function_by_id.get(line.function_id)
            if function is not None:
                resolved.append((function, line))
        return resolved

    def sample_locations(self, sample: Sample) -> List[Location]:
        """Locations of a sample that exist in the location table, innermost first"""
        return [self.location_by_id[loc_id] for loc_id in sample.location_ids
                if loc_id in self.location_by_id]

    def total_value(self, index: int = 0) -> int:
        """Sum of values[index] over all samples that carry it"""
        return sum(s.values[index] for s in self.samples if len(s.values) > index)


def decode_profile(data: bytes) -> ProfileGraph:
    """
    Decode a pprof snapshot.

    Args:
        data: gzip-compressed or raw protobuf profile bytes

    Returns:
        Decoded ProfileGraph

    Raises:
        DecodeError: If the bytes are not a valid profile
    """
    if not data:
        raise DecodeError("empty profile data")

    if is_gzipped(data):
        try:
            data = gzip.decompress(data)
        except (OSError, EOFError, zlib.error) as e:
            raise DecodeError(f"corrupt gzip stream: {e}") from e

    message = schema.Profile()
    try:
        message.ParseFromString(data)
    except ProtobufDecodeError as e:
        raise DecodeError(f"pprof parsing error: {e}") from e

    graph = _build_graph(message)
    logger.debug(
        f"Decoded profile: {len(graph.samples)} samples, "
        f"{len(graph.locations)} locations, {len(graph.functions)} functions"
    )
    return graph


def _build_graph(message) -> ProfileGraph:
    strings = list(message.string_table)
    if not strings or strings[0] != "":
        raise DecodeError("string table must start with an empty string")

    def text(index: int) -> str:
        if index < 0 or index >= len(strings):
            raise DecodeError(f"string index {index} out of range (table size {len(strings)})")
        return strings[index]

    def value_type(vt) -> ValueType:
        return ValueType(type=text(vt.type), unit=text(vt.unit))

    sample_types = [value_type(st) for st in message.sample_type]
    if not sample_types:
        raise DecodeError("missing sample type information")

    samples = []
    for raw in message.sample:
        if len(raw.value) != len(sample_types):
            raise DecodeError(
                f"sample has {len(raw.value)} values vs. {len(sample_types)} types"
            )
        samples.append(_build_sample(raw, text))

    mappings = [
        Mapping(
            id=m.id,
            start=m.memory_start,
            limit=m.memory_limit,
            offset=m.file_offset,
            file=text(m.filename),
            build_id=text(m.build_id),
            has_functions=m.has_functions,
            has_filenames=m.has_filenames,
            has_line_numbers=m.has_line_numbers,
            has_inline_frames=m.has_inline_frames,
        )
        for m in message.mapping
    ]

    locations = [
        Location(
            id=loc.id,
            mapping_id=loc.mapping_id,
            address=loc.address,
            lines=[Line(function_id=ln.function_id, line=ln.line, column=ln.column) for ln in loc.line],
            is_folded=loc.is_folded,
        )
        for loc in message.location
    ]

    functions = [
        Function(
            id=fn.id,
            name=text(fn.name),
            system_name=text(fn.system_name),
            filename=text(fn.filename),
            start_line=fn.start_line,
        )
        for fn in message.function
    ]

    return ProfileGraph(
        sample_types=sample_types,
        samples=samples,
        mappings=mappings,
        locations=locations,
        functions=functions,
        comments=[text(c) for c in message.comment],
        drop_frames=text(message.drop_frames),
        keep_frames=text(message.keep_frames),
        time_nanos=message.time_nanos,
        duration_nanos=message.duration_nanos,
        period_type=value_type(message.period_type) if message.HasField('period_type') else None,
        period=message.period,
        default_sample_type=text(message.default_sample_type),
    )


def _build_sample(raw, text) -> Sample:
    labels = defaultdict(list)
    num_labels = defaultdict(list)
    num_units = defaultdict(list)

    for label in raw.label:
        key = text(label.key)
        if label.str != 0:
            labels[key].append(text(label.str))
        else:
            num_labels[key].append(label.num)
            num_units[key].append(text(label.num_unit))

    # Units are only reported for keys where at least one is set
    units = {key: values for key, values in num_units.items() if any(values)}

    return Sample(
        location_ids=list(raw.location_id),
        values=list(raw.value),
        labels=dict(labels),
        num_labels=dict(num_labels),
        num_units=units,
    )
