# tests/conftest.py - Shared fixtures
"""
Fixtures for building synthetic artifacts.
"""

import gzip

import pytest

from telemetry_analyzer.profile import schema


class ProfileBuilder:
    """
    Builds pprof snapshots with an interned string table.
    """

    def __init__(self, sample_types=(('cpu', 'nanoseconds'),)):
        self.strings = [""]
        self.message = schema.Profile()
        for type_name, unit in sample_types:
            self.message.sample_type.add(type=self.s(type_name), unit=self.s(unit))

    def s(self, text):
        """Intern a string and return its index"""
        if text not in self.strings:
            self.strings.append(text)
        return self.strings.index(text)

    def period(self, type_name, unit, period):
        self.message.period_type.type = self.s(type_name)
        self.message.period_type.unit = self.s(unit)
        self.message.period = period
        return self

    def function(self, fid, name, filename="main.go", start_line=0):
        self.message.function.add(id=fid, name=self.s(name), system_name=self.s(name),
                                  filename=self.s(filename), start_line=start_line)
        return self

    def location(self, lid, lines, address=0, mapping_id=0):
        """lines: function ids, or (function id, line) pairs, innermost first"""
        loc = self.message.location.add(id=lid, address=address, mapping_id=mapping_id)
        for entry in lines:
            fid, line = entry if isinstance(entry, tuple) else (entry, 0)
            loc.line.add(function_id=fid, line=line)
        return self

    def mapping(self, mid, filename, start=0, limit=0):
        self.message.mapping.add(id=mid, memory_start=start, memory_limit=limit,
                                 filename=self.s(filename), has_functions=True)
        return self

    def sample(self, location_ids, values, labels=None, num_labels=None):
        sample = self.message.sample.add(location_id=location_ids, value=values)
        for key, value in (labels or {}).items():
            sample.label.add(key=self.s(key), str=self.s(value))
        for key, (num, unit) in (num_labels or {}).items():
            sample.label.add(key=self.s(key), num=num, num_unit=self.s(unit) if unit else 0)
        return self

    def build(self, compress=True):
        """Serialize the snapshot"""
        del self.message.string_table[:]
        self.message.string_table.extend(self.strings)
        raw = self.message.SerializeToString()
        return gzip.compress(raw) if compress else raw


@pytest.fixture
def profile_builder():
    """Factory for ProfileBuilder instances"""
    return ProfileBuilder


@pytest.fixture
def cpu_profile():
    """
    Small CPU profile: main -> handler -> parse, main -> handler -> render.
    """
    builder = ProfileBuilder(sample_types=(('samples', 'count'), ('cpu', 'nanoseconds')))
    builder.period('cpu', 'nanoseconds', 10000000)
    builder.message.time_nanos = 1700000000000000000
    builder.message.duration_nanos = 2000000000
    builder.mapping(1, '/usr/bin/app', start=0x400000, limit=0x800000)
    builder.function(1, 'main.main', 'main.go', 10)
    builder.function(2, 'main.handler', 'handler.go', 20)
    builder.function(3, 'main.parse', 'parse.go', 30)
    builder.function(4, 'main.render', 'render.go', 40)
    builder.location(1, [(1, 12)], address=0x401000, mapping_id=1)
    builder.location(2, [(2, 25)], address=0x402000, mapping_id=1)
    builder.location(3, [(3, 33)], address=0x403000, mapping_id=1)
    builder.location(4, [(4, 41)], address=0x404000, mapping_id=1)
    builder.sample([3, 2, 1], [75, 750000000], labels={'thread': 'worker-1'})
    builder.sample([4, 2, 1], [25, 250000000])
    return builder.build()
