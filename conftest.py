"""
Shared pytest configuration for the timestamp tools.

Test docstrings are used as test names in reports, and in-memory stand-ins
for the metadata reader and the file system timestamp reader/writer are
provided as fixtures.
"""

from pathlib import Path

import pytest

from file_timestamps import TimestampReadError, TimestampWriteError
from metadata_providers import MetadataProvider, MetadataReadError
from timestamp_parsing import InvalidTimestampError, parse_timestamp


def pytest_collection_modifyitems(items):
    """Use the first docstring line of each test as its name."""
    for item in items:
        docstring = getattr(getattr(item, "function", None), "__doc__", None)
        if not docstring:
            continue

        summary = next(
            (line.strip() for line in docstring.strip().splitlines() if line.strip()),
            None,
        )
        if not summary:
            continue

        if hasattr(item, "callspec"):
            # Keep the parameter id of parametrized tests
            start = item.nodeid.find("[")
            summary += item.nodeid[start:] if start != -1 else ""
        item._nodeid = summary


class FakeMetadataProvider(MetadataProvider):
    """Metadata records keyed by file name."""

    name = "fake"

    def __init__(self, records=None, failing_names=(), available=True):
        self.records = dict(records or {})
        self.failing_names = set(failing_names)
        self.available = available
        self.requested_names = []

    def is_available(self):
        return self.available

    def read_record(self, file_path):
        self.requested_names.append(Path(file_path).name)
        if Path(file_path).name in self.failing_names:
            raise MetadataReadError(f"Malformed record for {file_path}")
        return self.records.get(Path(file_path).name)


class InMemoryTimestamps:
    """Modification times keyed by path, with a log of every write."""

    def __init__(self, timestamps=None):
        self.timestamps = {Path(path): value for path, value in (timestamps or {}).items()}
        self.writes = []

    def read(self, path):
        if Path(path) not in self.timestamps:
            raise TimestampReadError(f"Can't stat {path}")
        return self.timestamps[Path(path)]

    def write(self, path, timestamp, touch_access_time=True):
        try:
            parse_timestamp(timestamp)
        except InvalidTimestampError as error:
            raise TimestampWriteError(str(error))
        self.writes.append((Path(path), timestamp, touch_access_time))
        self.timestamps[Path(path)] = timestamp


@pytest.fixture
def in_memory_timestamps():
    """Empty in-memory timestamp store usable as reader and writer."""
    return InMemoryTimestamps()


@pytest.fixture
def make_metadata_provider():
    """Factory for fake metadata providers."""
    return FakeMetadataProvider
