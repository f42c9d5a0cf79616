#!/usr/bin/env python3
"""
File Timestamps

Reads and sets file system modification times using the canonical
``YYYY-MM-DD HH:MM:SS`` form. Times are local wall-clock times.
"""

import os
from datetime import datetime
from pathlib import Path

from timestamp_parsing import InvalidTimestampError, format_timestamp, parse_timestamp

NANOSECONDS_PER_SECOND = 1_000_000_000


class TimestampReadError(Exception):
    """Exception raised when the modification time of a path cannot be read."""

    pass


class TimestampWriteError(Exception):
    """Exception raised when a timestamp cannot be applied to a path."""

    pass


class FileSystemTimestampReader:
    """Reads modification times, truncated to whole seconds."""

    def read(self, path: Path) -> str:
        """
        Get the modification time of a file or directory.

        Args:
            path: Path to stat

        Returns:
            Modification time in canonical form

        Raises:
            TimestampReadError: If the path cannot be stat'ed
        """
        try:
            path_stat = os.stat(path)
        except OSError as error:
            raise TimestampReadError(f"Can't stat {path}: {error}")

        whole_seconds = path_stat.st_mtime_ns // NANOSECONDS_PER_SECOND
        return format_timestamp(datetime.fromtimestamp(whole_seconds))


class FileSystemTimestampWriter:
    """Sets modification (and optionally access) times of existing paths."""

    def write(self, path: Path, timestamp: str, touch_access_time: bool = True):
        """
        Apply a canonical timestamp to a file or directory.

        The path is never created.

        Args:
            path: Existing file or directory
            timestamp: Timestamp in canonical form
            touch_access_time: Also set the access time; otherwise it is kept

        Raises:
            TimestampWriteError: If the timestamp is invalid or the OS rejects it
        """
        try:
            timestamp_value = parse_timestamp(timestamp).timestamp()
        except (InvalidTimestampError, OverflowError, OSError) as error:
            raise TimestampWriteError(str(error))

        try:
            if touch_access_time:
                access_time = timestamp_value
            else:
                access_time = os.stat(path).st_atime
            os.utime(path, (access_time, timestamp_value))
        except OSError as error:
            raise TimestampWriteError(f"Could not set timestamps for {path}: {error}")
