#!/usr/bin/env python3
"""
Timestamp Reconciliation

Decides the target timestamp of a media file or a period directory, compares
it with the current modification time and applies it when they differ.
Every failure is turned into an outcome so a batch can keep going.
"""

import calendar
from datetime import MAXYEAR, MINYEAR, datetime
from pathlib import Path
from typing import Dict, List, Optional

from file_timestamps import (
    FileSystemTimestampReader,
    FileSystemTimestampWriter,
    TimestampReadError,
    TimestampWriteError,
)
from metadata_providers import MetadataReadError, MetadataTimestampResolver
from timestamp_parsing import (
    InvalidTimestampError,
    TimestampParseError,
    format_timestamp,
    parse_filename_timestamp,
    parse_timestamp,
)

CHANGED = "changed"
SKIPPED = "skipped"
PARSE_ERROR = "parse_error"
STAT_ERROR = "stat_error"
WRITE_ERROR = "write_error"

FAILED_OUTCOMES = {PARSE_ERROR, STAT_ERROR, WRITE_ERROR}


class MediaItem:
    """A media file considered for retimestamping."""

    IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif"}
    VIDEO_EXTENSIONS = {".mp4", ".m4v", ".mov", ".avi"}

    def __init__(self, path: Path):
        self.path = Path(path)
        self.name = self.path.name
        self.kind = self.kind_for(self.path)
        self.current_timestamp: Optional[str] = None
        self.target_timestamp: Optional[str] = None
        self.timestamp_source: Optional[str] = None

    @classmethod
    def kind_for(cls, path: Path) -> Optional[str]:
        """Return 'image', 'video' or None for unsupported extensions."""
        suffix = path.suffix.lower()
        if suffix in cls.IMAGE_EXTENSIONS:
            return "image"
        if suffix in cls.VIDEO_EXTENSIONS:
            return "video"
        return None

    def __repr__(self):
        return f"MediaItem({self.name!r}, kind={self.kind!r})"


class PeriodDirectory:
    """
    A directory standing for a period of time.

    A year directory targets the last second of the year, a month directory
    the last second of the month and an "all" directory the first second
    of the year.
    """

    def __init__(
        self,
        path: Path,
        year: int,
        month: Optional[int] = None,
        is_all_marker: bool = False,
        display_path: Optional[str] = None,
    ):
        if not MINYEAR <= year <= MAXYEAR:
            raise ValueError(f"Year out of range: {year}")
        if month is not None and not 1 <= month <= 12:
            raise ValueError(f"Month out of range: {month}")

        self.path = Path(path)
        self.year = year
        self.month = month
        self.is_all_marker = is_all_marker
        self.display_path = display_path or self.path.name
        self.name = self.display_path
        self.current_timestamp: Optional[str] = None

    def target_datetime(self) -> datetime:
        if self.is_all_marker:
            return datetime(self.year, 1, 1, 0, 0, 1)
        if self.month is not None:
            last_day = calendar.monthrange(self.year, self.month)[1]
            return datetime(self.year, self.month, last_day, 23, 59, 59)
        return datetime(self.year, 12, 31, 23, 59, 59)

    @property
    def target_timestamp(self) -> str:
        return format_timestamp(self.target_datetime())

    def __repr__(self):
        return f"PeriodDirectory({self.display_path!r}, target={self.target_timestamp!r})"


class TimestampReconciler:
    """Brings the modification time of one item in line with its target."""

    def __init__(
        self,
        reader: Optional[FileSystemTimestampReader] = None,
        writer: Optional[FileSystemTimestampWriter] = None,
        metadata_resolver: Optional[MetadataTimestampResolver] = None,
        dry_run: bool = False,
    ):
        self.reader = reader or FileSystemTimestampReader()
        self.writer = writer or FileSystemTimestampWriter()
        self.metadata_resolver = metadata_resolver
        self.dry_run = dry_run

    def reconcile_media_item(self, item: MediaItem) -> Dict[str, any]:
        """
        Reconcile a media file: metadata first, file name as fallback.

        Args:
            item: The media file

        Returns:
            Dictionary with outcome, source, candidate, current and errors
        """
        result = self._new_result(item)

        candidate = self._resolve_from_metadata(item, result["errors"])
        if candidate is not None:
            result["source"] = "EXIF"
        else:
            try:
                candidate = parse_filename_timestamp(item.name)
            except TimestampParseError as error:
                result["outcome"] = PARSE_ERROR
                result["errors"].append(str(error))
                return result
            result["source"] = "parsed"

        item.target_timestamp = candidate
        item.timestamp_source = result["source"]
        result["candidate"] = candidate

        return self._apply_if_needed(item, result, touch_access_time=True)

    def reconcile_period_directory(self, period: PeriodDirectory) -> Dict[str, any]:
        """Reconcile a year, month or "all" directory. Its access time is kept."""
        result = self._new_result(period)
        result["source"] = "period"
        result["candidate"] = period.target_timestamp

        return self._apply_if_needed(period, result, touch_access_time=False)

    def _new_result(self, item) -> Dict[str, any]:
        return {
            "item": item,
            "outcome": None,
            "source": None,
            "candidate": None,
            "current": None,
            "errors": [],
        }

    def _resolve_from_metadata(self, item: MediaItem, errors: List[str]) -> Optional[str]:
        if self.metadata_resolver is None or item.kind != "image":
            return None

        try:
            return self.metadata_resolver.resolve(item.path)
        except MetadataReadError as error:
            errors.append(f"EXIF error: {error}")
            return None

    def _apply_if_needed(self, item, result: Dict[str, any], touch_access_time: bool):
        try:
            current = self.reader.read(item.path)
        except TimestampReadError as error:
            result["outcome"] = STAT_ERROR
            result["errors"].append(str(error))
            return result

        item.current_timestamp = current
        result["current"] = current

        if result["candidate"] == current:
            result["outcome"] = SKIPPED
            return result

        try:
            if self.dry_run:
                parse_timestamp(result["candidate"])
            else:
                self.writer.write(
                    item.path, result["candidate"], touch_access_time=touch_access_time
                )
        except (TimestampWriteError, InvalidTimestampError) as error:
            result["outcome"] = WRITE_ERROR
            result["errors"].append(
                f"Could not apply timestamp ({result['candidate']}) to "
                f"{item.path.name}, not changed: {error}"
            )
            return result

        result["outcome"] = CHANGED
        return result
