#!/usr/bin/env python3
"""
Directory Stamper

Updates the modification times of year and month directories from their
names. Expects a layout like::

    working-directory
    ├─ 2020
    │  ├─ january
    │  ├─ ...
    │  ├─ december
    │  └─ 2020 -- all
    └─ 2021
       └─ ...

Year directories get the last second of the year, month directories the last
second of the month and "all" directories the first second of the year.
"""

import argparse
import re
import sys
from datetime import MAXYEAR, MINYEAR
from pathlib import Path
from typing import List, Optional, Sequence

from file_timestamps import FileSystemTimestampReader, FileSystemTimestampWriter
from reconciliation import (
    CHANGED,
    STAT_ERROR,
    WRITE_ERROR,
    PeriodDirectory,
    TimestampReconciler,
)
from run_summary import RunSummary
from terminal_output import blue, gray, magenta, red
from timestamp_parsing import parse_timestamp

MONTH_NAMES = {
    "en": [
        "january",
        "february",
        "march",
        "april",
        "may",
        "june",
        "july",
        "august",
        "september",
        "october",
        "november",
        "december",
    ],
    "ro": [
        "ianuarie",
        "februarie",
        "martie",
        "aprilie",
        "mai",
        "iunie",
        "iulie",
        "august",
        "septembrie",
        "octombrie",
        "noiembrie",
        "decembrie",
    ],
}

# A name like "2021 -- all" or "2021 -- toate"
ALL_MARKER_SEPARATOR = "--"
ALL_MARKER_WORDS = ("all", "toate")

# Four or more leading digits; the first four are the year.
YEAR_DIRECTORY_PATTERN = re.compile(r"^(\d{4})\d*")

DISPLAY_TIME_FORMAT = "%d.%m.%Y, %H:%M"


def month_from_name(directory_name: str) -> Optional[int]:
    """Return the month number (1-12) for an English or Romanian month name."""
    lowered_name = directory_name.strip().lower()
    for month_names in MONTH_NAMES.values():
        if lowered_name in month_names:
            return month_names.index(lowered_name) + 1
    return None


def is_all_marker_name(directory_name: str) -> bool:
    lowered_name = directory_name.lower()
    return ALL_MARKER_SEPARATOR in lowered_name and any(
        word in lowered_name for word in ALL_MARKER_WORDS
    )


def year_from_name(directory_name: str) -> Optional[int]:
    match = YEAR_DIRECTORY_PATTERN.match(directory_name)
    if match is None:
        return None

    year = int(match.group(1))
    if not MINYEAR <= year <= MAXYEAR:
        return None
    return year


class DirectoryStamper:
    """Sets directory modification times from year and month names."""

    def __init__(
        self,
        top_paths: Optional[Sequence[str]] = None,
        dry_run: bool = False,
        reader: Optional[FileSystemTimestampReader] = None,
        writer: Optional[FileSystemTimestampWriter] = None,
    ):
        """
        Initialize the directory stamper.

        Args:
            top_paths: Directories holding year directories, defaults to the current one
            dry_run: If True, only show what would be changed without modifying directories
            reader: Modification time reader
            writer: Modification time writer
        """
        self.top_paths = [Path(top_path).resolve() for top_path in top_paths or [Path.cwd()]]
        self.dry_run = dry_run
        self.reconciler = TimestampReconciler(reader=reader, writer=writer, dry_run=dry_run)

    def _visible_subdirectories(self, directory: Path) -> List[Path]:
        return sorted(
            (
                entry
                for entry in directory.iterdir()
                if entry.is_dir() and not entry.name.startswith(".")
            ),
            key=lambda entry: entry.name,
        )

    def find_period_directories(self, top_path: Path) -> List[PeriodDirectory]:
        """
        Find year directories and their month and "all" subdirectories.

        Args:
            top_path: Directory holding year directories

        Returns:
            List of PeriodDirectory objects, each year followed by its subdirectories

        Raises:
            ValueError: If top_path cannot be listed or has no subdirectories
        """
        try:
            subdirectories = self._visible_subdirectories(top_path)
        except OSError as error:
            raise ValueError(f"Cannot list {top_path}: {error}")

        if not subdirectories:
            raise ValueError(f"No sub-directories found in {top_path}")

        periods = []
        for year_directory in subdirectories:
            year = year_from_name(year_directory.name)
            if year is None:
                continue

            periods.append(PeriodDirectory(year_directory, year))

            try:
                child_directories = self._visible_subdirectories(year_directory)
            except OSError as error:
                raise ValueError(f"Cannot list {year_directory}: {error}")

            for child_directory in child_directories:
                display_path = f"{year_directory.name}/{child_directory.name}"
                month = month_from_name(child_directory.name)
                if month is not None:
                    periods.append(
                        PeriodDirectory(
                            child_directory, year, month=month, display_path=display_path
                        )
                    )
                elif is_all_marker_name(child_directory.name):
                    periods.append(
                        PeriodDirectory(
                            child_directory,
                            year,
                            is_all_marker=True,
                            display_path=display_path,
                        )
                    )

        return periods

    def process_directories(self) -> RunSummary:
        """
        Reconcile the period directories of every top path.

        All top paths are listed before anything is changed, so a top-level
        fault leaves every directory untouched.

        Returns:
            RunSummary of the run

        Raises:
            ValueError: If a top path cannot be listed or has no subdirectories
        """
        periods = []
        for top_path in self.top_paths:
            periods.extend(self.find_period_directories(top_path))

        summary = RunSummary()
        for period in periods:
            result = self.reconciler.reconcile_period_directory(period)
            summary.record(result)
            self._report_result(result)

        return summary

    def _report_result(self, result: dict):
        period = result["item"]
        outcome = result["outcome"]

        if outcome == CHANGED:
            prefix = "[DRY RUN] " if self.dry_run else ""
            print(
                f"{prefix}{gray('Changing')} {period.display_path.ljust(16)} "
                f"{gray('from')} {magenta(_display_time(result['current']))} "
                f"{gray('to')} {blue(_display_time(result['candidate']))}"
            )
        elif outcome in (STAT_ERROR, WRITE_ERROR):
            print(f"{red('Error:')} {period.display_path}: {result['errors'][-1]}")


def _display_time(timestamp: str) -> str:
    return parse_timestamp(timestamp).strftime(DISPLAY_TIME_FORMAT)


def main():
    """Main entry point for the script."""
    parser = argparse.ArgumentParser(
        description="Update the modification times of year and month directories "
        "using the year and month parsed from their names",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                     # Work in the current directory
  %(prog)s photos videos       # Several top directories
  %(prog)s photos --dry-run    # Preview changes without modifying

Expected layout (one level of subdirectories below each year):
  photos/2020/january ... photos/2020/december, photos/2020/2020 -- all
Month names may be English or Romanian.
        """,
    )

    parser.add_argument(
        "paths",
        nargs="*",
        help="Directories holding year directories (default: current directory)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be changed without modifying directories",
    )

    parsed_arguments = parser.parse_args()

    try:
        stamper = DirectoryStamper(parsed_arguments.paths, dry_run=parsed_arguments.dry_run)
        summary = stamper.process_directories()
    except ValueError as error:
        print(f"Error: {error}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted, changes made so far are kept.", file=sys.stderr)
        sys.exit(130)

    print()
    print(f"Changed: {summary.processed}  Unchanged: {summary.skipped}  Errors: {summary.error_count}")

    if summary.errors:
        print(red(f"ERRORS ENCOUNTERED ({summary.error_count}):"), file=sys.stderr)
        for error in summary.errors:
            print(red(f"  {error}"), file=sys.stderr)

    if summary.exit_code:
        sys.exit(summary.exit_code)


if __name__ == "__main__":
    main()
