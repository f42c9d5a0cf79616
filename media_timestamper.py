#!/usr/bin/env python3
"""
Media Timestamper

Updates the modification times of image and video files in a directory using
the capture time from their EXIF data, or the date and time found in their
file names when no EXIF capture time is available.
"""

import argparse
import sys
import time
from pathlib import Path
from typing import List, Optional

from file_timestamps import FileSystemTimestampReader, FileSystemTimestampWriter
from metadata_providers import (
    METADATA_BACKENDS,
    MetadataProvider,
    MetadataTimestampResolver,
    select_metadata_provider,
)
from reconciliation import (
    CHANGED,
    PARSE_ERROR,
    STAT_ERROR,
    WRITE_ERROR,
    MediaItem,
    TimestampReconciler,
)
from run_summary import SUMMARY_FILE_NAME, RunSummary
from terminal_output import (
    ProgressDisplay,
    blue,
    gray,
    hidden_cursor,
    magenta,
    red,
    yellow,
)


class MediaTimestamper:
    """Sets file modification times from EXIF capture times or file names."""

    SUPPORTED_EXTENSIONS = MediaItem.IMAGE_EXTENSIONS | MediaItem.VIDEO_EXTENSIONS

    # AppleDouble resource files
    HIDDEN_FILE_PREFIX = "._"

    def __init__(
        self,
        source_path: str,
        use_metadata: bool = True,
        write_summary: bool = True,
        dry_run: bool = False,
        metadata_backend: str = "auto",
        metadata_provider: Optional[MetadataProvider] = None,
        reader: Optional[FileSystemTimestampReader] = None,
        writer: Optional[FileSystemTimestampWriter] = None,
    ):
        """
        Initialize the media timestamper.

        Args:
            source_path: Directory holding the media files
            use_metadata: Read EXIF capture times before falling back to file names
            write_summary: Save a JSON summary of changed files in source_path
            dry_run: If True, only show what would be changed without modifying files
            metadata_backend: Provider to probe when metadata_provider is not given
            metadata_provider: Explicit metadata provider, mainly for tests
            reader: Modification time reader
            writer: Modification time writer
        """
        self.source_path = Path(source_path)
        if not self.source_path.exists():
            raise ValueError(f"Source path does not exist: {source_path}")
        if not self.source_path.is_dir():
            raise ValueError(f"Source path is not a directory: {source_path}")

        self.write_summary = write_summary
        self.dry_run = dry_run

        if use_metadata and metadata_provider is None:
            metadata_provider = select_metadata_provider(metadata_backend)
        self.metadata_provider = metadata_provider if use_metadata else None

        metadata_resolver = (
            MetadataTimestampResolver(self.metadata_provider)
            if self.metadata_provider
            else None
        )
        self.reconciler = TimestampReconciler(
            reader=reader,
            writer=writer,
            metadata_resolver=metadata_resolver,
            dry_run=dry_run,
        )

    def find_media_files(self) -> List[Path]:
        """
        Find the supported media files directly inside the source directory.

        Returns:
            List of Path objects sorted by file name
        """
        discovered_media_files = [
            entry for entry in self.source_path.iterdir() if self._is_supported_media_file(entry)
        ]
        return sorted(discovered_media_files, key=lambda file_path: file_path.name)

    def _is_supported_media_file(self, file_path: Path) -> bool:
        """Check if a path is a regular, visible, supported media file."""
        return (
            file_path.is_file()
            and not file_path.name.startswith(self.HIDDEN_FILE_PREFIX)
            and file_path.suffix.lower() in self.SUPPORTED_EXTENSIONS
        )

    def process_files(
        self,
        media_files: Optional[List[Path]] = None,
        progress: Optional[ProgressDisplay] = None,
    ) -> RunSummary:
        """
        Reconcile every media file, one after the other.

        Args:
            media_files: Files to process, defaults to find_media_files()
            progress: Progress bar to redraw after each file

        Returns:
            RunSummary of the run
        """
        if media_files is None:
            media_files = self.find_media_files()

        summary = RunSummary()

        for index, file_path in enumerate(media_files, start=1):
            item = MediaItem(file_path)
            if progress:
                progress.update(index, item.name)

            result = self.reconciler.reconcile_media_item(item)
            summary.record(result)
            self._report_result(result, progress)

        return summary

    def _report_result(self, result: dict, progress: Optional[ProgressDisplay]):
        item = result["item"]
        outcome = result["outcome"]

        if outcome == CHANGED:
            prefix = "[DRY RUN] " if self.dry_run else ""
            message = (
                f"{prefix}{item.name}: {magenta(result['current'])} → "
                f"{blue(result['candidate'])} ({result['source']})"
            )
        elif outcome == PARSE_ERROR:
            message = f"{item.name}: Can't parse file name; skip"
        elif outcome in (STAT_ERROR, WRITE_ERROR):
            message = f"{red('Error:')} {item.name}: {result['errors'][-1]}"
        else:
            return

        if progress:
            progress.persist(message)
        else:
            print(message)

    def write_summary_file(self, summary: RunSummary) -> Optional[Path]:
        """
        Save the run summary next to the media files.

        Only written when at least one file changed, summaries are enabled and
        this is not a dry run. A failed write is recorded as an error.

        Returns:
            Path of the summary file, or None if nothing was written
        """
        if self.dry_run or not self.write_summary or summary.processed == 0:
            return None

        try:
            return summary.save(self.source_path)
        except OSError as error:
            summary.add_error(f"Can't write changes summary file: {error}")
            return None


def print_report(summary: RunSummary, summary_status: str, elapsed_seconds: float):
    """Print counters, summary file status and any errors."""
    print()
    print(f"Changed: {blue(summary.processed) if summary.processed else 0}")
    print(f"Skipped: {yellow(summary.skipped) if summary.skipped else 0}")
    print(f" Errors: {red(summary.error_count) if summary.error_count else 0}")
    print(f"Summary: {summary_status}")
    print(gray(f"   Time: {elapsed_seconds:.1f}s"))

    if summary.errors:
        print()
        print(red(f"ERRORS ENCOUNTERED ({summary.error_count}):"), file=sys.stderr)
        for error in summary.errors:
            print(red(f"  {error}"), file=sys.stderr)


def main():
    """Main entry point for the script."""
    parser = argparse.ArgumentParser(
        description="Update the modification times of image or video files "
        "using the capture times from their EXIF data or their file names",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  %(prog)s /path/to/photos               # EXIF first, file name as fallback
  %(prog)s /path/to/photos --quick       # Only parse file names
  %(prog)s /path/to/photos --dry-run     # Preview changes without modifying

Supported files: jp(e)g, png, gif, mp4, m4v, mov, avi

A JSON file ({SUMMARY_FILE_NAME}) containing the run date and the changed files
is saved in the directory, unless --nosummary is given.
        """,
    )

    parser.add_argument("source_path", help="Directory with image and video files")
    parser.add_argument(
        "-q",
        "--quick",
        action="store_true",
        help="Skip EXIF data and only parse file names",
    )
    parser.add_argument(
        "-n",
        "--nosummary",
        action="store_true",
        help="Do not write the JSON summary of changed files",
    )
    parser.add_argument(
        "--metadata-backend",
        choices=METADATA_BACKENDS,
        default="auto",
        help="How EXIF data is read (default: exiftool if installed, else Pillow)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be changed without modifying files",
    )

    parsed_arguments = parser.parse_args()

    try:
        timestamper = MediaTimestamper(
            parsed_arguments.source_path,
            use_metadata=not parsed_arguments.quick,
            write_summary=not parsed_arguments.nosummary,
            dry_run=parsed_arguments.dry_run,
            metadata_backend=parsed_arguments.metadata_backend,
        )
        media_files = timestamper.find_media_files()
    except (ValueError, OSError) as error:
        print(f"Error: {error}", file=sys.stderr)
        sys.exit(1)

    if not media_files:
        print(red("No files found"), timestamper.source_path, file=sys.stderr)
        return

    print(f"\nFiles found: {blue(len(media_files))}\n")
    start_time = time.monotonic()

    try:
        with hidden_cursor():
            progress = ProgressDisplay(len(media_files))
            summary = timestamper.process_files(media_files, progress)
            progress.clear()
    except KeyboardInterrupt:
        print("\nInterrupted, changes made so far are kept.", file=sys.stderr)
        sys.exit(130)

    summary_path = timestamper.write_summary_file(summary)
    if summary_path is not None:
        summary_status = "written"
    elif timestamper.write_summary and summary.processed and not timestamper.dry_run:
        summary_status = red("not written")
    else:
        summary_status = "skipped"

    print_report(summary, summary_status, time.monotonic() - start_time)

    if summary.exit_code:
        sys.exit(summary.exit_code)


if __name__ == "__main__":
    main()
