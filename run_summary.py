#!/usr/bin/env python3
"""
Run Summary

Counters and the list of changed items for one run of a timestamp tool.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from reconciliation import CHANGED, FAILED_OUTCOMES, PARSE_ERROR, SKIPPED, STAT_ERROR

SUMMARY_FILE_NAME = "_h5ai.changes.json"


class RunSummary:
    """Aggregates reconciliation results in processing order."""

    def __init__(self, started_at: Optional[datetime] = None):
        self.started_at = started_at or datetime.now()
        self.processed = 0
        self.skipped = 0
        self.errors: List[str] = []
        self.changed_files: List[str] = []
        self.failed = False

    def record(self, result: Dict[str, any]):
        """
        Update the counters from one reconciliation result.

        Args:
            result: Dictionary returned by TimestampReconciler
        """
        outcome = result["outcome"]
        self.errors.extend(result["errors"])

        if outcome == CHANGED:
            self.processed += 1
            self.changed_files.append(result["item"].name)
        elif outcome in (SKIPPED, PARSE_ERROR, STAT_ERROR):
            self.skipped += 1

        if outcome in FAILED_OUTCOMES:
            self.failed = True

    def add_error(self, message: str):
        self.errors.append(message)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def exit_code(self) -> int:
        return 1 if self.failed else 0

    def to_dict(self) -> Dict[str, any]:
        return {
            "date": self.started_at.isoformat(),
            "files": list(self.changed_files),
        }

    def save(self, directory: Path) -> Path:
        """
        Write the summary as JSON into a directory.

        Returns:
            Path of the written file

        Raises:
            OSError: If the file cannot be written
        """
        summary_path = Path(directory) / SUMMARY_FILE_NAME
        summary_path.write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")
        return summary_path
