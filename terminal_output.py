#!/usr/bin/env python3
"""
Terminal Output

ANSI color helpers, a single-line progress bar and scoped cursor hiding for
the timestamp tools.
"""

import shutil
import sys
from contextlib import contextmanager
from typing import Optional, TextIO

RED = "\033[91m"
YELLOW = "\033[93m"
BLUE = "\033[94m"
MAGENTA = "\033[95m"
GRAY = "\033[90m"
RESET = "\033[0m"

HIDE_CURSOR = "\033[?25l"
SHOW_CURSOR = "\033[?25h"
CLEAR_LINE = "\033[2K"


def colors_enabled(stream: Optional[TextIO] = None) -> bool:
    """Only emit color codes when writing to a terminal."""
    stream = stream or sys.stdout
    return hasattr(stream, "isatty") and stream.isatty()


def colorize(text, color: str, stream: Optional[TextIO] = None) -> str:
    if not colors_enabled(stream):
        return str(text)
    return f"{color}{text}{RESET}"


def red(text) -> str:
    return colorize(text, RED, sys.stderr)


def yellow(text) -> str:
    return colorize(text, YELLOW, sys.stderr)


def blue(text) -> str:
    return colorize(text, BLUE)


def magenta(text) -> str:
    return colorize(text, MAGENTA)


def gray(text) -> str:
    return colorize(text, GRAY)


def constrain_text(text: str, max_length: int) -> str:
    """
    Shorten text to max_length by replacing its middle with an ellipsis.

    Args:
        text: Text to shorten
        max_length: Maximum length of the result

    Returns:
        The text itself if short enough, otherwise its start and end joined by '…'
    """
    if len(text) <= max_length:
        return text
    if max_length <= 1:
        return "…"[:max_length]

    kept_length = max_length - 1
    head_length = (kept_length + 1) // 2
    tail_length = kept_length - head_length
    tail = text[len(text) - tail_length :] if tail_length else ""
    return f"{text[:head_length]}…{tail}"


class ProgressDisplay:
    """Redraws a progress bar on the current terminal line."""

    def __init__(self, total: int, stream: Optional[TextIO] = None):
        self.total = total
        self.stream = stream or sys.stdout
        self.columns = shutil.get_terminal_size().columns

    @property
    def interactive(self) -> bool:
        return colors_enabled(self.stream)

    def update(self, current: int, status: str = ""):
        """Redraw the bar for item `current` (1-based) of the total."""
        if not self.interactive or self.total <= 0:
            return

        percent = current * 100 // self.total
        percent_text = f"({percent}%)".rjust(6)
        index_text = f"{str(current).rjust(len(str(self.total)))}/{self.total}"

        half_width = self.columns // 2
        bar_length = max(half_width - 4, 10)
        filled_length = min(bar_length, percent * bar_length // 100)
        bar = colorize("█" * filled_length, BLUE, self.stream) + colorize(
            "█" * (bar_length - filled_length), GRAY, self.stream
        )

        status_length = max(half_width - len(percent_text) - len(index_text) - 2, 0)
        status_text = colorize(constrain_text(status, status_length), MAGENTA, self.stream)

        index_text = colorize(index_text, GRAY, self.stream)
        self.stream.write(f"\r{CLEAR_LINE} ‣ {bar} {percent_text} {index_text} {status_text}")
        self.stream.flush()

    def persist(self, message: str):
        """Print a message above the bar so it stays in the scrollback."""
        if self.interactive:
            self.stream.write(f"\r{CLEAR_LINE}")
        print(message, file=self.stream)

    def clear(self):
        if self.interactive:
            self.stream.write(f"\r{CLEAR_LINE}")
            self.stream.flush()


@contextmanager
def hidden_cursor(stream: Optional[TextIO] = None):
    """Hide the terminal cursor for the duration of the block."""
    stream = stream or sys.stdout
    if not colors_enabled(stream):
        yield
        return

    stream.write(HIDE_CURSOR)
    stream.flush()
    try:
        yield
    finally:
        stream.write(SHOW_CURSOR)
        stream.flush()
