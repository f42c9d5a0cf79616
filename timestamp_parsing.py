#!/usr/bin/env python3
"""
Timestamp Parsing

Derives canonical capture timestamps from loosely structured file names and
from EXIF date strings. Everything here is pure string handling; nothing
touches the file system.

The canonical ("comparable") form is ``YYYY-MM-DD HH:MM:SS``.
"""

import re
from datetime import datetime
from pathlib import Path
from typing import Optional

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Two-digit years are always read as 20YY.
TWO_DIGIT_YEAR_CENTURY = 2000

# YY(YY) MM DD, then anything that is not a digit, then HH mm ss.
# A separator inside the time part must be followed by digits, so a trailing
# hyphen or dot never becomes an empty time component.
FILENAME_TIMESTAMP_PATTERN = re.compile(
    r"((?:\d{4}|\d{2})\D?\d{2}\D?\d{2})"  # YYYY MM DD
    r"\D*"
    r"(\d{0,2}(?:\D?\d{1,2}){0,2})"  # HH mm ss
)

NON_DIGIT_PATTERN = re.compile(r"\D")


class TimestampParseError(Exception):
    """Exception raised when a file name does not contain a timestamp."""

    def __init__(self, file_name: str):
        super().__init__(f"Unexpected file name format: {file_name}")
        self.file_name = file_name


class InvalidTimestampError(ValueError):
    """Exception raised when a timestamp string is not a real date-time."""

    pass


def parse_filename_timestamp(file_name: str) -> str:
    """
    Parse the capture timestamp out of a file name.

    The extension is stripped before matching. Separators between the date
    and time components may vary or be absent, and trailing time components
    may be missing:

    - ``2014-12-25 11-48-02.jpg`` -> ``2014-12-25 11:48:02``
    - ``IMG_20141225_1148.jpg``   -> ``2014-12-25 11:48:00``
    - ``20141225.mp4``            -> ``2014-12-25 00:00:00``

    Args:
        file_name: File name, with or without extension

    Returns:
        Timestamp string in canonical form (not validated)

    Raises:
        TimestampParseError: If no date can be found in the name
    """
    stem = Path(file_name).stem
    match = FILENAME_TIMESTAMP_PATTERN.search(stem)
    if match is None:
        raise TimestampParseError(file_name)

    date_fragment, time_fragment = match.groups()
    return f"{_normalize_date(date_fragment)} {_normalize_time(time_fragment)}"


def _normalize_date(date_fragment: str) -> str:
    """Turn a 6 or 8 digit date fragment into YYYY-MM-DD."""
    digits = NON_DIGIT_PATTERN.sub("", date_fragment)
    if len(digits) == 6:
        digits = f"{TWO_DIGIT_YEAR_CENTURY + int(digits[:2])}{digits[2:]}"
    return f"{digits[:4]}-{digits[4:6]}-{digits[6:8]}"


def _normalize_time(time_fragment: str) -> str:
    """
    Turn a time fragment into HH:MM:SS.

    With at most one separator the digits are assumed to already be in
    HHmmss order and are re-chunked in pairs. An odd digit count therefore
    yields a malformed time, which is rejected later by validation.
    """
    time_fragment = time_fragment.strip()
    if not time_fragment:
        return "00:00:00"

    separator_count = len(NON_DIGIT_PATTERN.findall(time_fragment))
    if separator_count < 2:
        digits = NON_DIGIT_PATTERN.sub("", time_fragment)
        components = [digits[index : index + 2] for index in range(0, len(digits), 2)]
    else:
        components = [
            component.zfill(2) for component in NON_DIGIT_PATTERN.split(time_fragment)
        ]

    while len(components) < 3:
        components.append("00")

    return ":".join(components)


def normalize_exif_timestamp(exif_value: Optional[str]) -> Optional[str]:
    """
    Convert an EXIF date string to canonical form.

    EXIF stores ``YYYY:MM:DD HH:MM:SS``; only the first two colons (the date
    separators) are replaced. Blank values return None.
    """
    if exif_value is None:
        return None

    cleaned_value = str(exif_value).strip().rstrip("\x00").strip()
    if not cleaned_value:
        return None

    return cleaned_value.replace(":", "-", 2)


def parse_timestamp(timestamp: str) -> datetime:
    """
    Validate a canonical timestamp string and return it as a datetime.

    strptime accepts single digit fields, so the value must also format back
    to exactly the same string.

    Raises:
        InvalidTimestampError: If the string is not a valid date-time
    """
    try:
        moment = datetime.strptime(timestamp, TIMESTAMP_FORMAT)
    except (TypeError, ValueError) as error:
        raise InvalidTimestampError(f"Invalid timestamp '{timestamp}': {error}")

    if format_timestamp(moment) != timestamp:
        raise InvalidTimestampError(f"Invalid timestamp '{timestamp}': not zero padded")

    return moment


def format_timestamp(moment: datetime) -> str:
    """Format a datetime in canonical form, dropping sub-second precision."""
    return moment.strftime(TIMESTAMP_FORMAT)


def is_valid_timestamp(timestamp: str) -> bool:
    """Check whether a canonical timestamp string is a real date-time."""
    try:
        parse_timestamp(timestamp)
    except InvalidTimestampError:
        return False
    return True
