#!/usr/bin/env python3
"""
Tests for the timestamp_parsing module.
"""

from datetime import datetime

import pytest

from timestamp_parsing import (
    InvalidTimestampError,
    TimestampParseError,
    format_timestamp,
    is_valid_timestamp,
    normalize_exif_timestamp,
    parse_filename_timestamp,
    parse_timestamp,
)


class TestFilenameTimestampParsing:
    """Test suite for parsing timestamps out of file names."""

    def test_parse_hyphenated_date_and_time(self):
        """Parse date and time separated by hyphens."""
        # Act
        parsed_timestamp = parse_filename_timestamp("2014-12-25 11-48-02.jpg")

        # Assert
        assert parsed_timestamp == "2014-12-25 11:48:02"

    def test_parse_canonical_name_is_unchanged(self):
        """Parse a name already in canonical form returns it unchanged."""
        # Act
        parsed_timestamp = parse_filename_timestamp("2014-12-25 11:48:02.jpg")

        # Assert
        assert parsed_timestamp == "2014-12-25 11:48:02"

    def test_parse_date_without_time_defaults_to_midnight(self):
        """Parse a date-only name gives midnight."""
        # Act
        parsed_timestamp = parse_filename_timestamp("20141225.mp4")

        # Assert
        assert parsed_timestamp == "2014-12-25 00:00:00"

    def test_parse_time_without_seconds_appends_zero_seconds(self):
        """Parse hour and minute without seconds appends ':00'."""
        # Act
        parsed_timestamp = parse_filename_timestamp("IMG_20141225_1148.jpg")

        # Assert
        assert parsed_timestamp == "2014-12-25 11:48:00"

    def test_parse_compact_camera_name(self):
        """Parse camera style names without separators."""
        # Act
        parsed_timestamp = parse_filename_timestamp("IMG_20141225_114802.jpg")

        # Assert
        assert parsed_timestamp == "2014-12-25 11:48:02"

    def test_parse_single_separator_in_time(self):
        """Parse hour and minute joined by a single separator."""
        # Act
        parsed_timestamp = parse_filename_timestamp("2014-12-25 11-48.jpg")

        # Assert
        assert parsed_timestamp == "2014-12-25 11:48:00"

    def test_parse_hour_only_completes_minutes_and_seconds(self):
        """Parse an hour-only time fills in minutes and seconds."""
        # Act
        parsed_timestamp = parse_filename_timestamp("2014-12-25 11.jpg")

        # Assert
        assert parsed_timestamp == "2014-12-25 11:00:00"

    def test_parse_mixed_separators_with_single_digit_seconds(self):
        """Parse '11;48-2' as 11:48:02 instead of mis-segmenting it."""
        # Act
        parsed_timestamp = parse_filename_timestamp("2014-12-25 11;48-2.jpg")

        # Assert
        assert parsed_timestamp == "2014-12-25 11:48:02"

    def test_parse_two_digit_year_is_in_this_century(self):
        """Parse a two digit year as 20YY."""
        # Act
        parsed_timestamp = parse_filename_timestamp("141225.jpg")

        # Assert
        assert parsed_timestamp == "2014-12-25 00:00:00"

    def test_parse_ignores_trailing_text(self):
        """Parse ignores words and copy counters after the timestamp."""
        # Act
        parsed_timestamp = parse_filename_timestamp("2014-12-25 11-48-02 (2).jpeg")

        # Assert
        assert parsed_timestamp == "2014-12-25 11:48:02"

    def test_parse_strips_long_extensions(self):
        """Parse strips extensions longer than three characters."""
        # Act
        parsed_timestamp = parse_filename_timestamp("2014-12-25 copy.jpeg")

        # Assert
        assert parsed_timestamp == "2014-12-25 00:00:00"

    def test_parse_name_without_date_raises_error(self):
        """Parse a name without any date raises TimestampParseError."""
        # Act & Assert
        with pytest.raises(TimestampParseError, match="Unexpected file name format") as error_info:
            parse_filename_timestamp("holiday.jpg")

        assert error_info.value.file_name == "holiday.jpg"

    def test_parse_odd_digit_time_produces_invalid_timestamp(self):
        """Parse an odd number of time digits gives a timestamp that fails validation."""
        # Act
        parsed_timestamp = parse_filename_timestamp("2014-12-25 1-48.jpg")

        # Assert
        assert parsed_timestamp == "2014-12-25 14:8:00"
        assert not is_valid_timestamp(parsed_timestamp)


class TestExifTimestampNormalization:
    """Test suite for EXIF date string normalization."""

    def test_normalize_replaces_date_colons(self):
        """Normalize replaces only the date colons with hyphens."""
        # Act & Assert
        assert normalize_exif_timestamp("2019:07:04 10:20:30") == "2019-07-04 10:20:30"

    def test_normalize_strips_whitespace_and_null_bytes(self):
        """Normalize strips surrounding whitespace and trailing null bytes."""
        # Act & Assert
        assert normalize_exif_timestamp(" 2019:07:04 10:20:30\x00") == "2019-07-04 10:20:30"

    def test_normalize_blank_value_returns_none(self):
        """Normalize blank or missing values returns None."""
        # Act & Assert
        assert normalize_exif_timestamp("   ") is None
        assert normalize_exif_timestamp(None) is None


class TestTimestampValidation:
    """Test suite for canonical timestamp validation."""

    def test_parse_timestamp_valid(self):
        """Parse a valid canonical timestamp returns a datetime."""
        # Act & Assert
        assert parse_timestamp("2014-12-25 11:48:02") == datetime(2014, 12, 25, 11, 48, 2)

    def test_parse_timestamp_invalid_month(self):
        """Parse a timestamp with month 13 raises InvalidTimestampError."""
        # Act & Assert
        with pytest.raises(InvalidTimestampError):
            parse_timestamp("2014-13-45 00:00:00")

    def test_parse_timestamp_rejects_unpadded_fields(self):
        """Parse a timestamp with unpadded fields raises InvalidTimestampError."""
        # Act & Assert
        with pytest.raises(InvalidTimestampError, match="not zero padded"):
            parse_timestamp("2014-12-25 1:48:02")

    def test_invalid_timestamp_error_is_value_error(self):
        """InvalidTimestampError can be caught as ValueError."""
        # Act & Assert
        with pytest.raises(ValueError):
            parse_timestamp("not a timestamp")

    def test_format_timestamp_drops_microseconds(self):
        """Format drops sub-second precision."""
        # Act & Assert
        assert format_timestamp(datetime(2014, 12, 25, 11, 48, 2, 999999)) == "2014-12-25 11:48:02"
