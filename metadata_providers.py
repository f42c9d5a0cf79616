#!/usr/bin/env python3
"""
Metadata Providers

Reads the EXIF record of an image through exiftool or Pillow/piexif and
resolves its capture time (``DateTimeOriginal``) in canonical form.
"""

import json
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Dict, Optional

import piexif
from PIL import Image, UnidentifiedImageError
from PIL.ExifTags import TAGS

from terminal_output import yellow
from timestamp_parsing import normalize_exif_timestamp

# Pointer tag of the Exif sub-IFD, where DateTimeOriginal lives.
EXIF_IFD_POINTER = 0x8769

METADATA_BACKENDS = ("auto", "exiftool", "pillow", "none")


class MetadataReadError(Exception):
    """Exception raised when a metadata reader returns something unusable."""

    pass


class MetadataProvider:
    """Interface for reading the metadata record of one file."""

    name = "metadata"

    def is_available(self) -> bool:
        """Probe whether this provider can be used in the current run."""
        raise NotImplementedError

    def read_record(self, file_path: Path) -> Optional[Dict[str, str]]:
        """
        Read the metadata record of a file.

        Returns:
            Mapping of tag names to values, or None if the file has none

        Raises:
            MetadataReadError: If the reader fails or its output is malformed
        """
        raise NotImplementedError


class ExifToolMetadataProvider(MetadataProvider):
    """Reads metadata by running ``exiftool -m -j`` on each file."""

    name = "exiftool"

    def __init__(self, executable: str = "exiftool"):
        self.executable = executable

    def is_available(self) -> bool:
        if not shutil.which(self.executable):
            return False

        try:
            subprocess.run(
                [self.executable, "-ver"], capture_output=True, text=True, check=True
            )
        except (OSError, subprocess.CalledProcessError):
            return False

        return True

    def read_record(self, file_path: Path) -> Optional[Dict[str, str]]:
        command = [self.executable, "-m", "-j", "--", str(file_path)]

        try:
            result = subprocess.run(command, capture_output=True, text=True, check=True)
        except subprocess.CalledProcessError as error:
            raise MetadataReadError(
                f"exiftool failed for {file_path}: {error.stderr.strip()}"
            )
        except OSError as error:
            raise MetadataReadError(f"Could not run exiftool for {file_path}: {error}")

        try:
            parsed_output = json.loads(result.stdout)
        except json.JSONDecodeError as error:
            raise MetadataReadError(f"Malformed exiftool output for {file_path}: {error}")

        if not isinstance(parsed_output, list) or not parsed_output:
            return None

        record = parsed_output[0]
        if not isinstance(record, dict):
            raise MetadataReadError(f"Unexpected exiftool record for {file_path}")

        return record


class PillowMetadataProvider(MetadataProvider):
    """Reads EXIF tags with piexif (JPEG) and Pillow (any image it can open)."""

    name = "pillow"

    PIEXIF_SUFFIXES = {".jpg", ".jpeg"}

    def is_available(self) -> bool:
        return True

    def read_record(self, file_path: Path) -> Optional[Dict[str, str]]:
        record: Dict[str, str] = {}

        if file_path.suffix.lower() in self.PIEXIF_SUFFIXES:
            record.update(self._read_with_piexif(file_path))

        record.update(
            {
                tag_name: tag_value
                for tag_name, tag_value in self._read_with_pillow(file_path).items()
                if tag_name not in record
            }
        )

        return record or None

    def _read_with_piexif(self, file_path: Path) -> Dict[str, str]:
        """Read the 0th and Exif IFDs with piexif."""
        try:
            exif_dict = piexif.load(str(file_path))
        except piexif.InvalidImageDataError:
            return {}
        except Exception as error:
            raise MetadataReadError(f"Could not read EXIF from {file_path}: {error}")

        record = {}
        for ifd_name, tag_group in (("0th", "Image"), ("Exif", "Exif")):
            for tag_id, tag_value in (exif_dict.get(ifd_name) or {}).items():
                tag_info = piexif.TAGS[tag_group].get(tag_id)
                if tag_info is None:
                    continue
                record[tag_info["name"]] = _tag_value_to_string(tag_value)

        return record

    def _read_with_pillow(self, file_path: Path) -> Dict[str, str]:
        """Read the base IFD and the Exif sub-IFD with Pillow."""
        try:
            with Image.open(file_path) as image:
                exif_data = image.getexif()
                tags = dict(exif_data.items())
                tags.update(exif_data.get_ifd(EXIF_IFD_POINTER).items())
        except UnidentifiedImageError:
            return {}
        except Exception as error:
            raise MetadataReadError(f"Could not read PIL EXIF from {file_path}: {error}")

        return {
            TAGS.get(tag_id, str(tag_id)): _tag_value_to_string(tag_value)
            for tag_id, tag_value in tags.items()
        }


def _tag_value_to_string(tag_value) -> str:
    if isinstance(tag_value, bytes):
        return tag_value.decode("utf-8", errors="ignore")
    return str(tag_value)


class MetadataTimestampResolver:
    """Resolves the capture timestamp of one file from its metadata record."""

    FIELD_NAME = "DateTimeOriginal"

    def __init__(self, provider: MetadataProvider):
        self.provider = provider

    def resolve(self, file_path: Path) -> Optional[str]:
        """
        Resolve the canonical capture timestamp of a file.

        Returns:
            Canonical timestamp, or None if the record or field is absent

        Raises:
            MetadataReadError: If the provider fails
        """
        record = self.provider.read_record(file_path)
        if not record or self.FIELD_NAME not in record:
            return None

        return normalize_exif_timestamp(record[self.FIELD_NAME])


def select_metadata_provider(backend: str = "auto") -> Optional[MetadataProvider]:
    """
    Pick the metadata provider for a run, probing exiftool once.

    Args:
        backend: One of 'auto', 'exiftool', 'pillow' or 'none'

    Returns:
        An available provider, or None if metadata reading is disabled
    """
    if backend == "none":
        return None

    if backend in ("auto", "exiftool"):
        exiftool_provider = ExifToolMetadataProvider()
        if exiftool_provider.is_available():
            return exiftool_provider
        print(yellow("Exiftool not found in path"), file=sys.stderr)
        if backend == "exiftool":
            return None

    if backend in ("auto", "pillow"):
        return PillowMetadataProvider()

    raise ValueError(f"Unknown metadata backend: {backend}")
