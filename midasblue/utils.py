# Copyright: Multiple Authors
#
# This file is part of midasblue.
#
# SPDX-License-Identifier: LGPL-3.0-or-later

"""Utilities"""

import logging
from datetime import datetime, timezone

from . import error

log = logging.getLogger()

# seconds between 1950-01-01 (BLUE timecode epoch) and 1970-01-01
BLUE_EPOCH_OFFSET = 631152000


def get_endian(rep: str) -> str:
    """
    Return the struct/numpy byte order character for a BLUE representation tag.

    Example
    -------
    >>> get_endian("IEEE"), get_endian("EEEI")
    ('>', '<')
    """
    if rep == "IEEE":
        return ">"
    if rep != "EEEI":
        log.warning(f"Unknown representation {rep!r}, assuming little-endian.")
    return "<"


def timecode_to_datetime(timecode: float) -> datetime:
    """
    Convert seconds since 1950-01-01 to a UTC datetime.

    Example
    -------
    >>> timecode_to_datetime(631152000.5)
    datetime.datetime(1970, 1, 1, 0, 0, 0, 500000, tzinfo=datetime.timezone.utc)
    """
    return datetime.fromtimestamp(timecode - BLUE_EPOCH_OFFSET, tz=timezone.utc)


def parse_keywords(raw: bytes) -> dict:
    """
    Parse the fixed header keyword blob into a dict.

    Keywords are ``KEY=VALUE`` strings separated by NUL bytes. Fields
    without an ``=`` are ignored.

    Example
    -------
    >>> parse_keywords(b"VER=1.1\\x00IO=X-Midas\\x00\\x00")
    {'VER': '1.1', 'IO': 'X-Midas'}
    """
    keywords = {}
    for field in raw.decode("ascii", errors="replace").split("\x00"):
        if "=" in field:
            key, value = field.split("=", 1)
            keywords[key] = value
    return keywords


def read_exact(handle, size: int, exc=error.BlueFileError) -> bytes:
    """Read exactly `size` bytes from `handle` or raise `exc`."""
    try:
        raw = handle.read(size)
    except OSError as err:
        raise error.ResourceUnavailableError(f"Unable to read file: {err}") from err
    if len(raw) != size:
        raise exc(f"Unexpected end of file: wanted {size} bytes, got {len(raw)}")
    return raw


def seek(handle, offset) -> None:
    """Seek `handle` to an absolute byte offset, which may be a float."""
    try:
        handle.seek(int(offset))
    except (OSError, ValueError) as err:
        raise error.ResourceUnavailableError(f"Unable to seek to {offset}: {err}") from err
