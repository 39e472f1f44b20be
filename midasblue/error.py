# Copyright: Multiple Authors
#
# This file is part of midasblue.
#
# SPDX-License-Identifier: LGPL-3.0-or-later

"""Defines BLUE reader exception classes."""


class BlueError(Exception):
    """BLUE base exception."""


class BlueFileError(BlueError):
    """Exceptions related to reading BLUE files, notably truncated headers."""


class ResourceUnavailableError(BlueFileError):
    """The underlying byte source cannot be opened, seeked or read."""


class UnsupportedRecordTypeError(BlueError):
    """The header declares a record type other than 1000, 2000 or 3000."""


class BlueFormatError(BlueError):
    """Exceptions related to the two letter format codes."""


class UnsupportedFormatTypeError(BlueFormatError):
    """Unrecognized element type character (second format letter)."""


class UnsupportedFormatSizeError(BlueFormatError):
    """Unrecognized element arrangement character (first format letter)."""


class ReadBeyondDataError(BlueError):
    """Requested read is longer than what remains in the data region."""

    def __init__(self, requested, available):
        self.requested = requested
        self.available = available
        super().__init__(f"Requested read is longer than remaining: ({requested:g} vs. {available:g} bytes)")


class MalformedExtendedHeaderError(BlueError):
    """The extended header entry chain cannot be read within its declared size."""


class BlueValidationError(BlueError):
    """Exceptions related to validating the decoded header summary."""
