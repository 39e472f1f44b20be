# Copyright: Multiple Authors
#
# This file is part of midasblue.
#
# SPDX-License-Identifier: LGPL-3.0-or-later

"""
BLUE format code tables.

Every BLUE data format is a two letter code such as ``CF`` or ``SI``. The
first letter is the element arrangement (how many elements make up one
sample), the second letter is the element type.
"""

from typing import NamedTuple, Optional, Tuple

import numpy as np

from .error import UnsupportedFormatSizeError, UnsupportedFormatTypeError

# excess-128 elements are stored as uint8 and shifted on decode
OFFSET_BIAS = 128

TYPE_MAP = {
    # BLUE format code to numpy dtype
    "B": np.dtype(np.int8),
    "O": np.dtype(np.uint8),  # excess-128
    "I": np.dtype(np.int16),
    "L": np.dtype(np.int32),
    "X": np.dtype(np.int64),
    "F": np.dtype(np.float32),
    "D": np.dtype(np.float64),
    "A": np.dtype("S1"),  # ASCII characters
}


class ElementShape(NamedTuple):
    """Number of elements per sample, with the matrix shape for M and T."""

    count: int
    shape: Optional[Tuple[int, int]] = None
    is_complex: bool = False


# fmt: off
SIZE_MAP = {
    "S": ElementShape(1),                     # scalar
    "C": ElementShape(2, is_complex=True),    # real, imaginary pairs
    "V": ElementShape(3),                     # vector (x, y, z)
    "Q": ElementShape(4),                     # quad (x, y, z, time)
    "M": ElementShape(9, shape=(3, 3)),       # 3x3 matrix
    "T": ElementShape(16, shape=(4, 4)),      # 4x4 transform matrix
    "X": ElementShape(10),
    "A": ElementShape(32),
}
# fmt: on
SIZE_MAP.update({str(num): ElementShape(num) for num in range(1, 10)})


def element_type(code: str) -> Tuple[int, np.dtype]:
    """
    Convert a format type character to its element size and numpy dtype.

    Parameters
    ----------
    code : str
        Single character, second letter of a format code.

    Returns
    -------
    itemsize : int
        Bytes per element.
    dtype : numpy.dtype
        Native byte order dtype used to unpack the element.

    Raises
    ------
    UnsupportedFormatTypeError
        If the character is not a known element type.

    Example
    -------
    >>> element_type("I")
    (2, dtype('int16'))
    """
    try:
        dtype = TYPE_MAP[code]
    except (KeyError, TypeError) as err:
        raise UnsupportedFormatTypeError(f"Unsupported format type: {code!r}") from err
    return dtype.itemsize, dtype


def element_arrangement(code: str) -> ElementShape:
    """
    Convert a format size character to the number of elements per sample.

    Raises
    ------
    UnsupportedFormatSizeError
        If the character is not a known element arrangement.

    Example
    -------
    >>> element_arrangement("M")
    ElementShape(count=9, shape=(3, 3), is_complex=False)
    """
    try:
        return SIZE_MAP[code]
    except (KeyError, TypeError) as err:
        raise UnsupportedFormatSizeError(f"Unsupported format size: {code!r}") from err


def is_offset_type(code: str) -> bool:
    """True for the excess-128 element type which needs bias correction."""
    return code == "O"


def bytes_per_sample(format_code: str) -> int:
    """Bytes occupied by one sample of a two letter format code, e.g. 8 for ``CF``."""
    itemsize, _ = element_type(format_code[1])
    return itemsize * element_arrangement(format_code[0]).count
