# Copyright: Multiple Authors
#
# This file is part of midasblue.
#
# SPDX-License-Identifier: LGPL-3.0-or-later

"""Tests for format code tables"""

import numpy as np
import pytest
from hypothesis import given
from hypothesis import strategies as st

from midasblue import formats
from midasblue.error import BlueFormatError, UnsupportedFormatSizeError, UnsupportedFormatTypeError


# fmt: off
@pytest.mark.parametrize("code, itemsize, dtype", [
    ("B", 1, np.int8),
    ("O", 1, np.uint8),
    ("I", 2, np.int16),
    ("L", 4, np.int32),
    ("X", 8, np.int64),
    ("F", 4, np.float32),
    ("D", 8, np.float64),
    ("A", 1, np.dtype("S1")),
])
# fmt: on
def test_element_type(code: str, itemsize: int, dtype) -> None:
    """every element type maps to its width and dtype"""
    assert formats.element_type(code) == (itemsize, np.dtype(dtype))


# fmt: off
@pytest.mark.parametrize("code, count, shape", [
    ("S", 1,  None),
    ("C", 2,  None),
    ("V", 3,  None),
    ("Q", 4,  None),
    ("M", 9,  (3, 3)),
    ("T", 16, (4, 4)),
    ("1", 1,  None),
    ("5", 5,  None),
    ("9", 9,  None),
    ("X", 10, None),
    ("A", 32, None),
])
# fmt: on
def test_element_arrangement(code: str, count: int, shape) -> None:
    """every element arrangement maps to its count and matrix shape"""
    arrangement = formats.element_arrangement(code)
    assert arrangement.count == count
    assert arrangement.shape == shape
    assert arrangement.is_complex == (code == "C")


def test_digits_covered() -> None:
    """digits 1-9 are all valid arrangements"""
    for num in range(1, 10):
        assert formats.element_arrangement(str(num)).count == num


@given(st.text(min_size=1, max_size=2).filter(lambda code: code not in formats.TYPE_MAP))
def test_unknown_type_raises(code: str) -> None:
    with pytest.raises(UnsupportedFormatTypeError):
        formats.element_type(code)


@given(st.text(min_size=1, max_size=2).filter(lambda code: code not in formats.SIZE_MAP))
def test_unknown_size_raises(code: str) -> None:
    with pytest.raises(UnsupportedFormatSizeError):
        formats.element_arrangement(code)


@given(st.sampled_from(sorted(formats.TYPE_MAP)), st.sampled_from(sorted(formats.SIZE_MAP)))
def test_lookup_is_pure(type_code: str, size_code: str) -> None:
    """same code always gives the same answer"""
    assert formats.element_type(type_code) == formats.element_type(type_code)
    assert formats.element_arrangement(size_code) == formats.element_arrangement(size_code)
    itemsize, _ = formats.element_type(type_code)
    assert formats.bytes_per_sample(size_code + type_code) == itemsize * formats.element_arrangement(size_code).count


def test_format_errors_share_base() -> None:
    """callers can catch both lookup failures at once"""
    for func in (formats.element_type, formats.element_arrangement):
        with pytest.raises(BlueFormatError):
            func("?")


def test_offset_type() -> None:
    assert formats.is_offset_type("O")
    assert not formats.is_offset_type("B")
    assert formats.OFFSET_BIAS == 128
