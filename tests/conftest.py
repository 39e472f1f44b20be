# Copyright: Multiple Authors
#
# This file is part of midasblue.
#
# SPDX-License-Identifier: LGPL-3.0-or-later

"""Provides pytest fixtures for other tests."""

import numpy as np
import pytest

from .testdata import TEST_COMPLEX64_DATA, make_blue, pack_entry


@pytest.fixture
def test_blue_file(tmp_path):
    """when called, yields path of a type 1000 CF file with 16 samples and two extended entries"""
    extended = pack_entry("RF_FREQ", "D", np.float64(2.4e9).tobytes())
    extended += pack_entry("COMMENT", "A", b"hello")
    path = tmp_path / "test.tmp"
    path.write_bytes(
        make_blue(
            data_format="CF",
            data=TEST_COMPLEX64_DATA.tobytes(),
            extended=extended,
            adjunct={"xdelta": 1 / 192e3},
            keywords=b"VER=1.1\x00",
        )
    )
    yield path
