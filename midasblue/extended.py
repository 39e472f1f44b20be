# Copyright: Multiple Authors
#
# This file is part of midasblue.
#
# SPDX-License-Identifier: LGPL-3.0-or-later

"""
BLUE Extended Header.

A chain of tagged key/value entries starting at block `ext_start` and
spanning `ext_size` bytes. Each entry is::

    lkey  int32   total entry length in bytes
    lext  int16   length of everything but the value
    ltag  int8    tag length
    type  char    value element type
    value         lkey - lext bytes
    tag           ltag bytes
    pad           up to the next multiple of 8
"""

import logging
import struct
from dataclasses import dataclass
from typing import List, Union

import numpy as np

from .error import MalformedExtendedHeaderError
from .formats import element_type
from .header import PrimaryHeader
from .utils import read_exact, seek

log = logging.getLogger()

BLOCK_SIZE_BYTES = 512
ENTRY_PREFIX = "ihbc"
ENTRY_PREFIX_BYTES = struct.calcsize("<" + ENTRY_PREFIX)


@dataclass(frozen=True)
class ExtendedHeaderEntry:
    lkey: int
    lext: int
    ltag: int
    type: str
    value: Union[np.ndarray, str]
    tag: str

    @property
    def footprint(self) -> int:
        """bytes occupied in the file including alignment padding"""
        total = ENTRY_PREFIX_BYTES + (self.lkey - self.lext) + self.ltag
        return total + _padding(total)

    def get_value(self):
        """value as a native python object; single elements are unwrapped"""
        if isinstance(self.value, str):
            return self.value
        if self.value.size == 1:
            return self.value[0].item()
        return self.value.tolist()

    def to_dict(self) -> dict:
        return {
            "tag": self.tag,
            "type": self.type,
            "value": self.get_value(),
            "lkey": self.lkey,
            "lext": self.lext,
            "ltag": self.ltag,
        }


def _padding(total: int) -> int:
    """bytes needed to bring `total` up to a multiple of 8"""
    return (8 - (total % 8)) % 8


def _read_entry(handle, endian: str) -> ExtendedHeaderEntry:
    raw = read_exact(handle, ENTRY_PREFIX_BYTES, MalformedExtendedHeaderError)
    lkey, lext, ltag, type_char = struct.unpack(endian + ENTRY_PREFIX, raw)
    type_char = type_char.decode("ascii", errors="replace")

    val_len = lkey - lext
    if lkey <= 0 or val_len < 0 or ltag < 0:
        raise MalformedExtendedHeaderError(f"Invalid extended header entry lengths: lkey={lkey} lext={lext} ltag={ltag}")

    bytes_per_element, dtype = element_type(type_char)
    raw = read_exact(handle, val_len, MalformedExtendedHeaderError)
    if type_char == "A":
        value = raw.rstrip(b"\x00").decode("ascii", errors="replace")
    else:
        value = np.frombuffer(raw, dtype=dtype.newbyteorder(endian), count=val_len // bytes_per_element)

    tag = read_exact(handle, ltag, MalformedExtendedHeaderError).decode("ascii", errors="replace")

    pad = _padding(ENTRY_PREFIX_BYTES + val_len + ltag)
    if pad:
        read_exact(handle, pad, MalformedExtendedHeaderError)

    return ExtendedHeaderEntry(lkey=lkey, lext=lext, ltag=ltag, type=type_char, value=value, tag=tag)


def read_extended_header(handle, header: PrimaryHeader) -> List[ExtendedHeaderEntry]:
    """
    Read Extended Header from a BLUE file.

    Parameters
    ----------
    handle : file-like
        Seekable binary source of the BLUE file.
    header : PrimaryHeader
        Fixed Header containing 'ext_size' and 'ext_start'.

    Returns
    -------
    list of ExtendedHeaderEntry
        Entries in file order. Repeated tags are kept.

    Raises
    ------
    MalformedExtendedHeaderError
        If an entry cannot be read completely.
    """
    entries = []
    if header.ext_size <= 0:
        return entries
    endian = header.endian
    seek(handle, header.ext_start * BLOCK_SIZE_BYTES)
    bytes_remaining = header.ext_size
    while bytes_remaining > 0:
        entry = _read_entry(handle, endian)
        entries.append(entry)
        bytes_remaining -= entry.lkey

    if bytes_remaining < 0:
        log.warning(f"Extended header entries overran ext_size by {-bytes_remaining} bytes.")

    log.debug(">>>>>>>>> Extended Header")
    for entry in entries:
        log.debug(f"{entry.tag:20s}:{entry.get_value()}")

    return entries
