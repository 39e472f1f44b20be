# Copyright: Multiple Authors
#
# This file is part of midasblue.
#
# SPDX-License-Identifier: LGPL-3.0-or-later

"""
X-Midas BLUE Header Control Block (HCB).

The first 256 bytes hold the fixed header. The adjunct that follows depends
on the record type: type 1000 and 2000 describe uniformly sampled 1-D and
2-D series, type 3000 describes fixed length records made of named
sub-records.
"""

import logging
import struct
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import ClassVar, Optional, Tuple, Union

import numpy as np
from packaging.version import InvalidVersion, Version

from .error import UnsupportedRecordTypeError
from . import formats
from .formats import element_arrangement, element_type
from .utils import get_endian, parse_keywords, read_exact, seek, timecode_to_datetime

log = logging.getLogger()

# fmt: off
FIXED_LAYOUT = [
    # Fixed Header definitions: (key, offset, size, fmt, description) up to adjunct
    ("version",   0,   4,  "4s",   "Header version"),
    ("head_rep",  4,   4,  "4s",   "Header representation"),
    ("data_rep",  8,   4,  "4s",   "Data representation"),
    ("detached",  12,  4,  "i",    "Detached header"),
    ("protected", 16,  4,  "i",    "Protected from overwrite"),
    ("pipe",      20,  4,  "i",    "Pipe mode (N/A)"),
    ("ext_start", 24,  4,  "i",    "Extended header start (512-byte blocks)"),
    ("ext_size",  28,  4,  "i",    "Extended header size in bytes"),
    ("data_start",32,  8,  "d",    "Data start in bytes"),
    ("data_size", 40,  8,  "d",    "Data size in bytes"),
    ("type",      48,  4,  "i",    "File type code"),
    ("format",    52,  2,  "2s",   "2 Letter data format code"),
    ("flagmask",  54,  2,  "h",    "16-bit flagmask"),
    ("timecode",  56,  8,  "d",    "Time code field"),
    ("inlet",     64,  2,  "h",    "Inlet owner"),
    ("outlets",   66,  2,  "h",    "Number of outlets"),
    ("outmask",   68,  4,  "i",    "Outlet async mask"),
    ("pipeloc",   72,  4,  "i",    "Pipe location"),
    ("pipesize",  76,  4,  "i",    "Pipe size in bytes"),
    ("in_byte",   80,  8,  "d",    "Next input byte"),
    ("out_byte",  88,  8,  "d",    "Next out byte (cumulative)"),
    ("outbytes",  96,  64, "8d",   "Next out byte (each outlet)"),
    ("keylength", 160, 4,  "i",    "Length of keyword string"),
    ("keywords",  164, 92, "92s",  "User defined keyword string"),
    # Adjunct starts at byte 256 after this
]
# fmt: on

HCB_SIZE_BYTES = 256
SUBRECORD_LAYOUT = "4s2sh"


def _unpack_layout(cls, handle, endian):
    """Read the fields named in `cls.LAYOUT` in order and build `cls`."""
    fmt = endian + "".join(fmt for _, fmt in cls.LAYOUT)
    values = struct.unpack(fmt, read_exact(handle, struct.calcsize(fmt)))
    return {key: val for (key, _), val in zip(cls.LAYOUT, values)}


@dataclass(frozen=True)
class Adjunct1000:
    """Uniformly sampled 1-D series."""

    LAYOUT: ClassVar = [("xstart", "d"), ("xdelta", "d"), ("xunits", "i")]

    xstart: float
    xdelta: float
    xunits: int

    @classmethod
    def unpack(cls, handle, endian: str):
        return cls(**_unpack_layout(cls, handle, endian))

    def to_dict(self) -> dict:
        return {key: getattr(self, key) for key, _ in self.LAYOUT}


@dataclass(frozen=True)
class Adjunct2000:
    """Uniformly sampled 2-D series; the y axis is metadata only."""

    LAYOUT: ClassVar = [
        ("xstart", "d"),
        ("xdelta", "d"),
        ("xunits", "i"),
        ("subsize", "i"),
        ("ystart", "d"),
        ("ydelta", "d"),
        ("yunits", "i"),
    ]

    xstart: float
    xdelta: float
    xunits: int
    subsize: int
    ystart: float
    ydelta: float
    yunits: int

    @classmethod
    def unpack(cls, handle, endian: str):
        return cls(**_unpack_layout(cls, handle, endian))

    def to_dict(self) -> dict:
        return {key: getattr(self, key) for key, _ in self.LAYOUT}


@dataclass(frozen=True)
class SubRecord:
    """
    One named field of a type 3000 record.

    `dtype` and `num_elements` are derived from `type_code` when the
    descriptor is decoded, so an unknown code fails with the header.
    """

    name: str
    type_code: str
    offset: int
    dtype: np.dtype = field(init=False, repr=False, compare=False)
    num_elements: int = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        _, dtype = element_type(self.type_code[1:2])
        object.__setattr__(self, "dtype", dtype)
        object.__setattr__(self, "num_elements", element_arrangement(self.type_code[0:1]).count)

    @property
    def key(self) -> str:
        """record field name with whitespace and parentheses removed"""
        return "".join(char for char in self.name if not char.isspace() and char not in "()")

    @property
    def nbytes(self) -> int:
        return self.dtype.itemsize * self.num_elements

    def to_dict(self) -> dict:
        return {"name": self.name, "type_code": self.type_code, "offset": self.offset}


@dataclass(frozen=True)
class Adjunct3000:
    """Fixed length records of heterogeneous sub-records."""

    LAYOUT: ClassVar = [
        ("rstart", "d"),
        ("rdelta", "d"),
        ("runits", "i"),
        ("subrecords", "i"),
        ("r2start", "d"),
        ("r2delta", "d"),
        ("r2units", "i"),
        ("record_length", "i"),
    ]

    rstart: float
    rdelta: float
    runits: int
    subrecords: int
    r2start: float
    r2delta: float
    r2units: int
    record_length: int
    subr: Tuple[SubRecord, ...] = ()

    @classmethod
    def unpack(cls, handle, endian: str):
        values = _unpack_layout(cls, handle, endian)
        subr = []
        for _ in range(values["subrecords"]):
            raw = read_exact(handle, struct.calcsize(SUBRECORD_LAYOUT))
            name, type_code, offset = struct.unpack(endian + SUBRECORD_LAYOUT, raw)
            subr.append(SubRecord(name.decode("latin-1"), type_code.decode("latin-1"), offset))
        return cls(subr=tuple(subr), **values)

    def to_dict(self) -> dict:
        result = {key: getattr(self, key) for key, _ in self.LAYOUT}
        result["subr"] = [sub.to_dict() for sub in self.subr]
        return result


Adjunct = Union[Adjunct1000, Adjunct2000, Adjunct3000]

ADJUNCT_TYPES = {
    1000: Adjunct1000,
    2000: Adjunct2000,
    3000: Adjunct3000,
}


@dataclass(frozen=True)
class PrimaryHeader:
    """Decoded Header Control Block, see `FIXED_LAYOUT` for field meanings."""

    version: str
    head_rep: str
    data_rep: str
    detached: int
    protected: int
    pipe: int
    ext_start: int
    ext_size: int
    data_start: float
    data_size: float
    type: int
    format: str
    flagmask: int
    timecode: float
    inlet: int
    outlets: int
    outmask: int
    pipeloc: int
    pipesize: int
    in_byte: float
    out_byte: float
    outbytes: Tuple[float, ...]
    keylength: int
    keywords: bytes
    adjunct: Adjunct

    @property
    def data_end(self) -> float:
        return self.data_start + self.data_size

    @property
    def endian(self) -> str:
        """byte order of the header and extended header"""
        return get_endian(self.head_rep)

    @property
    def data_endian(self) -> str:
        """byte order of the samples"""
        return get_endian(self.data_rep)

    def get_keywords(self) -> dict:
        """User keywords from the fixed header as a dict."""
        return parse_keywords(self.keywords)

    def bytes_per_sample(self) -> int:
        """
        Bytes per sample for type 1000/2000, or bytes per record for type 3000.
        """
        if self.type == 3000:
            return self.adjunct.record_length
        return formats.bytes_per_sample(self.format)

    def get_start_datetime(self) -> Optional[datetime]:
        """
        Absolute time of the first sample.

        Timecode counts seconds since 1950-01-01, refined by the adjunct
        `xstart` and the `TC_PREC` keyword. Returns None when zero.
        """
        start = float(self.timecode)
        start += getattr(self.adjunct, "xstart", 0)
        start += float(self.get_keywords().get("TC_PREC", 0))
        if start == 0:
            log.warning("BLUE timecode is zero or missing.")
            return None
        return timecode_to_datetime(start)

    def describe(self) -> str:
        """
        Construct a human-readable description of the BLUE file.
        """
        spec_str = "Unknown"
        try:
            version = Version(self.get_keywords().get("VER", "0.0"))
            if version.major == 1:
                spec_str = f"BLUE {version}"
            elif version.major == 2:
                spec_str = f"Platinum {version}"
        except InvalidVersion:
            log.warning("Could not parse BLUE specification from VER keyword.")
        description = f"Read {self.version} type {self.type} {self.format} using {spec_str} specification."
        log.info(description)
        return description

    def to_dict(self) -> dict:
        """JSON-serializable view of the fixed header and its adjunct."""
        result = {}
        for fld in fields(self):
            result[fld.name] = getattr(self, fld.name)
        result["outbytes"] = list(self.outbytes)
        result["keywords"] = self.get_keywords()
        result["adjunct"] = self.adjunct.to_dict()
        return result


def read_hcb(handle, type_override: Optional[int] = None) -> PrimaryHeader:
    """
    Read Header Control Block (HCB) from a BLUE file.

    Parameters
    ----------
    handle : file-like
        Seekable binary source of the BLUE file.
    type_override : int, optional
        Record type used instead of the one stored in the header.

    Returns
    -------
    PrimaryHeader
        Fixed header with its decoded adjunct. `handle` is left right after
        the adjunct (after the last sub-record descriptor for type 3000).

    Raises
    ------
    UnsupportedRecordTypeError
        If the effective record type is not 1000, 2000 or 3000.
    BlueFileError
        If the file is too short to hold the header.
    """
    seek(handle, 0)
    header_bytes = read_exact(handle, HCB_SIZE_BYTES)
    endian = get_endian(header_bytes[4:8].decode("latin-1"))

    h_fixed = {}
    for key, offset, size, fmt, _ in FIXED_LAYOUT:
        val = struct.unpack(endian + fmt, header_bytes[offset : offset + size])
        val = val[0] if len(val) == 1 else val
        if isinstance(val, bytes) and key != "keywords":
            val = val.decode("latin-1")
        h_fixed[key] = val

    if type_override is not None:
        log.info(f"Overriding BLUE type {h_fixed['type']} with {type_override}")
        h_fixed["type"] = type_override

    if h_fixed["type"] not in ADJUNCT_TYPES:
        raise UnsupportedRecordTypeError(f"Unsupported HCB.type: {h_fixed['type']}")

    # adjunct immediately follows the fixed header
    h_fixed["adjunct"] = ADJUNCT_TYPES[h_fixed["type"]].unpack(handle, endian)
    header = PrimaryHeader(**h_fixed)

    log.debug(">>>>>>>>> Fixed Header")
    for key, _, _, _, desc in FIXED_LAYOUT:
        log.debug(f"{key:10s}: {h_fixed[key]!r}  # {desc}")
    log.debug(">>>>>>>>> Adjunct Header")
    log.debug(header.adjunct)

    return header
