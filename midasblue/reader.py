# Copyright: Multiple Authors
#
# This file is part of midasblue.
#
# SPDX-License-Identifier: LGPL-3.0-or-later

"""BlueReader Object"""

import logging
import os
from pathlib import Path
from typing import List, Optional

import numpy as np

from . import validate
from .error import BlueFormatError, ReadBeyondDataError, ResourceUnavailableError
from .extended import ExtendedHeaderEntry, read_extended_header
from .formats import OFFSET_BIAS, element_arrangement, element_type, is_offset_type
from .header import PrimaryHeader, read_hcb
from .utils import read_exact, seek

log = logging.getLogger()


class BlueReader:
    """
    Progressively read samples from an X-Midas BLUE file.

    Parameters
    ----------
    source : str, Path or file-like
        Path to the BLUE file, opened once and closed by `close()`, or an
        open seekable binary file object which the caller keeps ownership of.
    type_override : int, optional
        Interpret the file as this record type instead of the stored one.
    skip_validate : bool, default False
        When True will skip checking the decoded headers against the schema.

    Attributes
    ----------
    hcb : PrimaryHeader
        Decoded Header Control Block.
    ext_header : list of ExtendedHeaderEntry
        Extended header entries in file order.
    data_offset : float
        Absolute byte offset of the next sample, always within
        ``[data_start, data_start + data_size]``.

    Example
    -------
    >>> with BlueReader("capture.tmp") as reader:  # doctest: +SKIP
    ...     first = reader.read(1024)
    ...     reader.rewind(24)
    """

    def __init__(self, source, type_override: Optional[int] = None, skip_validate: bool = False):
        self._owns_handle = isinstance(source, (str, os.PathLike))
        if self._owns_handle:
            self.bluefile = Path(source)
            try:
                self._handle = open(self.bluefile, "rb")
            except OSError as err:
                raise ResourceUnavailableError(f"Unable to read file: {err}") from err
        else:
            self.bluefile = None
            self._handle = source

        try:
            self.hcb: PrimaryHeader = read_hcb(self._handle, type_override)
            self.ext_header: List[ExtendedHeaderEntry] = read_extended_header(self._handle, self.hcb)
            if not skip_validate:
                self.validate()
        except Exception:
            self.close()
            raise
        self.data_offset = None
        self.reset_read()

    def __repr__(self):
        return f"BlueReader({self.bluefile or self._handle!r}, type={self.hcb.type}, format={self.hcb.format})"

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def __len__(self):
        return self.sample_count()

    def __iter__(self):
        """yield one sample (or record) at a time from the cursor until the end of data"""
        if self.hcb.type == 3000:
            while True:
                before = self.data_offset
                records = self.read(1)
                if not records or self.data_offset == before:
                    return
                yield records[0]
        else:
            while self._bytes_remaining() >= self.hcb.bytes_per_sample():
                yield self.read(1)[0]

    def close(self) -> None:
        """Release the file handle if this reader opened it."""
        if self._owns_handle and self._handle is not None:
            self._handle.close()
            self._handle = None

    def _get_handle(self):
        if self._handle is None or getattr(self._handle, "closed", False):
            raise ResourceUnavailableError("BLUE file has been closed.")
        return self._handle

    def info(self) -> dict:
        """JSON-serializable summary of every decoded header."""
        return {
            "fixed": {key: val for key, val in self.hcb.to_dict().items() if key != "adjunct"},
            "adjunct": self.hcb.adjunct.to_dict(),
            "extended": [entry.to_dict() for entry in self.ext_header],
        }

    def validate(self) -> None:
        """
        Check the decoded headers against the BLUE header schema.

        Raises
        ------
        BlueValidationError
            If the headers are invalid.
        """
        validate.validate(self.info())

    def describe(self) -> str:
        return self.hcb.describe()

    def get_start_datetime(self):
        return self.hcb.get_start_datetime()

    def get_tag(self, tag: str, default=None):
        """Value of the first extended header entry named `tag`."""
        for entry in self.ext_header:
            if entry.tag == tag:
                return entry.get_value()
        return default

    def get_tags(self, tag: str) -> list:
        """Values of every extended header entry named `tag`, in file order."""
        return [entry.get_value() for entry in self.ext_header if entry.tag == tag]

    def get_sample_rate(self) -> Optional[float]:
        """
        Sample rate in Hz from adjunct xdelta, else the SAMPLE_RATE extended tag.
        """
        xdelta = getattr(self.hcb.adjunct, "xdelta", 0)
        if xdelta > 0:
            return 1 / xdelta
        sample_rate = self.get_tag("SAMPLE_RATE")
        if sample_rate is None:
            return None
        try:
            return float(sample_rate)
        except TypeError:
            log.warning(f"Ignoring SAMPLE_RATE with more than one value: {sample_rate!r}")
            return None

    def sample_count(self) -> int:
        """Number of whole samples (records for type 3000) in the data region."""
        bytes_per_sample = self.hcb.bytes_per_sample()
        if bytes_per_sample <= 0:
            return 0
        return int(self.hcb.data_size // bytes_per_sample)

    def tell(self) -> float:
        return self.data_offset

    def reset_read(self) -> None:
        """Move the cursor back to the start of data."""
        self.data_offset = self.hcb.data_start

    def rewind(self, count: Optional[int] = None) -> None:
        """
        Move the cursor backwards by `count` samples, stopping at the start of data.

        Parameters
        ----------
        count : int, optional
            Samples (records for type 3000) to move back. When omitted the
            cursor returns to the start of data.
        """
        if count is None:
            self.reset_read()
            return
        if count < 0:
            raise ValueError("Number of samples to rewind must not be negative.")
        if self.begin():
            return
        move_bytes = self.hcb.bytes_per_sample() * count
        self.data_offset = max(self.data_offset - move_bytes, self.hcb.data_start)
        log.debug(f"rewind {count} to offset {self.data_offset}")

    def begin(self) -> bool:
        """True if the cursor is at the beginning of data."""
        return self.data_offset == self.hcb.data_start

    def at_end(self) -> bool:
        """True if the cursor is exactly at the end of data."""
        return self.data_offset == self.hcb.data_end

    def _bytes_remaining(self) -> float:
        return self.hcb.data_size - (self.data_offset - self.hcb.data_start)

    def read(self, count: int = 1):
        """
        Read `count` samples from the cursor and advance it.

        Returns
        -------
        samples : ndarray or list of dict
            For type 1000 and 2000 an array whose first axis is the sample
            index. For type 3000 a list of records, possibly shorter than
            `count` at the end of data.

        Raises
        ------
        ReadBeyondDataError
            Type 1000/2000 only, if fewer than `count` samples remain.
        """
        if count < 0:
            raise ValueError("Number of samples must not be negative.")
        if self.hcb.type == 3000:
            return self._read_3k(count)
        return self._read_1k2k(count)

    def _read_1k2k(self, count: int) -> np.ndarray:
        """
        internal function for reading uniformly sampled series
        """
        arrangement = element_arrangement(self.hcb.format[0])
        itemsize, dtype = element_type(self.hcb.format[1])
        if arrangement.is_complex and dtype.kind == "S":
            raise BlueFormatError(f"Complex ASCII data is not supported: {self.hcb.format}")

        bytes_per_sample = itemsize * arrangement.count
        requested = bytes_per_sample * count
        bytes_remaining = self._bytes_remaining()
        if requested > bytes_remaining:
            raise ReadBeyondDataError(requested, bytes_remaining)

        handle = self._get_handle()
        seek(handle, self.data_offset)
        raw = read_exact(handle, requested)
        data = np.frombuffer(raw, dtype=dtype.newbyteorder(self.hcb.data_endian)).astype(dtype)
        if is_offset_type(self.hcb.format[1]):
            data = data.astype(np.int16) - OFFSET_BIAS

        if arrangement.is_complex:
            pairs = data.reshape(count, 2)
            samples = np.empty(count, dtype=np.result_type(data.dtype, np.complex64))
            samples.real = pairs[:, 0]
            samples.imag = pairs[:, 1]
        elif arrangement.shape is not None:
            samples = data.reshape((count,) + arrangement.shape)
        elif arrangement.count > 1:
            samples = data.reshape(count, arrangement.count)
        else:
            samples = data

        self.data_offset += requested
        log.debug(f"read {count} samples, offset now {self.data_offset}")
        return samples

    def _read_3k(self, count: int) -> List[dict]:
        """
        internal function for reading fixed length heterogeneous records
        """
        adjunct = self.hcb.adjunct
        span = sum(sub.nbytes for sub in adjunct.subr)
        if span > adjunct.record_length:
            raise BlueFormatError(f"Sub-records span {span} bytes but record_length is {adjunct.record_length}.")
        endian = self.hcb.data_endian
        last_start = self.hcb.data_end - adjunct.record_length

        handle = self._get_handle()
        seek(handle, self.data_offset)
        position = self.data_offset
        samples = []
        for _ in range(count):
            if position > last_start:
                # partial record or end of data
                break
            record = {}
            for idx, sub in enumerate(adjunct.subr):
                raw = read_exact(handle, sub.nbytes)
                value = np.frombuffer(raw, dtype=sub.dtype.newbyteorder(endian)).astype(sub.dtype)
                if idx == 0:
                    value = adjunct.rstart + adjunct.rdelta * value
                elif is_offset_type(sub.type_code[1]):
                    value = value.astype(np.int16) - OFFSET_BIAS
                record[sub.key] = value[0] if sub.num_elements == 1 else value
            samples.append(record)
            # descriptors may not cover the whole record
            if handle.tell() < position + adjunct.record_length:
                seek(handle, position + adjunct.record_length)
            position = handle.tell()

        self.data_offset = float(position)
        log.debug(f"read {len(samples)} of {count} records, offset now {self.data_offset}")
        return samples
