# Copyright: Multiple Authors
#
# This file is part of midasblue.
#
# SPDX-License-Identifier: LGPL-3.0-or-later

# version of this python module
__version__ = "0.3.1"

from . import error, extended, formats, header, reader, schema, utils, validate
from .extended import ExtendedHeaderEntry, read_extended_header
from .header import Adjunct1000, Adjunct2000, Adjunct3000, PrimaryHeader, SubRecord, read_hcb
from .reader import BlueReader
