# Copyright: Multiple Authors
#
# This file is part of midasblue.
#
# SPDX-License-Identifier: LGPL-3.0-or-later

"""Schema IO"""

import json
from functools import lru_cache
from pathlib import Path

SCHEMA_BLUE = "schema-blue.json"


@lru_cache()
def get_schema(schema_file=SCHEMA_BLUE):
    """
    Load JSON Schema for the decoded BLUE header summary.
    """
    schema_dir = Path(__file__).parent
    with open(schema_dir / schema_file, "rb") as handle:
        schema = json.load(handle)
    return schema
