# Copyright: Multiple Authors
#
# This file is part of midasblue.
#
# SPDX-License-Identifier: LGPL-3.0-or-later

"""BLUE header validator"""

import jsonschema

from . import error, formats, schema


def validate(info: dict, ref_schema: dict = None) -> None:
    """
    Check that the decoded header summary `info` is valid according to `ref_schema`.

    Parameters
    ----------
    info : dict
        Summary with `fixed`, `adjunct` and `extended` keys as built by
        `BlueReader.info()`.
    ref_schema : dict, optional
        Schema to check against, defaults to the bundled BLUE schema.

    Raises
    ------
    BlueValidationError
        If the summary is invalid.
    """
    if ref_schema is None:
        ref_schema = schema.get_schema()
    try:
        jsonschema.validators.validate(instance=info, schema=ref_schema)
    except jsonschema.exceptions.ValidationError as err:
        raise error.BlueValidationError(err.message) from err

    # declared sub-record count must match the descriptors read
    adjunct = info["adjunct"]
    if "subr" in adjunct and len(adjunct["subr"]) != adjunct["subrecords"]:
        raise error.BlueValidationError(
            f"adjunct declares {adjunct['subrecords']} sub-records but {len(adjunct['subr'])} were read."
        )

    # descriptors must fit inside one record
    if "subr" in adjunct:
        span = sum(formats.bytes_per_sample(sub["type_code"]) for sub in adjunct["subr"])
        if span > adjunct["record_length"]:
            raise error.BlueValidationError(
                f"sub-records span {span} bytes but record_length is {adjunct['record_length']}."
            )
