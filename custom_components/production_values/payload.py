# Copyright (c) 2025, Renaud Allard <renaud@allard.it>, Kris Van Biesen <kvanbiesen@gmail.com>, Jyri Saukkonen <jyri.saukkonen+jjyksi@gmail.com>
# All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
# 1. Redistributions of source code must retain the above copyright notice,
#    this list of conditions and the following disclaimer.
#
# 2. Redistributions in binary form must reproduce the above copyright notice,
#    this list of conditions and the following disclaimer in the documentation
#    and/or other materials provided with the distribution.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE
# ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE
# LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR
# CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF
# SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS
# INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN
# CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE)
# ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
# POSSIBILITY OF SUCH DAMAGE.

"""Validation and normalization of variable updates pushed by the SCADA runtime."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

# Upper bound on variables accepted in a single push message
MAX_VARIABLES_PER_MESSAGE = 500

# Maximum lengths to prevent memory issues
MAX_VARIABLE_NAME_LENGTH = 128
MAX_UNIT_LENGTH = 32
MAX_STRING_VALUE_LENGTH = 1024
MAX_TIMESTAMP_STRING_LENGTH = 64


class PayloadError(ValueError):
    """Raised when a pushed payload cannot be accepted."""


@dataclass(frozen=True)
class PushedVariable:
    """A single validated variable update."""

    name: str
    value: bool | int | float | str
    unit: str | None = None
    timestamp: str | None = None


def sanitize_timestamp_string(timestamp: str | None) -> str | None:
    """Sanitize raw timestamp string for storage.

    - Limits length to prevent memory issues
    - Validates basic ISO-8601-like format
    - Returns None for invalid timestamps
    """
    if timestamp is None:
        return None
    if not isinstance(timestamp, str):
        return None
    if len(timestamp) > MAX_TIMESTAMP_STRING_LENGTH:
        return None
    if not timestamp or not timestamp[0].isdigit():
        return None
    allowed = set("0123456789-:TZ.+ ")
    if not all(c in allowed for c in timestamp):
        return None
    return timestamp


def is_valid_variable_name(name: Any) -> bool:
    """Return True if name can identify a SCADA variable.

    Runtime variable names are free-form (they may contain dots, slashes,
    brackets and spaces) but must be non-empty, bounded and printable.
    """
    if not isinstance(name, str):
        return False
    if not name.strip() or len(name) > MAX_VARIABLE_NAME_LENGTH:
        return False
    return name.isprintable()


def _validate_value(name: str, value: Any) -> bool | int | float | str:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise PayloadError(f"non-finite value for {name}")
        return value
    if isinstance(value, str):
        if len(value) > MAX_STRING_VALUE_LENGTH:
            raise PayloadError(f"value too long for {name}")
        return value
    raise PayloadError(f"unsupported value type {type(value).__name__} for {name}")


def _validate_unit(name: str, unit: Any) -> str | None:
    if unit is None:
        return None
    if not isinstance(unit, str):
        raise PayloadError(f"unit must be a string for {name}")
    if len(unit) > MAX_UNIT_LENGTH:
        raise PayloadError(f"unit too long for {name}")
    # An empty unit means "no unit"
    return unit.strip() or None


def parse_push_payload(payload: Any) -> list[PushedVariable]:
    """Validate a push message and return its variable updates in order.

    Accepted shape::

        {"variables": {"TankLevel": {"value": 42.5, "unit": "L"},
                       "PumpRunning": True}}

    A bare scalar is shorthand for ``{"value": scalar}``. Raises PayloadError
    with a short reason when anything in the message is unacceptable; a
    message is accepted or rejected as a whole.
    """
    if not isinstance(payload, dict):
        raise PayloadError("payload must be a mapping")

    variables = payload.get("variables")
    if not isinstance(variables, dict) or not variables:
        raise PayloadError("payload has no variables")
    if len(variables) > MAX_VARIABLES_PER_MESSAGE:
        raise PayloadError(
            f"too many variables ({len(variables)} > {MAX_VARIABLES_PER_MESSAGE})"
        )

    updates: list[PushedVariable] = []
    for name, entry in variables.items():
        if not is_valid_variable_name(name):
            raise PayloadError("invalid variable name")

        if isinstance(entry, dict):
            if "value" not in entry:
                raise PayloadError(f"missing value for {name}")
            value = _validate_value(name, entry["value"])
            unit = _validate_unit(name, entry.get("unit"))
            timestamp = sanitize_timestamp_string(entry.get("timestamp"))
        else:
            value = _validate_value(name, entry)
            unit = None
            timestamp = None

        updates.append(PushedVariable(name=name, value=value, unit=unit, timestamp=timestamp))

    return updates
