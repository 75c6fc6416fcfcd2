"""Data structures for SCADA variables held by the variable source."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

# Value types a SCADA runtime variable can carry
VariableValue = Union[bool, int, float, str]


def is_supported_value(value: Any) -> bool:
    """Return True if value is one of the VariableValue members."""
    return isinstance(value, (bool, int, float, str))


@dataclass
class VariableState:
    """State for a single variable (value, unit, timestamp)."""

    value: VariableValue
    unit: str | None
    timestamp: str | None
    last_seen: float = 0.0  # Wall clock time when last updated
