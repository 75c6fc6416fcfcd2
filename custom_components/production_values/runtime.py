"""Production Values runtime data structures."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from homeassistant.core import CALLBACK_TYPE

from .source import VariableSource
from .translation import LabelTranslator


@dataclass
class ProductionValuesRuntimeData:
    """Runtime data for a Production Values config entry."""

    source: VariableSource
    translator: LabelTranslator
    unsub_language: Optional[CALLBACK_TYPE] = None
    # True while the label language follows the Home Assistant core language
    follow_core_language: bool = True
