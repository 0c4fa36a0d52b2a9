"""Extract one representative numeric value from a record payload."""

from __future__ import annotations

import math
from numbers import Real
from typing import Any, Optional

from constants import VALUE_FIELDS


def _as_number(value: Any) -> Optional[float]:
    # bool is a Real subclass but never a measurement
    if isinstance(value, bool) or not isinstance(value, Real):
        return None
    number = float(value)
    if not math.isfinite(number):
        return None
    return number


def _probe_fields(obj: dict) -> Optional[float]:
    for field in VALUE_FIELDS:
        if field in obj:
            number = _as_number(obj[field])
            if number is not None:
                return number
    return None


def extract_numeric_value(payload: Any, data_type: Optional[str] = None) -> Optional[float]:
    """Return the numeric signal of ``payload`` or None when it has none.

    Order: bare number, known fields on the object, the
    ``<data_type>_data`` wrapper, then the generic ``data`` wrapper.
    Non-numeric fields are skipped, never coerced.
    """
    number = _as_number(payload)
    if number is not None:
        return number
    if not isinstance(payload, dict):
        return None

    number = _probe_fields(payload)
    if number is not None:
        return number

    wrappers = [f"{data_type}_data"] if data_type else []
    wrappers.append("data")
    for key in wrappers:
        inner = payload.get(key)
        if isinstance(inner, dict):
            number = _probe_fields(inner)
            if number is not None:
                return number
    return None
