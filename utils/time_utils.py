"""
Timestamp parsing and window arithmetic.

Every transaction timestamp is parsed exactly once into an integer epoch in
milliseconds; detectors compare those integers only.

Time Complexity: O(1) per timestamp
Memory: O(1)
"""

import math
from typing import Any

import numpy as np
import pandas as pd

from app.config import HOUR_MS

# Words pandas resolves against the host clock
_RELATIVE_WORDS = frozenset({"now", "today", "tomorrow", "yesterday"})


class MalformedTimestampError(ValueError):
    """A timestamp could not be parsed into an epoch value."""

    def __init__(self, value: Any, transaction_id: str | None = None):
        self.value = value
        self.transaction_id = transaction_id
        if transaction_id is None:
            message = f"Unparseable timestamp: {value!r}"
        else:
            message = f"Unparseable timestamp {value!r} in transaction '{transaction_id}'"
        super().__init__(message)


def parse_timestamp_ms(value: Any) -> int:
    """
    Parse a timestamp into epoch milliseconds.

    Accepts ISO-like strings, datetime / pandas Timestamp objects and
    numeric epoch milliseconds. Naive values are interpreted as UTC.

    Raises:
        MalformedTimestampError: value is missing, NaN/NaT, unparseable,
            relative to the current clock ("now", "today") or outside the
            representable datetime range.
    """
    if value is None or isinstance(value, bool):
        raise MalformedTimestampError(value)

    if isinstance(value, (int, float, np.integer, np.floating)):
        if not math.isfinite(float(value)):
            raise MalformedTimestampError(value)
        try:
            pd.Timestamp(value, unit="ms")
        except (ValueError, OverflowError) as exc:
            raise MalformedTimestampError(value) from exc
        return int(value)

    if isinstance(value, str) and value.strip().lower() in _RELATIVE_WORDS:
        raise MalformedTimestampError(value)

    try:
        ts = pd.Timestamp(value)
    except (ValueError, TypeError, OverflowError) as exc:
        raise MalformedTimestampError(value) from exc

    if pd.isna(ts):
        raise MalformedTimestampError(value)
    return int(ts.value // 1_000_000)


def hours_to_ms(hours: float) -> int:
    """Convert a window length in hours to milliseconds."""
    return int(hours * HOUR_MS)
