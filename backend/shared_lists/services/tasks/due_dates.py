"""
Due date normalization.

Clients send due dates as epoch milliseconds, digit strings, ISO strings with
an explicit offset, or local wall-clock strings from a date/time picker. All
of them are stored as epoch milliseconds.
"""

import math
import re
from datetime import datetime
from typing import Any, Optional, Union

from shared_lists.services.errors import InvalidDueAtError


class _Unset:
    """Marks a field the caller did not send at all."""

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()

DIGITS_RE = re.compile(r"^[0-9]+$")
# "Z" anywhere, or a +HH:MM / +HHMM suffix
OFFSET_RE = re.compile(r"Z|[+\-][0-9]{2}:?[0-9]{2}$")
LOCAL_DATETIME_RE = re.compile(
    r"^([0-9]{4})-([0-9]{2})-([0-9]{2})[T ]([0-9]{2}):([0-9]{2})(?::([0-9]{2}))?$"
)


def _to_epoch_ms(dt: datetime) -> int:
    # Naive datetimes are taken as server local time
    return int(round(dt.timestamp() * 1000))


def has_offset_marker(value: Any) -> bool:
    return isinstance(value, str) and bool(OFFSET_RE.search(value.strip()))


def normalize_due_at(value: Any = UNSET) -> Union[int, None, _Unset]:
    """
    Normalize a due date input.

    Returns UNSET when the field was omitted, None for an explicit clear or
    anything that cannot be understood, and epoch milliseconds otherwise.

    Local wall-clock strings with impossible calendar values ("2024-02-30
    10:00") are not rolled over into the next month as JavaScript's Date does:
    they normalize to None, and resolve_due_at() rejects them.
    """
    if value is UNSET:
        return UNSET
    if value is None:
        return None

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None

    if not isinstance(value, str):
        return None

    s = value.strip()

    if DIGITS_RE.match(s):
        return int(s)

    if OFFSET_RE.search(s):
        try:
            return _to_epoch_ms(datetime.fromisoformat(s))
        except ValueError:
            return None

    m = LOCAL_DATETIME_RE.match(s)
    if m:
        year, month, day, hour, minute = (int(g) for g in m.groups()[:5])
        second = int(m.group(6) or 0)
        try:
            return _to_epoch_ms(datetime(year, month, day, hour, minute, second))
        except ValueError:
            return None

    return None


def resolve_due_at(value: Any = UNSET) -> Union[int, None, _Unset]:
    """
    normalize_due_at() for callers that must reject malformed input.

    A malformed value raises InvalidDueAtError, except strings that carry an
    explicit offset: those degrade to "no due date" without an error.
    """
    normalized = normalize_due_at(value)
    if normalized is None and value is not None and not has_offset_marker(value):
        raise InvalidDueAtError()
    return normalized
