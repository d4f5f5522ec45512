"""
Temporal codec - dates and times across driver representations

Drivers disagree on what a temporal column comes back as (PyMySQL returns
TIME as timedelta, sqlite3 returns ISO text, some drivers return naive
datetimes for tz-aware columns). Decoding converts explicitly:

- ISO 8601 text (a trailing Z and +HH offsets are accepted) -> parsed
- int/float -> Unix epoch seconds, UTC
- naive values are UTC: a naive datetime decoded as DATETIME_TZ gets
  tzinfo=UTC; an aware datetime decoded as DATETIME is converted to UTC and
  made naive
- datetime -> date / time when the column is DATE / TIME
- timedelta -> time of day for TIME columns

Drivers without native temporal binding (sqlite3) receive ISO text.
"""

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Any

from ..type_mapping import LogicalType
from .base import ValueCodec
from .native import ValueKind

import logging
logger = logging.getLogger(__name__)

TEMPORAL_TYPES = (
    LogicalType.DATE,
    LogicalType.TIME,
    LogicalType.TIME_TZ,
    LogicalType.DATETIME,
    LogicalType.DATETIME_TZ,
)

_SHORT_OFFSET = re.compile(r"([+-]\d{2})$")
_COMPACT_OFFSET = re.compile(r"([+-]\d{2})(\d{2})$")
_FRACTION = re.compile(r"\.(\d+)")


def _normalize_iso(text: str) -> str:
    text = text.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    if _SHORT_OFFSET.search(text) and re.search(r"\d{2}:\d{2}", text):
        text = _SHORT_OFFSET.sub(r"\1:00", text)
    else:
        text = _COMPACT_OFFSET.sub(r"\1:\2", text)
    # fromisoformat accepts 3 or 6 fractional digits only
    return _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)


def parse_datetime(text: str) -> datetime:
    """ISO 8601 datetime (space or T separator, optional offset)."""
    return datetime.fromisoformat(_normalize_iso(text))


def parse_date(text: str) -> date:
    text = text.strip()
    if len(text) > 10:
        return parse_datetime(text).date()
    return date.fromisoformat(text)


def parse_time(text: str) -> time:
    return time.fromisoformat(_normalize_iso(text))


def to_utc_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def to_utc_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class TemporalCodec(ValueCodec):
    """DATE, TIME, TIME_TZ, DATETIME and DATETIME_TZ values."""

    kind = ValueKind.TEMPORAL

    def encode_native(self, value: Any) -> Any:
        return self.decode(value)

    def encode_text(self, value: Any) -> Any:
        value = self.decode(value)
        return value.isoformat()

    def decode_value(self, value: Any) -> Any:
        lt = self.logical_type
        if lt == LogicalType.DATE:
            return self._as_date(value)
        if lt in (LogicalType.TIME, LogicalType.TIME_TZ):
            result = self._as_time(value)
            return result if lt == LogicalType.TIME_TZ else result.replace(tzinfo=None)
        result = self._as_datetime(value)
        return to_utc_aware(result) if lt == LogicalType.DATETIME_TZ else to_utc_naive(result)

    def _as_datetime(self, value: Any) -> datetime:
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return datetime.fromtimestamp(value, timezone.utc)
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        if isinstance(value, str):
            return parse_datetime(value)
        raise self._fail(value, "datetime, ISO text or epoch seconds")

    def _as_date(self, value: Any) -> date:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return datetime.fromtimestamp(value, timezone.utc).date()
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        if isinstance(value, str):
            return parse_date(value)
        raise self._fail(value, "date or ISO text")

    def _as_time(self, value: Any) -> time:
        if isinstance(value, time):
            return value
        if isinstance(value, datetime):
            return value.timetz()
        if isinstance(value, timedelta):
            seconds = value.total_seconds()
            if not 0 <= seconds < 86400:
                raise self._fail(value, "a time of day")
            return (datetime.min + value).time()
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        if isinstance(value, str):
            return parse_time(value)
        raise self._fail(value, "time, timedelta or ISO text")
