"""
Range codec - int/numeric/date/timestamp ranges

Decode accepts:
- psycopg2 Range objects (lower, upper, lower_inc, upper_inc, isempty)
- PostgreSQL range literals: "[1,10)", "(,5]", "empty", quoted bounds
- JSON objects: {"lower": .., "upper": .., "lower_inc": .., "upper_inc": .., "empty": ..}

Bounds are converted to the range's element type; timestamp bounds go
through the temporal codec (naive values are UTC). Without native range
support, ranges encode as the JSON object above.
"""

import json
from decimal import Decimal
from typing import Any, Optional

from ..type_mapping import LogicalType, RANGE_ELEMENT_TYPES
from .base import ValueCodec
from .native import ValueKind
from .temporal import TemporalCodec
from .values import Range


def _split_bounds(body: str):
    """Split "a,b" honoring double-quoted bounds."""
    parts = []
    current = []
    quoted = False
    escaped = False
    for ch in body:
        if escaped:
            current.append(ch)
            escaped = False
        elif ch == "\\":
            escaped = True
        elif ch == '"':
            quoted = not quoted
        elif ch == "," and not quoted:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
    parts.append("".join(current))
    return parts


class RangeCodec(ValueCodec):
    """Ranges over one element type."""

    kind = ValueKind.RANGE

    def __init__(self, native=None, logical_type: Optional[LogicalType] = None):
        super().__init__(native, logical_type)
        self.element_type = RANGE_ELEMENT_TYPES.get(logical_type, LogicalType.DECIMAL)
        self._temporal = TemporalCodec(None, self.element_type) \
            if self.element_type in (LogicalType.DATE, LogicalType.DATETIME, LogicalType.DATETIME_TZ) else None

    # ==================== Elements ====================

    def _element(self, value: Any) -> Any:
        if value is None:
            return None
        if self._temporal is not None:
            return self._temporal.decode(value)
        if self.element_type in (LogicalType.INT32, LogicalType.INT64):
            return int(value)
        return value if isinstance(value, Decimal) else Decimal(str(value))

    def _element_text(self, value: Any) -> Any:
        if value is None:
            return None
        if self._temporal is not None:
            return self._temporal.encode_text(value)
        if isinstance(value, Decimal):
            return str(value)
        return value

    # ==================== Encode ====================

    def encode_native(self, value: Any) -> Any:
        return self.decode(value)

    def encode_text(self, value: Any) -> str:
        value = self.decode(value)
        return json.dumps({
            "lower": self._element_text(value.lower),
            "upper": self._element_text(value.upper),
            "lower_inc": value.lower_inc,
            "upper_inc": value.upper_inc,
            "empty": value.empty,
        })

    def to_postgres(self, value: Range) -> str:
        """PostgreSQL range literal."""
        if value.empty:
            return "empty"
        lower = "" if value.lower is None else f'"{self._element_text(value.lower)}"'
        upper = "" if value.upper is None else f'"{self._element_text(value.upper)}"'
        return f"{'[' if value.lower_inc else '('}{lower},{upper}{']' if value.upper_inc else ')'}"

    # ==================== Decode ====================

    def decode_value(self, value: Any) -> Range:
        if isinstance(value, Range):
            return Range(self._element(value.lower), self._element(value.upper),
                         value.lower_inc, value.upper_inc, value.empty)
        if hasattr(value, "isempty") and hasattr(value, "lower_inc"):
            if value.isempty:
                return Range.empty_range()
            return Range(self._element(value.lower), self._element(value.upper),
                         bool(value.lower_inc), bool(value.upper_inc))
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        if isinstance(value, dict):
            return self._from_mapping(value)
        if isinstance(value, str):
            text = value.strip()
            if text.lower() == "empty":
                return Range.empty_range()
            if text[:1] in ("[", "("):
                return self._from_literal(text)
            if text.startswith("{"):
                return self._from_mapping(json.loads(text))
        raise self._fail(value, "a range literal such as [1,10) or a JSON range object")

    def _from_literal(self, text: str) -> Range:
        if text[-1:] not in ("]", ")"):
            raise self._fail(text, "a closing ] or )")
        bounds = _split_bounds(text[1:-1])
        if len(bounds) != 2:
            raise self._fail(text, "exactly two bounds")
        lower, upper = (b.strip() for b in bounds)
        return Range(
            self._element(lower) if lower else None,
            self._element(upper) if upper else None,
            lower_inc=text[0] == "[" and bool(lower),
            upper_inc=text[-1] == "]" and bool(upper),
        )

    def _from_mapping(self, data: dict) -> Range:
        if data.get("empty"):
            return Range.empty_range()
        return Range(
            self._element(data.get("lower")),
            self._element(data.get("upper")),
            lower_inc=bool(data.get("lower_inc", True)),
            upper_inc=bool(data.get("upper_inc", False)),
        )
