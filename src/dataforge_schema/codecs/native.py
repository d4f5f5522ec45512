"""
Native type support - what a driver can bind and return without help

Each driver integration states explicitly which value kinds it handles
natively; the codec registry is composed with one of these at build time,
so no codec inspects driver objects to find out.

- NoNativeSupport: everything goes through interchange text (sqlite3)
- DriverNativeSupport: a fixed set of kinds (pyodbc / PyMySQL bind temporal values)
- Psycopg2NativeSupport: arrays, ranges, network, geometric literals, JSON, temporal
"""

from enum import Enum
from typing import Any, FrozenSet, Iterable

import logging
logger = logging.getLogger(__name__)


class ValueKind(Enum):
    """Value families with driver-dependent representations."""
    ARRAY = "array"
    KEY_VALUE = "key_value"
    JSON = "json"
    XML = "xml"
    NETWORK = "network"
    GEOMETRIC = "geometric"
    RANGE = "range"
    TEMPORAL = "temporal"


class NativeTypeSupport:
    """Capability interface implemented by each driver integration."""

    name = "none"
    kinds: FrozenSet[ValueKind] = frozenset()

    def supports(self, kind: ValueKind) -> bool:
        return kind in self.kinds

    def to_driver(self, kind: ValueKind, value: Any) -> Any:
        """Adapt an interchange value to the driver's native parameter object."""
        return value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({sorted(k.value for k in self.kinds)})"


class NoNativeSupport(NativeTypeSupport):
    """Driver without native structured types."""


class DriverNativeSupport(NativeTypeSupport):
    """Driver with a fixed set of natively bound kinds."""

    def __init__(self, name: str, kinds: Iterable[ValueKind]):
        self.name = name
        self.kinds = frozenset(kinds)


class Psycopg2NativeSupport(NativeTypeSupport):
    """
    psycopg2 native adaptation.

    psycopg2 is imported when a value is first adapted, so composing a
    registry for PostgreSQL does not require the driver.
    """

    name = "psycopg2"
    kinds = frozenset({
        ValueKind.ARRAY,
        ValueKind.JSON,
        ValueKind.NETWORK,
        ValueKind.GEOMETRIC,
        ValueKind.RANGE,
        ValueKind.TEMPORAL,
    })

    def to_driver(self, kind: ValueKind, value: Any) -> Any:
        if kind == ValueKind.JSON:
            from psycopg2.extras import Json
            return Json(value)
        if kind == ValueKind.NETWORK:
            from psycopg2.extras import Inet
            return Inet(str(value))
        if kind == ValueKind.RANGE:
            return self._range(value)
        # Lists adapt to ARRAY; geometric values are bound as their literal text
        return value

    @staticmethod
    def _range(value: Any) -> Any:
        from psycopg2.extras import Range as DriverRange
        if value.empty:
            return DriverRange(empty=True)
        bounds = ("[" if value.lower_inc else "(") + ("]" if value.upper_inc else ")")
        return DriverRange(value.lower, value.upper, bounds)
