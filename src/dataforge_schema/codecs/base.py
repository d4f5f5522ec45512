"""
Value Codec base - encode/decode contract and the per-family codec registry

Policy:
- None passes through both ways
- when the driver handles the value kind natively, encode hands the value
  to the driver (adapted by NativeTypeSupport.to_driver); decode normalizes
  whatever the driver returns
- otherwise encode serializes to a stable interchange text (JSON, WKT,
  canonical network notation) and decode parses it back
- unparsable input raises FormatError

Usage:
    codecs = CodecRegistry.for_family("sqlite")
    param = codecs.encode(LogicalType.INT32_RANGE, Range(1, 10))
    value = codecs.decode(LogicalType.INT32_RANGE, row["span"])
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..connection import DriverFamily
from ..errors import FormatError
from ..type_mapping import LogicalType, RANGE_ELEMENT_TYPES
from .native import DriverNativeSupport, NativeTypeSupport, NoNativeSupport, Psycopg2NativeSupport, ValueKind

import logging
logger = logging.getLogger(__name__)


class ValueCodec(ABC):
    """Encode/decode values of one logical type."""

    kind: ValueKind = ValueKind.JSON

    def __init__(self, native: Optional[NativeTypeSupport] = None,
                 logical_type: Optional[LogicalType] = None):
        self.native = native or NoNativeSupport()
        self.logical_type = logical_type

    @property
    def uses_native(self) -> bool:
        return self.native.supports(self.kind)

    def __repr__(self) -> str:
        target = self.logical_type.value if self.logical_type else self.kind.value
        return f"{type(self).__name__}({target}, native={self.uses_native})"

    def encode(self, value: Any) -> Any:
        """Value -> driver parameter."""
        if value is None:
            return None
        if self.uses_native:
            return self.native.to_driver(self.kind, self.encode_native(value))
        return self.encode_text(value)

    def decode(self, value: Any) -> Any:
        """Driver value -> value."""
        if value is None:
            return None
        try:
            return self.decode_value(value)
        except FormatError:
            raise
        except (ValueError, TypeError, KeyError, IndexError, ArithmeticError) as e:
            raise FormatError(f"Cannot decode {type(value).__name__} as {self._label}: {e}",
                              object_ref=self._label) from e

    @property
    def _label(self) -> str:
        return self.logical_type.value if self.logical_type else self.kind.value

    def _fail(self, value: Any, expected: str) -> FormatError:
        return FormatError(f"Invalid {self._label} value {value!r}; expected {expected}",
                           object_ref=self._label)

    def encode_native(self, value: Any) -> Any:
        """Value handed to the driver when it supports the kind (pass-through by default)."""
        return value

    @abstractmethod
    def encode_text(self, value: Any) -> Any:
        """Interchange representation for drivers without native support."""
        pass

    @abstractmethod
    def decode_value(self, value: Any) -> Any:
        pass


class CodecRegistry:
    """
    Codecs by logical type for one driver family.

    Logical types without a codec pass through unchanged.
    """

    def __init__(self, native: Optional[NativeTypeSupport] = None):
        self.native = native or NoNativeSupport()
        self._codecs: Dict[LogicalType, ValueCodec] = {}

    @classmethod
    def for_family(cls, family, native: Optional[NativeTypeSupport] = None) -> "CodecRegistry":
        """
        Registry with the built-in codecs for a driver family.

        Args:
            family: DriverFamily or alias string
            native: Override the family's native support declaration
        """
        family = DriverFamily.parse(family)
        registry = cls(native or native_support_for(family))
        registry.register_defaults()
        return registry

    def register(self, logical_type: LogicalType, codec: ValueCodec) -> None:
        self._codecs[LogicalType.parse(logical_type)] = codec

    def get(self, logical_type) -> Optional[ValueCodec]:
        return self._codecs.get(LogicalType.parse(logical_type))

    def logical_types(self) -> List[LogicalType]:
        return list(self._codecs)

    def encode(self, logical_type, value: Any) -> Any:
        codec = self.get(logical_type)
        return codec.encode(value) if codec is not None else value

    def decode(self, logical_type, value: Any) -> Any:
        codec = self.get(logical_type)
        return codec.decode(value) if codec is not None else value

    def register_defaults(self) -> None:
        from .structured import ArrayCodec, KeyValueCodec
        from .documents import JsonCodec, XmlCodec
        from .geometric import GEOMETRIC_TYPES, GeometricCodec
        from .network import IpAddressCodec, MacAddressCodec
        from .ranges import RangeCodec
        from .temporal import TEMPORAL_TYPES, TemporalCodec

        n = self.native
        self.register(LogicalType.ARRAY, ArrayCodec(n, LogicalType.ARRAY))
        self.register(LogicalType.KEY_VALUE, KeyValueCodec(n, LogicalType.KEY_VALUE))
        self.register(LogicalType.JSON, JsonCodec(n, LogicalType.JSON))
        self.register(LogicalType.XML, XmlCodec(n, LogicalType.XML))
        for lt in (LogicalType.INET, LogicalType.CIDR):
            self.register(lt, IpAddressCodec(n, lt))
        for lt in (LogicalType.MACADDR, LogicalType.MACADDR8):
            self.register(lt, MacAddressCodec(n, lt))
        for lt in GEOMETRIC_TYPES:
            self.register(lt, GeometricCodec(n, lt))
        for lt in RANGE_ELEMENT_TYPES:
            self.register(lt, RangeCodec(n, lt))
        for lt in TEMPORAL_TYPES:
            self.register(lt, TemporalCodec(n, lt))


def native_support_for(family: DriverFamily) -> NativeTypeSupport:
    """Native support declared by each family's bundled driver."""
    if family == DriverFamily.POSTGRESQL:
        return Psycopg2NativeSupport()
    if family == DriverFamily.SQLSERVER:
        return DriverNativeSupport("pyodbc", [ValueKind.TEMPORAL])
    if family == DriverFamily.MYSQL:
        return DriverNativeSupport("pymysql", [ValueKind.TEMPORAL])
    return NoNativeSupport()
