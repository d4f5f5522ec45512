"""
Value codecs - portable encoding of structured column values

Usage:
    from dataforge_schema.codecs import CodecRegistry, Point

    codecs = CodecRegistry.for_family(db.family)
    db.execute("INSERT INTO shapes (pos) VALUES (?)", [codecs.encode(LogicalType.POINT, Point(1, 2))])
"""

from .base import CodecRegistry, ValueCodec, native_support_for
from .native import DriverNativeSupport, NativeTypeSupport, NoNativeSupport, Psycopg2NativeSupport, ValueKind
from .values import Box, Circle, Line, LineSegment, Path, Point, Polygon, Range
from .structured import ArrayCodec, KeyValueCodec
from .documents import JsonCodec, XmlCodec
from .geometric import GEOMETRIC_TYPES, GeometricCodec
from .network import IpAddressCodec, MacAddressCodec
from .ranges import RangeCodec
from .temporal import TEMPORAL_TYPES, TemporalCodec

__all__ = [
    "CodecRegistry",
    "ValueCodec",
    "native_support_for",
    "NativeTypeSupport",
    "NoNativeSupport",
    "DriverNativeSupport",
    "Psycopg2NativeSupport",
    "ValueKind",
    "Box",
    "Circle",
    "Line",
    "LineSegment",
    "Path",
    "Point",
    "Polygon",
    "Range",
    "ArrayCodec",
    "KeyValueCodec",
    "JsonCodec",
    "XmlCodec",
    "GEOMETRIC_TYPES",
    "GeometricCodec",
    "IpAddressCodec",
    "MacAddressCodec",
    "RangeCodec",
    "TEMPORAL_TYPES",
    "TemporalCodec",
]
