"""
SQLite type registry

SQLite keeps the declared type text verbatim, so the registry lists the
spellings this engine emits plus the common declared spellings seen in the
wild. Anything else falls back to SQLite's own affinity rules through
wildcard patterns ("*int*" -> integer, "*char*" -> text, ...).
"""

from typing import List

from .categories import LogicalType as L
from .data_type import (
    ProviderDataType,
    TypeOptions,
    binary_type,
    datetime_type,
    decimal_type,
    integer_type,
    simple_type,
    string_type,
)
from .registry import TypeRegistry

_MAX_LENGTH = 1_000_000_000     # SQLITE_MAX_LENGTH default
_TEXT = (L.TEXT, TypeOptions())
_BLOB = (L.VARBINARY, TypeOptions())


class SQLiteTypeRegistry(TypeRegistry):
    """Declared-type vocabulary of SQLite 3."""

    family = "sqlite"

    fallbacks = {
        L.MONEY: (L.DECIMAL, TypeOptions(precision=19, scale=4)),
        L.UUID: (L.CHAR, TypeOptions(length=36)),
        L.DATETIME_TZ: (L.DATETIME, TypeOptions()),
        L.TIME_TZ: (L.TIME, TypeOptions()),
        L.YEAR: (L.INT16, TypeOptions()),
        L.OBJECT_ID: (L.INT64, TypeOptions()),
        L.INTERVAL: _TEXT,
        L.XML: _TEXT,
        L.ARRAY: _TEXT,
        L.KEY_VALUE: _TEXT,
        L.INT32_RANGE: _TEXT,
        L.INT64_RANGE: _TEXT,
        L.DECIMAL_RANGE: _TEXT,
        L.DATE_RANGE: _TEXT,
        L.DATETIME_RANGE: _TEXT,
        L.DATETIME_TZ_RANGE: _TEXT,
        L.INET: _TEXT,
        L.CIDR: _TEXT,
        L.MACADDR: _TEXT,
        L.MACADDR8: _TEXT,
        L.GEOMETRY: _TEXT,
        L.GEOGRAPHY: _TEXT,
        L.POINT: _TEXT,
        L.LINE: _TEXT,
        L.LINE_SEGMENT: _TEXT,
        L.BOX: _TEXT,
        L.PATH: _TEXT,
        L.POLYGON: _TEXT,
        L.CIRCLE: _TEXT,
        L.LINESTRING: _TEXT,
        L.MULTI_POINT: _TEXT,
        L.MULTI_LINESTRING: _TEXT,
        L.MULTI_POLYGON: _TEXT,
        L.GEOMETRY_COLLECTION: _TEXT,
        L.ENUM: _TEXT,
        L.SET: _TEXT,
        L.HIERARCHY_ID: _TEXT,
        L.LABEL_TREE: _TEXT,
        L.VARIANT: _TEXT,
        L.TEXT_SEARCH_VECTOR: _TEXT,
        L.TEXT_SEARCH_QUERY: _TEXT,
        L.ROWVERSION: _BLOB,
        L.BIT_STRING: _BLOB,
    }

    def _builtin_types(self) -> List[ProviderDataType]:
        return [
            # Integers (INTEGER is the 64-bit rowid type)
            integer_type("integer", L.INT64, patterns=("*int*",)),
            integer_type("bigint", L.INT64, aliases=("unsigned big int", "int8")),
            integer_type("int", L.INT32, aliases=("int4", "mediumint")),
            integer_type("smallint", L.INT16, aliases=("int2",)),
            integer_type("tinyint", L.INT8),
            # Floating point and decimals
            simple_type("real", L.FLOAT64, aliases=("double", "double precision"),
                        patterns=("*real*", "*floa*", "*doub*"), is_common=True),
            simple_type("float", L.FLOAT32),
            decimal_type("decimal", 1000, 1000, aliases=("numeric",)),
            # Boolean
            simple_type("boolean", L.BOOLEAN, aliases=("bool",), is_common=True),
            # Text (length-carrying spellings first so lengths survive)
            string_type("char", L.CHAR, _MAX_LENGTH, default_length=None,
                        aliases=("character", "nchar", "native character")),
            string_type("varchar", L.TEXT, _MAX_LENGTH, default_length=None,
                        aliases=("nvarchar", "varying character", "character varying")),
            simple_type("text", L.TEXT, aliases=("clob",), patterns=("*char*", "*clob*", "*text*"),
                        is_common=True),
            # Binary
            binary_type("binary", L.BINARY, _MAX_LENGTH),
            binary_type("varbinary", L.VARBINARY, _MAX_LENGTH),
            simple_type("blob", L.VARBINARY, patterns=("*blob*",), is_common=True),
            # Date and time (stored as ISO-8601 text)
            datetime_type("date", L.DATE),
            datetime_type("time", L.TIME),
            datetime_type("datetime", L.DATETIME, aliases=("timestamp",)),
            # Documents
            simple_type("json", L.JSON),
        ]
