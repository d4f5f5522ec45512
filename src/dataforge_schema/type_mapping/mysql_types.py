"""
MySQL / MariaDB type registry
"""

from dataclasses import replace
from typing import List

from ..constants import UNBOUNDED_LENGTH
from .categories import DataTypeCategory, LogicalType as L
from .data_type import (
    NativeTypeInfo,
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

_LONG_TEXT = TypeOptions(length=UNBOUNDED_LENGTH)
_JSON = TypeOptions()


class MySQLTypeRegistry(TypeRegistry):
    """Native types of MySQL 8 and MariaDB 10.x."""

    family = "mysql"
    modifier_words = ("unsigned", "signed", "zerofill")

    fallbacks = {
        L.UUID: (L.CHAR, TypeOptions(length=36)),
        L.XML: (L.TEXT, _LONG_TEXT),
        L.MONEY: (L.DECIMAL, TypeOptions(precision=19, scale=4)),
        L.ARRAY: (L.JSON, _JSON),
        L.KEY_VALUE: (L.JSON, _JSON),
        L.INT32_RANGE: (L.JSON, _JSON),
        L.INT64_RANGE: (L.JSON, _JSON),
        L.DECIMAL_RANGE: (L.JSON, _JSON),
        L.DATE_RANGE: (L.JSON, _JSON),
        L.DATETIME_RANGE: (L.JSON, _JSON),
        L.DATETIME_TZ_RANGE: (L.JSON, _JSON),
        L.INET: (L.TEXT, TypeOptions(length=50)),
        L.CIDR: (L.TEXT, TypeOptions(length=50)),
        L.MACADDR: (L.TEXT, TypeOptions(length=17)),
        L.MACADDR8: (L.TEXT, TypeOptions(length=23)),
        L.INTERVAL: (L.TEXT, TypeOptions(length=50)),
        L.TIME_TZ: (L.TEXT, TypeOptions(length=32)),
        L.ROWVERSION: (L.VARBINARY, TypeOptions(length=8)),
        L.HIERARCHY_ID: (L.TEXT, TypeOptions(length=255)),
        L.LABEL_TREE: (L.TEXT, TypeOptions(length=255)),
        L.VARIANT: (L.TEXT, _LONG_TEXT),
        L.TEXT_SEARCH_VECTOR: (L.TEXT, _LONG_TEXT),
        L.TEXT_SEARCH_QUERY: (L.TEXT, _LONG_TEXT),
        L.OBJECT_ID: (L.INT64, TypeOptions()),
        L.GEOGRAPHY: (L.GEOMETRY, TypeOptions()),
        L.LINE: (L.GEOMETRY, TypeOptions()),
        L.LINE_SEGMENT: (L.GEOMETRY, TypeOptions()),
        L.BOX: (L.GEOMETRY, TypeOptions()),
        L.PATH: (L.GEOMETRY, TypeOptions()),
        L.CIRCLE: (L.GEOMETRY, TypeOptions()),
    }

    def _builtin_types(self) -> List[ProviderDataType]:
        return [
            # Integers
            integer_type("tinyint", L.INT8),
            integer_type("smallint", L.INT16),
            integer_type("int", L.INT32, aliases=("integer",)),
            integer_type("mediumint", L.INT32, is_common=False),
            integer_type("bigint", L.INT64),
            # Boolean (stored as tinyint(1))
            simple_type("boolean", L.BOOLEAN, aliases=("bool",), is_common=True),
            # Decimals
            decimal_type("decimal", 65, 30, default_precision=10, default_scale=2,
                         aliases=("dec", "numeric", "fixed")),
            simple_type("float", L.FLOAT32, is_common=True),
            simple_type("double", L.FLOAT64, aliases=("double precision", "real"), is_common=True),
            # Bits
            string_type("bit", L.BIT_STRING, 64, default_length=None, is_common=False),
            # Text (narrowest first)
            string_type("char", L.CHAR, 255, default_length=None, aliases=("character",)),
            string_type("varchar", L.TEXT, 65535, aliases=("character varying",)),
            simple_type("tinytext", L.TEXT, capacity=255),
            simple_type("text", L.TEXT, capacity=65535, is_common=True),
            simple_type("mediumtext", L.TEXT, capacity=16777215),
            simple_type("longtext", L.TEXT, capacity=4294967295),
            # Binary
            binary_type("binary", L.BINARY, 255),
            binary_type("varbinary", L.VARBINARY, 65535, is_common=True),
            simple_type("blob", L.VARBINARY, capacity=65535, is_common=True),
            simple_type("mediumblob", L.VARBINARY, capacity=16777215),
            simple_type("longblob", L.VARBINARY, capacity=4294967295),
            simple_type("tinyblob", L.VARBINARY, capacity=255),
            # Date and time
            datetime_type("date", L.DATE),
            datetime_type("time", L.TIME, 6),
            datetime_type("datetime", L.DATETIME, 6),
            datetime_type("timestamp", L.DATETIME_TZ, 6,
                          description="Stored as UTC, converted to the session time zone"),
            datetime_type("year", L.YEAR, is_common=False),
            # Documents
            simple_type("json", L.JSON, is_common=True),
            # Spatial
            simple_type("geometry", L.GEOMETRY),
            simple_type("point", L.POINT),
            simple_type("linestring", L.LINESTRING),
            simple_type("polygon", L.POLYGON),
            simple_type("multipoint", L.MULTI_POINT),
            simple_type("multilinestring", L.MULTI_LINESTRING),
            simple_type("multipolygon", L.MULTI_POLYGON),
            simple_type("geometrycollection", L.GEOMETRY_COLLECTION, aliases=("geomcollection",)),
            # Enumerations
            simple_type("enum", L.ENUM),
            simple_type("set", L.SET),
        ]

    def _adjust(self, info: NativeTypeInfo, groups: List[str]) -> NativeTypeInfo:
        # information_schema reports BOOLEAN columns as tinyint(1)
        if info.base_name == "tinyint" and groups and groups[0].strip() == "1":
            return replace(info, logical_type=L.BOOLEAN, category=DataTypeCategory.BOOLEAN)
        return info
