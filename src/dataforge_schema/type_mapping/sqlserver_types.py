"""
SQL Server type registry
"""

from typing import List

from ..constants import UNBOUNDED_LENGTH
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

_TEXT_MAX = TypeOptions(length=UNBOUNDED_LENGTH)


class SQLServerTypeRegistry(TypeRegistry):
    """Native types of SQL Server 2016+."""

    family = "sqlserver"

    fallbacks = {
        L.JSON: (L.TEXT, _TEXT_MAX),
        L.ARRAY: (L.TEXT, _TEXT_MAX),
        L.INT32_RANGE: (L.TEXT, _TEXT_MAX),
        L.INT64_RANGE: (L.TEXT, _TEXT_MAX),
        L.DECIMAL_RANGE: (L.TEXT, _TEXT_MAX),
        L.DATE_RANGE: (L.TEXT, _TEXT_MAX),
        L.DATETIME_RANGE: (L.TEXT, _TEXT_MAX),
        L.DATETIME_TZ_RANGE: (L.TEXT, _TEXT_MAX),
        L.KEY_VALUE: (L.TEXT, _TEXT_MAX),
        L.TEXT_SEARCH_VECTOR: (L.TEXT, _TEXT_MAX),
        L.TEXT_SEARCH_QUERY: (L.TEXT, _TEXT_MAX),
        L.INET: (L.TEXT, TypeOptions(length=50)),
        L.CIDR: (L.TEXT, TypeOptions(length=50)),
        L.MACADDR: (L.TEXT, TypeOptions(length=17)),
        L.MACADDR8: (L.TEXT, TypeOptions(length=23)),
        L.INTERVAL: (L.TEXT, TypeOptions(length=50)),
        L.TIME_TZ: (L.TEXT, TypeOptions(length=32)),
        L.ENUM: (L.TEXT, TypeOptions(length=255)),
        L.SET: (L.TEXT, TypeOptions(length=255)),
        L.LABEL_TREE: (L.TEXT, TypeOptions(length=255)),
        L.YEAR: (L.INT16, TypeOptions()),
        L.OBJECT_ID: (L.INT64, TypeOptions()),
        L.BIT_STRING: (L.VARBINARY, _TEXT_MAX),
        L.POINT: (L.GEOMETRY, TypeOptions()),
        L.LINE: (L.GEOMETRY, TypeOptions()),
        L.LINE_SEGMENT: (L.GEOMETRY, TypeOptions()),
        L.BOX: (L.GEOMETRY, TypeOptions()),
        L.PATH: (L.GEOMETRY, TypeOptions()),
        L.POLYGON: (L.GEOMETRY, TypeOptions()),
        L.CIRCLE: (L.GEOMETRY, TypeOptions()),
        L.LINESTRING: (L.GEOMETRY, TypeOptions()),
        L.MULTI_POINT: (L.GEOMETRY, TypeOptions()),
        L.MULTI_LINESTRING: (L.GEOMETRY, TypeOptions()),
        L.MULTI_POLYGON: (L.GEOMETRY, TypeOptions()),
        L.GEOMETRY_COLLECTION: (L.GEOMETRY, TypeOptions()),
    }

    def _builtin_types(self) -> List[ProviderDataType]:
        return [
            # Integers
            integer_type("tinyint", L.INT8, description="0 to 255"),
            integer_type("smallint", L.INT16),
            integer_type("int", L.INT32, aliases=("integer",)),
            integer_type("bigint", L.INT64),
            # Decimals
            decimal_type("decimal", 38, 38, aliases=("dec",)),
            decimal_type("numeric", 38, 38, is_common=False),
            simple_type("real", L.FLOAT32, is_common=True),
            simple_type("float", L.FLOAT64, aliases=("double precision",), is_common=True),
            simple_type("money", L.MONEY, is_common=True),
            simple_type("smallmoney", L.MONEY),
            # Boolean
            simple_type("bit", L.BOOLEAN, is_common=True),
            # Text
            string_type("nchar", L.CHAR, 4000, default_length=None, is_unicode=True),
            string_type("char", L.CHAR, 8000, default_length=None, is_unicode=False,
                        aliases=("character",)),
            string_type("nvarchar", L.TEXT, 4000, is_unicode=True, unbounded_keyword="max",
                        aliases=("national character varying",)),
            string_type("varchar", L.TEXT, 8000, is_unicode=False, unbounded_keyword="max",
                        aliases=("character varying",)),
            simple_type("ntext", L.TEXT, capacity=2 ** 30 - 1, is_unicode=True,
                        description="Deprecated, use nvarchar(max)"),
            simple_type("text", L.TEXT, capacity=2 ** 31 - 1, is_unicode=False,
                        description="Deprecated, use varchar(max)"),
            # Binary
            binary_type("binary", L.BINARY, 8000),
            binary_type("varbinary", L.VARBINARY, 8000, default_length=UNBOUNDED_LENGTH,
                        unbounded_keyword="max", is_common=True),
            simple_type("image", L.VARBINARY, capacity=2 ** 31 - 1,
                        description="Deprecated, use varbinary(max)"),
            # Date and time
            datetime_type("date", L.DATE),
            datetime_type("time", L.TIME, 7),
            datetime_type("datetime2", L.DATETIME, 7),
            datetime_type("datetime", L.DATETIME, is_common=False),
            datetime_type("smalldatetime", L.DATETIME, is_common=False),
            datetime_type("datetimeoffset", L.DATETIME_TZ, 7),
            # Identifiers
            simple_type("uniqueidentifier", L.UUID, is_common=True),
            simple_type("rowversion", L.ROWVERSION, aliases=("timestamp",),
                        description="Auto-generated binary row version"),
            simple_type("hierarchyid", L.HIERARCHY_ID),
            # Documents
            simple_type("xml", L.XML, is_common=True),
            # Spatial
            simple_type("geometry", L.GEOMETRY),
            simple_type("geography", L.GEOGRAPHY),
            # Other
            simple_type("sql_variant", L.VARIANT),
        ]
