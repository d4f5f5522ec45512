"""
PostgreSQL type registry

PostgreSQL is the only dialect with native arrays: any element type can be
spelled "element[]" (or "_element" in pg_type.typname form).
"""

from typing import List, Optional

from ..errors import UnsupportedTypeError
from .categories import DataTypeCategory, LogicalType as L
from .data_type import (
    NativeTypeInfo,
    ProviderDataType,
    TypeOptions,
    datetime_type,
    decimal_type,
    integer_type,
    simple_type,
    string_type,
)
from .registry import TypeRegistry, normalize_type_name


class PostgreSQLTypeRegistry(TypeRegistry):
    """Native types of PostgreSQL 12+ (PostGIS geometry/geography included)."""

    family = "postgresql"

    fallbacks = {
        L.INT8: (L.INT16, TypeOptions()),
        L.BINARY: (L.VARBINARY, TypeOptions()),
        L.YEAR: (L.INT16, TypeOptions()),
        L.ROWVERSION: (L.INT64, TypeOptions()),
        L.HIERARCHY_ID: (L.TEXT, TypeOptions()),
        L.VARIANT: (L.TEXT, TypeOptions()),
        L.ENUM: (L.TEXT, TypeOptions()),
        L.SET: (L.TEXT, TypeOptions()),
        L.LINESTRING: (L.PATH, TypeOptions()),
        L.MULTI_POINT: (L.GEOMETRY, TypeOptions()),
        L.MULTI_LINESTRING: (L.GEOMETRY, TypeOptions()),
        L.MULTI_POLYGON: (L.GEOMETRY, TypeOptions()),
        L.GEOMETRY_COLLECTION: (L.GEOMETRY, TypeOptions()),
    }

    def _builtin_types(self) -> List[ProviderDataType]:
        return [
            # Integers
            integer_type("smallint", L.INT16, aliases=("int2",)),
            integer_type("integer", L.INT32, aliases=("int", "int4")),
            integer_type("bigint", L.INT64, aliases=("int8",)),
            integer_type("smallserial", L.INT16, aliases=("serial2",), is_common=False),
            integer_type("serial", L.INT32, aliases=("serial4",), is_common=False),
            integer_type("bigserial", L.INT64, aliases=("serial8",), is_common=False),
            # Decimals
            decimal_type("numeric", 1000, 1000, aliases=("decimal",)),
            simple_type("real", L.FLOAT32, aliases=("float4",), is_common=True),
            simple_type("double precision", L.FLOAT64, aliases=("float8", "float"), is_common=True),
            simple_type("money", L.MONEY),
            # Text
            string_type("char", L.CHAR, 10485760, default_length=None,
                        aliases=("character", "bpchar")),
            string_type("varchar", L.TEXT, 10485760, default_length=None,
                        aliases=("character varying",)),
            simple_type("text", L.TEXT, is_common=True),
            # Boolean
            simple_type("boolean", L.BOOLEAN, aliases=("bool",), is_common=True),
            # Date and time
            datetime_type("date", L.DATE),
            datetime_type("time", L.TIME, 6, aliases=("time without time zone",)),
            datetime_type("time with time zone", L.TIME_TZ, 6, aliases=("timetz",)),
            datetime_type("timestamp", L.DATETIME, 6, aliases=("timestamp without time zone",)),
            datetime_type("timestamp with time zone", L.DATETIME_TZ, 6, aliases=("timestamptz",)),
            datetime_type("interval", L.INTERVAL),
            # Binary
            simple_type("bytea", L.VARBINARY, is_common=True),
            string_type("bit", L.BIT_STRING, 83886080, default_length=None, is_common=False),
            string_type("bit varying", L.BIT_STRING, 83886080, default_length=None,
                        aliases=("varbit",), is_common=False),
            # Identifiers
            simple_type("uuid", L.UUID, is_common=True),
            simple_type("oid", L.OBJECT_ID, patterns=("reg*",)),
            # Documents
            simple_type("jsonb", L.JSON, is_common=True),
            simple_type("json", L.JSON),
            simple_type("xml", L.XML),
            # Network
            simple_type("inet", L.INET),
            simple_type("cidr", L.CIDR),
            simple_type("macaddr", L.MACADDR),
            simple_type("macaddr8", L.MACADDR8),
            # Geometric
            simple_type("point", L.POINT),
            simple_type("line", L.LINE),
            simple_type("lseg", L.LINE_SEGMENT),
            simple_type("box", L.BOX),
            simple_type("path", L.PATH),
            simple_type("polygon", L.POLYGON),
            simple_type("circle", L.CIRCLE),
            simple_type("geometry", L.GEOMETRY, description="PostGIS"),
            simple_type("geography", L.GEOGRAPHY, description="PostGIS"),
            # Ranges
            simple_type("int4range", L.INT32_RANGE),
            simple_type("int8range", L.INT64_RANGE),
            simple_type("numrange", L.DECIMAL_RANGE),
            simple_type("daterange", L.DATE_RANGE),
            simple_type("tsrange", L.DATETIME_RANGE),
            simple_type("tstzrange", L.DATETIME_TZ_RANGE),
            # Arrays (rendered as element[])
            simple_type("anyarray", L.ARRAY, description="Array of any element type"),
            # Text search and extensions
            simple_type("tsvector", L.TEXT_SEARCH_VECTOR),
            simple_type("tsquery", L.TEXT_SEARCH_QUERY),
            simple_type("hstore", L.KEY_VALUE, description="hstore extension"),
            simple_type("ltree", L.LABEL_TREE, description="ltree extension"),
        ]

    def _resolve_array(self, options: TypeOptions) -> str:
        element = options.element_type or L.TEXT
        if element == L.ARRAY:
            raise UnsupportedTypeError("Nested array element types are spelled with one []",
                                       object_ref="array")
        element_native = self._resolve(element, TypeOptions(
            length=options.length,
            precision=options.precision,
            scale=options.scale,
            custom_name=options.custom_name,
        ))
        return f"{element_native}[]"

    def _describe_array(self, text: str) -> NativeTypeInfo:
        element_text = text
        while element_text.endswith("[]"):
            element_text = element_text[:-2].rstrip()
        element = self._describe(element_text)
        return NativeTypeInfo(
            native_type=text,
            base_name=normalize_type_name(text),
            logical_type=L.ARRAY,
            category=DataTypeCategory.ARRAY,
            length=element.length,
            precision=element.precision,
            scale=element.scale,
            is_unicode=element.is_unicode,
            is_array=True,
            element_type=element.logical_type,
            entry=element.entry,
        )

    def _classify_unknown(self, text: str, base: str, groups: List[str]) -> Optional[NativeTypeInfo]:
        # pg_type.typname spells arrays as "_int4", "_text", ...
        if base.startswith("_") and self._lookup(base[1:]) is not None:
            return self._describe_array(base[1:] + "[]")
        return None
