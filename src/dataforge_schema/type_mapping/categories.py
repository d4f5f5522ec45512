"""
Logical types and data type categories

A LogicalType is the dialect-independent tag carried by ColumnDef. Every
logical type belongs to exactly one DataTypeCategory, which drives listing
order and length/precision handling.
"""

from enum import Enum


class DataTypeCategory(Enum):
    """Broad families of column types (listing order follows declaration order)."""
    INTEGER = "integer"
    DECIMAL = "decimal"
    MONEY = "money"
    TEXT = "text"
    DATETIME = "datetime"
    BINARY = "binary"
    BOOLEAN = "boolean"
    JSON = "json"
    XML = "xml"
    SPATIAL = "spatial"
    ARRAY = "array"
    RANGE = "range"
    NETWORK = "network"
    IDENTIFIER = "identifier"
    OTHER = "other"
    CUSTOM = "custom"
    OPAQUE = "opaque"

    @property
    def sort_key(self) -> int:
        return list(DataTypeCategory).index(self)


class LogicalType(Enum):
    """Canonical column type tags."""
    # Integer
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    # Decimal / floating point
    DECIMAL = "decimal"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    MONEY = "money"
    # Text
    CHAR = "char"
    TEXT = "text"
    # Date and time
    DATE = "date"
    TIME = "time"
    TIME_TZ = "time_tz"
    DATETIME = "datetime"
    DATETIME_TZ = "datetime_tz"
    INTERVAL = "interval"
    YEAR = "year"
    # Binary
    BINARY = "binary"
    VARBINARY = "varbinary"
    BIT_STRING = "bit_string"
    # Scalars
    BOOLEAN = "boolean"
    JSON = "json"
    XML = "xml"
    # Spatial / geometric
    GEOMETRY = "geometry"
    GEOGRAPHY = "geography"
    POINT = "point"
    LINE = "line"
    LINE_SEGMENT = "line_segment"
    BOX = "box"
    PATH = "path"
    POLYGON = "polygon"
    CIRCLE = "circle"
    LINESTRING = "linestring"
    MULTI_POINT = "multi_point"
    MULTI_LINESTRING = "multi_linestring"
    MULTI_POLYGON = "multi_polygon"
    GEOMETRY_COLLECTION = "geometry_collection"
    # Structured
    ARRAY = "array"
    INT32_RANGE = "int32_range"
    INT64_RANGE = "int64_range"
    DECIMAL_RANGE = "decimal_range"
    DATE_RANGE = "date_range"
    DATETIME_RANGE = "datetime_range"
    DATETIME_TZ_RANGE = "datetime_tz_range"
    # Network
    INET = "inet"
    CIDR = "cidr"
    MACADDR = "macaddr"
    MACADDR8 = "macaddr8"
    # Identifiers
    UUID = "uuid"
    ROWVERSION = "rowversion"
    HIERARCHY_ID = "hierarchy_id"
    OBJECT_ID = "object_id"
    # Other
    VARIANT = "variant"
    TEXT_SEARCH_VECTOR = "text_search_vector"
    TEXT_SEARCH_QUERY = "text_search_query"
    KEY_VALUE = "key_value"
    LABEL_TREE = "label_tree"
    ENUM = "enum"
    SET = "set"
    # User-defined / unknown
    CUSTOM = "custom"
    OPAQUE = "opaque"

    @property
    def category(self) -> DataTypeCategory:
        return LOGICAL_CATEGORIES[self]

    @classmethod
    def parse(cls, value) -> "LogicalType":
        """Accept a LogicalType, its value or its member name."""
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        try:
            return cls(text.lower())
        except ValueError:
            return cls[text.upper()]


_C = DataTypeCategory
_L = LogicalType

LOGICAL_CATEGORIES = {
    _L.INT8: _C.INTEGER, _L.INT16: _C.INTEGER, _L.INT32: _C.INTEGER, _L.INT64: _C.INTEGER,
    _L.DECIMAL: _C.DECIMAL, _L.FLOAT32: _C.DECIMAL, _L.FLOAT64: _C.DECIMAL,
    _L.MONEY: _C.MONEY,
    _L.CHAR: _C.TEXT, _L.TEXT: _C.TEXT,
    _L.DATE: _C.DATETIME, _L.TIME: _C.DATETIME, _L.TIME_TZ: _C.DATETIME,
    _L.DATETIME: _C.DATETIME, _L.DATETIME_TZ: _C.DATETIME, _L.INTERVAL: _C.DATETIME,
    _L.YEAR: _C.DATETIME,
    _L.BINARY: _C.BINARY, _L.VARBINARY: _C.BINARY, _L.BIT_STRING: _C.BINARY,
    _L.BOOLEAN: _C.BOOLEAN,
    _L.JSON: _C.JSON,
    _L.XML: _C.XML,
    _L.GEOMETRY: _C.SPATIAL, _L.GEOGRAPHY: _C.SPATIAL, _L.POINT: _C.SPATIAL,
    _L.LINE: _C.SPATIAL, _L.LINE_SEGMENT: _C.SPATIAL, _L.BOX: _C.SPATIAL,
    _L.PATH: _C.SPATIAL, _L.POLYGON: _C.SPATIAL, _L.CIRCLE: _C.SPATIAL,
    _L.LINESTRING: _C.SPATIAL, _L.MULTI_POINT: _C.SPATIAL,
    _L.MULTI_LINESTRING: _C.SPATIAL, _L.MULTI_POLYGON: _C.SPATIAL,
    _L.GEOMETRY_COLLECTION: _C.SPATIAL,
    _L.ARRAY: _C.ARRAY,
    _L.INT32_RANGE: _C.RANGE, _L.INT64_RANGE: _C.RANGE, _L.DECIMAL_RANGE: _C.RANGE,
    _L.DATE_RANGE: _C.RANGE, _L.DATETIME_RANGE: _C.RANGE, _L.DATETIME_TZ_RANGE: _C.RANGE,
    _L.INET: _C.NETWORK, _L.CIDR: _C.NETWORK, _L.MACADDR: _C.NETWORK, _L.MACADDR8: _C.NETWORK,
    _L.UUID: _C.IDENTIFIER, _L.ROWVERSION: _C.IDENTIFIER,
    _L.HIERARCHY_ID: _C.IDENTIFIER, _L.OBJECT_ID: _C.IDENTIFIER,
    _L.VARIANT: _C.OTHER, _L.TEXT_SEARCH_VECTOR: _C.OTHER, _L.TEXT_SEARCH_QUERY: _C.OTHER,
    _L.KEY_VALUE: _C.OTHER, _L.LABEL_TREE: _C.OTHER, _L.ENUM: _C.OTHER, _L.SET: _C.OTHER,
    _L.CUSTOM: _C.CUSTOM,
    _L.OPAQUE: _C.OPAQUE,
}

RANGE_ELEMENT_TYPES = {
    _L.INT32_RANGE: _L.INT32,
    _L.INT64_RANGE: _L.INT64,
    _L.DECIMAL_RANGE: _L.DECIMAL,
    _L.DATE_RANGE: _L.DATE,
    _L.DATETIME_RANGE: _L.DATETIME,
    _L.DATETIME_TZ_RANGE: _L.DATETIME_TZ,
}
