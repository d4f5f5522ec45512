"""
Type Mapping Registry - logical types <-> per-dialect native types

Usage:
    from dataforge_schema.type_mapping import get_type_registry, LogicalType, TypeOptions

    registry = get_type_registry("sqlserver")
    registry.resolve_native_type(LogicalType.TEXT, TypeOptions(length=100))  # "nvarchar(100)"
    registry.classify_native_type("nvarchar(max)")                           # LogicalType.TEXT
"""

from typing import Dict, Type

from ..errors import UnsupportedProviderError
from .categories import DataTypeCategory, LogicalType, LOGICAL_CATEGORIES, RANGE_ELEMENT_TYPES
from .data_type import NativeTypeInfo, ProviderDataType, TypeOptions, DEFAULT_OPTIONS
from .registry import TypeRegistry, normalize_type_name
from .sqlserver_types import SQLServerTypeRegistry
from .mysql_types import MySQLTypeRegistry
from .postgresql_types import PostgreSQLTypeRegistry
from .sqlite_types import SQLiteTypeRegistry

_REGISTRY_CLASSES: Dict[str, Type[TypeRegistry]] = {
    "sqlserver": SQLServerTypeRegistry,
    "mysql": MySQLTypeRegistry,
    "postgresql": PostgreSQLTypeRegistry,
    "sqlite": SQLiteTypeRegistry,
}


def get_type_registry(family) -> TypeRegistry:
    """
    Build a fresh registry for a driver family.

    Args:
        family: DriverFamily or its string value

    Returns:
        New TypeRegistry instance (each owns its caches)
    """
    key = getattr(family, "value", family)
    registry_class = _REGISTRY_CLASSES.get(str(key).lower())
    if registry_class is None:
        raise UnsupportedProviderError(f"No type registry for driver family: {family}")
    return registry_class()


__all__ = [
    "DataTypeCategory",
    "LogicalType",
    "LOGICAL_CATEGORIES",
    "RANGE_ELEMENT_TYPES",
    "NativeTypeInfo",
    "ProviderDataType",
    "TypeOptions",
    "DEFAULT_OPTIONS",
    "TypeRegistry",
    "normalize_type_name",
    "SQLServerTypeRegistry",
    "MySQLTypeRegistry",
    "PostgreSQLTypeRegistry",
    "SQLiteTypeRegistry",
    "get_type_registry",
]
