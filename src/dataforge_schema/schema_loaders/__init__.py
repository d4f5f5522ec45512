"""
Schema Loaders - Catalog introspection into the canonical model

Each loader reads one dialect's catalogs (information_schema, sys.*,
pg_catalog, sqlite_master/PRAGMA) and returns canonical definitions.
"""

from .base import SchemaLoader, group_rows
from .sqlite_loader import SQLiteSchemaLoader
from .sqlserver_loader import SQLServerSchemaLoader, native_type_from_row
from .postgresql_loader import PostgreSQLSchemaLoader
from .mysql_loader import MySQLSchemaLoader, supports_check_constraints

__all__ = [
    "SchemaLoader",
    "group_rows",
    "SQLiteSchemaLoader",
    "SQLServerSchemaLoader",
    "native_type_from_row",
    "PostgreSQLSchemaLoader",
    "MySQLSchemaLoader",
    "supports_check_constraints",
]
