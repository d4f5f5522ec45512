"""
Dialect Methods Providers - the per-database operation surface

Usage:
    from dataforge_schema.methods import get_methods

    methods = get_methods(db)
    methods.create_table_if_not_exists(db, table)
"""

from .base import DialectMethods, constraint_kind
from .sqlite_methods import SQLiteMethods
from .sqlserver_methods import SQLServerMethods
from .postgresql_methods import PostgreSQLMethods
from .mysql_methods import MySQLMethods
from .factory import MethodsFactory, get_methods
from .async_methods import AsyncDialectMethods

__all__ = [
    "DialectMethods",
    "constraint_kind",
    "SQLiteMethods",
    "SQLServerMethods",
    "PostgreSQLMethods",
    "MySQLMethods",
    "MethodsFactory",
    "get_methods",
    "AsyncDialectMethods",
]
