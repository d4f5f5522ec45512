"""
Schema dialects - per-database DDL text generation (no I/O)
"""

from .base import SchemaDialect
from .sqlserver_dialect import SQLServerDialect
from .mysql_dialect import MySQLDialect
from .postgresql_dialect import PostgreSQLDialect
from .sqlite_dialect import SQLiteDialect

__all__ = [
    "SchemaDialect",
    "SQLServerDialect",
    "MySQLDialect",
    "PostgreSQLDialect",
    "SQLiteDialect",
]
