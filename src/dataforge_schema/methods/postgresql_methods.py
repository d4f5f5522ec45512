"""
PostgreSQL Methods - Dialect Methods Provider for PostgreSQL 12+
"""

from ..dialects.postgresql_dialect import PostgreSQLDialect
from ..schema_loaders.postgresql_loader import PostgreSQLSchemaLoader
from .base import DialectMethods


class PostgreSQLMethods(DialectMethods):
    """Dialect Methods Provider for PostgreSQL (native renames for every object kind)."""

    dialect_class = PostgreSQLDialect
    loader_class = PostgreSQLSchemaLoader
