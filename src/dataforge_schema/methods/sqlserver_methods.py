"""
SQL Server Methods - Dialect Methods Provider for SQL Server 2016+

Renames go through sp_rename; defaults are named constraints and can be
renamed like any other constraint. Schemas cannot be renamed.
"""

from ..dialects.sqlserver_dialect import SQLServerDialect
from ..schema_loaders.sqlserver_loader import SQLServerSchemaLoader
from .base import DialectMethods


class SQLServerMethods(DialectMethods):
    """Dialect Methods Provider for SQL Server."""

    dialect_class = SQLServerDialect
    loader_class = SQLServerSchemaLoader
