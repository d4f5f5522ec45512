"""
MySQL Methods - Dialect Methods Provider for MySQL 8 and MariaDB 10.x

Differences from the shared behavior:
- CHECK constraints are created only on servers that enforce them
  (MySQL 8.0.16+, MariaDB 10.2.2+); older servers get a warning when a
  table is created and an error for an explicit check creation
- MariaDB drops checks with DROP CONSTRAINT, MySQL with DROP CHECK
- the primary key is always named PRIMARY and cannot be renamed
"""

from typing import Optional

from ..connection import CancellationToken, DbConnection, Transaction
from ..dialects.mysql_dialect import MySQLDialect
from ..errors import UnsupportedOperationError
from ..models import CheckDef, ObjectKind, TableDef
from ..schema_loaders.mysql_loader import MySQLSchemaLoader, is_mariadb, supports_check_constraints
from .base import Constraint, DialectMethods

import logging
logger = logging.getLogger(__name__)


class MySQLMethods(DialectMethods):
    """Dialect Methods Provider for MySQL and MariaDB."""

    dialect_class = MySQLDialect
    loader_class = MySQLSchemaLoader

    def _version_text(self, db: DbConnection, tx: Optional[Transaction],
                      cancellation: Optional[CancellationToken]) -> str:
        return self._loader(db, tx, cancellation).version_text()

    def is_mariadb(self, db: DbConnection, tx: Optional[Transaction] = None,
                   cancellation: Optional[CancellationToken] = None) -> bool:
        return is_mariadb(self._version_text(db, tx, cancellation))

    def check_constraints_enabled(self, db: DbConnection, tx: Optional[Transaction] = None,
                                  cancellation: Optional[CancellationToken] = None) -> bool:
        return supports_check_constraints(self._version_text(db, tx, cancellation))

    def _drop_constraint_sql(self, db: DbConnection, table: TableDef, constraint: Constraint,
                             tx: Optional[Transaction], cancellation: Optional[CancellationToken]) -> str:
        if isinstance(constraint, CheckDef):
            return self.dialect.drop_check_sql(table.schema_name, table.name, constraint.name,
                                               mariadb=self.is_mariadb(db, tx, cancellation))
        return super()._drop_constraint_sql(db, table, constraint, tx, cancellation)

    def _ensure_renamable(self, kind: ObjectKind) -> None:
        if kind == ObjectKind.PRIMARY_KEY:
            raise UnsupportedOperationError("MySQL primary keys are always named PRIMARY")
        super()._ensure_renamable(kind)
