"""
SQLite Methods - Dialect Methods Provider for SQLite 3

SQLite's ALTER TABLE can only add, rename and drop columns, so every
constraint change rebuilds the table:

1. Copy the rows to a scratch table (_dfs_tmp_<name>)
2. Drop the table and create it again from the changed definition
3. Copy the shared columns back, drop the scratch table
4. Recreate the indexes

Foreign key enforcement is switched off around the rebuild when the
provider owns the transaction. Inside a caller transaction the pragma
cannot change, so foreign key checks are deferred to COMMIT instead.
"""

from typing import Callable, List, Optional, Tuple

from ..connection import CancellationToken, DbConnection, Transaction
from ..constants import SQLITE_TEMP_TABLE_PREFIX
from ..dialects.sqlite_dialect import SQLiteDialect
from ..models import ObjectRef, TableDef
from ..schema_loaders.sqlite_loader import SQLiteSchemaLoader
from .base import DialectMethods

import logging
logger = logging.getLogger(__name__)


class SQLiteMethods(DialectMethods):
    """Dialect Methods Provider for SQLite."""

    dialect_class = SQLiteDialect
    loader_class = SQLiteSchemaLoader

    def _create_table_statements(self, db: DbConnection, table: TableDef, tx: Optional[Transaction],
                                 cancellation: Optional[CancellationToken]) -> Tuple[str, List[str], List[str]]:
        # Foreign keys can only be declared inline
        body = self.dialect.create_table_sql(table, self.registry)
        indexes = [self.dialect.create_index_sql(None, table.name, ix) for ix in table.indexes]
        return body, [], indexes

    def truncate_table_if_exists(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                                 tx: Optional[Transaction] = None,
                                 cancellation: Optional[CancellationToken] = None) -> bool:
        """Delete every row and reset the AUTOINCREMENT counter."""
        current = self._loader(db, tx, cancellation).find_table(None, table_name)
        if current is None:
            return False
        ref = ObjectRef.table(current)
        self._execute_all(db, self.dialect.truncate_table_sql(None, current), tx, cancellation, ref)
        has_sequence = db.execute_scalar(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'sqlite_sequence'",
            tx=tx, cancellation=cancellation)
        if has_sequence:
            self._execute(db, self.dialect.reset_sequence_sql(), tx, cancellation, ref, params=[current])
        return True

    # ==================== Table rebuild ====================

    def _apply_change(self, db: DbConnection, current: TableDef, changed: TableDef,
                      build: Callable[[], List[str]], tx: Optional[Transaction],
                      cancellation: Optional[CancellationToken], rebuild_required: bool = True) -> None:
        if not rebuild_required:
            super()._apply_change(db, current, changed, build, tx, cancellation, rebuild_required)
            return
        self._recreate_table(db, current, changed, tx, cancellation)

    def _rebuild_statements(self, current: TableDef, changed: TableDef) -> List[str]:
        temp = SQLITE_TEMP_TABLE_PREFIX + current.name
        shared = [c.name for c in current.columns if changed.get_column(c.name) is not None]
        statements = [
            self.dialect.copy_table_sql(current.name, temp),
            self.dialect.drop_table_sql(None, current.name),
            self.dialect.create_table_sql(changed, self.registry),
            self.dialect.copy_rows_sql(temp, changed.name, shared),
            self.dialect.drop_table_sql(None, temp),
        ]
        statements += [self.dialect.create_index_sql(None, changed.name, ix) for ix in changed.indexes]
        return statements

    def _recreate_table(self, db: DbConnection, current: TableDef, changed: TableDef,
                        tx: Optional[Transaction], cancellation: Optional[CancellationToken]) -> None:
        """
        Rebuild a table into its changed shape, keeping its rows.

        Args:
            db: SQLite connection
            current: Table as it exists now
            changed: Table as it should be afterwards
            tx: Caller transaction (the rebuild runs in its own when None)
            cancellation: Token checked before each statement
        """
        statements = self._rebuild_statements(current, changed)
        ref = ObjectRef.table(current.name)
        foreign_keys_on = bool(db.execute_scalar("PRAGMA foreign_keys", tx=tx, cancellation=cancellation))
        logger.debug(f"Rebuilding table {current.name} ({len(statements)} statements)")

        if tx is not None or db.in_transaction:
            if foreign_keys_on:
                logger.warning(f"Rebuilding {current.name} inside a caller transaction: "
                               f"foreign key checks are deferred to COMMIT")
                self._execute(db, "PRAGMA defer_foreign_keys = ON", tx, cancellation, ref)
            self._execute_all(db, statements, tx, cancellation, ref)
            return

        if foreign_keys_on:
            db.execute("PRAGMA foreign_keys = OFF")
        try:
            with db.transaction() as own:
                self._execute_all(db, statements, own, cancellation, ref)
                if foreign_keys_on:
                    self._warn_foreign_key_violations(db, changed.name, own, cancellation)
        finally:
            if foreign_keys_on:
                db.execute("PRAGMA foreign_keys = ON")

    def _warn_foreign_key_violations(self, db: DbConnection, table_name: str, tx: Transaction,
                                     cancellation: Optional[CancellationToken]) -> None:
        rows = db.query(f"PRAGMA foreign_key_check({self.dialect.quote_identifier(table_name)})",
                        tx=tx, cancellation=cancellation)
        if rows:
            logger.warning(f"Table {table_name} has {len(rows)} row(s) violating foreign keys after rebuild")
