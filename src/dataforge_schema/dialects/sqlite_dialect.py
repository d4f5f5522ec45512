"""
SQLite Dialect - DDL for SQLite 3

SQLite cannot add, drop or rename constraints with ALTER TABLE. Those
operations are carried out by rebuilding the table (see
SQLiteMethods._recreate_table); this dialect only renders full CREATE TABLE
statements with every constraint inline.
"""

from typing import List, Optional

from ..errors import UnsupportedOperationError
from ..models import ColumnDef, DefaultDef, IndexDef, TableDef, ViewDef
from ..type_mapping import TypeRegistry
from .base import SchemaDialect


class SQLiteDialect(SchemaDialect):
    """SQLite DDL: single implicit schema, inline constraints, AUTOINCREMENT."""

    family = "sqlite"

    supports_ordered_index_columns = False
    supports_alter_constraints = False

    def autoincrement_column(self, table: TableDef) -> Optional[ColumnDef]:
        """
        The identity column, which SQLite spells INTEGER PRIMARY KEY AUTOINCREMENT.

        Raises:
            UnsupportedOperationError: identity on anything but a single-column primary key
        """
        identity = [c for c in table.columns if c.is_identity]
        if not identity:
            return None
        column = identity[0]
        if len(identity) > 1 or table.primary_key is None or \
                [c.lower() for c in table.primary_key.columns] != [column.name.lower()]:
            raise UnsupportedOperationError(
                "SQLite identity columns must be the single-column primary key",
                object_ref=f"{table.name}.{column.name}")
        return column

    def create_table_sql(self, table: TableDef, registry: TypeRegistry,
                         include_checks: bool = True,
                         include_foreign_keys: bool = True) -> str:
        identity = self.autoincrement_column(table)
        lines = []
        for column in table.columns:
            if identity is not None and column is identity:
                pk = table.primary_key
                lines.append(f"    {self.quote_identifier(column.name)} INTEGER "
                             f"CONSTRAINT {self.quote_identifier(pk.name)} PRIMARY KEY AUTOINCREMENT NOT NULL")
                continue
            lines.append("    " + self.column_definition(column, registry, table.name,
                                                         table.get_default(column.name)))
        if table.primary_key is not None and identity is None:
            lines.append("    " + self.primary_key_clause(table.primary_key))
        for unique in table.unique_constraints:
            lines.append("    " + self.unique_clause(unique))
        if include_checks:
            for check in table.check_constraints:
                lines.append("    " + self.check_clause(check))
        # Foreign keys are always inline: SQLite cannot add them later
        for fk in table.foreign_keys:
            lines.append("    " + self.foreign_key_clause(fk))
        return f"CREATE TABLE {self.qualify(table.name)} (\n" + ",\n".join(lines) + "\n)"

    def column_definition(self, column: ColumnDef, registry: TypeRegistry,
                          table_name: str, default: Optional[DefaultDef] = None) -> str:
        if column.is_identity:
            raise UnsupportedOperationError(
                "SQLite identity columns must be the single-column primary key",
                object_ref=f"{table_name}.{column.name}")
        return super().column_definition(column, registry, table_name, default)

    def rename_table_sql(self, schema_name: Optional[str], table_name: str, new_name: str) -> str:
        return f"ALTER TABLE {self.qualify(table_name)} RENAME TO {self.quote_identifier(new_name)}"

    def truncate_table_sql(self, schema_name: Optional[str], table_name: str) -> List[str]:
        return [f"DELETE FROM {self.qualify(table_name)}"]

    def reset_sequence_sql(self) -> str:
        """Statement resetting the AUTOINCREMENT counter (parameter: table name)."""
        return "DELETE FROM sqlite_sequence WHERE name = ?"

    def copy_table_sql(self, source: str, target: str) -> str:
        return f"CREATE TABLE {self.quote_identifier(target)} AS SELECT * FROM {self.quote_identifier(source)}"

    def copy_rows_sql(self, source: str, target: str, columns: List[str]) -> str:
        quoted = self.quote_columns(columns)
        return (f"INSERT INTO {self.quote_identifier(target)} ({quoted}) "
                f"SELECT {quoted} FROM {self.quote_identifier(source)}")

    # ==================== Constraint DDL (not available) ====================

    def _no_alter(self, what: str):
        raise UnsupportedOperationError(f"SQLite cannot {what} with ALTER TABLE; the table must be rebuilt")

    def _add_constraint(self, schema_name, table_name, clause):
        self._no_alter("add constraints")

    def drop_constraint_sql(self, schema_name, table_name, name):
        self._no_alter("drop constraints")

    def add_default_sql(self, schema_name, table_name, default):
        self._no_alter("change column defaults")

    def drop_default_sql(self, schema_name, table_name, default):
        self._no_alter("change column defaults")

    def drop_primary_key_sql(self, schema_name, table_name, name):
        self._no_alter("drop a primary key")

    # ==================== Indexes and views ====================

    def index_columns(self, index: IndexDef) -> str:
        if index.has_descending_columns:
            raise UnsupportedOperationError("SQLite index columns are not ordered", object_ref=index.name)
        return self.quote_columns(index.column_names)

    def replace_view_sql(self, view: ViewDef) -> List[str]:
        return [self.drop_view_sql(None, view.name), self.create_view_sql(view)]
