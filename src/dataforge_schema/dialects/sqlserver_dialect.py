"""
SQL Server Dialect - DDL for Microsoft SQL Server
"""

from typing import List, Optional

from ..errors import UnsupportedOperationError
from ..models import ColumnDef, DefaultDef, ForeignKeyAction, ObjectKind, ViewDef
from .base import SchemaDialect, _view_body


def _nstring(text: str) -> str:
    """N'...' literal for sp_rename arguments."""
    return "N'" + text.replace("'", "''") + "'"


class SQLServerDialect(SchemaDialect):
    """SQL Server DDL: [bracket] quoting, IDENTITY, sp_rename, named defaults."""

    family = "sqlserver"

    supports_schemas = True
    supports_named_defaults = True

    def identity_clause(self, column: ColumnDef) -> str:
        return "IDENTITY(1,1)"

    def inline_default(self, default: DefaultDef, table_name: str) -> str:
        return (f"CONSTRAINT {self.quote_identifier(self.default_name(default, table_name))} "
                f"DEFAULT {self.default_value(default.expression)}")

    def foreign_key_action(self, action: ForeignKeyAction) -> str:
        # SQL Server has no RESTRICT; NO ACTION is the equivalent
        if action == ForeignKeyAction.RESTRICT:
            return ForeignKeyAction.NO_ACTION.value
        return action.value

    # ==================== Renames (sp_rename) ====================

    def _sp_rename(self, qualified: str, new_name: str, object_type: Optional[str] = None) -> str:
        sql = f"EXEC sp_rename {_nstring(qualified)}, {_nstring(new_name)}"
        if object_type:
            sql += f", {_nstring(object_type)}"
        return sql

    def rename_table_sql(self, schema_name: Optional[str], table_name: str, new_name: str) -> str:
        return self._sp_rename(self.qualify(table_name, schema_name), new_name)

    def rename_schema_sql(self, schema_name: str, new_name: str) -> str:
        raise UnsupportedOperationError(
            "SQL Server cannot rename a schema; transfer its objects to a new schema instead",
            object_ref=schema_name)

    def rename_column_sql(self, schema_name: Optional[str], table_name: str,
                          column_name: str, new_name: str) -> str:
        qualified = f"{self.qualify(table_name, schema_name)}.{self.quote_identifier(column_name)}"
        return self._sp_rename(qualified, new_name, "COLUMN")

    def rename_constraint_sql(self, schema_name: Optional[str], table_name: str,
                              name: str, new_name: str, kind: Optional[ObjectKind] = None) -> str:
        return self._sp_rename(self.qualify(name, schema_name), new_name, "OBJECT")

    def rename_index_sql(self, schema_name: Optional[str], table_name: str,
                         name: str, new_name: str) -> str:
        qualified = f"{self.qualify(table_name, schema_name)}.{self.quote_identifier(name)}"
        return self._sp_rename(qualified, new_name, "INDEX")

    def rename_view_sql(self, schema_name: Optional[str], view_name: str, new_name: str) -> str:
        return self._sp_rename(self.qualify(view_name, schema_name), new_name)

    # ==================== Defaults and indexes ====================

    def add_default_sql(self, schema_name: Optional[str], table_name: str, default: DefaultDef) -> str:
        return (f"ALTER TABLE {self.qualify(table_name, schema_name)} ADD CONSTRAINT "
                f"{self.quote_identifier(self.default_name(default, table_name))} "
                f"DEFAULT {self.default_value(default.expression)} "
                f"FOR {self.quote_identifier(default.column_name)}")

    def drop_default_sql(self, schema_name: Optional[str], table_name: str, default: DefaultDef) -> str:
        return self.drop_constraint_sql(schema_name, table_name, self.default_name(default, table_name))

    def drop_index_sql(self, schema_name: Optional[str], table_name: str, name: str) -> str:
        return f"DROP INDEX {self.quote_identifier(name)} ON {self.qualify(table_name, schema_name)}"

    # ==================== Views ====================

    def replace_view_sql(self, view: ViewDef) -> List[str]:
        return [f"ALTER VIEW {self.qualify(view.name, view.schema_name)} AS\n{_view_body(view)}"]
