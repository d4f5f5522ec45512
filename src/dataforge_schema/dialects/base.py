"""
Base Schema Dialect - Abstract base class for dialect-specific DDL generation

Dialects turn canonical definitions into SQL text. They perform no I/O, so
every statement they build can be inspected (and tested) without a server.

Dialects handle DDL differences such as:
- Identifier quoting ([brackets], `backticks`, "quotes")
- Identity columns (IDENTITY, AUTO_INCREMENT, GENERATED ... AS IDENTITY)
- Constraint, index and view grammar (ALTER TABLE ... vs sp_rename vs RENAME TABLE)
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..constants import DEFAULT_SCHEMAS, quote_identifier
from ..errors import UnsupportedOperationError
from ..models import (
    CheckDef,
    ColumnDef,
    DefaultDef,
    ForeignKeyAction,
    ForeignKeyDef,
    IndexDef,
    ObjectKind,
    PrimaryKeyDef,
    TableDef,
    UniqueDef,
    ViewDef,
)
from ..type_mapping import TypeRegistry
from ..utils.identifiers import default_constraint_name

import logging
logger = logging.getLogger(__name__)


class SchemaDialect(ABC):
    """
    Abstract base class for DDL dialects.

    Each dialect knows how to:
    1. Quote identifiers and qualify names with a schema
    2. Render column definitions through a type registry
    3. Build CREATE / ALTER / DROP / RENAME statements for every object kind

    Usage:
        dialect = PostgreSQLDialect()
        sql = dialect.create_table_sql(table, registry)
    """

    family: str = ""

    # ==================== Capabilities ====================

    supports_schemas: bool = False
    supports_check_constraints: bool = True
    supports_ordered_index_columns: bool = True
    supports_native_structured_types: bool = False
    supports_named_defaults: bool = False
    supports_alter_constraints: bool = True

    # ==================== Identifier Quoting ====================

    @property
    def default_schema(self) -> str:
        """Default schema name for this dialect ("" = no named schemas)."""
        return DEFAULT_SCHEMAS.get(self.family, "")

    def quote_identifier(self, identifier: str) -> str:
        """Quote a single identifier (table, column, schema name)."""
        return quote_identifier(identifier, self.family)

    def effective_schema(self, schema_name: Optional[str]) -> Optional[str]:
        """Schema the statement targets (None for dialects without schemas)."""
        if not self.supports_schemas:
            return None
        return schema_name or self.default_schema or None

    def qualify(self, name: str, schema_name: Optional[str] = None) -> str:
        """Quoted, schema-qualified object name."""
        schema = self.effective_schema(schema_name)
        if schema:
            return f"{self.quote_identifier(schema)}.{self.quote_identifier(name)}"
        return self.quote_identifier(name)

    def quote_columns(self, columns: List[str]) -> str:
        return ", ".join(self.quote_identifier(c) for c in columns)

    # ==================== Columns ====================

    def identity_clause(self, column: ColumnDef) -> str:
        """Clause appended to identity columns."""
        return ""

    def column_definition(self, column: ColumnDef, registry: TypeRegistry,
                          table_name: str, default: Optional[DefaultDef] = None) -> str:
        """
        Render one column definition.

        Args:
            column: Column to render
            registry: Type registry of this dialect
            table_name: Owning table (used for synthesized default names)
            default: Default constraint rendered inline, if any

        Returns:
            e.g. [Total] decimal(10,2) NULL
        """
        parts = [self.quote_identifier(column.name), column.native_type_for(registry)]
        if column.is_identity:
            identity = self.identity_clause(column)
            if identity:
                parts.append(identity)
        if default is not None:
            parts.append(self.inline_default(default, table_name))
        parts.append("NULL" if column.is_nullable and not column.is_identity else "NOT NULL")
        return " ".join(parts)

    def inline_default(self, default: DefaultDef, table_name: str) -> str:
        return f"DEFAULT {self.default_value(default.expression)}"

    @staticmethod
    def default_value(expression: str) -> str:
        """Wrap a default expression in parentheses unless it already is."""
        text = str(expression).strip()
        if text.startswith("(") and text.endswith(")"):
            return text
        return f"({text})"

    def default_name(self, default: DefaultDef, table_name: str) -> str:
        return default.name or default_constraint_name(table_name, default.column_name)

    # ==================== Table-level clauses ====================

    def primary_key_clause(self, pk: PrimaryKeyDef) -> str:
        return f"CONSTRAINT {self.quote_identifier(pk.name)} PRIMARY KEY ({self.quote_columns(pk.columns)})"

    def unique_clause(self, unique: UniqueDef) -> str:
        return f"CONSTRAINT {self.quote_identifier(unique.name)} UNIQUE ({self.quote_columns(unique.columns)})"

    def check_clause(self, check: CheckDef) -> str:
        return f"CONSTRAINT {self.quote_identifier(check.name)} CHECK ({check.expression})"

    def foreign_key_clause(self, fk: ForeignKeyDef, table_schema: Optional[str] = None) -> str:
        referenced = self.qualify(fk.referenced_table, fk.referenced_schema or table_schema)
        clause = (
            f"CONSTRAINT {self.quote_identifier(fk.name)} FOREIGN KEY ({self.quote_columns(fk.columns)}) "
            f"REFERENCES {referenced} ({self.quote_columns(fk.referenced_columns)})"
        )
        if fk.on_delete != ForeignKeyAction.NO_ACTION:
            clause += f" ON DELETE {self.foreign_key_action(fk.on_delete)}"
        if fk.on_update != ForeignKeyAction.NO_ACTION:
            clause += f" ON UPDATE {self.foreign_key_action(fk.on_update)}"
        return clause

    def foreign_key_action(self, action: ForeignKeyAction) -> str:
        return action.value

    # ==================== Tables ====================

    def table_options(self) -> str:
        """Trailing CREATE TABLE options (MySQL engine/charset)."""
        return ""

    def create_table_sql(self, table: TableDef, registry: TypeRegistry,
                         include_checks: bool = True,
                         include_foreign_keys: bool = False) -> str:
        """
        CREATE TABLE statement: columns (with inline defaults), then primary
        key, unique and check constraints. Foreign keys are added separately
        unless include_foreign_keys is set; indexes are always separate.
        """
        lines = [
            "    " + self.column_definition(c, registry, table.name, table.get_default(c.name))
            for c in table.columns
        ]
        if table.primary_key is not None:
            lines.append("    " + self.primary_key_clause(table.primary_key))
        for unique in table.unique_constraints:
            lines.append("    " + self.unique_clause(unique))
        if include_checks:
            for check in table.check_constraints:
                lines.append("    " + self.check_clause(check))
        if include_foreign_keys:
            for fk in table.foreign_keys:
                lines.append("    " + self.foreign_key_clause(fk, table.schema_name))
        sql = f"CREATE TABLE {self.qualify(table.name, table.schema_name)} (\n" + ",\n".join(lines) + "\n)"
        options = self.table_options()
        return f"{sql} {options}" if options else sql

    def drop_table_sql(self, schema_name: Optional[str], table_name: str) -> str:
        return f"DROP TABLE {self.qualify(table_name, schema_name)}"

    @abstractmethod
    def rename_table_sql(self, schema_name: Optional[str], table_name: str, new_name: str) -> str:
        pass

    def truncate_table_sql(self, schema_name: Optional[str], table_name: str) -> List[str]:
        return [f"TRUNCATE TABLE {self.qualify(table_name, schema_name)}"]

    # ==================== Schemas ====================

    def _require_schemas(self, operation: str, name: Optional[str] = None) -> None:
        if not self.supports_schemas:
            raise UnsupportedOperationError(
                f"{self.family} has no named schemas ({operation})", object_ref=name)

    def create_schema_sql(self, schema_name: str) -> str:
        self._require_schemas("create schema", schema_name)
        return f"CREATE SCHEMA {self.quote_identifier(schema_name)}"

    def drop_schema_sql(self, schema_name: str) -> str:
        self._require_schemas("drop schema", schema_name)
        return f"DROP SCHEMA {self.quote_identifier(schema_name)}"

    def rename_schema_sql(self, schema_name: str, new_name: str) -> str:
        self._require_schemas("rename schema", schema_name)
        return f"ALTER SCHEMA {self.quote_identifier(schema_name)} RENAME TO {self.quote_identifier(new_name)}"

    # ==================== Column DDL ====================

    def add_column_sql(self, schema_name: Optional[str], table_name: str, column: ColumnDef,
                       registry: TypeRegistry, default: Optional[DefaultDef] = None) -> str:
        return (f"ALTER TABLE {self.qualify(table_name, schema_name)} ADD "
                f"{self.column_definition(column, registry, table_name, default)}")

    def drop_column_sql(self, schema_name: Optional[str], table_name: str, column_name: str) -> str:
        return (f"ALTER TABLE {self.qualify(table_name, schema_name)} "
                f"DROP COLUMN {self.quote_identifier(column_name)}")

    def rename_column_sql(self, schema_name: Optional[str], table_name: str,
                          column_name: str, new_name: str) -> str:
        return (f"ALTER TABLE {self.qualify(table_name, schema_name)} RENAME COLUMN "
                f"{self.quote_identifier(column_name)} TO {self.quote_identifier(new_name)}")

    # ==================== Constraint DDL ====================

    def _add_constraint(self, schema_name: Optional[str], table_name: str, clause: str) -> str:
        return f"ALTER TABLE {self.qualify(table_name, schema_name)} ADD {clause}"

    def drop_constraint_sql(self, schema_name: Optional[str], table_name: str, name: str) -> str:
        return (f"ALTER TABLE {self.qualify(table_name, schema_name)} "
                f"DROP CONSTRAINT {self.quote_identifier(name)}")

    def add_primary_key_sql(self, schema_name: Optional[str], table_name: str, pk: PrimaryKeyDef) -> str:
        return self._add_constraint(schema_name, table_name, self.primary_key_clause(pk))

    def drop_primary_key_sql(self, schema_name: Optional[str], table_name: str, name: str) -> str:
        return self.drop_constraint_sql(schema_name, table_name, name)

    def add_unique_sql(self, schema_name: Optional[str], table_name: str, unique: UniqueDef) -> str:
        return self._add_constraint(schema_name, table_name, self.unique_clause(unique))

    def drop_unique_sql(self, schema_name: Optional[str], table_name: str, name: str) -> str:
        return self.drop_constraint_sql(schema_name, table_name, name)

    def add_check_sql(self, schema_name: Optional[str], table_name: str, check: CheckDef) -> str:
        return self._add_constraint(schema_name, table_name, self.check_clause(check))

    def drop_check_sql(self, schema_name: Optional[str], table_name: str, name: str) -> str:
        return self.drop_constraint_sql(schema_name, table_name, name)

    def add_foreign_key_sql(self, schema_name: Optional[str], table_name: str, fk: ForeignKeyDef) -> str:
        return self._add_constraint(schema_name, table_name, self.foreign_key_clause(fk, schema_name))

    def drop_foreign_key_sql(self, schema_name: Optional[str], table_name: str, name: str) -> str:
        return self.drop_constraint_sql(schema_name, table_name, name)

    def add_default_sql(self, schema_name: Optional[str], table_name: str, default: DefaultDef) -> str:
        return (f"ALTER TABLE {self.qualify(table_name, schema_name)} ALTER COLUMN "
                f"{self.quote_identifier(default.column_name)} SET DEFAULT {self.default_value(default.expression)}")

    def drop_default_sql(self, schema_name: Optional[str], table_name: str, default: DefaultDef) -> str:
        return (f"ALTER TABLE {self.qualify(table_name, schema_name)} ALTER COLUMN "
                f"{self.quote_identifier(default.column_name)} DROP DEFAULT")

    def rename_constraint_sql(self, schema_name: Optional[str], table_name: str,
                              name: str, new_name: str, kind: Optional[ObjectKind] = None) -> Optional[str]:
        """Native constraint rename, or None when the dialect has to drop and recreate."""
        return None

    # ==================== Indexes ====================

    def index_columns(self, index: IndexDef) -> str:
        parts = []
        for column in index.columns:
            text = self.quote_identifier(column.name)
            if column.is_descending:
                text += " DESC"
            parts.append(text)
        return ", ".join(parts)

    def create_index_sql(self, schema_name: Optional[str], table_name: str, index: IndexDef) -> str:
        unique = "UNIQUE " if index.is_unique else ""
        return (f"CREATE {unique}INDEX {self.quote_identifier(index.name)} "
                f"ON {self.qualify(table_name, schema_name)} ({self.index_columns(index)})")

    def drop_index_sql(self, schema_name: Optional[str], table_name: str, name: str) -> str:
        return f"DROP INDEX {self.qualify(name, schema_name)}"

    def rename_index_sql(self, schema_name: Optional[str], table_name: str,
                         name: str, new_name: str) -> Optional[str]:
        """Native index rename, or None when the dialect has to drop and recreate."""
        return None

    # ==================== Views ====================

    def create_view_sql(self, view: ViewDef) -> str:
        return f"CREATE VIEW {self.qualify(view.name, view.schema_name)} AS\n{_view_body(view)}"

    def replace_view_sql(self, view: ViewDef) -> List[str]:
        return [f"CREATE OR REPLACE VIEW {self.qualify(view.name, view.schema_name)} AS\n"
                f"{_view_body(view)}"]

    def drop_view_sql(self, schema_name: Optional[str], view_name: str) -> str:
        return f"DROP VIEW {self.qualify(view_name, schema_name)}"

    def rename_view_sql(self, schema_name: Optional[str], view_name: str, new_name: str) -> Optional[str]:
        """Native view rename, or None when the view is recreated under the new name."""
        return None


def _view_body(view: ViewDef) -> str:
    return view.definition.strip().rstrip(";").rstrip()
