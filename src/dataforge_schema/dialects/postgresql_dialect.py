"""
PostgreSQL Dialect - DDL for PostgreSQL 12+
"""

from typing import Optional

from ..models import ColumnDef, ObjectKind
from .base import SchemaDialect


class PostgreSQLDialect(SchemaDialect):
    """PostgreSQL DDL: "quote" identifiers, identity columns, native renames."""

    family = "postgresql"

    supports_schemas = True
    supports_native_structured_types = True

    def identity_clause(self, column: ColumnDef) -> str:
        return "GENERATED BY DEFAULT AS IDENTITY"

    def rename_table_sql(self, schema_name: Optional[str], table_name: str, new_name: str) -> str:
        return f"ALTER TABLE {self.qualify(table_name, schema_name)} RENAME TO {self.quote_identifier(new_name)}"

    def rename_constraint_sql(self, schema_name: Optional[str], table_name: str,
                              name: str, new_name: str, kind: Optional[ObjectKind] = None) -> str:
        return (f"ALTER TABLE {self.qualify(table_name, schema_name)} RENAME CONSTRAINT "
                f"{self.quote_identifier(name)} TO {self.quote_identifier(new_name)}")

    def rename_index_sql(self, schema_name: Optional[str], table_name: str,
                         name: str, new_name: str) -> str:
        return f"ALTER INDEX {self.qualify(name, schema_name)} RENAME TO {self.quote_identifier(new_name)}"

    def rename_view_sql(self, schema_name: Optional[str], view_name: str, new_name: str) -> str:
        return f"ALTER VIEW {self.qualify(view_name, schema_name)} RENAME TO {self.quote_identifier(new_name)}"
