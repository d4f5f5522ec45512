"""
MySQL Dialect - DDL for MySQL 8 and MariaDB 10.x

MySQL has no named schemas inside a database: the connection's current
database is the only namespace, so schema arguments are ignored.
"""

from typing import Optional

from ..config import get_settings
from ..models import ColumnDef, DefaultDef, ObjectKind
from .base import SchemaDialect


class MySQLDialect(SchemaDialect):
    """MySQL / MariaDB DDL: `backtick` quoting, AUTO_INCREMENT, RENAME TABLE."""

    family = "mysql"

    def identity_clause(self, column: ColumnDef) -> str:
        return "AUTO_INCREMENT"

    def table_options(self) -> str:
        return get_settings().mysql_table_options

    def rename_table_sql(self, schema_name: Optional[str], table_name: str, new_name: str) -> str:
        return f"RENAME TABLE {self.qualify(table_name)} TO {self.qualify(new_name)}"

    # ==================== Constraints ====================

    def drop_primary_key_sql(self, schema_name: Optional[str], table_name: str, name: str) -> str:
        return f"ALTER TABLE {self.qualify(table_name)} DROP PRIMARY KEY"

    def drop_unique_sql(self, schema_name: Optional[str], table_name: str, name: str) -> str:
        return f"ALTER TABLE {self.qualify(table_name)} DROP INDEX {self.quote_identifier(name)}"

    def drop_check_sql(self, schema_name: Optional[str], table_name: str, name: str,
                       mariadb: bool = False) -> str:
        if mariadb:
            return self.drop_constraint_sql(schema_name, table_name, name)
        return f"ALTER TABLE {self.qualify(table_name)} DROP CHECK {self.quote_identifier(name)}"

    def drop_foreign_key_sql(self, schema_name: Optional[str], table_name: str, name: str) -> str:
        return f"ALTER TABLE {self.qualify(table_name)} DROP FOREIGN KEY {self.quote_identifier(name)}"

    def rename_constraint_sql(self, schema_name: Optional[str], table_name: str,
                              name: str, new_name: str, kind: Optional[ObjectKind] = None) -> Optional[str]:
        # A unique constraint is its index
        if kind == ObjectKind.UNIQUE:
            return self.rename_index_sql(schema_name, table_name, name, new_name)
        return None

    def add_default_sql(self, schema_name: Optional[str], table_name: str, default: DefaultDef) -> str:
        return (f"ALTER TABLE {self.qualify(table_name)} ALTER COLUMN "
                f"{self.quote_identifier(default.column_name)} SET DEFAULT {self.default_value(default.expression)}")

    # ==================== Indexes and views ====================

    def drop_index_sql(self, schema_name: Optional[str], table_name: str, name: str) -> str:
        return f"DROP INDEX {self.quote_identifier(name)} ON {self.qualify(table_name)}"

    def rename_index_sql(self, schema_name: Optional[str], table_name: str,
                         name: str, new_name: str) -> str:
        return (f"ALTER TABLE {self.qualify(table_name)} RENAME INDEX "
                f"{self.quote_identifier(name)} TO {self.quote_identifier(new_name)}")

    def rename_view_sql(self, schema_name: Optional[str], view_name: str, new_name: str) -> str:
        return f"RENAME TABLE {self.qualify(view_name)} TO {self.qualify(new_name)}"
