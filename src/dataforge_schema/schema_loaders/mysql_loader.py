"""
MySQL Schema Loader - Introspect MySQL 8 / MariaDB 10.x databases

Everything is read from information_schema for the connection's current
database (DATABASE()); MySQL has no named schemas inside a database, so
schema arguments are ignored.

Notes:
- Defaults are column properties without names; the loader synthesizes
  df_<table>_<column> names for them.
- MySQL reports UNIQUE indexes as UNIQUE constraints, so unique indexes
  come back as UniqueDef.
- CHECK constraints are only read on servers that enforce them
  (MySQL 8.0.16+, MariaDB 10.2.2+).
"""

import re
from typing import Dict, List, Optional, Set

from ..constants import MARIADB_CHECK_MIN_VERSION, MYSQL_CHECK_MIN_VERSION
from ..models import (
    CheckDef,
    ColumnDef,
    DefaultDef,
    ForeignKeyDef,
    IndexDef,
    OrderedColumn,
    PrimaryKeyDef,
    SortOrder,
    UniqueDef,
)
from ..utils.identifiers import extract_version
from .base import SchemaLoader, group_rows

import logging
logger = logging.getLogger(__name__)

_NUMBER = re.compile(r"^[+-]?\d+(\.\d+)?([eE][+-]?\d+)?$")
_BACKTICKED = re.compile(r"`((?:[^`]|``)+)`")


def is_mariadb(version_text: str) -> bool:
    return "mariadb" in (version_text or "").lower()


def supports_check_constraints(version_text: str) -> bool:
    """Whether the server enforces CHECK constraints (MySQL 8.0.16+, MariaDB 10.2.2+)."""
    version = extract_version(version_text)
    if is_mariadb(version_text):
        return version >= MARIADB_CHECK_MIN_VERSION
    return version >= MYSQL_CHECK_MIN_VERSION


def default_expression(column_default: Optional[str], extra: Optional[str]) -> Optional[str]:
    """
    Turn information_schema.COLUMNS.COLUMN_DEFAULT into a SQL expression.

    MySQL reports literal string defaults unquoted ('abc' shows as abc);
    expression defaults carry DEFAULT_GENERATED in EXTRA. MariaDB already
    quotes literals and reports a missing default as the text NULL.
    """
    if column_default is None:
        return None
    text = str(column_default)
    if "DEFAULT_GENERATED" in (extra or "").upper():
        return text
    stripped = text.strip()
    if stripped.upper() == "NULL":
        return None
    if _NUMBER.match(stripped) or stripped.upper().startswith("CURRENT_TIMESTAMP"):
        return stripped
    if len(stripped) >= 2 and stripped[0] == stripped[-1] == "'":
        return stripped
    if stripped.startswith("(") and stripped.endswith(")"):
        return stripped
    return "'" + text.replace("'", "''") + "'"


class MySQLSchemaLoader(SchemaLoader):
    """Schema loader for MySQL 8 and MariaDB 10.x."""

    def version_text(self) -> str:
        return str(self._scalar("SELECT VERSION()"))

    # ==================== Tables ====================

    def table_names(self, schema_name: Optional[str]) -> List[str]:
        rows = self._query("""
            SELECT TABLE_NAME AS table_name
            FROM information_schema.TABLES
            WHERE TABLE_SCHEMA = DATABASE() AND TABLE_TYPE = 'BASE TABLE'
            ORDER BY TABLE_NAME
        """)
        return [r["table_name"] for r in rows]

    def _column_rows(self, table_name: str) -> List[Dict]:
        return self._query("""
            SELECT
                COLUMN_NAME AS column_name,
                COLUMN_TYPE AS column_type,
                IS_NULLABLE AS is_nullable,
                COLUMN_DEFAULT AS column_default,
                EXTRA AS extra
            FROM information_schema.COLUMNS
            WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = %s
            ORDER BY ORDINAL_POSITION
        """, [table_name])

    def columns(self, schema_name: Optional[str], table_name: str) -> List[ColumnDef]:
        return [
            self._make_column(
                r["column_name"],
                r["column_type"],
                is_nullable=str(r["is_nullable"]).upper() == "YES",
                is_identity="auto_increment" in (r["extra"] or "").lower(),
            )
            for r in self._column_rows(table_name)
        ]

    def _key_constraints(self, table_name: str, constraint_type: str) -> Dict[str, List[Dict]]:
        rows = self._query("""
            SELECT tc.CONSTRAINT_NAME AS constraint_name, kcu.COLUMN_NAME AS column_name
            FROM information_schema.TABLE_CONSTRAINTS tc
            JOIN information_schema.KEY_COLUMN_USAGE kcu
              ON kcu.CONSTRAINT_SCHEMA = tc.CONSTRAINT_SCHEMA
             AND kcu.CONSTRAINT_NAME = tc.CONSTRAINT_NAME
             AND kcu.TABLE_NAME = tc.TABLE_NAME
            WHERE tc.TABLE_SCHEMA = DATABASE() AND tc.TABLE_NAME = %s AND tc.CONSTRAINT_TYPE = %s
            ORDER BY tc.CONSTRAINT_NAME, kcu.ORDINAL_POSITION
        """, [table_name, constraint_type])
        return group_rows(rows, "constraint_name")

    def primary_key(self, schema_name: Optional[str], table_name: str) -> Optional[PrimaryKeyDef]:
        for name, rows in self._key_constraints(table_name, "PRIMARY KEY").items():
            return PrimaryKeyDef([r["column_name"] for r in rows], name)
        return None

    def unique_constraints(self, schema_name: Optional[str], table_name: str) -> List[UniqueDef]:
        return [
            UniqueDef([r["column_name"] for r in rows], name)
            for name, rows in self._key_constraints(table_name, "UNIQUE").items()
        ]

    def check_constraints(self, schema_name: Optional[str], table_name: str) -> List[CheckDef]:
        if not supports_check_constraints(self.version_text()):
            return []
        rows = self._query("""
            SELECT cc.CONSTRAINT_NAME AS constraint_name, cc.CHECK_CLAUSE AS check_clause
            FROM information_schema.CHECK_CONSTRAINTS cc
            JOIN information_schema.TABLE_CONSTRAINTS tc
              ON tc.CONSTRAINT_SCHEMA = cc.CONSTRAINT_SCHEMA
             AND tc.CONSTRAINT_NAME = cc.CONSTRAINT_NAME
            WHERE tc.TABLE_SCHEMA = DATABASE() AND tc.TABLE_NAME = %s AND tc.CONSTRAINT_TYPE = 'CHECK'
            ORDER BY cc.CONSTRAINT_NAME
        """, [table_name])
        if not rows:
            return []

        columns = {c["column_name"].lower(): c["column_name"] for c in self._column_rows(table_name)}
        result = []
        for row in rows:
            expression = self._strip_parens(row["check_clause"])
            referenced = {m.replace("``", "`").lower() for m in _BACKTICKED.findall(expression)}
            referenced &= set(columns)
            column_name = columns[referenced.pop()] if len(referenced) == 1 else None
            result.append(CheckDef(expression, row["constraint_name"], column_name))
        return result

    def default_constraints(self, schema_name: Optional[str], table_name: str) -> List[DefaultDef]:
        result = []
        for row in self._column_rows(table_name):
            expression = default_expression(row["column_default"], row["extra"])
            if expression is None:
                continue
            result.append(self._synthesized_default(
                table_name, row["column_name"], self._strip_parens(expression)))
        return result

    def foreign_keys(self, schema_name: Optional[str], table_name: str) -> List[ForeignKeyDef]:
        rows = self._query("""
            SELECT
                rc.CONSTRAINT_NAME AS constraint_name,
                kcu.COLUMN_NAME AS column_name,
                kcu.REFERENCED_TABLE_NAME AS referenced_table,
                kcu.REFERENCED_COLUMN_NAME AS referenced_column,
                rc.DELETE_RULE AS on_delete,
                rc.UPDATE_RULE AS on_update
            FROM information_schema.REFERENTIAL_CONSTRAINTS rc
            JOIN information_schema.KEY_COLUMN_USAGE kcu
              ON kcu.CONSTRAINT_SCHEMA = rc.CONSTRAINT_SCHEMA
             AND kcu.CONSTRAINT_NAME = rc.CONSTRAINT_NAME
             AND kcu.TABLE_NAME = rc.TABLE_NAME
            WHERE rc.CONSTRAINT_SCHEMA = DATABASE() AND rc.TABLE_NAME = %s
            ORDER BY rc.CONSTRAINT_NAME, kcu.ORDINAL_POSITION
        """, [table_name])
        result = []
        for name, group in group_rows(rows, "constraint_name").items():
            first = group[0]
            result.append(ForeignKeyDef(
                [r["column_name"] for r in group],
                first["referenced_table"],
                [r["referenced_column"] for r in group],
                name=name,
                on_delete=first["on_delete"],
                on_update=first["on_update"],
            ))
        return result

    def indexes(self, schema_name: Optional[str], table_name: str) -> List[IndexDef]:
        rows = self._query("""
            SELECT
                INDEX_NAME AS index_name,
                NON_UNIQUE AS non_unique,
                COLUMN_NAME AS column_name,
                COLLATION AS collation
            FROM information_schema.STATISTICS
            WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = %s
            ORDER BY INDEX_NAME, SEQ_IN_INDEX
        """, [table_name])
        if not rows:
            return []

        # Indexes backing keys are reported as constraints
        constraint_indexes: Set[str] = {"primary"}
        constraint_indexes.update(n.lower() for n in self._key_constraints(table_name, "UNIQUE"))
        constraint_indexes.update(n.lower() for n in self._key_constraints(table_name, "FOREIGN KEY"))

        result = []
        for name, group in group_rows(rows, "index_name").items():
            if name.lower() in constraint_indexes:
                continue
            if any(r["column_name"] is None for r in group):
                logger.debug(f"Skipping functional index {name}")
                continue
            columns = [
                OrderedColumn(r["column_name"], SortOrder.DESC if r["collation"] == "D" else SortOrder.ASC)
                for r in group
            ]
            result.append(IndexDef(columns, name, is_unique=not int(group[0]["non_unique"])))
        return result

    # ==================== Views ====================

    def view_names(self, schema_name: Optional[str]) -> List[str]:
        rows = self._query("""
            SELECT TABLE_NAME AS view_name
            FROM information_schema.VIEWS
            WHERE TABLE_SCHEMA = DATABASE()
            ORDER BY TABLE_NAME
        """)
        return [r["view_name"] for r in rows]

    def view_definition(self, schema_name: Optional[str], view_name: str) -> Optional[str]:
        sql = self._scalar("""
            SELECT VIEW_DEFINITION
            FROM information_schema.VIEWS
            WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = %s
        """, [view_name])
        return str(sql).strip() if sql is not None else None
