"""
SQLite Schema Loader - Introspect SQLite databases

Columns, keys and indexes come from PRAGMA table_info / index_list /
index_info / foreign_key_list. Constraint names, CHECK bodies and
AUTOINCREMENT are only kept in the CREATE TABLE text stored in
sqlite_master, which is parsed with utils.sql_parsing.
"""

import re
from typing import Dict, List, Optional

from ..models import (
    CheckDef,
    ColumnDef,
    DefaultDef,
    ForeignKeyDef,
    IndexDef,
    PrimaryKeyDef,
    UniqueDef,
)
from ..utils.identifiers import (
    check_constraint_name,
    foreign_key_name,
    primary_key_name,
    unique_constraint_name,
)
from ..utils.sql_parsing import ParsedConstraint, ParsedCreateTable, parse_create_table, strip_view_definition
from .base import SchemaLoader

import logging
logger = logging.getLogger(__name__)

# Declared type of untyped columns (SQLite gives them BLOB affinity)
_UNTYPED = "BLOB"


_STRING_LITERAL = re.compile(r"'(?:[^']|'')*'")
_IDENTIFIER = re.compile(r'"((?:[^"]|"")+)"|\[([^\]]+)\]|`((?:[^`]|``)+)`|([A-Za-z_][A-Za-z0-9_$]*)')


def _same_columns(a: List[str], b: List[str]) -> bool:
    return [c.lower() for c in a] == [c.lower() for c in b]


def _single_column(expression: str, columns: Dict[str, str]) -> Optional[str]:
    """The only table column an expression references, or None."""
    referenced = set()
    for match in _IDENTIFIER.finditer(_STRING_LITERAL.sub("''", expression)):
        quoted, bracketed, backticked, bare = match.groups()
        name = quoted.replace('""', '"') if quoted else bracketed or \
            (backticked.replace("``", "`") if backticked else bare)
        if name.lower() in columns:
            referenced.add(name.lower())
    return columns[referenced.pop()] if len(referenced) == 1 else None


class SQLiteSchemaLoader(SchemaLoader):
    """Schema loader for SQLite databases."""

    def version_text(self) -> str:
        return str(self._scalar("SELECT sqlite_version()"))

    def _pragma(self, pragma: str, name: str) -> List[Dict]:
        # PRAGMA arguments cannot be bound as parameters
        return self._query(f"PRAGMA {pragma}({self.dialect.quote_identifier(name)})")

    def _parsed(self, table_name: str) -> Optional[ParsedCreateTable]:
        sql = self._scalar(
            "SELECT sql FROM sqlite_master WHERE type = 'table' AND name = ?", [table_name])
        parsed = parse_create_table(sql) if sql else None
        if parsed is None:
            logger.debug(f"No parsable CREATE TABLE text for {table_name}")
        return parsed

    def _parsed_constraints(self, table_name: str, kind: str) -> List[ParsedConstraint]:
        parsed = self._parsed(table_name)
        if parsed is None:
            return []
        return [c for c in parsed.all_constraints() if c.kind == kind]

    # ==================== Tables ====================

    def table_names(self, schema_name: Optional[str]) -> List[str]:
        rows = self._query("SELECT name FROM sqlite_master WHERE type = 'table' ORDER BY name")
        return [r["name"] for r in rows if not r["name"].lower().startswith("sqlite_")]

    def columns(self, schema_name: Optional[str], table_name: str) -> List[ColumnDef]:
        parsed = self._parsed(table_name)
        result = []
        for row in self._pragma("table_info", table_name):
            name = row["name"]
            parsed_column = parsed.get_column(name) if parsed is not None else None
            is_identity = parsed_column is not None and parsed_column.autoincrement
            result.append(self._make_column(
                name,
                row["type"] or _UNTYPED,
                is_nullable=not row["notnull"] and not row["pk"],
                is_identity=is_identity,
            ))
        return result

    def primary_key(self, schema_name: Optional[str], table_name: str) -> Optional[PrimaryKeyDef]:
        rows = [r for r in self._pragma("table_info", table_name) if r["pk"]]
        if not rows:
            return None
        columns = [r["name"] for r in sorted(rows, key=lambda r: r["pk"])]
        name = None
        for constraint in self._parsed_constraints(table_name, "PRIMARY KEY"):
            name = constraint.name
            break
        return PrimaryKeyDef(columns, name or primary_key_name(table_name, columns))

    def _index_columns(self, index_name: str) -> Optional[List[str]]:
        """Key columns of an index, None when it indexes an expression."""
        rows = sorted(self._pragma("index_info", index_name), key=lambda r: r["seqno"])
        names = [r["name"] for r in rows]
        if not names or any(n is None for n in names):
            return None
        return names

    def _index_list(self, table_name: str, origin: str) -> List[Dict]:
        return [r for r in self._pragma("index_list", table_name) if r["origin"] == origin]

    def unique_constraints(self, schema_name: Optional[str], table_name: str) -> List[UniqueDef]:
        parsed = self._parsed_constraints(table_name, "UNIQUE")
        result = []
        for row in reversed(self._index_list(table_name, "u")):
            columns = self._index_columns(row["name"])
            if columns is None:
                continue
            name = next((c.name for c in parsed if c.name and _same_columns(c.columns, columns)), None)
            result.append(UniqueDef(columns, name or unique_constraint_name(table_name, columns)))
        return result

    def check_constraints(self, schema_name: Optional[str], table_name: str) -> List[CheckDef]:
        constraints = self._parsed_constraints(table_name, "CHECK")
        if not constraints:
            return []
        columns = {r["name"].lower(): r["name"] for r in self._pragma("table_info", table_name)}
        result = []
        for position, constraint in enumerate(constraints, start=1):
            if not (constraint.expression or "").strip():
                continue
            if constraint.column_level and constraint.columns:
                column_name = constraint.columns[0]
            else:
                column_name = _single_column(constraint.expression, columns)
            name = constraint.name or check_constraint_name(table_name, column_name or str(position))
            result.append(CheckDef(constraint.expression.strip(), name, column_name))
        return result

    def default_constraints(self, schema_name: Optional[str], table_name: str) -> List[DefaultDef]:
        result = []
        for row in self._pragma("table_info", table_name):
            if row["dflt_value"] is None:
                continue
            result.append(self._synthesized_default(
                table_name, row["name"], self._strip_parens(str(row["dflt_value"]))))
        return result

    def foreign_keys(self, schema_name: Optional[str], table_name: str) -> List[ForeignKeyDef]:
        groups: Dict[int, List[Dict]] = {}
        for row in self._pragma("foreign_key_list", table_name):
            groups.setdefault(row["id"], []).append(row)
        if not groups:
            return []

        parsed = self._parsed_constraints(table_name, "FOREIGN KEY")
        result = []
        # PRAGMA lists foreign keys last-declared first
        for fk_id in sorted(groups, reverse=True):
            rows = sorted(groups[fk_id], key=lambda r: r["seq"])
            referenced_table = rows[0]["table"]
            columns = [r["from"] for r in rows]
            referenced_columns = [r["to"] for r in rows]
            if any(c is None for c in referenced_columns):
                # "REFERENCES parent" without columns targets the parent's primary key
                parent_pk = self.primary_key(None, referenced_table)
                referenced_columns = parent_pk.columns if parent_pk is not None else columns
            name = next((c.name for c in parsed if c.name and _same_columns(c.columns, columns)), None)
            result.append(ForeignKeyDef(
                columns,
                referenced_table,
                referenced_columns,
                name=name or foreign_key_name(table_name, columns, referenced_table, referenced_columns),
                on_delete=rows[0]["on_delete"],
                on_update=rows[0]["on_update"],
            ))
        return result

    def indexes(self, schema_name: Optional[str], table_name: str) -> List[IndexDef]:
        result = []
        for row in reversed(self._index_list(table_name, "c")):
            columns = self._index_columns(row["name"])
            if columns is None:
                logger.debug(f"Skipping expression index {row['name']}")
                continue
            result.append(IndexDef(columns, row["name"], is_unique=bool(row["unique"])))
        return result

    # ==================== Views ====================

    def view_names(self, schema_name: Optional[str]) -> List[str]:
        rows = self._query("SELECT name FROM sqlite_master WHERE type = 'view' ORDER BY name")
        return [r["name"] for r in rows]

    def view_definition(self, schema_name: Optional[str], view_name: str) -> Optional[str]:
        sql = self._scalar("SELECT sql FROM sqlite_master WHERE type = 'view' AND name = ?", [view_name])
        return strip_view_definition(sql)
