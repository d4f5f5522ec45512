"""
PostgreSQL Schema Loader - Introspect PostgreSQL databases

Everything is read from the pg_catalog tables (pg_class, pg_attribute,
pg_constraint, pg_index) rather than information_schema, which hides
objects the current role does not own and loses array/domain spellings.

Also discovers user-defined types (domains, enums, composite types) so
the type registry can be extended with them.
"""

from typing import Any, Dict, List, Optional

from ..constants import POSTGIS_SYSTEM_TABLES
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
from ..type_mapping import LogicalType, ProviderDataType
from .base import SchemaLoader

import logging
logger = logging.getLogger(__name__)

# pg_index.indoption bit for descending key columns
_INDOPTION_DESC = 0x01


def _pg_array(value: Any) -> List[Any]:
    """
    Normalize an array value returned by the driver.

    psycopg2 adapts text[]/smallint[] to lists, but int2vector, name[] or
    array_agg over unknown types may come back as '{a,b}' strings.
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    text = str(value).strip()
    if text.startswith("{") and text.endswith("}"):
        text = text[1:-1]
    if not text:
        return []
    items = []
    for part in text.replace(",", " ").split():
        part = part.strip('"')
        items.append(int(part) if part.lstrip("-").isdigit() else part)
    return items


def _check_body(definition: str) -> str:
    """'CHECK ((price > (0)::numeric)) NOT VALID' -> 'price > (0)::numeric'."""
    text = definition.strip()
    if text.upper().endswith(" NOT VALID"):
        text = text[:-len(" NOT VALID")].rstrip()
    if text.upper().startswith("CHECK"):
        text = text[len("CHECK"):].strip()
    return SchemaLoader._strip_parens(text)


class PostgreSQLSchemaLoader(SchemaLoader):
    """Schema loader for PostgreSQL 12+."""

    def version_text(self) -> str:
        return str(self._scalar("SELECT version()"))

    # ==================== Custom types ====================

    def custom_types(self) -> List[ProviderDataType]:
        types: List[ProviderDataType] = []

        # Domains (user-defined types based on existing types)
        for row in self._query("""
            SELECT t.typname AS type_name, format_type(t.typbasetype, t.typtypmod) AS base_type
            FROM pg_type t
            JOIN pg_namespace n ON n.oid = t.typnamespace
            WHERE t.typtype = 'd' AND n.nspname !~ '^pg_' AND n.nspname <> 'information_schema'
            ORDER BY t.typname
        """):
            types.append(ProviderDataType(
                row["type_name"], LogicalType.CUSTOM, is_custom=True,
                description=f"Domain based on {row['base_type']}"))

        # Enums
        for row in self._query("""
            SELECT t.typname AS type_name,
                   array_agg(e.enumlabel::text ORDER BY e.enumsortorder) AS enum_values
            FROM pg_type t
            JOIN pg_enum e ON t.oid = e.enumtypid
            WHERE t.typtype = 'e'
            GROUP BY t.typname
            ORDER BY t.typname
        """):
            values = [str(v) for v in _pg_array(row["enum_values"])]
            types.append(ProviderDataType(
                row["type_name"], LogicalType.CUSTOM, is_custom=True,
                description=f"Enum with values: {', '.join(values)}",
                examples=tuple(values)))

        # Composite types created with CREATE TYPE ... AS (table row types excluded)
        for row in self._query("""
            SELECT t.typname AS type_name,
                   array_agg(a.attname::text || ': ' || format_type(a.atttypid, a.atttypmod)
                             ORDER BY a.attnum) AS fields
            FROM pg_type t
            JOIN pg_class c ON c.oid = t.typrelid
            JOIN pg_attribute a ON a.attrelid = c.oid
            WHERE t.typtype = 'c' AND c.relkind = 'c'
              AND a.attnum > 0 AND NOT a.attisdropped
            GROUP BY t.typname
            ORDER BY t.typname
        """):
            fields = [str(f) for f in _pg_array(row["fields"])]
            types.append(ProviderDataType(
                row["type_name"], LogicalType.CUSTOM, is_custom=True,
                description=f"Composite type with columns: {', '.join(fields)}"))

        logger.debug(f"Discovered {len(types)} PostgreSQL custom types")
        return types

    # ==================== Schemas ====================

    def schema_names(self) -> List[str]:
        rows = self._query("""
            SELECT nspname AS schema_name
            FROM pg_namespace
            WHERE nspname !~ '^pg_' AND nspname <> 'information_schema'
            ORDER BY nspname
        """)
        return [r["schema_name"] for r in rows]

    # ==================== Tables ====================

    def table_names(self, schema_name: Optional[str]) -> List[str]:
        rows = self._query("""
            SELECT c.relname AS table_name
            FROM pg_class c
            JOIN pg_namespace n ON n.oid = c.relnamespace
            WHERE c.relkind IN ('r', 'p') AND n.nspname = %s
            ORDER BY c.relname
        """, [schema_name])
        return [r["table_name"] for r in rows if r["table_name"] not in POSTGIS_SYSTEM_TABLES]

    def _column_rows(self, schema_name: Optional[str], table_name: str) -> List[Dict]:
        return self._query("""
            SELECT
                a.attnum AS attnum,
                a.attname AS column_name,
                format_type(a.atttypid, a.atttypmod) AS data_type,
                NOT a.attnotnull AS is_nullable,
                a.attidentity::text AS identity_kind,
                pg_get_expr(d.adbin, d.adrelid) AS default_value
            FROM pg_attribute a
            JOIN pg_class c ON c.oid = a.attrelid
            JOIN pg_namespace n ON n.oid = c.relnamespace
            LEFT JOIN pg_attrdef d ON d.adrelid = a.attrelid AND d.adnum = a.attnum
            WHERE n.nspname = %s AND c.relname = %s AND a.attnum > 0 AND NOT a.attisdropped
            ORDER BY a.attnum
        """, [schema_name, table_name])

    @staticmethod
    def _is_identity(row: Dict) -> bool:
        # GENERATED ... AS IDENTITY, or a serial column backed by a sequence
        if (row["identity_kind"] or "").strip() in ("a", "d"):
            return True
        return str(row["default_value"] or "").startswith("nextval(")

    def columns(self, schema_name: Optional[str], table_name: str) -> List[ColumnDef]:
        return [
            self._make_column(r["column_name"], r["data_type"], is_nullable=r["is_nullable"],
                              is_identity=self._is_identity(r))
            for r in self._column_rows(schema_name, table_name)
        ]

    def _constraints(self, schema_name: Optional[str], table_name: str,
                     constraint_type: str) -> List[Dict]:
        return self._query("""
            SELECT
                con.conname AS constraint_name,
                ARRAY(
                    SELECT a.attname::text
                    FROM unnest(con.conkey) WITH ORDINALITY AS k(attnum, ord)
                    JOIN pg_attribute a ON a.attrelid = con.conrelid AND a.attnum = k.attnum
                    ORDER BY k.ord
                ) AS columns,
                rn.nspname AS referenced_schema,
                rc.relname AS referenced_table,
                ARRAY(
                    SELECT a.attname::text
                    FROM unnest(con.confkey) WITH ORDINALITY AS k(attnum, ord)
                    JOIN pg_attribute a ON a.attrelid = con.confrelid AND a.attnum = k.attnum
                    ORDER BY k.ord
                ) AS referenced_columns,
                con.confdeltype::text AS on_delete,
                con.confupdtype::text AS on_update,
                pg_get_constraintdef(con.oid) AS definition
            FROM pg_constraint con
            JOIN pg_class c ON c.oid = con.conrelid
            JOIN pg_namespace n ON n.oid = c.relnamespace
            LEFT JOIN pg_class rc ON rc.oid = con.confrelid
            LEFT JOIN pg_namespace rn ON rn.oid = rc.relnamespace
            WHERE n.nspname = %s AND c.relname = %s AND con.contype = %s
            ORDER BY con.conname
        """, [schema_name, table_name, constraint_type])

    def primary_key(self, schema_name: Optional[str], table_name: str) -> Optional[PrimaryKeyDef]:
        for row in self._constraints(schema_name, table_name, "p"):
            return PrimaryKeyDef(_pg_array(row["columns"]), row["constraint_name"])
        return None

    def unique_constraints(self, schema_name: Optional[str], table_name: str) -> List[UniqueDef]:
        return [
            UniqueDef(_pg_array(r["columns"]), r["constraint_name"])
            for r in self._constraints(schema_name, table_name, "u")
        ]

    def check_constraints(self, schema_name: Optional[str], table_name: str) -> List[CheckDef]:
        result = []
        for row in self._constraints(schema_name, table_name, "c"):
            columns = _pg_array(row["columns"])
            result.append(CheckDef(
                _check_body(row["definition"]),
                row["constraint_name"],
                columns[0] if len(columns) == 1 else None,
            ))
        return result

    def default_constraints(self, schema_name: Optional[str], table_name: str) -> List[DefaultDef]:
        result = []
        for row in self._column_rows(schema_name, table_name):
            if row["default_value"] is None or self._is_identity(row):
                continue
            result.append(self._synthesized_default(
                table_name, row["column_name"], self._strip_parens(row["default_value"])))
        return result

    def foreign_keys(self, schema_name: Optional[str], table_name: str) -> List[ForeignKeyDef]:
        return [
            ForeignKeyDef(
                _pg_array(r["columns"]),
                r["referenced_table"],
                _pg_array(r["referenced_columns"]),
                name=r["constraint_name"],
                referenced_schema=r["referenced_schema"],
                on_delete=r["on_delete"],
                on_update=r["on_update"],
            )
            for r in self._constraints(schema_name, table_name, "f")
        ]

    def indexes(self, schema_name: Optional[str], table_name: str) -> List[IndexDef]:
        rows = self._query("""
            SELECT
                i.relname AS index_name,
                ix.indisunique AS is_unique,
                ix.indkey::smallint[] AS key_columns,
                ix.indoption::smallint[] AS key_options,
                ix.indnkeyatts AS key_count
            FROM pg_index ix
            JOIN pg_class i ON i.oid = ix.indexrelid
            JOIN pg_class t ON t.oid = ix.indrelid
            JOIN pg_namespace n ON n.oid = t.relnamespace
            WHERE n.nspname = %s AND t.relname = %s
              AND ix.indexprs IS NULL
              AND NOT EXISTS (
                  SELECT 1 FROM pg_constraint con
                  WHERE con.conindid = ix.indexrelid AND con.contype IN ('p', 'u', 'x')
              )
            ORDER BY i.relname
        """, [schema_name, table_name])
        if not rows:
            return []

        names = {r["attnum"]: r["column_name"] for r in self._column_rows(schema_name, table_name)}
        result = []
        for row in rows:
            key_count = row["key_count"]
            attnums = _pg_array(row["key_columns"])[:key_count]
            options = _pg_array(row["key_options"])
            if any(n not in names for n in attnums):
                logger.debug(f"Skipping expression index {row['index_name']}")
                continue
            columns = [
                OrderedColumn(names[n], SortOrder.DESC if pos < len(options) and options[pos] & _INDOPTION_DESC
                              else SortOrder.ASC)
                for pos, n in enumerate(attnums)
            ]
            result.append(IndexDef(columns, row["index_name"], is_unique=bool(row["is_unique"])))
        return result

    # ==================== Views ====================

    def view_names(self, schema_name: Optional[str]) -> List[str]:
        rows = self._query("""
            SELECT c.relname AS view_name
            FROM pg_class c
            JOIN pg_namespace n ON n.oid = c.relnamespace
            WHERE c.relkind = 'v' AND n.nspname = %s
            ORDER BY c.relname
        """, [schema_name])
        return [r["view_name"] for r in rows]

    def view_definition(self, schema_name: Optional[str], view_name: str) -> Optional[str]:
        sql = self._scalar("""
            SELECT pg_get_viewdef(c.oid, true)
            FROM pg_class c
            JOIN pg_namespace n ON n.oid = c.relnamespace
            WHERE c.relkind = 'v' AND n.nspname = %s AND c.relname = %s
        """, [schema_name, view_name])
        if sql is None:
            return None
        return str(sql).strip().rstrip(";").strip()
