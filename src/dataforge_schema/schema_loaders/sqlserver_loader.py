"""
SQL Server Schema Loader - Introspect SQL Server databases

Columns come from INFORMATION_SCHEMA.COLUMNS (native type rebuilt from the
length/precision/scale columns). Keys, checks, defaults, foreign keys and
indexes come from the sys.* catalog views, filtered by OBJECT_ID of the
quoted, schema-qualified table name.
"""

from typing import Dict, List, Optional

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
from ..utils.sql_parsing import strip_view_definition
from .base import SchemaLoader, group_rows

import logging
logger = logging.getLogger(__name__)

_LENGTH_TYPES = ("char", "varchar", "nchar", "nvarchar", "binary", "varbinary")
_DECIMAL_TYPES = ("decimal", "numeric")
_FRACTIONAL_TYPES = ("time", "datetime2", "datetimeoffset")


def native_type_from_row(row: Dict) -> str:
    """
    Rebuild the declared type from INFORMATION_SCHEMA.COLUMNS values.

    Examples:
        nvarchar / -1  -> nvarchar(max)
        decimal / 10,2 -> decimal(10,2)
        datetime2 / 3  -> datetime2(3)
    """
    data_type = str(row["data_type"]).lower()
    if data_type in _LENGTH_TYPES and row.get("max_length") is not None:
        length = int(row["max_length"])
        return f"{data_type}(max)" if length == -1 else f"{data_type}({length})"
    if data_type in _DECIMAL_TYPES and row.get("numeric_precision") is not None:
        return f"{data_type}({int(row['numeric_precision'])},{int(row['numeric_scale'] or 0)})"
    if data_type in _FRACTIONAL_TYPES and row.get("datetime_precision") is not None:
        return f"{data_type}({int(row['datetime_precision'])})"
    return data_type


class SQLServerSchemaLoader(SchemaLoader):
    """Schema loader for SQL Server 2016+."""

    def _object_id_param(self, schema_name: Optional[str], table_name: str) -> str:
        return self.dialect.qualify(table_name, schema_name)

    def version_text(self) -> str:
        return str(self._scalar("SELECT CAST(SERVERPROPERTY('ProductVersion') AS nvarchar(128))"))

    # ==================== Schemas ====================

    def schema_names(self) -> List[str]:
        rows = self._query("""
            SELECT s.name AS schema_name
            FROM sys.schemas s
            WHERE s.name NOT IN ('sys', 'INFORMATION_SCHEMA', 'guest')
              AND s.name NOT LIKE 'db[_]%'
            ORDER BY s.name
        """)
        return [r["schema_name"] for r in rows]

    # ==================== Tables ====================

    def table_names(self, schema_name: Optional[str]) -> List[str]:
        rows = self._query("""
            SELECT TABLE_NAME AS table_name
            FROM INFORMATION_SCHEMA.TABLES
            WHERE TABLE_TYPE = 'BASE TABLE' AND TABLE_SCHEMA = ?
            ORDER BY TABLE_NAME
        """, [schema_name])
        return [r["table_name"] for r in rows]

    def columns(self, schema_name: Optional[str], table_name: str) -> List[ColumnDef]:
        rows = self._query("""
            SELECT
                c.COLUMN_NAME AS column_name,
                c.DATA_TYPE AS data_type,
                c.CHARACTER_MAXIMUM_LENGTH AS max_length,
                c.NUMERIC_PRECISION AS numeric_precision,
                c.NUMERIC_SCALE AS numeric_scale,
                c.DATETIME_PRECISION AS datetime_precision,
                c.IS_NULLABLE AS is_nullable,
                COLUMNPROPERTY(OBJECT_ID(QUOTENAME(c.TABLE_SCHEMA) + '.' + QUOTENAME(c.TABLE_NAME)),
                               c.COLUMN_NAME, 'IsIdentity') AS is_identity
            FROM INFORMATION_SCHEMA.COLUMNS c
            WHERE c.TABLE_SCHEMA = ? AND c.TABLE_NAME = ?
            ORDER BY c.ORDINAL_POSITION
        """, [schema_name, table_name])
        return [
            self._make_column(
                r["column_name"],
                native_type_from_row(r),
                is_nullable=str(r["is_nullable"]).upper() == "YES",
                is_identity=bool(r["is_identity"]),
            )
            for r in rows
        ]

    def _key_constraints(self, schema_name: Optional[str], table_name: str,
                         constraint_type: str) -> Dict[str, List[Dict]]:
        rows = self._query("""
            SELECT kc.name AS constraint_name, col.name AS column_name
            FROM sys.key_constraints kc
            JOIN sys.index_columns ic
              ON ic.object_id = kc.parent_object_id AND ic.index_id = kc.unique_index_id
            JOIN sys.columns col
              ON col.object_id = ic.object_id AND col.column_id = ic.column_id
            WHERE kc.type = ? AND kc.parent_object_id = OBJECT_ID(?)
            ORDER BY kc.name, ic.key_ordinal
        """, [constraint_type, self._object_id_param(schema_name, table_name)])
        return group_rows(rows, "constraint_name")

    def primary_key(self, schema_name: Optional[str], table_name: str) -> Optional[PrimaryKeyDef]:
        for name, rows in self._key_constraints(schema_name, table_name, "PK").items():
            return PrimaryKeyDef([r["column_name"] for r in rows], name)
        return None

    def unique_constraints(self, schema_name: Optional[str], table_name: str) -> List[UniqueDef]:
        return [
            UniqueDef([r["column_name"] for r in rows], name)
            for name, rows in self._key_constraints(schema_name, table_name, "UQ").items()
        ]

    def check_constraints(self, schema_name: Optional[str], table_name: str) -> List[CheckDef]:
        rows = self._query("""
            SELECT cc.name AS constraint_name, cc.definition AS definition, col.name AS column_name
            FROM sys.check_constraints cc
            LEFT JOIN sys.columns col
              ON col.object_id = cc.parent_object_id AND col.column_id = cc.parent_column_id
            WHERE cc.parent_object_id = OBJECT_ID(?)
            ORDER BY cc.name
        """, [self._object_id_param(schema_name, table_name)])
        return [
            CheckDef(self._strip_parens(r["definition"]), r["constraint_name"], r["column_name"])
            for r in rows
        ]

    def default_constraints(self, schema_name: Optional[str], table_name: str) -> List[DefaultDef]:
        rows = self._query("""
            SELECT dc.name AS constraint_name, dc.definition AS definition, col.name AS column_name
            FROM sys.default_constraints dc
            JOIN sys.columns col
              ON col.object_id = dc.parent_object_id AND col.column_id = dc.parent_column_id
            WHERE dc.parent_object_id = OBJECT_ID(?)
            ORDER BY dc.name
        """, [self._object_id_param(schema_name, table_name)])
        return [
            DefaultDef(r["column_name"], self._strip_parens(r["definition"]), r["constraint_name"])
            for r in rows
        ]

    def foreign_keys(self, schema_name: Optional[str], table_name: str) -> List[ForeignKeyDef]:
        rows = self._query("""
            SELECT
                fk.name AS constraint_name,
                pc.name AS column_name,
                rs.name AS referenced_schema,
                rt.name AS referenced_table,
                rc.name AS referenced_column,
                fk.delete_referential_action_desc AS on_delete,
                fk.update_referential_action_desc AS on_update
            FROM sys.foreign_keys fk
            JOIN sys.foreign_key_columns fkc ON fkc.constraint_object_id = fk.object_id
            JOIN sys.columns pc
              ON pc.object_id = fkc.parent_object_id AND pc.column_id = fkc.parent_column_id
            JOIN sys.tables rt ON rt.object_id = fkc.referenced_object_id
            JOIN sys.schemas rs ON rs.schema_id = rt.schema_id
            JOIN sys.columns rc
              ON rc.object_id = fkc.referenced_object_id AND rc.column_id = fkc.referenced_column_id
            WHERE fk.parent_object_id = OBJECT_ID(?)
            ORDER BY fk.name, fkc.constraint_column_id
        """, [self._object_id_param(schema_name, table_name)])
        result = []
        for name, group in group_rows(rows, "constraint_name").items():
            first = group[0]
            result.append(ForeignKeyDef(
                [r["column_name"] for r in group],
                first["referenced_table"],
                [r["referenced_column"] for r in group],
                name=name,
                referenced_schema=first["referenced_schema"],
                on_delete=first["on_delete"],
                on_update=first["on_update"],
            ))
        return result

    def indexes(self, schema_name: Optional[str], table_name: str) -> List[IndexDef]:
        rows = self._query("""
            SELECT
                i.name AS index_name,
                i.is_unique AS is_unique,
                col.name AS column_name,
                ic.is_descending_key AS is_descending
            FROM sys.indexes i
            JOIN sys.index_columns ic ON ic.object_id = i.object_id AND ic.index_id = i.index_id
            JOIN sys.columns col ON col.object_id = ic.object_id AND col.column_id = ic.column_id
            WHERE i.object_id = OBJECT_ID(?)
              AND i.is_primary_key = 0
              AND i.is_unique_constraint = 0
              AND i.type > 0
              AND ic.key_ordinal > 0
            ORDER BY i.name, ic.key_ordinal
        """, [self._object_id_param(schema_name, table_name)])
        return [
            IndexDef(
                [OrderedColumn(r["column_name"], SortOrder.DESC if r["is_descending"] else SortOrder.ASC)
                 for r in group],
                name,
                is_unique=bool(group[0]["is_unique"]),
            )
            for name, group in group_rows(rows, "index_name").items()
        ]

    # ==================== Views ====================

    def view_names(self, schema_name: Optional[str]) -> List[str]:
        rows = self._query("""
            SELECT TABLE_NAME AS view_name
            FROM INFORMATION_SCHEMA.VIEWS
            WHERE TABLE_SCHEMA = ?
            ORDER BY TABLE_NAME
        """, [schema_name])
        return [r["view_name"] for r in rows]

    def view_definition(self, schema_name: Optional[str], view_name: str) -> Optional[str]:
        # sql_modules keeps the full CREATE VIEW text (NULL for encrypted views)
        sql = self._scalar("""
            SELECT m.definition
            FROM sys.sql_modules m
            JOIN sys.views v ON v.object_id = m.object_id
            JOIN sys.schemas s ON s.schema_id = v.schema_id
            WHERE s.name = ? AND v.name = ?
        """, [schema_name, view_name])
        return strip_view_definition(sql)
