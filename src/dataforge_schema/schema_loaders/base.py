"""
Base Schema Loader - Abstract base class for catalog introspection

Schema loaders read live catalog state (information schema views, system
catalogs, pragmas) and assemble canonical definitions from the rows. They
never cache: every call re-queries the connection.

Each dialect implements the catalog queries; this base class:
- runs queries on the caller's connection/transaction with cancellation checks
- resolves object names case-insensitively against the catalog spelling
- classifies native column types through the dialect's type registry
- assembles TableDef / ViewDef from the pieces

Usage:
    loader = SQLiteSchemaLoader(db, SQLiteDialect(), SQLiteTypeRegistry())
    table = loader.load_table(None, "orders")
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from ..config import get_settings
from ..connection import CancellationToken, DbConnection, Transaction, check_cancelled
from ..dialects.base import SchemaDialect
from ..models import (
    CheckDef,
    ColumnDef,
    DefaultDef,
    ForeignKeyDef,
    IndexDef,
    PrimaryKeyDef,
    TableDef,
    UniqueDef,
    ViewDef,
)
from ..type_mapping import ProviderDataType, TypeRegistry
from ..utils.identifiers import default_constraint_name
from ..utils.wildcard import WildcardFilter

import logging
logger = logging.getLogger(__name__)


def group_rows(rows: Sequence[Dict[str, Any]], key: str) -> Dict[str, List[Dict[str, Any]]]:
    """Group catalog rows by a column, keeping first-seen order."""
    groups: Dict[str, List[Dict[str, Any]]] = {}
    for row in rows:
        groups.setdefault(row[key], []).append(row)
    return groups


class SchemaLoader(ABC):
    """
    Abstract base class for catalog introspection.

    Schema arguments are the effective schema (already defaulted by the
    provider); dialects without named schemas receive None and ignore it.
    """

    def __init__(self, db: DbConnection, dialect: SchemaDialect, registry: TypeRegistry,
                 tx: Optional[Transaction] = None,
                 cancellation: Optional[CancellationToken] = None):
        """
        Initialize the schema loader.

        Args:
            db: Wrapped connection to introspect
            dialect: Dialect of the connection (quoting, capabilities)
            registry: Type registry used to classify native column types
            tx: Caller transaction the catalog queries run on
            cancellation: Token checked before every query
        """
        self.db = db
        self.dialect = dialect
        self.registry = registry
        self.tx = tx
        self.cancellation = cancellation

    # ==================== Query helpers ====================

    def _query(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        return self.db.query(sql, list(params) or None, tx=self.tx, cancellation=self.cancellation)

    def _scalar(self, sql: str, params: Sequence[Any] = ()) -> Any:
        return self.db.execute_scalar(sql, list(params) or None, tx=self.tx,
                                      cancellation=self.cancellation)

    def _check_cancelled(self, object_ref: Any = None) -> None:
        check_cancelled(self.cancellation, object_ref)

    @staticmethod
    def name_filter(pattern: Optional[str]) -> WildcardFilter:
        return WildcardFilter(pattern, case_sensitive=get_settings().wildcard_case_sensitive)

    @staticmethod
    def _match_name(names: Sequence[str], name: str) -> Optional[str]:
        """Catalog spelling of name (exact match first, then case-insensitive)."""
        if name in names:
            return name
        key = name.lower()
        for candidate in names:
            if candidate.lower() == key:
                return candidate
        return None

    @staticmethod
    def _strip_parens(text: Optional[str]) -> Optional[str]:
        """Remove redundant outer parentheses: '((0))' -> '0', '(a) + (b)' unchanged."""
        if text is None:
            return None
        text = text.strip()
        while text.startswith("(") and text.endswith(")"):
            depth = 0
            closes_early = False
            for pos, ch in enumerate(text):
                if ch == "(":
                    depth += 1
                elif ch == ")":
                    depth -= 1
                    if depth == 0 and pos < len(text) - 1:
                        closes_early = True
                        break
            if closes_early:
                break
            text = text[1:-1].strip()
        return text

    def _make_column(self, name: str, native_type: Optional[str], is_nullable: bool = True,
                     is_identity: bool = False) -> ColumnDef:
        """Column with its native spelling classified through the registry."""
        native = (native_type or "").strip()
        info = self.registry.describe_native_type(native)
        return ColumnDef(
            name=name,
            logical_type=info.logical_type,
            native_type=native,
            is_nullable=bool(is_nullable),
            is_identity=bool(is_identity),
            length=info.length,
            precision=info.precision,
            scale=info.scale,
            is_unicode=info.is_unicode,
            element_type=info.element_type,
            values=list(info.values),
            native_types={self.registry.family: native} if native else {},
        )

    def _synthesized_default(self, table_name: str, column_name: str, expression: str) -> DefaultDef:
        """Default for dialects whose defaults are column properties without a name."""
        return DefaultDef(column_name, expression, default_constraint_name(table_name, column_name))

    # ==================== Server ====================

    @abstractmethod
    def version_text(self) -> str:
        """Raw server version string."""
        pass

    def custom_types(self) -> List[ProviderDataType]:
        """
        User-defined types found in the catalog.

        Override in dialects with user-defined types.

        Returns:
            Registry entries for the discovered types (empty by default)
        """
        return []

    # ==================== Schemas ====================

    def schema_names(self) -> List[str]:
        """
        Named schemas of the database.

        Override in dialects with named schemas.
        """
        return []

    def find_schema(self, schema_name: str) -> Optional[str]:
        names = self.schema_names()
        return schema_name if schema_name in names else None

    # ==================== Tables ====================

    @abstractmethod
    def table_names(self, schema_name: Optional[str]) -> List[str]:
        """User table names of a schema, sorted."""
        pass

    def find_table(self, schema_name: Optional[str], table_name: str) -> Optional[str]:
        """Catalog spelling of a table name, or None when absent."""
        return self._match_name(self.table_names(schema_name), table_name)

    @abstractmethod
    def columns(self, schema_name: Optional[str], table_name: str) -> List[ColumnDef]:
        """Columns in ordinal order (without defaults or constraints)."""
        pass

    @abstractmethod
    def primary_key(self, schema_name: Optional[str], table_name: str) -> Optional[PrimaryKeyDef]:
        pass

    @abstractmethod
    def unique_constraints(self, schema_name: Optional[str], table_name: str) -> List[UniqueDef]:
        pass

    @abstractmethod
    def check_constraints(self, schema_name: Optional[str], table_name: str) -> List[CheckDef]:
        pass

    @abstractmethod
    def default_constraints(self, schema_name: Optional[str], table_name: str) -> List[DefaultDef]:
        pass

    @abstractmethod
    def foreign_keys(self, schema_name: Optional[str], table_name: str) -> List[ForeignKeyDef]:
        pass

    @abstractmethod
    def indexes(self, schema_name: Optional[str], table_name: str) -> List[IndexDef]:
        """Plain indexes (indexes backing primary key / unique constraints excluded)."""
        pass

    def load_table(self, schema_name: Optional[str], table_name: str) -> Optional[TableDef]:
        """
        Introspect one table.

        Args:
            schema_name: Effective schema (None for dialects without schemas)
            table_name: Table name (matched case-insensitively)

        Returns:
            TableDef using the catalog spelling of every name, or None when absent
        """
        name = self.find_table(schema_name, table_name)
        if name is None:
            return None
        self._check_cancelled(name)
        logger.debug(f"Loading table {self.dialect.qualify(name, schema_name)}")
        return TableDef(
            name=name,
            columns=self.columns(schema_name, name),
            schema_name=schema_name,
            primary_key=self.primary_key(schema_name, name),
            unique_constraints=self.unique_constraints(schema_name, name),
            check_constraints=self.check_constraints(schema_name, name),
            default_constraints=self.default_constraints(schema_name, name),
            foreign_keys=self.foreign_keys(schema_name, name),
            indexes=self.indexes(schema_name, name),
        )

    def load_tables(self, schema_name: Optional[str], name_filter: Optional[str] = None) -> List[TableDef]:
        tables = []
        for name in self.name_filter(name_filter).filter(self.table_names(schema_name)):
            table = self.load_table(schema_name, name)
            if table is not None:
                tables.append(table)
        return tables

    # ==================== Views ====================

    @abstractmethod
    def view_names(self, schema_name: Optional[str]) -> List[str]:
        pass

    def find_view(self, schema_name: Optional[str], view_name: str) -> Optional[str]:
        return self._match_name(self.view_names(schema_name), view_name)

    @abstractmethod
    def view_definition(self, schema_name: Optional[str], view_name: str) -> Optional[str]:
        """Defining SELECT text of a view (catalog spelling of the name)."""
        pass

    def load_view(self, schema_name: Optional[str], view_name: str) -> Optional[ViewDef]:
        name = self.find_view(schema_name, view_name)
        if name is None:
            return None
        definition = self.view_definition(schema_name, name)
        if not definition:
            logger.warning(f"View {name} has no readable definition")
            return None
        return ViewDef(name, definition, schema_name)

    def load_views(self, schema_name: Optional[str], name_filter: Optional[str] = None) -> List[ViewDef]:
        views = []
        for name in self.name_filter(name_filter).filter(self.view_names(schema_name)):
            view = self.load_view(schema_name, name)
            if view is not None:
                views.append(view)
        return views
