"""
Dialect Methods - The provider contract shared by every dialect

A DialectMethods provider composes a SchemaDialect (SQL text), a
SchemaLoader (catalog introspection) and a TypeRegistry, and exposes the
same operations for every database:
- capability queries and server information
- existence checks (always re-read from the catalog, never cached)
- idempotent create / drop / rename for schemas, tables, columns,
  constraints, indexes and views
- introspection into the canonical model

Every mutation follows Check -> (no-op | generate SQL -> execute ->
optionally re-introspect). Idempotent operations return True when they
performed the change and False when the precondition already held.

Providers hold no state between calls; every operation receives the
connection, an optional caller transaction and an optional cancellation
token, checked before each statement.

Usage:
    methods = get_methods(db)
    methods.create_table_if_not_exists(db, table)
    methods.get_table(db, None, "Orders")
"""

from abc import ABC
from dataclasses import replace
from typing import Any, Callable, List, Optional, Sequence, Tuple, Type, Union

from ..config import get_settings
from ..connection import CancellationToken, DbConnection, Transaction, check_cancelled
from ..dialects.base import SchemaDialect
from ..errors import (
    DriverError,
    ObjectAlreadyExistsError,
    ObjectNotFoundError,
    UnsupportedOperationError,
    ValidationError,
)
from ..models import (
    CheckDef,
    ColumnDef,
    DefaultDef,
    ForeignKeyDef,
    IndexDef,
    ObjectKind,
    ObjectRef,
    PrimaryKeyDef,
    SchemaDef,
    TableDef,
    UniqueDef,
    ViewDef,
)
from ..schema_loaders.base import SchemaLoader
from ..type_mapping import DataTypeCategory, ProviderDataType, TypeRegistry, get_type_registry
from ..utils.expression_validator import (
    validate_check_expression,
    validate_default_expression,
    validate_view_definition,
)
from ..utils.identifiers import (
    check_constraint_name,
    default_constraint_name,
    extract_version,
    foreign_key_name,
    index_name as synthesized_index_name,
    numbered_check_constraint_name,
    primary_key_name,
    unique_constraint_name,
)

import logging
logger = logging.getLogger(__name__)

Constraint = Union[PrimaryKeyDef, UniqueDef, CheckDef, DefaultDef, ForeignKeyDef]

_CONSTRAINT_KINDS = (
    (PrimaryKeyDef, ObjectKind.PRIMARY_KEY),
    (UniqueDef, ObjectKind.UNIQUE),
    (CheckDef, ObjectKind.CHECK),
    (DefaultDef, ObjectKind.DEFAULT),
    (ForeignKeyDef, ObjectKind.FOREIGN_KEY),
)

# TableDef attribute holding each list-valued constraint kind
_CONSTRAINT_FIELDS = {
    ObjectKind.UNIQUE: "unique_constraints",
    ObjectKind.CHECK: "check_constraints",
    ObjectKind.DEFAULT: "default_constraints",
    ObjectKind.FOREIGN_KEY: "foreign_keys",
}


def constraint_kind(constraint: Constraint) -> ObjectKind:
    for cls, kind in _CONSTRAINT_KINDS:
        if isinstance(constraint, cls):
            return kind
    raise ValidationError(f"Not a constraint definition: {type(constraint).__name__}")


def _same_name(a: Optional[str], b: Optional[str]) -> bool:
    return a is not None and b is not None and a.lower() == b.lower()


def _find_named(items: Sequence[Any], name: Optional[str]) -> Optional[Any]:
    if name is None:
        return None
    for item in items:
        if _same_name(item.name, name):
            return item
    return None


def _has_column(columns: Sequence[str], column_name: str) -> bool:
    return any(_same_name(c, column_name) for c in columns)


class DialectMethods(ABC):
    """
    Dialect Methods Provider base class.

    Subclasses set dialect_class and loader_class, and override the hooks
    where their database differs (SQLite rebuilds tables, MySQL gates CHECK
    constraints on the server version).
    """

    dialect_class: Type[SchemaDialect] = SchemaDialect
    loader_class: Type[SchemaLoader] = SchemaLoader

    def __init__(self, registry: Optional[TypeRegistry] = None):
        """
        Initialize the provider.

        Args:
            registry: Type registry to use (the dialect's built-in registry by default)
        """
        self.dialect = self.dialect_class()
        self.registry = registry if registry is not None else get_type_registry(self.dialect.family)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.dialect.family})"

    # ==================== Capabilities ====================

    @property
    def family(self) -> str:
        return self.dialect.family

    @property
    def supports_schemas(self) -> bool:
        return self.dialect.supports_schemas

    @property
    def supports_check_constraints(self) -> bool:
        return self.dialect.supports_check_constraints

    @property
    def supports_ordered_index_columns(self) -> bool:
        return self.dialect.supports_ordered_index_columns

    @property
    def supports_native_structured_types(self) -> bool:
        return self.dialect.supports_native_structured_types

    def check_constraints_enabled(self, db: DbConnection, tx: Optional[Transaction] = None,
                                  cancellation: Optional[CancellationToken] = None) -> bool:
        """Whether the connected server enforces CHECK constraints."""
        return self.supports_check_constraints

    # ==================== Internals ====================

    def _loader(self, db: DbConnection, tx: Optional[Transaction],
                cancellation: Optional[CancellationToken]) -> SchemaLoader:
        return self.loader_class(db, self.dialect, self.registry, tx, cancellation)

    def _schema(self, schema_name: Optional[str]) -> Optional[str]:
        return self.dialect.effective_schema(schema_name)

    def _execute(self, db: DbConnection, sql: str, tx: Optional[Transaction],
                 cancellation: Optional[CancellationToken], object_ref: Any = None,
                 params: Optional[Sequence[Any]] = None) -> int:
        check_cancelled(cancellation, object_ref)
        try:
            return db.execute(sql, params, tx=tx, cancellation=cancellation)
        except DriverError as e:
            if e.object_ref is None:
                e.object_ref = object_ref
            raise

    def _execute_all(self, db: DbConnection, statements: Sequence[str], tx: Optional[Transaction],
                     cancellation: Optional[CancellationToken], object_ref: Any = None) -> None:
        for sql in statements:
            self._execute(db, sql, tx, cancellation, object_ref)

    def _should_verify(self, verify: Optional[bool]) -> bool:
        return get_settings().verify_after_create if verify is None else verify

    def _validate_table_expressions(self, table: TableDef) -> None:
        if not get_settings().validate_expressions:
            return
        for check in table.check_constraints:
            validate_check_expression(check.expression)
        for default in table.default_constraints:
            validate_default_expression(default.expression)

    def _validate_constraint(self, constraint: Constraint) -> None:
        if not get_settings().validate_expressions:
            return
        if isinstance(constraint, CheckDef):
            validate_check_expression(constraint.expression)
        elif isinstance(constraint, DefaultDef):
            validate_default_expression(constraint.expression)

    def _load_table(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                    tx: Optional[Transaction], cancellation: Optional[CancellationToken]) -> Optional[TableDef]:
        return self._loader(db, tx, cancellation).load_table(self._schema(schema_name), table_name)

    def _require_table(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                       tx: Optional[Transaction], cancellation: Optional[CancellationToken]) -> TableDef:
        table = self._load_table(db, schema_name, table_name, tx, cancellation)
        if table is None:
            raise ObjectNotFoundError(f"Table '{table_name}' does not exist",
                                      object_ref=ObjectRef.table(table_name, schema_name))
        return table

    # ==================== Server information ====================

    def get_database_version(self, db: DbConnection, tx: Optional[Transaction] = None,
                             cancellation: Optional[CancellationToken] = None) -> Tuple[int, ...]:
        """Server version as an int tuple, e.g. (16, 2)."""
        return extract_version(self._loader(db, tx, cancellation).version_text())

    def discover_custom_data_types(self, db: DbConnection, tx: Optional[Transaction] = None,
                                   cancellation: Optional[CancellationToken] = None) -> List[ProviderDataType]:
        """User-defined types of the database (PostgreSQL domains, enums, composites)."""
        return self._loader(db, tx, cancellation).custom_types()

    def get_type_registry(self, db: DbConnection, tx: Optional[Transaction] = None,
                          cancellation: Optional[CancellationToken] = None) -> TypeRegistry:
        """Built-in registry extended (copy-on-extend) with the database's custom types."""
        custom = self.discover_custom_data_types(db, tx, cancellation)
        return self.registry.extend(custom) if custom else self.registry

    def get_data_types(self, db: DbConnection, category: Optional[DataTypeCategory] = None,
                       common_only: bool = False, tx: Optional[Transaction] = None,
                       cancellation: Optional[CancellationToken] = None) -> List[ProviderDataType]:
        """Registered data types (custom types included), ordered by category then name."""
        registry = self.get_type_registry(db, tx, cancellation)
        return registry.list_data_types(category, common_only)

    # ==================== Schemas ====================

    def does_schema_exist(self, db: DbConnection, schema_name: str, tx: Optional[Transaction] = None,
                          cancellation: Optional[CancellationToken] = None) -> bool:
        self.dialect._require_schemas("schema exists", schema_name)
        return self._loader(db, tx, cancellation).find_schema(schema_name) is not None

    def create_schema_if_not_exists(self, db: DbConnection, schema_name: str,
                                    tx: Optional[Transaction] = None,
                                    cancellation: Optional[CancellationToken] = None) -> bool:
        sql = self.dialect.create_schema_sql(schema_name)
        if self.does_schema_exist(db, schema_name, tx, cancellation):
            logger.debug(f"Schema {schema_name} already exists")
            return False
        self._execute(db, sql, tx, cancellation, ObjectRef.schema(schema_name))
        return True

    def drop_schema_if_exists(self, db: DbConnection, schema_name: str, tx: Optional[Transaction] = None,
                              cancellation: Optional[CancellationToken] = None) -> bool:
        sql = self.dialect.drop_schema_sql(schema_name)
        if not self.does_schema_exist(db, schema_name, tx, cancellation):
            logger.debug(f"Schema {schema_name} does not exist")
            return False
        self._execute(db, sql, tx, cancellation, ObjectRef.schema(schema_name))
        return True

    def rename_schema_if_exists(self, db: DbConnection, schema_name: str, new_name: str,
                                tx: Optional[Transaction] = None,
                                cancellation: Optional[CancellationToken] = None) -> bool:
        sql = self.dialect.rename_schema_sql(schema_name, new_name)
        if not self.does_schema_exist(db, schema_name, tx, cancellation):
            return False
        if self.does_schema_exist(db, new_name, tx, cancellation):
            raise ObjectAlreadyExistsError(f"Schema '{new_name}' already exists",
                                           object_ref=ObjectRef.schema(new_name))
        self._execute(db, sql, tx, cancellation, ObjectRef.schema(schema_name))
        return True

    def get_schema_names(self, db: DbConnection, name_filter: Optional[str] = None,
                         tx: Optional[Transaction] = None,
                         cancellation: Optional[CancellationToken] = None) -> List[str]:
        self.dialect._require_schemas("list schemas")
        loader = self._loader(db, tx, cancellation)
        return loader.name_filter(name_filter).filter(loader.schema_names())

    # ==================== Tables ====================

    def does_table_exist(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                         tx: Optional[Transaction] = None,
                         cancellation: Optional[CancellationToken] = None) -> bool:
        loader = self._loader(db, tx, cancellation)
        return loader.find_table(self._schema(schema_name), table_name) is not None

    def _create_table_statements(self, db: DbConnection, table: TableDef, tx: Optional[Transaction],
                                 cancellation: Optional[CancellationToken]) -> Tuple[str, List[str], List[str]]:
        """(CREATE TABLE body, foreign key statements, index statements)."""
        include_checks = True
        if table.check_constraints and not self.check_constraints_enabled(db, tx, cancellation):
            logger.warning(f"Server does not enforce CHECK constraints; "
                           f"creating {table.qualified_name} without them")
            include_checks = False
        body = self.dialect.create_table_sql(table, self.registry, include_checks=include_checks)
        schema = table.schema_name
        foreign_keys = [self.dialect.add_foreign_key_sql(schema, table.name, fk) for fk in table.foreign_keys]
        indexes = [self.dialect.create_index_sql(schema, table.name, ix) for ix in table.indexes]
        return body, foreign_keys, indexes

    def _verify_table(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                      tx: Optional[Transaction], cancellation: Optional[CancellationToken]) -> None:
        if self._load_table(db, schema_name, table_name, tx, cancellation) is None:
            raise ObjectNotFoundError(f"Table '{table_name}' was created but cannot be read back",
                                      object_ref=ObjectRef.table(table_name, schema_name))

    def create_table_if_not_exists(self, db: DbConnection, table: TableDef, tx: Optional[Transaction] = None,
                                   cancellation: Optional[CancellationToken] = None,
                                   verify: Optional[bool] = None) -> bool:
        """
        Create a table with its constraints and indexes unless it exists.

        Statements run in dependency order: table body (columns, defaults,
        primary key, unique and check constraints), then foreign keys, then
        indexes.

        Args:
            db: Target connection
            table: Table definition
            tx: Caller transaction
            cancellation: Token checked before each statement
            verify: Re-introspect the table afterwards (settings default when None)

        Returns:
            True if the table was created, False if it already existed
        """
        self._validate_table_expressions(table)
        body, foreign_keys, indexes = self._create_table_statements(db, table, tx, cancellation)
        if self.does_table_exist(db, table.schema_name, table.name, tx, cancellation):
            logger.debug(f"Table {table.qualified_name} already exists")
            return False

        ref = ObjectRef.table(table.name, table.schema_name)
        self._execute_all(db, [body] + foreign_keys + indexes, tx, cancellation, ref)
        logger.info(f"Created table {table.qualified_name}")
        if self._should_verify(verify):
            self._verify_table(db, table.schema_name, table.name, tx, cancellation)
        return True

    def create_tables_if_not_exist(self, db: DbConnection, tables: Sequence[TableDef],
                                   tx: Optional[Transaction] = None,
                                   cancellation: Optional[CancellationToken] = None,
                                   verify: Optional[bool] = None) -> List[bool]:
        """
        Create several tables at once.

        Every table body is created first, so foreign keys between tables of
        the batch can reference each other regardless of list order; foreign
        keys follow, indexes come last.

        Returns:
            One flag per table (True = created)
        """
        for table in tables:
            self._validate_table_expressions(table)
        planned = [(t, self._create_table_statements(db, t, tx, cancellation)) for t in tables]

        created = []
        for table, _ in planned:
            exists = self.does_table_exist(db, table.schema_name, table.name, tx, cancellation)
            if exists:
                logger.debug(f"Table {table.qualified_name} already exists")
            created.append(not exists)

        for (table, (body, _, _)), flag in zip(planned, created):
            if flag:
                self._execute(db, body, tx, cancellation, ObjectRef.table(table.name, table.schema_name))
        for (table, (_, foreign_keys, _)), flag in zip(planned, created):
            if flag:
                self._execute_all(db, foreign_keys, tx, cancellation,
                                  ObjectRef.table(table.name, table.schema_name))
        for (table, (_, _, indexes)), flag in zip(planned, created):
            if flag:
                self._execute_all(db, indexes, tx, cancellation,
                                  ObjectRef.table(table.name, table.schema_name))

        if self._should_verify(verify):
            for (table, _), flag in zip(planned, created):
                if flag:
                    self._verify_table(db, table.schema_name, table.name, tx, cancellation)
        return created

    def _drop_table_statements(self, db: DbConnection, table: TableDef, tx: Optional[Transaction],
                               cancellation: Optional[CancellationToken]) -> List[str]:
        schema = table.schema_name
        statements = []
        if self.dialect.supports_alter_constraints:
            for fk in table.foreign_keys:
                statements.append(self._drop_constraint_sql(db, table, fk, tx, cancellation))
            for index in table.indexes:
                statements.append(self.dialect.drop_index_sql(schema, table.name, index.name))
            for check in table.check_constraints:
                statements.append(self._drop_constraint_sql(db, table, check, tx, cancellation))
            for unique in table.unique_constraints:
                statements.append(self._drop_constraint_sql(db, table, unique, tx, cancellation))
            if self.dialect.supports_named_defaults:
                for default in table.default_constraints:
                    statements.append(self._drop_constraint_sql(db, table, default, tx, cancellation))
        statements.append(self.dialect.drop_table_sql(schema, table.name))
        return statements

    def drop_table_if_exists(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                             tx: Optional[Transaction] = None,
                             cancellation: Optional[CancellationToken] = None) -> bool:
        """Drop a table (foreign keys, indexes and constraints first) if it exists."""
        table = self._load_table(db, schema_name, table_name, tx, cancellation)
        if table is None:
            logger.debug(f"Table {table_name} does not exist")
            return False
        statements = self._drop_table_statements(db, table, tx, cancellation)
        self._execute_all(db, statements, tx, cancellation, ObjectRef.table(table.name, table.schema_name))
        logger.info(f"Dropped table {table.qualified_name}")
        return True

    def rename_table_if_exists(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                               new_name: str, tx: Optional[Transaction] = None,
                               cancellation: Optional[CancellationToken] = None) -> bool:
        loader = self._loader(db, tx, cancellation)
        schema = self._schema(schema_name)
        current = loader.find_table(schema, table_name)
        if current is None:
            return False
        target = loader.find_table(schema, new_name)
        if target is not None and not _same_name(target, current):
            raise ObjectAlreadyExistsError(f"Table '{new_name}' already exists",
                                           object_ref=ObjectRef.table(new_name, schema_name))
        self._execute(db, self.dialect.rename_table_sql(schema, current, new_name), tx, cancellation,
                      ObjectRef.table(current, schema))
        return True

    def truncate_table_if_exists(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                                 tx: Optional[Transaction] = None,
                                 cancellation: Optional[CancellationToken] = None) -> bool:
        schema = self._schema(schema_name)
        current = self._loader(db, tx, cancellation).find_table(schema, table_name)
        if current is None:
            return False
        self._execute_all(db, self.dialect.truncate_table_sql(schema, current), tx, cancellation,
                          ObjectRef.table(current, schema))
        return True

    def get_table(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                  tx: Optional[Transaction] = None,
                  cancellation: Optional[CancellationToken] = None) -> Optional[TableDef]:
        return self._load_table(db, schema_name, table_name, tx, cancellation)

    def get_tables(self, db: DbConnection, schema_name: Optional[str] = None,
                   name_filter: Optional[str] = None, tx: Optional[Transaction] = None,
                   cancellation: Optional[CancellationToken] = None) -> List[TableDef]:
        return self._loader(db, tx, cancellation).load_tables(self._schema(schema_name), name_filter)

    def get_table_names(self, db: DbConnection, schema_name: Optional[str] = None,
                        name_filter: Optional[str] = None, tx: Optional[Transaction] = None,
                        cancellation: Optional[CancellationToken] = None) -> List[str]:
        loader = self._loader(db, tx, cancellation)
        return loader.name_filter(name_filter).filter(loader.table_names(self._schema(schema_name)))

    # ==================== Table changes ====================

    def _apply_change(self, db: DbConnection, current: TableDef, changed: TableDef,
                      build: Callable[[], List[str]], tx: Optional[Transaction],
                      cancellation: Optional[CancellationToken], rebuild_required: bool = True) -> None:
        """
        Bring a table from its current to its changed shape.

        Dialects with ALTER support run the statements returned by build();
        SQLite overrides this to rebuild the table when rebuild_required.
        """
        self._execute_all(db, build(), tx, cancellation, ObjectRef.table(current.name, current.schema_name))

    @staticmethod
    def _swap_constraint(table: TableDef, old: Optional[Constraint], new: Optional[Constraint]) -> TableDef:
        """Copy of table with old replaced by new (old None = add, new None = remove)."""
        kind = constraint_kind(old if old is not None else new)
        if kind == ObjectKind.PRIMARY_KEY:
            return replace(table, primary_key=new)
        field_name = _CONSTRAINT_FIELDS[kind]
        items = list(getattr(table, field_name))
        if old is None:
            items.append(new)
        elif new is None:
            items = [c for c in items if c is not old]
        else:
            items = [new if c is old else c for c in items]
        return replace(table, **{field_name: items})

    @staticmethod
    def _named_constraint(table: TableDef, constraint: Constraint) -> Constraint:
        """Copy of the constraint with a synthesized name when it has none."""
        if constraint.name:
            return constraint
        if isinstance(constraint, PrimaryKeyDef):
            name = primary_key_name(table.name, constraint.columns)
        elif isinstance(constraint, UniqueDef):
            name = unique_constraint_name(table.name, constraint.columns)
        elif isinstance(constraint, CheckDef):
            if constraint.column_name:
                name = check_constraint_name(table.name, constraint.column_name)
            else:
                name = numbered_check_constraint_name(table.name, [c.name for c in table.check_constraints])
        elif isinstance(constraint, DefaultDef):
            name = default_constraint_name(table.name, constraint.column_name)
        else:
            name = foreign_key_name(table.name, constraint.columns, constraint.referenced_table,
                                    constraint.referenced_columns)
        return replace(constraint, name=name)

    @staticmethod
    def _find_constraint(table: TableDef, kind: ObjectKind, name: Optional[str]) -> Optional[Constraint]:
        if kind == ObjectKind.PRIMARY_KEY:
            pk = table.primary_key
            if pk is None or (name is not None and not _same_name(pk.name, name)):
                return None
            return pk
        return _find_named(getattr(table, _CONSTRAINT_FIELDS[kind]), name)

    def _add_constraint_sql(self, db: DbConnection, table: TableDef, constraint: Constraint,
                            tx: Optional[Transaction], cancellation: Optional[CancellationToken]) -> str:
        schema, name = table.schema_name, table.name
        if isinstance(constraint, PrimaryKeyDef):
            return self.dialect.add_primary_key_sql(schema, name, constraint)
        if isinstance(constraint, UniqueDef):
            return self.dialect.add_unique_sql(schema, name, constraint)
        if isinstance(constraint, CheckDef):
            return self.dialect.add_check_sql(schema, name, constraint)
        if isinstance(constraint, DefaultDef):
            return self.dialect.add_default_sql(schema, name, constraint)
        return self.dialect.add_foreign_key_sql(schema, name, constraint)

    def _drop_constraint_sql(self, db: DbConnection, table: TableDef, constraint: Constraint,
                             tx: Optional[Transaction], cancellation: Optional[CancellationToken]) -> str:
        schema, name = table.schema_name, table.name
        if isinstance(constraint, PrimaryKeyDef):
            return self.dialect.drop_primary_key_sql(schema, name, constraint.name)
        if isinstance(constraint, UniqueDef):
            return self.dialect.drop_unique_sql(schema, name, constraint.name)
        if isinstance(constraint, CheckDef):
            return self.dialect.drop_check_sql(schema, name, constraint.name)
        if isinstance(constraint, DefaultDef):
            return self.dialect.drop_default_sql(schema, name, constraint)
        return self.dialect.drop_foreign_key_sql(schema, name, constraint.name)

    def _ensure_renamable(self, kind: ObjectKind) -> None:
        if kind == ObjectKind.DEFAULT and not self.dialect.supports_named_defaults:
            raise UnsupportedOperationError(f"{self.family} defaults have no names to rename")

    def _create_constraint(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                           constraint: Constraint, tx: Optional[Transaction],
                           cancellation: Optional[CancellationToken]) -> bool:
        kind = constraint_kind(constraint)
        self._validate_constraint(constraint)
        if kind == ObjectKind.CHECK and not self.check_constraints_enabled(db, tx, cancellation):
            raise UnsupportedOperationError("The server does not support CHECK constraints",
                                            object_ref=constraint.name)
        current = self._require_table(db, schema_name, table_name, tx, cancellation)
        constraint = self._named_constraint(current, constraint)

        if kind == ObjectKind.PRIMARY_KEY and current.primary_key is not None:
            logger.debug(f"Table {current.qualified_name} already has a primary key")
            return False
        if kind == ObjectKind.DEFAULT and current.get_default(constraint.column_name) is not None:
            logger.debug(f"Column {current.name}.{constraint.column_name} already has a default")
            return False
        if self._find_constraint(current, kind, constraint.name) is not None:
            logger.debug(f"Constraint {constraint.name} already exists on {current.qualified_name}")
            return False

        changed = self._swap_constraint(current, None, constraint)
        self._apply_change(
            db, current, changed,
            lambda: [self._add_constraint_sql(db, current, constraint, tx, cancellation)],
            tx, cancellation)
        return True

    def _drop_constraint(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                         kind: ObjectKind, name: Optional[str], tx: Optional[Transaction],
                         cancellation: Optional[CancellationToken]) -> bool:
        current = self._load_table(db, schema_name, table_name, tx, cancellation)
        if current is None:
            return False
        constraint = self._find_constraint(current, kind, name)
        if constraint is None:
            return False
        changed = self._swap_constraint(current, constraint, None)
        self._apply_change(
            db, current, changed,
            lambda: [self._drop_constraint_sql(db, current, constraint, tx, cancellation)],
            tx, cancellation)
        return True

    def _rename_constraint(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                           kind: ObjectKind, name: Optional[str], new_name: str,
                           tx: Optional[Transaction], cancellation: Optional[CancellationToken]) -> bool:
        self._ensure_renamable(kind)
        current = self._load_table(db, schema_name, table_name, tx, cancellation)
        if current is None:
            return False
        constraint = self._find_constraint(current, kind, name)
        if constraint is None:
            return False
        existing = [c for c in current.constraints() if _same_name(c.name, new_name) and c is not constraint]
        if existing:
            raise ObjectAlreadyExistsError(f"Constraint '{new_name}' already exists",
                                           object_ref=ObjectRef.constraint(kind, current.name, new_name,
                                                                           current.schema_name))
        renamed = replace(constraint, name=new_name)
        changed = self._swap_constraint(current, constraint, renamed)

        def build() -> List[str]:
            sql = self.dialect.rename_constraint_sql(current.schema_name, current.name,
                                                     constraint.name, new_name, kind)
            if sql:
                return [sql]
            return [self._drop_constraint_sql(db, current, constraint, tx, cancellation),
                    self._add_constraint_sql(db, current, renamed, tx, cancellation)]

        self._apply_change(db, current, changed, build, tx, cancellation)
        return True

    # ==================== Columns ====================

    def does_column_exist(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                          column_name: str, tx: Optional[Transaction] = None,
                          cancellation: Optional[CancellationToken] = None) -> bool:
        return self.get_column(db, schema_name, table_name, column_name, tx, cancellation) is not None

    def create_column_if_not_exists(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                                    column: ColumnDef, tx: Optional[Transaction] = None,
                                    cancellation: Optional[CancellationToken] = None) -> bool:
        """
        Add a column (and the constraints its shortcuts describe) unless it exists.

        Raises:
            ObjectNotFoundError: The table does not exist
        """
        if get_settings().validate_expressions:
            if column.check_expression:
                validate_check_expression(column.check_expression)
            if column.default_expression:
                validate_default_expression(column.default_expression)
        current = self._require_table(db, schema_name, table_name, tx, cancellation)
        if current.get_column(column.name) is not None:
            logger.debug(f"Column {current.name}.{column.name} already exists")
            return False

        # A one-column table folds the shortcuts and synthesizes constraint names
        fragment = TableDef(current.name, [column], current.schema_name)
        new_column = fragment.columns[0]
        if fragment.primary_key is not None and current.primary_key is not None:
            raise ValidationError(f"Table '{current.name}' already has a primary key",
                                  object_ref=ObjectRef.column(current.name, column.name, schema_name))
        changed = replace(
            current,
            columns=current.columns + [new_column],
            primary_key=fragment.primary_key or current.primary_key,
            unique_constraints=current.unique_constraints + fragment.unique_constraints,
            check_constraints=current.check_constraints + fragment.check_constraints,
            default_constraints=current.default_constraints + fragment.default_constraints,
            foreign_keys=current.foreign_keys + fragment.foreign_keys,
            indexes=current.indexes + fragment.indexes,
        )

        def build() -> List[str]:
            schema = current.schema_name
            statements = [self.dialect.add_column_sql(schema, current.name, new_column, self.registry,
                                                      fragment.get_default(new_column.name))]
            for constraint in fragment.constraints():
                if not isinstance(constraint, DefaultDef):
                    statements.append(self._add_constraint_sql(db, current, constraint, tx, cancellation))
            for index in fragment.indexes:
                statements.append(self.dialect.create_index_sql(schema, current.name, index))
            return statements

        self._apply_change(db, current, changed, build, tx, cancellation,
                           rebuild_required=bool(fragment.constraints()) or new_column.is_identity)
        return True

    def drop_column_if_exists(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                              column_name: str, tx: Optional[Transaction] = None,
                              cancellation: Optional[CancellationToken] = None) -> bool:
        """Drop a column, dropping the constraints and indexes that depend on it first."""
        current = self._load_table(db, schema_name, table_name, tx, cancellation)
        if current is None:
            return False
        column = current.get_column(column_name)
        if column is None:
            return False

        def uses(columns: Sequence[str]) -> bool:
            return _has_column(columns, column.name)

        pk = current.primary_key if current.primary_key is not None and uses(current.primary_key.columns) \
            else None
        foreign_keys = [fk for fk in current.foreign_keys if uses(fk.columns)]
        indexes = [ix for ix in current.indexes if uses(ix.column_names)]
        uniques = [u for u in current.unique_constraints if uses(u.columns)]
        checks = [c for c in current.check_constraints if _same_name(c.column_name, column.name)]
        default = current.get_default(column.name)

        changed = replace(
            current,
            columns=[c for c in current.columns if c is not column],
            primary_key=None if pk is not None else current.primary_key,
            unique_constraints=[u for u in current.unique_constraints if u not in uniques],
            check_constraints=[c for c in current.check_constraints if c not in checks],
            default_constraints=[d for d in current.default_constraints if d is not default],
            foreign_keys=[fk for fk in current.foreign_keys if fk not in foreign_keys],
            indexes=[ix for ix in current.indexes if ix not in indexes],
        )

        def build() -> List[str]:
            schema = current.schema_name
            statements = [self._drop_constraint_sql(db, current, fk, tx, cancellation) for fk in foreign_keys]
            statements += [self.dialect.drop_index_sql(schema, current.name, ix.name) for ix in indexes]
            statements += [self._drop_constraint_sql(db, current, c, tx, cancellation) for c in checks]
            statements += [self._drop_constraint_sql(db, current, u, tx, cancellation) for u in uniques]
            if default is not None and self.dialect.supports_named_defaults:
                statements.append(self._drop_constraint_sql(db, current, default, tx, cancellation))
            if pk is not None:
                statements.append(self._drop_constraint_sql(db, current, pk, tx, cancellation))
            statements.append(self.dialect.drop_column_sql(schema, current.name, column.name))
            return statements

        self._apply_change(db, current, changed, build, tx, cancellation)
        return True

    def rename_column_if_exists(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                                column_name: str, new_name: str, tx: Optional[Transaction] = None,
                                cancellation: Optional[CancellationToken] = None) -> bool:
        loader = self._loader(db, tx, cancellation)
        schema = self._schema(schema_name)
        table = loader.find_table(schema, table_name)
        if table is None:
            return False
        names = [c.name for c in loader.columns(schema, table)]
        current = loader._match_name(names, column_name)
        if current is None:
            return False
        target = loader._match_name(names, new_name)
        if target is not None and not _same_name(target, current):
            raise ObjectAlreadyExistsError(f"Column '{new_name}' already exists",
                                           object_ref=ObjectRef.column(table, new_name, schema))
        self._execute(db, self.dialect.rename_column_sql(schema, table, current, new_name), tx, cancellation,
                      ObjectRef.column(table, current, schema))
        return True

    def get_column(self, db: DbConnection, schema_name: Optional[str], table_name: str, column_name: str,
                   tx: Optional[Transaction] = None,
                   cancellation: Optional[CancellationToken] = None) -> Optional[ColumnDef]:
        loader = self._loader(db, tx, cancellation)
        schema = self._schema(schema_name)
        table = loader.find_table(schema, table_name)
        if table is None:
            return None
        columns = loader.columns(schema, table)
        return next((c for c in columns if _same_name(c.name, column_name)), None)

    def get_columns(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                    name_filter: Optional[str] = None, tx: Optional[Transaction] = None,
                    cancellation: Optional[CancellationToken] = None) -> List[ColumnDef]:
        loader = self._loader(db, tx, cancellation)
        schema = self._schema(schema_name)
        table = loader.find_table(schema, table_name)
        if table is None:
            return []
        return loader.name_filter(name_filter).filter(loader.columns(schema, table), key=lambda c: c.name)

    def get_column_names(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                         name_filter: Optional[str] = None, tx: Optional[Transaction] = None,
                         cancellation: Optional[CancellationToken] = None) -> List[str]:
        columns = self.get_columns(db, schema_name, table_name, name_filter, tx, cancellation)
        return [c.name for c in columns]

    # ==================== Primary keys ====================

    def does_primary_key_constraint_exist(self, db: DbConnection, schema_name: Optional[str],
                                          table_name: str, tx: Optional[Transaction] = None,
                                          cancellation: Optional[CancellationToken] = None) -> bool:
        return self.get_primary_key_constraint(db, schema_name, table_name, tx, cancellation) is not None

    def create_primary_key_constraint_if_not_exists(self, db: DbConnection, schema_name: Optional[str],
                                                    table_name: str, primary_key: PrimaryKeyDef,
                                                    tx: Optional[Transaction] = None,
                                                    cancellation: Optional[CancellationToken] = None) -> bool:
        return self._create_constraint(db, schema_name, table_name, primary_key, tx, cancellation)

    def drop_primary_key_constraint_if_exists(self, db: DbConnection, schema_name: Optional[str],
                                              table_name: str, tx: Optional[Transaction] = None,
                                              cancellation: Optional[CancellationToken] = None) -> bool:
        return self._drop_constraint(db, schema_name, table_name, ObjectKind.PRIMARY_KEY, None,
                                     tx, cancellation)

    def get_primary_key_constraint(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                                   tx: Optional[Transaction] = None,
                                   cancellation: Optional[CancellationToken] = None) -> Optional[PrimaryKeyDef]:
        loader = self._loader(db, tx, cancellation)
        schema = self._schema(schema_name)
        table = loader.find_table(schema, table_name)
        if table is None:
            return None
        return loader.primary_key(schema, table)

    # ==================== Constraint listings ====================

    def _list_constraints(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                          kind: ObjectKind, tx: Optional[Transaction],
                          cancellation: Optional[CancellationToken]) -> List[Constraint]:
        loader = self._loader(db, tx, cancellation)
        schema = self._schema(schema_name)
        table = loader.find_table(schema, table_name)
        if table is None:
            return []
        readers = {
            ObjectKind.UNIQUE: loader.unique_constraints,
            ObjectKind.CHECK: loader.check_constraints,
            ObjectKind.DEFAULT: loader.default_constraints,
            ObjectKind.FOREIGN_KEY: loader.foreign_keys,
        }
        return readers[kind](schema, table)

    def _get_constraint(self, db, schema_name, table_name, kind, name, tx, cancellation):
        return _find_named(self._list_constraints(db, schema_name, table_name, kind, tx, cancellation), name)

    def _filter_constraints(self, db, schema_name, table_name, kind, name_filter, tx, cancellation):
        items = self._list_constraints(db, schema_name, table_name, kind, tx, cancellation)
        return self._loader(db, tx, cancellation).name_filter(name_filter).filter(items, key=lambda c: c.name)

    # ==================== Unique constraints ====================

    def does_unique_constraint_exist(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                                     constraint_name: str, tx: Optional[Transaction] = None,
                                     cancellation: Optional[CancellationToken] = None) -> bool:
        return self.get_unique_constraint(db, schema_name, table_name, constraint_name,
                                          tx, cancellation) is not None

    def create_unique_constraint_if_not_exists(self, db: DbConnection, schema_name: Optional[str],
                                               table_name: str, unique: UniqueDef,
                                               tx: Optional[Transaction] = None,
                                               cancellation: Optional[CancellationToken] = None) -> bool:
        return self._create_constraint(db, schema_name, table_name, unique, tx, cancellation)

    def drop_unique_constraint_if_exists(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                                         constraint_name: str, tx: Optional[Transaction] = None,
                                         cancellation: Optional[CancellationToken] = None) -> bool:
        return self._drop_constraint(db, schema_name, table_name, ObjectKind.UNIQUE, constraint_name,
                                     tx, cancellation)

    def rename_unique_constraint_if_exists(self, db: DbConnection, schema_name: Optional[str],
                                           table_name: str, constraint_name: str, new_name: str,
                                           tx: Optional[Transaction] = None,
                                           cancellation: Optional[CancellationToken] = None) -> bool:
        return self._rename_constraint(db, schema_name, table_name, ObjectKind.UNIQUE, constraint_name,
                                       new_name, tx, cancellation)

    def get_unique_constraint(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                              constraint_name: str, tx: Optional[Transaction] = None,
                              cancellation: Optional[CancellationToken] = None) -> Optional[UniqueDef]:
        return self._get_constraint(db, schema_name, table_name, ObjectKind.UNIQUE, constraint_name,
                                    tx, cancellation)

    def get_unique_constraints(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                               name_filter: Optional[str] = None, tx: Optional[Transaction] = None,
                               cancellation: Optional[CancellationToken] = None) -> List[UniqueDef]:
        return self._filter_constraints(db, schema_name, table_name, ObjectKind.UNIQUE, name_filter,
                                        tx, cancellation)

    # ==================== Check constraints ====================

    def does_check_constraint_exist(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                                    constraint_name: str, tx: Optional[Transaction] = None,
                                    cancellation: Optional[CancellationToken] = None) -> bool:
        return self.get_check_constraint(db, schema_name, table_name, constraint_name,
                                         tx, cancellation) is not None

    def does_check_constraint_exist_on_column(self, db: DbConnection, schema_name: Optional[str],
                                              table_name: str, column_name: str,
                                              tx: Optional[Transaction] = None,
                                              cancellation: Optional[CancellationToken] = None) -> bool:
        return self.get_check_constraint_on_column(db, schema_name, table_name, column_name,
                                                   tx, cancellation) is not None

    def create_check_constraint_if_not_exists(self, db: DbConnection, schema_name: Optional[str],
                                              table_name: str, check: CheckDef,
                                              tx: Optional[Transaction] = None,
                                              cancellation: Optional[CancellationToken] = None) -> bool:
        return self._create_constraint(db, schema_name, table_name, check, tx, cancellation)

    def drop_check_constraint_if_exists(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                                        constraint_name: str, tx: Optional[Transaction] = None,
                                        cancellation: Optional[CancellationToken] = None) -> bool:
        return self._drop_constraint(db, schema_name, table_name, ObjectKind.CHECK, constraint_name,
                                     tx, cancellation)

    def drop_check_constraint_on_column_if_exists(self, db: DbConnection, schema_name: Optional[str],
                                                  table_name: str, column_name: str,
                                                  tx: Optional[Transaction] = None,
                                                  cancellation: Optional[CancellationToken] = None) -> bool:
        check = self.get_check_constraint_on_column(db, schema_name, table_name, column_name,
                                                    tx, cancellation)
        if check is None:
            return False
        return self.drop_check_constraint_if_exists(db, schema_name, table_name, check.name, tx, cancellation)

    def rename_check_constraint_if_exists(self, db: DbConnection, schema_name: Optional[str],
                                          table_name: str, constraint_name: str, new_name: str,
                                          tx: Optional[Transaction] = None,
                                          cancellation: Optional[CancellationToken] = None) -> bool:
        return self._rename_constraint(db, schema_name, table_name, ObjectKind.CHECK, constraint_name,
                                       new_name, tx, cancellation)

    def get_check_constraint(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                             constraint_name: str, tx: Optional[Transaction] = None,
                             cancellation: Optional[CancellationToken] = None) -> Optional[CheckDef]:
        return self._get_constraint(db, schema_name, table_name, ObjectKind.CHECK, constraint_name,
                                    tx, cancellation)

    def get_check_constraint_on_column(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                                       column_name: str, tx: Optional[Transaction] = None,
                                       cancellation: Optional[CancellationToken] = None) -> Optional[CheckDef]:
        checks = self._list_constraints(db, schema_name, table_name, ObjectKind.CHECK, tx, cancellation)
        return next((c for c in checks if _same_name(c.column_name, column_name)), None)

    def get_check_constraints(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                              name_filter: Optional[str] = None, tx: Optional[Transaction] = None,
                              cancellation: Optional[CancellationToken] = None) -> List[CheckDef]:
        return self._filter_constraints(db, schema_name, table_name, ObjectKind.CHECK, name_filter,
                                        tx, cancellation)

    # ==================== Default constraints ====================

    def does_default_constraint_exist(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                                      constraint_name: str, tx: Optional[Transaction] = None,
                                      cancellation: Optional[CancellationToken] = None) -> bool:
        return self.get_default_constraint(db, schema_name, table_name, constraint_name,
                                           tx, cancellation) is not None

    def does_default_constraint_exist_on_column(self, db: DbConnection, schema_name: Optional[str],
                                                table_name: str, column_name: str,
                                                tx: Optional[Transaction] = None,
                                                cancellation: Optional[CancellationToken] = None) -> bool:
        return self.get_default_constraint_on_column(db, schema_name, table_name, column_name,
                                                     tx, cancellation) is not None

    def create_default_constraint_if_not_exists(self, db: DbConnection, schema_name: Optional[str],
                                                table_name: str, default: DefaultDef,
                                                tx: Optional[Transaction] = None,
                                                cancellation: Optional[CancellationToken] = None) -> bool:
        return self._create_constraint(db, schema_name, table_name, default, tx, cancellation)

    def drop_default_constraint_if_exists(self, db: DbConnection, schema_name: Optional[str],
                                          table_name: str, constraint_name: str,
                                          tx: Optional[Transaction] = None,
                                          cancellation: Optional[CancellationToken] = None) -> bool:
        return self._drop_constraint(db, schema_name, table_name, ObjectKind.DEFAULT, constraint_name,
                                     tx, cancellation)

    def drop_default_constraint_on_column_if_exists(self, db: DbConnection, schema_name: Optional[str],
                                                    table_name: str, column_name: str,
                                                    tx: Optional[Transaction] = None,
                                                    cancellation: Optional[CancellationToken] = None) -> bool:
        default = self.get_default_constraint_on_column(db, schema_name, table_name, column_name,
                                                        tx, cancellation)
        if default is None:
            return False
        return self.drop_default_constraint_if_exists(db, schema_name, table_name, default.name,
                                                      tx, cancellation)

    def rename_default_constraint_if_exists(self, db: DbConnection, schema_name: Optional[str],
                                            table_name: str, constraint_name: str, new_name: str,
                                            tx: Optional[Transaction] = None,
                                            cancellation: Optional[CancellationToken] = None) -> bool:
        return self._rename_constraint(db, schema_name, table_name, ObjectKind.DEFAULT, constraint_name,
                                       new_name, tx, cancellation)

    def get_default_constraint(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                               constraint_name: str, tx: Optional[Transaction] = None,
                               cancellation: Optional[CancellationToken] = None) -> Optional[DefaultDef]:
        return self._get_constraint(db, schema_name, table_name, ObjectKind.DEFAULT, constraint_name,
                                    tx, cancellation)

    def get_default_constraint_on_column(self, db: DbConnection, schema_name: Optional[str],
                                         table_name: str, column_name: str,
                                         tx: Optional[Transaction] = None,
                                         cancellation: Optional[CancellationToken] = None) -> Optional[DefaultDef]:
        defaults = self._list_constraints(db, schema_name, table_name, ObjectKind.DEFAULT, tx, cancellation)
        return next((d for d in defaults if _same_name(d.column_name, column_name)), None)

    def get_default_constraints(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                                name_filter: Optional[str] = None, tx: Optional[Transaction] = None,
                                cancellation: Optional[CancellationToken] = None) -> List[DefaultDef]:
        return self._filter_constraints(db, schema_name, table_name, ObjectKind.DEFAULT, name_filter,
                                        tx, cancellation)

    # ==================== Foreign keys ====================

    def does_foreign_key_constraint_exist(self, db: DbConnection, schema_name: Optional[str],
                                          table_name: str, constraint_name: str,
                                          tx: Optional[Transaction] = None,
                                          cancellation: Optional[CancellationToken] = None) -> bool:
        return self.get_foreign_key_constraint(db, schema_name, table_name, constraint_name,
                                               tx, cancellation) is not None

    def create_foreign_key_constraint_if_not_exists(self, db: DbConnection, schema_name: Optional[str],
                                                    table_name: str, foreign_key: ForeignKeyDef,
                                                    tx: Optional[Transaction] = None,
                                                    cancellation: Optional[CancellationToken] = None) -> bool:
        return self._create_constraint(db, schema_name, table_name, foreign_key, tx, cancellation)

    def drop_foreign_key_constraint_if_exists(self, db: DbConnection, schema_name: Optional[str],
                                              table_name: str, constraint_name: str,
                                              tx: Optional[Transaction] = None,
                                              cancellation: Optional[CancellationToken] = None) -> bool:
        return self._drop_constraint(db, schema_name, table_name, ObjectKind.FOREIGN_KEY, constraint_name,
                                     tx, cancellation)

    def rename_foreign_key_constraint_if_exists(self, db: DbConnection, schema_name: Optional[str],
                                                table_name: str, constraint_name: str, new_name: str,
                                                tx: Optional[Transaction] = None,
                                                cancellation: Optional[CancellationToken] = None) -> bool:
        return self._rename_constraint(db, schema_name, table_name, ObjectKind.FOREIGN_KEY,
                                       constraint_name, new_name, tx, cancellation)

    def get_foreign_key_constraint(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                                   constraint_name: str, tx: Optional[Transaction] = None,
                                   cancellation: Optional[CancellationToken] = None) -> Optional[ForeignKeyDef]:
        return self._get_constraint(db, schema_name, table_name, ObjectKind.FOREIGN_KEY, constraint_name,
                                    tx, cancellation)

    def get_foreign_key_constraints(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                                    name_filter: Optional[str] = None, tx: Optional[Transaction] = None,
                                    cancellation: Optional[CancellationToken] = None) -> List[ForeignKeyDef]:
        return self._filter_constraints(db, schema_name, table_name, ObjectKind.FOREIGN_KEY, name_filter,
                                        tx, cancellation)

    # ==================== Indexes ====================

    def _list_indexes(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                      tx: Optional[Transaction], cancellation: Optional[CancellationToken]) -> List[IndexDef]:
        loader = self._loader(db, tx, cancellation)
        schema = self._schema(schema_name)
        table = loader.find_table(schema, table_name)
        if table is None:
            return []
        return loader.indexes(schema, table)

    def does_index_exist(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                         index_name: str, tx: Optional[Transaction] = None,
                         cancellation: Optional[CancellationToken] = None) -> bool:
        return self.get_index(db, schema_name, table_name, index_name, tx, cancellation) is not None

    def create_index_if_not_exists(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                                   index: IndexDef, tx: Optional[Transaction] = None,
                                   cancellation: Optional[CancellationToken] = None) -> bool:
        """
        Create an index unless one with the same name exists on the table.

        Raises:
            UnsupportedOperationError: Descending columns on a dialect without ordered index columns
            ObjectNotFoundError: The table does not exist
        """
        self.dialect.index_columns(index)
        current = self._require_table(db, schema_name, table_name, tx, cancellation)
        if not index.name:
            index = replace(index, name=synthesized_index_name(current.name, index.column_names))
        if _find_named(current.indexes, index.name) is not None:
            logger.debug(f"Index {index.name} already exists on {current.qualified_name}")
            return False
        current.validate_index(index)
        self._execute(db, self.dialect.create_index_sql(current.schema_name, current.name, index),
                      tx, cancellation, ObjectRef.index(current.name, index.name, current.schema_name))
        return True

    def drop_index_if_exists(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                             index_name: str, tx: Optional[Transaction] = None,
                             cancellation: Optional[CancellationToken] = None) -> bool:
        loader = self._loader(db, tx, cancellation)
        schema = self._schema(schema_name)
        table = loader.find_table(schema, table_name)
        if table is None:
            return False
        index = _find_named(loader.indexes(schema, table), index_name)
        if index is None:
            return False
        self._execute(db, self.dialect.drop_index_sql(schema, table, index.name), tx, cancellation,
                      ObjectRef.index(table, index.name, schema))
        return True

    def rename_index_if_exists(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                               index_name: str, new_name: str, tx: Optional[Transaction] = None,
                               cancellation: Optional[CancellationToken] = None) -> bool:
        loader = self._loader(db, tx, cancellation)
        schema = self._schema(schema_name)
        table = loader.find_table(schema, table_name)
        if table is None:
            return False
        indexes = loader.indexes(schema, table)
        index = _find_named(indexes, index_name)
        if index is None:
            return False
        target = _find_named(indexes, new_name)
        if target is not None and target is not index:
            raise ObjectAlreadyExistsError(f"Index '{new_name}' already exists",
                                           object_ref=ObjectRef.index(table, new_name, schema))
        ref = ObjectRef.index(table, index.name, schema)
        sql = self.dialect.rename_index_sql(schema, table, index.name, new_name)
        if sql:
            self._execute(db, sql, tx, cancellation, ref)
        else:
            self._execute_all(db, [
                self.dialect.drop_index_sql(schema, table, index.name),
                self.dialect.create_index_sql(schema, table, replace(index, name=new_name)),
            ], tx, cancellation, ref)
        return True

    def get_index(self, db: DbConnection, schema_name: Optional[str], table_name: str, index_name: str,
                  tx: Optional[Transaction] = None,
                  cancellation: Optional[CancellationToken] = None) -> Optional[IndexDef]:
        return _find_named(self._list_indexes(db, schema_name, table_name, tx, cancellation), index_name)

    def get_indexes(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                    name_filter: Optional[str] = None, tx: Optional[Transaction] = None,
                    cancellation: Optional[CancellationToken] = None) -> List[IndexDef]:
        indexes = self._list_indexes(db, schema_name, table_name, tx, cancellation)
        return self._loader(db, tx, cancellation).name_filter(name_filter).filter(indexes, key=lambda i: i.name)

    def get_index_names(self, db: DbConnection, schema_name: Optional[str], table_name: str,
                        name_filter: Optional[str] = None, tx: Optional[Transaction] = None,
                        cancellation: Optional[CancellationToken] = None) -> List[str]:
        return [i.name for i in self.get_indexes(db, schema_name, table_name, name_filter, tx, cancellation)]

    # ==================== Views ====================

    def does_view_exist(self, db: DbConnection, schema_name: Optional[str], view_name: str,
                        tx: Optional[Transaction] = None,
                        cancellation: Optional[CancellationToken] = None) -> bool:
        loader = self._loader(db, tx, cancellation)
        return loader.find_view(self._schema(schema_name), view_name) is not None

    def _validate_view(self, view: ViewDef) -> None:
        if get_settings().validate_expressions:
            validate_view_definition(view.definition)

    def create_view_if_not_exists(self, db: DbConnection, view: ViewDef, tx: Optional[Transaction] = None,
                                  cancellation: Optional[CancellationToken] = None,
                                  verify: Optional[bool] = None) -> bool:
        self._validate_view(view)
        if self.does_view_exist(db, view.schema_name, view.name, tx, cancellation):
            logger.debug(f"View {view.qualified_name} already exists")
            return False
        self._execute(db, self.dialect.create_view_sql(view), tx, cancellation,
                      ObjectRef.view(view.name, view.schema_name))
        if self._should_verify(verify) and \
                self.get_view(db, view.schema_name, view.name, tx, cancellation) is None:
            raise ObjectNotFoundError(f"View '{view.name}' was created but cannot be read back",
                                      object_ref=ObjectRef.view(view.name, view.schema_name))
        return True

    def update_view_if_exists(self, db: DbConnection, view: ViewDef, tx: Optional[Transaction] = None,
                              cancellation: Optional[CancellationToken] = None) -> bool:
        """Replace the defining SELECT of an existing view."""
        self._validate_view(view)
        loader = self._loader(db, tx, cancellation)
        current = loader.find_view(self._schema(view.schema_name), view.name)
        if current is None:
            return False
        view = replace(view, name=current)
        self._execute_all(db, self.dialect.replace_view_sql(view), tx, cancellation,
                          ObjectRef.view(view.name, view.schema_name))
        return True

    def drop_view_if_exists(self, db: DbConnection, schema_name: Optional[str], view_name: str,
                            tx: Optional[Transaction] = None,
                            cancellation: Optional[CancellationToken] = None) -> bool:
        schema = self._schema(schema_name)
        current = self._loader(db, tx, cancellation).find_view(schema, view_name)
        if current is None:
            return False
        self._execute(db, self.dialect.drop_view_sql(schema, current), tx, cancellation,
                      ObjectRef.view(current, schema))
        return True

    def rename_view_if_exists(self, db: DbConnection, schema_name: Optional[str], view_name: str,
                              new_name: str, tx: Optional[Transaction] = None,
                              cancellation: Optional[CancellationToken] = None) -> bool:
        loader = self._loader(db, tx, cancellation)
        schema = self._schema(schema_name)
        current = loader.find_view(schema, view_name)
        if current is None:
            return False
        target = loader.find_view(schema, new_name)
        if target is not None and not _same_name(target, current):
            raise ObjectAlreadyExistsError(f"View '{new_name}' already exists",
                                           object_ref=ObjectRef.view(new_name, schema))
        ref = ObjectRef.view(current, schema)
        sql = self.dialect.rename_view_sql(schema, current, new_name)
        if sql:
            self._execute(db, sql, tx, cancellation, ref)
            return True

        view = loader.load_view(schema, current)
        if view is None:
            raise ObjectNotFoundError(f"View '{current}' has no readable definition to recreate", object_ref=ref)
        self._execute_all(db, [
            self.dialect.drop_view_sql(schema, current),
            self.dialect.create_view_sql(replace(view, name=new_name)),
        ], tx, cancellation, ref)
        return True

    def get_view(self, db: DbConnection, schema_name: Optional[str], view_name: str,
                 tx: Optional[Transaction] = None,
                 cancellation: Optional[CancellationToken] = None) -> Optional[ViewDef]:
        return self._loader(db, tx, cancellation).load_view(self._schema(schema_name), view_name)

    def get_views(self, db: DbConnection, schema_name: Optional[str] = None,
                  name_filter: Optional[str] = None, tx: Optional[Transaction] = None,
                  cancellation: Optional[CancellationToken] = None) -> List[ViewDef]:
        return self._loader(db, tx, cancellation).load_views(self._schema(schema_name), name_filter)

    def get_view_names(self, db: DbConnection, schema_name: Optional[str] = None,
                       name_filter: Optional[str] = None, tx: Optional[Transaction] = None,
                       cancellation: Optional[CancellationToken] = None) -> List[str]:
        loader = self._loader(db, tx, cancellation)
        return loader.name_filter(name_filter).filter(loader.view_names(self._schema(schema_name)))

    # ==================== Generic dispatch ====================

    def exists(self, db: DbConnection, ref: ObjectRef, tx: Optional[Transaction] = None,
               cancellation: Optional[CancellationToken] = None) -> bool:
        """Existence check for any object kind."""
        kind, schema, table, name = ref.kind, ref.schema_name, ref.table_name, ref.name
        if kind == ObjectKind.SCHEMA:
            return self.does_schema_exist(db, name, tx, cancellation)
        if kind == ObjectKind.TABLE:
            return self.does_table_exist(db, schema, name, tx, cancellation)
        if kind == ObjectKind.VIEW:
            return self.does_view_exist(db, schema, name, tx, cancellation)
        if kind == ObjectKind.COLUMN:
            return self.does_column_exist(db, schema, table, name, tx, cancellation)
        if kind == ObjectKind.INDEX:
            return self.does_index_exist(db, schema, table, name, tx, cancellation)
        if kind == ObjectKind.PRIMARY_KEY:
            pk = self.get_primary_key_constraint(db, schema, table, tx, cancellation)
            return pk is not None and (name is None or _same_name(pk.name, name))
        return self._get_constraint(db, schema, table, kind, name, tx, cancellation) is not None

    def create_if_not_exists(self, db: DbConnection, definition: Any, table_name: Optional[str] = None,
                             schema_name: Optional[str] = None, tx: Optional[Transaction] = None,
                             cancellation: Optional[CancellationToken] = None) -> bool:
        """
        Create any definition unless it exists.

        Args:
            definition: SchemaDef, TableDef, ViewDef, ColumnDef, IndexDef or a constraint
            table_name: Owning table (table children only)
            schema_name: Schema of the owning table (table children only)

        Returns:
            True if created, False if it already existed
        """
        if isinstance(definition, SchemaDef):
            return self.create_schema_if_not_exists(db, definition.name, tx, cancellation)
        if isinstance(definition, TableDef):
            return self.create_table_if_not_exists(db, definition, tx, cancellation)
        if isinstance(definition, ViewDef):
            return self.create_view_if_not_exists(db, definition, tx, cancellation)
        if not table_name:
            raise ValidationError(f"Creating a {type(definition).__name__} needs a table name")
        if isinstance(definition, ColumnDef):
            return self.create_column_if_not_exists(db, schema_name, table_name, definition, tx, cancellation)
        if isinstance(definition, IndexDef):
            return self.create_index_if_not_exists(db, schema_name, table_name, definition, tx, cancellation)
        constraint_kind(definition)
        return self._create_constraint(db, schema_name, table_name, definition, tx, cancellation)

    def drop_if_exists(self, db: DbConnection, ref: ObjectRef, tx: Optional[Transaction] = None,
                       cancellation: Optional[CancellationToken] = None) -> bool:
        kind, schema, table, name = ref.kind, ref.schema_name, ref.table_name, ref.name
        if kind == ObjectKind.SCHEMA:
            return self.drop_schema_if_exists(db, name, tx, cancellation)
        if kind == ObjectKind.TABLE:
            return self.drop_table_if_exists(db, schema, name, tx, cancellation)
        if kind == ObjectKind.VIEW:
            return self.drop_view_if_exists(db, schema, name, tx, cancellation)
        if kind == ObjectKind.COLUMN:
            return self.drop_column_if_exists(db, schema, table, name, tx, cancellation)
        if kind == ObjectKind.INDEX:
            return self.drop_index_if_exists(db, schema, table, name, tx, cancellation)
        return self._drop_constraint(db, schema, table, kind, name, tx, cancellation)

    def rename_if_exists(self, db: DbConnection, ref: ObjectRef, new_name: str,
                         tx: Optional[Transaction] = None,
                         cancellation: Optional[CancellationToken] = None) -> bool:
        kind, schema, table, name = ref.kind, ref.schema_name, ref.table_name, ref.name
        if kind == ObjectKind.SCHEMA:
            return self.rename_schema_if_exists(db, name, new_name, tx, cancellation)
        if kind == ObjectKind.TABLE:
            return self.rename_table_if_exists(db, schema, name, new_name, tx, cancellation)
        if kind == ObjectKind.VIEW:
            return self.rename_view_if_exists(db, schema, name, new_name, tx, cancellation)
        if kind == ObjectKind.COLUMN:
            return self.rename_column_if_exists(db, schema, table, name, new_name, tx, cancellation)
        if kind == ObjectKind.INDEX:
            return self.rename_index_if_exists(db, schema, table, name, new_name, tx, cancellation)
        return self._rename_constraint(db, schema, table, kind, name, new_name, tx, cancellation)

    def create(self, db: DbConnection, definition: Any, table_name: Optional[str] = None,
               schema_name: Optional[str] = None, tx: Optional[Transaction] = None,
               cancellation: Optional[CancellationToken] = None) -> None:
        """
        Strict create.

        Raises:
            ObjectAlreadyExistsError: The object already exists
        """
        if not self.create_if_not_exists(db, definition, table_name, schema_name, tx, cancellation):
            name = getattr(definition, "name", None) or getattr(definition, "column_name", None)
            raise ObjectAlreadyExistsError(f"{type(definition).__name__} '{name}' already exists",
                                           object_ref=name)

    def drop(self, db: DbConnection, ref: ObjectRef, tx: Optional[Transaction] = None,
             cancellation: Optional[CancellationToken] = None) -> None:
        """
        Strict drop.

        Raises:
            ObjectNotFoundError: The object does not exist
        """
        if not self.drop_if_exists(db, ref, tx, cancellation):
            raise ObjectNotFoundError(f"{ref} does not exist", object_ref=ref)
