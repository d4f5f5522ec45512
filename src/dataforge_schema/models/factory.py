"""
Model Factory - table and view definitions from annotated classes

A dataclass describes a table: every field becomes a column whose logical
type comes from the field's type hint (Optional[...] makes it nullable) and
whose constraint shortcuts come from column() metadata. Class decorators add
the table name, the schema and table-level constraints. Views are plain
classes decorated with view().

Usage:
    @table("Orders", schema_name="sales", indexes=[["CustomerId", "Created DESC"]])
    @dataclass
    class Order:
        Id: int = column(is_primary_key=True, is_identity=True)
        CustomerId: int = column(references=Customer)
        Total: Decimal = column(precision=10, scale=2, check_expression="Total >= 0")
        Note: Optional[str] = column(length=200, default=None)
        cache: dict = ignored(default_factory=dict)

    table_def = table_from_dataclass(Order)
"""

import copy
import dataclasses
import enum
import ipaddress
import threading
import types
import uuid
import xml.etree.ElementTree as ET
from collections import abc
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union, get_args, get_origin, get_type_hints

from ..codecs.values import Box, Circle, Line, LineSegment, Path, Point, Polygon
from ..errors import ValidationError
from ..type_mapping import LogicalType
from .column import ColumnDef
from .constraints import CheckDef, ForeignKeyAction, ForeignKeyDef, PrimaryKeyDef, UniqueDef
from .index import IndexDef
from .table import TableDef
from .view import ViewDef

import logging
logger = logging.getLogger(__name__)

METADATA_KEY = "dataforge_schema"
TABLE_ATTRIBUTE = "__table_options__"
VIEW_ATTRIBUTE = "__view_options__"

_UNION_TYPES = (Union, types.UnionType) if hasattr(types, "UnionType") else (Union,)

# Checked in order: bool before int, datetime before date, networks before addresses
_PYTHON_TYPES: Tuple[Tuple[type, LogicalType], ...] = (
    (bool, LogicalType.BOOLEAN),
    (int, LogicalType.INT64),
    (float, LogicalType.FLOAT64),
    (Decimal, LogicalType.DECIMAL),
    (str, LogicalType.TEXT),
    (bytes, LogicalType.VARBINARY),
    (bytearray, LogicalType.VARBINARY),
    (datetime, LogicalType.DATETIME),
    (date, LogicalType.DATE),
    (time, LogicalType.TIME),
    (timedelta, LogicalType.INTERVAL),
    (uuid.UUID, LogicalType.UUID),
    (ipaddress.IPv4Network, LogicalType.CIDR),
    (ipaddress.IPv6Network, LogicalType.CIDR),
    (ipaddress.IPv4Address, LogicalType.INET),
    (ipaddress.IPv6Address, LogicalType.INET),
    (Point, LogicalType.POINT),
    (LineSegment, LogicalType.LINE_SEGMENT),
    (Box, LogicalType.BOX),
    (Path, LogicalType.PATH),
    (Polygon, LogicalType.POLYGON),
    (Circle, LogicalType.CIRCLE),
    (Line, LogicalType.LINE),
    (ET.Element, LogicalType.XML),
    (dict, LogicalType.JSON),
    (list, LogicalType.JSON),
    (set, LogicalType.JSON),
    (frozenset, LogicalType.JSON),
)

_SEQUENCE_ORIGINS = (list, tuple, abc.Sequence)


# ==================== Annotations ====================

@dataclass
class ColumnOptions:
    """Column settings carried in a dataclass field's metadata."""
    name: Optional[str] = None
    logical_type: Optional[LogicalType] = None
    native_type: Optional[str] = None
    native_types: Dict[str, str] = field(default_factory=dict)
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    is_unicode: Optional[bool] = None
    is_nullable: Optional[bool] = None   # None: nullable when the hint is Optional
    is_identity: bool = False
    is_primary_key: bool = False
    is_unique: bool = False
    unique_constraint_name: Optional[str] = None
    is_indexed: bool = False
    index_name: Optional[str] = None
    check_expression: Optional[str] = None
    check_constraint_name: Optional[str] = None
    default_expression: Optional[str] = None
    default_constraint_name: Optional[str] = None
    references: Any = None               # table name or annotated class
    references_column: Optional[str] = None
    references_schema: Optional[str] = None
    foreign_key_name: Optional[str] = None
    on_delete: ForeignKeyAction = ForeignKeyAction.NO_ACTION
    on_update: ForeignKeyAction = ForeignKeyAction.NO_ACTION
    ignore: bool = False


@dataclass
class TableOptions:
    name: Optional[str] = None
    schema_name: Optional[str] = None
    primary_key: Any = None
    unique_constraints: List[Any] = field(default_factory=list)
    check_constraints: List[Any] = field(default_factory=list)
    indexes: List[Any] = field(default_factory=list)
    foreign_keys: List[ForeignKeyDef] = field(default_factory=list)


@dataclass
class ViewOptions:
    definition: str
    name: Optional[str] = None
    schema_name: Optional[str] = None


def _options_from(values: Dict[str, Any]) -> ColumnOptions:
    try:
        return ColumnOptions(**values)
    except TypeError as e:
        raise ValidationError(f"Invalid column options: {e}") from None


def column(default: Any = dataclasses.MISSING, default_factory: Any = dataclasses.MISSING,
           **options) -> Any:
    """
    Dataclass field carrying column options.

    Args:
        default: Field default (as for dataclasses.field)
        default_factory: Field default factory (as for dataclasses.field)
        **options: Any ColumnOptions attribute (name, length, is_primary_key, references, ...)

    Returns:
        dataclasses.Field with the options stored under METADATA_KEY
    """
    return field(default=default, default_factory=default_factory,
                 metadata={METADATA_KEY: _options_from(options)})


def ignored(default: Any = dataclasses.MISSING, default_factory: Any = dataclasses.MISSING) -> Any:
    """Dataclass field that is not mapped to a column."""
    return field(default=default, default_factory=default_factory,
                 metadata={METADATA_KEY: ColumnOptions(ignore=True)})


def table(name: Optional[str] = None, schema_name: Optional[str] = None, primary_key: Any = None,
          unique_constraints: Sequence[Any] = (), check_constraints: Sequence[Any] = (),
          indexes: Sequence[Any] = (), foreign_keys: Sequence[ForeignKeyDef] = ()) -> Callable[[type], type]:
    """
    Class decorator naming the table and adding table-level constraints.

    Constraints may be given as model objects or in short form: a primary
    key or unique constraint as a column list, a check as its expression, an
    index as a column list ("Created DESC" for descending columns). A
    class-level primary key replaces the fields' is_primary_key flags.
    """
    def decorate(cls: type) -> type:
        setattr(cls, TABLE_ATTRIBUTE, TableOptions(
            name, schema_name, primary_key, list(unique_constraints), list(check_constraints),
            list(indexes), list(foreign_keys)))
        return cls
    return decorate


def view(definition: str, name: Optional[str] = None, schema_name: Optional[str] = None) -> Callable[[type], type]:
    """Class decorator describing a view by its defining SELECT."""
    if not definition or not definition.strip():
        raise ValidationError("View definition is required")

    def decorate(cls: type) -> type:
        setattr(cls, VIEW_ATTRIBUTE, ViewOptions(definition, name, schema_name))
        return cls
    return decorate


# ==================== Type hints ====================

def logical_type_for(hint: Any) -> Tuple[Optional[LogicalType], bool, Dict[str, Any]]:
    """
    Map a type hint to a logical type.

    Args:
        hint: Resolved type hint of a dataclass field

    Returns:
        (logical type or None when unmapped, nullable flag, extra ColumnDef arguments)
    """
    origin = get_origin(hint)
    if origin in _UNION_TYPES:
        args = [a for a in get_args(hint) if a is not type(None)]
        if len(args) != 1:
            raise ValidationError(f"Cannot map union type {hint} to a column")
        logical_type, _, extra = logical_type_for(args[0])
        return logical_type, True, extra

    if origin is not None:
        args = get_args(hint)
        if origin in _SEQUENCE_ORIGINS or (isinstance(origin, type) and issubclass(origin, (list, tuple))):
            if args and args[0] is not Ellipsis:
                element, _, _ = logical_type_for(args[0])
                if element is not None and element.category.value not in ("array", "json"):
                    return LogicalType.ARRAY, False, {"element_type": element}
            return LogicalType.JSON, False, {}
        if isinstance(origin, type) and issubclass(origin, dict):
            if len(args) == 2 and args[0] is str and args[1] is str:
                return LogicalType.KEY_VALUE, False, {}
            return LogicalType.JSON, False, {}
        return logical_type_for(origin)

    if isinstance(hint, type):
        if issubclass(hint, enum.Enum):
            return LogicalType.ENUM, False, {"values": [str(m.value) for m in hint]}
        for python_type, logical_type in _PYTHON_TYPES:
            if issubclass(hint, python_type):
                return logical_type, False, {}
    return None, False, {}


def table_name_of(cls: type) -> Tuple[Optional[str], str]:
    """(schema name, table name) of an annotated class; the class name by default."""
    options = cls.__dict__.get(TABLE_ATTRIBUTE)
    if options is None:
        return None, cls.__name__
    return options.schema_name, options.name or cls.__name__


# ==================== Factories ====================

def _field_options(dataclass_field: dataclasses.Field) -> ColumnOptions:
    options = dataclass_field.metadata.get(METADATA_KEY)
    if options is None:
        return ColumnOptions()
    if isinstance(options, ColumnOptions):
        return options
    if isinstance(options, dict):
        return _options_from(options)
    raise ValidationError(f"Field '{dataclass_field.name}' has invalid {METADATA_KEY} metadata")


def _referenced(options: ColumnOptions) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """(table, column, schema) referenced by a column."""
    target = options.references
    if target is None:
        return None, None, None
    if isinstance(target, str):
        return target, options.references_column, options.references_schema
    schema_name, table_name = table_name_of(target)
    referenced_column = options.references_column
    if referenced_column is None and dataclasses.is_dataclass(target):
        pk = table_from_dataclass(target).primary_key
        if pk is not None and len(pk.columns) == 1:
            referenced_column = pk.columns[0]
    return table_name, referenced_column, options.references_schema or schema_name


def _build_column(cls: type, dataclass_field: dataclasses.Field, hint: Any, options: ColumnOptions,
                  class_primary_key: bool) -> ColumnDef:
    name = options.name or dataclass_field.name
    logical_type, optional, extra = logical_type_for(hint)
    if options.logical_type is not None:
        logical_type = options.logical_type
    elif options.native_type:
        # An explicit native spelling replaces the inferred type
        logical_type = None
    if logical_type is None and not (options.native_type or options.native_types):
        raise ValidationError(f"Cannot map field '{cls.__name__}.{dataclass_field.name}' of type {hint} "
                              f"to a column; set logical_type or native_type", object_ref=cls.__name__)
    referenced_table, referenced_column, referenced_schema = _referenced(options)
    return ColumnDef(
        name,
        logical_type,
        native_type=options.native_type,
        native_types=dict(options.native_types),
        is_nullable=optional if options.is_nullable is None else options.is_nullable,
        is_identity=options.is_identity,
        length=options.length,
        precision=options.precision,
        scale=options.scale,
        is_unicode=options.is_unicode,
        element_type=extra.get("element_type"),
        values=extra.get("values", []),
        default_expression=options.default_expression,
        default_constraint_name=options.default_constraint_name,
        check_expression=options.check_expression,
        check_constraint_name=options.check_constraint_name,
        is_primary_key=options.is_primary_key and not class_primary_key,
        is_unique=options.is_unique,
        unique_constraint_name=options.unique_constraint_name,
        is_indexed=options.is_indexed,
        index_name=options.index_name,
        references_table=referenced_table,
        references_column=referenced_column,
        references_schema=referenced_schema,
        foreign_key_name=options.foreign_key_name,
        on_delete=options.on_delete,
        on_update=options.on_update,
    )


def _column_list(value: Any) -> List[str]:
    return [value] if isinstance(value, str) else list(value)


def _primary_key(value: Any) -> Optional[PrimaryKeyDef]:
    if value is None or isinstance(value, PrimaryKeyDef):
        return value
    return PrimaryKeyDef(_column_list(value))


def _unique(value: Any) -> UniqueDef:
    return value if isinstance(value, UniqueDef) else UniqueDef(_column_list(value))


def _check(value: Any) -> CheckDef:
    return value if isinstance(value, CheckDef) else CheckDef(str(value))


def _index(value: Any) -> IndexDef:
    return value if isinstance(value, IndexDef) else IndexDef(_column_list(value))


def table_from_dataclass(cls: type) -> TableDef:
    """
    Build a TableDef from an annotated dataclass.

    Args:
        cls: Dataclass, optionally decorated with table()

    Returns:
        Validated TableDef

    Raises:
        ValidationError: cls is not a dataclass, a field type cannot be mapped,
            or the resulting table is invalid
    """
    if not (isinstance(cls, type) and dataclasses.is_dataclass(cls)):
        raise ValidationError(f"{cls!r} is not a dataclass")
    options = cls.__dict__.get(TABLE_ATTRIBUTE) or TableOptions()
    schema_name, table_name = table_name_of(cls)
    hints = get_type_hints(cls)

    columns = []
    for dataclass_field in dataclasses.fields(cls):
        field_options = _field_options(dataclass_field)
        if field_options.ignore:
            continue
        columns.append(_build_column(cls, dataclass_field, hints.get(dataclass_field.name, Any),
                                     field_options, options.primary_key is not None))

    table_def = TableDef(
        table_name,
        columns,
        schema_name=schema_name,
        primary_key=_primary_key(options.primary_key),
        unique_constraints=[_unique(u) for u in options.unique_constraints],
        check_constraints=[_check(c) for c in options.check_constraints],
        indexes=[_index(i) for i in options.indexes],
        foreign_keys=list(options.foreign_keys),
    )
    logger.debug(f"Mapped {cls.__name__} to table {table_def.qualified_name} "
                 f"({len(table_def.columns)} columns)")
    return table_def


def view_from_class(cls: type) -> Optional[ViewDef]:
    """ViewDef of a class decorated with view(); None when it is not decorated."""
    options = cls.__dict__.get(VIEW_ATTRIBUTE)
    if options is None:
        return None
    return ViewDef(options.name or cls.__name__, options.definition, options.schema_name)


class ModelFactory:
    """
    Caching front end for table_from_dataclass / view_from_class.

    Each class is mapped once per factory; callers get copies, so changing a
    returned definition never affects later lookups. A customize hook may
    adjust every mapped table, and configure() adjusts a single class.
    """

    def __init__(self, customize: Optional[Callable[[type, TableDef], Optional[TableDef]]] = None):
        self._customize = customize
        self._tables: Dict[type, TableDef] = {}
        self._views: Dict[type, Optional[ViewDef]] = {}
        self._lock = threading.RLock()

    def get_table(self, cls: type) -> TableDef:
        with self._lock:
            table_def = self._tables.get(cls)
            if table_def is None:
                table_def = table_from_dataclass(cls)
                if self._customize is not None:
                    table_def = self._customize(cls, table_def) or table_def
                self._tables[cls] = table_def
            return copy.deepcopy(table_def)

    def configure(self, cls: type, adjust: Callable[[TableDef], Optional[TableDef]]) -> TableDef:
        """Replace the cached table of cls with adjust(table) and return a copy of it."""
        table_def = self.get_table(cls)
        table_def = adjust(table_def) or table_def
        with self._lock:
            self._tables[cls] = table_def
        return copy.deepcopy(table_def)

    def get_view(self, cls: type) -> Optional[ViewDef]:
        with self._lock:
            if cls not in self._views:
                self._views[cls] = view_from_class(cls)
            view_def = self._views[cls]
        return copy.deepcopy(view_def)

    def clear(self) -> None:
        with self._lock:
            self._tables.clear()
            self._views.clear()
