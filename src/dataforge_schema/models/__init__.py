"""
Canonical Object Model - dialect-independent schema definitions

Pure data plus constructor-time validation; no I/O.
"""

from .schema import ObjectKind, ObjectRef, SchemaDef, SchemaRef
from .constraints import (
    CheckDef,
    DefaultDef,
    ForeignKeyAction,
    ForeignKeyDef,
    OrderedColumn,
    PrimaryKeyDef,
    SortOrder,
    UniqueDef,
)
from .index import IndexDef
from .column import ColumnDef
from .table import TableDef
from .view import ViewDef
from .serialization import from_dict, from_json, to_dict, to_json
from .factory import (
    ColumnOptions,
    ModelFactory,
    column,
    ignored,
    logical_type_for,
    table,
    table_from_dataclass,
    table_name_of,
    view,
    view_from_class,
)

__all__ = [
    "ObjectKind",
    "ObjectRef",
    "SchemaDef",
    "SchemaRef",
    "CheckDef",
    "DefaultDef",
    "ForeignKeyAction",
    "ForeignKeyDef",
    "OrderedColumn",
    "PrimaryKeyDef",
    "SortOrder",
    "UniqueDef",
    "IndexDef",
    "ColumnDef",
    "TableDef",
    "ViewDef",
    "from_dict",
    "from_json",
    "to_dict",
    "to_json",
    "ColumnOptions",
    "ModelFactory",
    "column",
    "ignored",
    "logical_type_for",
    "table",
    "table_from_dataclass",
    "table_name_of",
    "view",
    "view_from_class",
]
