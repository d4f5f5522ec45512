"""
DataForge Schema - Provider-agnostic schema definition and introspection engine
SQL Server, MySQL/MariaDB, PostgreSQL and SQLite
"""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("dataforge-schema")
except PackageNotFoundError:
    # Package not installed (running from a source checkout)
    __version__ = "0.6.0"  # Fallback version

__author__ = "Lestat2Lioncourt"

from .config import EngineSettings, get_settings, load_settings, set_settings
from .connection import (
    CancellationToken,
    ConnectionBuilder,
    DbConnection,
    DriverFamily,
    Transaction,
    connect_mysql,
    connect_postgresql,
    connect_sqlite,
    connect_sqlserver,
)
from .errors import (
    DriverError,
    FormatError,
    ObjectAlreadyExistsError,
    ObjectNotFoundError,
    OperationCancelledError,
    SchemaEngineError,
    UnsupportedOperationError,
    UnsupportedProviderError,
    UnsupportedTypeError,
    ValidationError,
)
from .models import (
    CheckDef,
    ColumnDef,
    DefaultDef,
    ForeignKeyAction,
    ForeignKeyDef,
    IndexDef,
    ModelFactory,
    ObjectKind,
    ObjectRef,
    OrderedColumn,
    PrimaryKeyDef,
    SchemaDef,
    SortOrder,
    TableDef,
    UniqueDef,
    ViewDef,
    table_from_dataclass,
    view_from_class,
)
from .type_mapping import DataTypeCategory, LogicalType, TypeOptions, get_type_registry
from .methods import AsyncDialectMethods, DialectMethods, MethodsFactory, get_methods
from .codecs import CodecRegistry

__all__ = [
    "__version__",
    "EngineSettings",
    "get_settings",
    "load_settings",
    "set_settings",
    "CancellationToken",
    "ConnectionBuilder",
    "DbConnection",
    "DriverFamily",
    "Transaction",
    "connect_mysql",
    "connect_postgresql",
    "connect_sqlite",
    "connect_sqlserver",
    "DriverError",
    "FormatError",
    "ObjectAlreadyExistsError",
    "ObjectNotFoundError",
    "OperationCancelledError",
    "SchemaEngineError",
    "UnsupportedOperationError",
    "UnsupportedProviderError",
    "UnsupportedTypeError",
    "ValidationError",
    "CheckDef",
    "ColumnDef",
    "DefaultDef",
    "ForeignKeyAction",
    "ForeignKeyDef",
    "IndexDef",
    "ModelFactory",
    "ObjectKind",
    "ObjectRef",
    "OrderedColumn",
    "PrimaryKeyDef",
    "SchemaDef",
    "SortOrder",
    "TableDef",
    "UniqueDef",
    "ViewDef",
    "table_from_dataclass",
    "view_from_class",
    "DataTypeCategory",
    "LogicalType",
    "TypeOptions",
    "get_type_registry",
    "AsyncDialectMethods",
    "DialectMethods",
    "MethodsFactory",
    "get_methods",
    "CodecRegistry",
]
