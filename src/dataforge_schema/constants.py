"""
Centralized constants for DataForge Schema.

Eliminates magic numbers and literal names scattered across the dialects.
Import from here instead of hardcoding values.
"""

# ===========================================================================
# SQL identifier quoting
# ===========================================================================

# Quote characters per driver family: (open, close)
_QUOTE_CHARS = {
    "sqlserver": ("[", "]"),
    "mysql":     ("`", "`"),
    "postgresql": ('"', '"'),
    "sqlite":    ('"', '"'),
}

# Default schema per driver family ("" = no named schemas)
DEFAULT_SCHEMAS = {
    "sqlserver": "dbo",
    "mysql": "",
    "postgresql": "public",
    "sqlite": "",
}

# ===========================================================================
# Synthesized object names
# ===========================================================================
PRIMARY_KEY_PREFIX = "pk"
UNIQUE_PREFIX = "uc"
CHECK_PREFIX = "ck"
DEFAULT_PREFIX = "df"
FOREIGN_KEY_PREFIX = "fk"
INDEX_PREFIX = "ix"

SQLITE_TEMP_TABLE_PREFIX = "_dfs_tmp_"  # Table-recreate scratch copy

# ===========================================================================
# Expression validation
# ===========================================================================
MAX_EXPRESSION_LENGTH = 2000

# ===========================================================================
# Type registry
# ===========================================================================
TYPE_CACHE_SIZE = 512           # Per-registry LRU entries (resolve + classify)
DEFAULT_STRING_LENGTH = 255
DEFAULT_DECIMAL_PRECISION = 18
DEFAULT_DECIMAL_SCALE = 2
UNBOUNDED_LENGTH = -1           # Length sentinel for varchar(max) and friends

# ===========================================================================
# Dialect specifics
# ===========================================================================
MYSQL_TABLE_OPTIONS = (
    "DEFAULT CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci ENGINE = InnoDB"
)
MYSQL_CHECK_MIN_VERSION = (8, 0, 16)
MARIADB_CHECK_MIN_VERSION = (10, 2, 2)

# PostGIS bookkeeping tables hidden from table listings
POSTGIS_SYSTEM_TABLES = (
    "spatial_ref_sys",
    "geometry_columns",
    "geography_columns",
    "raster_columns",
    "raster_overviews",
)

# ===========================================================================
# Configuration
# ===========================================================================
ENV_PREFIX = "DATAFORGE_SCHEMA_"
CONFIG_ENV_VAR = "DATAFORGE_SCHEMA_CONFIG"


def quote_identifier(name: str, family: str = "sqlite") -> str:
    """
    Quote a SQL identifier (table name, column, schema).

    Closing quote characters inside the name are doubled.

    Args:
        name: Raw identifier name
        family: Driver family key

    Returns:
        Properly quoted identifier, e.g. [MyTable] or "my_table"
    """
    o, c = _QUOTE_CHARS.get(family, ('"', '"'))
    return f"{o}{name.replace(c, c + c)}{c}"


def quote_table(table_name: str, family: str = "sqlite",
                schema: str = None) -> str:
    """
    Build a schema-qualified quoted table reference.

    Args:
        table_name: Table name
        family: Driver family key
        schema: Optional schema name (prepended as prefix)

    Returns:
        e.g. [dbo].[MyTable] or "public"."users"
    """
    quoted_name = quote_identifier(table_name, family)
    if schema:
        return f"{quote_identifier(schema, family)}.{quoted_name}"
    return quoted_name
