"""
Schema objects - object kinds, object references and schema definitions
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..errors import ValidationError

# Absent schema name means "dialect default" (dbo, public, or none at all)
SchemaRef = Optional[str]


class ObjectKind(Enum):
    """Kinds of database objects the engine manages."""
    SCHEMA = "schema"
    TABLE = "table"
    COLUMN = "column"
    INDEX = "index"
    PRIMARY_KEY = "primary_key"
    UNIQUE = "unique"
    CHECK = "check"
    DEFAULT = "default"
    FOREIGN_KEY = "foreign_key"
    VIEW = "view"

    @property
    def is_table_child(self) -> bool:
        """Whether objects of this kind live inside a table."""
        return self not in (ObjectKind.SCHEMA, ObjectKind.TABLE, ObjectKind.VIEW)

    @property
    def is_constraint(self) -> bool:
        return self in (ObjectKind.PRIMARY_KEY, ObjectKind.UNIQUE, ObjectKind.CHECK,
                        ObjectKind.DEFAULT, ObjectKind.FOREIGN_KEY)

    @classmethod
    def parse(cls, value) -> "ObjectKind":
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower().replace(" ", "_")
        try:
            return cls(text)
        except ValueError:
            return cls[text.upper()]


@dataclass(frozen=True)
class ObjectRef:
    """
    Reference to a database object by name.

    Table children (columns, indexes, constraints) also need table_name.
    Primary keys may be referenced without a name (a table has at most one).

    Usage:
        ObjectRef.table("Orders", schema_name="sales")
        ObjectRef(ObjectKind.INDEX, "ix_orders_date", table_name="Orders")
    """
    kind: ObjectKind
    name: Optional[str] = None
    schema_name: SchemaRef = None
    table_name: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "kind", ObjectKind.parse(self.kind))
        if not self.name and self.kind != ObjectKind.PRIMARY_KEY:
            raise ValidationError(f"A {self.kind.value} reference needs a name")
        if self.kind.is_table_child and not self.table_name:
            raise ValidationError(f"A {self.kind.value} reference needs a table name",
                                  object_ref=self.name)

    def __str__(self) -> str:
        parts = [p for p in (self.schema_name, self.table_name, self.name) if p]
        return f"{self.kind.value} {'.'.join(parts)}"

    # ==================== Shortcuts ====================

    @classmethod
    def schema(cls, name: str) -> "ObjectRef":
        return cls(ObjectKind.SCHEMA, name)

    @classmethod
    def table(cls, name: str, schema_name: SchemaRef = None) -> "ObjectRef":
        return cls(ObjectKind.TABLE, name, schema_name)

    @classmethod
    def view(cls, name: str, schema_name: SchemaRef = None) -> "ObjectRef":
        return cls(ObjectKind.VIEW, name, schema_name)

    @classmethod
    def column(cls, table_name: str, name: str, schema_name: SchemaRef = None) -> "ObjectRef":
        return cls(ObjectKind.COLUMN, name, schema_name, table_name)

    @classmethod
    def index(cls, table_name: str, name: str, schema_name: SchemaRef = None) -> "ObjectRef":
        return cls(ObjectKind.INDEX, name, schema_name, table_name)

    @classmethod
    def constraint(cls, kind, table_name: str, name: Optional[str],
                   schema_name: SchemaRef = None) -> "ObjectRef":
        return cls(ObjectKind.parse(kind), name, schema_name, table_name)


@dataclass
class SchemaDef:
    """A named schema (namespace)."""
    name: str

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValidationError("Schema name cannot be empty")
