"""
Constraint definitions - primary keys, unique, check, default and foreign keys

Constraint names are optional at construction time. TableDef synthesizes the
missing ones ({prefix}_{table}_{columns}); introspection always fills them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ..errors import ValidationError


class SortOrder(Enum):
    ASC = "ASC"
    DESC = "DESC"


class ForeignKeyAction(Enum):
    """Referential action for ON DELETE / ON UPDATE."""
    NO_ACTION = "NO ACTION"
    CASCADE = "CASCADE"
    SET_NULL = "SET NULL"
    SET_DEFAULT = "SET DEFAULT"
    RESTRICT = "RESTRICT"

    @classmethod
    def from_text(cls, value) -> "ForeignKeyAction":
        """
        Parse catalog spellings ("NO_ACTION", "set null", "a", None).

        PostgreSQL reports actions as single letters in pg_constraint.
        """
        if isinstance(value, cls):
            return value
        if value is None or not str(value).strip():
            return cls.NO_ACTION
        text = " ".join(str(value).strip().upper().replace("_", " ").split())
        letters = {"A": cls.NO_ACTION, "R": cls.RESTRICT, "C": cls.CASCADE,
                   "N": cls.SET_NULL, "D": cls.SET_DEFAULT}
        if text in letters:
            return letters[text]
        try:
            return cls(text)
        except ValueError:
            raise ValidationError(f"Unknown foreign key action: {value}") from None


@dataclass
class OrderedColumn:
    """Index column with its sort direction."""
    name: str
    order: SortOrder = SortOrder.ASC

    def __post_init__(self):
        if not self.name:
            raise ValidationError("Index column name cannot be empty")
        if not isinstance(self.order, SortOrder):
            self.order = SortOrder(str(self.order).strip().upper())

    @property
    def is_descending(self) -> bool:
        return self.order == SortOrder.DESC

    @classmethod
    def parse(cls, value) -> "OrderedColumn":
        """Accept an OrderedColumn, "name", "name DESC", (name, order) or a dict."""
        if isinstance(value, cls):
            return value
        if isinstance(value, dict):
            return cls(value["name"], value.get("order", SortOrder.ASC))
        if isinstance(value, (tuple, list)):
            return cls(*value)
        text = str(value).strip()
        parts = text.rsplit(None, 1)
        if len(parts) == 2 and parts[1].upper() in ("ASC", "DESC"):
            return cls(parts[0], parts[1])
        return cls(text)


def _require_columns(columns: List[str], what: str) -> List[str]:
    columns = list(columns or [])
    if not columns:
        raise ValidationError(f"{what} needs at least one column")
    if any(not c for c in columns):
        raise ValidationError(f"{what} has an empty column name")
    return columns


@dataclass
class PrimaryKeyDef:
    columns: List[str]
    name: Optional[str] = None

    def __post_init__(self):
        self.columns = _require_columns(self.columns, "Primary key")


@dataclass
class UniqueDef:
    columns: List[str]
    name: Optional[str] = None

    def __post_init__(self):
        self.columns = _require_columns(self.columns, "Unique constraint")


@dataclass
class CheckDef:
    """CHECK constraint; the expression is dialect SQL, passed through verbatim."""
    expression: str
    name: Optional[str] = None
    column_name: Optional[str] = None  # set for column-level checks

    def __post_init__(self):
        if not self.expression or not self.expression.strip():
            raise ValidationError("Check constraint expression cannot be empty", object_ref=self.name)


@dataclass
class DefaultDef:
    column_name: str
    expression: str
    name: Optional[str] = None

    def __post_init__(self):
        if not self.column_name:
            raise ValidationError("Default constraint needs a column name", object_ref=self.name)
        if self.expression is None or not str(self.expression).strip():
            raise ValidationError("Default expression cannot be empty", object_ref=self.name)


@dataclass
class ForeignKeyDef:
    """
    Foreign key. The referenced table is a weak reference by name: it does not
    have to exist when the model is built.
    """
    columns: List[str]
    referenced_table: str
    referenced_columns: List[str]
    name: Optional[str] = None
    referenced_schema: Optional[str] = None
    on_delete: ForeignKeyAction = ForeignKeyAction.NO_ACTION
    on_update: ForeignKeyAction = ForeignKeyAction.NO_ACTION

    def __post_init__(self):
        self.columns = _require_columns(self.columns, "Foreign key")
        self.referenced_columns = _require_columns(self.referenced_columns, "Foreign key reference")
        if not self.referenced_table:
            raise ValidationError("Foreign key needs a referenced table", object_ref=self.name)
        if len(self.columns) != len(self.referenced_columns):
            raise ValidationError(
                f"Foreign key has {len(self.columns)} local and "
                f"{len(self.referenced_columns)} referenced columns", object_ref=self.name)
        self.on_delete = ForeignKeyAction.from_text(self.on_delete)
        self.on_update = ForeignKeyAction.from_text(self.on_update)
