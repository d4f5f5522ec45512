"""
Table definition - columns plus owned constraints and indexes

Construction validates the model and fails fast with ValidationError:
- a table needs a name and at least one column
- column names are unique (case-insensitive) and every column has a type
- at most one primary key
- every constraint/index column exists in the table
- foreign keys have as many local as referenced columns
- constraint names, and index names, do not collide (case-insensitive)

Column shortcuts are folded into table-level definitions with synthesized
names. Folded columns and named constraints are copies; the caller's
definitions are untouched.

Usage:
    table = TableDef("Orders", columns=[
        ColumnDef("Id", LogicalType.INT32, is_nullable=False, is_primary_key=True),
        ColumnDef("Total", LogicalType.DECIMAL, precision=10, scale=2),
    ])
    table.primary_key   # PrimaryKeyDef(columns=["Id"], name="pk_Orders_Id")
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional

from ..errors import ValidationError
from ..utils.identifiers import (
    check_constraint_name,
    foreign_key_name,
    index_name,
    numbered_check_constraint_name,
    primary_key_name,
    unique_constraint_name,
)
from .column import ColumnDef
from .constraints import CheckDef, DefaultDef, ForeignKeyDef, OrderedColumn, PrimaryKeyDef, UniqueDef
from .index import IndexDef


@dataclass
class TableDef:
    name: str
    columns: List[ColumnDef]
    schema_name: Optional[str] = None
    primary_key: Optional[PrimaryKeyDef] = None
    unique_constraints: List[UniqueDef] = field(default_factory=list)
    check_constraints: List[CheckDef] = field(default_factory=list)
    default_constraints: List[DefaultDef] = field(default_factory=list)
    foreign_keys: List[ForeignKeyDef] = field(default_factory=list)
    indexes: List[IndexDef] = field(default_factory=list)

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValidationError("Table name cannot be empty")
        # Copies: _assign_names fills missing names in place
        self.columns = list(self.columns or [])
        if self.primary_key is not None:
            self.primary_key = replace(self.primary_key)
        self.unique_constraints = [replace(c) for c in self.unique_constraints or []]
        self.check_constraints = [replace(c) for c in self.check_constraints or []]
        self.default_constraints = [replace(c) for c in self.default_constraints or []]
        self.foreign_keys = [replace(c) for c in self.foreign_keys or []]
        self.indexes = [replace(c) for c in self.indexes or []]

        self._validate_columns()
        self._fold_column_shortcuts()
        self._assign_names()
        self._validate_constraints()

    # ==================== Validation ====================

    def _validate_columns(self) -> None:
        if not self.columns:
            raise ValidationError(f"Table '{self.name}' must have at least one column", object_ref=self.name)
        seen = set()
        for column in self.columns:
            key = column.name.lower()
            if key in seen:
                raise ValidationError(f"Duplicate column '{column.name}' in table '{self.name}'",
                                      object_ref=self.name)
            seen.add(key)
            if not column.has_type:
                raise ValidationError(f"Column '{column.name}' in table '{self.name}' has no type",
                                      object_ref=self.name)

    def _require_columns(self, columns: Iterable[str], what: str) -> None:
        for name in columns:
            if self.get_column(name) is None:
                raise ValidationError(
                    f"{what} references column '{name}' which is not in table '{self.name}'",
                    object_ref=self.name)

    def validate_index(self, index: IndexDef) -> None:
        """Raise ValidationError when the index names a column the table does not have."""
        self._require_columns(index.column_names, f"Index '{index.name}'")

    def _validate_constraints(self) -> None:
        if self.primary_key is not None:
            self._require_columns(self.primary_key.columns, f"Primary key '{self.primary_key.name}'")
        for unique in self.unique_constraints:
            self._require_columns(unique.columns, f"Unique constraint '{unique.name}'")
        for check in self.check_constraints:
            if check.column_name:
                self._require_columns([check.column_name], f"Check constraint '{check.name}'")
        defaulted = set()
        for default in self.default_constraints:
            self._require_columns([default.column_name], f"Default constraint '{default.name}'")
            key = default.column_name.lower()
            if key in defaulted:
                raise ValidationError(f"Column '{default.column_name}' has more than one default",
                                      object_ref=self.name)
            defaulted.add(key)
        for fk in self.foreign_keys:
            self._require_columns(fk.columns, f"Foreign key '{fk.name}'")
        for index in self.indexes:
            self.validate_index(index)

        constraint_names = [c.name for c in self.constraints() if c.name]
        _require_unique_names(constraint_names, "constraint", self.name)
        _require_unique_names([i.name for i in self.indexes], "index", self.name)

    # ==================== Shortcut folding ====================

    def _fold_column_shortcuts(self) -> None:
        pk_columns = [c.name for c in self.columns if c.is_primary_key]
        if pk_columns:
            if self.primary_key is not None and \
                    [c.lower() for c in self.primary_key.columns] != [c.lower() for c in pk_columns]:
                raise ValidationError(f"Table '{self.name}' cannot have more than one primary key",
                                      object_ref=self.name)
            if self.primary_key is None:
                self.primary_key = PrimaryKeyDef(pk_columns)

        folded = []
        for column in self.columns:
            if not column.has_shortcuts:
                folded.append(column)
                continue
            if column.is_unique:
                self.unique_constraints.append(UniqueDef([column.name], column.unique_constraint_name))
            if column.check_expression:
                self.check_constraints.append(
                    CheckDef(column.check_expression, column.check_constraint_name, column.name))
            if column.default_expression is not None and str(column.default_expression).strip():
                if self.get_default(column.name) is None:
                    self.default_constraints.append(
                        DefaultDef(column.name, column.default_expression, column.default_constraint_name))
            if column.references_table:
                self.foreign_keys.append(ForeignKeyDef(
                    [column.name], column.references_table, [column.references_column],
                    name=column.foreign_key_name, referenced_schema=column.references_schema,
                    on_delete=column.on_delete, on_update=column.on_update))
            if column.is_indexed:
                self.indexes.append(IndexDef([OrderedColumn(column.name)], column.index_name))
            folded.append(replace(
                column,
                default_expression=None, default_constraint_name=None,
                check_expression=None, check_constraint_name=None,
                is_primary_key=False, is_unique=False, unique_constraint_name=None,
                is_indexed=False, index_name=None,
                references_table=None, references_column=None, references_schema=None,
                foreign_key_name=None,
            ))
        self.columns = folded

        # Primary key columns are never nullable
        if self.primary_key is not None:
            pk_keys = {c.lower() for c in self.primary_key.columns}
            self.columns = [
                replace(c, is_nullable=False) if c.name.lower() in pk_keys and c.is_nullable else c
                for c in self.columns
            ]

    def _assign_names(self) -> None:
        table = self.name
        if self.primary_key is not None and not self.primary_key.name:
            self.primary_key.name = primary_key_name(table, self.primary_key.columns)
        for unique in self.unique_constraints:
            if not unique.name:
                unique.name = unique_constraint_name(table, unique.columns)
        taken = [c.name for c in self.check_constraints]
        for check in self.check_constraints:
            if not check.name:
                if check.column_name:
                    check.name = check_constraint_name(table, check.column_name)
                else:
                    check.name = numbered_check_constraint_name(table, taken)
                taken.append(check.name)
        for fk in self.foreign_keys:
            if not fk.name:
                fk.name = foreign_key_name(table, fk.columns, fk.referenced_table, fk.referenced_columns)
        for index in self.indexes:
            if not index.name:
                index.name = index_name(table, index.column_names)

    # ==================== Lookups ====================

    @property
    def qualified_name(self) -> str:
        return f"{self.schema_name}.{self.name}" if self.schema_name else self.name

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    def get_column(self, name: str) -> Optional[ColumnDef]:
        key = name.lower()
        for column in self.columns:
            if column.name.lower() == key:
                return column
        return None

    def get_default(self, column_name: str) -> Optional[DefaultDef]:
        key = column_name.lower()
        for default in self.default_constraints:
            if default.column_name.lower() == key:
                return default
        return None

    def is_primary_key_column(self, column_name: str) -> bool:
        if self.primary_key is None:
            return False
        return column_name.lower() in (c.lower() for c in self.primary_key.columns)

    def constraints(self) -> List[object]:
        """Named constraints in creation order: primary key, unique, check, default, foreign keys."""
        result: List[object] = []
        if self.primary_key is not None:
            result.append(self.primary_key)
        result.extend(self.unique_constraints)
        result.extend(self.check_constraints)
        result.extend(self.default_constraints)
        result.extend(self.foreign_keys)
        return result

    def self_references(self) -> List[ForeignKeyDef]:
        return [fk for fk in self.foreign_keys if fk.referenced_table.lower() == self.name.lower()]

    def to_dict(self) -> Dict:
        from .serialization import to_dict
        return to_dict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> "TableDef":
        from .serialization import table_from_dict
        return table_from_dict(data)


def _require_unique_names(names: Iterable[Optional[str]], what: str, table_name: str) -> None:
    seen = set()
    for name in names:
        if not name:
            continue
        key = name.lower()
        if key in seen:
            raise ValidationError(f"Duplicate {what} name '{name}' in table '{table_name}'",
                                  object_ref=table_name)
        seen.add(key)
