"""
Column definition

A column carries a logical type, a native type string, or both. When both
are present the native spelling is authoritative for the dialect it came
from (native_types[family]) and the logical type is used everywhere else.

Besides its own attributes a column may carry constraint shortcuts
(is_primary_key, is_unique, check_expression, references_table, ...);
TableDef folds them into table-level definitions.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..errors import ValidationError
from ..type_mapping import LogicalType, TypeOptions, TypeRegistry
from .constraints import ForeignKeyAction


@dataclass
class ColumnDef:
    name: str
    logical_type: Optional[LogicalType] = None
    native_type: Optional[str] = None
    is_nullable: bool = True
    is_identity: bool = False

    # Type parameters (-1 length = unbounded)
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    is_unicode: Optional[bool] = None
    element_type: Optional[LogicalType] = None       # arrays
    values: List[str] = field(default_factory=list)  # enum / set members

    # Exact native spelling per driver family, e.g. {"postgresql": "citext"}
    native_types: Dict[str, str] = field(default_factory=dict)

    # Constraint shortcuts
    default_expression: Optional[str] = None
    default_constraint_name: Optional[str] = None
    check_expression: Optional[str] = None
    check_constraint_name: Optional[str] = None
    is_primary_key: bool = False
    is_unique: bool = False
    unique_constraint_name: Optional[str] = None
    is_indexed: bool = False
    index_name: Optional[str] = None
    references_table: Optional[str] = None
    references_column: Optional[str] = None
    references_schema: Optional[str] = None
    foreign_key_name: Optional[str] = None
    on_delete: ForeignKeyAction = ForeignKeyAction.NO_ACTION
    on_update: ForeignKeyAction = ForeignKeyAction.NO_ACTION

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValidationError("Column name cannot be empty")
        if self.logical_type is not None:
            try:
                self.logical_type = LogicalType.parse(self.logical_type)
            except KeyError:
                raise ValidationError(f"Unknown logical type: {self.logical_type}",
                                      object_ref=self.name) from None
        if self.element_type is not None:
            self.element_type = LogicalType.parse(self.element_type)
        self.values = list(self.values or [])
        self.native_types = {str(k).lower(): v for k, v in (self.native_types or {}).items()}
        self.on_delete = ForeignKeyAction.from_text(self.on_delete)
        self.on_update = ForeignKeyAction.from_text(self.on_update)
        if self.references_table and not self.references_column:
            raise ValidationError("Column reference needs a referenced column", object_ref=self.name)

    @property
    def has_type(self) -> bool:
        return bool(self.logical_type or self.native_type or self.native_types)

    @property
    def has_shortcuts(self) -> bool:
        """Whether the column carries constraint shortcuts TableDef would fold."""
        return bool(self.is_primary_key or self.is_unique or self.is_indexed
                    or self.check_expression or self.default_expression
                    or self.references_table)

    def type_options(self) -> TypeOptions:
        custom_name = None
        if self.logical_type in (LogicalType.CUSTOM, LogicalType.OPAQUE):
            custom_name = self.native_type
        return TypeOptions(
            length=self.length,
            precision=self.precision,
            scale=self.scale,
            unicode=self.is_unicode,
            values=tuple(self.values),
            element_type=self.element_type,
            custom_name=custom_name,
        )

    def native_type_for(self, registry: TypeRegistry) -> str:
        """
        Native spelling for the registry's dialect.

        Priority: native_types[family], then the logical type, then native_type.
        """
        override = self.native_types.get(registry.family)
        if override:
            return override
        if self.logical_type == LogicalType.OPAQUE:
            # Unrecognized types only travel by their native spelling
            if self.native_type:
                return self.native_type
            raise ValidationError(f"Column '{self.name}' is opaque but has no native type",
                                  object_ref=self.name)
        if self.logical_type is not None:
            return registry.resolve_native_type(self.logical_type, self.type_options())
        if self.native_type:
            return self.native_type
        raise ValidationError(f"Column '{self.name}' has no type", object_ref=self.name)
