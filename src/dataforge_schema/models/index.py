"""
Index definition
"""

from dataclasses import dataclass
from typing import List, Optional

from ..errors import ValidationError
from .constraints import OrderedColumn


@dataclass
class IndexDef:
    """Index over ordered columns (constraint-backing indexes are not IndexDefs)."""
    columns: List[OrderedColumn]
    name: Optional[str] = None
    is_unique: bool = False

    def __post_init__(self):
        if not self.columns:
            raise ValidationError("Index needs at least one column", object_ref=self.name)
        self.columns = [OrderedColumn.parse(c) for c in self.columns]

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    @property
    def has_descending_columns(self) -> bool:
        return any(c.is_descending for c in self.columns)
