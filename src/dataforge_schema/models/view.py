"""
View definition
"""

from dataclasses import dataclass
from typing import Optional

from ..errors import ValidationError


@dataclass
class ViewDef:
    """View: a name plus the defining SELECT text."""
    name: str
    definition: str
    schema_name: Optional[str] = None

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValidationError("View name cannot be empty")
        if not self.definition or not self.definition.strip():
            raise ValidationError("View definition cannot be empty", object_ref=self.name)
        self.definition = self.definition.strip()

    @property
    def qualified_name(self) -> str:
        return f"{self.schema_name}.{self.name}" if self.schema_name else self.name
