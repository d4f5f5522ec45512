"""
Model serialization - canonical definitions <-> plain data / JSON

Output is field-for-field: every dataclass becomes a dict of its fields,
enums become their values. Reading back goes through the constructors, so
loaded models are validated exactly like programmatic ones.

Usage:
    data = to_dict(table)
    same = table_from_dict(data)
    text = to_json(view)
    view = from_json(text, ViewDef)
"""

import json
from dataclasses import fields, is_dataclass
from enum import Enum
from typing import Any, Dict, Type

from ..errors import FormatError, ValidationError
from .column import ColumnDef
from .constraints import CheckDef, DefaultDef, ForeignKeyDef, PrimaryKeyDef, UniqueDef
from .index import IndexDef
from .schema import ObjectRef, SchemaDef
from .table import TableDef
from .view import ViewDef


def _plain(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: _plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _plain(v) for k, v in value.items()}
    return value


def to_dict(obj: Any) -> Dict[str, Any]:
    """Plain-data form of any model object."""
    if not is_dataclass(obj):
        raise ValidationError(f"Cannot serialize {type(obj).__name__}")
    return _plain(obj)


def _known_fields(cls: Type, data: Dict[str, Any]) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ValidationError(f"{cls.__name__} data must be a mapping, got {type(data).__name__}")
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


def column_from_dict(data: Dict[str, Any]) -> ColumnDef:
    return ColumnDef(**_known_fields(ColumnDef, data))


def index_from_dict(data: Dict[str, Any]) -> IndexDef:
    return IndexDef(**_known_fields(IndexDef, data))


def table_from_dict(data: Dict[str, Any]) -> TableDef:
    values = _known_fields(TableDef, data)
    pk = values.get("primary_key")
    return TableDef(
        name=values.get("name"),
        schema_name=values.get("schema_name"),
        columns=[column_from_dict(c) for c in values.get("columns") or []],
        primary_key=PrimaryKeyDef(**_known_fields(PrimaryKeyDef, pk)) if pk else None,
        unique_constraints=[UniqueDef(**_known_fields(UniqueDef, u))
                            for u in values.get("unique_constraints") or []],
        check_constraints=[CheckDef(**_known_fields(CheckDef, c))
                           for c in values.get("check_constraints") or []],
        default_constraints=[DefaultDef(**_known_fields(DefaultDef, d))
                             for d in values.get("default_constraints") or []],
        foreign_keys=[ForeignKeyDef(**_known_fields(ForeignKeyDef, f))
                      for f in values.get("foreign_keys") or []],
        indexes=[index_from_dict(i) for i in values.get("indexes") or []],
    )


def view_from_dict(data: Dict[str, Any]) -> ViewDef:
    return ViewDef(**_known_fields(ViewDef, data))


_READERS = {
    TableDef: table_from_dict,
    ViewDef: view_from_dict,
    ColumnDef: column_from_dict,
    IndexDef: index_from_dict,
    SchemaDef: lambda d: SchemaDef(**_known_fields(SchemaDef, d)),
    ObjectRef: lambda d: ObjectRef(**_known_fields(ObjectRef, d)),
    PrimaryKeyDef: lambda d: PrimaryKeyDef(**_known_fields(PrimaryKeyDef, d)),
    UniqueDef: lambda d: UniqueDef(**_known_fields(UniqueDef, d)),
    CheckDef: lambda d: CheckDef(**_known_fields(CheckDef, d)),
    DefaultDef: lambda d: DefaultDef(**_known_fields(DefaultDef, d)),
    ForeignKeyDef: lambda d: ForeignKeyDef(**_known_fields(ForeignKeyDef, d)),
}


def from_dict(data: Dict[str, Any], cls: Type) -> Any:
    """Rebuild a model object of the given class from plain data."""
    reader = _READERS.get(cls)
    if reader is None:
        raise ValidationError(f"Cannot deserialize {cls.__name__}")
    return reader(data)


def to_json(obj: Any, indent: int = None) -> str:
    return json.dumps(to_dict(obj), indent=indent)


def from_json(text: str, cls: Type) -> Any:
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise FormatError(f"Invalid model JSON: {e}") from e
    return from_dict(data, cls)
