"""
Provider data types - registry entries and resolution options

A ProviderDataType describes one native type spelling of a dialect: its
aliases, the logical type it stands for, and which length/precision/scale
parameters it accepts (with limits). The helper constructors mirror the
handful of shapes every dialect table is built from.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from ..constants import (
    DEFAULT_DECIMAL_PRECISION,
    DEFAULT_DECIMAL_SCALE,
    DEFAULT_STRING_LENGTH,
)
from .categories import DataTypeCategory, LogicalType


@dataclass(frozen=True)
class TypeOptions:
    """Requested type parameters (None = use the dialect default)."""
    length: Optional[int] = None        # -1 = unbounded (varchar(max))
    precision: Optional[int] = None
    scale: Optional[int] = None
    unicode: Optional[bool] = None
    values: Tuple[str, ...] = ()        # enum / set members
    element_type: Optional[LogicalType] = None  # array element
    custom_name: Optional[str] = None   # native name for CUSTOM types


DEFAULT_OPTIONS = TypeOptions()


@dataclass(frozen=True)
class ProviderDataType:
    """One native type of a dialect."""
    name: str
    logical_type: LogicalType
    aliases: Tuple[str, ...] = ()
    patterns: Tuple[str, ...] = ()      # wildcard spellings, e.g. "reg*"
    is_common: bool = False
    is_custom: bool = False
    is_unicode: Optional[bool] = None

    supports_length: bool = False
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    default_length: Optional[int] = None
    unbounded_keyword: Optional[str] = None  # e.g. "max" for varchar(max)
    capacity: Optional[int] = None      # size limit of length-less types (None = unlimited)

    supports_precision: bool = False
    min_precision: Optional[int] = None
    max_precision: Optional[int] = None
    default_precision: Optional[int] = None

    supports_scale: bool = False
    min_scale: Optional[int] = None
    max_scale: Optional[int] = None
    default_scale: Optional[int] = None

    description: str = ""
    examples: Tuple[str, ...] = ()

    @property
    def category(self) -> DataTypeCategory:
        if self.is_custom:
            return DataTypeCategory.CUSTOM
        return self.logical_type.category

    @property
    def effective_capacity(self) -> Optional[int]:
        """Largest length this entry can hold (None = unlimited)."""
        if self.supports_length:
            return None if self.unbounded_keyword else self.max_length
        return self.capacity

    @property
    def renders_without_length(self) -> bool:
        """True when no explicit length is needed to spell this type."""
        return not self.supports_length or self.default_length is not None

    def all_names(self) -> Tuple[str, ...]:
        return (self.name,) + tuple(self.aliases)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "aliases": list(self.aliases),
            "logical_type": self.logical_type.value,
            "category": self.category.value,
            "is_common": self.is_common,
            "is_custom": self.is_custom,
            "supports_length": self.supports_length,
            "min_length": self.min_length,
            "max_length": self.max_length,
            "default_length": self.default_length,
            "supports_precision": self.supports_precision,
            "min_precision": self.min_precision,
            "max_precision": self.max_precision,
            "default_precision": self.default_precision,
            "supports_scale": self.supports_scale,
            "min_scale": self.min_scale,
            "max_scale": self.max_scale,
            "default_scale": self.default_scale,
            "description": self.description,
            "examples": list(self.examples),
        }


@dataclass(frozen=True)
class NativeTypeInfo:
    """Result of parsing and classifying a native type string."""
    native_type: str                    # original spelling
    base_name: str                      # normalized name without parameters
    logical_type: LogicalType
    category: DataTypeCategory
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    is_unicode: Optional[bool] = None
    is_array: bool = False
    element_type: Optional[LogicalType] = None
    values: Tuple[str, ...] = ()
    entry: Optional[ProviderDataType] = field(default=None, compare=False)

    def to_options(self) -> TypeOptions:
        return TypeOptions(
            length=self.length,
            precision=self.precision,
            scale=self.scale,
            unicode=self.is_unicode,
            values=self.values,
            element_type=self.element_type,
            custom_name=self.base_name if self.logical_type == LogicalType.CUSTOM else None,
        )


# ==================== Entry constructors ====================

def integer_type(name: str, logical_type: LogicalType, aliases: Tuple[str, ...] = (),
                 is_common: bool = True, description: str = "",
                 patterns: Tuple[str, ...] = ()) -> ProviderDataType:
    return ProviderDataType(name, logical_type, aliases=aliases, patterns=patterns,
                            is_common=is_common, description=description)


def simple_type(name: str, logical_type: LogicalType, aliases: Tuple[str, ...] = (),
                is_common: bool = False, description: str = "",
                patterns: Tuple[str, ...] = (), capacity: Optional[int] = None,
                is_unicode: Optional[bool] = None) -> ProviderDataType:
    return ProviderDataType(name, logical_type, aliases=aliases, patterns=patterns,
                            is_common=is_common, description=description,
                            capacity=capacity, is_unicode=is_unicode)


def string_type(name: str, logical_type: LogicalType, max_length: int,
                default_length: Optional[int] = DEFAULT_STRING_LENGTH,
                aliases: Tuple[str, ...] = (), is_unicode: Optional[bool] = None,
                unbounded_keyword: Optional[str] = None, is_common: bool = True,
                description: str = "") -> ProviderDataType:
    return ProviderDataType(
        name, logical_type, aliases=aliases, is_common=is_common, is_unicode=is_unicode,
        supports_length=True, min_length=1, max_length=max_length,
        default_length=default_length, unbounded_keyword=unbounded_keyword,
        description=description,
    )


def binary_type(name: str, logical_type: LogicalType, max_length: int,
                default_length: Optional[int] = None, aliases: Tuple[str, ...] = (),
                unbounded_keyword: Optional[str] = None, is_common: bool = False,
                description: str = "") -> ProviderDataType:
    return string_type(name, logical_type, max_length, default_length, aliases,
                       unbounded_keyword=unbounded_keyword, is_common=is_common,
                       description=description)


def decimal_type(name: str, max_precision: int, max_scale: int,
                 default_precision: int = DEFAULT_DECIMAL_PRECISION,
                 default_scale: int = DEFAULT_DECIMAL_SCALE,
                 aliases: Tuple[str, ...] = (), logical_type: LogicalType = LogicalType.DECIMAL,
                 is_common: bool = True, description: str = "") -> ProviderDataType:
    return ProviderDataType(
        name, logical_type, aliases=aliases, is_common=is_common,
        supports_precision=True, min_precision=1, max_precision=max_precision,
        default_precision=default_precision,
        supports_scale=True, min_scale=0, max_scale=max_scale, default_scale=default_scale,
        description=description,
    )


def datetime_type(name: str, logical_type: LogicalType, max_precision: Optional[int] = None,
                  aliases: Tuple[str, ...] = (), is_common: bool = True,
                  description: str = "") -> ProviderDataType:
    if max_precision is None:
        return ProviderDataType(name, logical_type, aliases=aliases, is_common=is_common,
                                description=description)
    return ProviderDataType(
        name, logical_type, aliases=aliases, is_common=is_common,
        supports_precision=True, min_precision=0, max_precision=max_precision,
        description=description,
    )
