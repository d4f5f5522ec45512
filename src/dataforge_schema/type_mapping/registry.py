"""
Type Registry - Bidirectional logical type <-> native type translation

Each dialect subclasses TypeRegistry and supplies its native type table.
A registry is read-only once constructed; extend() returns a new registry
containing extra (custom) entries and leaves the original untouched.

Resolution (logical -> native) walks the dialect's entries for the logical
type in declaration order (narrowest first) and picks the first that can hold
the requested length, clamping to the dialect maxima. Classification
(native -> logical) strips parameters and modifiers, then matches names,
aliases and wildcard patterns. Unknown spellings classify as OPAQUE and keep
the original text, unless strict classification is configured.

Usage:
    registry = PostgreSQLTypeRegistry()
    registry.resolve_native_type(LogicalType.TEXT, TypeOptions(length=50))  # "varchar(50)"
    registry.classify_native_type("character varying(50)")                 # LogicalType.TEXT
"""

import re
from dataclasses import replace
from functools import lru_cache
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..config import get_settings
from ..constants import UNBOUNDED_LENGTH
from ..errors import UnsupportedTypeError
from ..utils.wildcard import WildcardFilter
from .categories import DataTypeCategory, LogicalType
from .data_type import DEFAULT_OPTIONS, NativeTypeInfo, ProviderDataType, TypeOptions

import logging
logger = logging.getLogger(__name__)

_PARAM_GROUP = re.compile(r"\(([^()]*)\)")
_QUOTED_VALUE = re.compile(r"'((?:[^']|'')*)'")


def normalize_type_name(text: str) -> str:
    """Lowercase and collapse whitespace."""
    return " ".join(text.strip().lower().split())


def _clamp(value: int, low: Optional[int], high: Optional[int]) -> int:
    if low is not None and value < low:
        return low
    if high is not None and value > high:
        return high
    return value


def _capacity_key(entry: ProviderDataType) -> float:
    cap = entry.effective_capacity
    return float("inf") if cap is None else cap


class TypeRegistry:
    """
    Base class of the per-dialect type registries.

    Subclasses override _builtin_types() and may set:
    - family: driver family key
    - modifier_words: words ignored during classification ("unsigned")
    - fallbacks: storage mapping for logical types without a native entry
    """

    family: str = ""
    modifier_words: Tuple[str, ...] = ()
    fallbacks: Dict[LogicalType, Tuple[LogicalType, TypeOptions]] = {}

    def __init__(self, entries: Optional[Iterable[ProviderDataType]] = None,
                 cache_size: Optional[int] = None, strict: Optional[bool] = None):
        """
        Initialize the registry.

        Args:
            entries: Full entry table (defaults to the dialect's built-in table)
            cache_size: LRU size for resolve/classify caches (settings default)
            strict: Raise on unknown native types instead of classifying as OPAQUE
        """
        settings = get_settings()
        self._cache_size = settings.type_cache_size if cache_size is None else cache_size
        self._strict = settings.classify_strict if strict is None else strict

        self._entries: Tuple[ProviderDataType, ...] = tuple(
            self._builtin_types() if entries is None else entries
        )
        self._by_name: Dict[str, ProviderDataType] = {}
        self._by_logical: Dict[LogicalType, List[ProviderDataType]] = {}
        self._patterns: List[Tuple[WildcardFilter, ProviderDataType]] = []

        for entry in self._entries:
            for name in entry.all_names():
                key = normalize_type_name(name)
                if key in self._by_name:
                    logger.debug(f"{self.family}: '{name}' already registered, keeping first entry")
                    continue
                self._by_name[key] = entry
            for pattern in entry.patterns:
                self._patterns.append((WildcardFilter(pattern), entry))
            if not entry.is_custom:
                self._by_logical.setdefault(entry.logical_type, []).append(entry)

        # Bounded caches owned by this instance, keyed by immutable inputs
        self._resolve_cached = lru_cache(maxsize=self._cache_size)(self._resolve)
        self._describe_cached = lru_cache(maxsize=self._cache_size)(self._describe)

    def _builtin_types(self) -> List[ProviderDataType]:
        return []

    # ==================== Extension ====================

    def extend(self, entries: Iterable[ProviderDataType]) -> "TypeRegistry":
        """
        Return a new registry with extra entries appended.

        Entries whose name is already registered are skipped; the receiver
        is never modified.
        """
        extra = []
        for entry in entries:
            if normalize_type_name(entry.name) in self._by_name:
                logger.warning(f"{self.family}: type '{entry.name}' already registered, not extending")
                continue
            extra.append(entry)
        return type(self)(entries=self._entries + tuple(extra),
                          cache_size=self._cache_size, strict=self._strict)

    @property
    def strict(self) -> bool:
        return self._strict

    # ==================== Listing ====================

    @property
    def entries(self) -> Tuple[ProviderDataType, ...]:
        return self._entries

    def list_data_types(self, category: Optional[DataTypeCategory] = None,
                        common_only: bool = False,
                        include_custom: bool = True) -> List[ProviderDataType]:
        """Entries ordered by category, then name."""
        result = [
            e for e in self._entries
            if (category is None or e.category == category)
            and (not common_only or e.is_common)
            and (include_custom or not e.is_custom)
        ]
        return sorted(result, key=lambda e: (e.category.sort_key, e.name.lower()))

    def get_data_type(self, native_type: str) -> Optional[ProviderDataType]:
        """Entry for a native spelling (parameters ignored), or None."""
        base, _ = self._split_parameters(normalize_type_name(native_type))
        return self._lookup(base)

    def supported_logical_types(self) -> Set[LogicalType]:
        """Logical types with a native entry in this dialect."""
        return set(self._by_logical.keys())

    def is_supported(self, logical_type: LogicalType) -> bool:
        return logical_type in self._by_logical or logical_type in self.fallbacks

    # ==================== Resolution ====================

    def resolve_native_type(self, logical_type, options: Optional[TypeOptions] = None) -> str:
        """
        Native spelling for a logical type.

        Args:
            logical_type: LogicalType (or its value/name)
            options: Requested length/precision/scale

        Returns:
            Native type string, e.g. "nvarchar(255)"

        Raises:
            UnsupportedTypeError: No entry or fallback exists for the logical type
        """
        return self._resolve_cached(LogicalType.parse(logical_type), options or DEFAULT_OPTIONS)

    def _resolve(self, logical_type: LogicalType, options: TypeOptions) -> str:
        if logical_type == LogicalType.OPAQUE:
            if options.custom_name:
                return options.custom_name
            raise UnsupportedTypeError(
                f"Opaque types need their native spelling ({self.family})", object_ref=logical_type.value)

        if logical_type == LogicalType.CUSTOM:
            entry = self._lookup(normalize_type_name(options.custom_name or ""))
            if entry is None:
                raise UnsupportedTypeError(
                    f"Custom type '{options.custom_name}' is not registered for {self.family}; "
                    f"extend the registry first", object_ref=options.custom_name)
            return self._render(entry, options)

        if logical_type == LogicalType.ARRAY and LogicalType.ARRAY in self._by_logical:
            return self._resolve_array(options)

        candidates = self._by_logical.get(logical_type)
        if not candidates:
            fallback = self.fallbacks.get(logical_type)
            if fallback is None:
                raise UnsupportedTypeError(
                    f"No {self.family} type for logical type '{logical_type.value}'",
                    object_ref=logical_type.value)
            target, target_options = fallback
            logger.debug(f"{self.family}: storing {logical_type.value} as {target.value}")
            return self._resolve(target, replace(target_options, unicode=options.unicode))

        return self._render(self._pick(candidates, options), options)

    def _resolve_array(self, options: TypeOptions) -> str:
        raise UnsupportedTypeError(f"{self.family} has no native array types", object_ref="array")

    def _pick(self, candidates: List[ProviderDataType], options: TypeOptions) -> ProviderDataType:
        pool = candidates
        unicode = options.unicode if options.unicode is not None else candidates[0].is_unicode
        if unicode is not None:
            matching = [c for c in candidates if c.is_unicode in (unicode, None)]
            if matching:
                pool = matching

        requested = options.length
        if requested is None:
            for entry in pool:
                if entry.renders_without_length:
                    return entry
            return pool[0]

        if requested == UNBOUNDED_LENGTH:
            for entry in pool:
                if entry.effective_capacity is None:
                    return entry
            return max(pool, key=_capacity_key)

        for entry in pool:
            cap = entry.effective_capacity
            if cap is None or cap >= requested:
                return entry
        widest = max(pool, key=_capacity_key)
        logger.debug(f"{self.family}: length {requested} exceeds every {widest.logical_type.value} "
                     f"type, clamping to {widest.name}")
        return widest

    def _render(self, entry: ProviderDataType, options: TypeOptions) -> str:
        params = None
        if entry.supports_length:
            length = options.length if options.length is not None else entry.default_length
            if length is not None:
                if length == UNBOUNDED_LENGTH or (entry.max_length is not None and length > entry.max_length):
                    if entry.unbounded_keyword:
                        params = entry.unbounded_keyword
                    else:
                        params = str(entry.max_length)
                else:
                    params = str(_clamp(length, entry.min_length, entry.max_length))
        elif entry.supports_precision:
            precision = options.precision if options.precision is not None else entry.default_precision
            if precision is not None:
                precision = _clamp(precision, entry.min_precision, entry.max_precision)
                if entry.supports_scale:
                    scale = options.scale if options.scale is not None else entry.default_scale
                    max_scale = precision if entry.max_scale is None else min(entry.max_scale, precision)
                    params = f"{precision},{_clamp(scale or 0, entry.min_scale, max_scale)}"
                else:
                    params = str(precision)
        elif options.values and entry.logical_type in (LogicalType.ENUM, LogicalType.SET):
            params = ",".join("'" + v.replace("'", "''") + "'" for v in options.values)
        return self._insert_parameters(entry.name, params)

    @staticmethod
    def _insert_parameters(name: str, params: Optional[str]) -> str:
        """Append "(params)", placing it before a " with time zone" style suffix."""
        if params is None:
            return name
        idx = name.find(" with")
        if idx > 0:
            return f"{name[:idx]}({params}){name[idx:]}"
        return f"{name}({params})"

    # ==================== Classification ====================

    def classify_native_type(self, native_type: str) -> LogicalType:
        """Logical type of a native spelling (OPAQUE when unknown)."""
        return self.describe_native_type(native_type).logical_type

    def describe_native_type(self, native_type: str) -> NativeTypeInfo:
        """
        Parse and classify a native type string.

        Raises:
            UnsupportedTypeError: Unknown type while strict classification is on
        """
        text = " ".join((native_type or "").strip().split())
        return self._describe_cached(text)

    def _split_parameters(self, lowered: str) -> Tuple[str, List[str]]:
        groups = _PARAM_GROUP.findall(lowered)
        base = _PARAM_GROUP.sub(" ", lowered)
        words = [w for w in base.split() if w not in self.modifier_words]
        return " ".join(words), groups

    def _lookup(self, base: str) -> Optional[ProviderDataType]:
        entry = self._by_name.get(base)
        if entry is not None:
            return entry
        for flt, candidate in self._patterns:
            if flt.matches(base):
                return candidate
        return None

    def _describe(self, text: str) -> NativeTypeInfo:
        lowered = text.lower()
        if lowered.endswith("[]"):
            return self._describe_array(text)

        base, groups = self._split_parameters(lowered)
        entry = self._lookup(base)
        if entry is None:
            special = self._classify_unknown(text, base, groups)
            if special is not None:
                return special
            return self._opaque(text, base)

        length = precision = scale = None
        values: Tuple[str, ...] = ()
        if groups:
            first = groups[0]
            if entry.logical_type in (LogicalType.ENUM, LogicalType.SET):
                # Re-read from the original text to keep the members' case
                match = _PARAM_GROUP.search(text)
                values = tuple(v.replace("''", "'") for v in _QUOTED_VALUE.findall(match.group(1)))
            else:
                parts = [p.strip() for p in first.split(",")]
                if entry.supports_length:
                    if entry.unbounded_keyword and parts[0] == entry.unbounded_keyword:
                        length = UNBOUNDED_LENGTH
                    elif parts[0].isdigit():
                        length = int(parts[0])
                elif entry.supports_precision and parts[0].isdigit():
                    precision = int(parts[0])
                    if entry.supports_scale and len(parts) > 1 and parts[1].isdigit():
                        scale = int(parts[1])

        info = NativeTypeInfo(
            native_type=text,
            base_name=base,
            logical_type=LogicalType.CUSTOM if entry.is_custom else entry.logical_type,
            category=entry.category,
            length=length,
            precision=precision,
            scale=scale,
            is_unicode=entry.is_unicode,
            values=values,
            entry=entry,
        )
        return self._adjust(info, groups)

    def _adjust(self, info: NativeTypeInfo, groups: List[str]) -> NativeTypeInfo:
        """Dialect hook to refine a classification (e.g. MySQL tinyint(1))."""
        return info

    def _describe_array(self, text: str) -> NativeTypeInfo:
        return self._opaque(text, normalize_type_name(text))

    def _classify_unknown(self, text: str, base: str, groups: List[str]) -> Optional[NativeTypeInfo]:
        """Dialect hook for spellings no entry or pattern covers."""
        return None

    def _opaque(self, text: str, base: str) -> NativeTypeInfo:
        if self._strict and text:
            raise UnsupportedTypeError(f"Unrecognized {self.family} native type: {text}", object_ref=text)
        if text:
            logger.debug(f"{self.family}: passing through unrecognized native type '{text}'")
        return NativeTypeInfo(
            native_type=text,
            base_name=base,
            logical_type=LogicalType.OPAQUE,
            category=DataTypeCategory.OPAQUE,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({len(self._entries)} types)"
