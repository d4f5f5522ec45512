"""
Utility helpers shared by dialects, loaders and providers.
"""

from .wildcard import WildcardFilter, matches_wildcard, wildcard_to_regex
from .identifiers import (
    normalize_name,
    unquote_identifier,
    extract_version,
)

__all__ = [
    "WildcardFilter",
    "matches_wildcard",
    "wildcard_to_regex",
    "normalize_name",
    "unquote_identifier",
    "extract_version",
]
