"""
Wildcard Filter - Glob-style name filtering shared by every dialect

Supported syntax:
- "*" matches any run of characters (including none)
- "?" matches exactly one character
- everything else matches literally

Matching is case-insensitive unless requested otherwise. Dialects never push
filters into catalog SQL (LIKE semantics and collations differ per server);
they list names and filter them here so results are identical everywhere.
"""

import re
from typing import Callable, Iterable, List, Optional, Pattern, TypeVar

T = TypeVar("T")


def wildcard_to_regex(pattern: str, case_sensitive: bool = False) -> Pattern:
    """
    Compile a glob pattern into an anchored regular expression.

    Args:
        pattern: Glob pattern ("Cust*", "ord?r")
        case_sensitive: Compare case-sensitively

    Returns:
        Compiled regex matching the whole name
    """
    parts = []
    for ch in pattern:
        if ch == "*":
            parts.append(".*")
        elif ch == "?":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    flags = re.DOTALL if case_sensitive else re.DOTALL | re.IGNORECASE
    return re.compile("^" + "".join(parts) + "$", flags)


def is_match_all(pattern: Optional[str]) -> bool:
    """Whether a filter selects every name (None, blank or a lone '*')."""
    return pattern is None or not pattern.strip() or set(pattern.strip()) == {"*"}


class WildcardFilter:
    """
    Reusable compiled name filter.

    Usage:
        flt = WildcardFilter("Cust*")
        flt.matches("customers")            # True
        flt.filter(["Customers", "Orders"])  # ["Customers"]
    """

    def __init__(self, pattern: Optional[str] = None, case_sensitive: bool = False):
        self.pattern = pattern
        self.case_sensitive = case_sensitive
        self._regex = None if is_match_all(pattern) else wildcard_to_regex(pattern.strip(), case_sensitive)

    def matches(self, name: Optional[str]) -> bool:
        if self._regex is None:
            return True
        if name is None:
            return False
        return self._regex.match(name) is not None

    def filter(self, items: Iterable[T], key: Optional[Callable[[T], str]] = None) -> List[T]:
        """Keep items whose name (item itself, or key(item)) matches."""
        if key is None:
            return [item for item in items if self.matches(item)]
        return [item for item in items if self.matches(key(item))]

    def __repr__(self) -> str:
        return f"WildcardFilter({self.pattern!r}, case_sensitive={self.case_sensitive})"


def matches_wildcard(name: str, pattern: Optional[str], case_sensitive: bool = False) -> bool:
    """One-shot convenience wrapper around WildcardFilter."""
    return WildcardFilter(pattern, case_sensitive).matches(name)
