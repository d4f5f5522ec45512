"""
Identifier helpers - name sanitizing, synthesized constraint names, versions
"""

import re
from typing import Iterable, Optional, Tuple

from ..constants import (
    CHECK_PREFIX,
    DEFAULT_PREFIX,
    FOREIGN_KEY_PREFIX,
    INDEX_PREFIX,
    PRIMARY_KEY_PREFIX,
    UNIQUE_PREFIX,
)

_NON_IDENTIFIER = re.compile(r"[^0-9A-Za-z_]")
_VERSION = re.compile(r"\d+(?:\.\d+)+")


def normalize_name(name: Optional[str]) -> str:
    """
    Sanitize a name for use inside a synthesized identifier.

    Keeps ASCII letters, digits and underscores; anything else becomes "_".
    """
    if not name:
        return ""
    return _NON_IDENTIFIER.sub("_", name.strip())


def _join(prefix: str, parts: Iterable[str]) -> str:
    return "_".join([prefix] + [normalize_name(p) for p in parts if p])


def primary_key_name(table_name: str, columns: Iterable[str] = ()) -> str:
    return _join(PRIMARY_KEY_PREFIX, [table_name, *columns])


def unique_constraint_name(table_name: str, columns: Iterable[str]) -> str:
    return _join(UNIQUE_PREFIX, [table_name, *columns])


def check_constraint_name(table_name: str, column_name: Optional[str] = None) -> str:
    return _join(CHECK_PREFIX, [table_name, column_name])


def numbered_check_constraint_name(table_name: str, taken: Iterable[Optional[str]]) -> str:
    """ck_{table}_{n} with the lowest n >= 1 whose name is not in taken (case-insensitive)."""
    used = {name.lower() for name in taken if name}
    position = 1
    while check_constraint_name(table_name, str(position)).lower() in used:
        position += 1
    return check_constraint_name(table_name, str(position))


def default_constraint_name(table_name: str, column_name: str) -> str:
    return _join(DEFAULT_PREFIX, [table_name, column_name])


def index_name(table_name: str, columns: Iterable[str]) -> str:
    return _join(INDEX_PREFIX, [table_name, *columns])


def foreign_key_name(table_name: str, columns: Iterable[str],
                     referenced_table: str, referenced_columns: Iterable[str]) -> str:
    return _join(FOREIGN_KEY_PREFIX, [table_name, *columns, referenced_table, *referenced_columns])


def unquote_identifier(text: str) -> str:
    """Strip one level of "", [], or `` quoting (undoubling embedded quotes)."""
    text = text.strip()
    if len(text) >= 2:
        first, last = text[0], text[-1]
        if first == '"' and last == '"':
            return text[1:-1].replace('""', '"')
        if first == "[" and last == "]":
            return text[1:-1].replace("]]", "]")
        if first == "`" and last == "`":
            return text[1:-1].replace("``", "`")
    return text


def extract_version(version_text: Optional[str]) -> Tuple[int, ...]:
    """
    Extract the first dotted version number from a server banner.

    Examples:
        "PostgreSQL 15.7 (Debian 15.7-1.pgdg110+1) on x86_64" -> (15, 7)
        "10.11.6-MariaDB-0+deb12u1" -> (10, 11, 6)

    Returns:
        Tuple of ints, (0,) when nothing version-like is found
    """
    if not version_text:
        return (0,)
    match = _VERSION.search(version_text)
    if not match:
        return (0,)
    return tuple(int(part) for part in match.group(0).split("."))
