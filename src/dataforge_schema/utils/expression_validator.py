"""
SQL Expression Validator - Reject unsafe raw SQL fragments before DDL generation

Check expressions, default expressions and view definitions are dialect SQL
passed through verbatim into generated statements. They are screened for:
- comments and statement separators
- control characters
- keywords that have no business inside a constraint or view body
"""

import re
from typing import Iterable

from ..constants import MAX_EXPRESSION_LENGTH
from ..errors import ValidationError

_DANGEROUS_PATTERNS = (
    "--", "/*", "*/", "xp_", "sp_",
    "EXEC", "EXECUTE", "DECLARE", "WHILE", "IF", "GOTO", "WAITFOR",
    "SHUTDOWN", "BACKUP", "RESTORE", "KILL", "DBCC", "BULK",
    "OPENROWSET", "OPENQUERY", "OPENDATASOURCE", "OPENXML",
)

_DDL_PATTERNS = ("ALTER", "CREATE", "DROP", "TRUNCATE", "MERGE")

# Constraint bodies are single expressions: no DML or sub-queries either
_EXPRESSION_ONLY_PATTERNS = (
    "INSERT", "UPDATE", "DELETE", "SELECT", "UNION", "JOIN", "FROM", "WHERE", "INTO",
)

_STRING_LITERAL = re.compile(r"'(?:[^']|'')*'")
_LINE_COMMENT = re.compile(r"--.*$", re.MULTILINE)
_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)


def _strip_literals(expression: str) -> str:
    return _STRING_LITERAL.sub("''", expression)


def _contains_pattern(expression: str, pattern: str) -> bool:
    if pattern.isalpha():
        return re.search(rf"\b{re.escape(pattern)}\b", expression, re.IGNORECASE) is not None
    if pattern[0].isalpha():
        # xp_ / sp_ only at the start of a word ("disp_name" is fine)
        return re.search(rf"\b{re.escape(pattern)}", expression, re.IGNORECASE) is not None
    return pattern in expression


def _validate_basic(expression: str, label: str) -> str:
    if expression is None or not str(expression).strip():
        raise ValidationError(f"{label} cannot be empty")
    if len(expression) > MAX_EXPRESSION_LENGTH:
        raise ValidationError(f"{label} too long (max {MAX_EXPRESSION_LENGTH} characters)")

    unquoted = _strip_literals(expression)
    if "--" in unquoted or "/*" in unquoted:
        raise ValidationError(f"{label} contains a potentially dangerous SQL pattern: comment")

    if any(ord(ch) < 32 and ch not in "\t\n\r" for ch in expression):
        raise ValidationError(f"{label} contains invalid control characters")

    return _BLOCK_COMMENT.sub("", _LINE_COMMENT.sub("", unquoted)).strip()


def _validate_patterns(sanitized: str, patterns: Iterable[str], label: str) -> None:
    for pattern in patterns:
        if _contains_pattern(sanitized, pattern):
            raise ValidationError(f"{label} contains a potentially dangerous SQL pattern: {pattern}")


def validate_check_expression(expression: str) -> None:
    """Raise ValidationError unless the text is a plausible CHECK body."""
    label = "Check constraint expression"
    sanitized = _validate_basic(expression, label)
    _validate_patterns(sanitized, _DANGEROUS_PATTERNS + _DDL_PATTERNS + _EXPRESSION_ONLY_PATTERNS, label)
    if ";" in sanitized:
        raise ValidationError(f"{label} cannot contain multiple statements")


def validate_default_expression(expression: str) -> None:
    """Raise ValidationError unless the text is a plausible DEFAULT value."""
    label = "Default constraint expression"
    sanitized = _validate_basic(expression, label)
    _validate_patterns(sanitized, _DANGEROUS_PATTERNS + _DDL_PATTERNS + _EXPRESSION_ONLY_PATTERNS, label)
    if ";" in sanitized:
        raise ValidationError(f"{label} cannot contain multiple statements")


def validate_view_definition(definition: str) -> None:
    """
    Raise ValidationError unless the text is a single SELECT statement.

    View bodies legitimately use SELECT/FROM/JOIN, so only the dangerous
    pattern list applies. A single trailing semicolon is tolerated.
    """
    label = "View definition"
    sanitized = _validate_basic(definition, label)
    first_word = sanitized.split(None, 1)[0].upper() if sanitized else ""
    if first_word not in ("SELECT", "WITH"):
        raise ValidationError(f"{label} must start with a SELECT statement")
    _validate_patterns(sanitized, _DANGEROUS_PATTERNS + _DDL_PATTERNS, label)
    statements = [s for s in sanitized.split(";") if s.strip()]
    if len(statements) > 1:
        raise ValidationError(f"{label} cannot contain multiple SQL statements")
