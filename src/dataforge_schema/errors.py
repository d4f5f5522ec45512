"""
Schema Engine Errors - Exception taxonomy and driver error diagnostics

Every error raised by the engine derives from SchemaEngineError and carries:
- kind: short machine-readable error kind ("validation", "driver", ...)
- object_ref: the offending object reference (ObjectRef, name or None)
- sql: the generated SQL text, when a statement was involved

Driver failures are never swallowed: they are re-raised as DriverError with the
original exception chained and a human hint derived from the message text.
"""

import re
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

import logging
logger = logging.getLogger(__name__)


class SchemaEngineError(Exception):
    """Base class for all engine errors."""

    kind = "error"

    def __init__(self, message: str, object_ref: Any = None, sql: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.object_ref = object_ref
        self.sql = sql

    def __str__(self) -> str:
        parts = [self.message]
        if self.object_ref is not None:
            parts.append(f"[object: {self.object_ref}]")
        if self.sql:
            parts.append(f"[sql: {self.sql}]")
        return " ".join(parts)


class ValidationError(SchemaEngineError, ValueError):
    """Malformed canonical model, raised before any I/O."""
    kind = "validation"


class UnsupportedOperationError(SchemaEngineError):
    """The dialect lacks the requested capability."""
    kind = "unsupported_operation"


class UnsupportedTypeError(SchemaEngineError):
    """No registry entry resolves (or classifies) a type for the dialect."""
    kind = "unsupported_type"


class UnsupportedProviderError(SchemaEngineError):
    """No Dialect Methods Provider is registered for a connection's driver family."""
    kind = "unsupported_provider"


class ObjectNotFoundError(SchemaEngineError):
    """The operation requires an existing object that is absent."""
    kind = "not_found"


class ObjectAlreadyExistsError(SchemaEngineError):
    """A strict create was issued against an existing object."""
    kind = "already_exists"


class FormatError(SchemaEngineError, ValueError):
    """A codec failed to parse an interchange-format value."""
    kind = "format"


class OperationCancelledError(SchemaEngineError):
    """The caller's cancellation token was triggered."""
    kind = "cancelled"


class DriverError(SchemaEngineError):
    """Opaque passthrough of an error reported by the underlying connection."""
    kind = "driver"

    def __init__(self, message: str, original: BaseException = None,
                 object_ref: Any = None, sql: Optional[str] = None,
                 family: str = ""):
        super().__init__(message, object_ref=object_ref, sql=sql)
        self.original = original
        self.family = family
        self.info = describe_driver_error(original if original is not None else message, family)

    @property
    def hint(self) -> str:
        return self.info.hint


# ==================== Driver error diagnostics ====================

@dataclass
class DriverErrorInfo:
    """Structured driver error information."""
    title: str          # Short error title
    hint: str           # What is probably wrong
    original_error: str  # Original error text for debugging

    def format_full(self) -> str:
        """Format complete error message for display."""
        parts = [self.title, "", self.original_error]
        if self.hint:
            parts.extend(["", "Hint:", self.hint])
        return "\n".join(parts)


# Format: (regex_pattern, title, hint_template)
# Use {match} in hint_template to include regex group(1)
_Pattern = Tuple[str, str, str]

SQLSERVER_PATTERNS: List[_Pattern] = [
    (
        r"Invalid object name '([^']+)'",
        "Object not found",
        "The object '{match}' does not exist or is not visible to this login.",
    ),
    (
        r"There is already an object named '([^']+)'",
        "Object already exists",
        "An object named '{match}' already exists in the database.",
    ),
    (
        r"(?:permission was denied|does not have permission)",
        "Permission denied",
        "The login lacks the permission required for this DDL statement.",
    ),
    (
        r"was deadlocked",
        "Deadlock",
        "The statement was chosen as a deadlock victim; retry the operation.",
    ),
]

POSTGRESQL_PATTERNS: List[_Pattern] = [
    (
        r"relation \"?([^\"\s]+)\"? does not exist",
        "Object not found",
        "The relation '{match}' does not exist in the searched schemas.",
    ),
    (
        r"relation \"?([^\"\s]+)\"? already exists",
        "Object already exists",
        "A relation named '{match}' already exists.",
    ),
    (
        r"permission denied for (?:schema|table|relation|database) (\w+)",
        "Permission denied",
        "The role is not allowed to modify '{match}'.",
    ),
    (
        r"current transaction is aborted",
        "Transaction aborted",
        "An earlier statement failed inside the caller's transaction; roll it back first.",
    ),
    (
        r"deadlock detected",
        "Deadlock",
        "Concurrent DDL collided; retry the operation.",
    ),
]

MYSQL_PATTERNS: List[_Pattern] = [
    (
        r"Table '([^']+)' doesn't exist",
        "Object not found",
        "The table '{match}' does not exist in the current database.",
    ),
    (
        r"Table '([^']+)' already exists",
        "Object already exists",
        "A table named '{match}' already exists.",
    ),
    (
        r"command denied to user",
        "Permission denied",
        "The account lacks the privilege required for this DDL statement.",
    ),
    (
        r"Lock wait timeout exceeded",
        "Lock timeout",
        "Another session holds a metadata lock on the object.",
    ),
]

SQLITE_PATTERNS: List[_Pattern] = [
    (
        r"no such (?:table|index|view|column): (\S+)",
        "Object not found",
        "The object '{match}' does not exist in the database file.",
    ),
    (
        r"(?:table|index|view) (\S+) already exists",
        "Object already exists",
        "An object named '{match}' already exists.",
    ),
    (
        r"database is locked",
        "Database locked",
        "Another connection holds a write lock on the database file.",
    ),
    (
        r"(?:read-only|readonly)",
        "Read-only database",
        "The database file or its directory is not writable.",
    ),
]

GENERIC_PATTERNS: List[_Pattern] = [
    (
        r"syntax error|incorrect syntax|you have an error in your sql syntax",
        "Syntax error",
        "The generated statement was rejected by the server; check the dialect and server version.",
    ),
    (
        r"(?:timeout|timed out)",
        "Timeout",
        "The server did not answer in time.",
    ),
    (
        r"(?:connection (?:refused|reset|closed)|server has gone away|closed the connection)",
        "Connection lost",
        "The connection is no longer usable; reconnect and retry.",
    ),
]

_FAMILY_PATTERNS = {
    "sqlserver": SQLSERVER_PATTERNS,
    "postgresql": POSTGRESQL_PATTERNS,
    "mysql": MYSQL_PATTERNS,
    "sqlite": SQLITE_PATTERNS,
}


def describe_driver_error(error: Any, family: str = "") -> DriverErrorInfo:
    """
    Derive a short title and hint from a driver error message.

    Args:
        error: The exception (or message) reported by the driver
        family: Driver family key (sqlserver, postgresql, mysql, sqlite)

    Returns:
        DriverErrorInfo with a hint (generic when no pattern matches)
    """
    original_error = str(error)

    patterns = _FAMILY_PATTERNS.get(family)
    if patterns is None:
        patterns = [p for group in _FAMILY_PATTERNS.values() for p in group]
    patterns = patterns + GENERIC_PATTERNS

    for pattern, title, hint_template in patterns:
        match = re.search(pattern, original_error, re.IGNORECASE)
        if match:
            hint = hint_template
            if "{match}" in hint and match.groups():
                hint = hint.replace("{match}", match.group(1))
            return DriverErrorInfo(title=title, hint=hint, original_error=original_error)

    return DriverErrorInfo(
        title="Driver error",
        hint="The database reported an error; see the original message.",
        original_error=original_error,
    )
