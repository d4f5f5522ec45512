"""
Connection collaborator - DB-API connection wrapper with an explicit driver family

The engine never guesses a connection's dialect from its runtime type: every
connection is wrapped once, at composition time, with a DriverFamily tag.

Provides:
- DriverFamily: supported driver families (with common aliases)
- DbConnection: execute / execute_scalar / query with cancellation checks and
  DriverError wrapping
- Transaction: caller-owned transaction handle, passed through unchanged
- CancellationToken: thread-safe cancellation signal
- ConnectionBuilder and connect_* helpers (sqlite3, pyodbc, psycopg2, PyMySQL)

Usage:
    db = connect_sqlite("app.db")
    with db.transaction() as tx:
        methods = get_methods(db)
        methods.create_table_if_not_exists(db, table, tx=tx)
"""

import sqlite3
import threading
from contextlib import contextmanager
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Sequence

from .config import get_settings
from .errors import DriverError, OperationCancelledError, SchemaEngineError, ValidationError

import logging
logger = logging.getLogger(__name__)


class DriverFamily(Enum):
    """Driver families the engine ships providers for."""
    SQLSERVER = "sqlserver"
    MYSQL = "mysql"
    POSTGRESQL = "postgresql"
    SQLITE = "sqlite"

    @classmethod
    def parse(cls, value) -> "DriverFamily":
        """Accept a DriverFamily, its value, or an alias (postgres, mariadb, mssql, sqlite3)."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        text = _FAMILY_ALIASES.get(text, text)
        try:
            return cls(text)
        except ValueError:
            raise ValidationError(f"Unknown driver family: {value}") from None

    @property
    def paramstyle(self) -> str:
        """Placeholder used by the family's driver ("?" or "%s")."""
        return "?" if self in (DriverFamily.SQLITE, DriverFamily.SQLSERVER) else "%s"


_FAMILY_ALIASES = {
    "postgres": "postgresql",
    "pg": "postgresql",
    "mariadb": "mysql",
    "mssql": "sqlserver",
    "sql server": "sqlserver",
    "sqlite3": "sqlite",
}


# ==================== Cancellation ====================

class CancellationToken:
    """
    Cooperative cancellation signal.

    Checked before every statement and between the statements of composite
    operations; a statement already running is not interrupted.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, object_ref: Any = None) -> None:
        if self._event.is_set():
            raise OperationCancelledError("Operation cancelled", object_ref=object_ref)


def check_cancelled(cancellation: Optional[CancellationToken], object_ref: Any = None) -> None:
    """Raise OperationCancelledError when the (optional) token is cancelled."""
    if cancellation is not None:
        cancellation.raise_if_cancelled(object_ref)


# ==================== Transactions ====================

class Transaction:
    """
    Transaction handle owned by the caller.

    Statements issued with a transaction run on it and are never committed by
    the engine; commit()/rollback() belong to whoever began it.
    """

    def __init__(self, db: "DbConnection"):
        self.db = db
        self.active = True

    def commit(self) -> None:
        if not self.active:
            return
        self.active = False
        self.db._finish(commit=True)

    def rollback(self) -> None:
        if not self.active:
            return
        self.active = False
        self.db._finish(commit=False)

    def __enter__(self) -> "Transaction":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            self.commit()
        else:
            self.rollback()
        return False


# ==================== Connection wrapper ====================

class DbConnection:
    """
    DB-API 2.0 connection tagged with its driver family.

    Statements executed without a transaction are committed immediately when
    autocommit is on (default). Driver exceptions are re-raised as DriverError
    carrying the SQL text, with the original exception chained.
    """

    def __init__(self, raw: Any, family, autocommit: bool = True,
                 provider_name: Optional[str] = None, name: Optional[str] = None):
        """
        Initialize the wrapper.

        Args:
            raw: Open DB-API connection (sqlite3, pyodbc, psycopg2, pymysql, ...)
            family: DriverFamily (or alias string) of the connection
            autocommit: Commit statements executed outside a transaction
            provider_name: Factory key overriding the family (decorated connections)
            name: Optional label used in log messages
        """
        if raw is None:
            raise ValidationError("DbConnection needs an open DB-API connection")
        self.raw = raw
        self.family = DriverFamily.parse(family)
        self.autocommit = autocommit
        self.provider_name = provider_name
        self.name = name or self.family.value
        self._transaction: Optional[Transaction] = None
        self._lock = threading.RLock()

    def __repr__(self) -> str:
        return f"DbConnection({self.name!r}, family={self.family.value})"

    @property
    def paramstyle(self) -> str:
        return self.family.paramstyle

    @property
    def in_transaction(self) -> bool:
        return self._transaction is not None and self._transaction.active

    # ==================== Transactions ====================

    def begin(self) -> Transaction:
        """Begin a transaction and return its handle."""
        with self._lock:
            if self.in_transaction:
                raise ValidationError(f"{self.name}: a transaction is already active")
            try:
                if self.family == DriverFamily.SQLITE:
                    if not self.raw.in_transaction:
                        self.raw.execute("BEGIN")
                elif self.family == DriverFamily.MYSQL and hasattr(self.raw, "begin"):
                    self.raw.begin()
                # pyodbc and psycopg2 open transactions implicitly
            except Exception as e:
                raise DriverError(f"Could not begin transaction: {e}", original=e,
                                  family=self.family.value) from e
            self._transaction = Transaction(self)
            logger.debug(f"{self.name}: transaction started")
            return self._transaction

    @contextmanager
    def transaction(self) -> Iterator[Transaction]:
        """
        Transaction context manager.

        Commits on successful exit, rolls back on exception.
        """
        tx = self.begin()
        try:
            yield tx
        except BaseException:
            tx.rollback()
            raise
        else:
            tx.commit()

    def _finish(self, commit: bool) -> None:
        with self._lock:
            self._transaction = None
            try:
                if commit:
                    self.raw.commit()
                else:
                    self.raw.rollback()
            except Exception as e:
                action = "commit" if commit else "rollback"
                raise DriverError(f"Could not {action} transaction: {e}", original=e,
                                  family=self.family.value) from e
            logger.debug(f"{self.name}: transaction {'committed' if commit else 'rolled back'}")

    def _check_transaction(self, tx: Optional[Transaction]) -> None:
        if tx is None:
            return
        if tx.db is not self:
            raise ValidationError("Transaction belongs to a different connection")
        if not tx.active:
            raise ValidationError("Transaction is no longer active")

    # ==================== Execution ====================

    def _run(self, sql: str, params: Optional[Sequence[Any]], tx: Optional[Transaction],
             cancellation: Optional[CancellationToken], fetch: bool):
        check_cancelled(cancellation)
        self._check_transaction(tx)
        if get_settings().log_sql:
            logger.debug(f"[{self.family.value}] {sql}" + (f" -- params: {list(params)}" if params else ""))

        with self._lock:
            cursor = self.raw.cursor()
            try:
                if params:
                    cursor.execute(sql, tuple(params))
                else:
                    cursor.execute(sql)
                rows = None
                columns: List[str] = []
                if fetch and cursor.description is not None:
                    columns = [d[0] for d in cursor.description]
                    rows = cursor.fetchall()
                rowcount = cursor.rowcount
                if tx is None and self.autocommit and not self.in_transaction:
                    self.raw.commit()
            except SchemaEngineError:
                raise
            except Exception as e:
                if tx is None and self.autocommit and not self.in_transaction:
                    # Leave the connection usable (psycopg2 aborts the implicit transaction)
                    try:
                        self.raw.rollback()
                    except Exception as rollback_error:
                        logger.warning(f"{self.name}: rollback after failed statement failed: {rollback_error}")
                raise DriverError(str(e), original=e, sql=sql, family=self.family.value) from e
            finally:
                try:
                    cursor.close()
                except Exception as e:
                    logger.debug(f"{self.name}: error closing cursor: {e}")
        return columns, rows, rowcount

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None,
                tx: Optional[Transaction] = None,
                cancellation: Optional[CancellationToken] = None) -> int:
        """Execute a statement and return the driver's rowcount."""
        _, _, rowcount = self._run(sql, params, tx, cancellation, fetch=False)
        return rowcount

    def execute_scalar(self, sql: str, params: Optional[Sequence[Any]] = None,
                       tx: Optional[Transaction] = None,
                       cancellation: Optional[CancellationToken] = None) -> Any:
        """Execute a query and return the first column of the first row (None when empty)."""
        _, rows, _ = self._run(sql, params, tx, cancellation, fetch=True)
        if not rows:
            return None
        return rows[0][0]

    def query(self, sql: str, params: Optional[Sequence[Any]] = None,
              tx: Optional[Transaction] = None,
              cancellation: Optional[CancellationToken] = None) -> List[Dict[str, Any]]:
        """Execute a query and return every row as a dict keyed by column name."""
        columns, rows, _ = self._run(sql, params, tx, cancellation, fetch=True)
        if not rows:
            return []
        return [dict(zip(columns, row)) for row in rows]

    def close(self) -> None:
        try:
            self.raw.close()
        except Exception as e:
            raise DriverError(f"Could not close connection: {e}", original=e,
                              family=self.family.value) from e


class ConnectionBuilder:
    """
    Fluent builder attaching the driver-family tag to a raw connection.

    Usage:
        db = ConnectionBuilder(raw).family("postgresql").autocommit(False).build()
    """

    def __init__(self, raw: Any = None):
        self._raw = raw
        self._family = None
        self._autocommit = True
        self._provider_name = None
        self._name = None

    def connection(self, raw: Any) -> "ConnectionBuilder":
        self._raw = raw
        return self

    def family(self, family) -> "ConnectionBuilder":
        self._family = DriverFamily.parse(family)
        return self

    def autocommit(self, enabled: bool = True) -> "ConnectionBuilder":
        self._autocommit = enabled
        return self

    def provider(self, provider_name: str) -> "ConnectionBuilder":
        """Use a custom factory key instead of the family (see MethodsFactory)."""
        self._provider_name = provider_name
        return self

    def name(self, name: str) -> "ConnectionBuilder":
        self._name = name
        return self

    def build(self) -> DbConnection:
        if self._raw is None:
            raise ValidationError("ConnectionBuilder: no connection given")
        if self._family is None:
            raise ValidationError("ConnectionBuilder: driver family is required")
        return DbConnection(self._raw, self._family, autocommit=self._autocommit,
                            provider_name=self._provider_name, name=self._name)


# ==================== Driver helpers ====================

def connect_sqlite(path: str = ":memory:", **kwargs) -> DbConnection:
    """
    Open a SQLite database (stdlib sqlite3).

    The connection runs with isolation_level=None; transactions are opened
    explicitly by DbConnection.begin().
    """
    kwargs.setdefault("isolation_level", None)
    raw = sqlite3.connect(str(path), **kwargs)
    return ConnectionBuilder(raw).family(DriverFamily.SQLITE).name(str(path)).build()


def connect_sqlserver(connection_string: str, **kwargs) -> DbConnection:
    """Open a SQL Server connection through pyodbc."""
    import pyodbc
    raw = pyodbc.connect(connection_string, **kwargs)
    return ConnectionBuilder(raw).family(DriverFamily.SQLSERVER).build()


def connect_postgresql(dsn: str = "", **kwargs) -> DbConnection:
    """Open a PostgreSQL connection through psycopg2."""
    import psycopg2
    raw = psycopg2.connect(dsn, **kwargs)
    return ConnectionBuilder(raw).family(DriverFamily.POSTGRESQL).build()


def connect_mysql(**kwargs) -> DbConnection:
    """Open a MySQL / MariaDB connection through PyMySQL."""
    import pymysql
    raw = pymysql.connect(**kwargs)
    return ConnectionBuilder(raw).family(DriverFamily.MYSQL).build()
