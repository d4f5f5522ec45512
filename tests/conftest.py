"""
Pytest configuration and fixtures for DataForge Schema tests.
"""
import pytest

from dataforge_schema.config import EngineSettings, set_settings
from dataforge_schema.connection import connect_sqlite
from dataforge_schema.methods import get_methods


@pytest.fixture(autouse=True)
def default_settings():
    """Run every test with default engine settings."""
    set_settings(EngineSettings())
    yield
    set_settings(None)


@pytest.fixture
def db(tmp_path):
    """SQLite database in a temporary directory."""
    connection = connect_sqlite(tmp_path / "test.db")
    yield connection
    connection.close()


@pytest.fixture
def methods(db):
    """SQLite methods provider for the db fixture."""
    return get_methods(db)


class FakeCursor:
    """DB-API cursor replaying scripted results."""

    def __init__(self, connection):
        self.connection = connection
        self.description = None
        self.rowcount = -1
        self._rows = []

    def execute(self, sql, params=None):
        self.connection.executed.append((sql, params))
        for pattern, columns, rows in self.connection.script:
            if (pattern(sql, params) if callable(pattern) else pattern in sql):
                self.description = [(c,) for c in columns]
                self._rows = [tuple(r) for r in rows]
                self.rowcount = len(self._rows)
                return
        self.description = None
        self._rows = []
        self.rowcount = 0

    def fetchall(self):
        return list(self._rows)

    def close(self):
        pass


class FakeConnection:
    """
    DB-API connection answering queries from a script.

    script: list of (pattern, column names, rows); the first entry whose
    pattern matches answers the query. A pattern is a substring of the SQL
    or a callable taking (sql, params).
    """

    def __init__(self, script=None):
        self.script = list(script or [])
        self.executed = []
        self.commits = 0
        self.rollbacks = 0

    def cursor(self):
        return FakeCursor(self)

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    def close(self):
        pass

    @property
    def statements(self):
        return [sql for sql, _ in self.executed]


@pytest.fixture
def fake_connection():
    """Factory for scripted DB-API connections."""
    return FakeConnection
