import sys
from pathlib import Path

import pytest

# The modules live flat under backend/; import the local tree, not an installed copy.
ROOT = Path(__file__).resolve().parents[1]
BACKEND = ROOT / "backend"
sys.path.insert(0, str(BACKEND))


def _description(columns):
    if not columns:
        return None
    return [
        col if isinstance(col, tuple) else (col, None, None, None, None, None, None)
        for col in columns
    ]


class FakeCursor:
    """Minimal DB-API cursor driven by the routes of its FakeConnection."""

    def __init__(self, conn):
        self.conn = conn
        self.description = None
        self.rowcount = -1
        self.closed = False
        self._rows = []

    def execute(self, sql, params=None):
        self.conn.executed.append((sql, params))
        columns, rows = self.conn.respond(sql, params)
        self.description = _description(columns)
        self._rows = list(rows)
        self.rowcount = len(self._rows)

    def fetchall(self):
        return list(self._rows)

    def close(self):
        self.closed = True
        self.conn.close_log.append("cursor")


class FakeConnection:
    """
    ``routes`` is a list of ``(needle, result)``; the first needle found in
    the SQL decides the result.  A result is ``(columns, rows)``, an
    exception to raise, or a callable ``(sql, params)`` returning either.
    """

    def __init__(self, routes=()):
        self.routes = list(routes)
        self.executed = []
        self.close_log = []
        self.closed = False
        self.autocommit = False

    def cursor(self):
        return FakeCursor(self)

    def close(self):
        self.closed = True
        self.close_log.append("connection")

    @property
    def close_calls(self):
        return self.close_log.count("connection")

    def respond(self, sql, params):
        for needle, result in self.routes:
            if needle in sql:
                if callable(result) and not isinstance(result, Exception):
                    result = result(sql, params)
                if isinstance(result, Exception):
                    raise result
                return result
        raise RuntimeError(f"relation does not exist: {sql.strip()[:60]}")


@pytest.fixture
def fake_connection():
    return FakeConnection


@pytest.fixture
def duckdb_file(tmp_path):
    """A DuckDB file with one table and one view."""
    import duckdb

    path = tmp_path / "warehouse.duckdb"
    con = duckdb.connect(str(path))
    try:
        con.execute(
            "CREATE TABLE users (id INTEGER PRIMARY KEY, name VARCHAR NOT NULL, email VARCHAR)"
        )
        con.execute("INSERT INTO users VALUES (1, 'ada', 'ada@example.com'), (2, 'alan', NULL)")
        con.execute("CREATE VIEW active_users AS SELECT id, name FROM users WHERE email IS NOT NULL")
    finally:
        con.close()
    return str(path)
