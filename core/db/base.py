"""
Low-level database helpers (Postgres-only).
"""
from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from typing import Any, Iterable

try:
    import psycopg
    from psycopg.rows import dict_row
except Exception as exc:  # pragma: no cover - required dependency
    raise RuntimeError("psycopg is required for Postgres") from exc


class DatabaseUnavailable(RuntimeError):
    """The store cannot be reached (missing config, connection or server failure)."""


def _resolve_database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if not url:
        raise DatabaseUnavailable("DATABASE_URL must be set for Postgres usage")
    if url.startswith("postgres://") or url.startswith("postgresql://"):
        return url
    raise DatabaseUnavailable("DATABASE_URL must start with postgres:// or postgresql://")


def _convert_qmarks(sql: str) -> str:
    if "?" not in sql:
        return sql
    return sql.replace("?", "%s")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def to_json(value: Any) -> str | None:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False, sort_keys=True)


def from_json(raw: Any, default: Any = None) -> Any:
    if raw is None or raw == "":
        return default
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except ValueError:
        return default


class _CursorWrapper:
    def __init__(self, cursor, dialect: str):
        self._cursor = cursor
        self._dialect = dialect

    def execute(self, sql: str, params: Iterable | None = None):
        if self._dialect == "postgres":
            sql = _convert_qmarks(sql)
        try:
            if params is None:
                return self._cursor.execute(sql)
            return self._cursor.execute(sql, params)
        except psycopg.OperationalError as exc:
            raise DatabaseUnavailable(str(exc)) from exc

    def executemany(self, sql: str, seq_of_params: Iterable):
        if self._dialect == "postgres":
            sql = _convert_qmarks(sql)
        try:
            return self._cursor.executemany(sql, seq_of_params)
        except psycopg.OperationalError as exc:
            raise DatabaseUnavailable(str(exc)) from exc

    def fetchone(self):
        return self._cursor.fetchone()

    def fetchall(self):
        return self._cursor.fetchall()

    def __iter__(self):
        return iter(self._cursor)

    @property
    def rowcount(self):
        return getattr(self._cursor, "rowcount", 0)


class _ConnWrapper:
    def __init__(self, conn, dialect: str):
        self._conn = conn
        self.dialect = dialect

    def cursor(self):
        return _CursorWrapper(self._conn.cursor(), self.dialect)

    def commit(self):
        try:
            return self._conn.commit()
        except psycopg.OperationalError as exc:
            raise DatabaseUnavailable(str(exc)) from exc

    def close(self):
        return self._conn.close()


def get_conn():
    """
    Return a Postgres DB connection (DATABASE_URL required).

    Raises DatabaseUnavailable when the URL is missing or the server cannot be reached.
    """
    database_url = _resolve_database_url()
    try:
        conn = psycopg.connect(database_url, row_factory=dict_row)
    except psycopg.OperationalError as exc:
        raise DatabaseUnavailable(str(exc)) from exc
    return _ConnWrapper(conn, "postgres")
