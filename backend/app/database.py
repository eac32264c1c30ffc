"""DuckDB connection wrapper shared by all stores.

DuckDB is embedded; one connection serves the whole process. The
connection object is not thread-safe, so every statement runs under a
lock (the ASGI test client and the server loop may live on different
threads). Any DuckDB failure surfaces as StorageError.

Usage:
    db = Database(":memory:")
    db.execute("CREATE TABLE t (id VARCHAR)")
    rows = db.fetchall("SELECT * FROM t")
"""
import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence

import duckdb

from app.errors import StorageError

logger = logging.getLogger(__name__)


def new_object_id() -> str:
    """Generate a 24-hex-character identifier."""
    return uuid.uuid4().hex[:24]


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (DuckDB TIMESTAMP semantics)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Database:
    """Thin, lock-guarded access to a single DuckDB connection."""

    def __init__(self, path: str = ":memory:") -> None:
        self._path = path
        self._lock = threading.Lock()
        try:
            self._connection: Optional[duckdb.DuckDBPyConnection] = duckdb.connect(path)
        except duckdb.Error as exc:
            raise StorageError(f"Could not open database {path}: {exc}") from exc
        logger.info("[Database] Opened %s", path)

    @property
    def path(self) -> str:
        return self._path

    def _conn(self) -> duckdb.DuckDBPyConnection:
        if self._connection is None:
            raise StorageError("Database connection is closed")
        return self._connection

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> None:
        with self._lock:
            try:
                self._conn().execute(sql, params or [])
            except duckdb.Error as exc:
                logger.error("[Database] Statement failed: %s", exc)
                raise StorageError(str(exc)) from exc

    def fetchone(self, sql: str, params: Optional[Sequence[Any]] = None) -> Optional[tuple]:
        with self._lock:
            try:
                return self._conn().execute(sql, params or []).fetchone()
            except duckdb.Error as exc:
                logger.error("[Database] Query failed: %s", exc)
                raise StorageError(str(exc)) from exc

    def fetchall(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[tuple]:
        with self._lock:
            try:
                return self._conn().execute(sql, params or []).fetchall()
            except duckdb.Error as exc:
                logger.error("[Database] Query failed: %s", exc)
                raise StorageError(str(exc)) from exc

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None
                logger.info("[Database] Closed %s", self._path)
