"""
adapters/postgres_base.py
──────────────────────────────────────────────────────────────────────────────
Shared psycopg2 connection handling for the Postgres adapters.

Connection management:
  - A single connection is opened lazily and reused.
  - Outside a transaction every statement commits on its own; on
    OperationalError the connection is reset and one retry is attempted.
  - Inside transaction() statements share one database transaction that
    commits on exit and rolls back on any exception.  No retry happens
    there: replaying half a transaction on a fresh connection is unsafe.
  - transaction(lock_key=...) takes pg_advisory_xact_lock, released
    automatically at commit/rollback.

For multi-threaded hosts replace the single connection with a
psycopg2.pool.ThreadedConnectionPool — change only this file.
"""
from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Optional

import psycopg2
import psycopg2.extras

from tiersync.config.settings import Settings
from tiersync.domain.exceptions import DatabaseError

logger = logging.getLogger(__name__)


class PostgresAdapterBase:
    """Lazily connected psycopg2 adapter with transaction support."""

    def __init__(self, settings: Settings) -> None:
        self._dsn = settings.db_dsn
        self._connect_timeout = settings.db_connect_timeout
        self._conn: Any = None
        self._in_transaction = False
        logger.debug("%s ready | dsn=%s", type(self).__name__, self._dsn)

    # ── Transactions ───────────────────────────────────────────────────────

    @contextmanager
    def transaction(self, lock_key: Optional[str] = None) -> Iterator[None]:
        """Group statements into one transaction; nested calls join the outer one."""
        if self._in_transaction:
            if lock_key:
                self._lock(lock_key)
            yield
            return

        conn = self._get_conn()
        self._in_transaction = True
        try:
            if lock_key:
                self._lock(lock_key)
            yield
        except BaseException:
            conn.rollback()
            raise
        else:
            try:
                conn.commit()
            except psycopg2.Error as exc:
                raise DatabaseError(f"commit failed: {exc}") from exc
        finally:
            self._in_transaction = False

    def _lock(self, key: str) -> None:
        self._execute("SELECT pg_advisory_xact_lock(hashtext(%s))", (key,))

    # ── Connection helpers ─────────────────────────────────────────────────

    def _get_conn(self) -> Any:
        """Return an open connection, creating or reusing one."""
        if self._conn is None or self._conn.closed:
            self._conn = self._new_conn()
        return self._conn

    def _new_conn(self) -> Any:
        """Open a fresh psycopg2 connection."""
        try:
            conn = psycopg2.connect(self._dsn, connect_timeout=self._connect_timeout)
            logger.debug("%s: new connection opened", type(self).__name__)
            return conn
        except psycopg2.Error as exc:
            raise DatabaseError(f"Cannot connect to database: {exc}") from exc

    def _execute(self, sql: str, params: tuple = ()) -> list[dict]:
        """Execute a statement and return rows as dicts (empty for no result set)."""
        if self._in_transaction:
            try:
                return self._run(self._conn, sql, params)
            except psycopg2.Error as exc:
                raise DatabaseError(f"DB statement failed: {exc}") from exc

        for attempt in (1, 2):
            conn = self._get_conn()
            try:
                rows = self._run(conn, sql, params)
                conn.commit()
                return rows
            except psycopg2.OperationalError as exc:
                if attempt == 1:
                    logger.warning("DB OperationalError — reconnecting: %s", exc)
                    self._conn = None
                else:
                    raise DatabaseError(f"DB query failed after reconnect: {exc}") from exc
            except psycopg2.Error as exc:
                conn.rollback()
                raise DatabaseError(f"DB statement failed: {exc}") from exc
        return []  # unreachable

    @staticmethod
    def _run(conn: Any, sql: str, params: tuple) -> list[dict]:
        with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
            cur.execute(sql, params)
            if cur.description is None:
                return []
            return [dict(row) for row in cur.fetchall()]

    def close(self) -> None:
        """Explicitly close the connection (optional — GC handles it otherwise)."""
        if self._conn and not self._conn.closed:
            self._conn.close()
            logger.debug("%s: connection closed", type(self).__name__)
