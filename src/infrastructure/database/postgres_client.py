"""PostgreSQL database client.

This module provides a thread-safe connection pool and a transaction scope
that runs a unit of work at a fixed isolation level and always ends it with a
commit or a rollback before the connection goes back to the pool.
"""
from __future__ import annotations

import os
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Generator

import psycopg2
from psycopg2 import extensions, pool
from psycopg2.extras import RealDictCursor

from src.infrastructure.logger import get_logger

logger = get_logger(__name__)

ISOLATION_LEVEL_REPEATABLE_READ = extensions.ISOLATION_LEVEL_REPEATABLE_READ


class TransactionBeginError(RuntimeError):
    """Raised when a connection cannot be taken from the pool or prepared."""


@dataclass(frozen=True)
class WriteResult:
    rows_affected: int


class Transaction:
    """Statement runner bound to one open transaction."""

    def __init__(self, conn: Any) -> None:
        self._conn = conn

    def fetch_one(self, query: str, params: tuple = ()) -> dict[str, Any] | None:
        """Execute a query and return the first row.

        Args:
            query: SQL query string.
            params: Query parameters.

        Returns:
            First row as dictionary or None if no results.
        """
        with self._conn.cursor(cursor_factory=RealDictCursor) as cursor:
            cursor.execute(query, params)
            row = cursor.fetchone()
            return dict(row) if row else None

    def execute(self, query: str, params: tuple = ()) -> WriteResult:
        """Execute an INSERT, UPDATE or DELETE statement.

        Returns:
            The number of rows the statement changed.
        """
        with self._conn.cursor() as cursor:
            cursor.execute(query, params)
            return WriteResult(rows_affected=cursor.rowcount)


class PostgresClient:
    """PostgreSQL database client with connection pooling."""

    def __init__(self, connection_pool: Any = None) -> None:
        """Initialize from an existing pool or build one from the environment."""
        self.enabled = connection_pool is not None or os.getenv("USE_POSTGRES", "0") == "1"
        self._pool: Any = connection_pool

        if self._pool is None and self.enabled:
            try:
                self._pool = pool.ThreadedConnectionPool(
                    minconn=int(os.getenv("POSTGRES_POOL_MIN", "1")),
                    maxconn=int(os.getenv("POSTGRES_POOL_MAX", "10")),
                    host=os.getenv("POSTGRES_HOST", "localhost"),
                    port=int(os.getenv("POSTGRES_PORT", "5432")),
                    database=os.getenv("POSTGRES_DB", "profile"),
                    user=os.getenv("POSTGRES_USER", "profile"),
                    password=os.getenv("POSTGRES_PASSWORD", "profile_dev_password"),
                )
            except psycopg2.Error as exc:  # pragma: no cover
                raise RuntimeError(f"Failed to initialize PostgreSQL connection pool: {exc}") from exc
            logger.info("PostgreSQL connection pool initialized")

    @contextmanager
    def transaction(
        self,
        isolation_level: int = ISOLATION_LEVEL_REPEATABLE_READ,
        statement_timeout_ms: int | None = None,
        on_commit_error: Callable[[Exception], None] | None = None,
    ) -> Generator[Transaction, None, None]:
        """Run the enclosed block inside one transaction.

        The transaction is rolled back when the block raises (the exception
        propagates) and committed otherwise. A failed commit is handed to
        ``on_commit_error`` instead of being raised.

        Args:
            isolation_level: psycopg2 isolation level constant.
            statement_timeout_ms: Deadline applied with ``SET LOCAL
                statement_timeout``; the server cancels statements that
                exceed it.
            on_commit_error: Callback receiving the commit exception.

        Yields:
            Transaction bound to the pooled connection.

        Raises:
            TransactionBeginError: If no connection could be obtained or the
                transaction could not be started.
        """
        if not self.enabled or self._pool is None:
            raise RuntimeError("PostgreSQL database is not enabled")

        conn = None
        try:
            conn = self._pool.getconn()
            conn.set_session(isolation_level=isolation_level)
            if statement_timeout_ms:
                with conn.cursor() as cursor:
                    cursor.execute("SET LOCAL statement_timeout = %s", (int(statement_timeout_ms),))
        except (psycopg2.Error, pool.PoolError) as exc:
            if conn is not None:
                self._release(conn, discard=True)
            raise TransactionBeginError(str(exc)) from exc

        discard = False
        try:
            yield Transaction(conn)
        except BaseException:
            try:
                conn.rollback()
            except psycopg2.Error as rollback_exc:
                logger.error("Rollback failed: %s", rollback_exc)
                discard = True
            raise
        else:
            try:
                conn.commit()
            except psycopg2.Error as commit_exc:
                discard = True
                if on_commit_error is not None:
                    on_commit_error(commit_exc)
                else:
                    logger.error("Commit failed: %s", commit_exc)
        finally:
            self._release(conn, discard=discard)

    def _release(self, conn: Any, discard: bool = False) -> None:
        try:
            self._pool.putconn(conn, close=discard)
        except pool.PoolError as exc:
            logger.warning("Could not return connection to pool: %s", exc)

    def close(self) -> None:
        """Close all connections in the pool."""
        if self._pool:
            self._pool.closeall()


# Singleton instance
_POSTGRES_CLIENT: PostgresClient | None = None


def get_postgres_client() -> PostgresClient | None:
    """Get PostgreSQL client singleton.

    Returns:
        PostgresClient instance if enabled, None otherwise.
    """
    global _POSTGRES_CLIENT
    if os.getenv("USE_POSTGRES", "0") != "1":
        return None
    if _POSTGRES_CLIENT is None:
        _POSTGRES_CLIENT = PostgresClient()
    return _POSTGRES_CLIENT
