from __future__ import annotations

from unittest.mock import Mock, call

import psycopg2
import pytest
from psycopg2 import pool

from src.infrastructure.database.postgres_client import (
    ISOLATION_LEVEL_REPEATABLE_READ,
    PostgresClient,
    TransactionBeginError,
    WriteResult,
)


def test_commits_and_returns_connection(pg_pool):
    connection_pool, conn, cursor = pg_pool
    client = PostgresClient(connection_pool)

    with client.transaction() as tx:
        cursor.rowcount = 2
        result = tx.execute("DELETE FROM t WHERE a = %s", (1,))

    assert result == WriteResult(rows_affected=2)
    conn.set_session.assert_called_once_with(isolation_level=ISOLATION_LEVEL_REPEATABLE_READ)
    conn.commit.assert_called_once()
    conn.rollback.assert_not_called()
    connection_pool.putconn.assert_called_once_with(conn, close=False)


def test_rolls_back_and_reraises(pg_pool):
    connection_pool, conn, _ = pg_pool
    client = PostgresClient(connection_pool)

    with pytest.raises(ValueError):
        with client.transaction():
            raise ValueError("boom")

    conn.rollback.assert_called_once()
    conn.commit.assert_not_called()
    connection_pool.putconn.assert_called_once_with(conn, close=False)


def test_statement_timeout_is_set_locally(pg_pool):
    connection_pool, _, cursor = pg_pool
    client = PostgresClient(connection_pool)

    with client.transaction(statement_timeout_ms=250) as tx:
        tx.fetch_one("SELECT 1")

    assert cursor.execute.call_args_list[0] == call("SET LOCAL statement_timeout = %s", (250,))
    assert cursor.execute.call_args_list[1] == call("SELECT 1", ())


def test_fetch_one_returns_dict(pg_pool):
    connection_pool, _, cursor = pg_pool
    cursor.fetchone.return_value = {"id": "abc"}
    client = PostgresClient(connection_pool)

    with client.transaction() as tx:
        assert tx.fetch_one("SELECT id FROM t") == {"id": "abc"}


def test_commit_failure_goes_to_callback(pg_pool):
    connection_pool, conn, _ = pg_pool
    conn.commit.side_effect = psycopg2.OperationalError("server closed the connection")
    on_commit_error = Mock()
    client = PostgresClient(connection_pool)

    with client.transaction(on_commit_error=on_commit_error):
        pass

    on_commit_error.assert_called_once()
    assert isinstance(on_commit_error.call_args[0][0], psycopg2.OperationalError)
    connection_pool.putconn.assert_called_once_with(conn, close=True)


def test_rollback_failure_discards_connection(pg_pool):
    connection_pool, conn, _ = pg_pool
    conn.rollback.side_effect = psycopg2.InterfaceError("connection already closed")
    client = PostgresClient(connection_pool)

    with pytest.raises(RuntimeError):
        with client.transaction():
            raise RuntimeError("statement failed")

    connection_pool.putconn.assert_called_once_with(conn, close=True)


def test_pool_exhaustion_is_begin_error(pg_pool):
    connection_pool, conn, _ = pg_pool
    connection_pool.getconn.side_effect = pool.PoolError("connection pool exhausted")
    client = PostgresClient(connection_pool)

    with pytest.raises(TransactionBeginError):
        with client.transaction():
            pass

    conn.commit.assert_not_called()
    connection_pool.putconn.assert_not_called()


def test_disabled_client_refuses_transactions(monkeypatch):
    monkeypatch.setenv("USE_POSTGRES", "0")
    client = PostgresClient()
    with pytest.raises(RuntimeError):
        with client.transaction():
            pass
