from __future__ import annotations

import logging
import threading
import uuid
from contextlib import contextmanager
from dataclasses import replace
from typing import Generator

import psycopg2

from src.domain.entities.profile import ProfileEntity, UpdateTokens
from src.domain.errors import (
    CommitAnomalyError,
    ConflictError,
    InvalidIdError,
    NotFoundError,
    ProfileStoreError,
    StoreConnectionError,
)
from src.infrastructure.database.postgres_client import (
    PostgresClient,
    Transaction,
    TransactionBeginError,
)
from src.infrastructure.logger import get_logger

SELECT_BY_LOGIN = "SELECT id, password FROM profile.profile WHERE login = %s"
SELECT_BY_ID = (
    "SELECT id, login, password, refresh_token, username FROM profile.profile WHERE id = %s"
)
INSERT_PROFILE = (
    "INSERT INTO profile.profile (id, login, password, refresh_token, username) "
    "VALUES (%s, %s, %s, %s, %s)"
)
UPDATE_PROFILE = (
    "UPDATE profile.profile SET login = %s, password = %s, refresh_token = %s, username = %s "
    "WHERE id = %s"
)
UPDATE_REFRESH_TOKEN = "UPDATE profile.profile SET refresh_token = %s WHERE id = %s"
DELETE_BY_ID = "DELETE FROM profile.profile WHERE id = %s"


def canonical_id(profile_id: object) -> str | None:
    """Return the canonical UUID string for ``profile_id``, or None if it is not a UUID."""
    try:
        return str(uuid.UUID(str(profile_id)))
    except ValueError:
        return None


class ProfileRepository:
    """Profile records with one REPEATABLE READ transaction per operation.

    With a PostgresClient every call runs a single parameterized statement in
    its own transaction. Without one, profiles live in process memory with
    the same error contract.
    """

    def __init__(
        self,
        pg_client: PostgresClient | None,
        logger: logging.Logger | None = None,
        statement_timeout_ms: int | None = None,
    ) -> None:
        self.pg_client = pg_client
        self.logger = logger or get_logger(__name__)
        self.statement_timeout_ms = statement_timeout_ms
        self._mem: dict[str, ProfileEntity] = {}
        self._mem_lock = threading.Lock()

    def _row_to_entity(self, row: dict) -> ProfileEntity:
        """Convert database row to ProfileEntity."""
        return ProfileEntity(
            id=str(row["id"]),
            login=row["login"],
            password=row["password"],
            refresh_token=row.get("refresh_token") or "",
            username=row.get("username"),
        )

    @contextmanager
    def _transaction(
        self, operation: str, statement: str, timeout_ms: int | None
    ) -> Generator[Transaction, None, None]:
        def log_commit_anomaly(exc: Exception) -> None:
            anomaly = CommitAnomalyError(operation, statement, exc)
            self.logger.error("Commit failed after successful statement: %s", anomaly)

        try:
            with self.pg_client.transaction(
                statement_timeout_ms=timeout_ms if timeout_ms is not None else self.statement_timeout_ms,
                on_commit_error=log_commit_anomaly,
            ) as tx:
                yield tx
        except TransactionBeginError as exc:
            self.logger.error("%s: begin transaction failed: %s", operation, exc)
            raise StoreConnectionError(operation, statement, exc) from exc
        except psycopg2.IntegrityError as exc:
            raise ConflictError(operation, statement, exc) from exc
        except psycopg2.Error as exc:
            self.logger.error("%s: statement failed: %s", operation, exc)
            raise ProfileStoreError(operation, statement, exc) from exc

    def authenticate_by_login(self, login: str, *, timeout_ms: int | None = None) -> tuple[str, str]:
        """Return the ``(id, password)`` stored for ``login``.

        The stored password hash is returned as-is; comparing it with the
        supplied secret is the caller's job.

        Raises:
            NotFoundError: If no profile has this login.
        """
        operation = "authenticate_by_login"
        if self.pg_client is not None:
            with self._transaction(operation, SELECT_BY_LOGIN, timeout_ms) as tx:
                row = tx.fetch_one(SELECT_BY_LOGIN, (login,))
                if row is None:
                    raise NotFoundError(operation, SELECT_BY_LOGIN, f"no profile with login {login!r}")
            return str(row["id"]), row["password"]

        with self._mem_lock:
            for entity in self._mem.values():
                if entity.login == login:
                    return entity.id, entity.password
        raise NotFoundError(operation, SELECT_BY_LOGIN, f"no profile with login {login!r}")

    def get_profile_by_id(self, profile_id: str, *, timeout_ms: int | None = None) -> ProfileEntity:
        operation = "get_profile_by_id"
        key = canonical_id(profile_id)
        if key is None:
            raise NotFoundError(operation, SELECT_BY_ID, f"no profile with id {profile_id!r}")
        if self.pg_client is not None:
            with self._transaction(operation, SELECT_BY_ID, timeout_ms) as tx:
                row = tx.fetch_one(SELECT_BY_ID, (key,))
                if row is None:
                    raise NotFoundError(operation, SELECT_BY_ID, f"no profile with id {key}")
            return self._row_to_entity(row)

        with self._mem_lock:
            entity = self._mem.get(key)
        if entity is None:
            raise NotFoundError(operation, SELECT_BY_ID, f"no profile with id {key}")
        return entity

    def create_profile(self, profile: ProfileEntity, *, timeout_ms: int | None = None) -> None:
        """Insert a new profile.

        Raises:
            InvalidIdError: If ``profile.id`` is not a UUID.
            ConflictError: If the id or login is already taken.
        """
        operation = "create_profile"
        key = canonical_id(profile.id)
        if key is None:
            raise InvalidIdError(operation, INSERT_PROFILE, f"id {profile.id!r} is not a UUID")
        profile = replace(profile, id=key)
        if self.pg_client is not None:
            with self._transaction(operation, INSERT_PROFILE, timeout_ms) as tx:
                tx.execute(
                    INSERT_PROFILE,
                    (key, profile.login, profile.password, profile.refresh_token, profile.username),
                )
            self.logger.info("Created profile %s", key)
            return

        with self._mem_lock:
            if key in self._mem:
                raise ConflictError(operation, INSERT_PROFILE, f"id {key} already exists")
            if any(p.login == profile.login for p in self._mem.values()):
                raise ConflictError(operation, INSERT_PROFILE, f"login {profile.login!r} already exists")
            self._mem[key] = profile
        self.logger.info("Created profile %s", key)

    def update_profile(self, profile: ProfileEntity, *, timeout_ms: int | None = None) -> None:
        """Replace login, password, refresh token and username of a profile.

        Raises:
            NotFoundError: If no row has ``profile.id``.
            ConflictError: If the new login belongs to another profile.
        """
        operation = "update_profile"
        key = canonical_id(profile.id)
        if key is None:
            raise NotFoundError(operation, UPDATE_PROFILE, f"no profile with id {profile.id!r}")
        profile = replace(profile, id=key)
        if self.pg_client is not None:
            with self._transaction(operation, UPDATE_PROFILE, timeout_ms) as tx:
                result = tx.execute(
                    UPDATE_PROFILE,
                    (profile.login, profile.password, profile.refresh_token, profile.username, key),
                )
                if result.rows_affected == 0:
                    raise NotFoundError(operation, UPDATE_PROFILE, f"no profile with id {key}")
            return

        with self._mem_lock:
            if key not in self._mem:
                raise NotFoundError(operation, UPDATE_PROFILE, f"no profile with id {key}")
            if any(p.login == profile.login and p.id != key for p in self._mem.values()):
                raise ConflictError(operation, UPDATE_PROFILE, f"login {profile.login!r} already exists")
            self._mem[key] = profile

    def save_refresh_token(self, tokens: UpdateTokens, *, timeout_ms: int | None = None) -> None:
        operation = "save_refresh_token"
        key = canonical_id(tokens.id)
        if key is None:
            raise NotFoundError(operation, UPDATE_REFRESH_TOKEN, f"no profile with id {tokens.id!r}")
        if self.pg_client is not None:
            with self._transaction(operation, UPDATE_REFRESH_TOKEN, timeout_ms) as tx:
                result = tx.execute(UPDATE_REFRESH_TOKEN, (tokens.refresh_token, key))
                if result.rows_affected == 0:
                    raise NotFoundError(operation, UPDATE_REFRESH_TOKEN, f"no profile with id {key}")
            return

        with self._mem_lock:
            current = self._mem.get(key)
            if current is None:
                raise NotFoundError(operation, UPDATE_REFRESH_TOKEN, f"no profile with id {key}")
            self._mem[key] = replace(current, refresh_token=tokens.refresh_token)

    def delete_profile_by_id(self, profile_id: str, *, timeout_ms: int | None = None) -> None:
        operation = "delete_profile_by_id"
        key = canonical_id(profile_id)
        if key is None:
            raise NotFoundError(operation, DELETE_BY_ID, f"no profile with id {profile_id!r}")
        if self.pg_client is not None:
            with self._transaction(operation, DELETE_BY_ID, timeout_ms) as tx:
                result = tx.execute(DELETE_BY_ID, (key,))
                if result.rows_affected == 0:
                    raise NotFoundError(operation, DELETE_BY_ID, f"no profile with id {key}")
            self.logger.info("Deleted profile %s", key)
            return

        with self._mem_lock:
            if self._mem.pop(key, None) is None:
                raise NotFoundError(operation, DELETE_BY_ID, f"no profile with id {key}")
        self.logger.info("Deleted profile %s", key)
