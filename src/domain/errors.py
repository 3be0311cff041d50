"""Errors raised by the profile store and the layers above it."""
from __future__ import annotations


class ProfileStoreError(RuntimeError):
    """Base class for store failures, carrying the operation and statement."""

    def __init__(self, operation: str, statement: str, cause: object = None) -> None:
        self.operation = operation
        self.statement = statement
        self.cause = cause
        message = f"{operation}: {statement}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class StoreConnectionError(ProfileStoreError):
    """Raised when a pooled connection or transaction cannot be obtained."""


class NotFoundError(ProfileStoreError):
    """Raised when no row matched a lookup or was affected by a write."""


class ConflictError(ProfileStoreError):
    """Raised when a write violates a unique or other integrity constraint."""


class CommitAnomalyError(ProfileStoreError):
    """Commit failed after the statement succeeded.

    Never raised to callers; it is logged so the failure is visible while the
    operation's own result stands.
    """


class InvalidCredentialsError(Exception):
    """Raised when a login/password pair does not match a stored profile."""


class InvalidIdError(ProfileStoreError):
    """Raised when a new profile's id is not a UUID."""
