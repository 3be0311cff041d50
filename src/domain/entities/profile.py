from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ProfileEntity:
    id: str  # canonical UUID string; the repository rejects ids uuid.UUID cannot parse
    login: str
    password: str  # pre-hashed, opaque to the store
    refresh_token: str = ""
    username: str | None = None


@dataclass(frozen=True)
class UpdateTokens:
    id: str
    refresh_token: str


@dataclass(frozen=True)
class Auth:
    login: str
    password: str
