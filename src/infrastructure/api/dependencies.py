from __future__ import annotations

import os
from functools import lru_cache

from fastapi import Depends

from src.application.use_cases.profile_service import ProfileService
from src.infrastructure.database.postgres_client import get_postgres_client
from src.infrastructure.database.repositories.profile_repository import ProfileRepository


def _statement_timeout_ms() -> int | None:
    raw = os.getenv("PROFILE_STATEMENT_TIMEOUT_MS")
    return int(raw) if raw else None


# One repository per process so the in-memory backend keeps its rows between requests.
@lru_cache(maxsize=1)
def get_profile_repo() -> ProfileRepository:
    return ProfileRepository(get_postgres_client(), statement_timeout_ms=_statement_timeout_ms())


def get_profile_service(profiles: ProfileRepository = Depends(get_profile_repo)) -> ProfileService:
    return ProfileService(profiles=profiles)
