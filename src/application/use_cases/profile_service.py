from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass, field

from src.domain.entities.profile import Auth, ProfileEntity, UpdateTokens
from src.domain.errors import InvalidCredentialsError, NotFoundError
from src.domain.services.password_hasher import PasswordHasher
from src.infrastructure.database.repositories.profile_repository import ProfileRepository


def new_refresh_token() -> str:
    return secrets.token_urlsafe(32)


@dataclass
class ProfileService:
    """
    Business operations on profiles.

    Passwords are hashed here before they reach the repository, and login
    verifies the supplied password against the hash the repository returns.
    """

    profiles: ProfileRepository
    hasher: PasswordHasher = field(default_factory=PasswordHasher)

    def sign_up(self, login: str, password: str, username: str | None = None) -> ProfileEntity:
        entity = ProfileEntity(
            id=str(uuid.uuid4()),
            login=login,
            password=self.hasher.hash(password),
            refresh_token="",
            username=username,
        )
        self.profiles.create_profile(entity)
        return entity

    def login(self, auth: Auth) -> tuple[str, str]:
        """
        Check credentials and start a session.

        Returns:
            The profile id and a freshly issued refresh token.

        Raises:
            InvalidCredentialsError: If the login is unknown or the password
                does not match.
        """
        try:
            profile_id, stored_password = self.profiles.authenticate_by_login(auth.login)
        except NotFoundError as exc:
            raise InvalidCredentialsError("Invalid login or password") from exc
        if not self.hasher.verify(auth.password, stored_password):
            raise InvalidCredentialsError("Invalid login or password")

        token = new_refresh_token()
        self.profiles.save_refresh_token(UpdateTokens(id=profile_id, refresh_token=token))
        return profile_id, token

    def get_profile(self, profile_id: str) -> ProfileEntity:
        return self.profiles.get_profile_by_id(profile_id)

    def update_profile(
        self,
        profile_id: str,
        login: str,
        password: str,
        refresh_token: str = "",
        username: str | None = None,
    ) -> ProfileEntity:
        entity = ProfileEntity(
            id=profile_id,
            login=login,
            password=self.hasher.hash(password),
            refresh_token=refresh_token,
            username=username,
        )
        self.profiles.update_profile(entity)
        return entity

    def rotate_refresh_token(self, profile_id: str, refresh_token: str | None = None) -> str:
        """Store ``refresh_token``, or a newly generated one, for the profile."""
        token = refresh_token or new_refresh_token()
        self.profiles.save_refresh_token(UpdateTokens(id=profile_id, refresh_token=token))
        return token

    def delete_profile(self, profile_id: str) -> None:
        self.profiles.delete_profile_by_id(profile_id)
