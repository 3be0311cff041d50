from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from src.domain.entities.profile import ProfileEntity


class LoginRequest(BaseModel):
    """Credentials for a login attempt."""
    login: str = Field(..., min_length=1, description="Profile login", example="alice")
    password: str = Field(..., min_length=1, description="Plain-text password")


class LoginResponse(BaseModel):
    """Response model for a successful login."""
    id: str = Field(..., description="Identifier of the authenticated profile")
    refresh_token: str = Field(..., description="Newly issued refresh token")


class CreateProfileRequest(BaseModel):
    """Request model for creating a profile."""
    login: str = Field(..., min_length=1, max_length=100, description="Unique login", example="alice")
    password: str = Field(..., min_length=1, description="Plain-text password, hashed before storage")
    username: Optional[str] = Field(None, max_length=100, description="Display name", example="Alice")


class CreateProfileResponse(BaseModel):
    """Response model for a created profile."""
    id: str = Field(..., description="Identifier assigned to the new profile")


class ProfileResponse(BaseModel):
    """Profile as returned to clients; the password hash is never exposed."""
    id: str = Field(..., description="Unique identifier of the profile")
    login: str = Field(..., description="Login of the profile", example="alice")
    refresh_token: str = Field("", description="Current refresh token, empty if no session")
    username: Optional[str] = Field(None, description="Display name", example="Alice")

    @classmethod
    def from_entity(cls, entity: ProfileEntity) -> "ProfileResponse":
        return cls(
            id=entity.id,
            login=entity.login,
            refresh_token=entity.refresh_token,
            username=entity.username,
        )


class UpdateProfileRequest(BaseModel):
    """Request model for replacing a profile's login, password and token."""
    login: str = Field(..., min_length=1, max_length=100, description="New login")
    password: str = Field(..., min_length=1, description="New plain-text password")
    refresh_token: str = Field("", description="Refresh token to store")
    username: Optional[str] = Field(None, max_length=100, description="Display name")


class RefreshTokenRequest(BaseModel):
    """Request model for rotating a refresh token."""
    refresh_token: Optional[str] = Field(
        None, description="Token to store; a new one is generated when omitted"
    )


class RefreshTokenResponse(BaseModel):
    """Response model for a rotated refresh token."""
    id: str = Field(..., description="Identifier of the profile")
    refresh_token: str = Field(..., description="Refresh token now stored for the profile")
