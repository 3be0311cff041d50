from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from src.application.dtos.common_dto import ErrorResponse, SuccessResponse
from src.application.dtos.profile_dto import (
    CreateProfileRequest,
    CreateProfileResponse,
    LoginRequest,
    LoginResponse,
    ProfileResponse,
    RefreshTokenRequest,
    RefreshTokenResponse,
    UpdateProfileRequest,
)
from src.application.use_cases.profile_service import ProfileService
from src.domain.entities.profile import Auth
from src.domain.errors import (
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    ProfileStoreError,
)
from src.infrastructure.api.dependencies import get_profile_service
from src.infrastructure.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(
    prefix="/profiles",
    tags=["Profiles"],
    responses={
        404: {"model": ErrorResponse, "description": "Not Found - Profile does not exist"},
        422: {"description": "Validation Error - Invalid request format"},
        500: {"model": ErrorResponse, "description": "Internal Server Error - Profile store failure"},
    },
)


def _to_http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    if isinstance(exc, ConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Profile already exists")
    if isinstance(exc, InvalidCredentialsError):
        return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc))
    logger.error("Profile operation failed: %s", exc)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error")


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Log In",
    description="""
    Check a login/password pair and start a session.

    On success a new refresh token is issued and stored for the profile.
    Unknown logins and wrong passwords are reported the same way.
    """,
    responses={401: {"description": "Unauthorized - Invalid login or password"}},
)
def login(body: LoginRequest, service: ProfileService = Depends(get_profile_service)):
    """Authenticate and issue a refresh token."""
    try:
        profile_id, token = service.login(Auth(login=body.login, password=body.password))
    except (InvalidCredentialsError, ProfileStoreError) as exc:
        raise _to_http_error(exc) from exc
    return LoginResponse(id=profile_id, refresh_token=token)


@router.post(
    "",
    response_model=CreateProfileResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Profile",
    description="""
    Create a new profile. The password is hashed before it is stored.

    **Request Requirements:**
    - Login must be unique (case-sensitive)
    - Login and password cannot be empty
    """,
    responses={409: {"description": "Conflict - Login already taken"}},
)
def create_profile(body: CreateProfileRequest, service: ProfileService = Depends(get_profile_service)):
    """Create a profile and return its identifier."""
    try:
        entity = service.sign_up(body.login, body.password, body.username)
    except ProfileStoreError as exc:
        raise _to_http_error(exc) from exc
    return CreateProfileResponse(id=entity.id)


@router.get(
    "/{profile_id}",
    response_model=ProfileResponse,
    summary="Get Profile",
    description="Retrieve a profile by its identifier. The password hash is not returned.",
)
def get_profile(profile_id: str, service: ProfileService = Depends(get_profile_service)):
    try:
        entity = service.get_profile(profile_id)
    except ProfileStoreError as exc:
        raise _to_http_error(exc) from exc
    return ProfileResponse.from_entity(entity)


@router.put(
    "/{profile_id}",
    response_model=SuccessResponse,
    summary="Update Profile",
    description="Replace the login, password, refresh token and display name of a profile.",
    responses={409: {"description": "Conflict - Login already taken"}},
)
def update_profile(
    profile_id: str,
    body: UpdateProfileRequest,
    service: ProfileService = Depends(get_profile_service),
):
    try:
        service.update_profile(
            profile_id,
            login=body.login,
            password=body.password,
            refresh_token=body.refresh_token,
            username=body.username,
        )
    except ProfileStoreError as exc:
        raise _to_http_error(exc) from exc
    return SuccessResponse(ok=True, message="Profile updated")


@router.put(
    "/{profile_id}/refresh-token",
    response_model=RefreshTokenResponse,
    summary="Rotate Refresh Token",
    description="Store a refresh token for the profile, generating one when none is given.",
)
def rotate_refresh_token(
    profile_id: str,
    body: RefreshTokenRequest,
    service: ProfileService = Depends(get_profile_service),
):
    try:
        token = service.rotate_refresh_token(profile_id, body.refresh_token)
    except ProfileStoreError as exc:
        raise _to_http_error(exc) from exc
    return RefreshTokenResponse(id=profile_id, refresh_token=token)


@router.delete(
    "/{profile_id}",
    response_model=SuccessResponse,
    summary="Delete Profile",
    description="Permanently delete a profile.",
)
def delete_profile(profile_id: str, service: ProfileService = Depends(get_profile_service)):
    try:
        service.delete_profile(profile_id)
    except ProfileStoreError as exc:
        raise _to_http_error(exc) from exc
    return SuccessResponse(ok=True, message="Profile deleted")
