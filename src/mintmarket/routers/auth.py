"""Account API endpoints.

Registration and login return a signed bearer token. Every other route that
needs an identity reads it from the ``Authorization: Bearer <token>`` header.

Example Usage:
    Register:
        POST /api/auth/register
        {"username": "alice", "email": "alice@example.com", "password": "secret1"}

    Read the current profile:
        GET /api/auth/me
        Authorization: Bearer eyJhbGciOi...
"""

from fastapi import APIRouter, Depends, status

from ..core.dependencies import get_account_service, get_current_user_id
from ..core.logging import ContextLogger
from ..schemas.users import (
    AuthResponse,
    LoginRequest,
    ProfileUpdate,
    ProfileUpdateResponse,
    UserEnvelope,
    UserRegister,
)
from ..services.accounts import AccountService

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
    responses={
        400: {"description": "Validation error or duplicate account"},
        401: {"description": "Missing or invalid credentials"},
    },
)

logger = ContextLogger(__name__)


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
)
async def register(
    payload: UserRegister,
    service: AccountService = Depends(get_account_service),
) -> AuthResponse:
    async with logger.track_time("register"):
        user, token = await service.register(payload)
    return AuthResponse(message="User registered successfully", token=token, user=user)


@router.post("/login", response_model=AuthResponse, summary="Log in")
async def login(
    payload: LoginRequest,
    service: AccountService = Depends(get_account_service),
) -> AuthResponse:
    user, token = await service.login(payload)
    return AuthResponse(message="Login successful", token=token, user=user)


@router.get("/me", response_model=UserEnvelope, summary="Get the current user")
async def me(
    user_id: str = Depends(get_current_user_id),
    service: AccountService = Depends(get_account_service),
) -> UserEnvelope:
    return UserEnvelope(user=await service.get_profile(user_id))


@router.put(
    "/profile", response_model=ProfileUpdateResponse, summary="Update the current user"
)
async def update_profile(
    payload: ProfileUpdate,
    user_id: str = Depends(get_current_user_id),
    service: AccountService = Depends(get_account_service),
) -> ProfileUpdateResponse:
    logger.info("Processing update_profile request", extra={"user_id": user_id})
    user = await service.update_profile(user_id, payload)
    return ProfileUpdateResponse(message="Profile updated successfully", user=user)
