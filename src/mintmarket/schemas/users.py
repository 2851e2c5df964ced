"""User-related schema definitions.

This module defines Pydantic models for user data validation and serialization.
Credential fields never appear on any response model.
"""

from datetime import datetime

from pydantic import EmailStr, Field, field_validator, model_serializer

from .common import APIModel, Pagination

WALLET_ADDRESS_PATTERN = r"^0x[a-fA-F0-9]{40}$"


def _blank_to_none(value: object) -> object:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class UserSummary(APIModel):
    """Resolved user reference embedded in NFTs and follower lists."""

    id: str = Field(..., alias="_id", description="User identifier")
    username: str = Field(..., description="Unique username")
    profile_image: str = Field("", description="Profile image reference")
    bio: str | None = Field(None, description="User bio")

    @model_serializer(mode="wrap")
    def drop_missing_bio(self, handler):
        data = handler(self)
        if self.bio is None:
            data.pop("bio", None)
        return data


class UserCard(UserSummary):
    """User search result."""

    followers: list[str] = Field(default_factory=list)
    following: list[str] = Field(default_factory=list)
    total_sales: int = 0
    total_purchases: int = 0


class UserPublic(UserCard):
    """Public user profile."""

    email: str = Field(..., description="Email address")
    wallet_address: str | None = Field(None, description="Wallet address")
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserRegister(APIModel):
    """Registration payload."""

    username: str = Field(..., min_length=3, max_length=30)
    email: EmailStr
    password: str = Field(..., min_length=6)
    wallet_address: str | None = Field(None, pattern=WALLET_ADDRESS_PATTERN)
    bio: str = Field("", max_length=500)
    profile_image: str = ""

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("wallet_address", mode="before")
    @classmethod
    def empty_wallet_is_none(cls, value: object) -> object:
        return _blank_to_none(value)


class LoginRequest(APIModel):
    """Login payload."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class ProfileUpdate(APIModel):
    """Editable profile fields; omitted fields are left untouched."""

    username: str | None = Field(None, min_length=3, max_length=30)
    bio: str | None = Field(None, max_length=500)
    profile_image: str | None = None
    wallet_address: str | None = Field(None, pattern=WALLET_ADDRESS_PATTERN)

    @field_validator("wallet_address", mode="before")
    @classmethod
    def empty_wallet_is_none(cls, value: object) -> object:
        return _blank_to_none(value)


class AuthResponse(APIModel):
    message: str
    token: str
    user: UserPublic


class UserEnvelope(APIModel):
    user: UserPublic


class ProfileUpdateResponse(APIModel):
    message: str
    user: UserPublic


class FollowersResponse(APIModel):
    followers: list[UserSummary]


class FollowingResponse(APIModel):
    following: list[UserSummary]


class UserSearchResponse(APIModel):
    users: list[UserCard]
    pagination: Pagination
