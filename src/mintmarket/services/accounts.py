"""Account registration, login and profile management."""

from collections.abc import Mapping
from typing import Any

from ..core.exceptions import AuthenticationError, UserNotFoundError
from ..core.logging import ContextLogger
from ..core.security import create_access_token, hash_password, verify_password
from ..core.settings import SecuritySettings
from ..repositories.base import UserRepository
from ..schemas.common import validate_payload
from ..schemas.users import LoginRequest, ProfileUpdate, UserPublic, UserRegister
from .social import public_profile

logger = ContextLogger(__name__)


class AccountService:
    """Issue access tokens and maintain the caller's own profile."""

    def __init__(
        self, users: UserRepository, security: SecuritySettings | None = None
    ) -> None:
        self.users = users
        self.security = security

    def issue_token(self, user_id: str) -> str:
        return create_access_token(user_id, security=self.security)

    async def register(
        self, fields: UserRegister | Mapping[str, Any]
    ) -> tuple[UserPublic, str]:
        """Create an account and return it with a fresh access token.

        Raises:
            ValidationError: Malformed registration data.
            DuplicateEntryError: Username or email already taken.
        """
        payload = validate_payload(UserRegister, fields)
        password_hash, password_salt = hash_password(payload.password)
        document = {
            "username": payload.username,
            "email": payload.email.lower(),
            "password_hash": password_hash,
            "password_salt": password_salt,
            "bio": payload.bio,
            "profile_image": payload.profile_image,
            "wallet_address": payload.wallet_address,
            "followers": [],
            "following": [],
            "total_sales": 0,
            "total_purchases": 0,
        }
        stored = await self.users.insert(document)
        logger.info("User registered", extra={"user_id": stored["id"]})
        return public_profile(stored), self.issue_token(stored["id"])

    async def login(
        self, credentials: LoginRequest | Mapping[str, Any]
    ) -> tuple[UserPublic, str]:
        """Check credentials and return the user with a fresh access token.

        Unknown emails and wrong passwords raise the same AuthenticationError.
        """
        payload = validate_payload(LoginRequest, credentials)
        doc = await self.users.get_by_email(payload.email.lower())
        if doc is None or not verify_password(
            payload.password, doc["password_hash"], doc["password_salt"]
        ):
            logger.warning("Failed login attempt")
            raise AuthenticationError("Invalid email or password")
        logger.info("User logged in", extra={"user_id": doc["id"]})
        return public_profile(doc), self.issue_token(doc["id"])

    async def get_profile(self, user_id: str) -> UserPublic:
        doc = await self.users.get(user_id)
        if doc is None:
            raise UserNotFoundError(f"User {user_id} not found")
        return public_profile(doc)

    async def update_profile(
        self, user_id: str, fields: ProfileUpdate | Mapping[str, Any]
    ) -> UserPublic:
        """Apply profile edits; omitted fields are left untouched."""
        payload = validate_payload(ProfileUpdate, fields)
        changes = payload.model_dump(exclude_unset=True)
        # A cleared wallet address is stored as null.
        changes = {
            key: value
            for key, value in changes.items()
            if value is not None or key == "wallet_address"
        }
        if changes:
            doc = await self.users.update_fields(user_id, changes)
        else:
            doc = await self.users.get(user_id)
        if doc is None:
            raise UserNotFoundError(f"User {user_id} not found")
        logger.info(
            "Profile updated", extra={"user_id": user_id, "fields": sorted(changes)}
        )
        return public_profile(doc)
