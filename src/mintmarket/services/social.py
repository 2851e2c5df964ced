"""Social graph and public user lookups."""

from ..core.exceptions import (
    AlreadyFollowingError,
    PersistenceError,
    SelfFollowError,
    UserNotFoundError,
    ValidationError,
)
from ..core.logging import ContextLogger
from ..repositories.base import Document, UserRepository
from ..schemas.common import Pagination
from ..schemas.users import UserCard, UserPublic, UserSummary
from .presenters import user_summary

logger = ContextLogger(__name__)


def public_profile(doc: Document) -> UserPublic:
    """Project a stored user onto its public fields."""
    return UserPublic.model_validate(doc)


class SocialService:
    """Follow relationships, follower lists and user search.

    ``following`` on one user and ``followers`` on the other are two documents.
    ``follow`` writes the caller's side first with a conditional add, so
    concurrent duplicate follows collapse into one, then mirrors it onto the
    target. If the mirror write fails the first write is undone.
    """

    def __init__(self, users: UserRepository, search_page_size: int = 10) -> None:
        self.users = users
        self.search_page_size = search_page_size

    async def _get_or_404(self, user_id: str) -> Document:
        doc = await self.users.get(user_id)
        if doc is None:
            raise UserNotFoundError(f"User {user_id} not found")
        return doc

    async def get_user(self, user_id: str) -> UserPublic:
        return public_profile(await self._get_or_404(user_id))

    async def follow(self, user_id: str, target_id: str) -> None:
        """Make ``user_id`` follow ``target_id``.

        Raises:
            SelfFollowError: A user cannot follow itself.
            UserNotFoundError: The target does not exist.
            AlreadyFollowingError: The relationship already exists.
            PersistenceError: The mirror write failed and was rolled back.
        """
        if user_id == target_id:
            raise SelfFollowError("You cannot follow yourself")
        await self._get_or_404(target_id)

        if not await self.users.add_following(user_id, target_id):
            raise AlreadyFollowingError("Already following this user")

        try:
            await self.users.add_follower(target_id, user_id)
        except Exception as e:
            logger.exception(
                "Follower update failed, compensating",
                extra={"user_id": user_id, "target_id": target_id},
            )
            try:
                await self.users.remove_following(user_id, target_id)
            except Exception:
                logger.exception(
                    "Follow compensation failed; manual repair required",
                    extra={"user_id": user_id, "target_id": target_id},
                )
            raise PersistenceError("Follow could not be completed") from e

        logger.info("User followed", extra={"user_id": user_id, "target_id": target_id})

    async def unfollow(self, user_id: str, target_id: str) -> None:
        """Remove the relationship; a no-op when it does not exist."""
        await self._get_or_404(target_id)
        await self.users.remove_following(user_id, target_id)
        await self.users.remove_follower(target_id, user_id)
        logger.info("User unfollowed", extra={"user_id": user_id, "target_id": target_id})

    async def _resolve(self, user_ids: list[str]) -> list[UserSummary]:
        docs = {doc["id"]: doc for doc in await self.users.get_many(user_ids)}
        # Keep the stored order; dangling ids are skipped.
        return [
            user_summary(docs[uid], include_bio=True) for uid in user_ids if uid in docs
        ]

    async def get_followers(self, user_id: str) -> list[UserSummary]:
        doc = await self._get_or_404(user_id)
        return await self._resolve(doc.get("followers", []))

    async def get_following(self, user_id: str) -> list[UserSummary]:
        doc = await self._get_or_404(user_id)
        return await self._resolve(doc.get("following", []))

    async def search_users(
        self, query: str | None, page: int = 1, limit: int | None = None
    ) -> tuple[list[UserCard], Pagination]:
        """Case-insensitive substring search over usernames and bios."""
        limit = limit or self.search_page_size
        if not query or not query.strip():
            raise ValidationError(
                "Search query is required",
                errors=[{"field": "q", "message": "Search query is required"}],
            )
        if page < 1 or limit < 1:
            raise ValidationError(
                "Invalid pagination",
                errors=[{"field": "page", "message": "page and limit must be positive"}],
            )

        needle = query.strip()
        docs = await self.users.search(needle, skip=(page - 1) * limit, limit=limit)
        total = await self.users.count_search(needle)
        return (
            [UserCard.model_validate(doc) for doc in docs],
            Pagination.build(page, limit, total),
        )
