"""Service layer for the NFT catalog.

This module provides the CatalogService class, which encapsulates the
business rules for NFT records:

- Minting new NFT records with generated token ids and contract addresses
- Filtered, sorted and paginated catalog listings
- Per-user listings (owned, created, listed)
- Reading an NFT, which counts as a view
- Owner-only edits, deletion, listing and unlisting
- Toggling likes

The caller identity is always passed in explicitly; the service never looks
at request or session state.
"""

import secrets
import string
import time
from collections.abc import Mapping
from typing import Any

from ..core.exceptions import (
    DuplicateEntryError,
    NFTNotFoundError,
    PermissionDeniedError,
    UserNotFoundError,
    ValidationError,
)
from ..core.logging import ContextLogger
from ..repositories.base import Document, NFTFilter, NFTRepository, UserRepository
from ..schemas.common import Pagination, validate_payload
from ..schemas.nfts import (
    SORT_FIELDS,
    ListingRequest,
    NFTCreate,
    NFTOut,
    NFTQuery,
    NFTUpdate,
    UserNFTType,
)
from .presenters import present_nft, present_nfts

logger = ContextLogger(__name__)

_TOKEN_ALPHABET = string.ascii_lowercase + string.digits
_MINT_ATTEMPTS = 3


def generate_token_id() -> str:
    """Return an opaque token id such as ``NFT_1718000000000_k3j9x0a2b``."""
    suffix = "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(9))
    return f"NFT_{int(time.time() * 1000)}_{suffix}"


def generate_contract_address() -> str:
    """Return a synthetic 20-byte hex contract address."""
    return "0x" + secrets.token_hex(20)


class CatalogService:
    """Create, query and mutate NFT records."""

    def __init__(self, nfts: NFTRepository, users: UserRepository) -> None:
        self.nfts = nfts
        self.users = users

    async def _get_or_404(self, nft_id: str) -> Document:
        doc = await self.nfts.get(nft_id)
        if doc is None:
            raise NFTNotFoundError(f"NFT {nft_id} not found")
        return doc

    async def _owned_or_403(self, nft_id: str, requester_id: str, action: str) -> Document:
        doc = await self._get_or_404(nft_id)
        if doc["owner"] != requester_id:
            logger.warning(
                "Rejected non-owner mutation",
                extra={"nft_id": nft_id, "requester_id": requester_id, "action": action},
            )
            raise PermissionDeniedError(f"Not authorized to {action} this NFT")
        return doc

    async def create_nft(
        self, fields: NFTCreate | Mapping[str, Any], creator_id: str
    ) -> NFTOut:
        """Mint a new NFT owned by its creator.

        Raises:
            ValidationError: If required fields are missing or malformed.
            PersistenceError: If the token id keeps colliding or the store fails.
        """
        payload = validate_payload(NFTCreate, fields)
        document: Document = {
            **payload.model_dump(mode="json"),
            "creator": creator_id,
            "owner": creator_id,
            "is_listed": False,
            "likes": [],
            "views": 0,
            "transaction_history": [],
        }

        for attempt in range(1, _MINT_ATTEMPTS + 1):
            document["token_id"] = generate_token_id()
            document["contract_address"] = generate_contract_address()
            try:
                stored = await self.nfts.insert(document)
                break
            except DuplicateEntryError:
                logger.warning("Token id collision", extra={"attempt": attempt})
                if attempt == _MINT_ATTEMPTS:
                    raise

        logger.info(
            "NFT created",
            extra={"nft_id": stored["id"], "token_id": stored["token_id"], "creator_id": creator_id},
        )
        return await present_nft(self.users, stored)

    async def list_nfts(
        self, query: NFTQuery | Mapping[str, Any] | None = None
    ) -> tuple[list[NFTOut], Pagination]:
        """Return one page of the filtered, sorted catalog.

        Raises:
            ValidationError: If a query parameter is malformed or the sort
                field is unknown.
        """
        params = validate_payload(NFTQuery, query or {})
        sort_field = SORT_FIELDS.get(params.sort_by)
        if sort_field is None:
            raise ValidationError(
                "Invalid sort field",
                errors=[{"field": "sortBy", "message": f"Cannot sort by '{params.sort_by}'"}],
            )

        nft_filter = NFTFilter(
            listed_only=params.listed_only,
            category=params.category or None,
            min_price=params.min_price,
            max_price=params.max_price,
            search=params.search.strip() if params.search and params.search.strip() else None,
        )
        return await self._page(
            nft_filter,
            page=params.page,
            limit=params.limit,
            sort_field=sort_field,
            descending=params.sort_order == "desc",
        )

    async def list_user_nfts(
        self,
        user_id: str,
        relation: UserNFTType | str = UserNFTType.OWNED,
        page: int = 1,
        limit: int = 12,
    ) -> tuple[list[NFTOut], Pagination]:
        """Return NFTs a user owns, created, or currently has listed."""
        try:
            relation = UserNFTType(relation)
        except ValueError as e:
            raise ValidationError(
                "Invalid NFT relation type",
                errors=[{"field": "type", "message": "Must be owned, created or listed"}],
            ) from e
        if page < 1 or limit < 1:
            raise ValidationError(
                "Invalid pagination",
                errors=[{"field": "page", "message": "page and limit must be positive"}],
            )
        if await self.users.get(user_id) is None:
            raise UserNotFoundError(f"User {user_id} not found")

        if relation is UserNFTType.CREATED:
            nft_filter = NFTFilter(creator=user_id)
        else:
            nft_filter = NFTFilter(
                owner=user_id, listed_only=relation is UserNFTType.LISTED
            )
        return await self._page(nft_filter, page=page, limit=limit)

    async def _page(
        self,
        nft_filter: NFTFilter,
        page: int,
        limit: int,
        sort_field: str = "created_at",
        descending: bool = True,
    ) -> tuple[list[NFTOut], Pagination]:
        docs = await self.nfts.find(
            nft_filter,
            sort_field=sort_field,
            descending=descending,
            skip=(page - 1) * limit,
            limit=limit,
        )
        total = await self.nfts.count(nft_filter)
        return await present_nfts(self.users, docs), Pagination.build(page, limit, total)

    async def get_nft(self, nft_id: str) -> NFTOut:
        """Return an NFT and count the read as a view.

        Raises:
            NFTNotFoundError: If no NFT has this id.
        """
        doc = await self.nfts.increment_views(nft_id)
        if doc is None:
            raise NFTNotFoundError(f"NFT {nft_id} not found")
        return await present_nft(self.users, doc, detailed=True)

    async def update_nft(
        self,
        nft_id: str,
        requester_id: str,
        fields: NFTUpdate | Mapping[str, Any],
    ) -> NFTOut:
        """Apply owner edits to name, description, price, category, tags, attributes."""
        payload = validate_payload(NFTUpdate, fields)
        await self._owned_or_403(nft_id, requester_id, "update")

        changes = payload.model_dump(mode="json", exclude_none=True)
        if changes:
            doc = await self.nfts.update_fields(nft_id, changes)
        else:
            doc = await self.nfts.get(nft_id)
        if doc is None:
            raise NFTNotFoundError(f"NFT {nft_id} not found")

        logger.info("NFT updated", extra={"nft_id": nft_id, "fields": sorted(changes)})
        return await present_nft(self.users, doc)

    async def delete_nft(self, nft_id: str, requester_id: str) -> None:
        """Remove an NFT; only its current owner may do so."""
        await self._owned_or_403(nft_id, requester_id, "delete")
        if not await self.nfts.delete(nft_id):
            raise NFTNotFoundError(f"NFT {nft_id} not found")
        logger.info("NFT deleted", extra={"nft_id": nft_id, "requester_id": requester_id})

    async def toggle_like(self, nft_id: str, user_id: str) -> tuple[int, bool]:
        """Flip ``user_id``'s like and return ``(like_count, is_liked)``."""
        doc = await self.nfts.toggle_like(nft_id, user_id)
        if doc is None:
            raise NFTNotFoundError(f"NFT {nft_id} not found")
        likes = doc.get("likes", [])
        return len(likes), user_id in likes

    async def list_nft(
        self,
        nft_id: str,
        requester_id: str,
        price: ListingRequest | Mapping[str, Any] | float,
    ) -> NFTOut:
        """Put an NFT up for sale at ``price``."""
        if not isinstance(price, (ListingRequest, Mapping)):
            price = {"price": price}
        listing = validate_payload(ListingRequest, price)
        await self._owned_or_403(nft_id, requester_id, "list")

        doc = await self.nfts.update_fields(
            nft_id, {"price": listing.price, "is_listed": True}
        )
        if doc is None:
            raise NFTNotFoundError(f"NFT {nft_id} not found")
        logger.info("NFT listed", extra={"nft_id": nft_id, "price": listing.price})
        return await present_nft(self.users, doc)

    async def unlist_nft(self, nft_id: str, requester_id: str) -> NFTOut:
        """Withdraw an NFT from sale; the price is kept."""
        await self._owned_or_403(nft_id, requester_id, "unlist")
        doc = await self.nfts.update_fields(nft_id, {"is_listed": False})
        if doc is None:
            raise NFTNotFoundError(f"NFT {nft_id} not found")
        logger.info("NFT unlisted", extra={"nft_id": nft_id})
        return await present_nft(self.users, doc)
