"""Document store contracts used by the services.

Every mutation is a field-level command (set, push, increment, add to set)
so that each implementation can map it onto the atomic single-document
primitives of its store. Documents cross this boundary as plain dictionaries
with a string ``id`` key and snake_case field names.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

Document = dict[str, Any]


@dataclass(frozen=True)
class NFTFilter:
    """Catalog filter; ``None`` means the criterion is not applied."""

    listed_only: bool = False
    category: str | None = None
    min_price: float | None = None
    max_price: float | None = None
    search: str | None = None
    owner: str | None = None
    creator: str | None = None


class NFTRepository(ABC):
    """Storage operations for NFT documents."""

    @abstractmethod
    async def insert(self, document: Document) -> Document:
        """Store a new NFT; raises DuplicateEntryError on a token id clash."""

    @abstractmethod
    async def get(self, nft_id: str) -> Document | None:
        """Return the NFT or None when the id is unknown or malformed."""

    @abstractmethod
    async def find(
        self,
        nft_filter: NFTFilter,
        sort_field: str = "created_at",
        descending: bool = True,
        skip: int = 0,
        limit: int = 0,
    ) -> list[Document]:
        """Return matching NFTs; ties on ``sort_field`` are ordered by id."""

    @abstractmethod
    async def count(self, nft_filter: NFTFilter) -> int:
        """Count matching NFTs."""

    @abstractmethod
    async def update_fields(self, nft_id: str, fields: Document) -> Document | None:
        """Set the given fields and return the updated NFT."""

    @abstractmethod
    async def delete(self, nft_id: str) -> bool:
        """Remove the NFT; False when it did not exist."""

    @abstractmethod
    async def increment_views(self, nft_id: str) -> Document | None:
        """Atomically add one view and return the updated NFT."""

    @abstractmethod
    async def toggle_like(self, nft_id: str, user_id: str) -> Document | None:
        """Atomically add or remove ``user_id`` from the likes set."""

    @abstractmethod
    async def transfer_ownership(
        self,
        nft_id: str,
        seller_id: str,
        buyer_id: str,
        price: float,
        entry: Document,
    ) -> Document | None:
        """Compare-and-swap sale of a listed NFT.

        Only applies when the NFT is still listed, owned by ``seller_id`` and
        priced at ``price``. Sets the owner, clears the listing and appends
        ``entry`` to the transaction history in one document update. Returns
        None when the expected state no longer holds.
        """

    @abstractmethod
    async def revert_transfer(
        self, nft_id: str, seller_id: str, transaction_hash: str
    ) -> None:
        """Undo a transfer_ownership call identified by its transaction hash."""

    @abstractmethod
    async def total_volume(self) -> float:
        """Sum of the price of every transaction history entry."""

    @abstractmethod
    async def recent_sales(self, limit: int) -> list[Document]:
        """Latest history entries across the catalog, newest first.

        Each result holds ``nft`` ({id, name, image}) and the entry fields.
        """

    @abstractmethod
    async def trending(self, limit: int) -> list[Document]:
        """Listed NFTs ordered by views descending, then id ascending."""

    @abstractmethod
    async def category_counts(self) -> list[tuple[str, int]]:
        """Listed NFT counts per category, largest first."""


class UserRepository(ABC):
    """Storage operations for user documents."""

    @abstractmethod
    async def insert(self, document: Document) -> Document:
        """Store a new user; raises DuplicateEntryError on username/email clash."""

    @abstractmethod
    async def get(self, user_id: str) -> Document | None:
        """Return the user or None when the id is unknown or malformed."""

    @abstractmethod
    async def get_by_email(self, email: str) -> Document | None:
        """Case-insensitive lookup by email."""

    @abstractmethod
    async def get_many(self, user_ids: list[str]) -> list[Document]:
        """Return the users that exist among ``user_ids`` (any order)."""

    @abstractmethod
    async def update_fields(self, user_id: str, fields: Document) -> Document | None:
        """Set the given fields and return the updated user."""

    @abstractmethod
    async def increment(self, user_id: str, field: str, amount: int = 1) -> None:
        """Atomically add ``amount`` to an integer counter."""

    @abstractmethod
    async def add_following(self, user_id: str, target_id: str) -> bool:
        """Add ``target_id`` to following; False when already present."""

    @abstractmethod
    async def remove_following(self, user_id: str, target_id: str) -> None:
        """Remove ``target_id`` from following if present."""

    @abstractmethod
    async def add_follower(self, user_id: str, follower_id: str) -> None:
        """Add ``follower_id`` to followers if absent."""

    @abstractmethod
    async def remove_follower(self, user_id: str, follower_id: str) -> None:
        """Remove ``follower_id`` from followers if present."""

    @abstractmethod
    async def search(self, query: str, skip: int = 0, limit: int = 0) -> list[Document]:
        """Case-insensitive substring match over username and bio."""

    @abstractmethod
    async def count_search(self, query: str) -> int:
        """Count the users a search would return."""

    @abstractmethod
    async def count(self) -> int:
        """Total number of users."""


class DocumentStore(ABC):
    """Bundle of repositories plus lifecycle hooks for one backend."""

    nfts: NFTRepository
    users: UserRepository

    async def startup(self) -> None:
        """Prepare the backend (indexes, connections)."""

    async def shutdown(self) -> None:
        """Release backend resources."""

    @abstractmethod
    async def ping(self) -> bool:
        """Report whether the backend is reachable."""
