"""In-process document store.

Keeps every collection in a dictionary guarded by an ``asyncio.Lock`` so the
compare-and-swap style operations behave like single-document atomic updates.
Documents are deep-copied on the way in and out, which mirrors the isolation a
real store gives its callers. Used by the test-suite and for local runs with
``DB_BACKEND=memory``.
"""

import asyncio
import copy
from collections import Counter
from datetime import UTC, datetime
from typing import Any

from bson import ObjectId

from ..core.exceptions import DuplicateEntryError
from .base import (
    Document,
    DocumentStore,
    NFTFilter,
    NFTRepository,
    UserRepository,
)


def _now() -> datetime:
    return datetime.now(UTC)


def _contains(haystack: Any, needle: str) -> bool:
    return isinstance(haystack, str) and needle in haystack.lower()


class _Collection:
    """Dictionary of documents keyed by id, plus the lock guarding it."""

    def __init__(self) -> None:
        self.docs: dict[str, Document] = {}
        self.lock = asyncio.Lock()

    def new_document(self, document: Document) -> Document:
        stored = copy.deepcopy(document)
        stored["id"] = str(ObjectId())
        now = _now()
        stored.setdefault("created_at", now)
        stored.setdefault("updated_at", now)
        return stored

    def read(self, doc_id: str) -> Document | None:
        doc = self.docs.get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    def touch(self, doc: Document) -> None:
        doc["updated_at"] = _now()


class MemoryNFTRepository(NFTRepository):
    """NFT collection kept in process memory."""

    def __init__(self) -> None:
        self._collection = _Collection()

    @property
    def _docs(self) -> dict[str, Document]:
        return self._collection.docs

    @staticmethod
    def _matches(doc: Document, nft_filter: NFTFilter) -> bool:
        if nft_filter.listed_only and not doc.get("is_listed"):
            return False
        if nft_filter.category is not None and doc.get("category") != nft_filter.category:
            return False
        if nft_filter.min_price is not None and doc.get("price", 0) < nft_filter.min_price:
            return False
        if nft_filter.max_price is not None and doc.get("price", 0) > nft_filter.max_price:
            return False
        if nft_filter.owner is not None and doc.get("owner") != nft_filter.owner:
            return False
        if nft_filter.creator is not None and doc.get("creator") != nft_filter.creator:
            return False
        if nft_filter.search:
            needle = nft_filter.search.lower()
            if not (
                _contains(doc.get("name"), needle)
                or _contains(doc.get("description"), needle)
                or any(_contains(tag, needle) for tag in doc.get("tags", []))
            ):
                return False
        return True

    async def insert(self, document: Document) -> Document:
        async with self._collection.lock:
            token_id = document.get("token_id")
            if any(doc.get("token_id") == token_id for doc in self._docs.values()):
                raise DuplicateEntryError(
                    "An NFT with this token id already exists",
                    details={"field": "token_id"},
                )
            stored = self._collection.new_document(document)
            self._docs[stored["id"]] = stored
            return copy.deepcopy(stored)

    async def get(self, nft_id: str) -> Document | None:
        return self._collection.read(nft_id)

    async def find(
        self,
        nft_filter: NFTFilter,
        sort_field: str = "created_at",
        descending: bool = True,
        skip: int = 0,
        limit: int = 0,
    ) -> list[Document]:
        matches = [doc for doc in self._docs.values() if self._matches(doc, nft_filter)]
        matches.sort(key=lambda doc: (doc.get(sort_field), doc["id"]), reverse=descending)
        matches = matches[skip:]
        if limit:
            matches = matches[:limit]
        return copy.deepcopy(matches)

    async def count(self, nft_filter: NFTFilter) -> int:
        return sum(1 for doc in self._docs.values() if self._matches(doc, nft_filter))

    async def update_fields(self, nft_id: str, fields: Document) -> Document | None:
        async with self._collection.lock:
            doc = self._docs.get(nft_id)
            if doc is None:
                return None
            doc.update(copy.deepcopy(fields))
            self._collection.touch(doc)
            return copy.deepcopy(doc)

    async def delete(self, nft_id: str) -> bool:
        async with self._collection.lock:
            return self._docs.pop(nft_id, None) is not None

    async def increment_views(self, nft_id: str) -> Document | None:
        async with self._collection.lock:
            doc = self._docs.get(nft_id)
            if doc is None:
                return None
            doc["views"] = doc.get("views", 0) + 1
            return copy.deepcopy(doc)

    async def toggle_like(self, nft_id: str, user_id: str) -> Document | None:
        async with self._collection.lock:
            doc = self._docs.get(nft_id)
            if doc is None:
                return None
            likes = doc.setdefault("likes", [])
            if user_id in likes:
                likes.remove(user_id)
            else:
                likes.append(user_id)
            self._collection.touch(doc)
            return copy.deepcopy(doc)

    async def transfer_ownership(
        self,
        nft_id: str,
        seller_id: str,
        buyer_id: str,
        price: float,
        entry: Document,
    ) -> Document | None:
        async with self._collection.lock:
            doc = self._docs.get(nft_id)
            if (
                doc is None
                or not doc.get("is_listed")
                or doc.get("owner") != seller_id
                or doc.get("price") != price
            ):
                return None
            doc["owner"] = buyer_id
            doc["is_listed"] = False
            doc.setdefault("transaction_history", []).append(copy.deepcopy(entry))
            self._collection.touch(doc)
            return copy.deepcopy(doc)

    async def revert_transfer(
        self, nft_id: str, seller_id: str, transaction_hash: str
    ) -> None:
        async with self._collection.lock:
            doc = self._docs.get(nft_id)
            if doc is None:
                return
            history = doc.get("transaction_history", [])
            remaining = [
                entry for entry in history
                if entry.get("transaction_hash") != transaction_hash
            ]
            if len(remaining) == len(history):
                return
            doc["transaction_history"] = remaining
            doc["owner"] = seller_id
            doc["is_listed"] = True
            self._collection.touch(doc)

    async def total_volume(self) -> float:
        return float(
            sum(
                entry.get("price", 0)
                for doc in self._docs.values()
                for entry in doc.get("transaction_history", [])
            )
        )

    async def recent_sales(self, limit: int) -> list[Document]:
        sales = [
            {
                "nft": {"id": doc["id"], "name": doc["name"], "image": doc["image"]},
                **entry,
            }
            for doc in self._docs.values()
            for entry in doc.get("transaction_history", [])
        ]
        sales.sort(key=lambda sale: sale["timestamp"], reverse=True)
        return copy.deepcopy(sales[:limit])

    async def trending(self, limit: int) -> list[Document]:
        listed = [doc for doc in self._docs.values() if doc.get("is_listed")]
        listed.sort(key=lambda doc: (-doc.get("views", 0), doc["id"]))
        return copy.deepcopy(listed[:limit])

    async def category_counts(self) -> list[tuple[str, int]]:
        counts = Counter(
            doc["category"] for doc in self._docs.values() if doc.get("is_listed")
        )
        return sorted(counts.items(), key=lambda item: (-item[1], item[0]))


class MemoryUserRepository(UserRepository):
    """User collection kept in process memory."""

    def __init__(self) -> None:
        self._collection = _Collection()

    @property
    def _docs(self) -> dict[str, Document]:
        return self._collection.docs

    def _check_unique(self, document: Document, exclude_id: str | None = None) -> None:
        for doc in self._docs.values():
            if doc["id"] == exclude_id:
                continue
            for field in ("username", "email"):
                if field in document and doc.get(field) == document[field]:
                    raise DuplicateEntryError(
                        f"A user with this {field} already exists",
                        details={"field": field},
                    )

    @staticmethod
    def _matches(doc: Document, needle: str) -> bool:
        return _contains(doc.get("username"), needle) or _contains(doc.get("bio"), needle)

    async def insert(self, document: Document) -> Document:
        async with self._collection.lock:
            self._check_unique(document)
            stored = self._collection.new_document(document)
            self._docs[stored["id"]] = stored
            return copy.deepcopy(stored)

    async def get(self, user_id: str) -> Document | None:
        return self._collection.read(user_id)

    async def get_by_email(self, email: str) -> Document | None:
        wanted = email.lower()
        for doc in self._docs.values():
            if doc.get("email", "").lower() == wanted:
                return copy.deepcopy(doc)
        return None

    async def get_many(self, user_ids: list[str]) -> list[Document]:
        return [copy.deepcopy(self._docs[uid]) for uid in dict.fromkeys(user_ids) if uid in self._docs]

    async def update_fields(self, user_id: str, fields: Document) -> Document | None:
        async with self._collection.lock:
            doc = self._docs.get(user_id)
            if doc is None:
                return None
            self._check_unique(fields, exclude_id=user_id)
            doc.update(copy.deepcopy(fields))
            self._collection.touch(doc)
            return copy.deepcopy(doc)

    async def increment(self, user_id: str, field: str, amount: int = 1) -> None:
        async with self._collection.lock:
            doc = self._docs.get(user_id)
            if doc is not None:
                doc[field] = doc.get(field, 0) + amount
                self._collection.touch(doc)

    async def add_following(self, user_id: str, target_id: str) -> bool:
        async with self._collection.lock:
            doc = self._docs.get(user_id)
            if doc is None:
                return False
            following = doc.setdefault("following", [])
            if target_id in following:
                return False
            following.append(target_id)
            self._collection.touch(doc)
            return True

    async def remove_following(self, user_id: str, target_id: str) -> None:
        await self._remove_member(user_id, "following", target_id)

    async def add_follower(self, user_id: str, follower_id: str) -> None:
        async with self._collection.lock:
            doc = self._docs.get(user_id)
            if doc is None:
                return
            followers = doc.setdefault("followers", [])
            if follower_id not in followers:
                followers.append(follower_id)
                self._collection.touch(doc)

    async def remove_follower(self, user_id: str, follower_id: str) -> None:
        await self._remove_member(user_id, "followers", follower_id)

    async def _remove_member(self, user_id: str, field: str, member_id: str) -> None:
        async with self._collection.lock:
            doc = self._docs.get(user_id)
            if doc is None:
                return
            members = doc.get(field, [])
            if member_id in members:
                doc[field] = [member for member in members if member != member_id]
                self._collection.touch(doc)

    async def search(self, query: str, skip: int = 0, limit: int = 0) -> list[Document]:
        needle = query.lower()
        matches = [doc for doc in self._docs.values() if self._matches(doc, needle)]
        matches = matches[skip:]
        if limit:
            matches = matches[:limit]
        return copy.deepcopy(matches)

    async def count_search(self, query: str) -> int:
        needle = query.lower()
        return sum(1 for doc in self._docs.values() if self._matches(doc, needle))

    async def count(self) -> int:
        return len(self._docs)


class MemoryDocumentStore(DocumentStore):
    """Document store living entirely in process memory."""

    def __init__(self) -> None:
        self.nfts = MemoryNFTRepository()
        self.users = MemoryUserRepository()

    async def ping(self) -> bool:
        return True
