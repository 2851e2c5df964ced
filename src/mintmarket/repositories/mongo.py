"""MongoDB document store built on pymongo's asyncio client.

Collections:
    users: unique ``username`` and ``email`` indexes.
    nfts: unique ``token_id`` plus the listing/category/owner/creator/tags
        indexes the catalog queries rely on.

References between documents (creator, owner, likes, followers, ...) are
stored as id strings.
"""

import re
from collections.abc import Callable
from datetime import UTC, datetime
from functools import wraps
from typing import Any

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, AsyncMongoClient, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from ..core.exceptions import DuplicateEntryError, PersistenceError
from ..core.logging import ContextLogger
from .base import (
    Document,
    DocumentStore,
    NFTFilter,
    NFTRepository,
    UserRepository,
)

logger = ContextLogger(__name__)


def translate_errors(func: Callable) -> Callable:
    """Map driver exceptions onto the MintMarket error taxonomy."""

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except DuplicateKeyError as e:
            key = next(iter((e.details or {}).get("keyPattern", {}) or {}), "value")
            raise DuplicateEntryError(
                f"An entry with this {key} already exists", details={"field": key}
            ) from e
        except PyMongoError as e:
            logger.exception(
                "Document store operation failed",
                extra={"operation": func.__qualname__},
            )
            raise PersistenceError(f"Database operation failed: {func.__name__}") from e

    return wrapper


def _object_id(value: str) -> ObjectId | None:
    return ObjectId(value) if ObjectId.is_valid(value) else None


def _to_document(raw: Document | None) -> Document | None:
    if raw is None:
        return None
    raw["id"] = str(raw.pop("_id"))
    return raw


def _now() -> datetime:
    return datetime.now(UTC)


def _contains(text: str) -> dict[str, str]:
    return {"$regex": re.escape(text), "$options": "i"}


class MongoNFTRepository(NFTRepository):
    """NFT collection stored in MongoDB."""

    def __init__(self, collection) -> None:
        self.collection = collection

    async def ensure_indexes(self) -> None:
        await self.collection.create_index("token_id", unique=True)
        await self.collection.create_index([("is_listed", ASCENDING), ("price", ASCENDING)])
        await self.collection.create_index("category")
        await self.collection.create_index("creator")
        await self.collection.create_index("owner")
        await self.collection.create_index("tags")

    @staticmethod
    def _query(nft_filter: NFTFilter) -> Document:
        query: Document = {}
        if nft_filter.listed_only:
            query["is_listed"] = True
        if nft_filter.category is not None:
            query["category"] = nft_filter.category
        price: Document = {}
        if nft_filter.min_price is not None:
            price["$gte"] = nft_filter.min_price
        if nft_filter.max_price is not None:
            price["$lte"] = nft_filter.max_price
        if price:
            query["price"] = price
        if nft_filter.owner is not None:
            query["owner"] = nft_filter.owner
        if nft_filter.creator is not None:
            query["creator"] = nft_filter.creator
        if nft_filter.search:
            pattern = _contains(nft_filter.search)
            query["$or"] = [
                {"name": pattern},
                {"description": pattern},
                {"tags": pattern},
            ]
        return query

    @translate_errors
    async def insert(self, document: Document) -> Document:
        now = _now()
        stored = {
            **document,
            "_id": ObjectId(),
            "created_at": document.get("created_at", now),
            "updated_at": document.get("updated_at", now),
        }
        stored.pop("id", None)
        await self.collection.insert_one(stored)
        return _to_document(stored)

    @translate_errors
    async def get(self, nft_id: str) -> Document | None:
        oid = _object_id(nft_id)
        if oid is None:
            return None
        return _to_document(await self.collection.find_one({"_id": oid}))

    @translate_errors
    async def find(
        self,
        nft_filter: NFTFilter,
        sort_field: str = "created_at",
        descending: bool = True,
        skip: int = 0,
        limit: int = 0,
    ) -> list[Document]:
        direction = DESCENDING if descending else ASCENDING
        sort = [("_id", direction)]
        if sort_field != "id":
            sort.insert(0, (sort_field, direction))
        cursor = (
            self.collection.find(self._query(nft_filter))
            .sort(sort)
            .skip(skip)
            .limit(limit)
        )
        return [_to_document(raw) async for raw in cursor]

    @translate_errors
    async def count(self, nft_filter: NFTFilter) -> int:
        return await self.collection.count_documents(self._query(nft_filter))

    @translate_errors
    async def update_fields(self, nft_id: str, fields: Document) -> Document | None:
        oid = _object_id(nft_id)
        if oid is None:
            return None
        raw = await self.collection.find_one_and_update(
            {"_id": oid},
            {"$set": {**fields, "updated_at": _now()}},
            return_document=ReturnDocument.AFTER,
        )
        return _to_document(raw)

    @translate_errors
    async def delete(self, nft_id: str) -> bool:
        oid = _object_id(nft_id)
        if oid is None:
            return False
        result = await self.collection.delete_one({"_id": oid})
        return result.deleted_count == 1

    @translate_errors
    async def increment_views(self, nft_id: str) -> Document | None:
        oid = _object_id(nft_id)
        if oid is None:
            return None
        raw = await self.collection.find_one_and_update(
            {"_id": oid},
            {"$inc": {"views": 1}},
            return_document=ReturnDocument.AFTER,
        )
        return _to_document(raw)

    @translate_errors
    async def toggle_like(self, nft_id: str, user_id: str) -> Document | None:
        oid = _object_id(nft_id)
        if oid is None:
            return None
        likes = {"$ifNull": ["$likes", []]}
        raw = await self.collection.find_one_and_update(
            {"_id": oid},
            [
                {
                    "$set": {
                        "likes": {
                            "$cond": [
                                {"$in": [user_id, likes]},
                                {
                                    "$filter": {
                                        "input": likes,
                                        "cond": {"$ne": ["$$this", user_id]},
                                    }
                                },
                                {"$concatArrays": [likes, [user_id]]},
                            ]
                        },
                        "updated_at": "$$NOW",
                    }
                }
            ],
            return_document=ReturnDocument.AFTER,
        )
        return _to_document(raw)

    @translate_errors
    async def transfer_ownership(
        self,
        nft_id: str,
        seller_id: str,
        buyer_id: str,
        price: float,
        entry: Document,
    ) -> Document | None:
        oid = _object_id(nft_id)
        if oid is None:
            return None
        raw = await self.collection.find_one_and_update(
            {"_id": oid, "is_listed": True, "owner": seller_id, "price": price},
            {
                "$set": {"owner": buyer_id, "is_listed": False, "updated_at": _now()},
                "$push": {"transaction_history": entry},
            },
            return_document=ReturnDocument.AFTER,
        )
        return _to_document(raw)

    @translate_errors
    async def revert_transfer(
        self, nft_id: str, seller_id: str, transaction_hash: str
    ) -> None:
        oid = _object_id(nft_id)
        if oid is None:
            return
        await self.collection.update_one(
            {"_id": oid, "transaction_history.transaction_hash": transaction_hash},
            {
                "$set": {"owner": seller_id, "is_listed": True, "updated_at": _now()},
                "$pull": {"transaction_history": {"transaction_hash": transaction_hash}},
            },
        )

    @translate_errors
    async def total_volume(self) -> float:
        cursor = await self.collection.aggregate(
            [
                {"$unwind": "$transaction_history"},
                {"$group": {"_id": None, "total": {"$sum": "$transaction_history.price"}}},
            ]
        )
        async for row in cursor:
            return float(row["total"])
        return 0.0

    @translate_errors
    async def recent_sales(self, limit: int) -> list[Document]:
        cursor = await self.collection.aggregate(
            [
                {"$unwind": "$transaction_history"},
                {"$sort": {"transaction_history.timestamp": -1}},
                {"$limit": limit},
                {"$project": {"name": 1, "image": 1, "entry": "$transaction_history"}},
            ]
        )
        return [
            {
                "nft": {"id": str(row["_id"]), "name": row["name"], "image": row["image"]},
                **row["entry"],
            }
            async for row in cursor
        ]

    @translate_errors
    async def trending(self, limit: int) -> list[Document]:
        cursor = (
            self.collection.find({"is_listed": True})
            .sort([("views", DESCENDING), ("_id", ASCENDING)])
            .limit(limit)
        )
        return [_to_document(raw) async for raw in cursor]

    @translate_errors
    async def category_counts(self) -> list[tuple[str, int]]:
        cursor = await self.collection.aggregate(
            [
                {"$match": {"is_listed": True}},
                {"$group": {"_id": "$category", "count": {"$sum": 1}}},
                {"$sort": {"count": -1, "_id": 1}},
            ]
        )
        return [(row["_id"], row["count"]) async for row in cursor]


class MongoUserRepository(UserRepository):
    """User collection stored in MongoDB."""

    def __init__(self, collection) -> None:
        self.collection = collection

    async def ensure_indexes(self) -> None:
        await self.collection.create_index("username", unique=True)
        await self.collection.create_index("email", unique=True)

    @staticmethod
    def _search_query(query: str) -> Document:
        pattern = _contains(query)
        return {"$or": [{"username": pattern}, {"bio": pattern}]}

    @translate_errors
    async def insert(self, document: Document) -> Document:
        now = _now()
        stored = {
            **document,
            "_id": ObjectId(),
            "created_at": document.get("created_at", now),
            "updated_at": document.get("updated_at", now),
        }
        stored.pop("id", None)
        await self.collection.insert_one(stored)
        return _to_document(stored)

    @translate_errors
    async def get(self, user_id: str) -> Document | None:
        oid = _object_id(user_id)
        if oid is None:
            return None
        return _to_document(await self.collection.find_one({"_id": oid}))

    @translate_errors
    async def get_by_email(self, email: str) -> Document | None:
        return _to_document(await self.collection.find_one({"email": email.lower()}))

    @translate_errors
    async def get_many(self, user_ids: list[str]) -> list[Document]:
        oids = [oid for oid in map(_object_id, user_ids) if oid is not None]
        if not oids:
            return []
        cursor = self.collection.find({"_id": {"$in": oids}})
        return [_to_document(raw) async for raw in cursor]

    @translate_errors
    async def update_fields(self, user_id: str, fields: Document) -> Document | None:
        oid = _object_id(user_id)
        if oid is None:
            return None
        raw = await self.collection.find_one_and_update(
            {"_id": oid},
            {"$set": {**fields, "updated_at": _now()}},
            return_document=ReturnDocument.AFTER,
        )
        return _to_document(raw)

    @translate_errors
    async def increment(self, user_id: str, field: str, amount: int = 1) -> None:
        oid = _object_id(user_id)
        if oid is None:
            return
        await self.collection.update_one(
            {"_id": oid}, {"$inc": {field: amount}, "$set": {"updated_at": _now()}}
        )

    @translate_errors
    async def add_following(self, user_id: str, target_id: str) -> bool:
        oid = _object_id(user_id)
        if oid is None:
            return False
        result = await self.collection.update_one(
            {"_id": oid, "following": {"$ne": target_id}},
            {"$push": {"following": target_id}, "$set": {"updated_at": _now()}},
        )
        return result.modified_count == 1

    @translate_errors
    async def remove_following(self, user_id: str, target_id: str) -> None:
        await self._pull(user_id, "following", target_id)

    @translate_errors
    async def add_follower(self, user_id: str, follower_id: str) -> None:
        oid = _object_id(user_id)
        if oid is None:
            return
        await self.collection.update_one(
            {"_id": oid},
            {"$addToSet": {"followers": follower_id}, "$set": {"updated_at": _now()}},
        )

    @translate_errors
    async def remove_follower(self, user_id: str, follower_id: str) -> None:
        await self._pull(user_id, "followers", follower_id)

    async def _pull(self, user_id: str, field: str, member_id: str) -> None:
        oid = _object_id(user_id)
        if oid is None:
            return
        await self.collection.update_one(
            {"_id": oid}, {"$pull": {field: member_id}, "$set": {"updated_at": _now()}}
        )

    @translate_errors
    async def search(self, query: str, skip: int = 0, limit: int = 0) -> list[Document]:
        cursor = (
            self.collection.find(self._search_query(query))
            .sort("_id", ASCENDING)
            .skip(skip)
            .limit(limit)
        )
        return [_to_document(raw) async for raw in cursor]

    @translate_errors
    async def count_search(self, query: str) -> int:
        return await self.collection.count_documents(self._search_query(query))

    @translate_errors
    async def count(self) -> int:
        return await self.collection.count_documents({})


class MongoDocumentStore(DocumentStore):
    """Document store backed by a MongoDB database."""

    def __init__(self, url: str, name: str, server_selection_timeout_ms: int = 5000) -> None:
        self.client: AsyncMongoClient = AsyncMongoClient(
            url, tz_aware=True, serverSelectionTimeoutMS=server_selection_timeout_ms
        )
        self.database = self.client[name]
        self.nfts = MongoNFTRepository(self.database["nfts"])
        self.users = MongoUserRepository(self.database["users"])

    @translate_errors
    async def startup(self) -> None:
        await self.nfts.ensure_indexes()
        await self.users.ensure_indexes()
        logger.info("MongoDB indexes ensured", extra={"database": self.database.name})

    async def shutdown(self) -> None:
        await self.client.close()

    async def ping(self) -> bool:
        try:
            await self.client.admin.command("ping")
        except PyMongoError:
            logger.warning("MongoDB ping failed")
            return False
        return True
