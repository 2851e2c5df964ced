"""Schema definitions for NFT records.

This module defines Pydantic models and enums for:
- The fixed category enumeration
- Attribute pairs and transaction history entries
- Request models for minting, editing, listing and catalog queries
- Response models for single NFTs and paginated lists
"""

from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import Field, field_validator

from .common import APIModel, Pagination
from .users import UserSummary


class Category(str, Enum):
    """Enumeration of NFT categories."""

    ART = "Art"
    MUSIC = "Music"
    GAMING = "Gaming"
    SPORTS = "Sports"
    COLLECTIBLES = "Collectibles"
    PHOTOGRAPHY = "Photography"
    OTHER = "Other"


class UserNFTType(str, Enum):
    """Relationship used when listing a user's NFTs."""

    OWNED = "owned"
    CREATED = "created"
    LISTED = "listed"


# API sort keys (camelCase and snake_case) mapped onto stored field names.
SORT_FIELDS: dict[str, str] = {
    "_id": "id",
    "id": "id",
    "name": "name",
    "description": "description",
    "image": "image",
    "tokenId": "token_id",
    "contractAddress": "contract_address",
    "creator": "creator",
    "owner": "owner",
    "price": "price",
    "isListed": "is_listed",
    "category": "category",
    "views": "views",
    "royalty": "royalty",
    "blockchain": "blockchain",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}
SORT_FIELDS.update({stored: stored for stored in list(SORT_FIELDS.values())})


class NFTAttribute(APIModel):
    """Free-form trait/value pair."""

    trait_type: str = Field(..., description="Trait name")
    value: str | int | float | bool = Field(..., description="Trait value")


class TransactionRecord(APIModel):
    """One entry of an NFT's append-only transaction history."""

    from_user: UserSummary | str = Field(..., alias="from", description="Seller")
    to_user: UserSummary | str = Field(..., alias="to", description="Buyer")
    price: float = Field(..., description="Sale price")
    transaction_hash: str = Field(..., description="Simulated transaction hash")
    timestamp: datetime = Field(..., description="Time of sale")


class NFTOut(APIModel):
    """NFT as returned by the API.

    ``creator`` and ``owner`` (and the history parties) are resolved to user
    summaries where the referenced user exists, otherwise left as raw ids.
    """

    id: str = Field(..., alias="_id", description="NFT identifier")
    name: str
    description: str
    image: str
    token_id: str
    contract_address: str
    creator: UserSummary | str
    owner: UserSummary | str
    price: float
    is_listed: bool
    category: Category
    attributes: list[NFTAttribute] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    likes: list[str] = Field(default_factory=list)
    like_count: int = 0
    views: int = 0
    royalty: float = 0
    blockchain: str = "Ethereum"
    metadata: dict[str, Any] = Field(default_factory=dict)
    transaction_history: list[TransactionRecord] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class NFTCreate(APIModel):
    """Payload for minting a new NFT record."""

    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=1000)
    image: str = Field(..., min_length=1)
    price: float = Field(..., ge=0, allow_inf_nan=False)
    category: Category
    attributes: list[NFTAttribute] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    royalty: float = Field(0, ge=0, le=50)
    blockchain: str = Field("Ethereum", min_length=1)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("name", "description", "image", mode="before")
    @classmethod
    def strip_text(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, tags: list[str]) -> list[str]:
        return [tag.strip() for tag in tags if tag.strip()]


class NFTUpdate(APIModel):
    """Owner-editable fields; anything else in the payload is ignored."""

    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, min_length=1, max_length=1000)
    price: float | None = Field(None, ge=0, allow_inf_nan=False)
    category: Category | None = None
    tags: list[str] | None = None
    attributes: list[NFTAttribute] | None = None

    @field_validator("name", "description", mode="before")
    @classmethod
    def strip_text(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value


class ListingRequest(APIModel):
    """Asking price for listing an NFT."""

    price: float = Field(..., ge=0, allow_inf_nan=False)


class NFTQuery(APIModel):
    """Catalog filters, sort and pagination."""

    page: int = Field(1, ge=1)
    limit: int = Field(12, ge=1, le=100)
    category: str | None = None
    min_price: float | None = None
    max_price: float | None = None
    search: str | None = None
    listed_only: bool = True
    sort_by: str = "createdAt"
    sort_order: Literal["asc", "desc"] = "desc"


class NFTEnvelope(APIModel):
    nft: NFTOut


class NFTMessageEnvelope(APIModel):
    message: str
    nft: NFTOut


class NFTListResponse(APIModel):
    nfts: list[NFTOut]
    pagination: Pagination


class LikeResponse(APIModel):
    message: str
    like_count: int
    is_liked: bool
