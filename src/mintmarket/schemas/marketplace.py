"""Schema definitions for marketplace responses."""

from datetime import datetime

from pydantic import Field

from .common import APIModel
from .nfts import Category, NFTOut
from .users import UserSummary


class PurchaseResponse(APIModel):
    message: str
    nft: NFTOut
    transaction_hash: str


class MarketplaceStats(APIModel):
    """Catalog-wide counters."""

    total_nfts: int = Field(..., alias="totalNFTs")
    listed_nfts: int = Field(..., alias="listedNFTs")
    total_users: int
    total_volume: float = Field(..., description="Sum of every recorded sale price")


class NFTBrief(APIModel):
    id: str = Field(..., alias="_id")
    name: str
    image: str


class RecentSale(APIModel):
    """A single sale taken from some NFT's transaction history."""

    nft: NFTBrief
    from_user: UserSummary | str = Field(..., alias="from")
    to_user: UserSummary | str = Field(..., alias="to")
    price: float
    transaction_hash: str
    timestamp: datetime


class StatsResponse(APIModel):
    stats: MarketplaceStats
    recent_sales: list[RecentSale]


class TrendingResponse(APIModel):
    trending_nfts: list[NFTOut] = Field(..., alias="trendingNFTs")


class CategoryCount(APIModel):
    category: Category = Field(..., alias="_id")
    count: int


class CategoriesResponse(APIModel):
    categories: list[CategoryCount]
