"""Marketplace API endpoints: purchases and catalog-wide aggregates."""

from fastapi import APIRouter, Depends, Path

from ..core.dependencies import get_current_user_id, get_marketplace_service
from ..core.logging import ContextLogger
from ..schemas.marketplace import (
    CategoriesResponse,
    PurchaseResponse,
    StatsResponse,
    TrendingResponse,
)
from ..services.marketplace import MarketplaceService

router = APIRouter(prefix="/marketplace", tags=["marketplace"])

logger = ContextLogger(__name__)


@router.post(
    "/buy/{nft_id}",
    response_model=PurchaseResponse,
    responses={
        400: {"description": "NFT not listed, or the buyer already owns it"},
        404: {"description": "NFT not found"},
    },
    summary="Buy a listed NFT",
)
async def buy_nft(
    nft_id: str = Path(..., description="NFT identifier"),
    user_id: str = Depends(get_current_user_id),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> PurchaseResponse:
    """Transfers a listed NFT to the caller and records the sale."""
    logger.info("Processing buy_nft request", extra={"nft_id": nft_id, "buyer_id": user_id})
    async with logger.track_time("buy_nft"):
        nft, transaction_hash = await service.purchase(nft_id, user_id)
    return PurchaseResponse(
        message="NFT purchased successfully",
        nft=nft,
        transaction_hash=transaction_hash,
    )


@router.get("/stats", response_model=StatsResponse, summary="Marketplace statistics")
async def get_stats(
    service: MarketplaceService = Depends(get_marketplace_service),
) -> StatsResponse:
    stats, recent_sales = await service.stats()
    return StatsResponse(stats=stats, recent_sales=recent_sales)


@router.get(
    "/trending", response_model=TrendingResponse, summary="Most viewed listed NFTs"
)
async def get_trending(
    service: MarketplaceService = Depends(get_marketplace_service),
) -> TrendingResponse:
    return TrendingResponse(trending_nfts=await service.trending())


@router.get(
    "/categories",
    response_model=CategoriesResponse,
    summary="Listed NFT counts per category",
)
async def get_categories(
    service: MarketplaceService = Depends(get_marketplace_service),
) -> CategoriesResponse:
    return CategoriesResponse(categories=await service.category_counts())
