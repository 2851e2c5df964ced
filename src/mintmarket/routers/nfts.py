"""NFT catalog API endpoints.

Core Features:
- Minting NFT records for the authenticated user
- Filtered, sorted and paginated catalog browsing
- Owner-only edits, deletion, listing and unlisting
- Like toggling

Reading a single NFT counts as a view.

Example Usage:
    Browse listed art under 2 ETH, cheapest first:
        GET /api/nfts?category=Art&maxPrice=2&sortBy=price&sortOrder=asc

    List an NFT for sale:
        POST /api/nfts/665f1c2e9b1e8a3d4c5b6a79/list
        {"price": 1.5}
"""

from typing import Literal

from fastapi import APIRouter, Depends, Path, Query, status

from ..core.dependencies import get_catalog_service, get_current_user_id
from ..core.logging import ContextLogger
from ..schemas.common import MessageResponse
from ..schemas.nfts import (
    LikeResponse,
    ListingRequest,
    NFTCreate,
    NFTEnvelope,
    NFTListResponse,
    NFTMessageEnvelope,
    NFTQuery,
    NFTUpdate,
)
from ..services.catalog import CatalogService

router = APIRouter(
    prefix="/nfts",
    tags=["nfts"],
    responses={
        404: {
            "description": "NFT not found",
            "content": {
                "application/json": {
                    "example": {
                        "error": True,
                        "message": "NFT 665f1c2e9b1e8a3d4c5b6a79 not found",
                        "error_code": "NFTNotFoundError",
                        "status_code": 404,
                    }
                }
            },
        },
    },
)

logger = ContextLogger(__name__)


@router.post(
    "",
    response_model=NFTMessageEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create an NFT",
)
async def create_nft(
    payload: NFTCreate,
    user_id: str = Depends(get_current_user_id),
    service: CatalogService = Depends(get_catalog_service),
) -> NFTMessageEnvelope:
    async with logger.track_time("create_nft"):
        nft = await service.create_nft(payload, user_id)
    return NFTMessageEnvelope(message="NFT created successfully", nft=nft)


@router.get("", response_model=NFTListResponse, summary="Browse the catalog")
async def list_nfts(
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    category: str | None = Query(None),
    min_price: float | None = Query(None, alias="minPrice"),
    max_price: float | None = Query(None, alias="maxPrice"),
    search: str | None = Query(None),
    listed_only: bool = Query(True, alias="listedOnly"),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("desc", alias="sortOrder"),
    service: CatalogService = Depends(get_catalog_service),
) -> NFTListResponse:
    query = NFTQuery(
        page=page,
        limit=limit,
        category=category,
        min_price=min_price,
        max_price=max_price,
        search=search,
        listed_only=listed_only,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    nfts, pagination = await service.list_nfts(query)
    return NFTListResponse(nfts=nfts, pagination=pagination)


@router.get("/{nft_id}", response_model=NFTEnvelope, summary="Get an NFT")
async def get_nft(
    nft_id: str = Path(..., description="NFT identifier"),
    service: CatalogService = Depends(get_catalog_service),
) -> NFTEnvelope:
    return NFTEnvelope(nft=await service.get_nft(nft_id))


@router.put("/{nft_id}", response_model=NFTMessageEnvelope, summary="Update an NFT")
async def update_nft(
    payload: NFTUpdate,
    nft_id: str = Path(..., description="NFT identifier"),
    user_id: str = Depends(get_current_user_id),
    service: CatalogService = Depends(get_catalog_service),
) -> NFTMessageEnvelope:
    nft = await service.update_nft(nft_id, user_id, payload)
    return NFTMessageEnvelope(message="NFT updated successfully", nft=nft)


@router.delete("/{nft_id}", response_model=MessageResponse, summary="Delete an NFT")
async def delete_nft(
    nft_id: str = Path(..., description="NFT identifier"),
    user_id: str = Depends(get_current_user_id),
    service: CatalogService = Depends(get_catalog_service),
) -> MessageResponse:
    await service.delete_nft(nft_id, user_id)
    return MessageResponse(message="NFT deleted successfully")


@router.post("/{nft_id}/like", response_model=LikeResponse, summary="Toggle a like")
async def toggle_like(
    nft_id: str = Path(..., description="NFT identifier"),
    user_id: str = Depends(get_current_user_id),
    service: CatalogService = Depends(get_catalog_service),
) -> LikeResponse:
    like_count, is_liked = await service.toggle_like(nft_id, user_id)
    return LikeResponse(
        message="Like toggled successfully",
        like_count=like_count,
        is_liked=is_liked,
    )


@router.post(
    "/{nft_id}/list", response_model=NFTMessageEnvelope, summary="List an NFT for sale"
)
async def list_nft(
    payload: ListingRequest,
    nft_id: str = Path(..., description="NFT identifier"),
    user_id: str = Depends(get_current_user_id),
    service: CatalogService = Depends(get_catalog_service),
) -> NFTMessageEnvelope:
    nft = await service.list_nft(nft_id, user_id, payload)
    return NFTMessageEnvelope(message="NFT listed successfully", nft=nft)


@router.post(
    "/{nft_id}/unlist", response_model=NFTMessageEnvelope, summary="Withdraw an NFT"
)
async def unlist_nft(
    nft_id: str = Path(..., description="NFT identifier"),
    user_id: str = Depends(get_current_user_id),
    service: CatalogService = Depends(get_catalog_service),
) -> NFTMessageEnvelope:
    nft = await service.unlist_nft(nft_id, user_id)
    return NFTMessageEnvelope(message="NFT unlisted successfully", nft=nft)
