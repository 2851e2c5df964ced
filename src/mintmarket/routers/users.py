"""User API endpoints: public profiles, owned NFTs, follows and search.

Example Usage:
    Search users:
        GET /api/users/search?q=ali&page=1&limit=10

    Follow a user:
        POST /api/users/665f1c2e9b1e8a3d4c5b6a78/follow
        Authorization: Bearer eyJhbGciOi...
"""

from fastapi import APIRouter, Depends, Path, Query

from ..core.dependencies import (
    get_catalog_service,
    get_current_user_id,
    get_social_service,
)
from ..core.logging import ContextLogger
from ..schemas.common import MessageResponse
from ..schemas.nfts import NFTListResponse, UserNFTType
from ..schemas.users import (
    FollowersResponse,
    FollowingResponse,
    UserEnvelope,
    UserSearchResponse,
)
from ..services.catalog import CatalogService
from ..services.social import SocialService

router = APIRouter(
    prefix="/users",
    tags=["users"],
    responses={404: {"description": "User not found"}},
)

logger = ContextLogger(__name__)


# Registered before /{user_id} so "search" is not taken for an id.
@router.get("/search", response_model=UserSearchResponse, summary="Search users")
async def search_users(
    q: str | None = Query(None, description="Substring of username or bio"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: SocialService = Depends(get_social_service),
) -> UserSearchResponse:
    users, pagination = await service.search_users(q, page=page, limit=limit)
    return UserSearchResponse(users=users, pagination=pagination)


@router.get("/{user_id}", response_model=UserEnvelope, summary="Get a public profile")
async def get_user(
    user_id: str = Path(..., description="User identifier"),
    service: SocialService = Depends(get_social_service),
) -> UserEnvelope:
    return UserEnvelope(user=await service.get_user(user_id))


@router.get(
    "/{user_id}/nfts",
    response_model=NFTListResponse,
    summary="NFTs a user owns, created or has listed",
)
async def get_user_nfts(
    user_id: str = Path(..., description="User identifier"),
    type: UserNFTType = Query(UserNFTType.OWNED, description="owned, created or listed"),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    service: CatalogService = Depends(get_catalog_service),
) -> NFTListResponse:
    nfts, pagination = await service.list_user_nfts(user_id, type, page=page, limit=limit)
    return NFTListResponse(nfts=nfts, pagination=pagination)


@router.post("/{user_id}/follow", response_model=MessageResponse, summary="Follow a user")
async def follow_user(
    user_id: str = Path(..., description="User to follow"),
    current_user_id: str = Depends(get_current_user_id),
    service: SocialService = Depends(get_social_service),
) -> MessageResponse:
    await service.follow(current_user_id, user_id)
    return MessageResponse(message="User followed successfully")


@router.post(
    "/{user_id}/unfollow", response_model=MessageResponse, summary="Unfollow a user"
)
async def unfollow_user(
    user_id: str = Path(..., description="User to unfollow"),
    current_user_id: str = Depends(get_current_user_id),
    service: SocialService = Depends(get_social_service),
) -> MessageResponse:
    await service.unfollow(current_user_id, user_id)
    return MessageResponse(message="User unfollowed successfully")


@router.get(
    "/{user_id}/followers", response_model=FollowersResponse, summary="List followers"
)
async def get_followers(
    user_id: str = Path(..., description="User identifier"),
    service: SocialService = Depends(get_social_service),
) -> FollowersResponse:
    return FollowersResponse(followers=await service.get_followers(user_id))


@router.get(
    "/{user_id}/following", response_model=FollowingResponse, summary="List followed users"
)
async def get_following(
    user_id: str = Path(..., description="User identifier"),
    service: SocialService = Depends(get_social_service),
) -> FollowingResponse:
    return FollowingResponse(following=await service.get_following(user_id))
