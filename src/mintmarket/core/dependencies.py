"""Dependency injection and service initialization for MintMarket.

This module implements a service container pattern for managing the document
store and the services built on top of it. It provides a centralized location
for service initialization and configuration, making the application more
testable and maintainable.

The module provides:
- ServiceContainer: Owns the document store and the service instances
- Dependency providers: FastAPI-compatible dependency functions
- get_current_user_id: Resolves the bearer token to a user id

Example:
    Using dependency injection in FastAPI routes:
        from fastapi import Depends
        from mintmarket.core.dependencies import get_catalog_service

        @router.get("/nfts/{nft_id}")
        async def get_nft(
            nft_id: str,
            catalog: CatalogService = Depends(get_catalog_service)
        ):
            return await catalog.get_nft(nft_id)

    Swapping the container in tests:
        app.dependency_overrides[get_service_container] = lambda: container
"""

from functools import lru_cache
from typing import Any

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials

from ..repositories.base import DocumentStore
from ..repositories.memory import MemoryDocumentStore
from ..repositories.mongo import MongoDocumentStore
from ..services.accounts import AccountService
from ..services.catalog import CatalogService
from ..services.marketplace import MarketplaceService
from ..services.social import SocialService
from .exceptions import AuthenticationError
from .security import bearer_scheme, decode_access_token
from .settings import Settings, get_settings


def build_document_store(settings: Settings) -> DocumentStore:
    """Create the store selected by ``DB_BACKEND``."""
    if settings.database.backend == "memory":
        return MemoryDocumentStore()
    return MongoDocumentStore(
        settings.database.url,
        settings.database.name,
        settings.database.server_selection_timeout_ms,
    )


class ServiceContainer:
    """Service container for dependency injection and lifecycle management.

    Services are lazily created on first access and cached for reuse. All of
    them share the single document store owned by the container.

    Example:
        container = ServiceContainer(get_settings())
        await container.startup()
        catalog = container.catalog_service
    """

    def __init__(
        self, settings: Settings | None = None, store: DocumentStore | None = None
    ) -> None:
        self.settings = settings or get_settings()
        self.store = store or build_document_store(self.settings)
        self._services: dict[str, Any] = {}

    async def startup(self) -> None:
        await self.store.startup()

    async def shutdown(self) -> None:
        await self.store.shutdown()

    def _create(self, service_name: str) -> Any:
        store = self.store
        limits = self.settings.marketplace
        if service_name == "catalog_service":
            return CatalogService(store.nfts, store.users)
        if service_name == "marketplace_service":
            return MarketplaceService(
                store.nfts,
                store.users,
                trending_limit=limits.trending_limit,
                recent_sales_limit=limits.recent_sales_limit,
            )
        if service_name == "social_service":
            return SocialService(store.users, search_page_size=limits.user_search_page_size)
        if service_name == "account_service":
            return AccountService(store.users, security=self.settings.security)
        raise KeyError(service_name)

    def get_service(self, service_name: str) -> Any:
        """Get a service instance by name, creating it on first use."""
        if service_name not in self._services:
            self._services[service_name] = self._create(service_name)
        return self._services[service_name]

    @property
    def catalog_service(self) -> CatalogService:
        return self.get_service("catalog_service")

    @property
    def marketplace_service(self) -> MarketplaceService:
        return self.get_service("marketplace_service")

    @property
    def social_service(self) -> SocialService:
        return self.get_service("social_service")

    @property
    def account_service(self) -> AccountService:
        return self.get_service("account_service")


@lru_cache
def get_service_container() -> ServiceContainer:
    """Get cached service container instance.

    Returns:
        ServiceContainer singleton instance.
    """
    return ServiceContainer()


# FastAPI dependency provider functions
def get_catalog_service(
    container: ServiceContainer = Depends(get_service_container),
) -> CatalogService:
    return container.catalog_service


def get_marketplace_service(
    container: ServiceContainer = Depends(get_service_container),
) -> MarketplaceService:
    return container.marketplace_service


def get_social_service(
    container: ServiceContainer = Depends(get_service_container),
) -> SocialService:
    return container.social_service


def get_account_service(
    container: ServiceContainer = Depends(get_service_container),
) -> AccountService:
    return container.account_service


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    container: ServiceContainer = Depends(get_service_container),
) -> str:
    """Resolve the bearer token to the id of an existing user.

    Raises:
        AuthenticationError: Missing, invalid or expired token, or the user
            it names no longer exists.
    """
    if credentials is None:
        raise AuthenticationError("No token, authorization denied")
    user_id = decode_access_token(
        credentials.credentials, security=container.settings.security
    )
    if await container.store.users.get(user_id) is None:
        raise AuthenticationError("Token is not valid")
    return user_id
