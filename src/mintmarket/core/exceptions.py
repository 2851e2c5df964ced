"""Unified exception hierarchy for MintMarket."""

from typing import Any


class MintMarketError(Exception):
    """Base exception for all MintMarket errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}


class NotFoundError(MintMarketError):
    """Base exception for resource not found errors."""

    pass


class UserNotFoundError(NotFoundError):
    """User not found."""

    pass


class NFTNotFoundError(NotFoundError):
    """NFT not found."""

    pass


class ValidationError(MintMarketError):
    """Request validation failed.

    Field-level problems are carried in ``errors`` as a list of
    ``{"field": ..., "message": ...}`` dictionaries.
    """

    def __init__(
        self,
        message: str,
        errors: list[dict[str, Any]] | None = None,
        error_code: str | None = None,
    ):
        super().__init__(message, error_code=error_code)
        self.errors = errors or []


class AuthenticationError(MintMarketError):
    """Missing or invalid credentials."""

    pass


class PermissionDeniedError(MintMarketError):
    """Authenticated caller is not entitled to the operation."""

    pass


class ConflictError(MintMarketError):
    """Operation conflicts with the current state of a resource."""

    pass


class SelfFollowError(ConflictError):
    """A user tried to follow itself."""

    pass


class AlreadyFollowingError(ConflictError):
    """The follow relationship already exists."""

    pass


class SelfPurchaseError(ConflictError):
    """A user tried to buy an NFT it already owns."""

    pass


class NotListedError(ConflictError):
    """The NFT is not listed for sale."""

    pass


class DuplicateEntryError(ConflictError):
    """A unique field already holds the submitted value."""

    pass


class ServiceError(MintMarketError):
    """Base exception for service-level errors."""

    pass


class PersistenceError(ServiceError):
    """Document store operation failed."""

    pass
