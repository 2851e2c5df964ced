"""Marketplace service: purchases and catalog-wide aggregates.

A purchase touches three documents: the NFT and the two users' counters.
It runs as a short saga:

1. Compare-and-swap the NFT from (listed, seller, price) to (unlisted, buyer)
   while appending the transaction history entry. This is the commit point;
   of two concurrent buyers only one can win it.
2. Increment the seller's ``total_sales``.
3. Increment the buyer's ``total_purchases``.

If step 2 or 3 fails, the completed steps are compensated in reverse order
and the failure is surfaced as a PersistenceError.

No value changes hands: the transaction hash is a random hex string.
"""

import secrets
import time
from datetime import UTC, datetime

from prometheus_client import Counter, Histogram

from ..core.exceptions import (
    ConflictError,
    MintMarketError,
    NFTNotFoundError,
    NotListedError,
    PersistenceError,
    SelfPurchaseError,
)
from ..core.logging import ContextLogger
from ..repositories.base import Document, NFTFilter, NFTRepository, UserRepository
from ..schemas.marketplace import (
    CategoryCount,
    MarketplaceStats,
    NFTBrief,
    RecentSale,
)
from ..schemas.nfts import NFTOut
from .presenters import load_summaries, present_nft, present_nfts

logger = ContextLogger(__name__)

# Prometheus metrics
nft_purchases = Counter(
    "mintmarket_nft_purchases_total",
    "Total number of NFT purchase attempts",
    ["status"],
)

nft_purchase_volume = Counter(
    "mintmarket_nft_purchase_volume_sum",
    "Total price of completed NFT purchases",
)

nft_purchase_duration = Histogram(
    "mintmarket_nft_purchase_duration_seconds",
    "Purchase duration in seconds",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)


def generate_transaction_hash() -> str:
    """Return a simulated 32-byte transaction hash."""
    return "0x" + secrets.token_hex(32)


class MarketplaceService:
    """Purchase workflow, statistics, trending and category counts."""

    def __init__(
        self,
        nfts: NFTRepository,
        users: UserRepository,
        trending_limit: int = 10,
        recent_sales_limit: int = 10,
    ) -> None:
        self.nfts = nfts
        self.users = users
        self.trending_limit = trending_limit
        self.recent_sales_limit = recent_sales_limit

    @staticmethod
    def _check_purchasable(doc: Document | None, nft_id: str, buyer_id: str) -> Document:
        if doc is None:
            raise NFTNotFoundError(f"NFT {nft_id} not found")
        if not doc.get("is_listed"):
            raise NotListedError("NFT is not listed for sale")
        if doc["owner"] == buyer_id:
            raise SelfPurchaseError("You cannot buy your own NFT")
        return doc

    async def purchase(self, nft_id: str, buyer_id: str) -> tuple[NFTOut, str]:
        """Buy a listed NFT on behalf of ``buyer_id``.

        Returns:
            The updated NFT (creator/owner resolved) and the transaction hash.

        Raises:
            NFTNotFoundError: No NFT has this id.
            NotListedError: The NFT is not for sale (or was just sold).
            SelfPurchaseError: The buyer already owns the NFT.
            PersistenceError: A follow-up write failed and was rolled back.
        """
        start = time.perf_counter()
        try:
            result = await self._purchase(nft_id, buyer_id)
        except MintMarketError as e:
            nft_purchases.labels(status=e.error_code).inc()
            raise
        finally:
            nft_purchase_duration.observe(time.perf_counter() - start)
        nft_purchases.labels(status="completed").inc()
        return result

    async def _purchase(self, nft_id: str, buyer_id: str) -> tuple[NFTOut, str]:
        doc = self._check_purchasable(await self.nfts.get(nft_id), nft_id, buyer_id)
        seller_id = doc["owner"]
        price = doc["price"]
        transaction_hash = generate_transaction_hash()
        entry = {
            "from": seller_id,
            "to": buyer_id,
            "price": price,
            "transaction_hash": transaction_hash,
            "timestamp": datetime.now(UTC),
        }

        updated = await self.nfts.transfer_ownership(
            nft_id, seller_id, buyer_id, price, entry
        )
        if updated is None:
            # Lost a race with another writer; report the state we now see.
            current = self._check_purchasable(await self.nfts.get(nft_id), nft_id, buyer_id)
            logger.warning(
                "Purchase lost a concurrent update",
                extra={"nft_id": nft_id, "buyer_id": buyer_id, "price": current["price"]},
            )
            raise ConflictError("NFT listing changed during purchase, please retry")

        seller_credited = False
        try:
            await self.users.increment(seller_id, "total_sales")
            seller_credited = True
            await self.users.increment(buyer_id, "total_purchases")
        except Exception as e:
            logger.exception(
                "Purchase counters failed, compensating",
                extra={"nft_id": nft_id, "transaction_hash": transaction_hash},
            )
            await self._compensate(nft_id, seller_id, transaction_hash, seller_credited)
            raise PersistenceError("Purchase could not be completed") from e

        nft_purchase_volume.inc(price)
        logger.info(
            "NFT purchased",
            extra={
                "nft_id": nft_id,
                "seller_id": seller_id,
                "buyer_id": buyer_id,
                "price": price,
                "transaction_hash": transaction_hash,
            },
        )
        return await present_nft(self.users, updated), transaction_hash

    async def _compensate(
        self,
        nft_id: str,
        seller_id: str,
        transaction_hash: str,
        seller_credited: bool,
    ) -> None:
        try:
            if seller_credited:
                await self.users.increment(seller_id, "total_sales", -1)
            await self.nfts.revert_transfer(nft_id, seller_id, transaction_hash)
        except Exception:
            logger.exception(
                "Purchase compensation failed; manual repair required",
                extra={"nft_id": nft_id, "transaction_hash": transaction_hash},
            )

    async def stats(self) -> tuple[MarketplaceStats, list[RecentSale]]:
        """Return catalog counters, traded volume and the latest sales."""
        stats = MarketplaceStats(
            total_nfts=await self.nfts.count(NFTFilter()),
            listed_nfts=await self.nfts.count(NFTFilter(listed_only=True)),
            total_users=await self.users.count(),
            total_volume=await self.nfts.total_volume(),
        )

        sales = await self.nfts.recent_sales(self.recent_sales_limit)
        summaries = await load_summaries(
            self.users, [uid for sale in sales for uid in (sale["from"], sale["to"])]
        )
        recent = [
            RecentSale(
                nft=NFTBrief(**sale["nft"]),
                from_user=summaries.get(sale["from"], sale["from"]),
                to_user=summaries.get(sale["to"], sale["to"]),
                price=sale["price"],
                transaction_hash=sale["transaction_hash"],
                timestamp=sale["timestamp"],
            )
            for sale in sales
        ]
        return stats, recent

    async def trending(self, limit: int | None = None) -> list[NFTOut]:
        """Listed NFTs with the most views."""
        docs = await self.nfts.trending(limit or self.trending_limit)
        return await present_nfts(self.users, docs)

    async def category_counts(self) -> list[CategoryCount]:
        """Listed NFT counts per category, largest first."""
        return [
            CategoryCount(category=category, count=count)
            for category, count in await self.nfts.category_counts()
        ]
