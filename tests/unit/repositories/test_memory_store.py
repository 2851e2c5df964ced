"""Tests for the in-memory document store."""

import pytest

from mintmarket.core.exceptions import DuplicateEntryError
from mintmarket.repositories.base import NFTFilter
from mintmarket.repositories.memory import MemoryDocumentStore


def nft_document(**fields):
    document = {
        "name": "Sunset",
        "description": "Orange sky",
        "image": "ipfs://sunset.png",
        "token_id": "NFT_1_aaaaaaaaa",
        "contract_address": "0x" + "0" * 40,
        "creator": "u1",
        "owner": "u1",
        "price": 1.0,
        "is_listed": True,
        "category": "Art",
        "tags": [],
        "likes": [],
        "views": 0,
        "transaction_history": [],
    }
    document.update(fields)
    return document


@pytest.fixture
def store():
    return MemoryDocumentStore()


@pytest.mark.asyncio
async def test_insert_assigns_id_and_timestamps(store):
    stored = await store.nfts.insert(nft_document())

    assert len(stored["id"]) == 24
    assert stored["created_at"] == stored["updated_at"]
    assert (await store.nfts.get(stored["id"]))["name"] == "Sunset"


@pytest.mark.asyncio
async def test_returned_documents_are_copies(store):
    stored = await store.nfts.insert(nft_document())
    stored["name"] = "Changed"

    assert (await store.nfts.get(stored["id"]))["name"] == "Sunset"


@pytest.mark.asyncio
async def test_token_id_is_unique(store):
    await store.nfts.insert(nft_document())

    with pytest.raises(DuplicateEntryError) as exc_info:
        await store.nfts.insert(nft_document())

    assert exc_info.value.details == {"field": "token_id"}


@pytest.mark.asyncio
async def test_transfer_ownership_is_compare_and_swap(store):
    stored = await store.nfts.insert(nft_document(price=2.0))
    entry = {"from": "u1", "to": "u2", "price": 2.0, "transaction_hash": "0xabc"}

    assert await store.nfts.transfer_ownership(stored["id"], "u1", "u2", 3.0, entry) is None
    assert await store.nfts.transfer_ownership(stored["id"], "u9", "u2", 2.0, entry) is None

    moved = await store.nfts.transfer_ownership(stored["id"], "u1", "u2", 2.0, entry)
    assert moved["owner"] == "u2"
    assert moved["is_listed"] is False
    assert moved["transaction_history"] == [entry]

    assert await store.nfts.transfer_ownership(stored["id"], "u1", "u3", 2.0, entry) is None


@pytest.mark.asyncio
async def test_revert_transfer_restores_listing(store):
    stored = await store.nfts.insert(nft_document())
    entry = {"from": "u1", "to": "u2", "price": 1.0, "transaction_hash": "0xabc"}
    await store.nfts.transfer_ownership(stored["id"], "u1", "u2", 1.0, entry)

    await store.nfts.revert_transfer(stored["id"], "u1", "0xabc")

    restored = await store.nfts.get(stored["id"])
    assert restored["owner"] == "u1"
    assert restored["is_listed"] is True
    assert restored["transaction_history"] == []


@pytest.mark.asyncio
async def test_find_breaks_ties_by_id(store):
    first = await store.nfts.insert(nft_document(token_id="a", price=1.0))
    second = await store.nfts.insert(nft_document(token_id="b", price=1.0))

    ascending = await store.nfts.find(NFTFilter(), sort_field="price", descending=False)
    descending = await store.nfts.find(NFTFilter(), sort_field="price", descending=True)

    assert [doc["id"] for doc in ascending] == [first["id"], second["id"]]
    assert [doc["id"] for doc in descending] == [second["id"], first["id"]]


@pytest.mark.asyncio
async def test_user_uniqueness_and_following(store):
    alice = await store.users.insert({"username": "alice", "email": "a@example.com"})
    bob = await store.users.insert({"username": "bob", "email": "b@example.com"})

    with pytest.raises(DuplicateEntryError):
        await store.users.insert({"username": "alice", "email": "c@example.com"})
    with pytest.raises(DuplicateEntryError):
        await store.users.update_fields(bob["id"], {"username": "alice"})

    assert await store.users.add_following(alice["id"], bob["id"]) is True
    assert await store.users.add_following(alice["id"], bob["id"]) is False
    assert (await store.users.get(alice["id"]))["following"] == [bob["id"]]
