"""Test configuration and fixtures for the MintMarket package.

This module provides common fixtures used across all test modules:
- Environment setup (in-memory document store, debug mode)
- Fresh stores and services per test
- Factories for users and NFTs
- An API client with helpers for registering users
"""

import os

os.environ.setdefault("DB_BACKEND", "memory")
os.environ.setdefault("API_DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from mintmarket.core.dependencies import get_service_container
from mintmarket.main import app
from mintmarket.repositories.memory import MemoryDocumentStore
from mintmarket.services.accounts import AccountService
from mintmarket.services.catalog import CatalogService
from mintmarket.services.marketplace import MarketplaceService
from mintmarket.services.social import SocialService


def build_nft_payload(**overrides):
    """Minimal valid NFT creation payload."""
    payload = {
        "name": "Sunset",
        "description": "A generative sunset",
        "image": "ipfs://sunset.png",
        "price": 1.0,
        "category": "Art",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def store():
    """Fresh in-memory document store."""
    return MemoryDocumentStore()


@pytest.fixture
def catalog(store):
    return CatalogService(store.nfts, store.users)


@pytest.fixture
def marketplace(store):
    return MarketplaceService(store.nfts, store.users)


@pytest.fixture
def social(store):
    return SocialService(store.users)


@pytest.fixture
def accounts(store):
    return AccountService(store.users)


@pytest.fixture
def make_user(store):
    """Factory inserting a user document directly into the store."""

    async def _make(username="alice", **fields):
        document = {
            "username": username,
            "email": f"{username}@example.com",
            "password_hash": "x",
            "password_salt": "y",
            "bio": "",
            "profile_image": "",
            "wallet_address": None,
            "followers": [],
            "following": [],
            "total_sales": 0,
            "total_purchases": 0,
        }
        document.update(fields)
        return await store.users.insert(document)

    return _make


@pytest.fixture
def make_nft(catalog):
    """Factory minting an NFT, optionally listing it at its price."""

    async def _make(owner_id, listed=False, **fields):
        payload = build_nft_payload(**fields)
        nft = await catalog.create_nft(payload, owner_id)
        if listed:
            nft = await catalog.list_nft(nft.id, owner_id, payload["price"])
        return nft

    return _make


@pytest.fixture
def client():
    """API client backed by a fresh in-memory container."""
    get_service_container.cache_clear()
    with TestClient(app) as test_client:
        yield test_client
    get_service_container.cache_clear()


@pytest.fixture
def register(client):
    """Register a user through the API and return ``(user_id, headers)``."""

    def _register(username="alice", password="secret1", **fields):
        body = {
            "username": username,
            "email": f"{username}@example.com",
            "password": password,
            **fields,
        }
        response = client.post("/api/auth/register", json=body)
        assert response.status_code == 201, response.text
        data = response.json()
        return data["user"]["_id"], {"Authorization": f"Bearer {data['token']}"}

    return _register


@pytest.fixture
def create_nft(client):
    """Mint an NFT through the API, optionally listing it."""

    def _create(headers, listed=False, **fields):
        payload = build_nft_payload(**fields)
        response = client.post("/api/nfts", json=payload, headers=headers)
        assert response.status_code == 201, response.text
        nft = response.json()["nft"]
        if listed:
            response = client.post(
                f"/api/nfts/{nft['_id']}/list",
                json={"price": payload["price"]},
                headers=headers,
            )
            assert response.status_code == 200, response.text
            nft = response.json()["nft"]
        return nft

    return _create


@pytest.fixture
def nft_payload():
    """Builder for valid NFT creation payloads."""
    return build_nft_payload
