"""Tests for follows, follower lists and user search."""

from unittest.mock import AsyncMock

import pytest

from mintmarket.core.exceptions import (
    AlreadyFollowingError,
    PersistenceError,
    SelfFollowError,
    UserNotFoundError,
    ValidationError,
)


@pytest.mark.asyncio
async def test_follow_updates_both_sides(social, store, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob", bio="Collector")

    await social.follow(alice["id"], bob["id"])

    assert (await store.users.get(alice["id"]))["following"] == [bob["id"]]
    assert (await store.users.get(bob["id"]))["followers"] == [alice["id"]]

    following = await social.get_following(alice["id"])
    assert [user.username for user in following] == ["bob"]
    assert following[0].bio == "Collector"
    followers = await social.get_followers(bob["id"])
    assert [user.id for user in followers] == [alice["id"]]


@pytest.mark.asyncio
async def test_follow_then_unfollow_restores_lists(social, store, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")

    await social.follow(alice["id"], bob["id"])
    await social.unfollow(alice["id"], bob["id"])

    assert (await store.users.get(alice["id"]))["following"] == []
    assert (await store.users.get(bob["id"]))["followers"] == []


@pytest.mark.asyncio
async def test_follow_errors(social, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")

    with pytest.raises(SelfFollowError):
        await social.follow(alice["id"], alice["id"])
    with pytest.raises(UserNotFoundError):
        await social.follow(alice["id"], "665f1c2e9b1e8a3d4c5b6a78")

    await social.follow(alice["id"], bob["id"])
    with pytest.raises(AlreadyFollowingError):
        await social.follow(alice["id"], bob["id"])


@pytest.mark.asyncio
async def test_follow_rolls_back_when_mirror_write_fails(social, store, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    store.users.add_follower = AsyncMock(side_effect=RuntimeError("write failed"))

    with pytest.raises(PersistenceError):
        await social.follow(alice["id"], bob["id"])

    assert (await store.users.get(alice["id"]))["following"] == []


@pytest.mark.asyncio
async def test_unfollow_without_relationship_is_noop(social, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")

    await social.unfollow(alice["id"], bob["id"])

    with pytest.raises(UserNotFoundError):
        await social.unfollow(alice["id"], "665f1c2e9b1e8a3d4c5b6a78")


@pytest.mark.asyncio
async def test_get_user_hides_credentials(social, make_user):
    alice = await make_user("alice")

    user = await social.get_user(alice["id"])
    body = user.model_dump(by_alias=True)

    assert body["_id"] == alice["id"]
    assert body["username"] == "alice"
    assert "passwordHash" not in body
    assert "password_hash" not in body


@pytest.mark.asyncio
async def test_search_users_matches_username_and_bio(social, make_user):
    await make_user("alice", bio="Paints whales")
    await make_user("Whaler")
    await make_user("carol", bio="Photographer")

    users, pagination = await social.search_users("WHAL")

    assert [user.username for user in users] == ["alice", "Whaler"]
    assert pagination.total_items == 2
    assert pagination.items_per_page == 10


@pytest.mark.asyncio
async def test_search_users_paginates(social, make_user):
    for i in range(5):
        await make_user(f"user{i}")

    users, pagination = await social.search_users("user", page=2, limit=2)

    assert [user.username for user in users] == ["user2", "user3"]
    assert pagination.total_pages == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("query", [None, "", "   "])
async def test_search_users_requires_query(social, query):
    with pytest.raises(ValidationError):
        await social.search_users(query)
