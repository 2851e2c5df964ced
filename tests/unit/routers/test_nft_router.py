"""Tests for the NFT catalog endpoints."""

MISSING_ID = "665f1c2e9b1e8a3d4c5b6a79"


def test_create_requires_auth(client, nft_payload):
    response = client.post("/api/nfts", json=nft_payload())

    assert response.status_code == 401
    assert response.json()["error"] is True


def test_create_nft(client, register, create_nft):
    user_id, headers = register("alice")

    nft = create_nft(headers, tags=["sun"])

    assert nft["creator"]["_id"] == user_id
    assert nft["owner"]["username"] == "alice"
    assert nft["isListed"] is False
    assert nft["likeCount"] == 0
    assert nft["tokenId"].startswith("NFT_")
    assert nft["transactionHistory"] == []


def test_create_nft_validation(client, register, nft_payload):
    _, headers = register("alice")

    response = client.post(
        "/api/nfts", json=nft_payload(category="Vehicles"), headers=headers
    )

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "category"


def test_list_nfts_pagination_and_filters(client, register, create_nft):
    _, headers = register("alice")
    for i in range(5):
        create_nft(headers, listed=True, price=i, category="Art" if i % 2 else "Music")
    create_nft(headers, price=1)

    response = client.get("/api/nfts", params={"limit": 2, "page": 2})
    data = response.json()
    assert response.status_code == 200
    assert len(data["nfts"]) == 2
    assert data["pagination"] == {
        "currentPage": 2,
        "totalPages": 3,
        "totalItems": 5,
        "itemsPerPage": 2,
    }

    response = client.get(
        "/api/nfts",
        params={"category": "Art", "minPrice": 0, "maxPrice": 2, "sortBy": "price", "sortOrder": "asc"},
    )
    assert [nft["price"] for nft in response.json()["nfts"]] == [1]


def test_list_nfts_bad_sort_is_400(client):
    response = client.get("/api/nfts", params={"sortBy": "secret"})

    assert response.status_code == 400


def test_list_nfts_unknown_category_is_empty(client, register, create_nft):
    _, headers = register("alice")
    create_nft(headers, listed=True)

    response = client.get("/api/nfts", params={"category": "Painting"})

    assert response.status_code == 200
    assert response.json()["nfts"] == []
    assert response.json()["pagination"]["totalItems"] == 0


def test_list_nfts_sorts_by_owner_and_description(client, register, create_nft):
    _, alice = register("alice")
    _, bob = register("bob")
    create_nft(bob, listed=True, description="b sunset")
    create_nft(alice, listed=True, description="a sunset")

    for sort_by in ("owner", "description", "contractAddress", "creator"):
        response = client.get("/api/nfts", params={"sortBy": sort_by})
        assert response.status_code == 200, sort_by
        assert len(response.json()["nfts"]) == 2

    response = client.get("/api/nfts", params={"sortBy": "description", "sortOrder": "asc"})
    assert [nft["description"] for nft in response.json()["nfts"]] == [
        "a sunset",
        "b sunset",
    ]


def test_list_summaries_omit_bio(client, register, create_nft):
    _, headers = register("alice", bio="Painter")
    nft = create_nft(headers, listed=True)

    listed = client.get("/api/nfts").json()["nfts"][0]
    assert "bio" not in listed["creator"]
    assert "bio" not in listed["owner"]
    assert listed["owner"]["username"] == "alice"

    detail = client.get(f"/api/nfts/{nft['_id']}").json()["nft"]
    assert detail["creator"]["bio"] == "Painter"


def test_get_nft_increments_views(client, register, create_nft):
    _, headers = register("alice")
    nft = create_nft(headers)

    client.get(f"/api/nfts/{nft['_id']}")
    response = client.get(f"/api/nfts/{nft['_id']}")

    assert response.json()["nft"]["views"] == 2


def test_unknown_nft_is_404(client):
    assert client.get(f"/api/nfts/{MISSING_ID}").status_code == 404
    assert client.get("/api/nfts/not-an-id").status_code == 404


def test_owner_only_mutations(client, register, create_nft):
    _, owner = register("alice")
    _, other = register("bob")
    nft = create_nft(owner)
    url = f"/api/nfts/{nft['_id']}"

    assert client.put(url, json={"name": "Mine"}, headers=other).status_code == 403
    assert client.post(f"{url}/list", json={"price": 1}, headers=other).status_code == 403
    assert client.delete(url, headers=other).status_code == 403

    response = client.put(url, json={"name": "Dusk"}, headers=owner)
    assert response.status_code == 200
    assert response.json()["nft"]["name"] == "Dusk"

    response = client.delete(url, headers=owner)
    assert response.json() == {"message": "NFT deleted successfully"}
    assert client.get(url).status_code == 404


def test_list_and_unlist(client, register, create_nft):
    _, headers = register("alice")
    nft = create_nft(headers)
    url = f"/api/nfts/{nft['_id']}"

    response = client.post(f"{url}/list", json={"price": 4.2}, headers=headers)
    assert response.json()["nft"]["isListed"] is True
    assert response.json()["nft"]["price"] == 4.2

    response = client.post(f"{url}/unlist", headers=headers)
    assert response.json()["nft"]["isListed"] is False
    assert response.json()["nft"]["price"] == 4.2

    response = client.post(f"{url}/list", json={"price": -1}, headers=headers)
    assert response.status_code == 400


def test_toggle_like(client, register, create_nft):
    _, owner = register("alice")
    _, fan = register("bob")
    nft = create_nft(owner)
    url = f"/api/nfts/{nft['_id']}/like"

    first = client.post(url, headers=fan).json()
    second = client.post(url, headers=fan).json()

    assert (first["likeCount"], first["isLiked"]) == (1, True)
    assert (second["likeCount"], second["isLiked"]) == (0, False)
