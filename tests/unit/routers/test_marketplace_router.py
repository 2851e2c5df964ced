"""Tests for the marketplace endpoints."""


def test_buy_nft(client, register, create_nft):
    seller_id, seller = register("alice")
    buyer_id, buyer = register("bob")
    nft = create_nft(seller, listed=True, price=3)

    response = client.post(f"/api/marketplace/buy/{nft['_id']}", headers=buyer)

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "NFT purchased successfully"
    assert data["transactionHash"].startswith("0x")
    assert data["nft"]["owner"]["_id"] == buyer_id
    assert data["nft"]["isListed"] is False
    history = data["nft"]["transactionHistory"]
    assert history[0]["from"] == seller_id
    assert history[0]["to"] == buyer_id

    me = client.get("/api/auth/me", headers=buyer).json()["user"]
    assert me["totalPurchases"] == 1


def test_buy_errors(client, register, create_nft):
    _, seller = register("alice")
    _, buyer = register("bob")
    unlisted = create_nft(seller)
    listed = create_nft(seller, listed=True)

    assert client.post(f"/api/marketplace/buy/{listed['_id']}").status_code == 401

    response = client.post(f"/api/marketplace/buy/{unlisted['_id']}", headers=buyer)
    assert response.status_code == 400
    assert response.json()["message"] == "NFT is not listed for sale"

    response = client.post(f"/api/marketplace/buy/{listed['_id']}", headers=seller)
    assert response.status_code == 400
    assert response.json()["message"] == "You cannot buy your own NFT"

    response = client.post("/api/marketplace/buy/665f1c2e9b1e8a3d4c5b6a79", headers=buyer)
    assert response.status_code == 404


def test_stats(client, register, create_nft):
    _, seller = register("alice")
    _, buyer = register("bob")
    nft = create_nft(seller, listed=True, price=10)
    create_nft(seller, listed=True, price=8)
    client.post(f"/api/marketplace/buy/{nft['_id']}", headers=buyer)

    data = client.get("/api/marketplace/stats").json()

    assert data["stats"] == {
        "totalNFTs": 2,
        "listedNFTs": 1,
        "totalUsers": 2,
        "totalVolume": 10,
    }
    sale = data["recentSales"][0]
    assert sale["nft"]["_id"] == nft["_id"]
    assert sale["from"]["username"] == "alice"
    assert sale["to"]["username"] == "bob"


def test_trending_and_categories(client, register, create_nft):
    _, headers = register("alice")
    popular = create_nft(headers, listed=True, category="Music")
    create_nft(headers, listed=True, category="Art")
    create_nft(headers, listed=True, category="Art")
    client.get(f"/api/nfts/{popular['_id']}")

    trending = client.get("/api/marketplace/trending").json()["trendingNFTs"]
    assert trending[0]["_id"] == popular["_id"]
    assert len(trending) == 3

    categories = client.get("/api/marketplace/categories").json()["categories"]
    assert categories == [{"_id": "Art", "count": 2}, {"_id": "Music", "count": 1}]
