import uuid

from unittest.mock import AsyncMock

from mintmarket.core.dependencies import get_service_container
from mintmarket.core.settings import settings


def test_read_main(client):
    response = client.get("/")

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == settings.project_name
    assert data["version"] == settings.version
    assert data["docs"] == "/docs"
    assert data["redoc"] == "/redoc"
    assert data["status"] == "operational"
    assert data["api_prefix"] == settings.prefix
    assert data["features"] == ["nfts", "marketplace", "users"]


def test_health_check_healthy_response(client):
    request_id = str(uuid.uuid4())

    response = client.get("/health", headers={"X-Request-ID": request_id})

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["dependencies"]["document_store"] == "connected"
    assert data["correlation_id"] == request_id
    assert response.headers["X-Correlation-ID"] == request_id


def test_health_check_reports_unreachable_store(client):
    container = get_service_container()
    original_ping = container.store.ping
    container.store.ping = AsyncMock(return_value=False)
    try:
        response = client.get("/health")
    finally:
        container.store.ping = original_ping

    assert response.status_code == 503
    assert response.json()["status"] == "unhealthy"


def test_invalid_request_id_is_regenerated(client):
    response = client.get("/", headers={"X-Request-ID": "not-a-uuid"})

    correlation_id = response.headers["X-Correlation-ID"]
    assert correlation_id != "not-a-uuid"
    uuid.UUID(correlation_id)


def test_error_body_carries_correlation_id(client):
    request_id = str(uuid.uuid4())

    response = client.get(
        "/api/nfts/665f1c2e9b1e8a3d4c5b6a79", headers={"X-Request-ID": request_id}
    )

    assert response.status_code == 404
    assert response.json()["correlation_id"] == request_id


def test_metrics_endpoint(client):
    response = client.get("/metrics/")

    assert response.status_code == 200
    assert "mintmarket_nft_purchases_total" in response.text
