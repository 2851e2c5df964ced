"""Unit tests for the unified error envelope."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from mintmarket.core.error_handlers import register_error_handlers, status_for
from mintmarket.core.exceptions import (
    AlreadyFollowingError,
    AuthenticationError,
    DuplicateEntryError,
    NFTNotFoundError,
    NotListedError,
    PermissionDeniedError,
    PersistenceError,
    SelfFollowError,
    UserNotFoundError,
    ValidationError,
)


class Body(BaseModel):
    price: float


def build_app() -> FastAPI:
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/missing")
    async def missing():
        raise NFTNotFoundError("NFT 1 not found")

    @app.get("/invalid")
    async def invalid():
        raise ValidationError(
            "Validation failed", errors=[{"field": "price", "message": "too low"}]
        )

    @app.get("/persistence")
    async def persistence():
        raise PersistenceError("connection reset by peer at 10.0.0.5")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("unexpected")

    @app.post("/body")
    async def body(payload: Body):
        return payload

    return app


@pytest.fixture
def client():
    return TestClient(build_app(), raise_server_exceptions=False)


@pytest.mark.parametrize(
    "exc, expected",
    [
        (NFTNotFoundError("x"), 404),
        (UserNotFoundError("x"), 404),
        (AuthenticationError("x"), 401),
        (PermissionDeniedError("x"), 403),
        (ValidationError("x"), 400),
        (SelfFollowError("x"), 400),
        (AlreadyFollowingError("x"), 400),
        (NotListedError("x"), 400),
        (DuplicateEntryError("x"), 400),
        (PersistenceError("x"), 500),
    ],
)
def test_status_for(exc, expected):
    assert status_for(exc) == expected


def test_not_found_envelope(client):
    response = client.get("/missing")

    assert response.status_code == 404
    assert response.json() == {
        "error": True,
        "message": "NFT 1 not found",
        "error_code": "NFTNotFoundError",
        "status_code": 404,
    }


def test_validation_error_lists_fields(client):
    response = client.get("/invalid")

    assert response.status_code == 400
    assert response.json()["errors"] == [{"field": "price", "message": "too low"}]


def test_request_validation_is_400(client):
    response = client.post("/body", json={"price": "free"})

    assert response.status_code == 400
    data = response.json()
    assert data["error_code"] == "ValidationError"
    assert data["errors"][0]["field"] == "price"


def test_persistence_error_hides_details(client):
    response = client.get("/persistence")

    assert response.status_code == 500
    assert response.json()["message"] == "Internal server error occurred"
    assert "10.0.0.5" not in response.text


def test_unexpected_error_is_500(client):
    response = client.get("/boom")

    assert response.status_code == 500
    assert response.json()["error_code"] == "INTERNAL_SERVER_ERROR"


def test_unknown_route_uses_envelope(client):
    response = client.get("/nowhere")

    assert response.status_code == 404
    assert response.json()["error"] is True
