"""Main FastAPI application for MintMarket - NFT Marketplace API.

This module serves as the entry point for the MintMarket application, a REST
backend for a simulated NFT marketplace. Users register, mint NFT records,
list them for sale, buy listed NFTs from each other, like NFTs and follow
other users. No blockchain is involved: token ids, contract addresses and
transaction hashes are generated locally.

Application Architecture:
    - Presentation Layer: FastAPI routers and endpoints
    - Business Logic Layer: Catalog, Marketplace, Social and Account services
    - Data Access Layer: Document store repositories (MongoDB or in-memory)
    - Cross-cutting Concerns: Logging, error handling, dependency injection

Middleware Stack:
    1. CORS middleware for cross-origin request handling
    2. Request correlation middleware for tracking

Environment Configuration:
    - API_DEBUG: Enable debug mode and verbose logging
    - DB_BACKEND / DB_URL / DB_NAME: Document store selection
    - SECURITY_SECRET_KEY: Token signing key
    - MARKET_* variables: Paging and ranking limits

Example Usage:
    Start the development server:
        uvicorn mintmarket.main:app --reload --host 0.0.0.0 --port 8000

    Health check:
        curl http://localhost:8000/health
"""

import time
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import psutil
from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from .core.dependencies import ServiceContainer, get_service_container
from .core.error_handlers import register_error_handlers
from .core.logging import ContextLogger, setup_logging
from .core.settings import settings
from .routers import auth, marketplace, nfts, users

logger = ContextLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: logging setup, store startup and shutdown.

    Any exception raised while the store starts (for example unreachable
    MongoDB while ensuring indexes) prevents the application from starting.
    """
    setup_logging()
    app.state.start_time = time.time()

    container = get_service_container()
    await container.startup()
    app.state.container = container

    logger.info(
        "MintMarket application started successfully",
        extra={
            "environment": "development" if settings.debug else "production",
            "version": settings.version,
            "debug_mode": settings.debug,
            "api_prefix": settings.prefix,
            "db_backend": settings.database.backend,
            "startup_time": time.time() - app.state.start_time,
        },
    )

    yield

    total_uptime = time.time() - app.state.start_time
    await container.shutdown()
    logger.info(
        "MintMarket application shutting down gracefully",
        extra={"total_uptime_seconds": round(total_uptime, 2)},
    )


app = FastAPI(
    title=settings.project_name,
    description="""
    MintMarket is a REST API for a simulated NFT marketplace.

    Features:
    • Mint, browse, list and buy NFT records
    • Likes, view counts and trending NFTs
    • Marketplace statistics and category breakdowns
    • User profiles, follows and search

    Authentication:
    Register or log in under /auth and send the returned token as
    `Authorization: Bearer <token>`.
    """,
    version=settings.version,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url=(
        f"{settings.prefix}/openapi.json" if settings.prefix else "/openapi.json"
    ),
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Correlation-ID"],
    max_age=3600,
)


@app.middleware("http")
async def request_middleware(request: Request, call_next: Any) -> Any:
    """Attach a correlation id to every request and log its timing.

    A client supplied ``X-Request-ID`` is reused when it is a valid UUID;
    otherwise a fresh UUID4 is generated. The id is echoed back in the
    ``X-Correlation-ID`` response header and included in error bodies.
    """
    client_request_id = request.headers.get("X-Request-ID")
    correlation_id: str
    request_id_source = "generated"
    if client_request_id:
        try:
            correlation_id = str(uuid.UUID(client_request_id))
            request_id_source = "client"
        except ValueError:
            correlation_id = str(uuid.uuid4())
            request_id_source = "regenerated"
    else:
        correlation_id = str(uuid.uuid4())
    request.state.correlation_id = correlation_id
    request.state.request_id_source = request_id_source

    logger.set_correlation_id(correlation_id)
    start_time = time.time()

    logger.info(
        "HTTP request initiated",
        extra={
            "method": request.method,
            "path": request.url.path,
            "query_params": str(request.query_params) if request.query_params else None,
            "client_ip": request.client.host if request.client else "unknown",
            "request_id_source": request_id_source,
        },
    )

    response = await call_next(request)

    logger.info(
        "HTTP request completed",
        extra={
            "status_code": response.status_code,
            "duration_ms": round((time.time() - start_time) * 1000, 2),
        },
    )

    response.headers["X-Correlation-ID"] = correlation_id
    logger.set_correlation_id(None)

    return response


register_error_handlers(app)

app.include_router(auth.router, prefix=settings.prefix)
app.include_router(nfts.router, prefix=settings.prefix)
app.include_router(marketplace.router, prefix=settings.prefix)
app.include_router(users.router, prefix=settings.prefix)

app.mount("/metrics", make_asgi_app())


@app.get(
    "/",
    summary="API root information",
    description="Returns basic API information and navigation links",
    tags=["System"],
)
async def root() -> dict[str, Any]:
    return {
        "name": settings.project_name,
        "version": settings.version,
        "docs": "/docs",
        "redoc": "/redoc",
        "status": "operational",
        "api_prefix": settings.prefix,
        "features": ["nfts", "marketplace", "users"],
    }


@app.get(
    "/health",
    summary="Application health check",
    description="Returns health, store reachability and process metrics",
    tags=["System"],
)
async def health_check(
    request: Request,
    container: ServiceContainer = Depends(get_service_container),
) -> JSONResponse:
    """Report process metrics and whether the document store answers.

    Status Codes:
        - 200: Store reachable, memory usage normal
        - 503: Store unreachable (unhealthy) or memory above 1GB (degraded)
    """
    process = psutil.Process()
    start_time = getattr(request.app.state, "start_time", time.time())
    uptime_seconds = int(time.time() - start_time)
    hours = uptime_seconds // 3600
    minutes = (uptime_seconds % 3600) // 60

    store_ok = await container.store.ping()
    dependencies = {
        "document_store": "connected" if store_ok else "unreachable",
        "logging_system": "operational",
    }

    health_status = "healthy" if store_ok else "unhealthy"
    memory_rss = process.memory_info().rss
    if health_status == "healthy" and memory_rss > 1024 * 1024 * 1024:
        health_status = "degraded"

    response_body = {
        "status": health_status,
        "version": settings.version,
        "environment": "development" if settings.debug else "production",
        "uptime_seconds": uptime_seconds,
        "uptime_human": f"{hours} hours, {minutes} minutes",
        "memory_mb": round(memory_rss / 1024 / 1024, 2),
        "cpu_percent": round(process.cpu_percent(), 2),
        "dependencies": dependencies,
        "timestamp": time.time(),
        "api_prefix": settings.prefix,
        "correlation_id": getattr(request.state, "correlation_id", str(uuid.uuid4())),
    }

    status_code = (
        status.HTTP_200_OK
        if health_status == "healthy"
        else status.HTTP_503_SERVICE_UNAVAILABLE
    )
    return JSONResponse(status_code=status_code, content=response_body)
