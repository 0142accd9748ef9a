"""FastAPI application for the Gong connector.

This module provides:
- create_app: App factory wiring store, registry, router and transport
- Health endpoints (liveness and installation readiness)
- Exception handlers mapping connector errors to JSON error bodies
"""

from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from gong_connector import __version__
from gong_connector.blocks.base import BlockInputError
from gong_connector.client import GongClient
from gong_connector.config import Settings
from gong_connector.errors import (
    ConfigurationError,
    GongAPIError,
    GongConnectorError,
    NotFoundError,
)
from gong_connector.installation import INSTALLATION_INSTRUCTIONS, check_installation
from gong_connector.webhooks.registry import SubscriptionRegistry
from gong_connector.webhooks.router import WebhookRouter
from gong_connector.webhooks.store import SubscriptionStore, create_subscription_store
from gong_connector.webhooks.transport import InProcessTransport

logger = structlog.get_logger(__name__)

# Status codes for connector errors surfaced through the API
ERROR_STATUS_CODES: dict[type[GongConnectorError], int] = {
    BlockInputError: 422,
    NotFoundError: 404,
    ConfigurationError: 503,
    GongAPIError: 502,
}


def _status_for(exc: GongConnectorError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_type):
            return status_code
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI):  # noqa: ARG001
    """Application lifespan handler."""
    # Startup
    logger.info("application_starting")
    if not app.state.gong_client.is_configured:
        logger.warning("gong_credentials_missing", instructions=INSTALLATION_INSTRUCTIONS)

    yield

    # Shutdown
    logger.info("application_shutting_down")
    await app.state.transport.shutdown()
    await app.state.gong_client.close()
    await app.state.store.aclose()


def create_app(
    settings: Settings | None = None,
    *,
    store: SubscriptionStore | None = None,
    transport: InProcessTransport | None = None,
    gong_client: GongClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings (read from the environment if omitted).
        store: Subscription store (built from REDIS_URL if omitted).
        transport: Delivery transport (a fresh in-process one if omitted).
        gong_client: Gong API client (built from settings if omitted).

    Returns:
        Configured FastAPI application.
    """
    settings = settings or Settings.from_env()
    store = store if store is not None else create_subscription_store(settings.REDIS_URL)
    transport = transport or InProcessTransport()

    app = FastAPI(
        title="Gong Connector",
        version=__version__,
        description=INSTALLATION_INSTRUCTIONS,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.store = store
    app.state.transport = transport
    app.state.registry = SubscriptionRegistry(
        store, serialize_mutations=settings.SERIALIZE_SUBSCRIPTION_MUTATIONS
    )
    app.state.webhook_router = WebhookRouter(store, transport)
    app.state.gong_client = gong_client or GongClient.from_settings(settings)

    # Add exception handlers
    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException  # noqa: ARG001
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail if isinstance(exc.detail, str) else str(exc.detail)},
        )

    @app.exception_handler(GongConnectorError)
    async def connector_exception_handler(
        request: Request, exc: GongConnectorError  # noqa: ARG001
    ) -> JSONResponse:
        status_code = _status_for(exc)
        logger.warning("connector_error", status_code=status_code, **exc.to_dict())
        return JSONResponse(status_code=status_code, content={"error": exc.message})

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception  # noqa: ARG001
    ) -> JSONResponse:
        logger.error("unhandled_exception", error=str(exc), exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    register_routes(app)

    return app


def register_routes(app: FastAPI) -> None:
    """Register all routes on the application.

    The webhook ingress router holds the catch-all route, so it is
    included last.

    Args:
        app: FastAPI application.
    """
    from gong_connector.api.blocks import router as blocks_router
    from gong_connector.api.subscriptions import router as subscriptions_router
    from gong_connector.api.webhooks import router as webhooks_router

    # Health endpoints
    @app.get("/health", tags=["Health"])
    async def health() -> dict[str, Any]:
        """Basic liveness check."""
        return {"status": "ok", "timestamp": datetime.now(UTC).isoformat()}

    @app.get("/health/ready", tags=["Health"])
    async def readiness(request: Request) -> JSONResponse:
        """Installation readiness: credentials present and accepted by Gong."""
        result = await check_installation(request.app.state.gong_client)
        status_code = 200 if result.is_ready else 503
        return JSONResponse(content=result.to_dict(), status_code=status_code)

    app.include_router(subscriptions_router)
    app.include_router(blocks_router)
    app.include_router(webhooks_router)
