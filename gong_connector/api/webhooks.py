"""Webhook ingress endpoint.

Gong posts events to ``/webhook`` (any path ending in ``/webhook`` is
accepted, so the app can sit behind a path prefix). Every other path
answers 404. The response body is whatever the router acknowledged.
"""

import asyncio
import uuid
from typing import Any

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from gong_connector.webhooks.events import InboundEvent
from gong_connector.webhooks.router import ERROR_INTERNAL, WebhookRouter
from gong_connector.webhooks.transport import InProcessTransport

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Webhooks"])

ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


def is_webhook_path(path: str) -> bool:
    """Check whether a request path targets the webhook endpoint."""
    path = path.rstrip("/")
    return path == "/webhook" or path.endswith("/webhook")


async def _receive_webhook(request: Request) -> JSONResponse:
    """Parse, route and answer one Gong webhook delivery."""
    transport: InProcessTransport = request.app.state.transport
    webhook_router: WebhookRouter = request.app.state.webhook_router
    timeout: float = request.app.state.settings.ACK_TIMEOUT_SECONDS

    request_id = f"req_{uuid.uuid4().hex[:12]}"
    transport.expect(request_id)

    routing: asyncio.Task[Any] | None = None
    try:
        body: Any = await request.json()
        event = InboundEvent.model_validate(body)
    except (ValueError, ValidationError) as e:
        logger.error("webhook_payload_invalid", request_id=request_id, error=str(e))
        await transport.acknowledge(request_id, 500, {"error": ERROR_INTERNAL})
    else:
        routing = asyncio.create_task(webhook_router.route(event, request_id))

    try:
        ack = await transport.wait_for_ack(request_id, timeout=timeout)
    except TimeoutError:
        logger.error("webhook_acknowledgment_timeout", request_id=request_id, timeout=timeout)
        if routing is not None:
            routing.cancel()
            await asyncio.gather(routing, return_exceptions=True)
        return JSONResponse(status_code=500, content={"error": ERROR_INTERNAL})

    if routing is not None:
        await routing

    return JSONResponse(status_code=ack.status_code, content=ack.body)


@router.api_route("/{path:path}", methods=ALL_METHODS, include_in_schema=False)
async def ingress(path: str, request: Request) -> JSONResponse:  # noqa: ARG001
    """Accept Gong webhooks; everything else is not found."""
    if request.method == "POST" and is_webhook_path(request.url.path):
        return await _receive_webhook(request)

    return JSONResponse(status_code=404, content={"error": "Endpoint not found"})
