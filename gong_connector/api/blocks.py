"""Block catalogue and action block execution endpoints."""

from typing import Any

import structlog
from fastapi import APIRouter, HTTPException, Request

from gong_connector.blocks import BLOCKS, ActionBlock
from gong_connector.client import GongClient

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/blocks", tags=["Blocks"])


@router.get("")
async def list_blocks() -> dict[str, Any]:
    """Describe every block the app exposes."""
    return {key: block.describe() for key, block in BLOCKS.items()}


@router.post("/{block_key}")
async def run_block(
    block_key: str,
    request: Request,
    input_data: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Run an action block and return the event it emits.

    Errors raised by the block are mapped by the app's exception handlers.
    """
    block = BLOCKS.get(block_key)
    if not isinstance(block, ActionBlock):
        raise HTTPException(status_code=404, detail=f"Action block {block_key} not found")

    client: GongClient = request.app.state.gong_client
    output = await block.run(client, input_data or {})
    return {"event": output.to_event()}
