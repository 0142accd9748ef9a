"""Blocks exposed to the workflow host.

This module provides:
- Call retrieval: SearchCallsBlock, GetCallDetailsBlock, GetCallTranscriptBlock
- User lookup: GetUserDetailsBlock
- Webhook subscriptions: one SubscriptionBlock per Gong event category
- BLOCKS: every block keyed by its host-facing name
"""

from typing import Any

from gong_connector.blocks.base import (
    ActionBlock,
    BlockInput,
    BlockInputError,
    BlockOutput,
    BlockStatus,
)
from gong_connector.blocks.calls import (
    GetCallDetailsBlock,
    GetCallTranscriptBlock,
    SearchCallsBlock,
)
from gong_connector.blocks.subscriptions import (
    SUBSCRIPTION_BLOCKS,
    SubscriptionBlock,
    call_analyzed_subscription,
    new_call_subscription,
    transcript_ready_subscription,
)
from gong_connector.blocks.users import GetUserDetailsBlock
from gong_connector.webhooks.events import get_catalog_entry

BLOCKS: dict[str, Any] = {
    # Call retrieval
    "searchCalls": SearchCallsBlock(),
    "getCallDetails": GetCallDetailsBlock(),
    "getCallTranscript": GetCallTranscriptBlock(),
    # User management
    "getUserDetails": GetUserDetailsBlock(),
    # Webhook subscriptions
    **{
        get_catalog_entry(category).block_key: block
        for category, block in SUBSCRIPTION_BLOCKS.items()
    },
}

__all__ = [
    # Base
    "ActionBlock",
    "BlockInput",
    "BlockInputError",
    "BlockOutput",
    "BlockStatus",
    # Calls
    "GetCallDetailsBlock",
    "GetCallTranscriptBlock",
    "SearchCallsBlock",
    # Users
    "GetUserDetailsBlock",
    # Subscriptions
    "SUBSCRIPTION_BLOCKS",
    "SubscriptionBlock",
    "call_analyzed_subscription",
    "new_call_subscription",
    "transcript_ready_subscription",
    # Registry
    "BLOCKS",
]
