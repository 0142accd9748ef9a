"""Gong webhook event categories and payload models.

Gong sends one webhook per call lifecycle stage. The set of stages the
connector understands is closed: every ``EventCategory`` member has exactly
one entry in ``CATALOG``, and anything Gong sends outside that set is
treated as an unrecognized category rather than an error.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EventCategory(str, Enum):
    """Webhook event types emitted by Gong, in lifecycle order."""

    CALL_CREATED = "call-created"
    CALL_TRANSCRIPT_READY = "call-transcript-ready"
    CALL_ANALYZED = "call-analyzed"


class GongCall(BaseModel):
    """Call attributes carried by a Gong webhook."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str | None = Field(default=None, description="Unique identifier of the call")
    url: str | None = Field(default=None, description="URL to view the call in Gong")
    title: str | None = Field(default=None, description="Title of the call")
    scheduled: str | None = Field(default=None, description="Scheduled start time (ISO 8601)")
    started: str | None = Field(default=None, description="Actual start time (ISO 8601)")
    duration: float | None = Field(default=None, description="Duration in seconds")
    primary_user_id: str | None = Field(
        default=None, alias="primaryUserId", description="Gong user who hosted the call"
    )
    direction: str | None = Field(default=None, description="Inbound, Outbound, Conference")
    system: str | None = Field(default=None, description="Conferencing system")
    scope: str | None = Field(default=None, description="Internal, External, Unknown")
    media: str | None = Field(default=None, description="Video or Audio")
    language: str | None = Field(default=None, description="Detected call language")
    workspace_id: str | None = Field(
        default=None, alias="workspaceId", description="Workspace the call belongs to"
    )


class InboundEvent(BaseModel):
    """A single webhook delivery as received from Gong.

    ``event_type`` is kept as the raw string so that categories Gong adds in
    the future still parse; use ``category`` to resolve it against the
    catalog.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    event_type: str = Field(..., alias="eventType", min_length=1)
    event_id: str = Field(default="", alias="eventId")
    event_time: str = Field(default="", alias="eventTime")
    is_test: bool = Field(default=False, alias="isTest")
    call: GongCall | None = None

    @field_validator("is_test", mode="before")
    @classmethod
    def parse_is_test(cls, v: Any) -> Any:
        """Treat a null isTest as a live event."""
        return False if v is None else v

    @property
    def category(self) -> EventCategory | None:
        """Catalog category for this event, or None when unrecognized."""
        return resolve_category(self.event_type)

    @property
    def workspace_id(self) -> str | None:
        """Workspace the event's call belongs to, if Gong sent one."""
        return self.call.workspace_id if self.call else None

    def to_payload(self) -> dict[str, Any]:
        """Wire representation, using Gong's field names."""
        return self.model_dump(by_alias=True, exclude_none=True)


@dataclass(frozen=True)
class CatalogEntry:
    """Static description of one event category.

    Attributes:
        category: The event category.
        block_key: Key of the subscription block that emits this category.
        name: Display name of the block output.
        description: What the event means.
        payload_model: Model describing the ``call`` attribute of the event.
    """

    category: EventCategory
    block_key: str
    name: str
    description: str
    payload_model: type[BaseModel] = GongCall

    def output_schema(self) -> dict[str, Any]:
        """JSON schema of the event a subscription block re-emits."""
        return {
            "type": "object",
            "properties": {
                "eventId": {
                    "type": "string",
                    "description": "Unique identifier of the webhook event",
                },
                "eventTime": {
                    "type": "string",
                    "description": "ISO 8601 timestamp of when the event occurred",
                },
                "call": self.payload_model.model_json_schema(by_alias=True),
            },
            "required": ["eventId", "eventTime", "call"],
        }


CATALOG: dict[EventCategory, CatalogEntry] = {
    EventCategory.CALL_CREATED: CatalogEntry(
        category=EventCategory.CALL_CREATED,
        block_key="newCallSubscription",
        name="New Call",
        description="Emitted when a new call is recorded in Gong.",
    ),
    EventCategory.CALL_TRANSCRIPT_READY: CatalogEntry(
        category=EventCategory.CALL_TRANSCRIPT_READY,
        block_key="transcriptReadySubscription",
        name="Transcript Ready",
        description="Emitted when a call transcript is ready for retrieval.",
    ),
    EventCategory.CALL_ANALYZED: CatalogEntry(
        category=EventCategory.CALL_ANALYZED,
        block_key="callAnalyzedSubscription",
        name="Call Analyzed",
        description="Emitted when a call has been fully analyzed by Gong.",
    ),
}

_missing = set(EventCategory) - set(CATALOG)
if _missing:
    raise RuntimeError(f"Event categories missing from catalog: {sorted(c.value for c in _missing)}")


def resolve_category(raw: str | None) -> EventCategory | None:
    """Map a raw ``eventType`` string onto the catalog.

    Args:
        raw: Event type as sent by Gong.

    Returns:
        The matching category, or None if the connector does not know it.
    """
    if not raw:
        return None
    try:
        category = EventCategory(raw)
    except ValueError:
        return None
    return category if category in CATALOG else None


def get_catalog_entry(category: EventCategory) -> CatalogEntry:
    """Get the catalog entry for a category."""
    return CATALOG[category]
