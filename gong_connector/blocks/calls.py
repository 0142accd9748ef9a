"""Call retrieval blocks: search, details and transcript."""

from typing import Any

from pydantic import Field

from gong_connector.blocks.base import ActionBlock, BlockInput, BlockOutput
from gong_connector.client import GongClient
from gong_connector.errors import NotFoundError

# ============================================================================
# Search Calls
# ============================================================================


class SearchCallsInput(BlockInput):
    """Filters for a call search."""

    from_date_time: str | None = Field(
        default=None,
        alias="fromDateTime",
        description="Start date/time in ISO 8601 format (e.g., '2025-01-01T00:00:00Z')",
    )
    to_date_time: str | None = Field(
        default=None,
        alias="toDateTime",
        description="End date/time in ISO 8601 format (e.g., '2025-01-31T23:59:59Z')",
    )
    workspace_id: str | None = Field(
        default=None, alias="workspaceId", description="Filter calls by specific workspace ID"
    )
    cursor: str | None = Field(
        default=None,
        description="Pagination cursor from previous response for fetching next page",
    )


class SearchCallsOutput(BlockOutput):
    """One page of search results."""

    calls: list[dict[str, Any]] = Field(
        default_factory=list, description="Calls matching the search criteria"
    )
    cursor: str | None = Field(
        default=None, description="Cursor for the next page (absent if no more results)"
    )
    total_records: int | None = Field(
        default=None, alias="totalRecords", description="Total records matching the search"
    )


class SearchCallsBlock(ActionBlock[SearchCallsInput, SearchCallsOutput]):
    """Searches for calls in Gong."""

    name = "Search Calls"
    description = (
        "Searches for calls in Gong with flexible filtering options. Returns paginated "
        "call data including metadata, participants, call duration, and basic call information."
    )
    category = "Calls"

    @property
    def input_schema(self) -> type[SearchCallsInput]:
        return SearchCallsInput

    @property
    def output_schema(self) -> type[SearchCallsOutput]:
        return SearchCallsOutput

    async def _execute(self, client: GongClient, input_data: SearchCallsInput) -> SearchCallsOutput:
        response = await client.search_calls(
            from_date_time=input_data.from_date_time,
            to_date_time=input_data.to_date_time,
            workspace_id=input_data.workspace_id,
            cursor=input_data.cursor,
        )
        records = response.get("records") or {}
        return SearchCallsOutput(
            calls=response.get("calls") or [],
            cursor=records.get("cursor"),
            total_records=records.get("totalRecords"),
        )


# ============================================================================
# Get Call Details
# ============================================================================


class CallIdInput(BlockInput):
    """Identifies a single call."""

    call_id: str = Field(
        ..., alias="callId", min_length=1, description="The unique identifier of the call"
    )


class CallDetailsOutput(BlockOutput):
    """Full call information."""

    call: dict[str, Any] | None = Field(default=None, description="Basic call information")
    context: Any = Field(
        default=None, description="Context including CRM objects and custom fields"
    )
    content: dict[str, Any] | None = Field(
        default=None, description="Topics, trackers, questions and action items"
    )
    parties: list[dict[str, Any]] | None = Field(
        default=None, description="Participants in the call"
    )
    structure: dict[str, Any] | None = Field(
        default=None, description="Speaker time and interactions"
    )


class GetCallDetailsBlock(ActionBlock[CallIdInput, CallDetailsOutput]):
    """Retrieves comprehensive information about one call."""

    name = "Get Call Details"
    description = (
        "Retrieves comprehensive information about a specific call, including topics, "
        "questions asked, action items, sentiment analysis, call structure, and participant details."
    )
    category = "Calls"

    @property
    def input_schema(self) -> type[CallIdInput]:
        return CallIdInput

    @property
    def output_schema(self) -> type[CallDetailsOutput]:
        return CallDetailsOutput

    async def _execute(self, client: GongClient, input_data: CallIdInput) -> CallDetailsOutput:
        response = await client.get_call(input_data.call_id)
        return CallDetailsOutput(
            call=response.get("call"),
            context=response.get("context"),
            content=response.get("content"),
            parties=response.get("parties"),
            structure=response.get("structure"),
        )


# ============================================================================
# Get Call Transcript
# ============================================================================


class TranscriptOutput(BlockOutput):
    """Transcript of one call."""

    call_id: str = Field(..., alias="callId")
    transcript: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Transcript sentences with speaker and timing information",
    )


class GetCallTranscriptBlock(ActionBlock[CallIdInput, TranscriptOutput]):
    """Retrieves the full transcript of one call."""

    name = "Get Call Transcript"
    description = (
        "Retrieves the full transcript of a specific call with timestamps, speaker "
        "attribution, and sentence-level segmentation."
    )
    category = "Calls"

    @property
    def input_schema(self) -> type[CallIdInput]:
        return CallIdInput

    @property
    def output_schema(self) -> type[TranscriptOutput]:
        return TranscriptOutput

    async def _execute(self, client: GongClient, input_data: CallIdInput) -> TranscriptOutput:
        response = await client.get_call_transcripts([input_data.call_id])

        # Gong returns transcripts for all requested calls
        transcripts = response.get("callTranscripts") or []
        if not transcripts:
            raise NotFoundError(f"No transcript found for call {input_data.call_id}")

        call_transcript = transcripts[0]
        return TranscriptOutput(
            call_id=call_transcript.get("callId", input_data.call_id),
            transcript=call_transcript.get("transcript") or [],
        )
