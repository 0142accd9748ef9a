"""Base classes for Gong blocks.

A block is a unit the workflow host can place in a flow. Action blocks take
validated input, call the Gong API and return validated output. Subscription
blocks (see ``subscriptions.py``) have no input; they register for a webhook
category and re-emit matching events.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Generic, TypeVar

import structlog
from pydantic import BaseModel, ConfigDict, ValidationError

from gong_connector.client import GongClient
from gong_connector.errors import ConfigurationError, GongConnectorError

logger = structlog.get_logger(__name__)


class BlockStatus(str, Enum):
    """Lifecycle status reported back to the host."""

    READY = "ready"
    DRAINED = "drained"
    FAILED = "failed"


class BlockInput(BaseModel):
    """Base class for block input validation."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class BlockOutput(BaseModel):
    """Base class for block output validation."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def to_event(self) -> dict[str, Any]:
        """Event body emitted to the host, with Gong field names."""
        return self.model_dump(by_alias=True, exclude_none=True)


InputT = TypeVar("InputT", bound=BlockInput)
OutputT = TypeVar("OutputT", bound=BlockOutput)


class BlockInputError(GongConnectorError):
    """Raised when block input fails validation."""

    def __init__(self, block_name: str, message: str) -> None:
        super().__init__(f"{block_name}: {message}", details={"block": block_name})
        self.block_name = block_name


class ActionBlock(ABC, Generic[InputT, OutputT]):
    """Abstract base class for blocks that call the Gong API.

    Type Parameters:
        InputT: Pydantic model for input validation
        OutputT: Pydantic model for output validation

    Example:
        class GetUserInput(BlockInput):
            user_id: str

        class GetUserDetailsBlock(ActionBlock[GetUserInput, GetUserOutput]):
            name = "Get User Details"
            category = "Users"

            async def _execute(self, client, input_data):
                ...
    """

    #: Display name of the block
    name: str
    #: Human-readable description of what the block does
    description: str
    #: Grouping shown by the host
    category: str

    def __init__(self) -> None:
        self._logger = logger.bind(block=self.name)

    @property
    @abstractmethod
    def input_schema(self) -> type[InputT]:
        """Return the Pydantic model for input validation."""
        ...

    @property
    @abstractmethod
    def output_schema(self) -> type[OutputT]:
        """Return the Pydantic model for output validation."""
        ...

    @abstractmethod
    async def _execute(self, client: GongClient, input_data: InputT) -> OutputT:
        """Call Gong and build the block output.

        Args:
            client: Configured Gong client.
            input_data: Validated input data.

        Returns:
            Block output.
        """
        ...

    def _validate_input(self, input_data: dict[str, Any] | InputT) -> InputT:
        """Validate and parse input data.

        Raises:
            BlockInputError: If validation fails.
        """
        if isinstance(input_data, self.input_schema):
            return input_data

        try:
            return self.input_schema.model_validate(input_data)
        except ValidationError as e:
            raise BlockInputError(self.name, f"Input validation failed: {e}") from e

    async def run(self, client: GongClient, input_data: dict[str, Any] | InputT) -> OutputT:
        """Run the block against Gong.

        Args:
            client: Gong client built from the app configuration.
            input_data: Raw input dict or validated input model.

        Returns:
            Validated block output.

        Raises:
            BlockInputError: If the input is invalid.
            ConfigurationError: If Gong credentials are not configured.
            GongAPIError: If Gong rejects the request.
            NotFoundError: If Gong has no record for the requested id.
        """
        validated_input = self._validate_input(input_data)

        if not client.is_configured:
            raise ConfigurationError(
                f"Gong credentials not configured. Cannot run {self.name}."
            )

        self._logger.info("block_run_start", input=validated_input.model_dump())
        output = await self._execute(client, validated_input)
        self._logger.info("block_run_complete")
        return output

    def describe(self) -> dict[str, Any]:
        """Block metadata for the host."""
        return {
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "input_schema": self.input_schema.model_json_schema(by_alias=True),
            "output_schema": self.output_schema.model_json_schema(by_alias=True),
        }
