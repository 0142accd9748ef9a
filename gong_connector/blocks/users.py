"""User lookup block."""

from typing import Any

from pydantic import Field

from gong_connector.blocks.base import ActionBlock, BlockInput, BlockOutput
from gong_connector.client import GongClient
from gong_connector.errors import NotFoundError


class UserIdInput(BlockInput):
    """Identifies a single Gong user."""

    user_id: str = Field(
        ..., alias="userId", min_length=1, description="The unique identifier of the user"
    )


class UserDetailsOutput(BlockOutput):
    """A Gong user profile."""

    user: dict[str, Any]


class GetUserDetailsBlock(ActionBlock[UserIdInput, UserDetailsOutput]):
    """Retrieves details about one Gong user."""

    name = "Get User Details"
    description = (
        "Retrieves detailed information about a specific Gong user including their "
        "profile, email, role, and settings."
    )
    category = "Users"

    @property
    def input_schema(self) -> type[UserIdInput]:
        return UserIdInput

    @property
    def output_schema(self) -> type[UserDetailsOutput]:
        return UserDetailsOutput

    async def _execute(self, client: GongClient, input_data: UserIdInput) -> UserDetailsOutput:
        response = await client.get_users([input_data.user_id])

        users = response.get("users") or []
        if not users:
            raise NotFoundError(f"No user found with ID {input_data.user_id}")

        return UserDetailsOutput(user=users[0])
