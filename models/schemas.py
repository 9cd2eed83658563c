"""Tool argument and generated-profile models."""

from typing import Any, Dict

from pydantic import BaseModel, Field

from models.data_models import UserProfile


class EchoArguments(BaseModel):
    """Input of the `example` tool."""

    message: str = Field(..., description="Message to echo back")


class CreateUserArguments(BaseModel):
    """Input of the `create-user` tool."""

    name: str = Field(..., description="User's name")
    email: str = Field(..., description="User's email")
    address: str = Field(..., description="User's address")
    phone: str = Field(..., description="User's phone number")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Jane Doe",
                    "email": "jane.doe@example.com",
                    "address": "221B Baker Street, London",
                    "phone": "+44 20 7946 0958",
                }
            ]
        }
    }

    def to_profile(self) -> UserProfile:
        return UserProfile(
            name=self.name, email=self.email, address=self.address, phone=self.phone
        )


class GeneratedUserProfile(CreateUserArguments):
    """A user profile produced by the client's model through sampling.

    Models tend to add fields of their own (age, company, ...); pydantic drops
    unknown keys by default.
    """


def tool_input_schema(model: type[BaseModel]) -> Dict[str, Any]:
    """JSON schema used as a tool's inputSchema."""
    return model.model_json_schema()


EMPTY_INPUT_SCHEMA: Dict[str, Any] = {"type": "object", "properties": {}}
