"""MCP server for user record operations.

This server exposes a JSON-file user store as MCP tools, resources and
prompts, served over stdio.
"""

import asyncio
import json
import logging
import re
import sys
from typing import Any, Dict, Iterable, List, Optional

from dotenv import load_dotenv
from mcp import types
from mcp.server import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from pydantic import AnyUrl

from config.settings import Settings
from mcp_server.user_store import JsonFileUserStore, UserStore
from models.schemas import (
    EMPTY_INPUT_SCHEMA,
    CreateUserArguments,
    EchoArguments,
    GeneratedUserProfile,
    tool_input_schema,
)

logger = logging.getLogger(__name__)

ALL_USERS_URI = "users://all"
USER_PROFILE_TEMPLATE = "users://{userId}/profile"
USER_PROFILE_PATTERN = re.compile(r"^users://(?P<user_id>[^/]+)/profile/?$")

RANDOM_USER_INSTRUCTIONS = (
    "Generate a random user profile with realistic name, email, address, and phone number. "
    "Only output the user data in JSON format."
)

# Leading ```json (or bare ```) and trailing ``` around a model's JSON answer
_FENCE_START = re.compile(r"^```(?:json)?", re.IGNORECASE)
_FENCE_END = re.compile(r"```$")


def echo_text(message: str) -> str:
    return f"Echo: {message}"


def echo_tool(arguments: Dict[str, Any]) -> List[types.TextContent]:
    """Run the `example` tool, reporting any failure as text."""
    try:
        return _text(echo_text(EchoArguments.model_validate(arguments).message))
    except Exception as e:
        logger.error(f"Echo failed: {e}")
        return _text("Failed to echo back the message")


def dummy_user_prompt_text(name: str) -> str:
    return (
        f"Generate a dummy user with the name {name}. "
        "The user should have a realistic email, address, and phone number."
    )


def parse_generated_profile(text: str) -> GeneratedUserProfile:
    """Parse a model's answer into a user profile.

    Args:
        text: Sampled text, possibly wrapped in a Markdown code fence

    Returns:
        Validated profile

    Raises:
        json.JSONDecodeError: If the text is not JSON
        pydantic.ValidationError: If the JSON is not a complete profile
    """
    cleaned = _FENCE_END.sub("", _FENCE_START.sub("", text.strip())).strip()
    return GeneratedUserProfile.model_validate(json.loads(cleaned))


def _text(text: str) -> List[types.TextContent]:
    return [types.TextContent(type="text", text=text)]


def create_server(store: UserStore, settings: Settings) -> Server:
    """Build an MCP server bound to a user store.

    Args:
        store: Backing store for the user tools and resources
        settings: Server identity and sampling configuration

    Returns:
        Server with tools, resources and prompts registered
    """
    app = Server(settings.server_name, version=settings.server_version)

    @app.list_tools()
    async def list_tools() -> List[types.Tool]:
        """Register available user tools."""
        return [
            types.Tool(
                name="example",
                description="An example tool that echoes back the input",
                inputSchema=tool_input_schema(EchoArguments),
                annotations=types.ToolAnnotations(
                    title="Example tool to echo back the message",
                    readOnlyHint=True,
                    destructiveHint=False,
                    idempotentHint=False,
                    openWorldHint=False,
                ),
            ),
            types.Tool(
                name="create-user",
                description="Create a new user in the database",
                inputSchema=tool_input_schema(CreateUserArguments),
                annotations=types.ToolAnnotations(
                    title="Create user",
                    readOnlyHint=False,
                    destructiveHint=False,
                    idempotentHint=False,
                    openWorldHint=True,
                ),
            ),
            types.Tool(
                name="create-random-user",
                description="Create a random user with fake data",
                inputSchema=EMPTY_INPUT_SCHEMA,
                annotations=types.ToolAnnotations(
                    title="Create random user",
                    readOnlyHint=False,
                    destructiveHint=False,
                    idempotentHint=False,
                    openWorldHint=True,
                ),
            ),
        ]

    @app.call_tool()
    async def call_tool(name: str, arguments: Dict[str, Any]) -> List[types.TextContent]:
        """Execute tool calls."""
        arguments = arguments or {}

        if name == "example":
            return echo_tool(arguments)

        elif name == "create-user":
            try:
                params = CreateUserArguments.model_validate(arguments)
                user_id = await store.append(params.to_profile())
                return _text(f"User {user_id} created successfully")
            except Exception as e:
                logger.error(f"Create user error: {e}", exc_info=True)
                return _text(f"Failed to save a user: {e}")

        elif name == "create-random-user":
            return await create_random_user()

        else:
            raise ValueError(f"Unknown tool: {name}")

    async def create_random_user() -> List[types.TextContent]:
        # Sampling errors (e.g. a client without sampling support) surface as tool errors
        result = await app.request_context.session.create_message(
            messages=[
                types.SamplingMessage(
                    role="user",
                    content=types.TextContent(type="text", text=RANDOM_USER_INSTRUCTIONS),
                )
            ],
            max_tokens=settings.sampling_max_tokens,
        )

        if not isinstance(result.content, types.TextContent):
            logger.warning("Sampling returned non-text content")
            return _text("Failed to generate the user data")

        try:
            profile = parse_generated_profile(result.content.text)
            user_id = await store.append(profile.to_profile())
            return _text(f"User {user_id} created successfully")
        except Exception as e:
            logger.error(f"Failed to create random user: {e}")
            return _text("Failed to generate user data")

    @app.list_resources()
    async def list_resources() -> List[types.Resource]:
        return [
            types.Resource(
                uri=AnyUrl(ALL_USERS_URI),
                name="users",
                title="Users",
                description="Get all users data from the database",
                mimeType="application/json",
            )
        ]

    @app.list_resource_templates()
    async def list_resource_templates() -> List[types.ResourceTemplate]:
        return [
            types.ResourceTemplate(
                uriTemplate=USER_PROFILE_TEMPLATE,
                name="user-details",
                title="User detail",
                description="Get a user details from the database",
                mimeType="application/json",
            )
        ]

    @app.read_resource()
    async def read_resource(uri: AnyUrl) -> Iterable[ReadResourceContents]:
        uri_str = str(uri)

        if uri_str.rstrip("/") == ALL_USERS_URI:
            try:
                users = await store.list()
            except Exception as e:
                logger.error(f"Failed to read users: {e}", exc_info=True)
                return [ReadResourceContents("Failed to retrieve users data list", "text/plain")]
            return [
                ReadResourceContents(
                    json.dumps([user.to_dict() for user in users]), "application/json"
                )
            ]

        match = USER_PROFILE_PATTERN.match(uri_str)
        if match:
            return await read_user_profile(match.group("user_id"))

        raise ValueError(f"Unknown resource: {uri_str}")

    async def read_user_profile(raw_user_id: str) -> List[ReadResourceContents]:
        # Only plain ASCII digits name a user; "+1", "1_0" and the like do not
        user_id = int(raw_user_id) if raw_user_id.isascii() and raw_user_id.isdigit() else None

        try:
            user = await store.get(user_id) if user_id is not None else None
        except Exception as e:
            logger.error(f"Failed to read user {raw_user_id}: {e}", exc_info=True)
            return [ReadResourceContents("Failed to retrieve user details", "text/plain")]

        if user is None:
            return [ReadResourceContents("User doesn't exist", "text/plain")]
        return [ReadResourceContents(json.dumps(user.to_dict()), "application/json")]

    @app.list_prompts()
    async def list_prompts() -> List[types.Prompt]:
        return [
            types.Prompt(
                name="generate-dummy-user",
                description="Generate a dummy user based on a given name",
                arguments=[
                    types.PromptArgument(name="name", description="User name", required=True)
                ],
            )
        ]

    @app.get_prompt()
    async def get_prompt(
        name: str, arguments: Optional[Dict[str, str]]
    ) -> types.GetPromptResult:
        if name != "generate-dummy-user":
            raise ValueError(f"Unknown prompt: {name}")
        if not arguments or "name" not in arguments:
            raise ValueError("Missing required argument: name")

        return types.GetPromptResult(
            description="Generate a dummy user based on a given name",
            messages=[
                types.PromptMessage(
                    role="user",
                    content=types.TextContent(
                        type="text", text=dummy_user_prompt_text(arguments["name"])
                    ),
                )
            ],
        )

    return app


async def main(settings: Optional[Settings] = None):
    """Run the MCP server over stdio."""
    # Load environment variables from .env file
    load_dotenv()

    if settings is None:
        settings = Settings()

    # stdout carries the protocol, so logs go to stderr
    logging.basicConfig(stream=sys.stderr, level=getattr(logging, settings.log_level))

    store = JsonFileUserStore(settings.users_file)
    app = create_server(store, settings)
    logger.info(f"✓ {settings.server_name} serving users from {settings.users_file}")

    async with stdio_server() as (read_stream, write_stream):
        await app.run(read_stream, write_stream, app.create_initialization_options())


def run() -> None:
    """Console entry point."""
    try:
        asyncio.run(main())
    except Exception as e:
        # Settings may have failed before main() configured logging
        logging.basicConfig(stream=sys.stderr)
        logger.error(f"Fatal error in main(): {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    run()
