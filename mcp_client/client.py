"""MCP client wrapper for communicating with the user records MCP server."""

import json
import sys
from contextlib import AsyncExitStack
from pathlib import Path
from typing import Any, Dict, List, Optional

from mcp import ClientSession, StdioServerParameters, types
from mcp.client.session import SamplingFnT
from mcp.client.stdio import stdio_client
from pydantic import AnyUrl


class UserMCPClient:
    """Client for communicating with the user records MCP server."""

    def __init__(
        self,
        server_command: Optional[List[str]] = None,
        env: Optional[Dict[str, str]] = None,
        cwd: Optional[Path] = None,
        sampling_callback: Optional[SamplingFnT] = None,
    ):
        """Initialize MCP client.

        Args:
            server_command: Command line starting the server. If None, runs
                mcp_server.user_server with the current interpreter.
            env: Environment for the server process (USERS_FILE, LOG_LEVEL, ...)
            cwd: Working directory for the server process
            sampling_callback: Answers sampling requests from create-random-user
        """
        self.session: Optional[ClientSession] = None
        self._exit_stack: Optional[AsyncExitStack] = None
        self.sampling_callback = sampling_callback

        if server_command is None:
            server_command = [sys.executable, "-m", "mcp_server.user_server"]

        self.server_params = StdioServerParameters(
            command=server_command[0],
            args=server_command[1:],
            env=env,
            cwd=cwd,
        )

    async def connect(self):
        """Connect to the MCP server."""
        if self.session is not None:
            raise RuntimeError("Client is already connected")

        exit_stack = AsyncExitStack()
        try:
            read_stream, write_stream = await exit_stack.enter_async_context(
                stdio_client(self.server_params)
            )
            session = await exit_stack.enter_async_context(
                ClientSession(read_stream, write_stream, sampling_callback=self.sampling_callback)
            )
            await session.initialize()
        except BaseException:
            await exit_stack.aclose()
            raise

        self._exit_stack = exit_stack
        self.session = session

    def _require_session(self) -> ClientSession:
        if self.session is None:
            raise RuntimeError("Client is not connected. Call connect() first.")
        return self.session

    async def call_tool(self, tool_name: str, arguments: Optional[Dict[str, Any]] = None) -> str:
        """Call an MCP tool and return its text output.

        Args:
            tool_name: Name of the tool to call
            arguments: Tool arguments as a dictionary

        Returns:
            Text of the first content block

        Raises:
            RuntimeError: If client is not connected
            ValueError: If the tool call reports an error
        """
        session = self._require_session()
        result = await session.call_tool(tool_name, arguments or {})

        text = ""
        if result.content and isinstance(result.content[0], types.TextContent):
            text = result.content[0].text

        if result.isError:
            raise ValueError(f"Tool '{tool_name}' returned error: {text}")

        return text

    async def echo(self, message: str) -> str:
        return await self.call_tool("example", {"message": message})

    async def create_user(self, name: str, email: str, address: str, phone: str) -> str:
        """Create a user through the create-user tool.

        Returns:
            Confirmation (or failure) text from the server
        """
        return await self.call_tool(
            "create-user",
            {"name": name, "email": email, "address": address, "phone": phone},
        )

    async def create_random_user(self) -> str:
        """Create a user from a model-generated profile.

        Requires a sampling_callback; without one the server reports an error.
        """
        return await self.call_tool("create-random-user")

    async def read_text_resource(self, uri: str) -> types.TextResourceContents:
        session = self._require_session()
        result = await session.read_resource(AnyUrl(uri))
        return result.contents[0]

    async def list_users(self) -> List[Dict[str, Any]]:
        """Read the users://all resource.

        Raises:
            ValueError: If the server could not read the users file
        """
        contents = await self.read_text_resource("users://all")
        if contents.mimeType != "application/json":
            raise ValueError(contents.text)
        return json.loads(contents.text)

    async def get_user(self, user_id: int) -> Optional[Dict[str, Any]]:
        """Read a user profile resource.

        Args:
            user_id: User identifier

        Returns:
            User dictionary if found, None otherwise
        """
        contents = await self.read_text_resource(f"users://{user_id}/profile")
        if contents.mimeType != "application/json":
            return None
        return json.loads(contents.text)

    async def get_dummy_user_prompt(self, name: str) -> str:
        """Render the generate-dummy-user prompt and return its message text."""
        session = self._require_session()
        result = await session.get_prompt("generate-dummy-user", {"name": name})
        return result.messages[0].content.text

    async def close(self):
        """Close the MCP connection."""
        if self._exit_stack is not None:
            await self._exit_stack.aclose()
            self._exit_stack = None
            self.session = None

    async def __aenter__(self):
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
