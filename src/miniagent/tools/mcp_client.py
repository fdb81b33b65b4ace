"""
MCP Client for external tool hosts.

Connects to MCP servers and exposes their tools through the local
tool registry under the composite name ``<server>__<tool>``.

Two transports are supported:
- stdio: spawn the server process and talk to it with the official
  ``mcp`` client session
- http: POST to the server's ``/mcp/v1/tools/*`` endpoints with aiohttp
"""

from __future__ import annotations

import json
import logging
import os
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from typing import Any, Optional

import aiohttp

from ..domain.entities import ToolDefinition
from ..domain.ports import IMCPClient
from .registry import Tool

logger = logging.getLogger(__name__)

# Separator between server name and tool name in registered tool names
TOOL_NAME_SEPARATOR = "__"


class MCPToolError(Exception):
    """Error talking to an MCP server."""

    def __init__(
        self,
        message: str,
        tool_name: str,
        server_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.tool_name = tool_name
        self.server_name = server_name
        self.original_error = original_error


@dataclass
class MCPServerConfig:
    """Configuration for one MCP server.

    Either ``command`` (stdio transport) or ``url`` (http transport)
    must be set.

    Attributes:
        name: Server name, used as the registered tool name prefix
        command: Executable to spawn for stdio servers
        args: Arguments for the command
        env: Extra environment variables for the spawned process
        url: Base URL for http servers
        timeout: Request timeout in seconds (http only)
    """

    name: str
    command: Optional[str] = None
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)
    url: Optional[str] = None
    timeout: float = 30.0

    def __post_init__(self):
        if not self.name:
            raise ValueError("MCP server name is required")
        if TOOL_NAME_SEPARATOR in self.name:
            raise ValueError(
                f"MCP server name must not contain '{TOOL_NAME_SEPARATOR}': {self.name}"
            )
        if not self.command and not self.url:
            raise ValueError(f"MCP server {self.name} needs a command or a url")

    @property
    def transport(self) -> str:
        return "stdio" if self.command else "http"

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> MCPServerConfig:
        """Build a config from a ``mcpServers`` style JSON entry."""
        return cls(
            name=name,
            command=data.get("command"),
            args=list(data.get("args") or []),
            env=dict(data.get("env") or {}),
            url=data.get("url"),
            timeout=float(data.get("timeout", 30.0)),
        )


def _extract_text(content: list[Any]) -> str:
    """Join the text parts of an MCP content array.

    Falls back to the JSON dump of the content when it has no text.
    """
    parts = []
    for item in content:
        if isinstance(item, dict):
            if item.get("type") == "text" and item.get("text"):
                parts.append(item["text"])
        elif getattr(item, "type", None) == "text" and getattr(item, "text", None):
            parts.append(item.text)

    if parts:
        return "\n".join(parts)

    serializable = [
        item.model_dump() if hasattr(item, "model_dump") else item for item in content
    ]
    return json.dumps(serializable)


class MCPClient(IMCPClient):
    """Client for a single MCP server.

    Usage:
        client = MCPClient(MCPServerConfig(name="fs", command="npx", args=[...]))
        await client.connect()

        # Tools ready for ToolRegistry.register_tool
        tools = await client.get_tools()

        await client.disconnect()
    """

    CLIENT_NAME = "mini-agent"

    def __init__(self, config: MCPServerConfig):
        """Initialize the MCP client.

        Args:
            config: Server configuration
        """
        self.config = config
        self._connected = False
        self._exit_stack: Optional[AsyncExitStack] = None
        self._session: Any = None  # mcp.ClientSession for stdio
        self._http: Optional[aiohttp.ClientSession] = None

    @property
    def server_name(self) -> str:
        return self.config.name

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def connect(self) -> None:
        """Connect to the server.

        Raises:
            MCPToolError: If the server cannot be reached
        """
        if self._connected:
            return

        if self.config.transport == "stdio":
            await self._connect_stdio()
        else:
            await self._connect_http()

        self._connected = True
        logger.info(f"Connected to MCP server {self.server_name} ({self.config.transport})")

    async def _connect_stdio(self) -> None:
        from mcp import ClientSession, StdioServerParameters
        from mcp.client.stdio import stdio_client

        params = StdioServerParameters(
            command=self.config.command,
            args=self.config.args,
            env={**os.environ, **self.config.env},
        )

        stack = AsyncExitStack()
        try:
            read_stream, write_stream = await stack.enter_async_context(
                stdio_client(params)
            )
            session = await stack.enter_async_context(
                ClientSession(read_stream, write_stream)
            )
            await session.initialize()
        except Exception as e:
            await stack.aclose()
            raise MCPToolError(
                f"Failed to connect to MCP server {self.server_name}: {e}",
                tool_name="connect",
                server_name=self.server_name,
                original_error=e,
            )

        self._exit_stack = stack
        self._session = session

    async def _connect_http(self) -> None:
        timeout = aiohttp.ClientTimeout(total=self.config.timeout)
        self._http = aiohttp.ClientSession(
            timeout=timeout,
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )

    async def disconnect(self) -> None:
        """Close the transport. Safe to call more than once."""
        if self._exit_stack is not None:
            await self._exit_stack.aclose()
            self._exit_stack = None
            self._session = None

        if self._http is not None and not self._http.closed:
            await self._http.close()
        self._http = None

        if self._connected:
            logger.info(f"Disconnected from MCP server {self.server_name}")
        self._connected = False

    def _ensure_connected(self, tool_name: str) -> None:
        if not self._connected:
            raise MCPToolError(
                "MCP client not connected",
                tool_name=tool_name,
                server_name=self.server_name,
            )

    async def list_tools(self) -> list[ToolDefinition]:
        """List tools exposed by the server.

        Returns:
            Tool definitions with the server's own (unprefixed) names
        """
        self._ensure_connected("list_tools")

        if self._session is not None:
            response = await self._session.list_tools()
            raw_tools = [
                {
                    "name": tool.name,
                    "description": tool.description,
                    "inputSchema": tool.inputSchema,
                }
                for tool in response.tools
            ]
        else:
            data = await self._post("/mcp/v1/tools/list", {}, tool_name="list_tools")
            raw_tools = data.get("tools", [])

        tools = []
        for tool_data in raw_tools:
            schema = dict(tool_data.get("inputSchema") or {})
            schema.setdefault("type", "object")
            schema.setdefault("properties", {})
            tools.append(
                ToolDefinition(
                    name=tool_data["name"],
                    description=tool_data.get("description") or "",
                    parameters=schema,
                )
            )

        logger.info(f"Discovered {len(tools)} tools on MCP server {self.server_name}")
        return tools

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> str:
        """Call a tool on the server.

        Args:
            name: Tool name as known by the server (no prefix)
            arguments: Decoded tool arguments

        Returns:
            Text result

        Raises:
            MCPToolError: On transport failure or a tool-level error
        """
        self._ensure_connected(name)

        if self._session is not None:
            result = await self._session.call_tool(name, arguments)
            text = _extract_text(list(result.content))
            if getattr(result, "isError", False):
                raise MCPToolError(text, tool_name=name, server_name=self.server_name)
            return text

        data = await self._post(
            "/mcp/v1/tools/call",
            {"name": name, "arguments": arguments},
            tool_name=name,
        )
        text = _extract_text(data.get("content", []))
        if data.get("isError"):
            raise MCPToolError(text, tool_name=name, server_name=self.server_name)
        return text

    async def _post(
        self, path: str, payload: dict[str, Any], tool_name: str
    ) -> dict[str, Any]:
        """POST a JSON payload to the http server (single attempt)."""
        if self._http is None:
            raise MCPToolError(
                "MCP client has no HTTP session",
                tool_name=tool_name,
                server_name=self.server_name,
            )
        url = f"{self.config.url.rstrip('/')}{path}"

        try:
            async with self._http.post(url, json=payload) as response:
                if response.status == 404:
                    raise MCPToolError(
                        f"Tool not found: {tool_name}",
                        tool_name=tool_name,
                        server_name=self.server_name,
                    )
                if response.status != 200:
                    text = await response.text()
                    raise MCPToolError(
                        f"MCP request failed: {response.status} - {text}",
                        tool_name=tool_name,
                        server_name=self.server_name,
                    )
                return await response.json()

        except aiohttp.ClientError as e:
            raise MCPToolError(
                f"Failed to connect to MCP server: {e}",
                tool_name=tool_name,
                server_name=self.server_name,
                original_error=e,
            )

    async def get_tools(self) -> list[Tool]:
        """Discover the server's tools as registry-ready Tools.

        Each tool is renamed ``<server>__<tool>`` and its handler calls
        back into this client with the original name.
        """
        tools = []
        for definition in await self.list_tools():
            tools.append(
                Tool(
                    definition=ToolDefinition(
                        name=f"{self.server_name}{TOOL_NAME_SEPARATOR}{definition.name}",
                        description=definition.description
                        or f"MCP tool: {definition.name}",
                        parameters=definition.parameters,
                    ),
                    handler=self._make_handler(definition.name),
                )
            )
        return tools

    def _make_handler(self, remote_name: str):
        async def handler(args: dict[str, Any]) -> str:
            return await self.call_tool(remote_name, args)

        return handler


class MCPServerManager:
    """Keeps track of connected MCP servers.

    Usage:
        manager = MCPServerManager()
        await manager.add_server(config)
        tools = await manager.get_all_tools()
        await manager.disconnect_all()
    """

    def __init__(self):
        self._servers: dict[str, MCPClient] = {}

    def _create_client(self, config: MCPServerConfig) -> MCPClient:
        return MCPClient(config)

    async def add_server(self, config: MCPServerConfig) -> MCPClient:
        """Connect to a server and start tracking it.

        Raises:
            MCPToolError: If the name is taken or the connection fails
        """
        if config.name in self._servers:
            raise MCPToolError(
                f"Server already exists: {config.name}",
                tool_name="add_server",
                server_name=config.name,
            )

        client = self._create_client(config)
        await client.connect()
        self._servers[config.name] = client
        return client

    async def remove_server(self, name: str) -> bool:
        """Disconnect and forget a server. Returns True if it was known."""
        client = self._servers.pop(name, None)
        if client is None:
            return False
        await client.disconnect()
        return True

    def get_server(self, name: str) -> Optional[MCPClient]:
        return self._servers.get(name)

    def list_servers(self) -> list[str]:
        return list(self._servers.keys())

    async def get_all_tools(self) -> list[Tool]:
        """Collect tools from every server; a failing server is skipped."""
        all_tools: list[Tool] = []

        for name, client in self._servers.items():
            try:
                all_tools.extend(await client.get_tools())
            except Exception as e:
                logger.error(f"Error getting tools from MCP server {name}: {e}")

        return all_tools

    async def disconnect_all(self) -> None:
        for name, client in list(self._servers.items()):
            try:
                await client.disconnect()
            except Exception as e:
                logger.warning(f"Error disconnecting MCP server {name}: {e}")
        self._servers.clear()
