"""
Tool Registry.

Provides a unified registry of every capability offered to the model:
builtin tools, tools proxied from MCP servers, and the synthetic
``delegate_task`` / ``load_skill`` tools. Handles argument decoding,
schema validation and execution routing.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

import jsonschema

from ..domain.entities import ToolDefinition

logger = logging.getLogger(__name__)

ToolHandler = Callable[[dict[str, Any]], Awaitable[str]]


class ToolNotFoundError(Exception):
    """Raised when a tool name is not registered."""

    def __init__(self, tool_name: str):
        super().__init__(f"Tool not found: {tool_name}")
        self.tool_name = tool_name


class ToolExecutionError(Exception):
    """Error preparing or executing a tool call."""

    def __init__(
        self,
        message: str,
        tool_name: str,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.tool_name = tool_name
        self.original_error = original_error


@dataclass(frozen=True)
class Tool:
    """A tool definition paired with its async handler."""

    definition: ToolDefinition
    handler: ToolHandler

    @property
    def name(self) -> str:
        return self.definition.name


class ToolRegistry:
    """Registry of tools available to one agent loop.

    Registration policy: registering a name that already exists replaces
    the previous tool and logs a warning.

    Usage:
        registry = ToolRegistry()
        registry.register(definition, handler)

        # Offer tools to the model
        definitions = registry.get_definitions()

        # Execute a model-proposed call; never raises
        result = await registry.execute("read", '{"file_path": "a.txt"}')
    """

    def __init__(self, tools: Optional[Mapping[str, Tool]] = None):
        """Initialize the tool registry.

        Args:
            tools: Optional initial tools (e.g. a parent snapshot)
        """
        self._tools: dict[str, Tool] = dict(tools or {})

    def register(self, definition: ToolDefinition, handler: ToolHandler) -> None:
        """Register a handler under the definition's name."""
        self.register_tool(Tool(definition=definition, handler=handler))

    def register_tool(self, tool: Tool) -> None:
        if tool.name in self._tools:
            logger.warning(f"Replacing already registered tool: {tool.name}")
        self._tools[tool.name] = tool
        logger.debug(f"Registered tool: {tool.name}")

    def unregister(self, name: str) -> bool:
        """Remove a tool. Returns True if it was registered."""
        return self._tools.pop(name, None) is not None

    def has(self, name: str) -> bool:
        return name in self._tools

    def get(self, name: str) -> Optional[Tool]:
        return self._tools.get(name)

    def get_or_raise(self, name: str) -> Tool:
        """Get a tool by name.

        Raises:
            ToolNotFoundError: If the name is not registered
        """
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(name)
        return tool

    def names(self) -> list[str]:
        return list(self._tools.keys())

    def get_definitions(self) -> list[ToolDefinition]:
        """Get all tool definitions, in registration order."""
        return [tool.definition for tool in self._tools.values()]

    def snapshot(self) -> Mapping[str, Tool]:
        """Return an immutable copy of the current name -> tool mapping.

        Later registrations on this registry are not visible through the
        snapshot, and the snapshot cannot be used to register tools back.
        """
        return MappingProxyType(dict(self._tools))

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    async def execute(
        self,
        name: str,
        arguments: Union[str, dict[str, Any], None] = None,
    ) -> str:
        """Execute a tool and return its text result.

        Unknown tools, malformed or schema-invalid arguments and handler
        exceptions are all returned as an ``Error: ...`` string so the
        model can react on the next turn.

        Args:
            name: Tool name
            arguments: Raw JSON text from the model, or decoded arguments

        Returns:
            Tool result text
        """
        tool = self._tools.get(name)
        if tool is None:
            logger.warning(f"Tool not found: {name}")
            return f"Error: {ToolNotFoundError(name)}"

        try:
            args = self._prepare_arguments(tool, arguments)
            result = await tool.handler(args)

        except Exception as e:
            logger.error(f"Tool {name} failed: {e}")
            return f"Error: {e}"

        return result if isinstance(result, str) else str(result)

    def _prepare_arguments(
        self,
        tool: Tool,
        arguments: Union[str, dict[str, Any], None],
    ) -> dict[str, Any]:
        """Decode raw arguments and validate them against the tool schema.

        Raises:
            ToolExecutionError: On malformed JSON or schema violations
        """
        if arguments is None:
            decoded: Any = {}
        elif isinstance(arguments, str):
            if not arguments.strip():
                decoded = {}
            else:
                try:
                    decoded = json.loads(arguments)
                except json.JSONDecodeError as e:
                    raise ToolExecutionError(
                        f"Invalid arguments for {tool.name}: malformed JSON ({e})",
                        tool_name=tool.name,
                        original_error=e,
                    )
        else:
            decoded = arguments

        if not isinstance(decoded, dict):
            raise ToolExecutionError(
                f"Invalid arguments for {tool.name}: expected a JSON object, "
                f"got {type(decoded).__name__}",
                tool_name=tool.name,
            )

        schema = tool.definition.parameters
        if schema:
            try:
                jsonschema.validate(decoded, schema)
            except jsonschema.ValidationError as e:
                raise ToolExecutionError(
                    f"Invalid arguments for {tool.name}: {e.message}",
                    tool_name=tool.name,
                    original_error=e,
                )
            except jsonschema.SchemaError as e:
                logger.warning(
                    f"Skipping argument validation for {tool.name}, invalid schema: {e.message}"
                )

        return decoded
