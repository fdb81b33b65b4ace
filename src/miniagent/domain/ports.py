"""
Port interfaces (abstract base classes) for the agent.

These define the contracts that adapters must implement.
Following the Ports & Adapters (Hexagonal) architecture pattern.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .entities import Message, ModelResponse, ToolDefinition


# ============================================
# LLM Provider Interface (model gateway)
# ============================================


class ILLMProvider(ABC):
    """Interface for LLM providers (GPT, Claude, any OpenAI-compatible API).

    Implementations handle the specifics of each LLM API while
    providing a consistent request/response contract to the orchestrator.
    Providers hold no conversation state.
    """

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Return the model identifier (e.g., 'gpt-4o')."""
        pass

    @abstractmethod
    async def chat(
        self,
        messages: list[Message],
        tools: Optional[list[ToolDefinition]] = None,
    ) -> ModelResponse:
        """Generate one response to the conversation.

        Args:
            messages: Projected conversation (system turn first, if any)
            tools: Tool definitions offered to the model

        Returns:
            A ModelResponse carrying either text or tool calls

        Raises:
            LLMProviderError: If the request fails. Never retried here.
        """
        pass


# ============================================
# External Tool Host Interface
# ============================================


class IMCPClient(ABC):
    """Interface for external tool hosts (MCP servers).

    A host is discovered once per connection and exposes a flat
    list of tools that can be called by name.
    """

    @property
    @abstractmethod
    def server_name(self) -> str:
        """Return the configured server name (used as the tool name prefix)."""
        pass

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Return True once connect() has succeeded."""
        pass

    @abstractmethod
    async def connect(self) -> None:
        """Open the transport and perform the protocol handshake."""
        pass

    @abstractmethod
    async def list_tools(self) -> list[ToolDefinition]:
        """List tools exposed by the host (names without prefix)."""
        pass

    @abstractmethod
    async def call_tool(self, name: str, arguments: dict[str, Any]) -> str:
        """Call a host tool and return its text result."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the transport."""
        pass
