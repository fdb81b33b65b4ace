"""
Domain entities for the agent.

These are pure domain objects with no infrastructure dependencies.
They define the core data structures shared by the orchestrator,
the tool registry, the providers and the subagent workers.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

# ============================================
# Message Types
# ============================================


class MessageRole(str, Enum):
    """Role of a message in a conversation."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


@dataclass
class ToolCall:
    """A tool call proposed by the LLM.

    The arguments are kept exactly as the model produced them (JSON text).
    Decoding and validation happen at the registry boundary so that a
    malformed payload degrades into a tool result instead of an exception.

    Attributes:
        name: Tool name being called
        arguments: Raw JSON arguments from the model
        id: Tool call identifier (for correlating the result turn)
    """

    name: str
    arguments: str = "{}"
    id: str = field(default_factory=lambda: f"call_{uuid.uuid4().hex[:24]}")

    def parsed_arguments(self) -> dict[str, Any]:
        """Best-effort decode of the arguments, used for display and formatting."""
        try:
            value = json.loads(self.arguments) if self.arguments.strip() else {}
        except json.JSONDecodeError:
            return {"raw": self.arguments}
        return value if isinstance(value, dict) else {"raw": value}


@dataclass
class Message:
    """A single turn in a conversation.

    Attributes:
        role: Message role (user, assistant, system, tool)
        content: Text content (None for an assistant tool-call turn)
        tool_calls: Tool calls requested by the assistant in this turn
        tool_call_id: Correlation id of the call a TOOL turn answers
    """

    role: MessageRole
    content: Optional[str] = None
    tool_calls: Optional[list[ToolCall]] = None
    tool_call_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the flat request format consumed by the model gateway."""
        result: dict[str, Any] = {
            "role": self.role.value,
            "content": self.content,
        }
        if self.tool_calls:
            result["tool_calls"] = [
                {
                    "id": tc.id,
                    "type": "function",
                    "function": {"name": tc.name, "arguments": tc.arguments},
                }
                for tc in self.tool_calls
            ]
        if self.tool_call_id is not None:
            result["tool_call_id"] = self.tool_call_id
        return result


# ============================================
# Tool System
# ============================================


@dataclass
class ToolDefinition:
    """Definition of an available tool.

    Attributes:
        name: Tool name (e.g., 'read')
        description: Human-readable description
        parameters: JSON Schema for parameters
    """

    name: str
    description: str
    parameters: dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )

    def to_openai_format(self) -> dict[str, Any]:
        """Convert to OpenAI function calling format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    def to_anthropic_format(self) -> dict[str, Any]:
        """Convert to Anthropic tool use format."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.parameters,
        }


# ============================================
# Model Responses
# ============================================


class ErrorType(str, Enum):
    """Types of model gateway errors."""

    RECOVERABLE = "recoverable"  # Caller may retry
    FATAL = "fatal"  # Must abort
    TIMEOUT = "timeout"  # LLM timeout
    RATE_LIMIT = "rate_limit"  # Rate limited, back off


@dataclass
class ModelResponse:
    """One model gateway response.

    Exactly one of ``content`` (final answer) or a non-empty
    ``tool_calls`` list is meaningful.

    Attributes:
        content: Text answer, or None
        tool_calls: Requested tool invocations, in model order
        model: Model that produced the response
    """

    content: Optional[str] = None
    tool_calls: list[ToolCall] = field(default_factory=list)
    model: Optional[str] = None

    @property
    def has_tool_calls(self) -> bool:
        """Check if the model requested any tool invocations."""
        return len(self.tool_calls) > 0
